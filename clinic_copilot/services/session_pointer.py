from typing import Optional


class SessionPointer:
    """
    Which user is signed in, if any.

    Lives for the process only; a restart always comes back signed out.
    One instance is shared by the record store and the auth context.
    """

    def __init__(self):
        self._current_user_id: Optional[str] = None

    @property
    def current_user_id(self) -> Optional[str]:
        return self._current_user_id

    @property
    def is_signed_in(self) -> bool:
        return self._current_user_id is not None

    def set(self, user_id: str) -> None:
        self._current_user_id = user_id

    def clear(self) -> None:
        self._current_user_id = None

    def clear_if(self, user_id: str) -> bool:
        if self._current_user_id == user_id:
            self._current_user_id = None
            return True
        return False
