"""
Auth Context - who is signed in.

Credential checks belong to the identity provider; this class only turns a
verified identity into a user record, moves the session pointer and tells
listeners (the health data context) that the identity changed.
"""

from typing import Awaitable, Callable, List, Optional

from clinic_copilot.core.logger import get_logger
from clinic_copilot.schemas.health_record import UserRecord
from clinic_copilot.schemas.user_schemas import AuthUser, VerifiedIdentity
from clinic_copilot.services.record_store import RecordStore
from clinic_copilot.services.session_pointer import SessionPointer

logger = get_logger("auth_context")

IdentityListener = Callable[[Optional[AuthUser]], Awaitable[None]]


class AuthContext:
    def __init__(self, store: RecordStore, session: SessionPointer):
        self.store = store
        self.session = session
        self.user: Optional[AuthUser] = None
        self._listeners: List[IdentityListener] = []

    @property
    def is_signed_in(self) -> bool:
        return self.user is not None

    def subscribe(self, listener: IdentityListener) -> None:
        self._listeners.append(listener)

    async def _set_user(self, user: Optional[AuthUser]) -> None:
        self.user = user
        for listener in self._listeners:
            await listener(user)

    async def sign_in(self, identity: VerifiedIdentity) -> UserRecord:
        """Resolve or create the record for identity and make it the current user."""
        record = await self.store.get_user_by_email(identity.email)

        if record:
            self.session.set(record.id)
            record = await self.store.update_user(record.id, {}) or record
            logger.info(f"Signed in existing user {record.id}")
        else:
            record = await self.store.create_user(identity)
            self.session.set(record.id)
            logger.info(f"Signed in new user {record.id}")

        await self._set_user(AuthUser.from_record(record))
        return record

    async def logout(self) -> None:
        user_id = self.session.current_user_id
        self.session.clear()
        await self._set_user(None)
        if user_id:
            logger.info(f"Signed out user {user_id}")

    async def restore(self) -> Optional[AuthUser]:
        """Re-derive the identity from the session pointer."""
        record = await self.store.get_current_user()
        if record is None:
            if self.session.current_user_id:
                # Pointer references a record that no longer exists
                self.session.clear()
            if self.user is not None:
                await self._set_user(None)
            return None

        user = AuthUser.from_record(record)
        if user != self.user:
            await self._set_user(user)
        return user
