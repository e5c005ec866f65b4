from contextlib import asynccontextmanager
from typing import Set

from clinic_copilot.exceptions.errors import DuplicateSubmissionError


class InFlightGuard:
    """Allows one outstanding assistant request per key; a second one is refused."""

    def __init__(self):
        self._active: Set[str] = set()

    def is_active(self, key: str) -> bool:
        return key in self._active

    @asynccontextmanager
    async def hold(self, key: str):
        if key in self._active:
            raise DuplicateSubmissionError()
        self._active.add(key)
        try:
            yield
        finally:
            self._active.discard(key)
