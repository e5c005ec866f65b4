"""
Shared enums for the application.
"""

from .health_enums import (
    MoodLevel,
    MOOD_EMOJIS,
    EntryKind,
    Theme,
    PrivacyLevel,
    ChatRole
)

__all__ = [
    "MoodLevel",
    "MOOD_EMOJIS",
    "EntryKind",
    "Theme",
    "PrivacyLevel",
    "ChatRole"
]
