"""
Health-record enums for the application.
"""

from enum import Enum, IntEnum


class MoodLevel(IntEnum):
    VERY_SAD = -2
    SAD = -1
    NEUTRAL = 0
    HAPPY = 1
    VERY_HAPPY = 2

    @property
    def emoji(self) -> str:
        return MOOD_EMOJIS[self]


MOOD_EMOJIS = {
    MoodLevel.VERY_SAD: "😢",
    MoodLevel.SAD: "😕",
    MoodLevel.NEUTRAL: "😐",
    MoodLevel.HAPPY: "😊",
    MoodLevel.VERY_HAPPY: "😄",
}


class EntryKind(str, Enum):
    MOOD = "mood"
    SLEEP = "sleep"
    HEART_RATE = "heart_rate"


class Theme(str, Enum):
    LIGHT = "light"
    DARK = "dark"
    SYSTEM = "system"


class PrivacyLevel(str, Enum):
    PUBLIC = "public"
    PRIVATE = "private"
    FRIENDS = "friends"


class ChatRole(str, Enum):
    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"
