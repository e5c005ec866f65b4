"""
Day-by-day history of mood, sleep and heart-rate entries.

Entries are told apart by their `kind` tag, which every entry type sets when
it is constructed.
"""

import datetime as dt
from collections import OrderedDict
from typing import Annotated, Dict, List, Union

from pydantic import BaseModel, Field

from clinic_copilot.enums import EntryKind
from clinic_copilot.schemas.health_record import HealthSnapshot, HeartRateEntry, MoodEntry, SleepEntry

HistoryEntry = Annotated[Union[MoodEntry, SleepEntry, HeartRateEntry], Field(discriminator="kind")]


def format_long_date(day: dt.date) -> str:
    """Monday, January 6, 2025"""
    return f"{day:%A, %B} {day.day}, {day.year}"


class DayGroup(BaseModel):
    date: dt.date
    entries: List[HistoryEntry] = Field(default_factory=list)

    def of_kind(self, kind: EntryKind) -> list:
        return [entry for entry in self.entries if entry.kind == kind.value]

    def moods_by_emoji(self) -> Dict[str, List[MoodEntry]]:
        groups: Dict[str, List[MoodEntry]] = OrderedDict()
        for entry in self.of_kind(EntryKind.MOOD):
            groups.setdefault(entry.emoji, []).append(entry)
        return groups

    def assistant_prompt(self) -> str:
        """The message that asks the assistant to summarize this day."""
        sleep = self.of_kind(EntryKind.SLEEP)
        moods = self.of_kind(EntryKind.MOOD)
        heart = self.of_kind(EntryKind.HEART_RATE)

        prompt = f"Please provide a health summary for {format_long_date(self.date)}. "
        if sleep:
            prompt += f"Sleep: {sleep[0].hours_slept:g} hours. "
        if moods:
            prompt += f"Mood entries: {len(moods)} ({', '.join(m.emoji for m in moods)}). "
            notes = [note for m in moods for note in m.journal_entries if note]
            if notes:
                prompt += f"Journal entries: {'; '.join(notes)}. "
        if heart:
            latest = heart[0]
            prompt += (
                f"Heart rate: Resting {latest.resting_hr} bpm, HRV {latest.hrv:g} ms, "
                f"Calories burned {latest.calories_burned}. "
            )
        return prompt.strip()


def group_history_by_day(health: HealthSnapshot) -> List[DayGroup]:
    """Merge the three entry collections into day groups, newest day first."""
    merged = [*health.mood_entries, *health.sleep_entries, *health.heart_rate_entries]
    # stable sort keeps each collection's newest-first order within a day
    merged.sort(key=lambda entry: entry.date, reverse=True)

    groups: Dict[dt.date, DayGroup] = OrderedDict()
    for entry in merged:
        group = groups.get(entry.date)
        if group is None:
            group = groups[entry.date] = DayGroup(date=entry.date)
        group.entries.append(entry)
    return list(groups.values())
