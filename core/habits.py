"""
Validated mutations on a LearningHabit snapshot.

Each helper checks its preconditions, raises a HabitError subclass before
touching anything, and otherwise returns a NEW habit with the history
changed and the metrics recalculated. Inputs are never modified.
"""
from datetime import datetime
from typing import Optional
from zoneinfo import ZoneInfo

from core.config import settings
from core.exceptions import (
    ConflictError,
    FrozenDayError,
    QuotaExceededError,
    UnsupportedOperationError,
    ValidationError,
)
from core.streaks import recalculate
from core.time_utils import DayLike, get_current_time, to_calendar_day
from models.habit import FreezeDay, HabitUpdate, LearningHabit, ProgressEntry

def apply_metrics(habit: LearningHabit, tz: ZoneInfo, now: Optional[datetime] = None) -> LearningHabit:
    metrics = recalculate(habit, tz, now)
    return habit.model_copy(update=metrics.model_dump())

def add_progress(habit: LearningHabit, day: DayLike, count: int, tz: ZoneInfo,
                 now: Optional[datetime] = None) -> LearningHabit:
    """Adds `count` to the day's entry (creating it if needed)."""
    if count < 0:
        raise ValidationError("Progress count cannot be negative")

    now = now or get_current_time(tz)
    key = to_calendar_day(day, tz)
    if key > to_calendar_day(now, tz):
        raise ValidationError("Cannot log progress for a future day")
    if any(f.date == key for f in habit.freezes):
        raise FrozenDayError(f"{key.isoformat()} is frozen")

    progress = []
    merged = False
    for entry in habit.progress:
        if entry.date == key:
            entry = ProgressEntry(date=key, count=entry.count + count)
            merged = True
        progress.append(entry)
    if not merged:
        progress.append(ProgressEntry(date=key, count=count))
    progress.sort(key=lambda p: p.date)

    return apply_metrics(habit.model_copy(update={"progress": progress}), tz, now)

def remove_progress(habit: LearningHabit, day: DayLike, tz: ZoneInfo,
                    now: Optional[datetime] = None) -> LearningHabit:
    key = to_calendar_day(day, tz)
    progress = [p for p in habit.progress if p.date != key]
    return apply_metrics(habit.model_copy(update={"progress": progress}), tz, now)

def add_freeze(habit: LearningHabit, day: DayLike, tz: ZoneInfo,
               now: Optional[datetime] = None) -> LearningHabit:
    """
    Marks a day as frozen.

    Raises:
        UnsupportedOperationError: habit is weekly.
        ConflictError: the day already meets target, or is already frozen.
        QuotaExceededError: FREEZE_MONTHLY_QUOTA freezes exist in that month.
    """
    if habit.frequency != "daily":
        raise UnsupportedOperationError("Weekly habits cannot be frozen")

    key = to_calendar_day(day, tz)
    logged = sum(p.count for p in habit.progress if p.date == key)
    if logged >= habit.target:
        raise ConflictError(f"{key.isoformat()} already meets the target")
    if any(f.date == key for f in habit.freezes):
        raise ConflictError(f"{key.isoformat()} is already frozen")

    used = sum(1 for f in habit.freezes if (f.date.year, f.date.month) == (key.year, key.month))
    if used >= settings.FREEZE_MONTHLY_QUOTA:
        raise QuotaExceededError(
            f"Only {settings.FREEZE_MONTHLY_QUOTA} freezes allowed per month"
        )

    freezes = sorted(habit.freezes + [FreezeDay(date=key)], key=lambda f: f.date)
    return apply_metrics(habit.model_copy(update={"freezes": freezes}), tz, now)

def remove_freeze(habit: LearningHabit, day: DayLike, tz: ZoneInfo,
                  now: Optional[datetime] = None) -> LearningHabit:
    key = to_calendar_day(day, tz)
    freezes = [f for f in habit.freezes if f.date != key]
    return apply_metrics(habit.model_copy(update={"freezes": freezes}), tz, now)

def unmark_day(habit: LearningHabit, day: DayLike, tz: ZoneInfo,
               now: Optional[datetime] = None) -> LearningHabit:
    """Clears a day: its progress entry if there is one, otherwise its freeze."""
    key = to_calendar_day(day, tz)
    if any(p.date == key for p in habit.progress):
        return remove_progress(habit, key, tz, now)
    return remove_freeze(habit, key, tz, now)

def change_details(habit: LearningHabit, patch: HabitUpdate, tz: ZoneInfo,
                   now: Optional[datetime] = None) -> LearningHabit:
    changes = patch.model_dump(exclude_unset=True, exclude_none=True)
    if "target" in changes and changes["target"] < 1:
        raise ValidationError("Target must be at least 1")
    return apply_metrics(habit.model_copy(update=changes), tz, now)
