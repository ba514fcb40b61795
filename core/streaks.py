from datetime import date, datetime, timedelta
from typing import Dict, Optional, Set
from zoneinfo import ZoneInfo

from core.config import settings
from core.time_utils import get_current_time, to_calendar_day, week_start
from models.habit import HabitMetrics, LearningHabit

def period_of(day: date, frequency: str) -> date:
    """Key of the period containing `day`: the day itself, or its ISO week's Monday."""
    if frequency == "weekly":
        return week_start(day)
    return day

def period_step(frequency: str) -> timedelta:
    return timedelta(days=7) if frequency == "weekly" else timedelta(days=1)

def period_totals(habit: LearningHabit, tz: ZoneInfo) -> Dict[date, int]:
    """Sums logged counts per period."""
    totals: Dict[date, int] = {}
    for entry in habit.progress:
        key = period_of(to_calendar_day(entry.date, tz), habit.frequency)
        totals[key] = totals.get(key, 0) + entry.count
    return totals

def frozen_periods(habit: LearningHabit, tz: ZoneInfo) -> Set[date]:
    # Weekly habits cannot be frozen; stray entries are ignored.
    if habit.frequency != "daily":
        return set()
    return {to_calendar_day(f.date, tz) for f in habit.freezes}

def _current_streak(completed: Set[date], frozen: Set[date], current: date, step: timedelta) -> int:
    """
    Walks back from the current period.

    Completed periods count. A frozen period keeps the chain alive but only
    counts when completed periods sit on both sides of it, so a freeze can
    bridge a gap but never lengthen a streak on its own. The current period
    is still open, so missing it is not a break. Any other gap ends the walk.
    """
    streak = 0
    pending = 0
    period = current
    while True:
        if period in completed:
            if streak:
                streak += pending
            streak += 1
            pending = 0
        elif period in frozen:
            pending += 1
        elif period != current:
            break
        period -= step
    return streak

def _longest_run(completed: Set[date], frozen: Set[date], step: timedelta) -> int:
    """Longest chain anywhere in history, counted with the same rules as the walk."""
    best = 0
    run = 0
    pending = 0
    previous: Optional[date] = None
    for period in sorted(completed | frozen):
        if previous is None or period - previous != step:
            run = 0
            pending = 0
        if period in completed:
            if run:
                run += pending
            run += 1
            pending = 0
            best = max(best, run)
        elif run:
            # Freezes count only once the next completed period arrives.
            pending += 1
        previous = period
    return best

def recalculate(habit: LearningHabit, tz: ZoneInfo, now: Optional[datetime] = None) -> HabitMetrics:
    """
    Derives streak, longest streak and XP from a habit's history.

    Pure: reads the snapshot, returns a fresh HabitMetrics. Every date is
    normalized to a calendar day in `tz` before comparison. Periods after
    the current one are ignored.

    Args:
        habit: snapshot with frequency, target, progress, freezes and the
            previously stored longest_streak (used as a floor).
        tz: reference timezone.
        now: evaluation instant, defaults to the current time in `tz`.

    Returns:
        HabitMetrics(streak, longest_streak, xp)
    """
    today = to_calendar_day(now or get_current_time(tz), tz)
    current = period_of(today, habit.frequency)
    step = period_step(habit.frequency)

    totals = period_totals(habit, tz)
    completed = {key for key, total in totals.items() if total >= habit.target and key <= current}
    # Completed wins over a freeze on the same day
    frozen = {key for key in frozen_periods(habit, tz) if key <= current} - completed

    streak = _current_streak(completed, frozen, current, step)
    longest_streak = max(habit.longest_streak, _longest_run(completed, frozen, step), streak)

    xp = sum(
        settings.HABIT_XP_BASE + (totals[key] - habit.target) * settings.HABIT_XP_EXCESS_BONUS
        for key in completed
    )

    return HabitMetrics(streak=streak, longest_streak=longest_streak, xp=xp)

def progress_percent(habit: LearningHabit, tz: ZoneInfo, now: Optional[datetime] = None) -> float:
    """Share of the target reached in the current day/week, clamped to 0-100."""
    today = to_calendar_day(now or get_current_time(tz), tz)
    done = period_totals(habit, tz).get(period_of(today, habit.frequency), 0)
    if habit.target <= 0:
        return 0.0
    return max(0.0, min(100.0, done / habit.target * 100))
