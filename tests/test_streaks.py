"""Tests for the habit metrics engine."""

from datetime import date, datetime, timedelta
from itertools import product
from zoneinfo import ZoneInfo

from conftest import TODAY, TZ, at_noon, days_ago, make_habit
from core.habits import add_freeze
from core.streaks import period_of, progress_percent, recalculate


class TestDailyStreak:
    def test_consecutive_days(self):
        habit = make_habit(progress={days_ago(1): 1, TODAY: 1})
        assert recalculate(habit, TZ, at_noon(TODAY)).streak == 2

    def test_freeze_bridges_gap(self):
        habit = make_habit(progress={days_ago(2): 1, TODAY: 1}, freezes=[days_ago(1)])
        assert recalculate(habit, TZ, at_noon(TODAY)).streak == 3

    def test_missed_concluded_day_breaks_chain(self):
        habit = make_habit(progress={days_ago(2): 1})
        assert recalculate(habit, TZ, at_noon(TODAY)).streak == 0

    def test_open_today_does_not_break(self):
        habit = make_habit(progress={days_ago(2): 1, days_ago(1): 1})
        assert recalculate(habit, TZ, at_noon(TODAY)).streak == 2

    def test_streak_resets_once_day_concludes(self):
        habit = make_habit(progress={days_ago(2): 1, days_ago(1): 1})
        tomorrow = at_noon(TODAY + timedelta(days=1))
        assert recalculate(habit, TZ, tomorrow).streak == 0

    def test_lone_freeze_gives_no_streak(self):
        habit = make_habit(freezes=[days_ago(1)])
        metrics = recalculate(habit, TZ, at_noon(TODAY))
        assert metrics.streak == 0
        assert metrics.longest_streak == 0
        assert metrics.xp == 0

    def test_trailing_freeze_not_counted(self):
        habit = make_habit(progress={days_ago(1): 1}, freezes=[TODAY])
        assert recalculate(habit, TZ, at_noon(TODAY)).streak == 1

    def test_freeze_after_last_progress_keeps_streak(self):
        habit = make_habit(progress={days_ago(3): 1, days_ago(2): 1}, freezes=[days_ago(1)])
        metrics = recalculate(habit, TZ, at_noon(TODAY))
        assert metrics.streak == 2
        assert metrics.longest_streak == 2

    def test_leading_freeze_not_counted(self):
        habit = make_habit(progress={TODAY: 1}, freezes=[days_ago(1)])
        assert recalculate(habit, TZ, at_noon(TODAY)).streak == 1

    def test_future_entries_ignored(self):
        habit = make_habit(progress={TODAY + timedelta(days=1): 5})
        metrics = recalculate(habit, TZ, at_noon(TODAY))
        assert metrics.streak == 0
        assert metrics.xp == 0


class TestTargetBoundary:
    def test_below_target_not_completed(self):
        habit = make_habit(target=3, progress={TODAY: 2})
        metrics = recalculate(habit, TZ, at_noon(TODAY))
        assert metrics.streak == 0
        assert metrics.xp == 0

    def test_at_target_completed(self):
        habit = make_habit(target=3, progress={TODAY: 3})
        metrics = recalculate(habit, TZ, at_noon(TODAY))
        assert metrics.streak == 1
        assert metrics.xp == 10

    def test_excess_bonus(self):
        habit = make_habit(target=3, progress={TODAY: 4})
        assert recalculate(habit, TZ, at_noon(TODAY)).xp == 11

    def test_completed_day_wins_over_freeze(self):
        habit = make_habit(progress={TODAY: 1}, freezes=[TODAY])
        metrics = recalculate(habit, TZ, at_noon(TODAY))
        assert metrics.streak == 1
        assert metrics.xp == 10


class TestLongestStreak:
    def test_scans_full_history(self):
        old_run = {days_ago(20 + i): 1 for i in range(5)}
        habit = make_habit(progress={**old_run, TODAY: 1})
        metrics = recalculate(habit, TZ, at_noon(TODAY))
        assert metrics.streak == 1
        assert metrics.longest_streak == 5

    def test_bridged_by_freeze(self):
        habit = make_habit(
            progress={days_ago(12): 1, days_ago(10): 1},
            freezes=[days_ago(11), days_ago(13)],
        )
        # the 13-days-ago freeze leads the run and does not count
        assert recalculate(habit, TZ, at_noon(TODAY)).longest_streak == 3

    def test_trailing_freeze_not_counted(self):
        habit = make_habit(progress={days_ago(12): 1, days_ago(11): 1}, freezes=[days_ago(10)])
        assert recalculate(habit, TZ, at_noon(TODAY)).longest_streak == 2

    def test_prior_value_is_a_floor(self):
        habit = make_habit(progress={TODAY: 1}, longest_streak=40)
        assert recalculate(habit, TZ, at_noon(TODAY)).longest_streak == 40

    def test_never_below_streak(self):
        habit = make_habit(progress={days_ago(i): 1 for i in range(4)})
        metrics = recalculate(habit, TZ, at_noon(TODAY))
        assert metrics.longest_streak >= metrics.streak == 4


class TestWeekly:
    def test_same_week_entries_complete_the_week(self):
        monday = date(2024, 3, 4)
        habit = make_habit("weekly", target=5, progress={monday: 2, monday + timedelta(days=2): 3})
        metrics = recalculate(habit, TZ, at_noon(TODAY))
        assert metrics.streak == 1
        assert metrics.xp == 10

    def test_still_counted_the_following_week(self):
        monday = date(2024, 3, 4)
        habit = make_habit("weekly", target=5, progress={monday: 2, monday + timedelta(days=2): 3})
        assert recalculate(habit, TZ, at_noon(date(2024, 3, 15))).streak == 1

    def test_broken_two_weeks_later(self):
        monday = date(2024, 3, 4)
        habit = make_habit("weekly", target=5, progress={monday: 5})
        assert recalculate(habit, TZ, at_noon(date(2024, 3, 19))).streak == 0

    def test_split_across_weeks_completes_neither(self):
        habit = make_habit("weekly", target=3, progress={date(2024, 3, 3): 2, date(2024, 3, 4): 1})
        metrics = recalculate(habit, TZ, at_noon(TODAY))
        assert metrics.streak == 0
        assert metrics.xp == 0

    def test_consecutive_weeks(self):
        habit = make_habit("weekly", target=1, progress={
            date(2024, 2, 20): 1, date(2024, 2, 26): 1, date(2024, 3, 5): 2,
        })
        metrics = recalculate(habit, TZ, at_noon(TODAY))
        assert metrics.streak == 3
        assert metrics.xp == 31

    def test_freezes_ignored(self):
        habit = make_habit("weekly", target=1, progress={date(2024, 2, 26): 1}, freezes=[date(2024, 2, 20)])
        assert recalculate(habit, TZ, at_noon(TODAY)).longest_streak == 1

    def test_period_key_is_monday(self):
        assert period_of(date(2024, 3, 10), "weekly") == date(2024, 3, 4)
        assert period_of(date(2024, 3, 10), "daily") == date(2024, 3, 10)


class TestTimezone:
    def test_evaluation_instant_normalized(self):
        habit = make_habit(progress={days_ago(1): 1, TODAY: 1})
        # 20:00 UTC on the 5th is already the 6th in Kolkata
        late_utc = datetime(2024, 3, 5, 20, 0, tzinfo=ZoneInfo("UTC"))
        assert recalculate(habit, TZ, late_utc).streak == 2

    def test_naive_datetime_treated_as_utc(self):
        habit = make_habit(progress={days_ago(1): 1, TODAY: 1})
        assert recalculate(habit, TZ, datetime(2024, 3, 5, 20, 0)).streak == 2

    def test_same_instant_in_other_zone(self):
        habit = make_habit(progress={days_ago(1): 1, TODAY: 1})
        late_utc = datetime(2024, 3, 5, 20, 0, tzinfo=ZoneInfo("UTC"))
        # still the 5th in New York, and the 5th is done
        assert recalculate(habit, ZoneInfo("America/New_York"), late_utc).streak == 1


def test_idempotent():
    habit = make_habit(target=2, progress={days_ago(3): 2, days_ago(1): 3, TODAY: 1}, freezes=[days_ago(2)])
    first = recalculate(habit, TZ, at_noon(TODAY))
    second = recalculate(habit, TZ, at_noon(TODAY))
    assert first == second
    assert habit.streak == 0  # input untouched


def test_progress_percent():
    habit = make_habit(target=4, progress={TODAY: 1})
    assert progress_percent(habit, TZ, at_noon(TODAY)) == 25.0
    habit = make_habit(target=4, progress={TODAY: 9})
    assert progress_percent(habit, TZ, at_noon(TODAY)) == 100.0


def test_freeze_never_worth_more_than_the_work():
    """
    Over every pattern of completed days in the last week, freezing any other
    day never beats logging it, and a freeze that is not sandwiched between
    two completed days adds nothing of its own: it can only keep an older
    run alive, never lengthen it.
    """
    window = [days_ago(n) for n in range(6, -1, -1)]
    for pattern in product([False, True], repeat=len(window)):
        done = {day for day, is_done in zip(window, pattern) if is_done}
        habit = make_habit(progress={day: 1 for day in done})
        before = recalculate(habit, TZ, at_noon(TODAY))

        for day in window:
            if day in done:
                continue
            frozen = add_freeze(habit, day, TZ, at_noon(TODAY))
            worked = recalculate(make_habit(progress={d: 1 for d in done | {day}}), TZ, at_noon(TODAY))
            case = (sorted(done), day)

            assert frozen.streak <= worked.streak, case
            assert frozen.longest_streak <= worked.longest_streak, case

            bridging = day - timedelta(days=1) in done and day + timedelta(days=1) in done
            if not bridging and frozen.streak != before.streak:
                assert frozen.streak < worked.streak, case
