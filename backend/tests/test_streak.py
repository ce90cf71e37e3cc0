from datetime import date, timedelta
from habit_tracker.engine.streak import (
    calculate_streak, is_completed_on_date, completed_dates,
    previous_day, is_hot_streak, streak_label, HOT_STREAK_DAYS,
)
from habit_tracker.models import CompletionRecord

TODAY = date(2026, 2, 27)
YESTERDAY = TODAY - timedelta(days=1)
TWO_DAYS_AGO = TODAY - timedelta(days=2)
THREE_DAYS_AGO = TODAY - timedelta(days=3)


def done(*days, habit_id="h1"):
    return [CompletionRecord(habit_id=habit_id, date=d) for d in days]


class TestPreviousDay:
    def test_month_boundary(self):
        assert previous_day(date(2026, 2, 1)) == date(2026, 1, 31)

    def test_year_boundary(self):
        assert previous_day(date(2026, 1, 1)) == date(2025, 12, 31)

    def test_leap_day(self):
        assert previous_day(date(2024, 3, 1)) == date(2024, 2, 29)
        assert previous_day(date(2025, 3, 1)) == date(2025, 2, 28)


class TestCalculateStreak:
    def test_no_completions_is_zero(self):
        assert calculate_streak("h1", [], today=TODAY) == 0

    def test_today_only_is_one(self):
        assert calculate_streak("h1", done(TODAY), today=TODAY) == 1

    def test_three_consecutive_days_ending_today(self):
        assert calculate_streak("h1", done(TODAY, YESTERDAY, TWO_DAYS_AGO), today=TODAY) == 3

    def test_today_missing_counts_from_yesterday(self):
        assert calculate_streak("h1", done(YESTERDAY, TWO_DAYS_AGO), today=TODAY) == 2

    def test_yesterday_only_keeps_streak_alive(self):
        assert calculate_streak("h1", done(YESTERDAY), today=TODAY) == 1

    def test_gap_yesterday_stops_at_today(self):
        assert calculate_streak("h1", done(TODAY, TWO_DAYS_AGO), today=TODAY) == 1

    def test_gap_before_yesterday_is_zero(self):
        assert calculate_streak("h1", done(THREE_DAYS_AGO), today=TODAY) == 0

    def test_older_run_ignored_after_missed_days(self):
        old_run = [TODAY - timedelta(days=n) for n in range(5, 15)]
        assert calculate_streak("h1", done(*old_run), today=TODAY) == 0

    def test_month_boundary_counts_as_consecutive(self):
        feb_1 = date(2026, 2, 1)
        assert calculate_streak("h1", done(date(2026, 1, 31), feb_1), today=feb_1) == 2

    def test_year_boundary_counts_as_consecutive(self):
        jan_1 = date(2027, 1, 1)
        days = [date(2026, 12, 30), date(2026, 12, 31), jan_1]
        assert calculate_streak("h1", done(*days), today=jan_1) == 3

    def test_other_habits_do_not_count(self):
        completions = done(TODAY, YESTERDAY, habit_id="other") + done(TWO_DAYS_AGO)
        assert calculate_streak("h1", completions, today=TODAY) == 0

    def test_order_of_records_is_irrelevant(self):
        completions = done(TWO_DAYS_AGO, TODAY, YESTERDAY)
        assert calculate_streak("h1", completions, today=TODAY) == 3

    def test_long_streak(self):
        days = [TODAY - timedelta(days=n) for n in range(40)]
        assert calculate_streak("h1", done(*days), today=TODAY) == 40

    def test_defaults_to_real_today(self):
        real_today = date.today()
        assert calculate_streak("h1", done(real_today)) == 1

    def test_default_goes_through_module_clock(self, monkeypatch):
        import habit_tracker.engine.streak as streak_module
        monkeypatch.setattr(streak_module, "_today", lambda: YESTERDAY)
        assert calculate_streak("h1", done(YESTERDAY, TWO_DAYS_AGO)) == 2
        assert calculate_streak("h1", done(TODAY)) == 0


class TestIsCompletedOnDate:
    def test_matching_record(self):
        assert is_completed_on_date("h1", TODAY, done(TODAY))

    def test_other_date(self):
        assert not is_completed_on_date("h1", YESTERDAY, done(TODAY))

    def test_other_habit(self):
        assert not is_completed_on_date("h2", TODAY, done(TODAY))

    def test_empty(self):
        assert not is_completed_on_date("h1", TODAY, [])

    def test_completed_dates_collects_per_habit(self):
        completions = done(TODAY, YESTERDAY) + done(TWO_DAYS_AGO, habit_id="h2")
        assert completed_dates("h1", completions) == {TODAY, YESTERDAY}


class TestStreakPresentation:
    def test_hot_threshold(self):
        assert not is_hot_streak(HOT_STREAK_DAYS - 1)
        assert is_hot_streak(HOT_STREAK_DAYS)

    def test_labels(self):
        assert streak_label(0) == ""
        assert streak_label(1) == "1 day"
        assert streak_label(12) == "12 days"
