"""
Streak tracking: pure functions, no storage access.

Dates are calendar dates (datetime.date); stepping back a day is calendar
subtraction, so month and year boundaries need no special handling.
"""
from datetime import date, timedelta
from typing import Iterable, Optional

from ..models import CompletionRecord

HOT_STREAK_DAYS = 7


def today() -> date:
    """Current calendar date in the local timezone of this process."""
    return date.today()


_today = today


def previous_day(day: date) -> date:
    return day - timedelta(days=1)


def completed_dates(habit_id: str, completions: Iterable[CompletionRecord]) -> set[date]:
    return {c.date for c in completions if c.habit_id == habit_id}


def is_completed_on_date(habit_id: str, day: date, completions: Iterable[CompletionRecord]) -> bool:
    return any(c.habit_id == habit_id and c.date == day for c in completions)


def calculate_streak(
    habit_id: str,
    completions: Iterable[CompletionRecord],
    today: Optional[date] = None,
) -> int:
    """
    Consecutive completed days ending today, or ending yesterday when today
    is not done yet. A single missed day ends the count.
    """
    done = completed_dates(habit_id, completions)
    if not done:
        return 0

    cursor = today if today is not None else _today()
    if cursor not in done:
        cursor = previous_day(cursor)

    streak = 0
    while cursor in done:
        streak += 1
        cursor = previous_day(cursor)
    return streak


def is_hot_streak(streak: int) -> bool:
    return streak >= HOT_STREAK_DAYS


def streak_label(streak: int) -> str:
    """'1 day', '5 days', or '' when there is no streak."""
    if streak <= 0:
        return ""
    return f"{streak} day{'' if streak == 1 else 's'}"
