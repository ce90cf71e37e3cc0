"""
Daily progress summary shown above the habit list.
"""
import math
from dataclasses import dataclass
from datetime import date
from typing import Iterable

from ..models import CompletionRecord, Habit
from .streak import is_completed_on_date


@dataclass
class DailyProgress:
    date: date
    completed: int
    total: int
    percent: int        # rounded half-up, 0 when there are no habits


def daily_progress(habits: Iterable[Habit], completions: Iterable[CompletionRecord], day: date) -> DailyProgress:
    habits = list(habits)
    completions = list(completions)
    completed = sum(1 for h in habits if is_completed_on_date(h.id, day, completions))
    total = len(habits)
    percent = int(math.floor(completed * 100 / total + 0.5)) if total else 0
    return DailyProgress(date=day, completed=completed, total=total, percent=percent)
