"""
Single-writer owner of the app state. All mutation goes through the four
operations below; each one swaps in a whole new AppState.
"""
import logging
import secrets
import string
import threading
import time
from datetime import date, datetime, timezone
from typing import Callable, Optional

from ..models import AppState, CompletionRecord, Habit, clean_habit_name
from .streak import calculate_streak, is_completed_on_date, today as local_today

logger = logging.getLogger(__name__)

Listener = Callable[[AppState], None]

_ID_ALPHABET = string.digits + string.ascii_lowercase


def generate_habit_id() -> str:
    """Millisecond timestamp plus 9 random base-36 characters."""
    suffix = "".join(secrets.choice(_ID_ALPHABET) for _ in range(9))
    return f"{int(time.time() * 1000)}-{suffix}"


class HabitStore:
    def __init__(self, state: Optional[AppState] = None, *, clock: Callable[[], date] = local_today):
        self._state = state if state is not None else AppState()
        self._clock = clock
        self._lock = threading.RLock()
        self._listeners: list[Listener] = []

    # ── Reads ────────────────────────────────────────────────────────────────

    @property
    def state(self) -> AppState:
        return self._state

    @property
    def habits(self) -> list[Habit]:
        return list(self._state.habits)

    @property
    def completions(self) -> list[CompletionRecord]:
        return list(self._state.completions)

    def today(self) -> date:
        return self._clock()

    def get_habit(self, habit_id: str) -> Optional[Habit]:
        return next((h for h in self._state.habits if h.id == habit_id), None)

    def is_completed_today(self, habit_id: str) -> bool:
        return is_completed_on_date(habit_id, self.today(), self._state.completions)

    def streak(self, habit_id: str) -> int:
        return calculate_streak(habit_id, self._state.completions, today=self.today())

    # ── Observers ────────────────────────────────────────────────────────────

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Call listener with the new state after every change. Returns an unsubscribe."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _commit(self, new_state: AppState) -> None:
        self._state = new_state
        for listener in list(self._listeners):
            listener(new_state)

    # ── Mutations ────────────────────────────────────────────────────────────

    def add_habit(self, name: str) -> Optional[Habit]:
        trimmed = clean_habit_name(name)
        if trimmed is None:
            logger.debug("Rejected habit name %r", name)
            return None

        with self._lock:
            existing = {h.id for h in self._state.habits}
            habit_id = generate_habit_id()
            while habit_id in existing:
                habit_id = generate_habit_id()
            habit = Habit(id=habit_id, name=trimmed, created_at=datetime.now(timezone.utc))
            self._commit(self._state.model_copy(update={"habits": (*self._state.habits, habit)}))

        logger.info("Habit added: %s (%s)", habit.id, habit.name)
        return habit

    def update_habit(self, habit_id: str, new_name: str) -> Optional[Habit]:
        trimmed = clean_habit_name(new_name)
        if trimmed is None:
            logger.debug("Rejected habit name %r for %s", new_name, habit_id)
            return None

        with self._lock:
            current = self.get_habit(habit_id)
            if current is None:
                return None
            if current.name == trimmed:
                return current
            updated = current.model_copy(update={"name": trimmed})
            habits = tuple(updated if h.id == habit_id else h for h in self._state.habits)
            self._commit(self._state.model_copy(update={"habits": habits}))

        logger.info("Habit renamed: %s -> %s", habit_id, trimmed)
        return updated

    def delete_habit(self, habit_id: str) -> bool:
        with self._lock:
            if self.get_habit(habit_id) is None:
                return False
            # Both removals land in one state swap.
            self._commit(AppState(
                habits=[h for h in self._state.habits if h.id != habit_id],
                completions=[c for c in self._state.completions if c.habit_id != habit_id],
            ))

        logger.info("Habit deleted: %s", habit_id)
        return True

    def toggle_completion(self, habit_id: str) -> Optional[bool]:
        """Flip today's completion. Returns the new status, or None for an unknown habit."""
        with self._lock:
            if self.get_habit(habit_id) is None:
                return None

            record = CompletionRecord(habit_id=habit_id, date=self.today())
            if record in self._state.completions:
                completions = tuple(c for c in self._state.completions if c != record)
                completed = False
            else:
                completions = (*self._state.completions, record)
                completed = True
            self._commit(self._state.model_copy(update={"completions": completions}))

        logger.info("Habit %s %s for %s", habit_id,
                    "completed" if completed else "unchecked", record.date.isoformat())
        return completed
