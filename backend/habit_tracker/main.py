"""
Habit Tracker: FastAPI presentation layer over the habit store.
"""
import logging
import os
from dataclasses import asdict
from datetime import date
from functools import lru_cache

from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address

from .db import get_persistence
from .engine.progress import daily_progress
from .engine.store import HabitStore
from .engine.streak import calculate_streak, is_completed_on_date, is_hot_streak, streak_label
from .models import AppState, Habit, HabitCreate, HabitRename

logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")
logger = logging.getLogger(__name__)

limiter = Limiter(key_func=get_remote_address)
app = FastAPI(title="Habit Tracker API")
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

ALLOWED_ORIGINS = [
    o.strip()
    for o in os.environ.get("HABITS_ALLOWED_ORIGINS", "http://localhost:3000,http://localhost:5173").split(",")
    if o.strip()
]
app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_methods=["GET", "POST", "PATCH", "DELETE"],
    allow_headers=["Content-Type"],
)


@lru_cache(maxsize=1)
def get_store() -> HabitStore:
    persistence = get_persistence()
    result = persistence.try_load()
    if not result.ok:
        # Saving now would overwrite whatever the backend failed to return.
        logger.error("Failed to load state, changes will not be saved until restart: %s", result.error)
        return HabitStore()
    store = HabitStore(result.state)
    store.subscribe(persistence.save)
    return store


@app.get("/health")
def health():
    result = get_persistence().try_load()
    if not result.ok:
        logger.error("Health check storage failure: %s", result.error)
        raise HTTPException(status_code=503, detail="Storage unavailable")
    return {"status": "ok", "storage": "ok"}


# ── Habits ────────────────────────────────────────────────────────────────────

@app.get("/api/habits")
def list_habits():
    store = get_store()
    state, today = store.state, store.today()
    return {
        "date": today.isoformat(),
        "habits": [_habit_view(h, state, today) for h in state.habits],
    }


@app.get("/api/habits/{habit_id}")
def get_habit(habit_id: str):
    store = get_store()
    habit = store.get_habit(habit_id)
    if not habit:
        raise HTTPException(status_code=404, detail="Habit not found")
    return _habit_view(habit, store.state, store.today())


@app.post("/api/habits", status_code=201)
@limiter.limit("60/minute")
def add_habit(request: Request, body: HabitCreate):
    store = get_store()
    habit = store.add_habit(body.name)
    if not habit:
        raise HTTPException(status_code=422, detail="Invalid habit name")
    return {"status": "created", "habit": _habit_view(habit, store.state, store.today())}


@app.patch("/api/habits/{habit_id}")
@limiter.limit("60/minute")
def rename_habit(request: Request, habit_id: str, body: HabitRename):
    store = get_store()
    habit = store.update_habit(habit_id, body.name)
    if not habit:
        return {"status": "noop"}
    return {"status": "updated", "habit": _habit_view(habit, store.state, store.today())}


@app.delete("/api/habits/{habit_id}")
@limiter.limit("60/minute")
def delete_habit(request: Request, habit_id: str):
    store = get_store()
    if not store.delete_habit(habit_id):
        return {"status": "noop"}
    return {"status": "deleted"}


@app.post("/api/habits/{habit_id}/toggle")
@limiter.limit("120/minute")
def toggle_habit(request: Request, habit_id: str):
    store = get_store()
    if store.toggle_completion(habit_id) is None:
        return {"status": "noop"}
    # A delete may land between the toggle and this read.
    state = store.state
    habit = next((h for h in state.habits if h.id == habit_id), None)
    if habit is None:
        return {"status": "noop"}
    return {"status": "ok", **_habit_view(habit, state, store.today())}


# ── Dashboard ─────────────────────────────────────────────────────────────────

@app.get("/api/dashboard")
def get_dashboard():
    store = get_store()
    state = store.state
    progress = daily_progress(state.habits, state.completions, store.today())
    return {**asdict(progress), "date": progress.date.isoformat()}


# ── Helpers ───────────────────────────────────────────────────────────────────

def _habit_view(habit: Habit, state: AppState, today: date) -> dict:
    streak = calculate_streak(habit.id, state.completions, today=today)
    return {
        "id": habit.id,
        "name": habit.name,
        "created_at": habit.created_at.isoformat(),
        "completed_today": is_completed_on_date(habit.id, today, state.completions),
        "streak": streak,
        "streak_label": streak_label(streak),
        "hot": is_hot_streak(streak),
    }
