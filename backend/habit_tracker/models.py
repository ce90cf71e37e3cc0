import logging
from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator

logger = logging.getLogger(__name__)

HABIT_NAME_MAX_LENGTH = 50

EMPTY_NAME_MESSAGE = "Please enter a habit name"
LONG_NAME_MESSAGE = f"Habit name must be {HABIT_NAME_MAX_LENGTH} characters or less"


def habit_name_error(name: Optional[str]) -> Optional[str]:
    """User-facing validation message for a habit name, or None if it is fine."""
    trimmed = (name or "").strip()
    if not trimmed:
        return EMPTY_NAME_MESSAGE
    if len(trimmed) > HABIT_NAME_MAX_LENGTH:
        return LONG_NAME_MESSAGE
    return None


def clean_habit_name(name: Optional[str]) -> Optional[str]:
    """Trimmed name, or None when the name would be rejected."""
    if habit_name_error(name):
        return None
    return name.strip()


class Habit(BaseModel):
    id: str = Field(min_length=1)
    name: str = Field(min_length=1, max_length=HABIT_NAME_MAX_LENGTH)
    created_at: datetime = Field(alias="createdAt")
    model_config = ConfigDict(populate_by_name=True, frozen=True)


class CompletionRecord(BaseModel):
    habit_id: str = Field(alias="habitId")
    date: date
    model_config = ConfigDict(populate_by_name=True, frozen=True)


class AppState(BaseModel):
    """Immutable snapshot; the store replaces it whole on every change."""

    habits: tuple[Habit, ...] = ()
    completions: tuple[CompletionRecord, ...] = ()
    model_config = ConfigDict(frozen=True)

    @field_validator("habits")
    @classmethod
    def validate_habit_ids(cls, v):
        ids = [h.id for h in v]
        if len(ids) != len(set(ids)):
            raise ValueError("duplicate habit ids")
        return v

    @field_validator("completions")
    @classmethod
    def drop_invalid_completions(cls, v, info: ValidationInfo):
        known = {h.id for h in info.data.get("habits", ())}
        seen: set[CompletionRecord] = set()
        kept: list[CompletionRecord] = []
        for record in v:
            if record.habit_id not in known or record in seen:
                continue
            seen.add(record)
            kept.append(record)

        if len(kept) != len(v):
            # Dangling or duplicate records only come from hand-edited or foreign data.
            logger.warning("Dropped %d invalid completion records", len(v) - len(kept))
        return tuple(kept)

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True)


class HabitCreate(BaseModel):
    name: str

    @field_validator("name")
    @classmethod
    def validate_name(cls, v):
        error = habit_name_error(v)
        if error:
            raise ValueError(error)
        return v.strip()


class HabitRename(HabitCreate):
    pass
