import os
import logging
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Optional, Protocol

from pydantic import ValidationError
from supabase import create_client, Client

from .models import AppState

logger = logging.getLogger(__name__)

STORAGE_KEY = "habit-tracker-data"
DEFAULT_DATA_DIR = "~/.habit-tracker"


class StorageBackend(Protocol):
    name: str

    def read(self, key: str) -> Optional[str]: ...

    def write(self, key: str, text: str) -> None: ...


class FileBackend:
    """One JSON file per key inside a directory."""

    name = "file"

    def __init__(self, directory: str | Path):
        self.directory = Path(directory).expanduser()

    def path_for(self, key: str) -> Path:
        return self.directory / f"{key}.json"

    def read(self, key: str) -> Optional[str]:
        path = self.path_for(key)
        if not path.exists():
            return None
        return path.read_text(encoding="utf-8")

    def write(self, key: str, text: str) -> None:
        self.directory.mkdir(parents=True, exist_ok=True)
        path = self.path_for(key)
        tmp = path.with_suffix(".json.tmp")
        tmp.write_text(text, encoding="utf-8")
        os.replace(tmp, path)


class SupabaseBackend:
    """Key/value rows in a table with `key` (primary key) and `data` (text) columns."""

    name = "supabase"

    def __init__(self, client: Client, table: str = "app_state"):
        self.client = client
        self.table = table

    def read(self, key: str) -> Optional[str]:
        res = self.client.table(self.table).select("data").eq("key", key).execute()
        return res.data[0]["data"] if res.data else None

    def write(self, key: str, text: str) -> None:
        self.client.table(self.table).upsert({"key": key, "data": text}).execute()


class LoadError(Exception):
    def __init__(self, key: str, reason: str):
        super().__init__(f"could not load {key!r}: {reason}")
        self.key = key
        self.reason = reason


@dataclass
class LoadResult:
    state: Optional[AppState] = None
    error: Optional[LoadError] = None

    @property
    def ok(self) -> bool:
        return self.error is None


class StatePersistence:
    def __init__(self, backend: StorageBackend, key: str = STORAGE_KEY):
        self.backend = backend
        self.key = key

    def try_load(self) -> LoadResult:
        try:
            raw = self.backend.read(self.key)
        except Exception as e:
            return LoadResult(error=LoadError(self.key, f"read failed: {e}"))

        if raw is None:
            return LoadResult(state=AppState())
        try:
            return LoadResult(state=AppState.model_validate_json(raw))
        except ValidationError as e:
            return LoadResult(error=LoadError(self.key, f"invalid data: {e.error_count()} errors"))

    def load(self) -> AppState:
        """Stored state, or an empty state if nothing usable is stored."""
        result = self.try_load()
        if not result.ok:
            logger.error("Failed to load state from %s: %s", self.backend.name, result.error)
            return AppState()
        return result.state

    def save(self, state: AppState) -> bool:
        try:
            self.backend.write(self.key, state.to_json())
            return True
        except Exception as e:
            logger.error("Failed to save state to %s key=%s: %s", self.backend.name, self.key, e)
            return False


@lru_cache(maxsize=1)
def get_client() -> Client:
    url = os.environ["SUPABASE_URL"]
    key = os.environ["SUPABASE_SERVICE_KEY"]
    return create_client(url, key)


def make_backend(kind: str) -> StorageBackend:
    if kind == "supabase":
        return SupabaseBackend(get_client())
    if kind == "file":
        return FileBackend(os.environ.get("HABITS_DATA_DIR", DEFAULT_DATA_DIR))
    raise ValueError(f"unknown storage backend: {kind!r}")


@lru_cache(maxsize=1)
def get_persistence() -> StatePersistence:
    backend = make_backend(os.environ.get("HABITS_STORAGE", "file"))
    key = os.environ.get("HABITS_STORAGE_KEY", STORAGE_KEY)
    logger.info("Using %s storage, key=%s", backend.name, key)
    return StatePersistence(backend, key)
