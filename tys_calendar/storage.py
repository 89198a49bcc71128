"""
Persistent snapshot storage for the calendar engine.

The calendar's durable state is one named snapshot holding exactly
{"events": [...], "userPreferences": {...}}. Backends load it once at
start-up and overwrite it after every store mutation.
"""

import json
import os
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional

from .debug import debug_print
from .models import CalendarEvent, UserPreferences


SNAPSHOT_NAME = "calendar-storage"


class PersistenceError(RuntimeError):
    """Raised when the snapshot cannot be read or written."""


class Snapshot:
    """
    The persisted part of the calendar state.

    View mode, selected date and in-progress edits are transient and
    never part of a snapshot.
    """
    def __init__(self, events: list[CalendarEvent], preferences: Optional[UserPreferences] = None):
        self.events = events
        self.preferences = preferences

    def to_dict(self) -> dict:
        return {
            "events": [e.to_dict() for e in self.events],
            "userPreferences": self.preferences.to_dict() if self.preferences else None,
        }

    @classmethod
    def from_dict(cls, data: dict, defaults: Optional[UserPreferences] = None) -> 'Snapshot':
        # Browser persistence wraps the snapshot as {"state": {...}, "version": N}
        if "state" in data and isinstance(data["state"], dict):
            data = data["state"]

        prefs_data = data.get("userPreferences")
        preferences = None
        if prefs_data:
            preferences = UserPreferences.from_dict(prefs_data, defaults)

        return cls(
            events=[CalendarEvent.from_dict(e) for e in data.get("events", [])],
            preferences=preferences,
        )


class SnapshotStorageBackend(ABC):
    """
    Abstract base class for snapshot storage backends.

    Implementations must raise PersistenceError on failure; the store
    lets it propagate to the caller.
    """

    @abstractmethod
    def load(self, defaults: Optional[UserPreferences] = None) -> Optional[Snapshot]:
        """Load the snapshot, or None if nothing has been stored yet."""
        pass

    @abstractmethod
    def save(self, snapshot: Snapshot) -> None:
        """Replace the stored snapshot."""
        pass


class MemorySnapshotStorage(SnapshotStorageBackend):
    """
    Snapshot storage held in memory as serialised JSON text.

    Round-trips through JSON so that it behaves like the file backend.
    """

    def __init__(self, initial: Optional[dict] = None):
        self._text: Optional[str] = json.dumps(initial) if initial is not None else None
        self.save_count = 0

    def load(self, defaults: Optional[UserPreferences] = None) -> Optional[Snapshot]:
        if self._text is None:
            return None
        return Snapshot.from_dict(json.loads(self._text), defaults)

    def save(self, snapshot: Snapshot) -> None:
        self._text = json.dumps(snapshot.to_dict())
        self.save_count += 1

    @property
    def data(self) -> Optional[dict]:
        """The stored snapshot as a plain dict."""
        return json.loads(self._text) if self._text is not None else None


class JsonSnapshotStorage(SnapshotStorageBackend):
    """
    JSON file-based snapshot storage.

    The whole snapshot is rewritten on every save via a temporary file
    that replaces the target, so a crash never leaves half a document.
    """

    def __init__(self, path: Path):
        self.path = Path(path)
        debug_print("STORAGE", f"Using snapshot file {self.path}")

    def load(self, defaults: Optional[UserPreferences] = None) -> Optional[Snapshot]:
        if not self.path.exists():
            debug_print("STORAGE", f"No snapshot at {self.path}")
            return None

        try:
            with open(self.path, 'r', encoding='utf-8') as f:
                data = json.load(f)
            snapshot = Snapshot.from_dict(data, defaults)
        except OSError as e:
            raise PersistenceError(f"Cannot read snapshot {self.path}: {e}") from e
        except (ValueError, KeyError, TypeError) as e:
            raise PersistenceError(f"Corrupt snapshot {self.path}: {e}") from e

        debug_print("STORAGE", f"Loaded {len(snapshot.events)} events from {self.path}")
        return snapshot

    def save(self, snapshot: Snapshot) -> None:
        tmp_path = self.path.with_name(self.path.name + ".tmp")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(tmp_path, 'w', encoding='utf-8') as f:
                json.dump(snapshot.to_dict(), f, indent=2, ensure_ascii=False)
            os.replace(tmp_path, self.path)
        except OSError as e:
            raise PersistenceError(f"Cannot write snapshot {self.path}: {e}") from e
        debug_print("STORAGE", f"Saved {len(snapshot.events)} events")


def get_default_state_path() -> Path:
    """Get the default snapshot path respecting XDG."""
    xdg_state = os.environ.get('XDG_STATE_HOME', os.path.expanduser('~/.local/state'))
    return Path(xdg_state) / 'trackyoustudy' / f'{SNAPSHOT_NAME}.json'


def create_storage_backend(path: Optional[Path] = None) -> SnapshotStorageBackend:
    """Factory function to create a storage backend."""
    if path is None:
        path = get_default_state_path()
    return JsonSnapshotStorage(path)
