"""Durable storage for the player's hunt progress."""

from __future__ import annotations

import json
import logging
import os
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional, Protocol

from typing_extensions import Final

LOGGER = logging.getLogger(__name__)

PROGRESS_KEY: Final[str] = "haunted_hunt_v2"


@dataclass(frozen=True)
class Progress:
    """Pointer to the current step plus the one-way narration consent flag."""

    step_index: int = 0
    narration_unlocked: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "stepIndex": self.step_index,
            "narrationUnlocked": self.narration_unlocked,
        }

    @classmethod
    def from_dict(cls, payload: Any) -> "Progress":
        """Rebuild progress from a stored record, raising ValueError when malformed."""
        if not isinstance(payload, dict):
            raise ValueError("Progress record must be a JSON object.")
        step_index = payload.get("stepIndex", 0)
        unlocked = payload.get("narrationUnlocked", False)
        if isinstance(step_index, bool) or not isinstance(step_index, int):
            raise ValueError(f"stepIndex must be an integer, got {step_index!r}.")
        if step_index < 0:
            raise ValueError(f"stepIndex must not be negative, got {step_index}.")
        if not isinstance(unlocked, bool):
            raise ValueError(f"narrationUnlocked must be a boolean, got {unlocked!r}.")
        return cls(step_index=step_index, narration_unlocked=unlocked)


class ProgressBackend(Protocol):
    """Namespaced string key-value slot."""

    def read(self, key: str) -> Optional[str]:
        ...

    def write(self, key: str, value: str) -> None:
        ...


class MemoryBackend:
    """Keep records in process memory only."""

    def __init__(self, initial: Optional[dict[str, str]] = None) -> None:
        self.values: dict[str, str] = dict(initial or {})

    def read(self, key: str) -> Optional[str]:
        return self.values.get(key)

    def write(self, key: str, value: str) -> None:
        self.values[key] = value


class JsonFileBackend:
    """Store string records inside a single JSON object on disk."""

    def __init__(self, path: Path) -> None:
        self.path = path

    def read(self, key: str) -> Optional[str]:
        if not self.path.exists():
            return None
        with self.path.open("r", encoding="utf-8") as handle:
            data = json.load(handle)
        if not isinstance(data, dict):
            raise ValueError(f"{self.path} must contain a JSON object.")
        value = data.get(key)
        return value if isinstance(value, str) else None

    def write(self, key: str, value: str) -> None:
        data: dict[str, Any] = {}
        if self.path.exists():
            try:
                with self.path.open("r", encoding="utf-8") as handle:
                    existing = json.load(handle)
                if isinstance(existing, dict):
                    data = existing
            except (OSError, ValueError, RecursionError) as exc:
                LOGGER.warning("Discarding unreadable progress file %s: %s", self.path, exc)
        data[key] = value
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, temp_name = tempfile.mkstemp(
            prefix=".progress_", suffix=".json", dir=str(self.path.parent)
        )
        temp_path = Path(temp_name)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                json.dump(data, handle, sort_keys=True)
            os.replace(temp_path, self.path)
        except BaseException:
            temp_path.unlink(missing_ok=True)
            raise


class ProgressStore:
    """Load and save :class:`Progress` under a fixed key, never failing the caller."""

    def __init__(self, backend: ProgressBackend, key: str = PROGRESS_KEY) -> None:
        self.backend = backend
        self.key = key

    def load(self) -> Progress:
        """Return the stored progress, or defaults when absent or malformed."""
        try:
            raw = self.backend.read(self.key)
        except (OSError, ValueError, RecursionError) as exc:
            LOGGER.warning("Progress storage unreadable; starting fresh: %s", exc)
            return Progress()
        if raw is None:
            return Progress()
        try:
            return Progress.from_dict(json.loads(raw))
        except (ValueError, RecursionError) as exc:
            LOGGER.warning("Ignoring malformed progress record: %s", exc)
            return Progress()

    def save(self, progress: Progress) -> None:
        """Persist a complete snapshot; failures are logged and dropped."""
        try:
            self.backend.write(self.key, json.dumps(progress.to_dict()))
        except (OSError, ValueError, TypeError) as exc:
            LOGGER.warning("Unable to persist progress (%s); continuing in memory.", exc)
            return
        LOGGER.debug("Progress saved: %s", progress)


def open_progress_store(path: Path | None = None) -> ProgressStore:
    """Return a file-backed store, or an in-memory one when no usable path exists."""
    if path is None:
        LOGGER.info("No progress path configured; progress kept in memory.")
        return ProgressStore(MemoryBackend())
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        LOGGER.warning("Progress directory %s unavailable (%s); using memory.", path.parent, exc)
        return ProgressStore(MemoryBackend())
    return ProgressStore(JsonFileBackend(path))


__all__ = [
    "JsonFileBackend",
    "MemoryBackend",
    "PROGRESS_KEY",
    "Progress",
    "ProgressBackend",
    "ProgressStore",
    "open_progress_store",
]
