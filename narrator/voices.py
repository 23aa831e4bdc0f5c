"""Voice discovery and selection for pre-rendered narration packs."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Pattern, Sequence

import yaml  # type: ignore[import]

LOGGER = logging.getLogger(__name__)

PREFERRED_VOICE_HINTS: tuple[Pattern[str], ...] = tuple(
    re.compile(pattern, re.IGNORECASE)
    for pattern in (r"santa", r"daniel", r"alex", r"fred", r"en-us", r"english")
)


@dataclass(frozen=True)
class Voice:
    """A voice directory inside a narration pack."""

    name: str
    lang: str
    path: Path


def pick_voice(
    voices: Sequence[Voice],
    hints: Sequence[Pattern[str]] = PREFERRED_VOICE_HINTS,
) -> Optional[Voice]:
    """Return the first voice matching the highest-priority hint, else the first voice."""
    for hint in hints:
        for voice in voices:
            if hint.search(f"{voice.name} {voice.lang}"):
                return voice
    return voices[0] if voices else None


def discover_voices(pack_dir: Path) -> list[Voice]:
    """List voices in ``pack_dir``, one per sub-directory, sorted by directory name."""
    if not pack_dir.is_dir():
        return []
    voices: list[Voice] = []
    for entry in sorted(pack_dir.iterdir()):
        if not entry.is_dir():
            continue
        name, lang = entry.name, ""
        meta_path = entry / "voice.yaml"
        if meta_path.exists():
            try:
                with meta_path.open("r", encoding="utf-8") as handle:
                    meta = yaml.safe_load(handle) or {}
            except (OSError, yaml.YAMLError) as exc:
                LOGGER.warning("Ignoring unreadable voice metadata %s: %s", meta_path, exc)
                meta = {}
            if isinstance(meta, dict):
                name = str(meta.get("name") or name)
                lang = str(meta.get("lang") or "")
        voices.append(Voice(name=name, lang=lang, path=entry))
    return voices


__all__ = ["PREFERRED_VOICE_HINTS", "Voice", "discover_voices", "pick_voice"]
