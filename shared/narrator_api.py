"""Narrator interface shared by the hunt engine and the narrator package.

This module defines the single contract through which the engine hands a
line of text to whatever renders it as speech. Both the hunt and narrator
packages import from here so the option names stay consistent.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Protocol, runtime_checkable

from typing_extensions import Final


DEFAULT_RATE: Final[float] = 0.92
DEFAULT_PITCH: Final[float] = 0.72
DEFAULT_VOLUME: Final[float] = 1.0


@dataclass(frozen=True)
class VoiceOptions:
    """Delivery settings for a single utterance."""

    rate: float = DEFAULT_RATE
    pitch: float = DEFAULT_PITCH
    volume: float = DEFAULT_VOLUME
    voice_hint: Optional[str] = None


@runtime_checkable
class Narrator(Protocol):
    """Fire-and-forget speech capability."""

    def speak(self, text: str, options: VoiceOptions) -> None:
        """Start speaking ``text``, superseding any utterance in flight."""

    def cancel(self) -> None:
        """Silence the current utterance, if any."""


class NullNarrator:
    """Narrator used when no speech backend is available."""

    def speak(self, text: str, options: VoiceOptions) -> None:
        del text, options

    def cancel(self) -> None:
        return None


__all__ = [
    "DEFAULT_PITCH",
    "DEFAULT_RATE",
    "DEFAULT_VOLUME",
    "Narrator",
    "NullNarrator",
    "VoiceOptions",
]
