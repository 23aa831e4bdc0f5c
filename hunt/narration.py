"""Selection of narrated lines for hunt events."""

from __future__ import annotations

import random
from dataclasses import dataclass
from typing import Optional, Sequence, Union

from shared.narrator_api import VoiceOptions

from .definition import HuntDefinition
from .zones import LocationGroup

REVEAL_VOICE = VoiceOptions(rate=0.92, pitch=0.62)
WRONG_ANSWER_VOICE = VoiceOptions(rate=0.92, pitch=0.55)
ONBOARDING_VOICE = VoiceOptions(rate=0.9, pitch=0.7)


@dataclass(frozen=True)
class Onboarding:
    """Narration is unlocked for the first time (or re-confirmed)."""


@dataclass(frozen=True)
class PerStepFlavor:
    step_id: int


@dataclass(frozen=True)
class WrongAnswer:
    """A submitted code word did not match."""


@dataclass(frozen=True)
class RevealTransition:
    """The map reveal toward ``step_id`` is opening."""

    step_id: int
    from_group: LocationGroup
    to_group: LocationGroup


@dataclass(frozen=True)
class Whisper:
    step_id: int


NarrationEvent = Union[Onboarding, PerStepFlavor, WrongAnswer, RevealTransition, Whisper]


def pick(candidates: Sequence[str], rng: random.Random) -> str:
    """Choose one candidate uniformly using the supplied random source."""
    if not candidates:
        raise ValueError("Cannot pick from an empty candidate pool.")
    return candidates[int(rng.random() * len(candidates))]


def voice_options_for(event: NarrationEvent) -> VoiceOptions:
    """Return the delivery settings used for an event category."""
    if isinstance(event, WrongAnswer):
        return WRONG_ANSWER_VOICE
    if isinstance(event, Onboarding):
        return ONBOARDING_VOICE
    return REVEAL_VOICE


class NarrationSelector:
    """Resolve narration events to concrete lines from the hunt definition."""

    def __init__(self, definition: HuntDefinition, rng: Optional[random.Random] = None) -> None:
        self._lines = definition.narration
        self._step_lines = {step.id: step.narrated_line for step in definition.steps}
        self._rng = rng or random.Random()
        for name in ("onboarding", "wrong_answer", "whisper_fillers", "reveal_pool"):
            if not getattr(self._lines, name):
                raise ValueError(f"Narration pool '{name}' must not be empty.")

    def select_line(self, event: NarrationEvent) -> str:
        """Return the line to speak for ``event``."""
        if isinstance(event, RevealTransition):
            return self._reveal_line(event)
        if isinstance(event, WrongAnswer):
            return pick(self._lines.wrong_answer, self._rng)
        if isinstance(event, Onboarding):
            return pick(self._lines.onboarding, self._rng)
        if isinstance(event, Whisper):
            return pick(self.whisper_candidates(event.step_id), self._rng)
        if isinstance(event, PerStepFlavor):
            line = self._step_lines.get(event.step_id)
            if line:
                return line
            return pick(self._lines.whisper_fillers, self._rng)
        raise TypeError(f"Unsupported narration event: {event!r}")

    def whisper_candidates(self, step_id: int) -> list[str]:
        """Return the step's own flavor line followed by the generic fillers."""
        candidates: list[str] = []
        own = self._step_lines.get(step_id)
        if own:
            candidates.append(own)
        candidates.extend(self._lines.whisper_fillers)
        return candidates

    def directional_candidates(
        self, from_group: LocationGroup, to_group: LocationGroup
    ) -> list[str]:
        """Return direction-aware lines that apply to a move between groups."""
        directional = self._lines.directional
        candidates: list[str] = []
        if from_group is LocationGroup.UPPER_FLOOR and to_group is LocationGroup.LOWER_FLOOR:
            candidates.extend(directional.get("down_from_upper", ()))
        if from_group is not LocationGroup.OUTDOOR and to_group is LocationGroup.OUTDOOR:
            candidates.extend(directional.get("to_outdoor", ()))
        if to_group is LocationGroup.UPPER_FLOOR:
            candidates.extend(directional.get("to_upper", ()))
        return candidates

    def _reveal_line(self, event: RevealTransition) -> str:
        special = self._lines.special_beats.get(event.step_id)
        if special:
            return special
        directional = self.directional_candidates(event.from_group, event.to_group)
        if directional:
            return pick(directional, self._rng)
        return pick(self._lines.reveal_pool, self._rng)


__all__ = [
    "NarrationEvent",
    "NarrationSelector",
    "Onboarding",
    "PerStepFlavor",
    "RevealTransition",
    "WrongAnswer",
    "Whisper",
    "pick",
    "voice_options_for",
]
