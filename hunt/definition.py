"""Loading and validation of the static hunt definition."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml  # type: ignore[import]

DEFINITION_PATH = Path(__file__).resolve().parent / "hunt_definition.yaml"

LOCATION_GROUPS = ("upper-floor", "lower-floor", "outdoor")
DIRECTIONAL_KEYS = ("down_from_upper", "to_outdoor", "to_upper")


class HuntDefinitionError(ValueError):
    """Raised when a hunt definition file is structurally invalid."""


@dataclass(frozen=True)
class Step:
    """A single riddle, its location and the code word that unlocks it."""

    id: int
    location_id: str
    title: str
    riddle: str
    location_hint: str
    answer: str
    narrated_line: str


@dataclass(frozen=True)
class TerminalUnlock:
    """Rule for when the final (outdoor) location stops being locked on the map."""

    after_step_index: int
    location_id: str | None = None


@dataclass(frozen=True)
class NarrationLines:
    """Candidate lines for every narration event category."""

    onboarding: tuple[str, ...]
    wrong_answer: tuple[str, ...]
    whisper_fillers: tuple[str, ...]
    reveal_pool: tuple[str, ...]
    special_beats: Mapping[int, str] = field(default_factory=dict)
    directional: Mapping[str, tuple[str, ...]] = field(default_factory=dict)


@dataclass(frozen=True)
class HuntDefinition:
    """Ordered, immutable list of steps plus the location table and narration lines."""

    steps: tuple[Step, ...]
    locations: Mapping[str, str]
    terminal_unlock: TerminalUnlock
    narration: NarrationLines

    @property
    def step_count(self) -> int:
        return len(self.steps)

    @property
    def last_index(self) -> int:
        return len(self.steps) - 1

    def step_at(self, index: int) -> Step:
        """Return the step at ``index`` clamped into the valid range."""
        return self.steps[max(0, min(index, self.last_index))]

    def step_by_id(self, step_id: int) -> Step | None:
        for step in self.steps:
            if step.id == step_id:
                return step
        return None


def load_definition(path: Path | None = None) -> HuntDefinition:
    """Load and validate a hunt definition from YAML."""
    target = path or DEFINITION_PATH
    if not target.exists():
        raise HuntDefinitionError(f"Hunt definition not found: {target}")
    with target.open("r", encoding="utf-8") as handle:
        data = yaml.safe_load(handle) or {}
    return parse_definition(data)


def parse_definition(data: Any) -> HuntDefinition:
    """Build a :class:`HuntDefinition` from an already-parsed mapping."""
    if not isinstance(data, Mapping):
        raise HuntDefinitionError("Hunt definition must contain a mapping.")

    locations = _parse_locations(data.get("locations"))
    steps = _parse_steps(data.get("steps"), locations)
    terminal = _parse_terminal_unlock(data.get("terminal_unlock"), len(steps))
    narration = _parse_narration(data.get("narration"))
    return HuntDefinition(
        steps=steps,
        locations=locations,
        terminal_unlock=terminal,
        narration=narration,
    )


def _parse_locations(value: Any) -> dict[str, str]:
    if not isinstance(value, Mapping) or not value:
        raise HuntDefinitionError("locations must be a non-empty mapping of id to group.")
    locations: dict[str, str] = {}
    for location_id, group in value.items():
        if group not in LOCATION_GROUPS:
            raise HuntDefinitionError(
                f"Location '{location_id}' has unknown group '{group}' "
                f"(expected one of: {', '.join(LOCATION_GROUPS)})."
            )
        locations[str(location_id)] = str(group)
    return locations


def _parse_steps(value: Any, locations: Mapping[str, str]) -> tuple[Step, ...]:
    if not isinstance(value, Sequence) or isinstance(value, str) or not value:
        raise HuntDefinitionError("steps must be a non-empty list.")
    steps: list[Step] = []
    for position, entry in enumerate(value):
        if not isinstance(entry, Mapping):
            raise HuntDefinitionError(f"Step #{position + 1} must be a mapping.")
        step_id = entry.get("id")
        if isinstance(step_id, bool) or not isinstance(step_id, int):
            raise HuntDefinitionError(f"Step #{position + 1} needs an integer id.")
        if step_id != position + 1:
            raise HuntDefinitionError(
                f"Step ids must run 1..N in order; found {step_id} at position {position + 1}."
            )
        location_id = str(entry.get("location_id", ""))
        if location_id not in locations:
            raise HuntDefinitionError(
                f"Step {step_id} references undefined location '{location_id}'."
            )
        answer = entry.get("answer")
        if not isinstance(answer, str) or not answer.strip():
            raise HuntDefinitionError(f"Step {step_id} needs a non-empty answer.")
        steps.append(
            Step(
                id=step_id,
                location_id=location_id,
                title=str(entry.get("title", "")),
                riddle=str(entry.get("riddle", "")),
                location_hint=str(entry.get("location_hint", "")),
                answer=answer,
                narrated_line=str(entry.get("narrated_line", "")),
            )
        )
    return tuple(steps)


def _parse_terminal_unlock(value: Any, step_count: int) -> TerminalUnlock:
    if value is None:
        return TerminalUnlock(after_step_index=max(0, step_count - 1))
    if not isinstance(value, Mapping):
        raise HuntDefinitionError("terminal_unlock must be a mapping.")
    threshold = value.get("after_step_index", step_count - 1)
    if isinstance(threshold, bool) or not isinstance(threshold, int) or threshold < 0:
        raise HuntDefinitionError("terminal_unlock.after_step_index must be a non-negative int.")
    location_id = value.get("location_id")
    return TerminalUnlock(
        after_step_index=threshold,
        location_id=str(location_id) if location_id else None,
    )


def _parse_narration(value: Any) -> NarrationLines:
    if not isinstance(value, Mapping):
        raise HuntDefinitionError("narration must be a mapping of line pools.")

    special = value.get("special_beats") or {}
    if not isinstance(special, Mapping):
        raise HuntDefinitionError("narration.special_beats must map step ids to lines.")
    special_beats: dict[int, str] = {}
    for step_id, line in special.items():
        try:
            key = int(step_id)
        except (TypeError, ValueError) as exc:
            raise HuntDefinitionError(f"special_beats key '{step_id}' is not a step id.") from exc
        special_beats[key] = _require_line(line, f"special_beats.{step_id}")

    directional_raw = value.get("directional") or {}
    if not isinstance(directional_raw, Mapping):
        raise HuntDefinitionError("narration.directional must be a mapping.")
    directional: dict[str, tuple[str, ...]] = {}
    for key in DIRECTIONAL_KEYS:
        lines = directional_raw.get(key)
        # Directional pools are optional; an empty one simply never applies.
        directional[key] = _coerce_lines(lines, f"directional.{key}") if lines else ()

    return NarrationLines(
        onboarding=_require_pool(value.get("onboarding"), "onboarding"),
        wrong_answer=_require_pool(value.get("wrong_answer"), "wrong_answer"),
        whisper_fillers=_require_pool(value.get("whisper_fillers"), "whisper_fillers"),
        reveal_pool=_require_pool(value.get("reveal_pool"), "reveal_pool"),
        special_beats=special_beats,
        directional=directional,
    )


def _require_pool(value: Any, name: str) -> tuple[str, ...]:
    lines = _coerce_lines(value, name)
    if not lines:
        raise HuntDefinitionError(f"narration.{name} must contain at least one line.")
    return lines


def _coerce_lines(value: Any, name: str) -> tuple[str, ...]:
    if value is None:
        return ()
    if isinstance(value, str):
        value = [value]
    if not isinstance(value, Sequence):
        raise HuntDefinitionError(f"narration.{name} must be a list of strings.")
    return tuple(_require_line(line, name) for line in value)


def _require_line(value: Any, name: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise HuntDefinitionError(f"narration.{name} contains an empty line.")
    return value


__all__ = [
    "DEFINITION_PATH",
    "HuntDefinition",
    "HuntDefinitionError",
    "LOCATION_GROUPS",
    "NarrationLines",
    "Step",
    "TerminalUnlock",
    "load_definition",
    "parse_definition",
]
