"""Location tracking derived from the player's progress index."""

from __future__ import annotations

from enum import Enum
from typing import Optional

from .definition import HuntDefinition
from .progress_store import Progress


class LocationGroup(str, Enum):
    """Coarse area of the house a location belongs to."""

    UPPER_FLOOR = "upper-floor"
    LOWER_FLOOR = "lower-floor"
    OUTDOOR = "outdoor"
    UNKNOWN = "unknown"


def clamp_index(index: int, step_count: int) -> int:
    """Clamp ``index`` into ``[0, step_count - 1]``."""
    return max(0, min(index, step_count - 1))


def current_location(definition: HuntDefinition, progress: Progress) -> str:
    """Return the location of the step the player is currently on."""
    return definition.step_at(progress.step_index).location_id


def visited_locations(definition: HuntDefinition, upto_index: int) -> list[str]:
    """
    Return locations of steps ``0..upto_index`` inclusive.

    Repeated locations appear once, at their first occurrence, in step order.
    """
    last = clamp_index(upto_index, definition.step_count)
    seen: dict[str, None] = {}
    for step in definition.steps[: last + 1]:
        seen.setdefault(step.location_id, None)
    return list(seen)


def location_group(definition: HuntDefinition, location_id: Optional[str]) -> LocationGroup:
    """Classify a location id; undefined ids are ``UNKNOWN``."""
    if not location_id:
        return LocationGroup.UNKNOWN
    group = definition.locations.get(location_id)
    if group is None:
        return LocationGroup.UNKNOWN
    return LocationGroup(group)


__all__ = [
    "LocationGroup",
    "clamp_index",
    "current_location",
    "location_group",
    "visited_locations",
]
