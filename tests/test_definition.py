"""Tests for hunt definition loading and validation."""

from __future__ import annotations

from pathlib import Path

import pytest

from conftest import build_definition
from hunt.definition import HuntDefinitionError, load_definition, parse_definition


def test_bundled_definition_loads() -> None:
    """The shipped hunt parses and keeps its step order."""
    definition = load_definition()
    assert definition.step_count == 18
    assert [step.id for step in definition.steps] == list(range(1, 19))
    assert definition.steps[0].answer == "crossroads"
    assert definition.terminal_unlock.after_step_index == 15
    assert definition.terminal_unlock.location_id == "shed_final"
    assert definition.narration.special_beats[7].startswith("You've finished upstairs")


def test_step_at_clamps_out_of_range_indices() -> None:
    """Lookups past either end resolve to the nearest real step."""
    definition = build_definition(["a", "b", "c"])
    assert definition.step_at(999).id == 3
    assert definition.step_at(-4).id == 1


def test_missing_file_raises(tmp_path: Path) -> None:
    """A configured but absent definition is a startup error."""
    with pytest.raises(HuntDefinitionError):
        load_definition(tmp_path / "missing.yaml")


def test_yaml_file_round_trips_through_loader(tmp_path: Path) -> None:
    """Definitions on disk are read with the YAML loader."""
    path = tmp_path / "hunt.yaml"
    path.write_text(
        "locations: {hall: upper-floor}\n"
        "steps:\n"
        "  - {id: 1, location_id: hall, answer: alpha, narrated_line: hi}\n"
        "narration:\n"
        "  onboarding: [hello]\n"
        "  wrong_answer: [nope]\n"
        "  whisper_fillers: [psst]\n"
        "  reveal_pool: [look]\n",
        encoding="utf-8",
    )
    definition = load_definition(path)
    assert definition.step_count == 1
    assert definition.terminal_unlock.after_step_index == 0


def test_empty_steps_rejected() -> None:
    """A hunt needs at least one step."""
    with pytest.raises(HuntDefinitionError):
        build_definition([])


def test_undefined_location_rejected() -> None:
    """Every step must point at a declared location."""
    data = {
        "locations": {"hall": "upper-floor"},
        "steps": [{"id": 1, "location_id": "attic", "answer": "x"}],
        "narration": {
            "onboarding": ["a"],
            "wrong_answer": ["b"],
            "whisper_fillers": ["c"],
            "reveal_pool": ["d"],
        },
    }
    with pytest.raises(HuntDefinitionError, match="attic"):
        parse_definition(data)


def test_unordered_ids_rejected() -> None:
    """Step ids must run 1..N without gaps."""
    data = {
        "locations": {"hall": "upper-floor"},
        "steps": [
            {"id": 1, "location_id": "hall", "answer": "x"},
            {"id": 3, "location_id": "hall", "answer": "y"},
        ],
        "narration": {
            "onboarding": ["a"],
            "wrong_answer": ["b"],
            "whisper_fillers": ["c"],
            "reveal_pool": ["d"],
        },
    }
    with pytest.raises(HuntDefinitionError):
        parse_definition(data)


def test_empty_narration_pool_rejected() -> None:
    """Every event category needs at least one candidate line."""
    data = {
        "locations": {"hall": "upper-floor"},
        "steps": [{"id": 1, "location_id": "hall", "answer": "x"}],
        "narration": {
            "onboarding": ["a"],
            "wrong_answer": [],
            "whisper_fillers": ["c"],
            "reveal_pool": ["d"],
        },
    }
    with pytest.raises(HuntDefinitionError, match="wrong_answer"):
        parse_definition(data)


def test_unknown_location_group_rejected() -> None:
    """Groups are limited to the known floors and outdoors."""
    with pytest.raises(HuntDefinitionError):
        build_definition(["x"], ["cellar"], groups={"cellar": "basement"})
