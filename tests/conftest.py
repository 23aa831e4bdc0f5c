"""Pytest configuration and shared fixtures for hunt tests."""

from __future__ import annotations

import random
from typing import Any, Callable, Optional, Sequence

import pytest

from hunt.choreographer import HuntSession
from hunt.definition import HuntDefinition, parse_definition
from hunt.progress_store import MemoryBackend, Progress, ProgressStore
from shared.narrator_api import VoiceOptions


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 100.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class RecordingNarrator:
    """Capture speak requests instead of producing audio."""

    def __init__(self) -> None:
        self.spoken: list[tuple[str, VoiceOptions]] = []
        self.cancelled = 0

    def speak(self, text: str, options: VoiceOptions) -> None:
        self.spoken.append((text, options))

    def cancel(self) -> None:
        self.cancelled += 1

    @property
    def lines(self) -> list[str]:
        return [text for text, _options in self.spoken]


class FakeMusic:
    """Stand-in for pygame.mixer.music that records calls."""

    def __init__(self) -> None:
        self.volume = 1.0
        self.loaded: list[str] = []
        self.plays = 0
        self.stops = 0

    def load(self, path: str) -> None:
        self.loaded.append(path)

    def play(self, loops: int = 0) -> None:
        del loops
        self.plays += 1

    def stop(self) -> None:
        self.stops += 1

    def set_volume(self, value: float) -> None:
        self.volume = value


class FakeMixer:
    def __init__(self) -> None:
        self._init = False
        self.music = FakeMusic()

    def init(self) -> None:
        self._init = True

    def get_init(self) -> bool:
        return self._init


NARRATION: dict[str, Any] = {
    "onboarding": ["Welcome, brave soul."],
    "wrong_answer": ["Wrong. Try again..."],
    "whisper_fillers": ["The house is listening.", "Type the code word."],
    "reveal_pool": ["The house remembers your footsteps.", "Not that room anymore."],
    "special_beats": {},
    "directional": {
        "down_from_upper": ["Downstairs now... good choice."],
        "to_outdoor": ["Outside... where my laugh travels farther."],
        "to_upper": ["Back upstairs? Brave."],
    },
}


def build_definition(
    answers: Sequence[str],
    locations: Optional[Sequence[str]] = None,
    *,
    groups: Optional[dict[str, str]] = None,
    special_beats: Optional[dict[int, str]] = None,
    terminal_unlock: Optional[dict[str, Any]] = None,
) -> HuntDefinition:
    """Build a small hunt definition from answers and per-step location ids."""
    location_ids = list(locations or [f"room_{i}" for i in range(len(answers))])
    group_table = dict(groups or {})
    for location_id in location_ids:
        group_table.setdefault(location_id, "lower-floor")
    narration = dict(NARRATION)
    narration["special_beats"] = dict(special_beats or {})
    data: dict[str, Any] = {
        "locations": group_table,
        "steps": [
            {
                "id": position + 1,
                "location_id": location_ids[position],
                "title": f"Step {position + 1}",
                "riddle": f"Riddle {position + 1}",
                "location_hint": f"Hint {position + 1}",
                "answer": answer,
                "narrated_line": f"Flavor for step {position + 1}.",
            }
            for position, answer in enumerate(answers)
        ],
        "narration": narration,
    }
    if terminal_unlock is not None:
        data["terminal_unlock"] = terminal_unlock
    return parse_definition(data)


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def narrator() -> RecordingNarrator:
    return RecordingNarrator()


@pytest.fixture()
def backend() -> MemoryBackend:
    return MemoryBackend()


@pytest.fixture()
def fake_mixer(monkeypatch: pytest.MonkeyPatch) -> FakeMixer:
    """Route narrator playback through a recording mixer."""
    import narrator.audio_player as audio_player

    mixer = FakeMixer()
    monkeypatch.setattr(audio_player, "mixer", mixer)
    return mixer


@pytest.fixture()
def make_session(
    clock: FakeClock,
    narrator: RecordingNarrator,
    backend: MemoryBackend,
) -> Callable[..., HuntSession]:
    """Return a factory building sessions over an in-memory store."""

    def factory(
        definition: HuntDefinition,
        progress: Optional[Progress] = None,
        seed: int = 7,
    ) -> HuntSession:
        store = ProgressStore(backend)
        if progress is not None:
            store.save(progress)
        return HuntSession(
            definition,
            store,
            narrator,
            clock=clock,
            rng=random.Random(seed),
        )

    return factory
