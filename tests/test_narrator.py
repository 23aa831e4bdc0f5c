"""Tests for voice selection and the clip narrator."""

from __future__ import annotations

import wave
from pathlib import Path

import pytest

from conftest import FakeMixer
from narrator.speaker import ClipNarrator, build_narrator, clip_slug
from narrator.voices import Voice, discover_voices, pick_voice
from shared.narrator_api import NullNarrator, VoiceOptions


def _voice(name: str, lang: str = "") -> Voice:
    return Voice(name=name, lang=lang, path=Path(name))


def _write_clip(path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with wave.open(str(path), "wb") as handle:
        handle.setnchannels(1)
        handle.setsampwidth(2)
        handle.setframerate(22050)
        handle.writeframes(b"\x00\x00" * 50)


def test_pick_voice_follows_hint_priority() -> None:
    """Earlier hints win even if a later hint matches an earlier voice."""
    voices = [_voice("Samantha", "en-US"), _voice("Daniel", "en-GB"), _voice("Santa", "en-US")]
    assert pick_voice(voices).name == "Santa"
    assert pick_voice(voices[:2]).name == "Daniel"
    assert pick_voice(voices[:1]).name == "Samantha"


def test_pick_voice_falls_back_to_first_or_none() -> None:
    """Without a hint match the first voice is used; no voices means none."""
    assert pick_voice([_voice("Amelie", "fr-FR"), _voice("Anna", "de-DE")]).name == "Amelie"
    assert pick_voice([]) is None


def test_discover_voices_reads_metadata(tmp_path: Path) -> None:
    """Voice directories may describe themselves in voice.yaml."""
    (tmp_path / "deep").mkdir()
    (tmp_path / "deep" / "voice.yaml").write_text("name: Fred\nlang: en-US\n", encoding="utf-8")
    (tmp_path / "plain").mkdir()
    (tmp_path / "notes.txt").write_text("ignored", encoding="utf-8")

    voices = discover_voices(tmp_path)
    assert [(voice.name, voice.lang) for voice in voices] == [("Fred", "en-US"), ("plain", "")]
    assert discover_voices(tmp_path / "missing") == []


def test_clip_slug() -> None:
    """Lines map to stable file stems."""
    assert clip_slug("Wrong. Try again...") == "wrong-try-again"
    assert clip_slug("I'll be watching.") == "ill-be-watching"
    assert clip_slug("...") == "silence"


def test_clip_narrator_plays_matching_clip(tmp_path: Path, fake_mixer: FakeMixer) -> None:
    """Speaking stops the current clip and plays the recorded line."""
    _write_clip(tmp_path / "fred" / "wrong-try-again.wav")
    narrator = ClipNarrator(discover_voices(tmp_path))

    narrator.speak("Wrong. Try again...", VoiceOptions(rate=1.0, volume=0.5))
    assert fake_mixer.music.stops == 1
    assert fake_mixer.music.plays == 1
    assert fake_mixer.music.loaded[-1].endswith("wrong-try-again.wav")
    assert fake_mixer.music.volume == 0.5

    narrator.speak("A line nobody recorded.", VoiceOptions())
    assert fake_mixer.music.plays == 1
    assert fake_mixer.music.stops == 2

    narrator.cancel()
    assert fake_mixer.music.stops == 3


def test_voice_hint_selects_voice(tmp_path: Path, fake_mixer: FakeMixer) -> None:
    """A voice hint overrides the default preference."""
    _write_clip(tmp_path / "alex" / "boo.wav")
    _write_clip(tmp_path / "zoe" / "boo.wav")
    narrator = ClipNarrator(discover_voices(tmp_path))
    assert narrator.default_voice is not None
    assert narrator.default_voice.name == "alex"

    narrator.speak("Boo!", VoiceOptions(rate=1.0, voice_hint="zoe"))
    assert "zoe" in fake_mixer.music.loaded[-1]


def test_build_narrator_degrades_to_silence(tmp_path: Path) -> None:
    """No pack, or an empty pack, yields the null narrator."""
    assert isinstance(build_narrator(None), NullNarrator)
    assert isinstance(build_narrator(tmp_path), NullNarrator)


def test_clip_narrator_without_audio_output(
    tmp_path: Path,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    """Without pygame's mixer a configured pack still speaks silently."""
    import narrator.audio_player as audio_player

    monkeypatch.setattr(audio_player, "mixer", None)
    _write_clip(tmp_path / "fred" / "boo.wav")
    narrator = build_narrator(tmp_path)
    assert isinstance(narrator, ClipNarrator)
    narrator.speak("Boo!", VoiceOptions())
    narrator.cancel()
