"""Narrator implementation that speaks lines from a pre-rendered voice pack."""

from __future__ import annotations

import logging
import re
import unicodedata
from pathlib import Path
from typing import Optional, Sequence

from shared.narrator_api import Narrator, NullNarrator, VoiceOptions

from .audio_player import AudioPlayer
from .voices import Voice, discover_voices, pick_voice

LOGGER = logging.getLogger(__name__)

CLIP_SUFFIXES: tuple[str, ...] = (".wav", ".ogg", ".mp3")


def clip_slug(text: str) -> str:
    """
    Derive the clip file stem for a narration line.

    "Wrong. Try again..." -> "wrong-try-again"
    """
    ascii_text = unicodedata.normalize("NFKD", text).encode("ascii", "ignore").decode("ascii")
    ascii_text = re.sub(r"['\"]", "", ascii_text.lower())
    slug = re.sub(r"[^a-z0-9]+", "-", ascii_text).strip("-")
    return slug or "silence"


class ClipNarrator:
    """
    Speak lines by playing the matching clip of the selected voice.

    Each request stops the clip in flight before starting the next, so at
    most one line is audible. Lines without a recorded clip are dropped.
    Pitch is accepted for interface parity but recorded clips keep theirs.
    """

    def __init__(self, voices: Sequence[Voice], player: Optional[AudioPlayer] = None) -> None:
        self.voices = list(voices)
        self.player = player or AudioPlayer()
        self.default_voice = pick_voice(self.voices)
        if self.default_voice is not None:
            LOGGER.info("Narrator voice selected: %s", self.default_voice.name)

    def resolve_voice(self, hint: Optional[str]) -> Optional[Voice]:
        if hint:
            chosen = pick_voice(self.voices, [re.compile(re.escape(hint), re.IGNORECASE)])
            if chosen is not None:
                return chosen
        return self.default_voice

    def clip_for(self, text: str, voice: Voice) -> Optional[Path]:
        stem = clip_slug(text)
        for suffix in CLIP_SUFFIXES:
            candidate = voice.path / f"{stem}{suffix}"
            if candidate.exists():
                return candidate
        return None

    def speak(self, text: str, options: VoiceOptions) -> None:
        self.player.stop()
        voice = self.resolve_voice(options.voice_hint)
        if voice is None:
            LOGGER.debug("No narrator voice available; line dropped.")
            return
        clip = self.clip_for(text, voice)
        if clip is None:
            LOGGER.info("No clip recorded for %r in voice %s.", text, voice.name)
            return
        self.player.load(clip)
        self.player.set_volume(options.volume)
        self.player.play(rate=options.rate)

    def cancel(self) -> None:
        self.player.stop()


def build_narrator(pack_dir: Optional[Path]) -> Narrator:
    """Return a clip narrator for ``pack_dir``, or a silent one when unusable."""
    if pack_dir is None:
        return NullNarrator()
    voices = discover_voices(pack_dir)
    if not voices:
        LOGGER.warning("Voice pack %s has no voices; narration muted.", pack_dir)
        return NullNarrator()
    return ClipNarrator(voices)


__all__ = ["CLIP_SUFFIXES", "ClipNarrator", "build_narrator", "clip_slug"]
