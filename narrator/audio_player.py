"""Clip playback for the narrator on top of pygame.mixer."""

from __future__ import annotations

import logging
import os
import tempfile
import wave
from pathlib import Path
from threading import Lock
from typing import Optional

try:  # pragma: no cover - executed when pygame is available
    from pygame import mixer
except ImportError:  # pragma: no cover - executed without an audio stack
    mixer = None  # type: ignore[assignment]

LOGGER = logging.getLogger(__name__)

MIN_FRAMERATE = 500


class AudioPlayer:
    """Play one narration clip at a time with volume limiting and rate control."""

    def __init__(self) -> None:
        self._clip: Optional[Path] = None
        self._paced_clip: Optional[Path] = None
        self._paced_lock = Lock()
        self._volume_ceiling: float = 1.0
        self._available = self._init_mixer()

    @staticmethod
    def _init_mixer() -> bool:
        if mixer is None:
            return False
        if mixer.get_init():
            return True
        try:
            mixer.init()
        except Exception as exc:  # pragma: no cover - depends on audio device
            LOGGER.warning("Audio output unavailable, narration muted: %s", exc)
            return False
        LOGGER.info("pygame.mixer initialised for narration.")
        return True

    @property
    def available(self) -> bool:
        return self._available

    @property
    def clip(self) -> Optional[Path]:
        return self._clip

    def load(self, path: Path) -> None:
        """Select the clip for the next :meth:`play` call."""
        self._discard_paced_clip()
        self._clip = path
        LOGGER.debug("Narration clip ready: %s", path)

    def set_volume_ceiling(self, limit: float) -> None:
        """Cap every later volume request at ``limit``."""
        self._volume_ceiling = _unit(limit)

    def set_volume(self, value: float) -> float:
        """Apply a volume within the ceiling and return the effective value."""
        effective = min(_unit(value), self._volume_ceiling)
        if not self._available:
            LOGGER.debug("Volume %.2f not applied; mixer unavailable.", effective)
            return effective
        mixer.music.set_volume(effective)
        return effective

    def play(self, rate: float = 1.0) -> bool:
        """Start the loaded clip once; returns False when nothing could be played."""
        if self._clip is None:
            LOGGER.warning("No narration clip loaded; play() ignored.")
            return False
        if not self._available:
            LOGGER.info("Narration %s dropped; mixer unavailable.", self._clip.name)
            return False
        source = self._source_for_rate(rate)
        try:
            mixer.music.load(str(source))
            mixer.music.play()
        except Exception as exc:  # pragma: no cover - backend specific
            LOGGER.error("Failed to play narration %s: %s", self._clip, exc)
            return False
        LOGGER.debug("Narration started: %s (rate=%.2f).", source, rate)
        return True

    def stop(self) -> None:
        """Stop whatever is currently audible."""
        if not self._available:
            return
        mixer.music.stop()

    def _source_for_rate(self, rate: float) -> Path:
        assert self._clip is not None
        if abs(rate - 1.0) < 0.02:
            return self._clip
        paced = self._make_paced_copy(rate)
        return paced if paced is not None else self._clip

    def _make_paced_copy(self, rate: float) -> Optional[Path]:
        """Write a temporary WAV whose sample rate is scaled by ``rate``."""
        assert self._clip is not None
        if self._clip.suffix.lower() != ".wav":
            LOGGER.debug("Rate change needs a WAV clip; playing %s unchanged.", self._clip.name)
            return None
        self._discard_paced_clip()
        fd, temp_name = tempfile.mkstemp(prefix="hunt_narration_", suffix=".wav")
        os.close(fd)
        temp_path = Path(temp_name)
        try:
            with wave.open(str(self._clip), "rb") as source:
                params = source.getparams()
                frames = source.readframes(params.nframes)
            with wave.open(str(temp_path), "wb") as dest:
                dest.setnchannels(params.nchannels)
                dest.setsampwidth(params.sampwidth)
                dest.setframerate(max(MIN_FRAMERATE, int(params.framerate * rate)))
                dest.writeframes(frames)
        except (OSError, wave.Error) as exc:
            LOGGER.warning("Unable to re-pace narration %s: %s", self._clip, exc)
            temp_path.unlink(missing_ok=True)
            return None
        with self._paced_lock:
            self._paced_clip = temp_path
        return temp_path

    @staticmethod
    def cleanup_temp_file(path: Path) -> None:
        try:
            path.unlink(missing_ok=True)
        except OSError:
            LOGGER.debug("Failed to remove temporary clip %s", path)

    def _discard_paced_clip(self) -> None:
        with self._paced_lock:
            target, self._paced_clip = self._paced_clip, None
        if target is not None:
            self.cleanup_temp_file(target)

    def __del__(self) -> None:  # pragma: no cover - best-effort cleanup
        self._discard_paced_clip()


def _unit(value: float) -> float:
    return max(0.0, min(1.0, value))


__all__ = ["AudioPlayer"]
