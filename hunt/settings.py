"""Environment-driven configuration for the hunt services."""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from .definition import DEFINITION_PATH


@dataclass(frozen=True)
class HuntSettings:
    definition_path: Path = DEFINITION_PATH
    progress_path: Optional[Path] = None
    voice_pack: Optional[Path] = None
    admin_user: str = "admin"
    admin_pass: Optional[str] = None
    log_level: str = "INFO"

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "HuntSettings":
        """Read settings from ``HUNT_*`` environment variables."""
        env = os.environ if environ is None else environ
        return cls(
            definition_path=_optional_path(env.get("HUNT_DEFINITION_PATH")) or DEFINITION_PATH,
            progress_path=_optional_path(env.get("HUNT_PROGRESS_PATH")),
            voice_pack=_optional_path(env.get("HUNT_VOICE_PACK")),
            admin_user=env.get("HUNT_ADMIN_USER", "admin"),
            admin_pass=env.get("HUNT_ADMIN_PASS") or None,
            log_level=env.get("HUNT_LOG_LEVEL", "INFO").upper(),
        )


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _optional_path(value: Optional[str]) -> Optional[Path]:
    if value is None or not value.strip():
        return None
    return Path(value).expanduser()


__all__ = ["HuntSettings", "configure_logging"]
