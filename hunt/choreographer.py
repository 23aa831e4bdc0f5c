"""Hunt progression state machine: validation, map reveal and timed advance."""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Optional

from shared.narrator_api import Narrator, NullNarrator

from .answers import answers_match
from .definition import HuntDefinition
from .narration import (
    NarrationEvent,
    NarrationSelector,
    Onboarding,
    RevealTransition,
    Whisper,
    WrongAnswer,
    voice_options_for,
)
from .progress_store import Progress, ProgressStore
from .scheduler import Clock, DeadlineScheduler
from .zones import clamp_index, location_group, visited_locations

LOGGER = logging.getLogger(__name__)

REVEAL_TIMER = "reveal"
ADVANCE_TIMER = "advance"
SHAKE_TIMER = "shake"

REVEAL_DISMISS_SECONDS = 3.6
ADVANCE_DELAY_SECONDS = 3.8
SHAKE_SECONDS = 0.45


class Phase(str, Enum):
    IDLE = "idle"
    VALIDATING = "validating"
    REVEALING = "revealing"


class SubmitOutcome(str, Enum):
    """Result of a single answer submission."""

    ADVANCING = "advancing"
    MISMATCH = "mismatch"
    WHISPER = "whisper"
    BUSY = "busy"


class ConfirmationRequired(Exception):
    """Raised when a destructive operator action is attempted without confirmation."""


@dataclass(frozen=True)
class RevealPayload:
    """What the map overlay should show while a reveal is open."""

    current_location_id: str
    visited_location_ids: tuple[str, ...]
    terminal_unlocked: bool

    def snapshot(self) -> dict[str, Any]:
        return {
            "current_location_id": self.current_location_id,
            "visited_location_ids": list(self.visited_location_ids),
            "terminal_unlocked": self.terminal_unlocked,
        }


@dataclass(frozen=True)
class StepView:
    """Read-only view of the active riddle for the player surface."""

    step_id: int
    index: int
    title: str
    riddle: str
    location_hint: str
    progress_fraction: float
    is_terminal: bool

    @property
    def progress_percent(self) -> int:
        return round(self.progress_fraction * 100)

    def snapshot(self) -> dict[str, Any]:
        return {
            "step_id": self.step_id,
            "index": self.index,
            "title": self.title,
            "riddle": self.riddle,
            "location_hint": self.location_hint,
            "progress_fraction": self.progress_fraction,
            "progress_percent": self.progress_percent,
            "is_terminal": self.is_terminal,
        }


class HuntSession:
    """
    Single writer of hunt progress.

    A correct answer opens the map reveal immediately and schedules two
    effects on the deadline scheduler: the overlay's own auto-dismiss and
    the step advance. Progress is only written when the advance fires, so
    the reveal is always shown before the next riddle becomes active.
    Deadlines are evaluated by :meth:`tick`. :meth:`dispose` still runs
    effects whose deadline has passed, and no scheduled effect runs afterwards.
    """

    def __init__(
        self,
        definition: HuntDefinition,
        store: ProgressStore,
        narrator: Optional[Narrator] = None,
        selector: Optional[NarrationSelector] = None,
        *,
        clock: Optional[Clock] = None,
        rng: Optional[random.Random] = None,
    ) -> None:
        self.definition = definition
        self.store = store
        self.narrator: Narrator = narrator or NullNarrator()
        self.selector = selector or NarrationSelector(definition, rng=rng)
        self.scheduler = DeadlineScheduler(clock)
        self.progress: Progress = store.load()
        self.phase = Phase.IDLE
        self.reveal_open = False
        self.reveal_payload: Optional[RevealPayload] = None
        self.shake_active = False
        self.last_line: Optional[str] = None
        if self.progress.step_index > definition.last_index:
            LOGGER.info(
                "Stored step index %s exceeds hunt length %s; clamping view.",
                self.progress.step_index,
                definition.step_count,
            )

    @property
    def step_index(self) -> int:
        """Current step index, clamped to the hunt definition."""
        return clamp_index(self.progress.step_index, self.definition.step_count)

    @property
    def is_terminal(self) -> bool:
        return self.progress.step_index >= self.definition.last_index

    @property
    def reveal_deadline(self) -> Optional[float]:
        return self.scheduler.deadline(REVEAL_TIMER)

    @property
    def advance_deadline(self) -> Optional[float]:
        return self.scheduler.deadline(ADVANCE_TIMER)

    def current_step_view(self) -> StepView:
        index = self.step_index
        step = self.definition.steps[index]
        return StepView(
            step_id=step.id,
            index=index,
            title=step.title,
            riddle=step.riddle,
            location_hint=step.location_hint,
            progress_fraction=(index + 1) / self.definition.step_count,
            is_terminal=self.is_terminal,
        )

    def reveal_view(self) -> dict[str, Any]:
        """Return the open flag and payload for the map-render collaborator."""
        payload = self.reveal_payload if self.reveal_open else None
        return {
            "open": self.reveal_open,
            "payload": payload.snapshot() if payload is not None else None,
        }

    def snapshot(self) -> dict[str, Any]:
        return {
            "phase": self.phase.value,
            "step_index": self.step_index,
            "stored_step_index": self.progress.step_index,
            "step_count": self.definition.step_count,
            "narration_unlocked": self.progress.narration_unlocked,
            "shake": self.shake_active,
            "step": self.current_step_view().snapshot(),
            "reveal": self.reveal_view(),
            "pending": self.scheduler.pending(),
        }

    def submit_answer(self, text: Any) -> SubmitOutcome:
        """Validate ``text`` against the current step and react accordingly."""
        if self.phase is Phase.REVEALING:
            LOGGER.debug("Submission ignored while reveal is in progress.")
            return SubmitOutcome.BUSY
        if self.is_terminal:
            self.request_whisper()
            return SubmitOutcome.WHISPER

        self.phase = Phase.VALIDATING
        step = self.definition.steps[self.step_index]
        if not answers_match(step.answer, text):
            self.phase = Phase.IDLE
            self._signal_mismatch()
            return SubmitOutcome.MISMATCH

        self._begin_reveal()
        return SubmitOutcome.ADVANCING

    def request_whisper(self) -> Optional[str]:
        """Speak a whisper line for the current step when narration is unlocked."""
        step = self.definition.steps[self.step_index]
        return self._narrate(Whisper(step_id=step.id))

    def unlock_narration(self) -> Optional[str]:
        """Record the one-time narration consent and greet the player."""
        if not self.progress.narration_unlocked:
            self._set_progress(replace(self.progress, narration_unlocked=True))
            LOGGER.info("Narration unlocked.")
        return self._narrate(Onboarding())

    def close_reveal(self) -> None:
        """Dismiss the overlay early; the pending advance still runs."""
        self.scheduler.cancel(REVEAL_TIMER)
        self.reveal_open = False

    def reset(self, *, confirm: bool = False) -> None:
        """Rewind to the first step, keeping narration consent."""
        self._rewind(0, confirm=confirm, action="reset")

    def jump_to(self, index: int, *, confirm: bool = False) -> None:
        """Move directly to ``index`` (clamped), keeping narration consent."""
        self._rewind(clamp_index(index, self.definition.step_count), confirm=confirm, action="jump")

    def tick(self, now: Optional[float] = None) -> list[str]:
        """Fire any due deadlines and return the names of the timers that ran."""
        return self.scheduler.run_due(now)

    def dispose(self) -> None:
        """Run effects already due, then cancel the rest; later ticks do nothing."""
        self.tick()
        self.scheduler.dispose()
        self.reveal_open = False
        LOGGER.debug("Hunt session disposed.")

    def _begin_reveal(self) -> None:
        current_index = self.step_index
        next_index = min(current_index + 1, self.definition.last_index)
        payload = self._build_payload(current_index, next_index)

        self.phase = Phase.REVEALING
        self.reveal_payload = payload
        self.reveal_open = True
        LOGGER.info(
            "Step %s solved; revealing %s.",
            self.definition.steps[current_index].id,
            payload.current_location_id,
        )

        origin = self.definition.steps[current_index]
        destination = self.definition.steps[next_index]
        self._narrate(
            RevealTransition(
                step_id=destination.id,
                from_group=location_group(self.definition, origin.location_id),
                to_group=location_group(self.definition, destination.location_id),
            )
        )

        self.scheduler.schedule(REVEAL_TIMER, REVEAL_DISMISS_SECONDS, self.close_reveal)
        self.scheduler.schedule(
            ADVANCE_TIMER, ADVANCE_DELAY_SECONDS, lambda: self._commit_advance(next_index)
        )

    def _build_payload(self, current_index: int, next_index: int) -> RevealPayload:
        destination = self.definition.steps[next_index].location_id
        rule = self.definition.terminal_unlock
        unlocked = current_index >= rule.after_step_index or (
            rule.location_id is not None and destination == rule.location_id
        )
        return RevealPayload(
            current_location_id=destination,
            visited_location_ids=tuple(visited_locations(self.definition, next_index)),
            terminal_unlocked=unlocked,
        )

    def _commit_advance(self, next_index: int) -> None:
        self.close_reveal()
        self.reveal_payload = None
        self.phase = Phase.IDLE
        if next_index != self.progress.step_index:
            self._set_progress(replace(self.progress, step_index=next_index))
        LOGGER.info("Advanced to step index %s.", next_index)

    def _signal_mismatch(self) -> None:
        self.shake_active = True
        self.scheduler.schedule(SHAKE_TIMER, SHAKE_SECONDS, self._clear_shake)
        self._narrate(WrongAnswer())

    def _clear_shake(self) -> None:
        self.shake_active = False

    def _rewind(self, index: int, *, confirm: bool, action: str) -> None:
        if not confirm:
            raise ConfirmationRequired(f"Operator {action} requires explicit confirmation.")
        self.scheduler.cancel_all()
        self.reveal_open = False
        self.reveal_payload = None
        self.shake_active = False
        self.phase = Phase.IDLE
        self._set_progress(replace(self.progress, step_index=index))
        LOGGER.warning("Operator %s: step index set to %s.", action, index)

    def _set_progress(self, progress: Progress) -> None:
        self.progress = progress
        self.store.save(progress)

    def _narrate(self, event: NarrationEvent) -> Optional[str]:
        if not self.progress.narration_unlocked:
            return None
        line = self.selector.select_line(event)
        self.last_line = line
        try:
            self.narrator.speak(line, voice_options_for(event))
        except Exception as exc:
            LOGGER.warning("Narrator failed to speak: %s", exc)
        return line


__all__ = [
    "ADVANCE_DELAY_SECONDS",
    "ConfirmationRequired",
    "HuntSession",
    "Phase",
    "REVEAL_DISMISS_SECONDS",
    "RevealPayload",
    "SHAKE_SECONDS",
    "StepView",
    "SubmitOutcome",
]
