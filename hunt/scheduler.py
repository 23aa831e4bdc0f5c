"""Deadline-based timers evaluated explicitly by the owner."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Callable, Optional

LOGGER = logging.getLogger(__name__)

Clock = Callable[[], float]


@dataclass
class TimerHandle:
    """A named callback due at an absolute clock reading."""

    name: str
    deadline: float
    callback: Callable[[], None]
    cancelled: bool = False

    def cancel(self) -> None:
        self.cancelled = True


class DeadlineScheduler:
    """
    Hold named deadlines and fire them when :meth:`run_due` observes they passed.

    Nothing runs in the background: callbacks only execute inside
    ``run_due``. Scheduling a name that is already pending replaces it.
    After :meth:`dispose` every pending timer is cancelled and new ones are
    returned already cancelled, so no callback can fire on a torn-down owner.
    """

    def __init__(self, clock: Optional[Clock] = None) -> None:
        self._clock: Clock = clock or time.monotonic
        self._timers: dict[str, TimerHandle] = {}
        self._disposed = False

    @property
    def disposed(self) -> bool:
        return self._disposed

    def now(self) -> float:
        return self._clock()

    def schedule(self, name: str, delay: float, callback: Callable[[], None]) -> TimerHandle:
        """Arrange for ``callback`` to run ``delay`` seconds from now."""
        handle = TimerHandle(name=name, deadline=self._clock() + max(0.0, delay), callback=callback)
        if self._disposed:
            LOGGER.debug("Scheduler disposed; timer '%s' dropped.", name)
            handle.cancel()
            return handle
        previous = self._timers.get(name)
        if previous is not None:
            previous.cancel()
        self._timers[name] = handle
        return handle

    def cancel(self, name: str) -> None:
        handle = self._timers.pop(name, None)
        if handle is not None:
            handle.cancel()

    def cancel_all(self) -> None:
        for handle in self._timers.values():
            handle.cancel()
        self._timers.clear()

    def deadline(self, name: str) -> Optional[float]:
        """Return the absolute deadline of a pending timer, if any."""
        handle = self._timers.get(name)
        return handle.deadline if handle is not None else None

    def pending(self) -> list[str]:
        return sorted(self._timers, key=lambda key: self._timers[key].deadline)

    def run_due(self, now: Optional[float] = None) -> list[str]:
        """Fire every timer whose deadline has passed, earliest first."""
        if self._disposed:
            return []
        current = self._clock() if now is None else now
        due = sorted(
            (handle for handle in self._timers.values() if handle.deadline <= current),
            key=lambda handle: handle.deadline,
        )
        fired: list[str] = []
        for handle in due:
            # A callback may cancel or replace timers that were also due.
            if handle.cancelled or self._timers.get(handle.name) is not handle:
                continue
            del self._timers[handle.name]
            handle.callback()
            fired.append(handle.name)
            if self._disposed:
                break
        return fired

    def dispose(self) -> None:
        self.cancel_all()
        self._disposed = True


__all__ = ["Clock", "DeadlineScheduler", "TimerHandle"]
