"""Defer the annotation pass until the document has finished rendering.

The gate probes for a rendering sentinel on a fixed interval. The first
successful probe invokes the callback once; a probe that succeeds right away
invokes it synchronously without sleeping. Unlike a bare interval timer the
gate has explicit limits: after ``timeout_s`` seconds or ``max_attempts``
probes it stops in ``GAVE_UP`` instead of polling forever.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from enum import Enum
from typing import Generic, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class GateState(str, Enum):
    WAITING = "waiting"
    READY = "ready"
    INVOKED = "invoked"
    GAVE_UP = "gave_up"


_TERMINAL = (GateState.INVOKED, GateState.GAVE_UP)


class ReadinessGate(Generic[T]):
    def __init__(
        self,
        probe: Callable[[], bool],
        on_ready: Callable[[], T],
        *,
        interval_s: float = 0.1,
        timeout_s: float | None = None,
        max_attempts: int | None = None,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if interval_s < 0:
            raise ValueError("interval_s must be >= 0")
        if max_attempts is not None and max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")
        self._probe = probe
        self._on_ready = on_ready
        self.interval_s = interval_s
        self.timeout_s = timeout_s
        self.max_attempts = max_attempts
        self._sleep = sleep
        self._clock = clock

        self.state = GateState.WAITING
        self.attempts = 0
        self.result: T | None = None
        self._started_at: float | None = None

    @property
    def done(self) -> bool:
        return self.state in _TERMINAL

    def _limits_reached(self) -> bool:
        if self.max_attempts is not None and self.attempts >= self.max_attempts:
            return True
        if self.timeout_s is not None and self._started_at is not None:
            return self._clock() - self._started_at >= self.timeout_s
        return False

    def tick(self) -> GateState:
        """Probe once. No-op once the gate is INVOKED or GAVE_UP."""
        if self.state is not GateState.WAITING:
            return self.state
        if self._started_at is None:
            self._started_at = self._clock()

        self.attempts += 1
        if self._probe():
            self.state = GateState.READY
            try:
                self.result = self._on_ready()
            finally:
                # Even a failing callback must never run a second time.
                self.state = GateState.INVOKED
            return self.state

        if self._limits_reached():
            self.state = GateState.GAVE_UP
            logger.warning(
                "Document never became ready after %d probes",
                self.attempts,
                extra={"attempts": self.attempts, "timeout_s": self.timeout_s},
            )
        return self.state

    def wait(self) -> GateState:
        """Poll until the callback ran or a limit was hit."""
        while self.tick() is GateState.WAITING:
            self._sleep(self.interval_s)
        return self.state
