"""
Tagcache — Liveness Guard

Per-instance latency breaker. A single backend call slower than the
threshold moves the guard from ACTIVE to DEGRADED, after which the owning
cache talks only to a no-op backend. There is no way back: instances are
meant to be short-lived (one per request), and a fresh instance starts
ACTIVE again.

The guard looks at a call only after it returns, so it cannot shorten a
hung call; it only stops the following ones from reaching the store.
"""

import logging
from collections.abc import Callable
from enum import Enum

logger = logging.getLogger(__name__)

DEFAULT_FORCE_TIMEOUT = 1.0


class LivenessState(str, Enum):
    """Guard states."""

    ACTIVE = "active"
    DEGRADED = "degraded"


class LivenessGuard:
    """Forward-only ACTIVE -> DEGRADED state machine."""

    def __init__(
        self,
        threshold: float = DEFAULT_FORCE_TIMEOUT,
        on_degrade: Callable[[str, float], None] | None = None,
    ):
        """
        Args:
            threshold: Seconds a call may take before the guard trips
            on_degrade: Called once with (operation, elapsed) when the guard trips
        """
        if threshold <= 0:
            raise ValueError("threshold must be positive")

        self.threshold = threshold
        self._on_degrade = on_degrade
        self._state = LivenessState.ACTIVE
        self.tripped_by: str | None = None

    @property
    def state(self) -> LivenessState:
        return self._state

    @property
    def is_degraded(self) -> bool:
        return self._state is LivenessState.DEGRADED

    def observe(self, operation: str, elapsed: float) -> bool:
        """
        Record the duration of one backend call.

        Returns:
            True only for the call that trips the guard
        """
        if self.is_degraded or elapsed <= self.threshold:
            return False

        self._state = LivenessState.DEGRADED
        self.tripped_by = operation
        logger.warning(
            f"Cache backend call '{operation}' took {elapsed:.3f}s, switching to no-op backend",
            extra={
                "operation": operation,
                "elapsed_seconds": round(elapsed, 3),
                "threshold_seconds": self.threshold,
                "new_state": self._state.value,
            },
        )

        if self._on_degrade is not None:
            self._on_degrade(operation, elapsed)

        return True
