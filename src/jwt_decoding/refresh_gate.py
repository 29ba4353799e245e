"""Throttling for JWKS reloads on unknown ``kid`` values.

When a token names a ``kid`` that the current key set does not contain, the
JWKS key finder may ask its loader for a fresh set. Left unchecked, a stream
of tokens with random ``kid`` values turns into a stream of reloads. The gate
allows at most one reload per interval and counts the denied attempts.
"""

from __future__ import annotations

import logging
import threading
import time
from typing import Final

logger = logging.getLogger(__name__)

_DEFAULT_INTERVAL: Final[float] = 10
"""Default minimum interval between reloads in seconds."""

_DEFAULT_ALERT_THRESHOLD: Final[int] = 5
"""Default number of denials (per interval) before a warning is logged."""


class RefreshGate:
    """Thread-safe rate limiter for key set reloads.

    Thread Safety:
        All state is guarded by an internal lock, so one gate can be shared
        by every decoder of a multi-threaded application.

    Attributes:
        _min_interval: Minimum seconds between allowed reloads.
        _alert_threshold: Denials before warning.
        _lock: Thread synchronization lock.
        _next_allowed_at: Unix timestamp when the next reload is allowed.
        _denied: Count of denied attempts since the last allowed one.
    """

    def __init__(
        self,
        min_interval: float = _DEFAULT_INTERVAL,
        alert_threshold: int = _DEFAULT_ALERT_THRESHOLD,
    ) -> None:
        """Initialize the gate.

        Raises:
            ValueError: If min_interval is not positive or alert_threshold < 1.
        """
        if min_interval <= 0:
            raise ValueError(f"min_interval must be positive, got {min_interval}")
        if alert_threshold < 1:
            raise ValueError(f"alert_threshold must be at least 1, got {alert_threshold}")

        self._min_interval = min_interval
        self._alert_threshold = alert_threshold

        self._lock = threading.Lock()
        self._next_allowed_at: float = 0.0
        self._denied: int = 0

    @property
    def denied(self) -> int:
        """Denied attempts since the last allowed reload."""
        with self._lock:
            return self._denied

    def allow(self) -> bool:
        """Return True if a reload may happen now, and start a new interval.

        Returns False when called again within the interval. Reaching the
        alert threshold logs a warning once per threshold crossing.
        """
        now = time.time()

        with self._lock:
            if now < self._next_allowed_at:
                self._denied += 1
                if self._denied == self._alert_threshold:
                    logger.warning(
                        "JWKS reload throttled %d times within %.0fs",
                        self._denied,
                        self._min_interval,
                    )
                return False

            self._next_allowed_at = now + self._min_interval
            self._denied = 0
            return True
