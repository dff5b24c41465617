"""Per-tenant fixed-window quota tracking."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum

logger = logging.getLogger(__name__)

Clock = Callable[[], float]


class QuotaPolicy(str, Enum):
    """Independent quota pools."""

    STANDARD = "standard"
    BULK = "bulk"


@dataclass
class QuotaWindow:
    tenant_id: str
    count: int
    window_start: float
    max_count: int
    window_length: float

    @property
    def resets_at(self) -> float:
        return self.window_start + self.window_length


@dataclass(frozen=True)
class QuotaStatus:
    """Result of a combined allow/remaining/reset check."""

    policy: QuotaPolicy
    allowed: bool
    remaining: int
    reset_at: float


class QuotaTracker:
    """Fixed-window request counter keyed by tenant.

    A window opens on a tenant's first request (count = 1) and is replaced
    once ``now >= window_start + window_length``. Inside a window a request
    is allowed while ``count < max_count``; denied requests do not count.
    Bursts of up to ``2 * max_count`` across a window edge are accepted.
    """

    def __init__(
        self,
        policy: QuotaPolicy,
        max_count: int,
        window_seconds: float = 3600,
        clock: Clock = time.time,
    ) -> None:
        if max_count < 1:
            raise ValueError("max_count must be >= 1")
        if window_seconds <= 0:
            raise ValueError("window_seconds must be > 0")
        self.policy = policy
        self.max_count = max_count
        self.window_seconds = window_seconds
        self._clock = clock
        self._windows: dict[str, QuotaWindow] = {}

    def _live_window(self, tenant_id: str, now: float) -> QuotaWindow | None:
        window = self._windows.get(tenant_id)
        if window is None or now >= window.resets_at:
            return None
        return window

    def is_allowed(self, tenant_id: str) -> bool:
        """Consume one request for *tenant_id* if the window has room."""
        now = self._clock()
        window = self._live_window(tenant_id, now)
        if window is None:
            self._windows[tenant_id] = QuotaWindow(
                tenant_id=tenant_id,
                count=1,
                window_start=now,
                max_count=self.max_count,
                window_length=self.window_seconds,
            )
            return True
        if window.count >= window.max_count:
            return False
        window.count += 1
        return True

    def remaining(self, tenant_id: str) -> int:
        """Requests left in the tenant's current window."""
        window = self._live_window(tenant_id, self._clock())
        if window is None:
            return self.max_count
        return max(0, window.max_count - window.count)

    def reset_time(self, tenant_id: str) -> float:
        """Epoch seconds when the current window ends (``now`` if none is live)."""
        now = self._clock()
        window = self._live_window(tenant_id, now)
        return window.resets_at if window is not None else now

    def check(self, tenant_id: str) -> QuotaStatus:
        """Consume a request and report the resulting quota state."""
        allowed = self.is_allowed(tenant_id)
        status = QuotaStatus(
            policy=self.policy,
            allowed=allowed,
            remaining=self.remaining(tenant_id),
            reset_at=self.reset_time(tenant_id),
        )
        if not allowed:
            logger.warning(
                "Quota exceeded for %s (%s policy, resets at %.0f)",
                tenant_id, self.policy.value, status.reset_at,
            )
        return status

    def peek(self, tenant_id: str) -> QuotaStatus:
        """Report quota state without consuming a request."""
        remaining = self.remaining(tenant_id)
        return QuotaStatus(
            policy=self.policy,
            allowed=remaining > 0,
            remaining=remaining,
            reset_at=self.reset_time(tenant_id),
        )

    def cleanup(self) -> int:
        """Remove windows that have fully elapsed. Returns count removed."""
        now = self._clock()
        expired = [t for t, w in self._windows.items() if now >= w.resets_at]
        for tenant_id in expired:
            del self._windows[tenant_id]
        return len(expired)

    def stats(self) -> dict:
        return {
            "policy": self.policy.value,
            "max_count": self.max_count,
            "window_seconds": self.window_seconds,
            "tracked_tenants": len(self._windows),
        }

    def __len__(self) -> int:
        return len(self._windows)
