"""Primary admission controller for API calls.

The API allows a fixed number of calls per rolling window (50 per 30
seconds) and reports its own view of the window in ``RateLimit-*`` headers.
One slot per window is kept free for telegram traffic. Calls beyond the
window's capacity are queued for the next window and released with a
small stagger so a full queue does not hit the server all at once.
"""

import logging
import math
from typing import Mapping, Optional

from nationscript.domain.events.api_events import ApiCallDeferred, QuotaRecalibrated, dispatch_event
from nationscript.domain.interfaces.clock import Clock
from nationscript.domain.models.common import RateLimitPolicy
from nationscript.infrastructure.resilience.clock import SystemClock

logger = logging.getLogger(__name__)

DEFAULT_WINDOW_SECONDS = 30.0
DEFAULT_CAPACITY = 49           # 50 per window, minus one slot reserved for telegrams
DEFAULT_RESERVED_SLOTS = 1
DEFAULT_SAFETY_BUFFER_SECONDS = 0.2
DEFAULT_STAGGER_SECONDS = 0.25  # At most four queued calls released per second
DEFAULT_CAPACITY_FLOOR = 1

def _parse_number(value: object) -> Optional[float]:
    if value is None:
        return None
    try:
        number = float(str(value).strip())
    except (TypeError, ValueError):
        return None
    if not math.isfinite(number):
        return None
    return number

class RateLimiter:
    """Window limiter recalibrated from the server's rate limit headers.

    State is owned by the instance; share one instance between every caller
    that talks to the same API host.
    """

    def __init__(
        self,
        clock: Optional[Clock] = None,
        window_seconds: float = DEFAULT_WINDOW_SECONDS,
        capacity: int = DEFAULT_CAPACITY,
        safety_buffer: float = DEFAULT_SAFETY_BUFFER_SECONDS,
        stagger: float = DEFAULT_STAGGER_SECONDS,
        reserved_slots: int = DEFAULT_RESERVED_SLOTS,
        capacity_floor: int = DEFAULT_CAPACITY_FLOOR,
    ):
        """Initializes the rate limiter.

        Args:
            clock: Time source to wait on (defaults to the system clock).
            window_seconds: Length of one admission window.
            capacity: Calls admitted per window before queueing starts.
            safety_buffer: Extra seconds added to every window.
            stagger: Delay between releases of consecutive queued calls.
            reserved_slots: Slots of the server's limit kept out of capacity.
            capacity_floor: Lowest capacity a header recalibration may set.
        """
        if capacity < 1:
            raise ValueError("capacity must be at least 1")
        self.clock = clock or SystemClock()
        self.window_length = float(window_seconds)
        self.capacity = int(capacity)
        self.safety_buffer = float(safety_buffer)
        self.stagger = float(stagger)
        self.reserved_slots = int(reserved_slots)
        self.capacity_floor = max(1, int(capacity_floor))

        self.window_expires_at = 0.0
        self.sent_in_window = 0
        self.queued_count = 0
        self.server_retry_at = 0.0
        logger.info(f"RateLimiter initialized: {self.capacity} requests / {self.window_length} seconds")

    @classmethod
    def from_policy(cls, policy: RateLimitPolicy, clock: Optional[Clock] = None) -> "RateLimiter":
        return cls(
            clock=clock,
            window_seconds=policy['window_seconds'],
            capacity=policy['capacity'],
            safety_buffer=policy['safety_buffer_seconds'],
            stagger=policy['stagger_seconds'],
        )

    async def acquire(self) -> None:
        """Waits until one more call may be sent and registers it."""
        now = self.clock.now()

        if now > self.window_expires_at:
            self.window_expires_at = now + self.window_length + self.safety_buffer
            self.sent_in_window = 1
            self.queued_count = 0
            logger.debug(f"New rate limit window until {self.window_expires_at:.2f}")
            return

        if self.sent_in_window < self.capacity:
            self.sent_in_window += 1
            return

        # Window is full: queue up for the next one. The position and the
        # window roll-over must be taken without suspending in between.
        while True:
            position = self.queued_count % self.capacity
            if position == 0:
                self.window_expires_at += self.window_length + self.safety_buffer
            self.queued_count += 1
            wake_at = self.window_expires_at - self.window_length
            logger.info(f"Rate limit reached. Queued at position {self.queued_count}, "
                        f"waiting {max(0.0, wake_at - now):.2f} seconds.")
            dispatch_event(ApiCallDeferred(
                limiter='primary',
                wait_time_seconds=max(0.0, wake_at - now),
                queue_position=self.queued_count,
            ))
            await self.clock.sleep_until(wake_at)
            self.queued_count -= 1
            now = self.clock.now()
            if self.server_retry_at <= now:
                break
            logger.debug(f"Server asked to retry at {self.server_retry_at:.2f}; re-queueing.")

        self.sent_in_window = self.sent_in_window % self.capacity + 1
        await self.clock.sleep(position * self.stagger)

    def update(self, headers: Mapping[str, str]) -> None:
        """Recalibrates the window from a response's rate limit headers.

        Every header is applied on its own; missing or malformed values are
        skipped. Never raises.
        """
        try:
            lowered = {str(key).lower(): value for key, value in headers.items()}
        except (AttributeError, TypeError):
            logger.debug(f"Ignoring rate limit headers of type {type(headers).__name__}")
            return

        now = self.clock.now()
        changed = False

        limit = _parse_number(lowered.get('ratelimit-limit'))
        if limit is not None:
            capacity = max(self.capacity_floor, int(limit) - self.reserved_slots)
            if capacity != self.capacity:
                self.capacity = capacity
                changed = True

        remaining = _parse_number(lowered.get('ratelimit-remaining'))
        if remaining is not None:
            server_limit = int(limit) if limit is not None else self.capacity + self.reserved_slots
            server_sent = server_limit - int(remaining)
            if server_sent > self.sent_in_window:
                self.sent_in_window = server_sent
                changed = True

        reset = _parse_number(lowered.get('ratelimit-reset'))
        if reset is not None and now + reset > self.window_expires_at:
            self.window_expires_at = now + reset
            changed = True

        retry_after = _parse_number(lowered.get('retry-after'))
        if retry_after is not None and now + retry_after > self.server_retry_at:
            self.server_retry_at = now + retry_after
            changed = True

        if changed:
            dispatch_event(QuotaRecalibrated(
                capacity=self.capacity,
                sent_in_window=self.sent_in_window,
                window_expires_at=self.window_expires_at,
                server_retry_at=self.server_retry_at or None,
            ))
