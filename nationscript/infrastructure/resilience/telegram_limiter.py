"""Secondary admission controller for telegram calls.

The telegram endpoint is not a bucket: it simply requires enough time to
pass since the previous telegram of the same kind.
"""

import logging
from typing import Dict, Optional

from nationscript.domain.events.api_events import ApiCallDeferred, dispatch_event
from nationscript.domain.interfaces.clock import Clock
from nationscript.domain.models.common import CallClass
from nationscript.infrastructure.resilience.clock import SystemClock

logger = logging.getLogger(__name__)

DEFAULT_COOLDOWNS: Dict[CallClass, float] = {
    CallClass.TELEGRAM: 30.0,
    CallClass.RECRUITMENT: 180.0,
}
DEFAULT_MARGIN_SECONDS = 0.2

class TelegramRateLimiter:
    """Cooldown limiter keyed by call class."""

    def __init__(
        self,
        clock: Optional[Clock] = None,
        cooldowns: Optional[Dict[CallClass, float]] = None,
        margin: float = DEFAULT_MARGIN_SECONDS,
    ):
        self.clock = clock or SystemClock()
        self.cooldowns = dict(DEFAULT_COOLDOWNS if cooldowns is None else cooldowns)
        self.margin = float(margin)
        self.last_call_at: Dict[CallClass, float] = {}

    async def acquire(self, call_class: CallClass) -> None:
        """Waits until a call of ``call_class`` may be sent.

        The slot is booked before waiting, so concurrent callers line up one
        cooldown apart.

        Raises:
            ValueError: If the call class has no configured cooldown.
        """
        call_class = CallClass(call_class)
        if call_class not in self.cooldowns:
            raise ValueError(f"No cooldown configured for call class '{call_class.value}'")

        now = self.clock.now()
        last = self.last_call_at.get(call_class)
        wait = 0.0 if last is None else last + self.cooldowns[call_class] - now
        self.last_call_at[call_class] = now + max(wait, 0.0) + self.margin

        if wait > 0:
            logger.info(f"Telegram cooldown ({call_class.value}): waiting {wait:.2f} seconds.")
            dispatch_event(ApiCallDeferred(limiter=call_class.value, wait_time_seconds=wait))
            await self.clock.sleep(wait)
