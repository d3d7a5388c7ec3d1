"""Wall clock used by the admission controllers outside of tests."""

import asyncio
import time

from nationscript.domain.interfaces.clock import Clock

class SystemClock(Clock):
    """Clock backed by ``time.time`` and ``asyncio.sleep``."""

    def now(self) -> float:
        return time.time()

    async def sleep_until(self, when: float) -> None:
        delay = when - self.now()
        if delay > 0:
            await asyncio.sleep(delay)
