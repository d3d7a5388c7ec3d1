"""Interface for the time source the admission controllers wait on."""

import abc

class Clock(abc.ABC):
    """Abstract Base Class for an injectable clock.

    Times are seconds as floats; only differences between values matter.
    """

    @abc.abstractmethod
    def now(self) -> float:
        """Returns the current time."""
        pass

    @abc.abstractmethod
    async def sleep_until(self, when: float) -> None:
        """Suspends the caller until ``now() >= when``. Returns at once for past times."""
        pass

    async def sleep(self, delay: float) -> None:
        """Suspends the caller for ``delay`` seconds."""
        if delay > 0:
            await self.sleep_until(self.now() + delay)
