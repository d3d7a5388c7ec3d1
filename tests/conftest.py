import asyncio
import heapq

import pytest
from typer.testing import CliRunner

from nationscript.domain.interfaces.clock import Clock
from nationscript.infrastructure.config.settings import clear_test_config

class FakeClock(Clock):
    """Virtual clock: sleeping tasks are woken in time order, without real waiting.

    Time only moves when every task driven by :meth:`run` is asleep on the
    clock; it then jumps to the earliest wake-up time.
    """

    def __init__(self, start: float = 1000.0):
        self.current = start
        self.wake_times = []
        self._sleepers = []
        self._seq = 0

    def now(self) -> float:
        return self.current

    def advance(self, seconds: float) -> None:
        self.current += seconds

    async def sleep_until(self, when: float) -> None:
        self.wake_times.append(when)
        if when <= self.current:
            await asyncio.sleep(0)
            return
        future = asyncio.get_running_loop().create_future()
        heapq.heappush(self._sleepers, (when, self._seq, future))
        self._seq += 1
        await future

    async def _drive(self, tasks):
        for _ in range(100000):
            await asyncio.sleep(0)
            pending = [t for t in tasks if not t.done()]
            if not pending:
                return
            if self._sleepers and len(self._sleepers) >= len(pending):
                when, _, future = heapq.heappop(self._sleepers)
                self.current = max(self.current, when)
                future.set_result(None)
        raise RuntimeError("FakeClock: tasks never finished")

    def run(self, *coros):
        """Runs the coroutines concurrently and returns their results in order."""
        async def main():
            tasks = [asyncio.ensure_future(c) for c in coros]
            await self._drive(tasks)
            return [t.result() for t in tasks]
        results = asyncio.run(main())
        return results[0] if len(results) == 1 else results

@pytest.fixture
def clock():
    """Provides a FakeClock starting at t=1000."""
    return FakeClock()

@pytest.fixture(scope="session")
def runner():
    """Provides a Typer CliRunner instance."""
    return CliRunner()

@pytest.fixture(autouse=True)
def reset_test_config(monkeypatch):
    """Keeps user environment and test overrides from leaking into tests."""
    monkeypatch.delenv("NATIONSCRIPT_USER_AGENT", raising=False)
    monkeypatch.delenv("NATIONSCRIPT_TG_CLIENT", raising=False)
    clear_test_config()
    yield
    clear_test_config()
