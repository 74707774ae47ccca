"""Wall-clock timing for awaitables and plain calls.

Both helpers hand the elapsed time back next to the result instead of
printing it or storing it anywhere, so several measurements can run in the
same process (or at the same time) without stepping on each other.
"""

import time
from typing import Any, Awaitable, Callable, NamedTuple


class Timed(NamedTuple):
    value: Any
    elapsed: float  # seconds

    @property
    def elapsed_ms(self) -> int:
        return round(self.elapsed * 1000)


async def measure(awaitable: Awaitable) -> Timed:
    t0 = time.perf_counter()
    value = await awaitable
    t1 = time.perf_counter()
    return Timed(value, t1 - t0)


def measure_sync(func: Callable, *args, **kwargs) -> Timed:
    t0 = time.perf_counter()
    value = func(*args, **kwargs)
    t1 = time.perf_counter()
    return Timed(value, t1 - t0)
