import asyncio

from deferred import Start, create
from log import configure_logging
from timing import measure
from useful_work import WORK_DELAY, do_something_useful_one, do_something_useful_two


async def concurrent_eager(delay=WORK_DELAY):
    # Execution flow (eager handles):
    # 1. create(Start.EAGER, ...) starts the computation right away. It runs
    #    until it hits `await asyncio.sleep(delay)` and then hands control back,
    #    so `create` returns while the work is still "in flight".
    # 2. the second handle is created the same way; both sleeps now overlap.
    # 3. awaiting `one` suspends main until it finishes; by then `two` has
    #    been sleeping just as long, so awaiting it is almost instant.
    # Total time ~ max(delay, delay) = delay.
    one = create(Start.EAGER, lambda: do_something_useful_one(delay))
    two = create(Start.EAGER, lambda: do_something_useful_two(delay))
    return await one + await two


async def main(delay=WORK_DELAY):
    timed = await measure(concurrent_eager(delay))
    print(f"The answer is {timed.value}")
    print(f"Completed in {timed.elapsed_ms} ms")
    return timed


if __name__ == "__main__":
    configure_logging()
    asyncio.run(main())


# Output:
# The answer is 42
# Completed in 1004 ms
#
# Execution diagram :
#
# Time 0s                         1s
# |------------------------------|
# one: [run -> sleep]------------finish
# two: [run -> sleep]------------finish
#
# ---------------------------------------------------------------------------
# Notes: a handle is a future you can also cancel
# ---------------------------------------------------------------------------
#
# - Concurrency is always explicit. Calling `do_something_useful_one()` on
#   its own only builds a coroutine object; wrapping it in an eager handle is
#   what gets it running next to the caller.
# - A `Deferred` is a light, non-blocking future: `await handle` gives you the
#   value later, and `handle.cancel()` stops it at its next suspension point.
# - Awaiting the same handle twice returns the same value; the computation
#   never runs a second time.
# - Fire-and-forget footgun: if an eager handle fails and nobody awaits it,
#   the failure is dropped. Always await handles whose outcome matters.
