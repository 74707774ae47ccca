import asyncio

from deferred import Start, create
from log import configure_logging
from timing import measure
from useful_work import WORK_DELAY, do_something_useful_one, do_something_useful_two


async def lazily_started(delay=WORK_DELAY):
    # Execution flow (lazy handles, explicit start):
    # 1. create(Start.LAZY, ...) only defines the work. Nothing runs yet, so
    #    the caller can do some other computation first.
    # 2. one.start() and two.start() schedule both computations; from here on
    #    they overlap exactly like eager handles.
    # 3. awaiting both returns after ~delay.
    one = create(Start.LAZY, lambda: do_something_useful_one(delay))
    two = create(Start.LAZY, lambda: do_something_useful_two(delay))

    # some computation

    one.start()  # start the first one
    two.start()  # start the second one
    return await one + await two


async def main(delay=WORK_DELAY):
    timed = await measure(lazily_started(delay))
    print(f"The answer is {timed.value}")
    print(f"Completed in {timed.elapsed_ms} ms")
    return timed


if __name__ == "__main__":
    configure_logging()
    asyncio.run(main())


# Output:
# The answer is 42
# Completed in 1005 ms
#
# ---------------------------------------------------------------------------
# Notes: why start() matters
# ---------------------------------------------------------------------------
#
# - A lazy handle hands control of *when* the work begins to the programmer.
#   Here we start `one` and then `two`, and only then await each of them.
# - If we skipped the start() calls and just awaited, `await one` would start
#   `one` and wait for it to finish before `two` was even started. The result
#   is still 42 but it takes twice as long; example_4.py shows exactly that.
# - `deferred.await_all(one, two)` starts every handle before awaiting any of
#   them, which avoids the trap without spelling out start() by hand.
# - A lazy handle replaces a "compute on first use" helper when computing the
#   value involves awaiting something.
