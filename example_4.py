import asyncio

from deferred import Start, await_all, create
from log import configure_logging
from timing import measure
from useful_work import WORK_DELAY, do_something_useful_one, do_something_useful_two


async def lazy_without_start(delay=WORK_DELAY):
    # Execution flow (lazy handles, no start):
    # 1. both handles are defined but neither is running.
    # 2. `await one` notices `one` was never started, starts it and waits the
    #    full delay for it.
    # 3. only now does `await two` start `two`, and we wait another delay.
    # Total time ~ delay + delay: the concurrency we defined is gone.
    one = create(Start.LAZY, lambda: do_something_useful_one(delay))
    two = create(Start.LAZY, lambda: do_something_useful_two(delay))
    return await one + await two


async def lazy_with_await_all(delay=WORK_DELAY):
    # await_all starts every handle before it awaits the first one.
    one = create(Start.LAZY, lambda: do_something_useful_one(delay))
    two = create(Start.LAZY, lambda: do_something_useful_two(delay))
    return sum(await await_all(one, two))


async def main(delay=WORK_DELAY):
    timed = await measure(lazy_without_start(delay))
    print(f"Without start(): the answer is {timed.value}")
    print(f"Completed in {timed.elapsed_ms} ms")

    fixed = await measure(lazy_with_await_all(delay))
    print(f"With await_all(): the answer is {fixed.value}")
    print(f"Completed in {fixed.elapsed_ms} ms")
    return timed, fixed


if __name__ == "__main__":
    configure_logging()
    asyncio.run(main())


# Output:
# Without start(): the answer is 42
# Completed in 2006 ms
# With await_all(): the answer is 42
# Completed in 1003 ms
#
# Execution diagram (without start) :
#
# Time 0s                         1s                         2s
# |------------------------------|---------------------------|
# one: [started by await -> sleep]-finish
# two:                           [started by await -> sleep]-finish
#
# This is not a bug in the handle: "await starts an unstarted lazy handle" is
# the rule that keeps lazy handles usable without an explicit start(). It is
# just not the intended way to use them when you want concurrency.
