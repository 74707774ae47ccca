import asyncio

from log import configure_logging
from timing import measure
from useful_work import WORK_DELAY, do_something_useful_one, do_something_useful_two


async def sequential(delay=WORK_DELAY):
    # Execution flow (sequential by default):
    # 1. await do_something_useful_one() -> runs until its sleep and waits
    #    for it to finish before this line returns
    # 2. only then do_something_useful_two() is even called
    # Code inside a coroutine is sequential, just like ordinary code.
    # Total time ~ delay + delay.
    one = await do_something_useful_one(delay)
    two = await do_something_useful_two(delay)
    return one + two


async def main(delay=WORK_DELAY):
    timed = await measure(sequential(delay))
    print(f"The answer is {timed.value}")
    print(f"Completed in {timed.elapsed_ms} ms")
    return timed


if __name__ == "__main__":
    configure_logging()
    asyncio.run(main())


# Output:
# The answer is 42
# Completed in 2003 ms
#
# Execution diagram :
#
# Time 0s                         1s                         2s
# |------------------------------|---------------------------|
# useful_one: [run -> sleep]-----finish
# useful_two:                    [run -> sleep]--------------finish
#
# Nothing else is scheduled while the first sleep is in progress, so the
# event loop just idles. If the two calls don't depend on each other, see
# example_2.py for running them concurrently.
