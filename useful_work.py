import asyncio

# Seconds of pretend work in every example.
WORK_DELAY = 1.0


async def do_something_useful_one(delay=WORK_DELAY):
    # Pretend we are calling a remote service or doing a long computation.
    # asyncio.sleep yields to the event loop, so other tasks keep running.
    await asyncio.sleep(delay)
    return 13


async def do_something_useful_two(delay=WORK_DELAY):
    await asyncio.sleep(delay)  # pretend we are doing something useful here, too
    return 29
