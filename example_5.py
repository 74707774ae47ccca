import asyncio

from deferred import Cancelled, Start, create
from log import configure_logging, get_logger
from useful_work import WORK_DELAY, do_something_useful_one

logger = get_logger(__name__)


async def slow_report(events, delay=WORK_DELAY):
    events.append("started")
    await asyncio.sleep(delay)  # cancellation lands here
    events.append("reported")
    return "report"


async def cancel_slow_work(delay=WORK_DELAY):
    # Execution flow (cooperative cancellation):
    # 1. the eager handle starts slow_report, which records "started" and
    #    goes to sleep.
    # 2. we cancel it while it sleeps. The handle is CANCELLED right away and
    #    the task gets asyncio.CancelledError inside asyncio.sleep, so
    #    "reported" is never recorded.
    # 3. awaiting the handle raises Cancelled without running anything again.
    events = []
    handle = create(Start.EAGER, lambda: slow_report(events, delay))
    await asyncio.sleep(delay / 10)
    handle.cancel()
    try:
        await handle
    except Cancelled as exc:
        print(f"Cancelled: {exc}")
    return handle, events


async def give_up_after(timeout, delay=WORK_DELAY):
    # Timeouts are not built into the handle. Race the await against a timer
    # with asyncio.wait_for and cancel the handle yourself if the timer wins;
    # timing out only cancels the waiter, not the handle.
    handle = create(Start.EAGER, lambda: do_something_useful_one(delay))
    try:
        return await asyncio.wait_for(handle.wait(), timeout)
    except TimeoutError:
        logger.warning("%s took longer than %.2fs, cancelling it", handle.name, timeout)
        handle.cancel()
        return None


async def failing_service(delay=WORK_DELAY):
    await asyncio.sleep(delay)
    raise ConnectionError("remote service unavailable")


async def main(delay=WORK_DELAY):
    await cancel_slow_work(delay)
    await give_up_after(delay / 2, delay)

    # The failure surfaces at `await two` as ComputationFailed (the original
    # ConnectionError is its cause). Nothing catches it, so asyncio.run
    # re-raises it and the script exits with a non-zero status.
    one = create(Start.EAGER, lambda: do_something_useful_one(delay))
    two = create(Start.EAGER, lambda: failing_service(delay))
    print(f"The answer is {await one + await two}")


if __name__ == "__main__":
    configure_logging()
    asyncio.run(main())


# Output:
# Cancelled: deferred-1 was cancelled
# [..] WARNING  deferred-2 took longer than 0.50s, cancelling it
# Traceback (most recent call last):
#   ...
# ConnectionError: remote service unavailable
#
# The above exception was the direct cause of the following exception:
#   ...
# deferred.ComputationFailed: deferred-4 failed: ConnectionError('remote service unavailable')
#
# ---------------------------------------------------------------------------
# Notes: failures and cancellation
# ---------------------------------------------------------------------------
#
# - A failing handle does not touch other handles: `one` above still
#   completes normally. Retrying is up to the caller; create a new handle.
# - Every await of a failed handle raises ComputationFailed with the same
#   cause, and the handle never runs its computation again.
# - If `two` had never been awaited, its ConnectionError would have been
#   dropped without a word. That is the price of fire-and-forget work.
# - Cancellation only takes effect where the computation awaits something.
#   A coroutine that never awaits can't be interrupted, and work running in
#   an executor keeps going in its worker; only the result is thrown away.
