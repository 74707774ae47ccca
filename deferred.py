"""
deferred.py
-----------
A small task handle for one asynchronously computed value.

A `Deferred` wraps a zero-argument computation and runs it at most once as
an asyncio Task. It is created in one of two modes:

- `Start.EAGER`: the computation starts inside `create()` and runs up to its
    first suspension point before `create()` returns to the caller.
- `Start.LAZY`: nothing runs until `start()` is called, or until someone
    awaits the handle. Awaiting an unstarted lazy handle starts it on the spot,
    so awaiting two lazy handles one after another without starting them
    first runs them back to back, not concurrently.

State machine:

    CREATED -> SCHEDULED -> COMPLETED
                         -> FAILED
    CREATED | SCHEDULED  -> CANCELLED

No transition leaves a terminal state, and the first terminal transition wins.
Every method that changes state runs to completion without suspending, so
calls coming from different tasks on the same loop never interleave.

Notes:
- A failed handle that is never awaited drops its failure silently (it is only
    logged at DEBUG level). This is how fire-and-forget eager work behaves; if
    you care about the outcome, await the handle.
- Cancellation is cooperative: the running coroutine sees
    `asyncio.CancelledError` at its next `await`. Work handed to an executor
    keeps running in its worker; only its result is discarded.
"""

import asyncio
import enum
import inspect
import itertools
from concurrent.futures import Executor
from typing import Any, Callable, Generic, List, Optional, TypeVar

from log import get_logger

logger = get_logger(__name__)

T = TypeVar("T")

_ids = itertools.count(1)


class Start(str, enum.Enum):
    EAGER = "EAGER"
    LAZY = "LAZY"


class State(str, enum.Enum):
    CREATED = "CREATED"
    SCHEDULED = "SCHEDULED"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"
    CANCELLED = "CANCELLED"


TERMINAL_STATES = frozenset({State.COMPLETED, State.FAILED, State.CANCELLED})


class DeferredError(Exception):
    """Base class for everything a Deferred raises on its own account."""


class ComputationFailed(DeferredError):
    """The wrapped computation raised; the original exception is `cause`."""

    def __init__(self, handle: "Deferred", cause: BaseException):
        super().__init__(f"{handle.name} failed: {cause!r}")
        self.handle = handle
        self.cause = cause


class Cancelled(DeferredError):
    # Not an asyncio.CancelledError: awaiting a cancelled handle must not look
    # like the waiter itself being cancelled.
    def __init__(self, handle: "Deferred"):
        super().__init__(f"{handle.name} was cancelled")
        self.handle = handle


class InvalidState(DeferredError):
    """Raised by `Deferred.result()` while the handle is not terminal."""


class Deferred(Generic[T]):
    def __init__(
        self,
        mode: Start,
        computation: Callable[[], Any],
        *,
        name: Optional[str] = None,
        executor: Optional[Executor] = None,
    ):
        self.mode = Start(mode)
        self.name = name or f"deferred-{next(_ids)}"
        self._computation = computation
        self._executor = executor
        self._state = State.CREATED
        self._result = None
        self._failure = None
        self._task = None
        self._finished = asyncio.Event()
        self._callbacks = []

    def __repr__(self):
        return f"<Deferred {self.name} {self.mode.value} {self._state.value}>"

    def __await__(self):
        return self.wait().__await__()

    @property
    def state(self) -> State:
        return self._state

    @property
    def done(self) -> bool:
        return self._state in TERMINAL_STATES

    @property
    def is_active(self) -> bool:
        return self._state is State.SCHEDULED

    @property
    def is_cancelled(self) -> bool:
        return self._state is State.CANCELLED

    @property
    def failure(self) -> Optional[BaseException]:
        return self._failure

    def start(self) -> bool:
        """Schedule the computation if nobody has yet.

        Returns True only for the call that actually started it. Starting a
        handle that is already scheduled, finished or cancelled does nothing.
        Must be called with an event loop running in the current thread.
        """
        if self._state is not State.CREATED:
            return False

        loop = asyncio.get_running_loop()
        self._transition(State.SCHEDULED)
        # eager_start runs the coroutine right here, up to its first await.
        self._task = asyncio.Task(
            self._run(loop), loop=loop, name=self.name, eager_start=True
        )
        if self._state is State.CANCELLED:
            # cancel() ran during that first step, before _task was set
            self._task.cancel()
        if self._task.done():
            self._settle(self._task)
        else:
            self._task.add_done_callback(self._settle)
        return True

    async def wait(self) -> T:
        """Suspend until the handle is terminal and return its value.

        An unstarted lazy handle is started first. Raises `ComputationFailed`
        if the computation raised and `Cancelled` if the handle was cancelled.
        Cancelling the waiting task leaves the handle itself running.
        """
        if self._state is State.CREATED:
            logger.debug("%s awaited before start(), starting it now", self.name)
            self.start()
        if not self.done:
            await self._finished.wait()
        return self.result()

    def cancel(self) -> bool:
        if self.done:
            return False

        self._transition(State.CANCELLED)
        if self._task is not None:
            self._task.cancel()
        self._finish()
        return True

    def result(self) -> T:
        """Return the value without suspending."""
        if self._state is State.COMPLETED:
            return self._result
        if self._state is State.FAILED:
            raise ComputationFailed(self, self._failure) from self._failure
        if self._state is State.CANCELLED:
            raise Cancelled(self)
        raise InvalidState(
            f"{self.name} is {self._state.value}, its result is not available yet"
        )

    def add_done_callback(self, fn: Callable[["Deferred"], Any]) -> None:
        """Call `fn(handle)` once the handle is terminal.

        Callbacks run synchronously on the terminal transition, or right away
        if the handle has already finished.
        """
        if self.done:
            self._invoke(fn)
        else:
            self._callbacks.append(fn)

    async def _run(self, loop: asyncio.AbstractEventLoop):
        if self._executor is not None:
            return await loop.run_in_executor(self._executor, self._computation)

        value = self._computation()
        if inspect.isawaitable(value):
            value = await value
        return value

    def _settle(self, task: asyncio.Task):
        # Always retrieve the exception so asyncio never reports it as lost.
        cause = None if task.cancelled() else task.exception()

        if self.done:
            # cancel() got here first
            return

        if task.cancelled():
            self._transition(State.CANCELLED)
        elif cause is not None:
            self._failure = cause
            self._transition(State.FAILED)
        else:
            self._result = task.result()
            self._transition(State.COMPLETED)
        self._finish()

    def _transition(self, new_state: State):
        logger.debug("%s: %s -> %s", self.name, self._state.value, new_state.value)
        if new_state is State.FAILED:
            logger.debug("%s failed with %r", self.name, self._failure)
        self._state = new_state

    def _finish(self):
        self._finished.set()
        callbacks, self._callbacks = self._callbacks, []
        for fn in callbacks:
            self._invoke(fn)

    def _invoke(self, fn):
        try:
            fn(self)
        except Exception:
            logger.exception("done callback %r of %s raised", fn, self.name)


def create(
    mode: Start,
    computation: Callable[[], Any],
    *,
    name: Optional[str] = None,
    executor: Optional[Executor] = None,
) -> Deferred:
    """Make a handle for `computation` and, in EAGER mode, start it.

    `computation` takes no arguments. It may be a plain function or return an
    awaitable (an `async def` function, a lambda around a coroutine call, ...).
    With an `executor` it is run there through `loop.run_in_executor` instead
    of on the event loop.
    """
    handle = Deferred(mode, computation, name=name, executor=executor)
    if handle.mode is Start.EAGER:
        handle.start()
    return handle


async def await_all(*handles: Deferred) -> List[Any]:
    """Start every handle, then wait for each in order.

    Starting them all before the first await is what keeps lazy handles
    concurrent. The first failure in argument order is raised; the other
    handles are left alone.
    """
    for handle in handles:
        handle.start()
    return [await handle for handle in handles]
