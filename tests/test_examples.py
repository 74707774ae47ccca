import asyncio

import pytest

import example_1
import example_2
import example_3
import example_4
import example_5
from deferred import ComputationFailed, State

# The examples use the real one second delay; these check the numbers they
# promise in their comments.


def test_sequential_by_default(capsys):
    timed = asyncio.run(example_1.main())

    assert timed.value == 42
    assert 2.0 <= timed.elapsed < 2.2
    assert "The answer is 42" in capsys.readouterr().out


def test_concurrent_with_eager_handles(capsys):
    timed = asyncio.run(example_2.main())

    assert timed.value == 42
    assert 1.0 <= timed.elapsed < 1.2
    out = capsys.readouterr().out
    assert "The answer is 42" in out
    assert "Completed in" in out


def test_lazily_started_handles():
    timed = asyncio.run(example_3.main())

    assert timed.value == 42
    assert 1.0 <= timed.elapsed < 1.2


def test_lazy_handles_without_start_are_sequential():
    without_start, with_await_all = asyncio.run(example_4.main())

    assert without_start.value == 42
    assert 2.0 <= without_start.elapsed < 2.2
    assert with_await_all.value == 42
    assert 1.0 <= with_await_all.elapsed < 1.2


def test_cancel_slow_work(capsys):
    handle, events = asyncio.run(example_5.cancel_slow_work(delay=0.2))

    assert handle.state is State.CANCELLED
    assert events == ["started"]
    assert "Cancelled:" in capsys.readouterr().out


def test_give_up_after_timeout():
    assert asyncio.run(example_5.give_up_after(0.05, delay=0.5)) is None
    assert asyncio.run(example_5.give_up_after(0.5, delay=0.05)) == 13


def test_failure_reaches_entry_point():
    with pytest.raises(ComputationFailed) as exc_info:
        asyncio.run(example_5.main(delay=0.05))

    assert isinstance(exc_info.value.cause, ConnectionError)
    assert "remote service unavailable" in str(exc_info.value)
