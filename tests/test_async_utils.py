"""Tests for async utilities and signal handling."""

import asyncio
import builtins
import concurrent.futures
import os
import signal
import sys

import pytest

from pipectl.core.async_utils import (
    InterruptToken,
    TaskScope,
    race_interrupt,
    run_sync,
    run_with_timeout,
)
from pipectl.core.exceptions import DeployInterrupted, ReadinessTimeout, TimeoutError
from pipectl.core.signals import interrupt_on_signals


class TestInterruptToken:
    """Tests for InterruptToken."""

    @pytest.mark.asyncio
    async def test_interrupt(self):
        token = InterruptToken()
        assert not token.interrupted

        token.interrupt()
        token.interrupt()

        assert token.interrupted
        await asyncio.wait_for(token.wait(), timeout=1)


class TestTaskScope:
    """Tests for TaskScope."""

    @pytest.mark.asyncio
    async def test_cancel_is_idempotent(self):
        scope = TaskScope("test")
        task = scope.spawn(asyncio.sleep(10))

        scope.cancel()
        scope.cancel()
        await asyncio.sleep(0.01)

        assert scope.cancel_count == 1
        assert task.cancelled()

    @pytest.mark.asyncio
    async def test_exit_cancels_children(self):
        async with TaskScope("test") as scope:
            task = scope.spawn(asyncio.sleep(10))
        await asyncio.sleep(0.01)

        assert scope.cancelled
        assert task.cancelled()

    @pytest.mark.asyncio
    async def test_spawn_after_cancel(self):
        scope = TaskScope("test")
        scope.cancel()

        with pytest.raises(RuntimeError):
            scope.spawn(asyncio.sleep(0))

    @pytest.mark.asyncio
    async def test_finished_children_are_left_alone(self):
        scope = TaskScope("test")
        task = scope.spawn(asyncio.sleep(0, result="done"))
        await asyncio.sleep(0.01)

        scope.cancel()

        assert task.result() == "done"


class TestRaceInterrupt:
    """Tests for race_interrupt."""

    @pytest.mark.asyncio
    async def test_work_wins(self):
        assert await race_interrupt(asyncio.sleep(0, result=42), InterruptToken()) == 42

    @pytest.mark.asyncio
    async def test_errors_propagate(self):
        async def fail():
            raise ValueError("bad")

        with pytest.raises(ValueError):
            await race_interrupt(fail(), InterruptToken())

    @pytest.mark.asyncio
    async def test_interrupt_wins_ties(self):
        token = InterruptToken()
        token.interrupt()

        with pytest.raises(DeployInterrupted):
            await race_interrupt(asyncio.sleep(0, result=42), token)

    @pytest.mark.asyncio
    async def test_abandoned_work_keeps_running(self):
        token = InterruptToken()
        release = asyncio.Event()
        abandoned: set = set()

        async def slow():
            await release.wait()
            return "late"

        asyncio.get_running_loop().call_later(0.01, token.interrupt)
        with pytest.raises(DeployInterrupted):
            await race_interrupt(slow(), token, abandoned=abandoned)

        (task,) = abandoned
        assert not task.done()
        release.set()
        await asyncio.sleep(0.01)
        assert task.result() == "late"
        assert abandoned == set()


class TestRunWithTimeout:
    """Tests for run_with_timeout."""

    @pytest.mark.asyncio
    async def test_result(self):
        assert await run_with_timeout(asyncio.sleep(0, result="ok"), 1) == "ok"

    @pytest.mark.asyncio
    async def test_timeout(self):
        with pytest.raises(TimeoutError, match="too slow") as exc_info:
            await run_with_timeout(asyncio.sleep(10), 0.01, "too slow")
        assert not isinstance(exc_info.value, ReadinessTimeout)

    @pytest.mark.asyncio
    async def test_custom_error(self):
        with pytest.raises(ReadinessTimeout):
            await run_with_timeout(asyncio.sleep(10), 0.01, error_cls=ReadinessTimeout)

    @pytest.mark.asyncio
    async def test_zero_waits_forever(self):
        assert await run_with_timeout(asyncio.sleep(0.02, result="ok"), 0) == "ok"

    @pytest.mark.asyncio
    async def test_work_raising_builtin_timeout_propagates(self):
        async def read():
            raise builtins.TimeoutError("read timed out")

        with pytest.raises(builtins.TimeoutError, match="read timed out") as exc_info:
            await run_with_timeout(read(), 5, "deadline")
        assert not isinstance(exc_info.value, TimeoutError)

    @pytest.mark.asyncio
    async def test_keeps_fractional_timeout(self):
        with pytest.raises(TimeoutError) as exc_info:
            await run_with_timeout(asyncio.sleep(10), 0.01)
        assert exc_info.value.timeout_seconds == 0.01

    @pytest.mark.asyncio
    async def test_work_cancelled_at_deadline(self):
        task_holder = {}

        async def slow():
            task_holder["task"] = asyncio.current_task()
            await asyncio.sleep(10)

        with pytest.raises(TimeoutError):
            await run_with_timeout(slow(), 0.01)
        await asyncio.sleep(0.01)
        assert task_holder["task"].cancelled()


def test_run_sync():
    async def add(a, b):
        return a + b

    assert run_sync(add(1, 2)) == 3


@pytest.mark.skipif(sys.platform == "win32", reason="POSIX signals only")
class TestInterruptOnSignals:
    """Tests for the signal adapter."""

    @pytest.mark.asyncio
    async def test_signal_sets_token(self):
        with interrupt_on_signals(signals=(signal.SIGUSR1,)) as token:
            os.kill(os.getpid(), signal.SIGUSR1)
            await asyncio.sleep(0.05)
            assert token.interrupted

    @pytest.mark.asyncio
    async def test_uses_given_token(self):
        given = InterruptToken()
        with interrupt_on_signals(given, signals=(signal.SIGUSR1,)) as token:
            assert token is given

    def test_requires_running_loop(self):
        with pytest.raises(RuntimeError):
            with interrupt_on_signals(signals=(signal.SIGUSR1,)):
                pass

    def test_off_main_thread_is_not_wired(self):
        async def enter():
            with interrupt_on_signals(signals=(signal.SIGUSR1,)) as token:
                token.interrupt()
                return token.interrupted

        with concurrent.futures.ThreadPoolExecutor() as pool:
            assert pool.submit(asyncio.run, enter()).result() is True
