"""Async utilities for cancellable, concurrent operations."""

import asyncio
from collections.abc import Awaitable, Coroutine
from typing import Any, TypeVar

T = TypeVar("T")


class InterruptToken:
    """One-shot external cancellation signal.

    The concrete source (an OS signal handler, a test, a parent command) calls
    ``interrupt()``; components race their work against ``wait()``. Once set
    the token stays set, so a single interrupt is honored per run.
    """

    def __init__(self) -> None:
        self._event = asyncio.Event()

    def interrupt(self) -> None:
        """Deliver the interrupt. Safe to call more than once."""
        self._event.set()

    @property
    def interrupted(self) -> bool:
        return self._event.is_set()

    async def wait(self) -> None:
        """Block until the interrupt is delivered."""
        await self._event.wait()


class TaskScope:
    """Parent scope for concurrently running child tasks.

    Children share one cancellation: ``cancel()`` requests cancellation of
    every child exactly once, and leaving the ``async with`` block always
    calls it. The scope does not wait for children to acknowledge.
    """

    def __init__(self, name: str = "scope"):
        self.name = name
        self._tasks: list[asyncio.Task[Any]] = []
        self._cancelled = False
        self.cancel_count = 0

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    @property
    def tasks(self) -> list[asyncio.Task[Any]]:
        return list(self._tasks)

    def spawn(self, coro: Coroutine[Any, Any, T], name: str | None = None) -> "asyncio.Task[T]":
        """Start a child task bound to this scope."""
        if self._cancelled:
            coro.close()
            raise RuntimeError(f"cannot spawn into cancelled scope '{self.name}'")
        task = asyncio.create_task(coro, name=name)
        task.add_done_callback(_consume_result)
        self._tasks.append(task)
        return task

    def cancel(self) -> None:
        """Request cancellation of all children. Idempotent."""
        if self._cancelled:
            return
        self._cancelled = True
        self.cancel_count += 1
        for task in self._tasks:
            if not task.done():
                task.cancel()

    async def __aenter__(self) -> "TaskScope":
        return self

    async def __aexit__(self, *args: object) -> None:
        self.cancel()


def _consume_result(task: "asyncio.Task[Any]") -> None:
    # Retrieve the exception of abandoned tasks so asyncio does not report it
    # as never retrieved.
    if not task.cancelled():
        task.exception()


async def race_interrupt(
    work: Awaitable[T],
    token: InterruptToken,
    *,
    abandoned: set["asyncio.Task[Any]"] | None = None,
) -> T:
    """Await ``work`` unless ``token`` fires first.

    An interrupt observed at the same time as completion wins. On interrupt
    the work task is left running (not cancelled) and, when given, added to
    ``abandoned`` until it finishes.

    Raises:
        DeployInterrupted: If the token fired first
    """
    from pipectl.core.exceptions import DeployInterrupted

    work_task = asyncio.ensure_future(work)
    interrupt_task = asyncio.ensure_future(token.wait())
    try:
        await asyncio.wait({work_task, interrupt_task}, return_when=asyncio.FIRST_COMPLETED)
    finally:
        interrupt_task.cancel()

    if token.interrupted:
        work_task.add_done_callback(_consume_result)
        if abandoned is not None and not work_task.done():
            abandoned.add(work_task)
            work_task.add_done_callback(abandoned.discard)
        raise DeployInterrupted()

    return work_task.result()


async def run_with_timeout(
    coro: Awaitable[T],
    timeout: float,
    timeout_message: str = "Operation timed out",
    error_cls: type | None = None,
) -> T:
    """Run a coroutine with a timeout.

    Args:
        coro: Coroutine to run
        timeout: Timeout in seconds; zero or negative waits forever
        timeout_message: Message for timeout error
        error_cls: TimeoutError subclass to raise

    Returns:
        Result of the coroutine

    Raises:
        TimeoutError: If the operation times out
    """
    from pipectl.core.exceptions import TimeoutError

    if timeout <= 0:
        return await coro

    cls = error_cls or TimeoutError
    task = asyncio.ensure_future(coro)
    try:
        done, _ = await asyncio.wait({task}, timeout=timeout)
    except asyncio.CancelledError:
        task.cancel()
        raise

    # Errors raised by the work, builtin TimeoutError included, propagate as is
    if not done:
        task.cancel()
        raise cls(timeout_message, timeout_seconds=timeout)
    return task.result()


def run_sync(coro: Awaitable[T]) -> T:
    """Run an async function synchronously.

    This is useful for integrating async code with Click commands.

    Args:
        coro: Coroutine to run

    Returns:
        Result of the coroutine
    """
    try:
        loop = asyncio.get_running_loop()
    except RuntimeError:
        loop = None

    if loop and loop.is_running():
        # If we're already in an async context, create a new loop
        import concurrent.futures

        with concurrent.futures.ThreadPoolExecutor() as pool:
            future = pool.submit(asyncio.run, coro)
            return future.result()
    else:
        return asyncio.run(coro)
