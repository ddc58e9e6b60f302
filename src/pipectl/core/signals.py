"""Adapter from OS signals to an InterruptToken."""

import asyncio
import signal
import threading
from collections.abc import Iterator
from contextlib import contextmanager

from pipectl.core.async_utils import InterruptToken
from pipectl.core.logging import get_logger

logger = get_logger(__name__)

DEFAULT_SIGNALS = (signal.SIGINT, signal.SIGTERM)


@contextmanager
def interrupt_on_signals(
    token: InterruptToken | None = None,
    signals: tuple[signal.Signals, ...] = DEFAULT_SIGNALS,
) -> Iterator[InterruptToken]:
    """Deliver ``signals`` to an InterruptToken while the block runs.

    Must be entered from inside a running event loop. Previous handlers are
    restored on exit. Signals can only be handled on the main thread; on any
    other thread the token is returned unwired and only fires when
    ``interrupt()`` is called directly.
    """
    token = token or InterruptToken()
    loop = asyncio.get_running_loop()

    if threading.current_thread() is not threading.main_thread():
        logger.debug("not on the main thread, OS signals will not interrupt this run")
        yield token
        return

    def _handle(signum: int) -> None:
        logger.info("CTRL+C received, starting shutdown sequence")
        token.interrupt()

    installed: list[signal.Signals] = []
    previous: dict[signal.Signals, object] = {}
    for sig in signals:
        try:
            loop.add_signal_handler(sig, _handle, sig)
            installed.append(sig)
        except NotImplementedError:
            # Windows event loops do not support add_signal_handler
            previous[sig] = signal.signal(
                sig, lambda signum, frame: loop.call_soon_threadsafe(_handle, signum)
            )

    try:
        yield token
    finally:
        for sig in installed:
            loop.remove_signal_handler(sig)
        for sig, handler in previous.items():
            signal.signal(sig, handler)  # type: ignore[arg-type]
