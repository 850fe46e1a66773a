"""Translate process interrupts into cooperative cancellation."""

from __future__ import annotations

import asyncio
import logging
import signal
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Protocol

logger = logging.getLogger(__name__)


class Cancellable(Protocol):
    def cancel(self) -> None: ...


@contextmanager
def cancel_on_interrupt(target: Cancellable, sig: int = signal.SIGINT) -> Iterator[None]:
    """
    Call ``target.cancel()`` when ``sig`` arrives, for the duration of the block.

    The handler only sets the target's cancellation flag; the work in flight
    is never interrupted. Repeated signals are absorbed by the same handler,
    so a second Ctrl-C does not kill the process before the report is printed.

    Must be entered from a coroutine running on the event loop.

    Example:
        async with Traverser(config) as traverser:
            with cancel_on_interrupt(traverser):
                result = await traverser.traverse()
    """
    loop = asyncio.get_running_loop()

    try:
        loop.add_signal_handler(sig, target.cancel)
    except (NotImplementedError, RuntimeError):
        # Event loops without signal support (e.g. Windows proactor)
        try:
            previous = signal.signal(sig, lambda signum, frame: target.cancel())
        except ValueError:
            logger.warning("Interrupt handling unavailable outside the main thread")
            yield
            return
        try:
            yield
        finally:
            signal.signal(sig, previous)
        return

    try:
        yield
    finally:
        loop.remove_signal_handler(sig)
