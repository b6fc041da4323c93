"""Process-wide interrupt signal raced against the single in-flight activity."""

from __future__ import annotations

import asyncio
import inspect
import logging
import os
import signal
from collections.abc import Awaitable, Callable, Iterator
from contextlib import contextmanager, suppress
from typing import TypeVar

from deepseek_json.api.errors import ChatError

logger = logging.getLogger(__name__)

FORCED_EXIT_CODE = 130

_T = TypeVar("_T")


class CancellationSource:
    """Single-shot cancellation notification.

    Every suspension point of the core (network call, backoff sleep, console
    read) goes through `race`, so whichever of {activity, cancellation}
    resolves first decides the outcome. Once fired it is never reset.
    """

    def __init__(self) -> None:
        self._event = asyncio.Event()
        self._reason: str | None = None

    @property
    def fired(self) -> bool:
        return self._event.is_set()

    @property
    def reason(self) -> str | None:
        return self._reason

    def cancel(self, reason: str = "interrupted") -> None:
        if self._event.is_set():
            return
        self._reason = reason
        self._event.set()
        logger.debug("Cancellation fired: %s", reason)

    def raise_if_fired(self) -> None:
        if self.fired:
            raise ChatError.canceled(self._reason or "interrupted")

    async def race(self, awaitable: Awaitable[_T]) -> _T:
        """Await `awaitable` unless cancellation fires first.

        Raises `ChatError` with kind CANCELED when cancellation wins; the
        losing activity is cancelled and awaited before returning.
        """

        if self.fired:
            if inspect.iscoroutine(awaitable):
                awaitable.close()
            self.raise_if_fired()

        operation = asyncio.ensure_future(awaitable)
        waiter = asyncio.ensure_future(self._event.wait())
        try:
            done, _ = await asyncio.wait(
                {operation, waiter},
                return_when=asyncio.FIRST_COMPLETED,
            )
        except asyncio.CancelledError:
            operation.cancel()
            waiter.cancel()
            raise

        if operation in done:
            waiter.cancel()
            return operation.result()

        operation.cancel()
        with suppress(asyncio.CancelledError):
            await operation
        raise ChatError.canceled(self._reason or "interrupted")


@contextmanager
def interrupt_handlers(
    cancellation: CancellationSource,
    *,
    force_exit: Callable[[int], None] = os._exit,
) -> Iterator[None]:
    """Route SIGINT/SIGTERM into `cancellation` for the running event loop.

    The first signal fires the cancellation; a second one, received while the
    first is still being handled, terminates the process at once.
    """

    loop = asyncio.get_running_loop()
    loop_handlers: list[signal.Signals] = []
    original_handlers: dict[signal.Signals, object] = {}

    def _handle(signum: int) -> None:
        try:
            name = signal.Signals(signum).name
        except ValueError:
            name = str(signum)
        if cancellation.fired:
            logger.debug("Second %s received, forcing exit", name)
            force_exit(FORCED_EXIT_CODE)
            return
        cancellation.cancel(reason=name)

    for signum in _supported_signals():
        try:
            loop.add_signal_handler(signum, _handle, int(signum))
            loop_handlers.append(signum)
            continue
        except (NotImplementedError, RuntimeError, ValueError):
            pass
        # Windows loops cannot register loop handlers; use the process handler.
        try:
            original_handlers[signum] = signal.signal(
                signum,
                lambda received, _: loop.call_soon_threadsafe(_handle, received),
            )
        except ValueError:
            # Signal handlers can only be installed in main thread.
            continue

    try:
        yield
    finally:
        for signum in loop_handlers:
            with suppress(NotImplementedError, RuntimeError, ValueError):
                loop.remove_signal_handler(signum)
        for signum, original in original_handlers.items():
            with suppress(ValueError, TypeError):
                signal.signal(signum, original)  # type: ignore[arg-type]


def _supported_signals() -> tuple[signal.Signals, ...]:
    names = ("SIGINT", "SIGTERM")
    return tuple(getattr(signal, name) for name in names if hasattr(signal, name))
