"""Line input that never blocks the event loop or interpreter shutdown."""

from __future__ import annotations

import asyncio
import threading
from collections.abc import Callable
from contextlib import suppress

QUIT_COMMANDS = frozenset({"/quit", "/exit"})

LineReader = Callable[[str], str]


def is_quit_command(line: str) -> bool:
    return line.strip().lower() in QUIT_COMMANDS


async def read_line(prompt: str, reader: LineReader = input) -> str:
    """Read one line on a daemon thread and resolve it on the running loop.

    A read abandoned after cancellation keeps its thread blocked on stdin,
    but being a daemon it does not hold the process open. `EOFError` from
    the reader is propagated to the awaiting coroutine.
    """

    loop = asyncio.get_running_loop()
    future: asyncio.Future[str] = loop.create_future()

    def _resolve(line: str) -> None:
        if not future.done():
            future.set_result(line)

    def _fail(error: BaseException) -> None:
        if not future.done():
            future.set_exception(error)

    def _worker() -> None:
        try:
            line = reader(prompt)
        except (EOFError, OSError, UnicodeDecodeError) as error:
            callback, argument = _fail, error
        else:
            callback, argument = _resolve, line
        # The loop is closed when the read outlived the run.
        with suppress(RuntimeError):
            loop.call_soon_threadsafe(callback, argument)

    threading.Thread(target=_worker, name="console-input", daemon=True).start()
    return (await future).rstrip("\r\n")
