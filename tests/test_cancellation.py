from __future__ import annotations

import asyncio
import os
import signal

import allure
import pytest

from deepseek_json.api.errors import ChatError, ErrorKind
from deepseek_json.cancellation import FORCED_EXIT_CODE, CancellationSource, interrupt_handlers

pytestmark = [
    allure.epic("Runtime"),
    allure.feature("Cancellation"),
]


def test_race_returns_result_when_activity_finishes_first() -> None:
    async def scenario() -> str:
        cancellation = CancellationSource()

        async def activity() -> str:
            await asyncio.sleep(0)
            return "done"

        return await cancellation.race(activity())

    assert asyncio.run(scenario()) == "done"


def test_race_cancels_losing_activity() -> None:
    finished: list[str] = []

    async def scenario() -> ChatError:
        cancellation = CancellationSource()

        async def activity() -> None:
            try:
                await asyncio.sleep(10)
            except asyncio.CancelledError:
                finished.append("cancelled")
                raise

        asyncio.get_running_loop().call_later(0.01, cancellation.cancel, "SIGINT")
        with pytest.raises(ChatError) as caught:
            await cancellation.race(activity())
        return caught.value

    error = asyncio.run(scenario())

    assert error.kind is ErrorKind.CANCELED
    assert finished == ["cancelled"]


def test_fired_source_rejects_new_activity_without_starting_it() -> None:
    started: list[bool] = []

    async def activity() -> None:
        started.append(True)

    async def scenario() -> None:
        cancellation = CancellationSource()
        cancellation.cancel("first")
        await cancellation.race(activity())

    with pytest.raises(ChatError, match="first"):
        asyncio.run(scenario())
    assert started == []


def test_cancel_is_single_shot() -> None:
    cancellation = CancellationSource()

    cancellation.cancel("SIGINT")
    cancellation.cancel("SIGTERM")

    assert cancellation.fired
    assert cancellation.reason == "SIGINT"


def test_race_interrupts_a_long_sleep() -> None:
    async def scenario() -> None:
        cancellation = CancellationSource()
        asyncio.get_running_loop().call_later(0.01, cancellation.cancel)
        await cancellation.race(asyncio.sleep(10))

    with pytest.raises(ChatError, match="interrupted"):
        asyncio.run(scenario())


@pytest.mark.skipif(os.name != "posix", reason="loop signal handlers are POSIX only")
def test_signal_fires_cancellation_and_second_signal_forces_exit() -> None:
    exits: list[int] = []

    async def scenario() -> CancellationSource:
        cancellation = CancellationSource()
        with interrupt_handlers(cancellation, force_exit=exits.append):
            os.kill(os.getpid(), signal.SIGINT)
            await asyncio.sleep(0.05)
            assert cancellation.fired
            os.kill(os.getpid(), signal.SIGINT)
            await asyncio.sleep(0.05)
        return cancellation

    cancellation = asyncio.run(scenario())

    assert cancellation.reason == "SIGINT"
    assert exits == [FORCED_EXIT_CODE]
