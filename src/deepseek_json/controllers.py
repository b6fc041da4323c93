"""CLI controller for single-query, interactive and TaskFinisher modes."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass
from enum import IntEnum
from typing import Protocol

from rich.console import Console as RichConsole
from rich.logging import RichHandler

from deepseek_json.api.client import ChatEngine, DeepSeekClient
from deepseek_json.api.errors import ChatError
from deepseek_json.cancellation import FORCED_EXIT_CODE, CancellationSource, interrupt_handlers
from deepseek_json.config import Settings, load_env_file
from deepseek_json.console import Console, ProgressStage, is_quit_command
from deepseek_json.prompts import clamp_max_questions
from deepseek_json.query import run_single_query
from deepseek_json.taskfinisher import AbortReason, ConversationController

logger = logging.getLogger(__name__)

PACKAGE_LOGGER = "deepseek_json"


class ExitCode(IntEnum):
    SUCCESS = 0
    FAILURE = 1
    CANCELED = FORCED_EXIT_CODE


class ChatClient(ChatEngine, Protocol):
    async def aclose(self) -> None: ...


ClientFactory = Callable[[Settings], ChatClient]


@dataclass(slots=True)
class ChatCommand:
    """Input for the chat CLI command."""

    query: str | None = None
    model: str | None = None
    temperature: float | None = None
    max_tokens: int | None = None
    timeout_seconds: float | None = None
    base_url: str | None = None
    taskfinisher: bool = False
    max_questions: int | None = None
    log_level: str | None = None
    verbose: bool = False


def load_settings() -> Settings:
    load_env_file()
    return Settings.from_env()


def configure_logging(level: str) -> None:
    """Send package logs to stderr through rich at `level`."""

    package_logger = logging.getLogger(PACKAGE_LOGGER)
    package_logger.setLevel(level)
    if not any(isinstance(handler, RichHandler) for handler in package_logger.handlers):
        package_logger.addHandler(
            RichHandler(
                console=RichConsole(stderr=True),
                show_path=False,
                markup=False,
                rich_tracebacks=False,
            ),
        )


class ChatCliController:
    """CLI controller for chat operations."""

    def __init__(
        self,
        *,
        client_factory: ClientFactory = DeepSeekClient,
        console_factory: Callable[..., Console] = Console,
        settings_loader: Callable[[], Settings] = load_settings,
    ) -> None:
        self.client_factory = client_factory
        self.console_factory = console_factory
        self.settings_loader = settings_loader

    def run(self, command: ChatCommand) -> int:
        """Run the selected mode and return the process exit code."""

        console = self.console_factory(verbose_errors=command.verbose)
        try:
            settings = self.settings_loader().with_overrides(
                base_url=command.base_url,
                model=command.model,
                max_tokens=command.max_tokens,
                temperature=command.temperature,
                timeout_seconds=command.timeout_seconds,
                max_questions=command.max_questions,
                log_level=command.log_level,
            )
            settings.validate()
        except ValueError as error:
            console.display_error(ChatError.config(str(error)))
            return ExitCode.FAILURE

        configure_logging(settings.log_level)
        return asyncio.run(self._run_async(command, settings, console))

    async def _run_async(self, command: ChatCommand, settings: Settings, console: Console) -> int:
        cancellation = CancellationSource()
        with interrupt_handlers(cancellation):
            try:
                client = self.client_factory(settings)
            except ChatError as error:
                console.display_error(error)
                return ExitCode.FAILURE
            try:
                if command.taskfinisher:
                    return await self._run_taskfinisher(
                        command,
                        settings,
                        console,
                        client,
                        cancellation,
                    )
                if command.query is not None:
                    return await self._run_single(
                        command.query,
                        settings,
                        console,
                        client,
                        cancellation,
                    )
                return await self._run_interactive(settings, console, client, cancellation)
            finally:
                await client.aclose()

    async def _run_single(
        self,
        query: str,
        settings: Settings,
        console: Console,
        client: ChatClient,
        cancellation: CancellationSource,
    ) -> int:
        if not query.strip():
            console.display_error(ChatError.config("Query cannot be empty."))
            return ExitCode.FAILURE
        console.display_progress(ProgressStage.SENDING)
        try:
            artifact = await run_single_query(client, settings, query.strip(), cancellation)
        except ChatError as error:
            if error.is_canceled:
                logger.debug("Single query canceled: %s", error.context)
                return ExitCode.CANCELED
            console.display_error(error)
            return ExitCode.FAILURE
        console.display(artifact)
        return ExitCode.SUCCESS

    async def _run_interactive(
        self,
        settings: Settings,
        console: Console,
        client: ChatClient,
        cancellation: CancellationSource,
    ) -> int:
        console.display_welcome()
        while not cancellation.fired:
            try:
                line = await cancellation.race(console.prompt_query())
            except ChatError as error:
                if not error.is_canceled:
                    raise
                break
            text = line.strip()
            if not text:
                continue
            if is_quit_command(text):
                break
            console.display_progress(ProgressStage.SENDING)
            try:
                artifact = await run_single_query(client, settings, text, cancellation)
            except ChatError as error:
                if error.is_canceled:
                    break
                console.display_error(error)
                continue
            console.display(artifact)
        console.display_goodbye()
        return ExitCode.SUCCESS

    async def _run_taskfinisher(
        self,
        command: ChatCommand,
        settings: Settings,
        console: Console,
        client: ChatClient,
        cancellation: CancellationSource,
    ) -> int:
        console.display_taskfinisher_header(clamp_max_questions(settings.effective_max_questions))
        controller = ConversationController(client, console, settings, cancellation)
        outcome = await controller.run(command.query)
        logger.debug(
            "TaskFinisher finished: phase=%s rounds=%d reason=%s",
            outcome.phase.value,
            outcome.rounds,
            outcome.reason.value if outcome.reason else None,
        )
        if outcome.succeeded:
            return ExitCode.SUCCESS
        if outcome.canceled:
            return ExitCode.CANCELED
        if outcome.reason is AbortReason.USER_ABORT:
            console.display_goodbye()
        return ExitCode.FAILURE
