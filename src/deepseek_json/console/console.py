"""Terminal console implementing the collaborator used by the chat core."""

from __future__ import annotations

import logging

from rich.console import Console as RichConsole

from deepseek_json.api.errors import ChatError
from deepseek_json.api.models import (
    ClarifyingBatch,
    ClarifyingQuestion,
    FinalArtifact,
    StructuredArtifact,
)
from deepseek_json.console.base import ProgressStage
from deepseek_json.console.input import LineReader, read_line
from deepseek_json.console.render import (
    GOODBYE,
    TASKFINISHER_TITLE,
    render_clarifying_batch,
    render_error,
    render_final_artifact,
    render_progress,
    render_question_heading,
    render_structured_artifact,
    render_welcome,
)

logger = logging.getLogger(__name__)

QUERY_PROMPT = "💬 Enter your question: "
SEED_PROMPT = "💬 Enter your technical task request: "
EOF_COMMAND = "/quit"


class Console:
    """Rich-backed console.

    Output goes through one `rich.console.Console`; input lines are read on
    a daemon thread by `reader` (the builtin `input` unless injected).
    """

    def __init__(
        self,
        rich_console: RichConsole | None = None,
        *,
        reader: LineReader | None = None,
        verbose_errors: bool = False,
    ) -> None:
        self.rich = rich_console or RichConsole(highlight=False)
        self._reader = reader or self._rich_input
        self._verbose_errors = verbose_errors

    def _rich_input(self, prompt: str) -> str:
        return self.rich.input(prompt, markup=False)

    def display(self, artifact: StructuredArtifact | FinalArtifact) -> None:
        if isinstance(artifact, FinalArtifact):
            self.rich.print(render_final_artifact(artifact))
        else:
            self.rich.print(render_structured_artifact(artifact))

    def display_error(self, error: ChatError) -> None:
        if error.is_canceled:
            return
        logger.debug("Displaying %s error: %s", error.kind.value, error.message)
        self.rich.print(render_error(error, verbose=self._verbose_errors))
        self.rich.print()

    def display_questions(self, batch: ClarifyingBatch, round_number: int) -> None:
        self.rich.print()
        self.rich.print(render_clarifying_batch(batch, round_number))

    def display_progress(self, stage: ProgressStage) -> None:
        self.rich.print(render_progress(stage))

    def display_welcome(self) -> None:
        self.rich.print(render_welcome())
        self.rich.print()

    def display_taskfinisher_header(self, max_questions: int) -> None:
        self.rich.print(TASKFINISHER_TITLE, style="bold bright_blue", markup=False)
        self.rich.print(f"Max clarifying questions: {max_questions}", style="blue", markup=False)

    def display_goodbye(self) -> None:
        self.rich.print(GOODBYE, style="bold bright_yellow", markup=False)

    async def prompt_question(self, question: ClarifyingQuestion) -> str:
        self.rich.print()
        self.rich.print(render_question_heading(question.label, question.text, question.options))
        return await self._read(f"Your answer for {question.label}: ")

    async def prompt_seed_query(self) -> str:
        return await self._read(SEED_PROMPT)

    async def prompt_query(self) -> str:
        return await self._read(QUERY_PROMPT)

    async def _read(self, prompt: str) -> str:
        try:
            return await read_line(prompt, self._reader)
        except EOFError:
            return EOF_COMMAND
