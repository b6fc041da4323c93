"""Console collaborator interface consumed by the conversation core."""

from __future__ import annotations

from enum import Enum
from typing import Protocol

from deepseek_json.api.errors import ChatError
from deepseek_json.api.models import (
    ClarifyingBatch,
    ClarifyingQuestion,
    FinalArtifact,
    StructuredArtifact,
)


class ProgressStage(str, Enum):
    """Progress notifications the core emits instead of prose."""

    SENDING = "sending"
    PROCESSING_ANSWERS = "processing_answers"
    FINALIZING = "finalizing"
    ROUND_LIMIT_REACHED = "round_limit_reached"


class ConsoleIO(Protocol):
    """Terminal-facing operations; the core never writes to the terminal itself."""

    def display(self, artifact: StructuredArtifact | FinalArtifact) -> None:
        """Render a structured or final artifact."""

    def display_error(self, error: ChatError) -> None:
        """Render user-facing guidance for a typed error."""

    def display_questions(self, batch: ClarifyingBatch, round_number: int) -> None:
        """Render a clarifying batch before its questions are prompted."""

    def display_progress(self, stage: ProgressStage) -> None:
        """Render a short progress indicator."""

    async def prompt_question(self, question: ClarifyingQuestion) -> str:
        """Read one raw answer line for `question`."""

    async def prompt_seed_query(self) -> str:
        """Read the initial free-text request."""
