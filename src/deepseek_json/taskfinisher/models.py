"""Conversation state for the TaskFinisher clarification dialogue."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from deepseek_json.api.errors import ChatError
from deepseek_json.api.models import ChatMessage, FinalArtifact, Role

ABORT_COMMANDS = frozenset({"/abort", "/quit", "/exit"})
PROCEED_COMMAND = "/proceed"


class Phase(str, Enum):
    """TaskFinisher lifecycle states."""

    INIT = "init"
    AWAITING_ANSWER = "awaiting_answer"
    FINALIZING = "finalizing"
    DONE = "done"
    ABORTED = "aborted"


class AbortReason(str, Enum):
    """Why a conversation ended in ABORTED."""

    USER_ABORT = "user_abort"
    CANCELED = "canceled"
    ERROR = "error"


class AnswerCommand(str, Enum):
    """Meaning of one console line read while awaiting answers."""

    ANSWER = "answer"
    SKIP = "skip"
    ABORT = "abort"
    PROCEED = "proceed"


def classify_answer(line: str) -> AnswerCommand:
    text = line.strip()
    if not text:
        return AnswerCommand.SKIP
    lowered = text.lower()
    if lowered in ABORT_COMMANDS:
        return AnswerCommand.ABORT
    if lowered == PROCEED_COMMAND:
        return AnswerCommand.PROCEED
    return AnswerCommand.ANSWER


@dataclass(slots=True)
class ConversationState:
    """Mutable dialogue state, owned by one controller for its whole lifetime."""

    max_questions: int
    round: int = 0
    phase: Phase = Phase.INIT
    history: list[ChatMessage] = field(default_factory=list)

    def append(self, role: Role, content: str) -> None:
        self.history.append(ChatMessage(role=role, content=content))

    @property
    def rounds_exhausted(self) -> bool:
        return self.round >= self.max_questions


@dataclass(slots=True)
class ConversationOutcome:
    """Terminal result of a TaskFinisher run."""

    phase: Phase
    rounds: int
    artifact: FinalArtifact | None = None
    error: ChatError | None = None
    reason: AbortReason | None = None

    @property
    def succeeded(self) -> bool:
        return self.phase is Phase.DONE and self.artifact is not None

    @property
    def canceled(self) -> bool:
        return self.reason is AbortReason.CANCELED
