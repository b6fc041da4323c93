"""Request and response models for the chat-completion API."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

END_TOKEN = "【END】"
FINAL_STATUS = "final"
ASKING_STATUS = "asking"


class Role(str, Enum):
    """Chat message author roles."""

    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"


@dataclass(frozen=True, slots=True)
class ChatMessage:
    """One chat message on the wire."""

    role: Role
    content: str

    def to_dict(self) -> dict[str, str]:
        return {"role": self.role.value, "content": self.content}


@dataclass(frozen=True, slots=True)
class ChatRequest:
    """One logical chat-completion call."""

    model: str
    messages: tuple[ChatMessage, ...]
    temperature: float
    max_tokens: int
    force_json: bool = True

    def __post_init__(self) -> None:
        if not self.messages:
            raise ValueError("ChatRequest.messages must not be empty")

    def to_payload(self) -> dict[str, Any]:
        """Render the JSON body sent to `/chat/completions`."""

        payload: dict[str, Any] = {
            "model": self.model,
            "messages": [message.to_dict() for message in self.messages],
            "temperature": self.temperature,
            "max_tokens": self.max_tokens,
        }
        if self.force_json:
            payload["response_format"] = {"type": "json_object"}
        return payload


@dataclass(frozen=True, slots=True)
class ChatResponse:
    """Assistant message text from `choices[0].message.content`."""

    raw_content: str


class ParseMode(str, Enum):
    """Which flat shape the parser may fall back to."""

    SINGLE_QUERY = "single_query"
    TASKFINISHER = "taskfinisher"


@dataclass(frozen=True, slots=True)
class StructuredArtifact:
    """Flat structured answer for single-query and interactive modes."""

    title: str
    description: str
    content: str
    category: str | None = None
    timestamp: str | None = None
    confidence: float | None = None


@dataclass(frozen=True, slots=True)
class ClarifyingQuestion:
    """A question asked to narrow an ambiguous task."""

    id: str | int
    text: str
    required: bool = True
    options: tuple[str, ...] = ()

    @property
    def label(self) -> str:
        return str(self.id)


@dataclass(frozen=True, slots=True)
class ChecklistItem:
    """Completion status of one required artifact field."""

    field: str
    status: str


@dataclass(frozen=True, slots=True)
class ClarifyingBatch:
    """Ordered batch of clarifying questions."""

    questions: tuple[ClarifyingQuestion, ...]
    status: str = ASKING_STATUS
    turn: int | None = None
    max_questions: int | None = None
    checklist: tuple[ChecklistItem, ...] = ()


@dataclass(frozen=True, slots=True)
class FinalArtifact:
    """Terminal TaskFinisher artifact carrying the final status and end token."""

    payload: dict[str, Any] = field(default_factory=dict)
    status: str = FINAL_STATUS
    end_token: str = END_TOKEN

    @property
    def title(self) -> str:
        return _as_text(self.payload.get("title"))

    @property
    def summary(self) -> str:
        return _as_text(self.payload.get("summary"))


ParsedResponse = StructuredArtifact | ClarifyingBatch | FinalArtifact


def _as_text(value: object) -> str:
    return value if isinstance(value, str) else ""
