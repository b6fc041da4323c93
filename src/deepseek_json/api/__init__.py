"""Chat-completion API models, errors, retry policy and response parsing.

The HTTP client lives in `deepseek_json.api.client` and is imported from
there directly.
"""

from deepseek_json.api.errors import ChatError, ErrorKind
from deepseek_json.api.models import (
    END_TOKEN,
    ChatMessage,
    ChatRequest,
    ChatResponse,
    ClarifyingBatch,
    ClarifyingQuestion,
    FinalArtifact,
    ParsedResponse,
    ParseMode,
    Role,
    StructuredArtifact,
)
from deepseek_json.api.parser import parse_response
from deepseek_json.api.retry import RetryDecision, RetryPolicy

__all__ = [
    "END_TOKEN",
    "ChatError",
    "ChatMessage",
    "ChatRequest",
    "ChatResponse",
    "ClarifyingBatch",
    "ClarifyingQuestion",
    "ErrorKind",
    "FinalArtifact",
    "ParseMode",
    "ParsedResponse",
    "RetryDecision",
    "RetryPolicy",
    "Role",
    "StructuredArtifact",
    "parse_response",
]
