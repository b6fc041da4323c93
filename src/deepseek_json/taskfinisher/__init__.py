"""Multi-round clarification dialogue that ends in a technical task artifact."""

from deepseek_json.taskfinisher.controller import ConversationController
from deepseek_json.taskfinisher.models import (
    AbortReason,
    ConversationOutcome,
    ConversationState,
    Phase,
)

__all__ = [
    "AbortReason",
    "ConversationController",
    "ConversationOutcome",
    "ConversationState",
    "Phase",
]
