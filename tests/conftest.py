"""Shared test fixtures."""

from __future__ import annotations

import asyncio
import json
from collections.abc import Callable, Iterable
from typing import Any

import httpx
import pytest

from deepseek_json.api.client import DeepSeekClient
from deepseek_json.api.errors import ChatError
from deepseek_json.api.models import (
    ChatRequest,
    ChatResponse,
    ClarifyingBatch,
    ClarifyingQuestion,
    FinalArtifact,
    StructuredArtifact,
)
from deepseek_json.api.retry import RetryPolicy
from deepseek_json.cancellation import CancellationSource
from deepseek_json.config import Settings
from deepseek_json.console.base import ProgressStage

HANG = object()


def completion_body(content: str) -> dict[str, Any]:
    return {
        "id": "chatcmpl-test",
        "object": "chat.completion",
        "choices": [
            {"index": 0, "message": {"role": "assistant", "content": content}},
        ],
    }


def structured_json(**overrides: Any) -> str:
    payload = {
        "title": "Rust ownership",
        "description": "How ownership works",
        "content": "Each value has a single owner.",
        "category": "programming",
        "timestamp": "2026-10-19T12:00:00+00:00",
        "confidence": 0.9,
    }
    payload.update(overrides)
    return json.dumps(payload)


def clarifying_json(*question_ids: str) -> str:
    return json.dumps(
        {
            "type": "clarifying_questions",
            "turn": 1,
            "max_questions": 3,
            "questions": [
                {"id": question_id, "text": f"What about {question_id}?", "required": True}
                for question_id in question_ids
            ],
            "checklist": [{"field": "scope", "status": "missing"}],
            "next_action": "await_user",
        },
    )


def final_json(**overrides: Any) -> str:
    payload = {
        "type": "artifact",
        "artifact_name": "technical_task",
        "version": "1.0",
        "title": "Wallet tracker",
        "summary": "Track balances across chains",
        "stakeholders": [],
        "scope": {"in_scope": [], "out_of_scope": []},
        "requirements": {"functional": [], "non_functional": []},
        "data_integrations": {
            "rpc_providers": {"selection": [], "endpoints": {}},
            "price_source": {"provider": "CoinGecko"},
        },
        "constraints": [],
        "assumptions": [],
        "risks": [],
        "milestones": [],
        "acceptance_criteria": [],
        "open_questions": [],
        "status": "final",
        "end_token": "【END】",
    }
    payload.update(overrides)
    return json.dumps(payload, ensure_ascii=False)


class ScriptedEngine:
    """Engine returning scripted assistant contents in order.

    A script item may be a raw string, a `ChatError` to raise, or `HANG` to
    block until cancellation wins the race.
    """

    def __init__(self, script: Iterable[object]) -> None:
        self.script = list(script)
        self.requests: list[ChatRequest] = []

    async def send(self, request: ChatRequest, cancellation: CancellationSource) -> ChatResponse:
        self.requests.append(request)
        if not self.script:
            raise AssertionError("engine called more times than scripted")
        item = self.script.pop(0)
        if item is HANG:
            await cancellation.race(asyncio.Event().wait())
        if isinstance(item, ChatError):
            raise item
        return ChatResponse(raw_content=str(item))

    async def aclose(self) -> None:
        return None


class FakeConsole:
    """Console double that records output calls and replays scripted input lines."""

    def __init__(self, answers: Iterable[object] = (), seed: object = "build a tracker") -> None:
        self.answers = list(answers)
        self.seed = seed
        self.displayed: list[StructuredArtifact | FinalArtifact] = []
        self.errors: list[ChatError] = []
        self.batches: list[tuple[ClarifyingBatch, int]] = []
        self.progress: list[ProgressStage] = []
        self.asked: list[ClarifyingQuestion] = []

    def display(self, artifact: StructuredArtifact | FinalArtifact) -> None:
        self.displayed.append(artifact)

    def display_error(self, error: ChatError) -> None:
        self.errors.append(error)

    def display_questions(self, batch: ClarifyingBatch, round_number: int) -> None:
        self.batches.append((batch, round_number))

    def display_progress(self, stage: ProgressStage) -> None:
        self.progress.append(stage)

    async def prompt_question(self, question: ClarifyingQuestion) -> str:
        self.asked.append(question)
        if not self.answers:
            raise AssertionError(f"unexpected question {question.label}")
        return await _resolve(self.answers.pop(0))

    async def prompt_seed_query(self) -> str:
        return await _resolve(self.seed)


async def _resolve(item: object) -> str:
    if item is HANG:
        await asyncio.Event().wait()
    return str(item)


@pytest.fixture()
def settings() -> Settings:
    return Settings(
        api_key="test-key",
        base_url="https://api.example.test",
        model="deepseek-chat",
        timeout_seconds=5.0,
        max_questions=3,
    )


@pytest.fixture()
def sleeps() -> list[float]:
    return []


@pytest.fixture()
def make_client(
    settings: Settings,
    sleeps: list[float],
) -> Callable[..., DeepSeekClient]:
    """Build a client over `httpx.MockTransport` that records backoff sleeps."""

    async def _record_sleep(seconds: float) -> None:
        sleeps.append(seconds)

    def _factory(
        handler: Callable[[httpx.Request], Any],
        *,
        client_settings: Settings | None = None,
        retry_policy: RetryPolicy | None = None,
        sleep: Callable[[float], Any] | None = None,
    ) -> DeepSeekClient:
        return DeepSeekClient(
            client_settings or settings,
            retry_policy=retry_policy,
            transport=httpx.MockTransport(handler),
            sleep=sleep or _record_sleep,
        )

    return _factory
