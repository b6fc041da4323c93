"""Tests for decoding assistant content into response shapes."""

from __future__ import annotations

import json

import allure
import pytest

from conftest import clarifying_json, final_json, structured_json
from deepseek_json.api.errors import ChatError, ErrorKind
from deepseek_json.api.models import (
    ClarifyingBatch,
    FinalArtifact,
    ParseMode,
    StructuredArtifact,
)
from deepseek_json.api.parser import ResponseShape, parse_response, resolve_shape

pytestmark = [
    allure.epic("Chat API"),
    allure.feature("Response Parser"),
]


def _parse_error(raw: str, mode: ParseMode = ParseMode.SINGLE_QUERY) -> ChatError:
    with pytest.raises(ChatError) as caught:
        parse_response(raw, mode)
    assert caught.value.kind is ErrorKind.PARSE_ERROR
    return caught.value


class TestStructuredArtifact:
    def test_decodes_all_fields(self):
        artifact = parse_response(structured_json(), ParseMode.SINGLE_QUERY)

        assert artifact == StructuredArtifact(
            title="Rust ownership",
            description="How ownership works",
            content="Each value has a single owner.",
            category="programming",
            timestamp="2026-10-19T12:00:00+00:00",
            confidence=0.9,
        )

    def test_optional_fields_may_be_absent(self):
        raw = json.dumps({"title": "t", "description": "d", "content": "c"})

        artifact = parse_response(raw, ParseMode.SINGLE_QUERY)

        assert isinstance(artifact, StructuredArtifact)
        assert artifact.category is None
        assert artifact.confidence is None

    def test_integer_confidence_becomes_float(self):
        artifact = parse_response(structured_json(confidence=1), ParseMode.SINGLE_QUERY)

        assert artifact.confidence == 1.0

    def test_missing_required_field_is_parse_error(self):
        raw = json.dumps({"title": "t", "content": "c"})

        error = _parse_error(raw)

        assert "description" in error.message

    @pytest.mark.parametrize(
        "overrides",
        [{"title": 5}, {"category": 3}, {"confidence": "high"}, {"confidence": True}],
    )
    def test_mistyped_fields_are_parse_errors(self, overrides):
        _parse_error(structured_json(**overrides))

    def test_flat_shape_is_rejected_in_taskfinisher_mode(self):
        error = _parse_error(structured_json(), ParseMode.TASKFINISHER)

        assert "Unsupported response shape" in error.message


class TestSyntax:
    def test_invalid_json_reports_snippet(self):
        error = _parse_error('{"title": "unterminated')

        assert error.context == '{"title": "unterminated'

    def test_long_payload_snippet_is_truncated(self):
        error = _parse_error("x" * 500)

        assert error.context is not None
        assert len(error.context) < 210
        assert error.context.endswith("…")

    def test_top_level_array_is_rejected(self):
        _parse_error("[1, 2, 3]")


class TestClarifyingBatch:
    def test_decodes_questions_in_order(self):
        batch = parse_response(clarifying_json("q1", "q2"), ParseMode.TASKFINISHER)

        assert isinstance(batch, ClarifyingBatch)
        assert [question.label for question in batch.questions] == ["q1", "q2"]
        assert batch.status == "asking"
        assert batch.turn == 1
        assert batch.checklist[0].field == "scope"

    def test_questions_key_routes_without_type(self):
        raw = json.dumps(
            {"questions": [{"id": "q1", "text": "Which chain?"}, {"id": 7, "text": "Budget?"}]},
        )

        batch = parse_response(raw, ParseMode.SINGLE_QUERY)

        assert isinstance(batch, ClarifyingBatch)
        assert [question.id for question in batch.questions] == ["q1", 7]

    def test_question_without_id_is_parse_error(self):
        raw = json.dumps({"questions": [{"id": "q1", "text": "Chain?"}, {"text": "Budget?"}]})

        error = _parse_error(raw, ParseMode.TASKFINISHER)

        assert "questions[1].id" in error.message

    def test_asking_status_is_not_final(self):
        raw = json.dumps({"status": "asking", "questions": [{"id": "q1", "text": "Scope?"}]})

        assert resolve_shape(json.loads(raw), ParseMode.TASKFINISHER) is (
            ResponseShape.CLARIFYING_BATCH
        )

    def test_options_are_kept(self):
        raw = json.dumps(
            {"questions": [{"id": "q1", "text": "Chain?", "options": ["Ethereum", "Solana"]}]},
        )

        batch = parse_response(raw, ParseMode.TASKFINISHER)

        assert batch.questions[0].options == ("Ethereum", "Solana")

    @pytest.mark.parametrize(
        "questions",
        [[], [{"id": "q1"}], [{"id": "q1", "text": "   "}], [{"id": True, "text": "x"}], ["q1"]],
    )
    def test_invalid_questions_are_parse_errors(self, questions):
        _parse_error(json.dumps({"type": "clarifying_questions", "questions": questions}))

    def test_checklist_must_be_an_array(self):
        raw = json.dumps({"questions": [{"id": "q1", "text": "x"}], "checklist": {"a": 1}})

        _parse_error(raw, ParseMode.TASKFINISHER)


class TestFinalArtifact:
    def test_accepts_status_and_end_token(self):
        artifact = parse_response(final_json(), ParseMode.TASKFINISHER)

        assert isinstance(artifact, FinalArtifact)
        assert artifact.status == "final"
        assert artifact.end_token == "【END】"
        assert artifact.title == "Wallet tracker"
        assert "status" not in artifact.payload

    def test_missing_end_token_is_parse_error(self):
        payload = json.loads(final_json())
        del payload["end_token"]

        error = _parse_error(json.dumps(payload), ParseMode.TASKFINISHER)

        assert "end_token" in error.message

    def test_wrong_end_token_is_parse_error(self):
        _parse_error(final_json(end_token="<END>"), ParseMode.TASKFINISHER)

    def test_wrong_status_is_parse_error(self):
        _parse_error(final_json(status="draft"), ParseMode.TASKFINISHER)

    def test_envelope_without_artifact_body_is_parse_error(self):
        raw = json.dumps({"status": "final", "end_token": "【END】"}, ensure_ascii=False)

        error = _parse_error(raw, ParseMode.TASKFINISHER)

        assert "type" in error.message

    def test_missing_title_is_parse_error(self):
        payload = json.loads(final_json())
        del payload["title"]

        error = _parse_error(json.dumps(payload), ParseMode.TASKFINISHER)

        assert "'title'" in error.message

    @pytest.mark.parametrize(
        ("overrides", "field_name"),
        [
            ({"stakeholders": {"role": "Trader"}}, "stakeholders"),
            ({"scope": ["EVM chains"]}, "scope"),
            ({"scope": {"in_scope": []}}, "scope.out_of_scope"),
            ({"requirements": {"functional": [], "non_functional": None}}, "non_functional"),
            ({"data_integrations": {"rpc_providers": {}}}, "price_source"),
            ({"open_questions": [1, 2]}, "open_questions"),
            ({"risks": ["rate limits"]}, "risks[0]"),
            ({"version": 1}, "version"),
        ],
    )
    def test_mistyped_sections_are_parse_errors(self, overrides, field_name):
        error = _parse_error(final_json(**overrides), ParseMode.TASKFINISHER)

        assert field_name in error.message

    def test_end_token_wins_over_flat_shape_in_single_query_mode(self):
        raw = structured_json(status="final")

        error = _parse_error(raw)

        assert "end_token" in error.message
