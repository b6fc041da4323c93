"""Decode assistant text into one of the explicit response shapes."""

from __future__ import annotations

import json
from enum import Enum
from typing import Any

from deepseek_json.api.errors import ChatError
from deepseek_json.api.models import (
    END_TOKEN,
    FINAL_STATUS,
    ChecklistItem,
    ClarifyingBatch,
    ClarifyingQuestion,
    FinalArtifact,
    ParsedResponse,
    ParseMode,
    StructuredArtifact,
)

ARTIFACT_TYPE = "artifact"
CLARIFYING_TYPE = "clarifying_questions"
_ENVELOPE_KEYS = frozenset({"status", "end_token"})
_ARTIFACT_STRING_FIELDS = ("artifact_name", "version", "title", "summary")
_ARTIFACT_SECTIONS: dict[str, type] = {
    "stakeholders": list,
    "scope": dict,
    "requirements": dict,
    "data_integrations": dict,
    "constraints": list,
    "assumptions": list,
    "risks": list,
    "milestones": list,
    "acceptance_criteria": list,
    "open_questions": list,
}
_ARTIFACT_SUBSECTIONS: dict[str, dict[str, type]] = {
    "scope": {"in_scope": list, "out_of_scope": list},
    "requirements": {"functional": list, "non_functional": list},
    "data_integrations": {"rpc_providers": dict, "price_source": dict},
}
_ARTIFACT_STRING_LISTS = ("constraints", "assumptions", "open_questions")
_ARTIFACT_OBJECT_LISTS = ("stakeholders", "risks", "milestones", "acceptance_criteria")


class ResponseShape(str, Enum):
    """Discriminant resolved before any field-level decoding."""

    FINAL_ARTIFACT = "final_artifact"
    CLARIFYING_BATCH = "clarifying_batch"
    STRUCTURED_ARTIFACT = "structured_artifact"


def parse_response(raw: str, mode: ParseMode) -> ParsedResponse:
    """Strictly decode `raw` and validate it against the resolved shape.

    Raises `ChatError` with kind PARSE_ERROR for invalid JSON, for an
    unrecognised shape, and for any missing or mistyped required field.
    """

    payload = _load_object(raw)
    shape = resolve_shape(payload, mode)
    if shape is ResponseShape.FINAL_ARTIFACT:
        return _decode_final_artifact(payload, raw)
    if shape is ResponseShape.CLARIFYING_BATCH:
        return _decode_clarifying_batch(payload, raw)
    return _decode_structured_artifact(payload, raw)


def resolve_shape(payload: dict[str, Any], mode: ParseMode) -> ResponseShape:
    declared_type = payload.get("type")
    if (
        declared_type == ARTIFACT_TYPE
        or "end_token" in payload
        or payload.get("status") == FINAL_STATUS
    ):
        return ResponseShape.FINAL_ARTIFACT
    if declared_type == CLARIFYING_TYPE or "questions" in payload:
        return ResponseShape.CLARIFYING_BATCH
    if mode is ParseMode.SINGLE_QUERY:
        return ResponseShape.STRUCTURED_ARTIFACT
    raise ChatError.parse(
        f"Unsupported response shape (type={declared_type!r})",
        raw=json.dumps(payload, ensure_ascii=False),
    )


def _load_object(raw: str) -> dict[str, Any]:
    try:
        payload = json.loads(raw)
    except json.JSONDecodeError as error:
        raise ChatError.parse(f"Invalid JSON: {error}", raw=raw) from error
    if not isinstance(payload, dict):
        raise ChatError.parse("Response must be a JSON object", raw=raw)
    return payload


def _decode_final_artifact(payload: dict[str, Any], raw: str) -> FinalArtifact:
    status = payload.get("status")
    end_token = payload.get("end_token")
    if status != FINAL_STATUS:
        raise ChatError.parse(f"Final artifact must have status {FINAL_STATUS!r}", raw=raw)
    if end_token != END_TOKEN:
        raise ChatError.parse(f"Final artifact must carry end_token {END_TOKEN!r}", raw=raw)
    _check_artifact_schema(payload, raw)
    body = {key: value for key, value in payload.items() if key not in _ENVELOPE_KEYS}
    return FinalArtifact(payload=body, status=status, end_token=end_token)


def _check_artifact_schema(payload: dict[str, Any], raw: str) -> None:
    """Raise PARSE_ERROR on the first missing or mistyped technical-task field."""

    if payload.get("type") != ARTIFACT_TYPE:
        raise ChatError.parse(f"Final artifact must have type {ARTIFACT_TYPE!r}", raw=raw)
    for name in _ARTIFACT_STRING_FIELDS:
        if not isinstance(payload.get(name), str):
            raise ChatError.parse(f"Final artifact field {name!r} must be a string", raw=raw)
    for name, expected in _ARTIFACT_SECTIONS.items():
        section = payload.get(name)
        if not isinstance(section, expected):
            raise ChatError.parse(
                f"Final artifact section {name!r} must be {_type_name(expected)}",
                raw=raw,
            )
        for sub_name, sub_expected in _ARTIFACT_SUBSECTIONS.get(name, {}).items():
            if not isinstance(section.get(sub_name), sub_expected):
                raise ChatError.parse(
                    f"{name}.{sub_name} must be {_type_name(sub_expected)}",
                    raw=raw,
                )
    for name in _ARTIFACT_STRING_LISTS:
        if not all(isinstance(item, str) for item in payload[name]):
            raise ChatError.parse(f"Final artifact section {name!r} must hold strings", raw=raw)
    for name in _ARTIFACT_OBJECT_LISTS:
        for index, item in enumerate(payload[name]):
            if not isinstance(item, dict):
                raise ChatError.parse(f"{name}[{index}] must be an object", raw=raw)


def _decode_clarifying_batch(payload: dict[str, Any], raw: str) -> ClarifyingBatch:
    raw_questions = payload.get("questions")
    if not isinstance(raw_questions, list) or not raw_questions:
        raise ChatError.parse("questions must be a non-empty array", raw=raw)

    questions: list[ClarifyingQuestion] = []
    for index, item in enumerate(raw_questions):
        if not isinstance(item, dict):
            raise ChatError.parse(f"questions[{index}] must be an object", raw=raw)
        question_id = item.get("id")
        text = item.get("text")
        if isinstance(question_id, bool) or not isinstance(question_id, str | int):
            raise ChatError.parse(f"questions[{index}].id must be a string or integer", raw=raw)
        if not isinstance(text, str) or not text.strip():
            raise ChatError.parse(f"questions[{index}].text must be a non-empty string", raw=raw)
        required = item.get("required", True)
        if not isinstance(required, bool):
            raise ChatError.parse(f"questions[{index}].required must be a boolean", raw=raw)
        options = item.get("options") or []
        if not isinstance(options, list) or not all(isinstance(opt, str) for opt in options):
            raise ChatError.parse(f"questions[{index}].options must be strings", raw=raw)
        questions.append(
            ClarifyingQuestion(
                id=question_id,
                text=text.strip(),
                required=required,
                options=tuple(options),
            ),
        )

    return ClarifyingBatch(
        questions=tuple(questions),
        turn=_optional_int(payload, "turn", raw),
        max_questions=_optional_int(payload, "max_questions", raw),
        checklist=_decode_checklist(payload.get("checklist"), raw),
    )


def _decode_checklist(value: object, raw: str) -> tuple[ChecklistItem, ...]:
    if value is None:
        return ()
    if not isinstance(value, list):
        raise ChatError.parse("checklist must be an array", raw=raw)
    items: list[ChecklistItem] = []
    for index, item in enumerate(value):
        if not isinstance(item, dict):
            raise ChatError.parse(f"checklist[{index}] must be an object", raw=raw)
        field_name = item.get("field")
        status = item.get("status")
        if not isinstance(field_name, str) or not isinstance(status, str):
            raise ChatError.parse(f"checklist[{index}] needs string field and status", raw=raw)
        items.append(ChecklistItem(field=field_name, status=status))
    return tuple(items)


def _decode_structured_artifact(payload: dict[str, Any], raw: str) -> StructuredArtifact:
    missing = [
        name
        for name in ("title", "description", "content")
        if not isinstance(payload.get(name), str)
    ]
    if missing:
        raise ChatError.parse(f"Missing required string fields: {', '.join(missing)}", raw=raw)

    category = payload.get("category")
    timestamp = payload.get("timestamp")
    confidence = payload.get("confidence")
    if category is not None and not isinstance(category, str):
        raise ChatError.parse("category must be a string or null", raw=raw)
    if timestamp is not None and not isinstance(timestamp, str):
        raise ChatError.parse("timestamp must be a string or null", raw=raw)
    if confidence is not None and (
        isinstance(confidence, bool) or not isinstance(confidence, int | float)
    ):
        raise ChatError.parse("confidence must be a number or null", raw=raw)

    return StructuredArtifact(
        title=payload["title"],
        description=payload["description"],
        content=payload["content"],
        category=category,
        timestamp=timestamp,
        confidence=float(confidence) if confidence is not None else None,
    )


def _optional_int(payload: dict[str, Any], key: str, raw: str) -> int | None:
    value = payload.get(key)
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, int):
        raise ChatError.parse(f"{key} must be an integer", raw=raw)
    return value


def _type_name(expected: type) -> str:
    return "an array" if expected is list else "an object"
