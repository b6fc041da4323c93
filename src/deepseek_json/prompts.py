"""Prompt templates for single-query and TaskFinisher conversations."""

from __future__ import annotations

import json
from datetime import UTC, datetime

from deepseek_json.api.models import END_TOKEN, FINAL_STATUS

MAX_CLARIFYING_ROUNDS = 5

SINGLE_QUERY_SYSTEM_PROMPT = (
    "You are a helpful assistant that always responds with valid JSON in the specified format."
)

_SINGLE_QUERY_FORMAT = """\
Please respond with a JSON object containing the following fields:
{{
  "title": "A concise title for the topic (string)",
  "description": "A brief description or summary (string)",
  "content": "The main content or detailed response (string)",
  "category": "Optional category classification (string or null)",
  "timestamp": "Current response timestamp: {timestamp} (string)",
  "confidence": "Optional confidence score between 0.0 and 1.0 (number or null)"
}}

Make sure to provide valid JSON format in your response. Use the provided timestamp as the \
current response time.
Do not include any other text or comments in your response."""

_TASKFINISHER_SYSTEM_PROMPT = """\
You are TaskFinisher-JSON.

OPERATING MODE
- You must reply with a SINGLE valid JSON object, no extra text, no Markdown fences.
- Allowed top-level JSON "type" values:
  1) "clarifying_questions" — when you need up to {{MAX_QUESTIONS}} answers.
  2) "artifact" — the final deliverable.
- Ask clarifying questions in at most {{MAX_QUESTIONS}} rounds TOTAL (you may ask several \
questions in one batch).

DEFINITION OF DONE
- Produce an "artifact" object that fulfills the required schema fields (see ARTIFACT SHAPE below).
- If information is missing after your questions or the user says "proceed", finalize anyway \
with minimal, labeled assumptions in "assumptions" and any remaining items in "open_questions".

SELF-STOP RULE
- When you output the final "artifact", include: "status":"{final_status}" and \
"end_token":"{end_token}".
- After that, STOP. Do not send more messages.

FORMAT RULES
- Strict JSON (RFC 8259): double quotes, no comments, no trailing commas.
- Use concise, unambiguous language.

CLARIFYING QUESTIONS SHAPE
{{
  "type": "clarifying_questions",
  "turn": <integer>,
  "max_questions": <integer>,
  "questions": [
    {{ "id": "q1", "text": "<question>", "required": true, "options": ["<opt1>", "<opt2>"]? }},
    ...
  ],
  "checklist": [
    {{ "field": "<required_field_name>", "status": "missing|partial|complete" }},
    ...
  ],
  "next_action": "await_user"
}}

ARTIFACT SHAPE (Technical Task JSON)
{{
  "type": "artifact",
  "artifact_name": "technical_task",
  "version": "1.0",
  "title": "<string>",
  "summary": "<string>",
  "stakeholders": [ {{ "role": "<string>", "description": "<string>" }}, ... ],
  "scope": {{ "in_scope": ["<string>", ...], "out_of_scope": ["<string>", ...] }},
  "requirements": {{
    "functional": [ {{ "id": "FR1", "statement": "<string>", "rationale": "<string>"? }}, ... ],
    "non_functional": [
      {{ "id": "NFR1", "category": "<e.g., performance, reliability>", "target": "<string>" }}, ...
    ]
  }},
  "data_integrations": {{
    "rpc_providers": {{
      "selection": ["<e.g., Alchemy>"],
      "endpoints": {{ "<name>": "<env-var or URL>", ... }}
    }},
    "price_source": {{ "provider": "<e.g., CoinGecko|None>", "ttl_seconds": <integer>? }}
  }},
  "constraints": ["<string>", ...],
  "assumptions": ["<string>", ...],
  "risks": [ {{ "id": "R1", "description": "<string>", "mitigation": "<string>" }}, ... ],
  "milestones": [ {{ "id": "M1", "name": "<string>", "deliverables": ["<string>", ...] }}, ... ],
  "acceptance_criteria": [
    {{ "id": "AC1", "given": "<string>", "when": "<string>", "then": "<string>" }},
    ...
  ],
  "open_questions": ["<string>", ...],
  "status": "{final_status}",
  "end_token": "{end_token}"
}}

IMPORTANT
- When you ask questions, include a concise checklist of required fields and their completion \
status.
- When the user replies with answers using a JSON payload of the form \
{{"answers": [{{"id":"q1", "answer":"..."}}, ...]}},
  proceed to produce the final artifact unless additional critical information is still missing.

CONFIG
- Set MAX_QUESTIONS = {max_questions}
"""

_TASKFINISHER_SEED_PROMPT = (
    "Describe the result to collect and provide the answer accordingly. "
    "Example domain: technical specifications. User request: {request}"
)

FORCED_FINALIZATION_PROMPT = (
    "The clarification budget is exhausted. Do not ask any more questions. "
    'Reply now with the final "artifact" JSON object, recording unknowns in "assumptions" '
    f'and "open_questions", and include "status":"{FINAL_STATUS}" and "end_token":"{END_TOKEN}".'
)


def clamp_max_questions(max_questions: int) -> int:
    """Cap the clarification budget at the hard round ceiling."""

    return max(0, min(max_questions, MAX_CLARIFYING_ROUNDS))


def build_single_query_prompt(user_input: str, *, now: datetime | None = None) -> str:
    timestamp = (now or datetime.now(tz=UTC)).isoformat()
    return f"{user_input}\n\n{_SINGLE_QUERY_FORMAT.format(timestamp=timestamp)}"


def build_system_prompt(max_questions: int) -> str:
    """Build the TaskFinisher system prompt with the round cap and stop rule."""

    return _TASKFINISHER_SYSTEM_PROMPT.format(
        max_questions=clamp_max_questions(max_questions),
        final_status=FINAL_STATUS,
        end_token=END_TOKEN,
    )


def build_seed_prompt(request: str) -> str:
    return _TASKFINISHER_SEED_PROMPT.format(request=request)


def build_answers_message(answers: list[tuple[str, str]]) -> str:
    """Serialize collected answers as the `{"answers": [...]}` user payload."""

    return json.dumps(
        {"answers": [{"id": question_id, "answer": answer} for question_id, answer in answers]},
        ensure_ascii=False,
    )
