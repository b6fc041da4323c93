"""Rich renderables for artifacts, clarifying batches, errors and progress."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from rich.console import Group
from rich.panel import Panel
from rich.text import Text

from deepseek_json.api.errors import ChatError, ErrorKind
from deepseek_json.api.models import ClarifyingBatch, FinalArtifact, StructuredArtifact
from deepseek_json.console.base import ProgressStage

WELCOME_TITLE = "🤖 DeepSeek JSON Chat Application"
WELCOME_LINES = (
    "This application sends your queries to DeepSeek and returns structured JSON responses.",
    "Make sure to set DEEPSEEK_API_KEY environment variable.",
    "Type '/quit' or '/exit' to stop.",
)
TASKFINISHER_TITLE = "🤖 TaskFinisher-JSON Mode"
GOODBYE = "👋 Goodbye!"
ANSWER_HINT = (
    "✍️ Answer the questions one-by-one. Press Enter to skip. "
    "Type '/proceed' to finalize now or '/abort' to stop."
)

PROGRESS_MESSAGES: dict[ProgressStage, str] = {
    ProgressStage.SENDING: "🔄 Sending request to DeepSeek...",
    ProgressStage.PROCESSING_ANSWERS: "🔄 Processing answers...",
    ProgressStage.FINALIZING: "🔄 Requesting the final artifact...",
    ProgressStage.ROUND_LIMIT_REACHED: "⚠️ Reached maximum clarification rounds. Finalizing now.",
}

_MUTED = "grey70"
_SECTION = "bold bright_cyan"
_LABEL = "green"
_NONE = "(none)"


def render_structured_artifact(artifact: StructuredArtifact) -> Panel:
    body = Text()
    _field(body, "🏷️  Title:", artifact.title, "bold bright_white")
    _field(body, "📝 Description:", artifact.description)
    _field(body, "📄 Content:", artifact.content)
    if artifact.category is not None:
        _field(body, "🏪 Category:", artifact.category)
    if artifact.timestamp is not None:
        _field(body, "⏰ Timestamp:", artifact.timestamp)
    if artifact.confidence is not None:
        _field(body, "🎯 Confidence:", f"{artifact.confidence:.2f}")
    body.rstrip()
    return Panel(body, title="📋 Structured Response", title_align="left", border_style="green")


def render_final_artifact(artifact: FinalArtifact) -> Panel:
    """Render the technical task artifact section by section.

    The payload is model-generated, so every section tolerates missing or
    mistyped values and renders `(none)` instead of failing.
    """

    payload = artifact.payload
    body = Text()
    _field(body, "🏷️  Title:", artifact.title, "bold bright_white")
    name = _as_text(payload.get("artifact_name")) or "technical_task"
    version = _as_text(payload.get("version"))
    _field(body, "🧩 Artifact:", f"{name} (v{version})" if version else name, "bright_cyan")
    _field(body, "📝 Summary:", artifact.summary)

    _section(body, "Stakeholders")
    stakeholders = _records(payload.get("stakeholders"))
    if not stakeholders:
        _muted_line(body, _NONE)
    for stakeholder in stakeholders:
        _bullet(body, f"{_get(stakeholder, 'role')} — {_get(stakeholder, 'description')}")

    _section(body, "Scope")
    scope = _mapping(payload.get("scope"))
    _labelled_list(body, "In-scope:", _strings(scope.get("in_scope")), marker="✔")
    _labelled_list(body, "Out-of-scope:", _strings(scope.get("out_of_scope")), marker="✖")

    _section(body, "Requirements")
    requirements = _mapping(payload.get("requirements"))
    functional = _records(requirements.get("functional"))
    body.append("  Functional:\n", style=_LABEL)
    if not functional:
        _muted_line(body, _NONE, indent=4)
    for requirement in functional:
        _bullet(body, f"{_get(requirement, 'id')} {_get(requirement, 'statement')}", indent=4)
        rationale = _get(requirement, "rationale")
        if rationale:
            body.append(f"      ↳ rationale: {rationale}\n", style="italic slate_blue1")
    non_functional = _records(requirements.get("non_functional"))
    body.append("  Non-functional:\n", style=_LABEL)
    if not non_functional:
        _muted_line(body, _NONE, indent=4)
    for requirement in non_functional:
        _bullet(
            body,
            f"{_get(requirement, 'id')} [{_get(requirement, 'category')}] → "
            f"{_get(requirement, 'target')}",
            indent=4,
        )

    _section(body, "Data Integrations")
    integrations = _mapping(payload.get("data_integrations"))
    rpc = _mapping(integrations.get("rpc_providers"))
    selection = _strings(rpc.get("selection"))
    if selection:
        _field(body, "  RPC providers:", ", ".join(selection))
    endpoints = _mapping(rpc.get("endpoints"))
    if endpoints:
        body.append("  Endpoints:\n", style=_LABEL)
        for endpoint_name, value in endpoints.items():
            _bullet(body, f"{endpoint_name} = {_as_text(value)}", indent=4)
    price_source = _mapping(integrations.get("price_source"))
    provider = _get(price_source, "provider") or "None"
    ttl = price_source.get("ttl_seconds")
    _field(body, "  Price source:", provider + (f" (ttl={ttl}s)" if ttl is not None else ""))

    for key, title in (("constraints", "Constraints"), ("assumptions", "Assumptions")):
        _section(body, title)
        _plain_list(body, _strings(payload.get(key)))

    _section(body, "Risks")
    risks = _records(payload.get("risks"))
    if not risks:
        _muted_line(body, _NONE)
    for risk in risks:
        body.append(f"  ⚠ {_get(risk, 'id')}: ", style="bold bright_yellow")
        body.append(f"{_get(risk, 'description')}\n")
        body.append("    mitigation: ", style=_LABEL)
        body.append(f"{_get(risk, 'mitigation')}\n", style="bright_green")

    _section(body, "Milestones")
    milestones = _records(payload.get("milestones"))
    if not milestones:
        _muted_line(body, _NONE)
    for milestone in milestones:
        body.append(f"  ⏳ {_get(milestone, 'id')} — {_get(milestone, 'name')}\n")
        deliverables = _strings(milestone.get("deliverables"))
        if deliverables:
            body.append("    deliverables:\n", style=_LABEL)
            for deliverable in deliverables:
                _bullet(body, deliverable, indent=6)

    _section(body, "Acceptance criteria")
    criteria = _records(payload.get("acceptance_criteria"))
    if not criteria:
        _muted_line(body, _NONE)
    for criterion in criteria:
        body.append(f"  ✅ {_get(criterion, 'id')}\n", style="bold")
        for label in ("given", "when", "then"):
            body.append(f"    {label.capitalize()}: ", style="light_slate_blue")
            body.append(f"{_get(criterion, label)}\n")

    _section(body, "Open questions")
    _plain_list(body, _strings(payload.get("open_questions")), style="bright_yellow")

    body.append("Status: ", style=_LABEL)
    body.append(artifact.status, style="bold bright_white")
    body.append(f"  End: {artifact.end_token}", style=_MUTED)
    return Panel(
        body,
        title="📦 Technical Task (Artifact)",
        title_align="left",
        border_style="green",
    )


def render_clarifying_batch(batch: ClarifyingBatch, round_number: int) -> Group:
    questions = Text()
    questions.append("❓ Clarifying Questions", style="bold bright_yellow")
    questions.append(f" (round {round_number})\n")
    for question in batch.questions:
        questions.append(f"- {question.label} ", style="bold bright_white")
        questions.append(f"{question.text}\n")
        if question.options:
            questions.append(f"  options: {', '.join(question.options)}\n", style=_MUTED)

    parts: list[Text] = [questions]
    if batch.checklist:
        checklist = Text()
        checklist.append("🧾 Checklist\n", style=_SECTION)
        for item in batch.checklist:
            checklist.append(f"- {item.field} ")
            checklist.append(f"[{item.status}]\n", style="green")
        parts.append(checklist)
    parts.append(Text(ANSWER_HINT, style="blue"))
    return Group(*parts)


def render_question_heading(label: str, text: str, options: tuple[str, ...]) -> Text:
    heading = Text()
    heading.append(f"{label} ", style="bold bright_white")
    heading.append(text)
    if options:
        heading.append(f"\noptions: {', '.join(options)}", style=_MUTED)
    return heading


def error_message(error: ChatError) -> str:
    """Return the user-facing headline for a typed error."""

    kind = error.kind
    if kind is ErrorKind.SERVER_BUSY:
        return "🚫 DeepSeek servers are currently busy. Please try again in a few moments."
    if kind is ErrorKind.NETWORK_ERROR:
        return (
            "🌐 Network connection failed. Please check your internet connection and try again."
        )
    if kind is ErrorKind.TIMEOUT:
        seconds = f"{error.timeout_seconds:g}" if error.timeout_seconds is not None else "?"
        return f"⏰ Request timed out after {seconds} seconds. The server might be overloaded."
    if kind is ErrorKind.API_ERROR:
        return _api_error_message(error.status_code)
    if kind is ErrorKind.PARSE_ERROR:
        return "⚠️ Failed to parse server response. Please try again."
    if kind is ErrorKind.CONFIG_ERROR:
        return f"⚙️ {error.message}"
    return f"❌ Error: {error.message}"


def error_tip(error: ChatError) -> str:
    kind = error.kind
    if kind is ErrorKind.SERVER_BUSY:
        return "💡 Tip: Try again in a few minutes when server load is lower."
    if kind is ErrorKind.NETWORK_ERROR:
        return "💡 Tip: Check your internet connection and firewall settings."
    if kind is ErrorKind.TIMEOUT:
        return "💡 Tip: The server might be overloaded. Try again later."
    if kind is ErrorKind.API_ERROR:
        return _API_TIPS.get(
            error.status_code,
            "💡 Tip: Check the DeepSeek API documentation for more details.",
        )
    if kind is ErrorKind.PARSE_ERROR:
        return "💡 Tip: The server response was unexpected. Try rephrasing your query."
    return "💡 Tip: Check your environment variables and configuration."


def render_error(error: ChatError, *, verbose: bool = False) -> Text:
    style = _ERROR_STYLES.get(error.kind, "bright_red")
    text = Text()
    text.append(error_message(error) + "\n", style=f"bold {style}")
    text.append(error_tip(error), style=style)
    if verbose and error.context:
        text.append(f"\n{error.context}", style=_MUTED)
    return text


def render_progress(stage: ProgressStage) -> Text:
    return Text(PROGRESS_MESSAGES[stage], style="italic blue")


def render_welcome() -> Text:
    text = Text(WELCOME_TITLE + "\n", style="bold bright_blue")
    text.append("\n".join(WELCOME_LINES), style="blue")
    return text


_API_TIPS: dict[int | None, str] = {
    401: "💡 Tip: Check your DEEPSEEK_API_KEY environment variable.",
    403: "💡 Tip: Your API key may not have sufficient permissions.",
    429: "💡 Tip: You've hit the rate limit. Wait before trying again.",
}

_ERROR_STYLES: dict[ErrorKind, str] = {
    ErrorKind.SERVER_BUSY: "bright_yellow",
    ErrorKind.TIMEOUT: "bright_yellow",
    ErrorKind.PARSE_ERROR: "bright_magenta",
}


def _api_error_message(status_code: int | None) -> str:
    if status_code == 429:
        return "🚫 Rate limit exceeded. Please wait a moment before trying again."
    if status_code == 503:
        return "🚫 Service temporarily unavailable. Please try again later."
    if status_code in {502, 504}:
        return "🚫 Server gateway error. Please try again in a few moments."
    return f"❌ API error ({status_code}). Please try again later."


def _field(body: Text, label: str, value: str, style: str = "") -> None:
    body.append(f"{label} ", style=_LABEL)
    body.append(f"{value}\n", style=style)


def _section(body: Text, title: str) -> None:
    body.append(f"— {title}\n", style=_SECTION)


def _bullet(body: Text, value: str, *, indent: int = 2, style: str = "") -> None:
    body.append(" " * indent + "• ", style=_LABEL)
    body.append(f"{value}\n", style=style)


def _muted_line(body: Text, value: str, *, indent: int = 2) -> None:
    body.append(" " * indent + value + "\n", style=_MUTED)


def _plain_list(body: Text, values: list[str], *, style: str = "") -> None:
    if not values:
        _muted_line(body, _NONE)
    for value in values:
        _bullet(body, value, style=style)


def _labelled_list(body: Text, label: str, values: list[str], *, marker: str) -> None:
    if not values:
        return
    body.append(f"  {label}\n", style=_LABEL)
    for value in values:
        body.append(f"    {marker} ", style=_LABEL)
        body.append(f"{value}\n")


def _mapping(value: object) -> Mapping[str, Any]:
    return value if isinstance(value, Mapping) else {}


def _records(value: object) -> list[Mapping[str, Any]]:
    if not isinstance(value, list):
        return []
    return [item for item in value if isinstance(item, Mapping)]


def _strings(value: object) -> list[str]:
    if not isinstance(value, list):
        return []
    return [_as_text(item) for item in value if item is not None]


def _get(record: Mapping[str, Any], key: str) -> str:
    return _as_text(record.get(key))


def _as_text(value: object) -> str:
    if value is None:
        return ""
    return value if isinstance(value, str) else str(value)
