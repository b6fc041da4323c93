"""Typed error taxonomy for chat-completion calls."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

SNIPPET_MAX_CHARS = 200


class ErrorKind(str, Enum):
    """Failure classes surfaced by the request engine and response parser."""

    SERVER_BUSY = "server_busy"
    NETWORK_ERROR = "network_error"
    TIMEOUT = "timeout"
    API_ERROR = "api_error"
    PARSE_ERROR = "parse_error"
    CONFIG_ERROR = "config_error"
    CANCELED = "canceled"


@dataclass(slots=True, eq=False)
class ChatError(Exception):
    """Chat call failure with the native context of the underlying fault."""

    kind: ErrorKind
    message: str
    status_code: int | None = None
    timeout_seconds: float | None = None
    context: str | None = None

    def __str__(self) -> str:
        return self.message

    @property
    def is_canceled(self) -> bool:
        return self.kind is ErrorKind.CANCELED

    @classmethod
    def server_busy(cls, *, status_code: int | None = None, body: str = "") -> ChatError:
        return cls(
            kind=ErrorKind.SERVER_BUSY,
            message="Server is busy" + (f" (HTTP {status_code})" if status_code else ""),
            status_code=status_code,
            context=body or None,
        )

    @classmethod
    def network(cls, detail: str) -> ChatError:
        return cls(
            kind=ErrorKind.NETWORK_ERROR,
            message=f"Network connection failed: {detail}",
            context=detail,
        )

    @classmethod
    def timeout(cls, seconds: float) -> ChatError:
        return cls(
            kind=ErrorKind.TIMEOUT,
            message=f"Request timed out after {seconds:g} seconds",
            timeout_seconds=seconds,
        )

    @classmethod
    def api(cls, status_code: int, body: str) -> ChatError:
        return cls(
            kind=ErrorKind.API_ERROR,
            message=f"API error ({status_code}): {body}",
            status_code=status_code,
            context=body,
        )

    @classmethod
    def parse(cls, message: str, *, raw: str | None = None) -> ChatError:
        return cls(
            kind=ErrorKind.PARSE_ERROR,
            message=f"Failed to parse response: {message}",
            context=snippet(raw) if raw is not None else None,
        )

    @classmethod
    def config(cls, message: str) -> ChatError:
        return cls(kind=ErrorKind.CONFIG_ERROR, message=f"Configuration error: {message}")

    @classmethod
    def canceled(cls, reason: str = "interrupted") -> ChatError:
        return cls(kind=ErrorKind.CANCELED, message=f"Canceled: {reason}", context=reason)


def snippet(raw: str, limit: int = SNIPPET_MAX_CHARS) -> str:
    """Return a single-line excerpt of raw text for diagnostics."""

    compact = " ".join(raw.split())
    if len(compact) <= limit:
        return compact
    return compact[:limit] + " …"
