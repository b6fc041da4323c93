"""Runtime configuration for the DeepSeek client."""

from __future__ import annotations

import os
from dataclasses import dataclass, replace
from pathlib import Path
from urllib.parse import urlparse

from dotenv import load_dotenv

DEFAULT_BASE_URL = "https://api.deepseek.com"
DEFAULT_MODEL = "deepseek-chat"
DEFAULT_MAX_TOKENS = 4096
DEFAULT_TEMPERATURE = 0.7
DEFAULT_TIMEOUT_SECONDS = 180.0
DEFAULT_MAX_QUESTIONS = 3
DEFAULT_LOG_LEVEL = "WARNING"
MIN_TEMPERATURE = 0.0
MAX_TEMPERATURE = 2.0
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")


@dataclass(slots=True)
class Settings:
    """Validated connection and generation settings."""

    api_key: str = ""
    base_url: str = DEFAULT_BASE_URL
    model: str = DEFAULT_MODEL
    max_tokens: int = DEFAULT_MAX_TOKENS
    temperature: float = DEFAULT_TEMPERATURE
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS
    max_questions: int = DEFAULT_MAX_QUESTIONS
    log_level: str = DEFAULT_LOG_LEVEL

    @classmethod
    def from_env(cls) -> Settings:
        """Load settings from `DEEPSEEK_*` environment variables with local defaults."""

        return cls(
            api_key=os.getenv("DEEPSEEK_API_KEY", "").strip(),
            base_url=_normalize_base_url(os.getenv("DEEPSEEK_BASE_URL", DEFAULT_BASE_URL)),
            model=os.getenv("DEEPSEEK_MODEL", DEFAULT_MODEL).strip() or DEFAULT_MODEL,
            max_tokens=_env_int("DEEPSEEK_MAX_TOKENS", DEFAULT_MAX_TOKENS),
            temperature=_env_float("DEEPSEEK_TEMPERATURE", DEFAULT_TEMPERATURE),
            timeout_seconds=_env_float("DEEPSEEK_TIMEOUT", DEFAULT_TIMEOUT_SECONDS),
            max_questions=_env_int("DEEPSEEK_MAX_QUESTIONS", DEFAULT_MAX_QUESTIONS),
            log_level=os.getenv("DEEPSEEK_LOG_LEVEL", DEFAULT_LOG_LEVEL).strip().upper()
            or DEFAULT_LOG_LEVEL,
        )

    def with_overrides(  # noqa: PLR0913
        self,
        *,
        base_url: str | None = None,
        model: str | None = None,
        max_tokens: int | None = None,
        temperature: float | None = None,
        timeout_seconds: float | None = None,
        max_questions: int | None = None,
        log_level: str | None = None,
    ) -> Settings:
        """Return a copy with CLI-supplied values taking precedence."""

        return replace(
            self,
            base_url=_normalize_base_url(base_url) if base_url is not None else self.base_url,
            model=model if model is not None else self.model,
            max_tokens=max_tokens if max_tokens is not None else self.max_tokens,
            temperature=temperature if temperature is not None else self.temperature,
            timeout_seconds=(
                timeout_seconds if timeout_seconds is not None else self.timeout_seconds
            ),
            max_questions=max_questions if max_questions is not None else self.max_questions,
            log_level=log_level.upper() if log_level is not None else self.log_level,
        )

    @property
    def effective_max_questions(self) -> int:
        """Configured question budget; zero selects the default."""

        return self.max_questions or DEFAULT_MAX_QUESTIONS

    def validate(self) -> None:
        """Raise configuration error if any value is out of range."""

        if not self.api_key:
            raise ValueError("API key cannot be empty. Set DEEPSEEK_API_KEY.")
        _validate_base_url(self.base_url)
        if not self.model.strip():
            raise ValueError("Model name cannot be empty.")
        if not MIN_TEMPERATURE <= self.temperature <= MAX_TEMPERATURE:
            raise ValueError(
                f"Temperature must be between {MIN_TEMPERATURE} and {MAX_TEMPERATURE}.",
            )
        if self.max_tokens <= 0:
            raise ValueError("Max tokens must be greater than 0.")
        if self.timeout_seconds <= 0:
            raise ValueError("Timeout must be greater than 0.")
        if self.max_questions < 0:
            raise ValueError("Max questions must be >= 0.")
        if self.log_level not in LOG_LEVELS:
            raise ValueError(
                f"Invalid log level {self.log_level!r}. Expected one of: {', '.join(LOG_LEVELS)}.",
            )


def load_env_file(path: Path | None = None) -> bool:
    """Load `.env` once at startup; variables already in the environment win."""

    if path is None:
        return load_dotenv(override=False)
    return load_dotenv(dotenv_path=path, override=False)


def _normalize_base_url(value: str) -> str:
    return value.strip().rstrip("/")


def _validate_base_url(value: str) -> None:
    parsed = urlparse(value)
    if parsed.scheme not in {"http", "https"} or not parsed.netloc:
        raise ValueError(
            f"Invalid base URL: {value!r}. Expected an absolute URL with http:// or https:// scheme.",
        )


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw.strip())
    except ValueError as error:
        raise ValueError(f"{name} must be a valid integer: {raw!r}") from error


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw.strip())
    except ValueError as error:
        raise ValueError(f"{name} must be a valid number: {raw!r}") from error
