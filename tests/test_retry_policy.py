from __future__ import annotations

import allure
import pytest

from deepseek_json.api.errors import ChatError, ErrorKind
from deepseek_json.api.retry import RetryDecision, RetryPolicy

pytestmark = [
    allure.epic("Chat API"),
    allure.feature("Retry Policy"),
]


@pytest.mark.parametrize(
    ("error", "decision"),
    [
        (ChatError.server_busy(status_code=503), RetryDecision.RETRYABLE),
        (ChatError.network("connection reset"), RetryDecision.RETRYABLE),
        (ChatError.timeout(30), RetryDecision.RETRYABLE),
        (ChatError.api(401, "unauthorized"), RetryDecision.FATAL),
        (ChatError.parse("bad json"), RetryDecision.FATAL),
        (ChatError.config("missing key"), RetryDecision.FATAL),
        (ChatError.canceled("SIGINT"), RetryDecision.FATAL),
    ],
)
def test_classify(error: ChatError, decision: RetryDecision) -> None:
    assert RetryPolicy().classify(error) is decision


def test_delay_doubles_per_attempt() -> None:
    policy = RetryPolicy(base_delay_seconds=0.5)

    delays = [policy.delay_for(attempt) for attempt in (1, 2, 3)]

    assert delays == [0.5, 1.0, 2.0]
    assert delays == sorted(set(delays))


def test_delay_rejects_zero_index() -> None:
    with pytest.raises(ValueError, match="1-based"):
        RetryPolicy().delay_for(0)


def test_policy_defaults() -> None:
    policy = RetryPolicy()

    assert policy.max_attempts == 3
    assert policy.backoff_multiplier == 2.0
    assert policy.retryable_kinds == {
        ErrorKind.SERVER_BUSY,
        ErrorKind.NETWORK_ERROR,
        ErrorKind.TIMEOUT,
    }


@pytest.mark.parametrize(
    ("kwargs", "message"),
    [
        ({"max_attempts": 0}, "max_attempts"),
        ({"base_delay_seconds": -1}, "base_delay_seconds"),
        ({"backoff_multiplier": 0.5}, "backoff_multiplier"),
        ({"retryable_kinds": frozenset({ErrorKind.CANCELED})}, "never retried"),
    ],
)
def test_policy_validates_fields(kwargs: dict, message: str) -> None:
    with pytest.raises(ValueError, match=message):
        RetryPolicy(**kwargs)
