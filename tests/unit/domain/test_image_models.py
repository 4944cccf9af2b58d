import dataclasses

import pytest

from nanocli.domain.models.common import BackoffPolicy
from nanocli.domain.models.image import (
    GenerationRequest, GenerationResult, ResponseModality, RetryState
)


def test_request_payload_shape():
    request = GenerationRequest(prompt="a red cube")
    assert request.response_modality is ResponseModality.IMAGE
    assert request.to_payload() == {
        "contents": [{"parts": [{"text": "a red cube"}]}],
        "generationConfig": {"responseModalities": ["IMAGE"]},
    }


def test_request_is_immutable():
    request = GenerationRequest(prompt="x")
    with pytest.raises(dataclasses.FrozenInstanceError):
        request.prompt = "y"


def test_retry_state_doubles_delay_and_stops_at_max():
    state = RetryState(max_attempts=3, delay_ms=1000)
    delays = []
    while not state.is_last_attempt:
        delays.append(state.delay_ms)
        state.advance(2)

    assert delays == [1000, 2000, 4000]
    assert state.attempt_index == 3
    with pytest.raises(RuntimeError, match="No attempts left"):
        state.advance(2)
    assert state.attempt_index == 3


def test_generation_result_succeeded_flag():
    assert GenerationResult(image="QUJD", attempts=1).succeeded
    assert not GenerationResult(image=None, attempts=6, last_error="boom").succeeded


@pytest.mark.parametrize(
    "kwargs",
    [{"max_retries": -1}, {"initial_delay_ms": -5}, {"factor": 0}],
)
def test_backoff_policy_validation(kwargs):
    with pytest.raises(ValueError):
        BackoffPolicy(**kwargs)
