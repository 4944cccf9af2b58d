import pytest
from typer.testing import CliRunner
from typing import List, Sequence, Union

from nanocli.domain.interfaces.image_model import ImageModel
from nanocli.domain.models.common import ImageData
from nanocli.domain.models.image import (
    AttemptFailure, AttemptOutcome, FailureKind, GenerationRequest, ImageSuccess
)
from nanocli.infrastructure.config import settings


class ScriptedImageModel(ImageModel):
    """ImageModel that replays a fixed list of outcomes (or raises exceptions)."""

    def __init__(self, outcomes: Sequence[Union[AttemptOutcome, Exception]]):
        self.outcomes = list(outcomes)
        self.requests: List[GenerationRequest] = []
        self.closed = False

    @property
    def call_count(self) -> int:
        return len(self.requests)

    async def submit(self, request: GenerationRequest) -> AttemptOutcome:
        self.requests.append(request)
        if not self.outcomes:
            raise AssertionError("ScriptedImageModel called more times than scripted")
        outcome = self.outcomes.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome

    async def aclose(self) -> None:
        self.closed = True


class RecordingSleep:
    """Async sleep replacement that records delays instead of waiting."""

    def __init__(self):
        self.delays: List[float] = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)

    @property
    def delays_ms(self) -> List[int]:
        return [round(d * 1000) for d in self.delays]


def success(data: str = "QUJD", mime_type: str = "image/png") -> ImageSuccess:
    return ImageSuccess(data=ImageData(data), mime_type=mime_type)


def transport_error(message: str = "Service Unavailable") -> AttemptFailure:
    return AttemptFailure(message=message, kind=FailureKind.TRANSPORT)


def missing_data() -> AttemptFailure:
    return AttemptFailure(message="No image data returned from the model.", kind=FailureKind.MISSING_DATA)


@pytest.fixture(scope="session")
def runner():
    """Provides a Typer CliRunner instance."""
    return CliRunner()


@pytest.fixture
def recording_sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture(autouse=True)
def clean_settings():
    """Keeps configuration state from leaking between tests."""
    settings.reset_configuration()
    settings.clear_test_config()
    yield
    settings.reset_configuration()
    settings.clear_test_config()
