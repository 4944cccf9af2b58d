"""Domain models related to image generation.

Includes the request sent to the provider, the per-attempt outcome
(a small discriminated result type) and the retry bookkeeping.
"""

import enum
from dataclasses import dataclass
from typing import Any, Dict, Optional, Union

from .common import ImageData, PromptText


class ResponseModality(str, enum.Enum):
    """Output kinds the provider may be asked to produce."""
    IMAGE = "IMAGE"


class FailureKind(str, enum.Enum):
    TRANSPORT = "transport"        # Non-success status or network error
    MISSING_DATA = "missing_data"  # Success status, but no inline image part


# --- Request ---

@dataclass(frozen=True)
class GenerationRequest:
    """Immutable request for a single image generation call."""
    prompt: PromptText
    response_modality: ResponseModality = ResponseModality.IMAGE

    def to_payload(self) -> Dict[str, Any]:
        """Renders the JSON body expected by the `generateContent` endpoint."""
        return {
            "contents": [
                {"parts": [{"text": self.prompt}]}
            ],
            "generationConfig": {
                "responseModalities": [self.response_modality.value]
            },
        }


# --- Attempt Outcomes ---

@dataclass(frozen=True)
class ImageSuccess:
    """An attempt that produced inline image data."""
    data: ImageData
    mime_type: Optional[str] = None


@dataclass(frozen=True)
class AttemptFailure:
    """An attempt that failed, for whatever reason. Always retryable."""
    message: str
    kind: FailureKind = FailureKind.TRANSPORT


AttemptOutcome = Union[ImageSuccess, AttemptFailure]


# --- Retry Bookkeeping ---

@dataclass
class RetryState:
    """Per-call retry state. Never shared between calls."""
    max_attempts: int  # Number of retries after the initial attempt
    delay_ms: int
    attempt_index: int = 0

    @property
    def is_last_attempt(self) -> bool:
        return self.attempt_index >= self.max_attempts

    def advance(self, factor: int) -> None:
        """Moves to the next attempt, growing the delay by `factor`."""
        if self.is_last_attempt:
            raise RuntimeError(
                f"No attempts left (attempt_index={self.attempt_index}, max_attempts={self.max_attempts})"
            )
        self.attempt_index += 1
        self.delay_ms *= factor


@dataclass
class GenerationResult:
    """Outcome of a whole call: the image (if any) plus diagnostics."""
    image: Optional[ImageData]
    attempts: int
    last_error: Optional[str] = None
    mime_type: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        return self.image is not None
