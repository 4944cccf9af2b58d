"""Defines common Value Objects used across different domain contexts.

These objects represent simple values or concepts like prompts, model
identifiers and base64 image payloads, ensuring consistency and type safety.
"""

from dataclasses import dataclass
from typing import NewType

# === Core Value Objects ===

# Using NewType for semantic clarity, although they are strings at runtime.
PromptText = NewType("PromptText", str)        # User's text prompt
ModelId = NewType("ModelId", str)              # e.g. 'gemini-2.5-flash-image-preview'
ImageData = NewType("ImageData", str)          # Opaque base64-encoded image bytes
ApiKey = NewType("ApiKey", str)

# === Retry Configuration ===
DEFAULT_MAX_RETRIES = 5
DEFAULT_INITIAL_DELAY_MS = 1000
DEFAULT_BACKOFF_FACTOR = 2


@dataclass(frozen=True)
class BackoffPolicy:
    """Value Object representing retry backoff configuration.

    `max_retries` counts retries, so a call makes at most
    `max_retries + 1` attempts.
    """
    max_retries: int = DEFAULT_MAX_RETRIES
    initial_delay_ms: int = DEFAULT_INITIAL_DELAY_MS
    factor: int = DEFAULT_BACKOFF_FACTOR

    def __post_init__(self) -> None:
        if self.max_retries < 0:
            raise ValueError(f"max_retries must be >= 0, got {self.max_retries}")
        if self.initial_delay_ms < 0:
            raise ValueError(f"initial_delay_ms must be >= 0, got {self.initial_delay_ms}")
        if self.factor < 1:
            raise ValueError(f"factor must be >= 1, got {self.factor}")
