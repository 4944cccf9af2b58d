"""Domain Events related to image API calls and retries."""

from dataclasses import dataclass, field
import time
from typing import Optional


@dataclass
class DomainEvent:
    """Base class for domain events."""
    pass


@dataclass
class ApiCallInitiated(DomainEvent):
    """Event triggered when an attempt is about to be made."""
    provider: str  # e.g., 'gemini'
    endpoint: str
    attempt_number: int
    timestamp: float = field(default_factory=time.time)


@dataclass
class ApiCallSucceeded(DomainEvent):
    """Event triggered when an attempt yields image data."""
    provider: str
    endpoint: str
    attempt_number: int
    latency_ms: float
    mime_type: Optional[str] = None
    timestamp: float = field(default_factory=time.time)


@dataclass
class ApiCallFailed(DomainEvent):
    """Event triggered when a call fails definitively (after retries)."""
    provider: str
    endpoint: str
    error_type: str  # FailureKind value
    error_message: str
    attempts: int
    timestamp: float = field(default_factory=time.time)


@dataclass
class RetryScheduled(DomainEvent):
    """Event triggered when a retry is scheduled for a failed attempt."""
    provider: str
    endpoint: str
    attempt_number: int
    delay_ms: int
    reason: str
    timestamp: float = field(default_factory=time.time)
