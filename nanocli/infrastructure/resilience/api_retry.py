"""Service for executing image generation calls with automatic retries.

Implements exponential backoff for handling transient errors: non-success
responses, network failures, and success responses that carry no image data.
Every failure is retried the same way; after the last attempt the call
degrades to an absent result and the final error is logged.
"""

import asyncio
import logging
import time
from typing import Any, Awaitable, Callable, Optional

from nanocli.domain.events.api_events import (
    ApiCallFailed, ApiCallInitiated, ApiCallSucceeded, RetryScheduled
)
from nanocli.domain.interfaces.image_model import ImageModel
from nanocli.domain.models.common import BackoffPolicy, ImageData, PromptText
from nanocli.domain.models.image import (
    AttemptFailure, AttemptOutcome, FailureKind, GenerationRequest,
    GenerationResult, ImageSuccess, RetryState
)

logger = logging.getLogger(__name__)

# Receives the delay in seconds.
SleepFunc = Callable[[float], Awaitable[Any]]


class BackoffRequestExecutor:
    """Runs one generation request through a bounded retry loop."""

    def __init__(
        self,
        image_model: ImageModel,
        policy: Optional[BackoffPolicy] = None,
        sleep: SleepFunc = asyncio.sleep,
        provider_name: str = "gemini",
        endpoint_name: str = "generateContent",
    ):
        """Initializes the BackoffRequestExecutor.

        Args:
            image_model: The provider adapter used for each attempt.
            policy: Retry configuration (defaults: 5 retries, 1000 ms, x2).
            sleep: Awaitable sleep used between attempts. Injected in tests
                to observe delays without waiting.
            provider_name: Name of the provider (for logging/events).
            endpoint_name: Name of the endpoint (for logging/events).
        """
        self.image_model = image_model
        self.policy = policy or BackoffPolicy()
        self._sleep = sleep
        self.provider_name = provider_name
        self.endpoint_name = endpoint_name

        logger.info(
            f"BackoffRequestExecutor initialized: max_retries={self.policy.max_retries}, "
            f"initial_delay={self.policy.initial_delay_ms}ms, factor={self.policy.factor}, "
            f"provider='{self.provider_name}'"
        )

    def _dispatch_event(self, event: Any) -> None:
        logger.debug(f"EVENT: {event}")

    async def _attempt(self, request: GenerationRequest) -> AttemptOutcome:
        """Runs one attempt, turning unexpected adapter errors into failures."""
        try:
            return await self.image_model.submit(request)
        except Exception as e:
            logger.error(
                f"Unexpected error calling {self.provider_name}.{self.endpoint_name}: {e}",
                exc_info=True,
            )
            return AttemptFailure(message=f"{type(e).__name__}: {e}", kind=FailureKind.TRANSPORT)

    async def generate_image(self, prompt: str) -> Optional[ImageData]:
        """Generates an image for `prompt`.

        Returns:
            The base64 image data, or None once every attempt has failed.
        """
        result = await self.generate_image_detailed(prompt)
        return result.image

    async def generate_image_detailed(self, prompt: str) -> GenerationResult:
        """Generates an image and reports how the call went.

        Makes at most `policy.max_retries + 1` attempts. Before attempt k
        (k >= 1) it sleeps `initial_delay_ms * factor ** (k - 1)` ms.

        Returns:
            A GenerationResult; `image` is None when all attempts failed, in
            which case `last_error` holds the final failure message.
        """
        request = GenerationRequest(prompt=PromptText(prompt))
        state = RetryState(
            max_attempts=self.policy.max_retries,
            delay_ms=self.policy.initial_delay_ms,
        )
        total_attempts = self.policy.max_retries + 1

        while True:
            attempt_number = state.attempt_index + 1
            self._dispatch_event(ApiCallInitiated(
                provider=self.provider_name, endpoint=self.endpoint_name,
                attempt_number=attempt_number,
            ))
            start_time = time.perf_counter()
            outcome = await self._attempt(request)
            latency_ms = (time.perf_counter() - start_time) * 1000

            if isinstance(outcome, ImageSuccess):
                logger.info(
                    f"Image received from {self.provider_name} on attempt "
                    f"{attempt_number}/{total_attempts} ({latency_ms:.0f}ms)."
                )
                self._dispatch_event(ApiCallSucceeded(
                    provider=self.provider_name, endpoint=self.endpoint_name,
                    attempt_number=attempt_number, latency_ms=latency_ms,
                    mime_type=outcome.mime_type,
                ))
                return GenerationResult(
                    image=outcome.data, attempts=attempt_number, mime_type=outcome.mime_type
                )

            if state.is_last_attempt:
                logger.error(f"Max retries reached. Final error: {outcome.message}")
                self._dispatch_event(ApiCallFailed(
                    provider=self.provider_name, endpoint=self.endpoint_name,
                    error_type=outcome.kind.value, error_message=outcome.message,
                    attempts=attempt_number,
                ))
                return GenerationResult(
                    image=None, attempts=attempt_number, last_error=outcome.message
                )

            logger.warning(
                f"Attempt {attempt_number}/{total_attempts} to {self.provider_name}."
                f"{self.endpoint_name} failed ({outcome.kind.value}): {outcome.message}. "
                f"Waiting {state.delay_ms}ms..."
            )
            self._dispatch_event(RetryScheduled(
                provider=self.provider_name, endpoint=self.endpoint_name,
                attempt_number=attempt_number, delay_ms=state.delay_ms,
                reason=outcome.message,
            ))
            await self._sleep(state.delay_ms / 1000)
            state.advance(self.policy.factor)
