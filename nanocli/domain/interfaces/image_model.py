"""Interface for text-to-image models.

Defines the contract for submitting a single generation request to an
image provider (e.g., Gemini image output).
"""

import abc

from ..models.image import AttemptOutcome, GenerationRequest


class ImageModel(abc.ABC):
    """Abstract Base Class for image model interactions."""

    @abc.abstractmethod
    async def submit(self, request: GenerationRequest) -> AttemptOutcome:
        """Submits one generation request to the provider asynchronously.

        Implementations must not raise for provider or network failures;
        those are reported as an `AttemptFailure` so that the caller can
        treat every failure the same way.

        Args:
            request: The immutable generation request.

        Returns:
            `ImageSuccess` with the inline image data, or `AttemptFailure`.
        """
        pass

    async def aclose(self) -> None:
        """Releases any resources held by the model client."""
        return None
