"""Concrete implementation of the ImageModel interface using the Gemini API.

Sends `generateContent` requests asking for image output only and pulls the
base64 image out of the first response part that carries `inlineData`.
Failures are returned as `AttemptFailure` values rather than raised.
"""

import logging
from typing import Any, Dict, Optional

import httpx

from nanocli.domain.interfaces.image_model import ImageModel
from nanocli.domain.models.common import ImageData
from nanocli.domain.models.image import (
    AttemptFailure, AttemptOutcome, FailureKind, GenerationRequest, ImageSuccess
)

logger = logging.getLogger(__name__)

DEFAULT_MODEL_ID = "gemini-2.5-flash-image-preview"
DEFAULT_BASE_URL = "https://generativelanguage.googleapis.com/v1beta"
DEFAULT_TIMEOUT_SECONDS = 60.0

GENERIC_ERROR_MESSAGE = "API Request Failed"
NO_IMAGE_MESSAGE = "No image data returned from the model."


def extract_error_message(body: Any) -> Optional[str]:
    """Returns `error.message` from an error body, if present."""
    if not isinstance(body, dict):
        return None
    error = body.get("error")
    if isinstance(error, dict):
        message = error.get("message")
        if isinstance(message, str) and message:
            return message
    return None


def extract_inline_image(body: Any) -> Optional[Dict[str, Any]]:
    """Finds the first part in `candidates[0].content.parts` with inline data.

    Only that first part is considered: if its `data` is not a non-empty
    base64 string the response counts as carrying no image.

    Returns:
        The `inlineData` object (with `data` and usually `mimeType`), or None.
    """
    if not isinstance(body, dict):
        return None
    candidates = body.get("candidates")
    if not isinstance(candidates, list) or not candidates:
        return None
    first = candidates[0]
    if not isinstance(first, dict):
        return None
    content = first.get("content")
    parts = content.get("parts") if isinstance(content, dict) else None
    if not isinstance(parts, list):
        return None

    inline_part = next(
        (part for part in parts if isinstance(part, dict) and part.get("inlineData")),
        None,
    )
    if inline_part is None:
        return None
    inline_data = inline_part["inlineData"]
    if not isinstance(inline_data, dict):
        return None
    data = inline_data.get("data")
    if not isinstance(data, str) or not data:
        return None
    return inline_data


class GeminiImageClient(ImageModel):
    """Gemini implementation of the ImageModel interface."""

    DEFAULT_MODEL = DEFAULT_MODEL_ID

    def __init__(
        self,
        api_key: Optional[str],
        model_id: Optional[str] = None,
        base_url: str = DEFAULT_BASE_URL,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        """Initializes the Gemini image client.

        Args:
            api_key: Gemini API key, sent as the `key` query parameter.
            model_id: The image model to call.
            base_url: API root, without a trailing slash.
            timeout_seconds: Transport timeout applied to an owned client.
            http_client: Optional pre-built client. It is not closed by
                `aclose()`; the caller owns it.
        """
        if not api_key:
            raise ValueError("Gemini API key not provided and not found in configuration.")

        self._api_key = api_key
        self.model_id = model_id or self.DEFAULT_MODEL
        self.base_url = base_url.rstrip("/")
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(timeout=timeout_seconds)
        logger.info(f"GeminiImageClient initialized for model: {self.model_id}")

    @property
    def endpoint_url(self) -> str:
        return f"{self.base_url}/models/{self.model_id}:generateContent"

    async def submit(self, request: GenerationRequest) -> AttemptOutcome:
        """Sends one request and classifies the response."""
        logger.debug(f"Sending generateContent request to model: {self.model_id}")
        try:
            response = await self._client.post(
                self.endpoint_url,
                params={"key": self._api_key},
                headers={"Content-Type": "application/json"},
                json=request.to_payload(),
            )
        except httpx.HTTPError as e:
            logger.warning(f"Gemini transport error: {type(e).__name__} - {e}")
            return AttemptFailure(message=str(e) or type(e).__name__, kind=FailureKind.TRANSPORT)

        if not response.is_success:
            try:
                message = extract_error_message(response.json())
            except ValueError:
                message = None
            logger.warning(f"Gemini returned status {response.status_code}: {message or 'no error body'}")
            return AttemptFailure(message=message or GENERIC_ERROR_MESSAGE, kind=FailureKind.TRANSPORT)

        try:
            body = response.json()
        except ValueError as e:
            logger.warning(f"Gemini returned a success status with an unparseable body: {e}")
            return AttemptFailure(message=f"Invalid JSON in response: {e}", kind=FailureKind.TRANSPORT)

        inline_data = extract_inline_image(body)
        if inline_data is None:
            logger.debug(f"Gemini response without inline image data: {body}")
            return AttemptFailure(message=NO_IMAGE_MESSAGE, kind=FailureKind.MISSING_DATA)

        return ImageSuccess(
            data=ImageData(inline_data["data"]),
            mime_type=inline_data.get("mimeType"),
        )

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()
