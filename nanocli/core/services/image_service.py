"""Application Service for the 'generate' use case.

Runs a prompt through the backoff executor, reports progress and the
outcome to the user, and optionally writes the decoded image to disk.
"""

import base64
import binascii
import logging
import mimetypes
from pathlib import Path
from typing import Optional

from nanocli.domain.interfaces.user_interface import UserInterface
from nanocli.domain.models.common import ImageData
from nanocli.domain.models.image import GenerationResult
from nanocli.infrastructure.resilience.api_retry import BackoffRequestExecutor

logger = logging.getLogger(__name__)

PREVIEW_LENGTH = 50


class ImageSaveError(RuntimeError):
    """Raised when image data cannot be decoded or written."""


def resolve_output_path(path: Path, mime_type: Optional[str]) -> Path:
    """Adds an extension derived from `mime_type` when `path` has none."""
    if path.suffix or not mime_type:
        return path
    extension = mimetypes.guess_extension(mime_type)
    return path.with_suffix(extension) if extension else path


def save_image(data: ImageData, path: Path) -> Path:
    """Decodes base64 `data` and writes the bytes to `path`.

    Returns:
        The path written.

    Raises:
        ImageSaveError: If the data is not valid base64 or the write fails.
    """
    try:
        raw = base64.b64decode(data, validate=True)
    except (binascii.Error, ValueError) as e:
        raise ImageSaveError(f"Image data is not valid base64: {e}") from e

    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(raw)
    except OSError as e:
        raise ImageSaveError(f"Could not write image to {path}: {e}") from e

    logger.info(f"Wrote {len(raw)} bytes to {path}")
    return path


class ImageService:
    """Handles image generation requests from the CLI."""

    def __init__(self, executor: BackoffRequestExecutor, ui: UserInterface):
        self.executor = executor
        self.ui = ui

    async def generate(self, prompt: str, output_path: Optional[Path] = None) -> GenerationResult:
        """Generates an image for `prompt` and reports the result.

        Args:
            prompt: Text description of the image.
            output_path: Where to write the decoded image, if anywhere.

        Returns:
            The GenerationResult from the executor.

        Raises:
            ImageSaveError: If saving to `output_path` fails.
        """
        logger.info(f"Generating image for prompt: '{prompt[:80]}'")
        self.ui.display_info("Requesting image...")

        result = await self.executor.generate_image_detailed(prompt)

        if not result.succeeded:
            logger.warning(f"Image generation failed after {result.attempts} attempt(s).")
            detail = f" Last error: {result.last_error}" if result.last_error else ""
            self.ui.display_error(f"Failed to generate image.{detail}")
            return result

        self.ui.display_success("Image generated successfully!")
        self.ui.display_output(
            f"{result.image[:PREVIEW_LENGTH]}...",
            title=f"Base64 string (first {PREVIEW_LENGTH} chars)",
        )

        if output_path is not None:
            written = save_image(result.image, resolve_output_path(output_path, result.mime_type))
            self.ui.display_info(f"Image saved to: {written}")

        return result
