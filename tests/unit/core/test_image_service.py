import base64
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import pytest

from nanocli.core.services.image_service import (
    ImageSaveError, ImageService, resolve_output_path, save_image
)
from nanocli.domain.interfaces.user_interface import UserInterface
from nanocli.domain.models.image import GenerationResult
from nanocli.infrastructure.resilience.api_retry import BackoffRequestExecutor

PNG_BYTES = b"\x89PNG\r\n\x1a\nfake"
PNG_B64 = base64.b64encode(PNG_BYTES).decode("ascii")


@pytest.fixture
def mock_ui():
    return MagicMock(spec=UserInterface)


@pytest.fixture
def mock_executor():
    mock = MagicMock(spec=BackoffRequestExecutor)
    mock.generate_image_detailed = AsyncMock()
    return mock


@pytest.fixture
def image_service(mock_executor, mock_ui):
    return ImageService(executor=mock_executor, ui=mock_ui)


@pytest.mark.asyncio
async def test_generate_success_reports_preview(image_service, mock_executor, mock_ui):
    data = "A" * 80
    mock_executor.generate_image_detailed.return_value = GenerationResult(image=data, attempts=1)

    result = await image_service.generate("a red cube")

    assert result.succeeded
    mock_executor.generate_image_detailed.assert_awaited_once_with("a red cube")
    mock_ui.display_info.assert_any_call("Requesting image...")
    mock_ui.display_success.assert_called_once_with("Image generated successfully!")
    preview = mock_ui.display_output.call_args.args[0]
    assert preview == "A" * 50 + "..."
    mock_ui.display_error.assert_not_called()


@pytest.mark.asyncio
async def test_generate_failure_reports_last_error(image_service, mock_executor, mock_ui):
    mock_executor.generate_image_detailed.return_value = GenerationResult(
        image=None, attempts=6, last_error="Quota exceeded"
    )

    result = await image_service.generate("x")

    assert not result.succeeded
    mock_ui.display_error.assert_called_once_with("Failed to generate image. Last error: Quota exceeded")
    mock_ui.display_success.assert_not_called()
    mock_ui.display_output.assert_not_called()


@pytest.mark.asyncio
async def test_generate_writes_decoded_image(image_service, mock_executor, mock_ui, tmp_path: Path):
    mock_executor.generate_image_detailed.return_value = GenerationResult(
        image=PNG_B64, attempts=2, mime_type="image/png"
    )
    target = tmp_path / "out" / "cube"

    await image_service.generate("x", output_path=target)

    written = tmp_path / "out" / "cube.png"
    assert written.read_bytes() == PNG_BYTES
    mock_ui.display_info.assert_any_call(f"Image saved to: {written}")


@pytest.mark.asyncio
async def test_generate_does_not_save_on_failure(image_service, mock_executor, tmp_path: Path):
    mock_executor.generate_image_detailed.return_value = GenerationResult(image=None, attempts=6)
    target = tmp_path / "never.png"

    await image_service.generate("x", output_path=target)

    assert not target.exists()


def test_save_image_rejects_invalid_base64(tmp_path: Path):
    with pytest.raises(ImageSaveError, match="not valid base64"):
        save_image("not base64!!", tmp_path / "bad.png")


def test_save_image_reports_write_failure(tmp_path: Path):
    blocker = tmp_path / "file"
    blocker.write_text("x")
    with pytest.raises(ImageSaveError, match="Could not write image"):
        save_image(PNG_B64, blocker / "child.png")


@pytest.mark.parametrize(
    "path, mime_type, expected",
    [
        (Path("cube"), "image/png", Path("cube.png")),
        (Path("cube.jpg"), "image/png", Path("cube.jpg")),
        (Path("cube"), None, Path("cube")),
        (Path("cube"), "application/x-unknown-thing", Path("cube")),
    ],
)
def test_resolve_output_path(path, mime_type, expected):
    assert resolve_output_path(path, mime_type) == expected
