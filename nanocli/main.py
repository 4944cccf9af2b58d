"""Main entry point for the nanoCLI application.

Sets up the Typer CLI application, performs dependency injection (Composition Root),
and defines the CLI commands.
"""

import asyncio
import dataclasses
import logging
from pathlib import Path
from typing import Any, Dict, Optional

import typer
from typing_extensions import Annotated

from nanocli import __version__
# --- Core Layer ---
from nanocli.core.services.image_service import ImageSaveError, ImageService
from nanocli.domain.interfaces.user_interface import UserInterface
from nanocli.domain.models.image import GenerationResult
# --- Infrastructure Layer ---
from nanocli.infrastructure.ai.gemini.gemini_client import GeminiImageClient
from nanocli.infrastructure.cli.display import ConsoleDisplay
from nanocli.infrastructure.config.settings import (
    get_backoff_policy, get_base_url, get_config, get_gemini_api_key, get_model_id,
    get_timeout_seconds, load_configuration
)
from nanocli.infrastructure.monitoring.logger_setup import (
    DEFAULT_LOG_FORMAT, setup_logging
)
from nanocli.infrastructure.resilience.api_retry import BackoffRequestExecutor

logger = logging.getLogger(__name__)

DEFAULT_PROMPT = (
    "A futuristic cyberpunk city with neon signs in the shape of bananas, "
    "4k, cinematic lighting"
)


# --- Dependency Injection Container (Manual) ---

def create_dependencies(
    ui: UserInterface,
    model_id: Optional[str] = None,
    max_retries: Optional[int] = None,
) -> Dict[str, Any]:
    """Creates and wires up all dependencies for one command run.

    This acts as the Composition Root: configuration is read here and
    handed to the services, which never read it themselves.

    Raises:
        ValueError: If required configuration (the API key) is missing.
    """
    load_configuration()
    setup_logging(
        log_level=get_config('logging.level', 'WARNING'),
        log_format=get_config('logging.format', DEFAULT_LOG_FORMAT),
        log_file=get_config('logging.file'),
    )
    logger.info("Configuration and logging initialized.")

    # Validate all settings before the client opens a connection pool
    policy = get_backoff_policy()
    if max_retries is not None:
        policy = dataclasses.replace(policy, max_retries=max_retries)
    timeout_seconds = get_timeout_seconds()

    dependencies: Dict[str, Any] = {'ui': ui}
    dependencies['image_model'] = GeminiImageClient(
        api_key=get_gemini_api_key(),
        model_id=model_id or get_model_id(),
        base_url=get_base_url(),
        timeout_seconds=timeout_seconds,
    )

    dependencies['executor'] = BackoffRequestExecutor(
        image_model=dependencies['image_model'],
        policy=policy,
    )
    dependencies['image_service'] = ImageService(
        executor=dependencies['executor'],
        ui=ui,
    )
    logger.info("All dependencies initialized successfully.")
    return dependencies


async def _run_generate(dependencies: Dict[str, Any], prompt: str, output: Optional[Path]) -> GenerationResult:
    service: ImageService = dependencies['image_service']
    try:
        return await service.generate(prompt, output_path=output)
    finally:
        await dependencies['image_model'].aclose()


# --- Typer App Definition ---
app = typer.Typer(
    name="nanocli",
    help="nanoCLI: generate images from text prompts with automatic retry and backoff.",
    add_completion=False,
)


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"nanocli {__version__}")
        raise typer.Exit()


@app.callback()
def main_callback(
    version: Annotated[
        Optional[bool],
        typer.Option("--version", callback=_version_callback, is_eager=True, help="Show the version and exit.")
    ] = None,
):
    """Text-to-image generation client."""


@app.command()
def generate(
    prompt: Annotated[str, typer.Argument(help="Text description of the image you want.")] = DEFAULT_PROMPT,
    output: Annotated[
        Optional[Path],
        typer.Option("--output", "-o", dir_okay=False, help="Write the decoded image to this file.")
    ] = None,
    model: Annotated[
        Optional[str],
        typer.Option("--model", "-m", help="Model id to use. Uses the configured default if not set.")
    ] = None,
    max_retries: Annotated[
        Optional[int],
        typer.Option("--max-retries", min=0, help="Retries after the first attempt. Uses the configured value if not set.")
    ] = None,
):
    """Generate an image from PROMPT and print a preview of its base64 data."""
    ui = ConsoleDisplay()
    try:
        dependencies = create_dependencies(ui, model_id=model, max_retries=max_retries)
    except ValueError as e:
        logger.error(f"Initialization failed: {e}")
        ui.display_error(f"Configuration error: {e}")
        raise typer.Exit(code=1)

    try:
        result = asyncio.run(_run_generate(dependencies, prompt, output))
    except ImageSaveError as e:
        logger.error(f"Saving image failed: {e}")
        ui.display_error(str(e))
        raise typer.Exit(code=1)

    if not result.succeeded:
        raise typer.Exit(code=1)


# --- Main Execution Guard ---

def cli_entry_point():
    """Function to be called by the script entry point in pyproject.toml."""
    app()


if __name__ == "__main__":
    cli_entry_point()
