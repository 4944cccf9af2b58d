"""nanoCLI: a small client for text-to-image generation with retry/backoff."""

__version__ = "0.1.0"
