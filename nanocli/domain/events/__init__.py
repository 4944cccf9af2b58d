"""Domain Event definitions.

Represents significant occurrences during an image generation call
(attempts, retries, final failure). Dispatched to the debug log.
"""
