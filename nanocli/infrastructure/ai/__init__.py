"""Image Model Implementations.

Contains clients/adapters for image generation providers, each implementing
the `ImageModel` interface from the domain layer.
"""
