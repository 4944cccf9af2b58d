"""API Resilience Implementations.

Contains the backoff request executor that retries image generation
calls with exponential backoff.
Bounded Context: API Resilience
"""
