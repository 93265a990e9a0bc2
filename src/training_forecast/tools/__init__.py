"""Shared helpers for calling external services."""

from .retry import RetryPolicy, is_retryable

__all__ = ["RetryPolicy", "is_retryable"]
