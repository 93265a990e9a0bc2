"""Utility helpers."""

from .log_sanitizer import LogSanitizationFilter, configure_logging, sanitize_string

__all__ = ["LogSanitizationFilter", "configure_logging", "sanitize_string"]
