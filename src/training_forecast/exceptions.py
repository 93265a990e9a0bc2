"""
Custom exceptions for training-forecast.

The hierarchy separates the one class of error that must abort a
computation (malformed numeric input to the simulation) from the
recoverable failures of the external collaborators (intervals.icu and
the LLM), which callers degrade around. Each exception carries:
- A descriptive message
- An error code for JSON output
- Optional details for debugging
"""

from typing import Any, Dict, Optional
from enum import Enum


class ErrorCode(str, Enum):
    """Error codes for consistent error output."""

    # General errors
    INTERNAL_ERROR = "INTERNAL_ERROR"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    CONFIGURATION_ERROR = "CONFIGURATION_ERROR"

    # Simulation input errors
    INVALID_LOAD_INPUT = "INVALID_LOAD_INPUT"

    # Data source errors
    DATA_SOURCE_ERROR = "DATA_SOURCE_ERROR"
    DATA_SOURCE_UNAVAILABLE = "DATA_SOURCE_UNAVAILABLE"
    DATA_SOURCE_AUTH_FAILED = "DATA_SOURCE_AUTH_FAILED"

    # LLM errors
    LLM_SERVICE_UNAVAILABLE = "LLM_SERVICE_UNAVAILABLE"
    LLM_RATE_LIMITED = "LLM_RATE_LIMITED"
    LLM_RESPONSE_INVALID = "LLM_RESPONSE_INVALID"
    LLM_TIMEOUT = "LLM_TIMEOUT"
    LLM_API_ERROR = "LLM_API_ERROR"


class TrainingForecastError(Exception):
    """
    Base exception for all training-forecast errors.

    Attributes:
        message: Human-readable error message
        code: Error code from ErrorCode enum
        details: Optional dictionary with additional error details
    """

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.INTERNAL_ERROR,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.message = message
        self.code = code
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for JSON output."""
        result: Dict[str, Any] = {
            "error": {
                "code": self.code.value,
                "message": self.message,
            }
        }
        if self.details:
            result["error"]["details"] = self.details
        return result

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(code={self.code.value}, message={self.message!r})"


# ============================================================================
# Validation Errors
# ============================================================================

class ValidationError(TrainingForecastError):
    """Raised when input validation fails."""

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        error_details = details or {}
        if field:
            error_details["field"] = field
        super().__init__(
            message=message,
            code=ErrorCode.VALIDATION_ERROR,
            details=error_details,
        )


class InvalidLoadInputError(ValidationError):
    """Raised when a load, stress value or horizon would corrupt a projection."""

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        value: Any = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        error_details = details or {}
        if value is not None:
            error_details["value"] = repr(value)
        super().__init__(message=message, field=field, details=error_details)
        self.code = ErrorCode.INVALID_LOAD_INPUT


class ConfigurationError(TrainingForecastError):
    """Raised when a required setting is missing."""

    def __init__(self, message: str, setting: Optional[str] = None) -> None:
        super().__init__(
            message=message,
            code=ErrorCode.CONFIGURATION_ERROR,
            details={"setting": setting} if setting else None,
        )


# ============================================================================
# Data Source Errors
# ============================================================================

class DataSourceError(TrainingForecastError):
    """Base class for failures fetching activity or schedule data."""

    def __init__(
        self,
        message: str,
        provider: str = "",
        code: ErrorCode = ErrorCode.DATA_SOURCE_ERROR,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.provider = provider
        error_details = details or {}
        if provider:
            error_details["provider"] = provider
        super().__init__(message=message, code=code, details=error_details)


class DataSourceUnavailableError(DataSourceError):
    """Raised when a data source cannot be reached after retries."""

    def __init__(
        self,
        message: str,
        provider: str = "",
        status_code: Optional[int] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        error_details = details or {}
        if status_code is not None:
            error_details["status_code"] = status_code
        super().__init__(
            message=message,
            provider=provider,
            code=ErrorCode.DATA_SOURCE_UNAVAILABLE,
            details=error_details,
        )


class DataSourceAuthError(DataSourceError):
    """Raised when a data source rejects the configured credentials."""

    def __init__(self, message: str, provider: str = "") -> None:
        super().__init__(
            message=message,
            provider=provider,
            code=ErrorCode.DATA_SOURCE_AUTH_FAILED,
        )


# ============================================================================
# LLM Service Errors
# ============================================================================

class LLMError(TrainingForecastError):
    """Base class for LLM-related errors."""

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.LLM_API_ERROR,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(
            message=message,
            code=code,
            details=details,
        )


class LLMServiceUnavailableError(LLMError):
    """Raised when the LLM service is unavailable or not configured."""

    def __init__(
        self,
        message: str = "LLM service is currently unavailable",
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(
            message=message,
            code=ErrorCode.LLM_SERVICE_UNAVAILABLE,
            details=details,
        )


class LLMRateLimitError(LLMError):
    """Raised when LLM rate limits are hit."""

    def __init__(
        self,
        retry_after: Optional[int] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        error_details = details or {}
        if retry_after:
            error_details["retry_after_seconds"] = retry_after
        super().__init__(
            message="LLM service rate limit exceeded. Please try again later.",
            code=ErrorCode.LLM_RATE_LIMITED,
            details=error_details,
        )


class LLMTimeoutError(LLMError):
    """Raised when LLM request times out."""

    def __init__(
        self,
        timeout_seconds: Optional[float] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        error_details = details or {}
        if timeout_seconds:
            error_details["timeout_seconds"] = timeout_seconds
        super().__init__(
            message="LLM request timed out",
            code=ErrorCode.LLM_TIMEOUT,
            details=error_details,
        )


class LLMResponseInvalidError(LLMError):
    """Raised when LLM response cannot be parsed."""

    def __init__(
        self,
        message: str = "Failed to parse LLM response",
        raw_response: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        error_details = details or {}
        if raw_response:
            error_details["raw_response_preview"] = raw_response[:500]
        super().__init__(
            message=message,
            code=ErrorCode.LLM_RESPONSE_INVALID,
            details=error_details,
        )
