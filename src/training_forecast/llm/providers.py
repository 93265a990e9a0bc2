"""
LLM client for narrative generation.

A thin synchronous wrapper over the OpenAI chat completions API with:
- Bounded fixed-delay retries on rate limits, connection errors and 5xx
- Per-request timeout
- JSON-mode completions with tolerant extraction of the JSON object
- Custom exceptions so callers can fall back on any LLMError
"""

from typing import Any, Callable, Dict, Optional, TypeVar
import json
import logging
import re
import time

from openai import OpenAI, APIConnectionError, APIError, APITimeoutError, RateLimitError

from ..config import Settings, get_settings
from ..exceptions import (
    LLMError,
    LLMRateLimitError,
    LLMResponseInvalidError,
    LLMServiceUnavailableError,
    LLMTimeoutError,
)


logger = logging.getLogger(__name__)

T = TypeVar("T")

_FENCED_JSON = re.compile(r"```(?:json)?\s*(\{.*\})\s*```", re.DOTALL)
_BARE_JSON = re.compile(r"\{.*\}", re.DOTALL)


class RetryConfig:
    """Configuration for retry behavior."""

    def __init__(
        self,
        max_attempts: int = 3,
        delay_seconds: float = 2.0,
        retryable_status_codes: Optional[set[int]] = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.max_attempts = max_attempts
        self.delay_seconds = delay_seconds
        self.retryable_status_codes = retryable_status_codes or {429, 500, 502, 503, 504}
        self.sleep = sleep


def extract_json_object(content: Optional[str]) -> Dict[str, Any]:
    """
    Parse the JSON object in an LLM reply.

    Accepts a bare object, a fenced ```json block, or an object embedded in
    surrounding prose.

    Raises:
        LLMResponseInvalidError: If no JSON object can be parsed
    """
    if content is None or not content.strip():
        raise LLMResponseInvalidError(message="Empty response from LLM")

    candidates = [content.strip()]
    fenced = _FENCED_JSON.search(content)
    if fenced:
        candidates.append(fenced.group(1))
    bare = _BARE_JSON.search(content)
    if bare:
        candidates.append(bare.group(0))

    for candidate in candidates:
        try:
            parsed = json.loads(candidate)
        except json.JSONDecodeError:
            continue
        if isinstance(parsed, dict):
            return parsed

    raise LLMResponseInvalidError(
        message="Invalid JSON response from LLM",
        raw_response=content,
    )


class LLMClient:
    """
    OpenAI client with retry logic and error translation.

    Raises LLMServiceUnavailableError at construction when no API key is
    configured, which is the availability check used when choosing a
    narrative generator.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        timeout: Optional[float] = None,
        retry_config: Optional[RetryConfig] = None,
        settings: Optional[Settings] = None,
        client: Optional[Any] = None,
    ) -> None:
        """
        Initialize the LLM client.

        Args:
            api_key: OpenAI API key (defaults to settings)
            model: Model name (defaults to settings.llm_model)
            timeout: Request timeout in seconds
            retry_config: Configuration for retry behavior
            settings: Settings instance (defaults to get_settings())
            client: Pre-built OpenAI-compatible client
        """
        settings = settings or get_settings()
        api_key = api_key or settings.openai_api_key

        if not api_key and client is None:
            raise LLMServiceUnavailableError(
                message="OPENAI_API_KEY not configured",
                details={"configuration_missing": "openai_api_key"},
            )

        self.model = model or settings.llm_model
        self.timeout = timeout if timeout is not None else settings.llm_timeout_seconds
        self.max_tokens = settings.llm_max_tokens
        self.client = client or OpenAI(api_key=api_key, timeout=self.timeout, max_retries=0)
        self.retry_config = retry_config or RetryConfig(
            max_attempts=settings.retry_attempts,
            delay_seconds=settings.retry_delay_seconds,
        )
        self._logger = logger

    def _execute_with_retry(
        self,
        operation: Callable[[], T],
        operation_name: str = "LLM request",
    ) -> T:
        """
        Execute an operation with retry logic.

        Raises:
            LLMError: On unrecoverable failure
        """
        attempts = self.retry_config.max_attempts

        for attempt in range(1, attempts + 1):
            last_attempt = attempt == attempts
            try:
                return operation()

            except RateLimitError as e:
                if last_attempt:
                    raise LLMRateLimitError() from e
                self._logger.warning(
                    f"{operation_name} rate limited. Retry {attempt}/{attempts - 1} "
                    f"in {self.retry_config.delay_seconds:.1f}s"
                )

            except APITimeoutError as e:
                if last_attempt:
                    raise LLMTimeoutError(timeout_seconds=self.timeout) from e
                self._logger.warning(f"{operation_name} timed out. Retry {attempt}/{attempts - 1}")

            except APIConnectionError as e:
                if last_attempt:
                    raise LLMServiceUnavailableError(
                        message=f"Connection to LLM service failed: {e}",
                    ) from e
                self._logger.warning(
                    f"{operation_name} connection error. Retry {attempt}/{attempts - 1}: {e}"
                )

            except APIError as e:
                status = getattr(e, "status_code", None) or 500
                if status not in self.retry_config.retryable_status_codes:
                    raise LLMError(
                        message=f"LLM API error: {e}",
                        details={"status_code": status},
                    ) from e
                if last_attempt:
                    raise LLMServiceUnavailableError(
                        message=f"LLM API error after retries: {e}",
                        details={"status_code": status},
                    ) from e
                self._logger.warning(
                    f"{operation_name} API error (status {status}). Retry {attempt}/{attempts - 1}"
                )

            except Exception as e:
                self._logger.error(f"Unexpected error in {operation_name}: {e}")
                raise LLMError(message=f"Unexpected LLM error: {e}") from e

            self.retry_config.sleep(self.retry_config.delay_seconds)

        raise LLMError(message=f"{operation_name} failed after {attempts} attempts")

    def completion_json(self, system: str, user: str, temperature: float = 0.4) -> Dict[str, Any]:
        """
        Get a JSON completion from the LLM using JSON mode.

        Args:
            system: System prompt (must mention JSON in the prompt)
            user: User message
            temperature: Sampling temperature

        Returns:
            The parsed JSON response as a dictionary

        Raises:
            LLMError: On failure
            LLMResponseInvalidError: If response is not valid JSON
        """

        def _make_request() -> Optional[str]:
            response = self.client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": system},
                    {"role": "user", "content": user},
                ],
                max_tokens=self.max_tokens,
                temperature=temperature,
                response_format={"type": "json_object"},
                timeout=self.timeout,
            )
            return response.choices[0].message.content

        content = self._execute_with_retry(_make_request, "completion_json")
        return extract_json_object(content)
