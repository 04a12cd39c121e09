"""LLM Errors - Failure taxonomy for LLM provider calls.

Every error carries a ``hint`` with the usual remediation so callers (and the
CLI) can tell the user what to try next.
"""

from __future__ import annotations

from typing import Optional


class LLMError(Exception):
    """Base class for all agentllm errors."""

    hint: str = "Check the provider configuration and try again."
    retryable: bool = False

    def __init__(self, message: str, *, hint: Optional[str] = None):
        super().__init__(message)
        if hint is not None:
            self.hint = hint


class LLMConfigError(LLMError, ValueError):
    """Invalid LLM configuration value."""

    hint = "Fix the configuration value named in the error."


class LLMAPIError(LLMError):
    """Provider answered with a non-success HTTP status."""

    hint = "Check the model name, base_url and api_version for this provider."

    def __init__(
        self,
        message: str,
        *,
        status_code: Optional[int] = None,
        body: Optional[str] = None,
        hint: Optional[str] = None,
    ):
        super().__init__(message, hint=hint)
        self.status_code = status_code
        self.body = body


class LLMAuthenticationError(LLMAPIError):
    """Missing, invalid or unauthorized API key."""

    hint = (
        "Check your API key: set it on the config or export the provider's "
        "key variable (e.g. OPENAI_API_KEY)."
    )


class LLMRateLimitError(LLMAPIError):
    """Provider rate limit hit (HTTP 429)."""

    hint = "Slow down requests, lower n/max_tokens, or check your plan's quota."
    retryable = True


class LLMServerError(LLMAPIError):
    """Provider-side failure (HTTP 5xx)."""

    hint = "The provider is having trouble; retry later."
    retryable = True


class LLMConnectionError(LLMError):
    """Could not reach the provider."""

    hint = "Check base_url and that the server (or local runtime) is running."
    retryable = True


class LLMTimeoutError(LLMError):
    """Request took longer than the configured timeout."""

    hint = "Increase `timeout`, lower max_tokens, or pick a faster model."
    retryable = True


class LLMResponseError(LLMError):
    """Response did not have the expected shape or content."""

    hint = "Lower `temperature` or set `response_format` for more predictable output."


def error_from_status(status_code: int, body: str = "") -> LLMAPIError:
    """Build the matching LLMAPIError subclass for an HTTP status."""
    message = f"LLM HTTP error {status_code}: {body}"
    if status_code in (401, 403):
        cls: type[LLMAPIError] = LLMAuthenticationError
    elif status_code == 429:
        cls = LLMRateLimitError
    elif status_code >= 500:
        cls = LLMServerError
    else:
        cls = LLMAPIError
    return cls(message, status_code=status_code, body=body)


__all__ = [
    "LLMError",
    "LLMConfigError",
    "LLMAPIError",
    "LLMAuthenticationError",
    "LLMRateLimitError",
    "LLMServerError",
    "LLMConnectionError",
    "LLMTimeoutError",
    "LLMResponseError",
    "error_from_status",
]
