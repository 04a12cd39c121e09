"""LLM module - Configuration and direct HTTP calls to LLM APIs.

This module provides LLM integration for agents:
- LLMConfig: Model, credentials, endpoint and sampling settings
- LLMProvider: Client that sends an LLMConfig to the provider's API
- ProviderSpec: Presets for hosted and local OpenAI-compatible providers
- LLMError and subclasses: Failure taxonomy with remediation hints
"""

from .config import DEFAULT_MODEL, LLMConfig
from .errors import (
    LLMAPIError,
    LLMAuthenticationError,
    LLMConfigError,
    LLMConnectionError,
    LLMError,
    LLMRateLimitError,
    LLMResponseError,
    LLMServerError,
    LLMTimeoutError,
)
from .provider import LLMProvider
from .providers import ProviderSpec, get_provider, list_providers, split_model
from .types import LLMResponse, Message, Usage

__all__ = [
    "DEFAULT_MODEL",
    "LLMConfig",
    "LLMProvider",
    "ProviderSpec",
    "get_provider",
    "list_providers",
    "split_model",
    "Message",
    "LLMResponse",
    "Usage",
    "LLMError",
    "LLMConfigError",
    "LLMAPIError",
    "LLMAuthenticationError",
    "LLMRateLimitError",
    "LLMServerError",
    "LLMConnectionError",
    "LLMTimeoutError",
    "LLMResponseError",
]
