"""LLM Providers - Presets for hosted and local OpenAI-compatible APIs.

A model string may carry a provider prefix (``"groq/llama-3.1-8b-instant"``).
The prefix selects a ProviderSpec, which supplies the default endpoint, the
environment variables consulted for credentials, and the auth style.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .errors import LLMConfigError

AUTH_BEARER = "bearer"
AUTH_AZURE = "azure"
AUTH_NONE = "none"


@dataclass(frozen=True)
class ProviderSpec:
    """Connection defaults for one provider.

    Attributes:
        name: Registry key, also the model prefix
        base_url: Default endpoint root (None when it must be configured)
        api_key_env: Environment variable holding the API key
        base_url_env: Environment variable overriding base_url
        api_version_env: Environment variable holding the API version
        default_model: Model used by presets when none is given
        auth: One of "bearer", "azure", "none"
        requires_api_key: Whether a request without a key should fail early
    """

    name: str
    base_url: Optional[str]
    api_key_env: Optional[str] = None
    base_url_env: Optional[str] = None
    api_version_env: Optional[str] = None
    default_model: Optional[str] = None
    auth: str = AUTH_BEARER
    requires_api_key: bool = True


_PROVIDERS: dict[str, ProviderSpec] = {
    spec.name: spec
    for spec in (
        ProviderSpec(
            name="openai",
            base_url="https://api.openai.com/v1",
            api_key_env="OPENAI_API_KEY",
            base_url_env="OPENAI_API_BASE",
            default_model="gpt-4o-mini",
        ),
        ProviderSpec(
            name="azure",
            base_url=None,
            api_key_env="AZURE_API_KEY",
            base_url_env="AZURE_API_BASE",
            api_version_env="AZURE_API_VERSION",
            auth=AUTH_AZURE,
        ),
        ProviderSpec(
            name="anthropic",
            base_url="https://api.anthropic.com/v1",
            api_key_env="ANTHROPIC_API_KEY",
            default_model="claude-3-5-sonnet-20241022",
        ),
        ProviderSpec(
            name="gemini",
            base_url="https://generativelanguage.googleapis.com/v1beta/openai",
            api_key_env="GEMINI_API_KEY",
            default_model="gemini-1.5-flash",
        ),
        ProviderSpec(
            name="groq",
            base_url="https://api.groq.com/openai/v1",
            api_key_env="GROQ_API_KEY",
            default_model="llama-3.1-8b-instant",
        ),
        ProviderSpec(
            name="mistral",
            base_url="https://api.mistral.ai/v1",
            api_key_env="MISTRAL_API_KEY",
            default_model="mistral-large-latest",
        ),
        ProviderSpec(
            name="deepseek",
            base_url="https://api.deepseek.com/v1",
            api_key_env="DEEPSEEK_API_KEY",
            default_model="deepseek-chat",
        ),
        ProviderSpec(
            name="openrouter",
            base_url="https://openrouter.ai/api/v1",
            api_key_env="OPENROUTER_API_KEY",
            default_model="openai/gpt-4o-mini",
        ),
        ProviderSpec(
            name="cerebras",
            base_url="https://api.cerebras.ai/v1",
            api_key_env="CEREBRAS_API_KEY",
            default_model="llama3.1-8b",
        ),
        ProviderSpec(
            name="ollama",
            base_url="http://localhost:11434/v1",
            base_url_env="OLLAMA_API_BASE",
            default_model="llama3.1",
            auth=AUTH_NONE,
            requires_api_key=False,
        ),
        ProviderSpec(
            name="lm_studio",
            base_url="http://localhost:1234/v1",
            base_url_env="LM_STUDIO_API_BASE",
            default_model="llama-3.2-3b-instruct",
            auth=AUTH_NONE,
            requires_api_key=False,
        ),
    )
}

DEFAULT_PROVIDER = "openai"


def get_provider(name: str) -> ProviderSpec:
    """Look up a provider preset by name (case-insensitive)."""
    spec = _PROVIDERS.get(name.lower().replace("-", "_"))
    if spec is None:
        raise LLMConfigError(
            f"Unknown provider: {name}. Choose from: {sorted(_PROVIDERS)}"
        )
    return spec


def is_provider(name: str) -> bool:
    return name.lower().replace("-", "_") in _PROVIDERS


def list_providers() -> list[ProviderSpec]:
    return [_PROVIDERS[name] for name in sorted(_PROVIDERS)]


def split_model(model: str) -> tuple[ProviderSpec, str]:
    """Split ``"provider/model"`` into its preset and the bare model name.

    Prefixes that are not registered providers stay part of the model name
    (``"meta-llama/Llama-3"`` on a self-hosted server) and use the default
    provider.
    """
    prefix, sep, rest = model.partition("/")
    if sep and rest:
        spec = _PROVIDERS.get(prefix.lower().replace("-", "_"))
        if spec is not None:
            return spec, rest
    return _PROVIDERS[DEFAULT_PROVIDER], model


__all__ = [
    "AUTH_AZURE",
    "AUTH_BEARER",
    "AUTH_NONE",
    "DEFAULT_PROVIDER",
    "ProviderSpec",
    "get_provider",
    "is_provider",
    "list_providers",
    "split_model",
]
