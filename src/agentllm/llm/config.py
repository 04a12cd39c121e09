"""LLM Configuration - Settings for LLM provider connections.

LLMConfig is the single record an agent needs to reach a model: which model,
where it lives, how to authenticate, and how to sample from it. Unset fields
are resolved from the environment when the config is built:

    OPENAI_MODEL_NAME   model (default "gpt-4o-mini")
    OPENAI_API_BASE     base_url for OpenAI / unprefixed models
    OPENAI_API_KEY      api_key for OpenAI / unprefixed models

Prefixed models (``"anthropic/claude-3-5-sonnet-20241022"``) read the key and
endpoint variables of their own provider preset instead.
"""

from __future__ import annotations

import dataclasses
import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Optional, Union

from pydantic import BaseModel

from .errors import LLMConfigError
from .providers import ProviderSpec, split_model

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "gpt-4o-mini"
DEFAULT_TIMEOUT = 600.0
MAX_STOP_SEQUENCES = 4

# Sampling fields forwarded verbatim in the request body
REQUEST_FIELDS = (
    "temperature",
    "top_p",
    "n",
    "stop",
    "max_tokens",
    "presence_penalty",
    "frequency_penalty",
    "logit_bias",
    "response_format",
    "seed",
    "logprobs",
    "top_logprobs",
)

_ALIASES = {
    "timeout_sec": "timeout",
    "api_base": "base_url",
    "model_name": "model",
}

ResponseFormat = Union[dict[str, Any], type[BaseModel]]


def mask_secret(value: Optional[str]) -> Optional[str]:
    """Mask a secret for display, keeping only a short prefix and suffix."""
    if not value:
        return value
    if len(value) <= 8:
        return "****"
    return f"{value[:3]}...{value[-4:]}"


def _is_model_class(value: Any) -> bool:
    return isinstance(value, type) and issubclass(value, BaseModel)


def _check_range(name: str, value: Optional[float], low: float, high: float) -> None:
    if value is None:
        return
    if not isinstance(value, (int, float)) or isinstance(value, bool):
        raise LLMConfigError(f"{name} must be a number, got {value!r}")
    if not low <= value <= high:
        raise LLMConfigError(f"{name} must be between {low} and {high}, got {value}")


def _check_int(name: str, value: Optional[int]) -> None:
    if value is None:
        return
    if not isinstance(value, int) or isinstance(value, bool):
        raise LLMConfigError(f"{name} must be an integer, got {value!r}")


def _check_min(name: str, value: Optional[float], low: float, *, strict: bool = False) -> None:
    if value is None:
        return
    if not isinstance(value, (int, float)) or isinstance(value, bool):
        raise LLMConfigError(f"{name} must be a number, got {value!r}")
    if value < low or (strict and value == low):
        op = ">" if strict else ">="
        raise LLMConfigError(f"{name} must be {op} {low}, got {value}")


@dataclass
class LLMConfig:
    """Configuration for an LLM connection.

    Connection attributes:
        model: Model name, optionally "provider/model"
        base_url: API base URL (e.g., "https://api.openai.com/v1")
        api_key: API key (optional for local models)
        api_version: API version for providers that require one (Azure)
        timeout: Request timeout in seconds

    Sampling attributes are forwarded unchanged to the provider; None means
    "use the provider's default".
    """

    model: Optional[str] = None
    timeout: Optional[float] = None
    temperature: Optional[float] = None
    top_p: Optional[float] = None
    n: Optional[int] = None
    stop: Optional[Union[str, list[str]]] = None
    max_tokens: Optional[int] = None
    presence_penalty: Optional[float] = None
    frequency_penalty: Optional[float] = None
    logit_bias: Optional[dict[Union[int, str], float]] = None
    response_format: Optional[ResponseFormat] = None
    seed: Optional[int] = None
    logprobs: Optional[bool] = None
    top_logprobs: Optional[int] = None
    base_url: Optional[str] = None
    api_version: Optional[str] = None
    api_key: Optional[str] = field(default=None, repr=False)
    extra_params: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        self._resolve_env()
        self.validate()

    def _resolve_env(self) -> None:
        # The provider lookup below parses the model string
        if self.model is not None and not isinstance(self.model, str):
            raise LLMConfigError(f"model must be a string, got {self.model!r}")
        if not self.model:
            self.model = os.getenv("OPENAI_MODEL_NAME") or DEFAULT_MODEL

        spec = self.provider
        if self.base_url is None:
            env_url = os.getenv(spec.base_url_env) if spec.base_url_env else None
            self.base_url = env_url or spec.base_url
        if self.api_key is None and spec.api_key_env:
            self.api_key = os.getenv(spec.api_key_env) or None
        if self.api_version is None and spec.api_version_env:
            self.api_version = os.getenv(spec.api_version_env) or None

    def validate(self) -> None:
        """Check every field; raises LLMConfigError on the first violation."""
        if not isinstance(self.model, str):
            raise LLMConfigError(f"model must be a string, got {self.model!r}")

        for name in ("base_url", "api_key", "api_version"):
            value = getattr(self, name)
            if value is not None and not isinstance(value, str):
                raise LLMConfigError(f"{name} must be a string, got {type(value).__name__}")

        for name in ("n", "max_tokens", "top_logprobs", "seed"):
            _check_int(name, getattr(self, name))
        if self.logprobs is not None and not isinstance(self.logprobs, bool):
            raise LLMConfigError(f"logprobs must be true or false, got {self.logprobs!r}")

        _check_min("timeout", self.timeout, 0, strict=True)
        _check_range("temperature", self.temperature, 0.0, 2.0)
        _check_range("top_p", self.top_p, 0.0, 1.0)
        _check_range("presence_penalty", self.presence_penalty, -2.0, 2.0)
        _check_range("frequency_penalty", self.frequency_penalty, -2.0, 2.0)
        _check_min("n", self.n, 1)
        _check_min("max_tokens", self.max_tokens, 1)
        _check_range("top_logprobs", self.top_logprobs, 0, 20)

        if self.top_logprobs is not None and not self.logprobs:
            raise LLMConfigError("top_logprobs requires logprobs=True")

        if self.stop is not None:
            stops = [self.stop] if isinstance(self.stop, str) else self.stop
            if not isinstance(stops, (list, tuple)) or not all(isinstance(s, str) for s in stops):
                raise LLMConfigError(f"stop must be a string or list of strings, got {self.stop!r}")
            if len(stops) > MAX_STOP_SEQUENCES:
                raise LLMConfigError(
                    f"stop accepts at most {MAX_STOP_SEQUENCES} sequences, got {len(stops)}"
                )

        if self.logit_bias is not None:
            if not isinstance(self.logit_bias, Mapping):
                raise LLMConfigError("logit_bias must be a mapping of token id to bias")
            for token, bias in self.logit_bias.items():
                _check_range(f"logit_bias[{token}]", bias, -100.0, 100.0)

        if self.response_format is not None and not (
            isinstance(self.response_format, Mapping) or _is_model_class(self.response_format)
        ):
            raise LLMConfigError("response_format must be a dict or a pydantic model class")

        if not isinstance(self.extra_params, Mapping):
            raise LLMConfigError(
                f"extra_params must be a table of request fields, got {self.extra_params!r}"
            )

        if self.provider.auth == "azure" and not self.api_version:
            logger.warning("Azure model %s has no api_version set", self.model)

    @property
    def provider(self) -> ProviderSpec:
        """Provider preset selected by the model prefix."""
        return split_model(self.model or DEFAULT_MODEL)[0]

    @property
    def model_name(self) -> str:
        """Model name as sent on the wire (provider prefix removed)."""
        return split_model(self.model or DEFAULT_MODEL)[1]

    @property
    def effective_timeout(self) -> float:
        return self.timeout if self.timeout is not None else DEFAULT_TIMEOUT

    def to_request_params(self) -> dict[str, Any]:
        """Sampling parameters for the request body, None values omitted."""
        params: dict[str, Any] = {}
        for name in REQUEST_FIELDS:
            value = getattr(self, name)
            if value is None:
                continue
            if name == "stop" and isinstance(value, str):
                value = [value]
            elif name == "logit_bias":
                value = {str(token): bias for token, bias in value.items()}
            elif name == "response_format" and _is_model_class(value):
                value = {
                    "type": "json_schema",
                    "json_schema": {
                        "name": value.__name__,
                        "schema": value.model_json_schema(),
                    },
                }
            params[name] = value
        params.update(self.extra_params)
        return params

    def with_overrides(self, **overrides: Any) -> LLMConfig:
        """Return a new config with some fields replaced.

        Switching to a model of another provider drops the connection
        settings resolved for the old one unless they are overridden too.
        """
        if not overrides:
            return self
        unknown = set(overrides) - {f.name for f in dataclasses.fields(self)}
        if unknown:
            raise LLMConfigError(f"Unknown LLMConfig fields: {sorted(unknown)}")

        new_model = overrides.get("model")
        if new_model and split_model(new_model)[0] != self.provider:
            for name in ("base_url", "api_key", "api_version"):
                overrides.setdefault(name, None)
        return dataclasses.replace(self, **overrides)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> LLMConfig:
        """Build a config from a mapping such as a TOML [llm.<name>] table."""
        known = {f.name for f in dataclasses.fields(cls)}
        kwargs: dict[str, Any] = {}
        for key, value in data.items():
            name = _ALIASES.get(key, key)
            if name == "extra":
                name = "extra_params"
            if name not in known:
                logger.warning("Ignoring unknown LLM setting %r", key)
                continue
            # Unset ${VAR} references expand to ""; fall back to env defaults
            if value == "" and name in ("model", "base_url", "api_key", "api_version"):
                continue
            kwargs[name] = value
        return cls(**kwargs)

    def describe(self) -> dict[str, Any]:
        """Effective settings for display, with the API key masked."""
        info: dict[str, Any] = {
            "provider": self.provider.name,
            "model": self.model_name,
            "base_url": self.base_url,
            "api_key": mask_secret(self.api_key),
            "timeout": self.effective_timeout,
        }
        if self.api_version:
            info["api_version"] = self.api_version
        params = self.to_request_params()
        if "response_format" in params and _is_model_class(self.response_format):
            params["response_format"] = self.response_format.__name__
        info.update(params)
        return info


__all__ = ["DEFAULT_MODEL", "DEFAULT_TIMEOUT", "LLMConfig", "mask_secret"]
