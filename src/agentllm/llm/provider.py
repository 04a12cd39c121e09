"""LLM Provider - Direct HTTP calls to OpenAI-compatible chat APIs.

LLMProvider takes an LLMConfig and turns it into chat completion requests:
the config's sampling fields are forwarded unchanged, while the provider
preset decides the endpoint layout and authentication header.

Example:
    ```python
    from agentllm.llm import LLMConfig, LLMProvider

    llm = LLMProvider(LLMConfig(model="groq/llama-3.1-8b-instant", temperature=0.2))
    answer = await llm.generate("Summarize the plot of Hamlet", max_tokens=200)
    ```
"""

from __future__ import annotations

import asyncio
import json
import logging
from typing import TYPE_CHECKING, Any, AsyncIterator, Optional, Sequence, TypeVar, Union

import httpx
from opentelemetry import trace
from pydantic import BaseModel, ValidationError

from .config import LLMConfig
from .errors import (
    LLMAuthenticationError,
    LLMConfigError,
    LLMConnectionError,
    LLMError,
    LLMResponseError,
    LLMTimeoutError,
    error_from_status,
)
from .providers import AUTH_AZURE, get_provider
from .types import LLMResponse, Message

if TYPE_CHECKING:
    from ..config import ProjectConfig

logger = logging.getLogger(__name__)

# Get tracer for LLM operation spans
tracer = trace.get_tracer(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)
MessageLike = Union[Message, dict[str, Any]]


def _to_messages(messages: Sequence[MessageLike]) -> list[dict[str, Any]]:
    return [m.to_dict() if isinstance(m, Message) else dict(m) for m in messages]


def _prompt_messages(prompt: str, system: Optional[str]) -> list[dict[str, Any]]:
    messages = []
    if system:
        messages.append({"role": "system", "content": system})
    messages.append({"role": "user", "content": prompt})
    return messages


class LLMProvider:
    """Client for one configured LLM connection."""

    def __init__(
        self,
        config: Optional[LLMConfig] = None,
        *,
        agent_id: Optional[str] = None,
        max_retries: int = 2,
        retry_backoff: float = 0.5,
    ):
        """Initialize LLM provider.

        Args:
            config: LLM configuration (defaults to LLMConfig() from the environment)
            agent_id: Agent using this provider, recorded on trace spans
            max_retries: Extra attempts for retryable failures (429, 5xx, timeouts)
            retry_backoff: Base delay in seconds, doubled on each retry
        """
        if max_retries < 0:
            raise LLMConfigError("max_retries must be >= 0")
        self.config = config or LLMConfig()
        self.agent_id = agent_id
        self.max_retries = max_retries
        self.retry_backoff = retry_backoff

    def __repr__(self) -> str:
        return f"LLMProvider(model={self.config.model!r}, base_url={self.config.base_url!r})"

    @classmethod
    def from_name(cls, provider_name: str, **kwargs: Any) -> LLMProvider:
        """Create provider from a preset name.

        Args:
            provider_name: A registered provider, e.g. "openai", "groq", "ollama"

        Returns:
            Configured LLMProvider instance using the preset's default model
        """
        spec = get_provider(provider_name)
        if not spec.default_model:
            raise LLMConfigError(
                f"Provider '{spec.name}' has no default model; "
                f"use LLMConfig(model='{spec.name}/<model>') instead"
            )
        model = spec.default_model if spec.name == "openai" else f"{spec.name}/{spec.default_model}"
        return cls(LLMConfig(model=model), **kwargs)

    @classmethod
    def from_config(
        cls,
        provider_name: str,
        project_config: ProjectConfig,
        **kwargs: Any,
    ) -> LLMProvider:
        """Create provider from ProjectConfig.

        Loads the [llm.<provider_name>] table of agentllm.toml and falls back
        to the built-in preset of the same name.

        Example agentllm.toml:
            [llm.groq]
            model = "groq/llama-3.1-70b-versatile"
            api_key = "${GROQ_API_KEY}"
            temperature = 0.3
            timeout = 60
        """
        if provider_name in project_config.llm_providers:
            logger.info("Loaded LLM '%s' from project config", provider_name)
            return cls(project_config.llm_providers[provider_name], **kwargs)

        logger.info("LLM '%s' not in project config, using built-in preset", provider_name)
        return cls.from_name(provider_name, **kwargs)

    # ------------------------------------------------------------------
    # Request building
    # ------------------------------------------------------------------

    def chat_url(self, config: Optional[LLMConfig] = None) -> str:
        config = config or self.config
        if not config.base_url:
            spec = config.provider
            env_hint = f" or set {spec.base_url_env}" if spec.base_url_env else ""
            raise LLMConfigError(f"No base_url configured for provider '{spec.name}'{env_hint}")
        base = config.base_url.rstrip("/")
        if config.provider.auth == AUTH_AZURE:
            return f"{base}/openai/deployments/{config.model_name}/chat/completions"
        return f"{base}/chat/completions"

    def query_params(self, config: Optional[LLMConfig] = None) -> Optional[dict[str, str]]:
        config = config or self.config
        if config.api_version:
            return {"api-version": config.api_version}
        return None

    def headers(self, config: Optional[LLMConfig] = None) -> dict[str, str]:
        config = config or self.config
        spec = config.provider
        headers = {"Content-Type": "application/json"}

        if not config.api_key:
            if spec.requires_api_key:
                env_hint = spec.api_key_env or "the provider's API key variable"
                raise LLMAuthenticationError(
                    f"No API key for provider '{spec.name}'",
                    hint=f"Pass api_key to LLMConfig or set {env_hint}.",
                )
            return headers

        if spec.auth == AUTH_AZURE:
            headers["api-key"] = config.api_key
        else:
            headers["Authorization"] = f"Bearer {config.api_key}"
        return headers

    def build_payload(
        self,
        messages: Sequence[MessageLike],
        *,
        stream: bool = False,
        **overrides: Any,
    ) -> dict[str, Any]:
        """Request body for messages, with LLMConfig fields overridden for this call."""
        return self._payload(messages, self.config.with_overrides(**overrides), stream=stream)

    def _payload(
        self, messages: Sequence[MessageLike], config: LLMConfig, *, stream: bool = False
    ) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "model": config.model_name,
            "messages": _to_messages(messages),
        }
        payload.update(config.to_request_params())
        if stream:
            payload["stream"] = True
        return payload

    # ------------------------------------------------------------------
    # HTTP
    # ------------------------------------------------------------------

    async def _post(self, config: LLMConfig, payload: dict[str, Any]) -> Any:
        url = self.chat_url(config)
        headers = self.headers(config)
        logger.debug("POST %s model=%s", url, payload["model"])
        try:
            async with httpx.AsyncClient(timeout=config.effective_timeout) as client:
                response = await client.post(
                    url, json=payload, headers=headers, params=self.query_params(config)
                )
                response.raise_for_status()
                return response.json()
        except httpx.HTTPStatusError as e:
            raise error_from_status(e.response.status_code, e.response.text) from e
        except httpx.TimeoutException as e:
            raise LLMTimeoutError(
                f"LLM request timed out after {config.effective_timeout}s"
            ) from e
        except httpx.RequestError as e:
            raise LLMConnectionError(f"Failed to connect to LLM at {url}: {e}") from e
        except json.JSONDecodeError as e:
            raise LLMResponseError(f"LLM returned invalid JSON: {e}") from e

    async def _post_with_retries(self, config: LLMConfig, payload: dict[str, Any]) -> Any:
        attempt = 0
        while True:
            try:
                return await self._post(config, payload)
            except LLMError as e:
                if not e.retryable or attempt >= self.max_retries:
                    raise
                delay = self.retry_backoff * (2**attempt)
                attempt += 1
                logger.warning(
                    "LLM call failed (%s), retry %d/%d in %.2fs",
                    e,
                    attempt,
                    self.max_retries,
                    delay,
                )
                await asyncio.sleep(delay)

    def _span_attributes(self, config: LLMConfig, messages: list[dict[str, Any]]) -> dict[str, Any]:
        attributes: dict[str, Any] = {
            "llm.provider": config.provider.name,
            "llm.base_url": config.base_url or "",
            "llm.model": config.model_name,
            "llm.messages.count": len(messages),
            "agent.id": self.agent_id or "unknown",
        }
        for name in ("temperature", "top_p", "max_tokens", "n", "seed"):
            value = getattr(config, name)
            if value is not None:
                attributes[f"llm.{name}"] = value
        return attributes

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def complete(self, messages: Sequence[MessageLike], **overrides: Any) -> LLMResponse:
        """Chat completion returning the full parsed response.

        Args:
            messages: Message objects or dicts with "role" and "content" keys
            **overrides: LLMConfig fields to override for this call only

        Raises:
            LLMError: Any subclass, depending on what went wrong
        """
        config = self.config.with_overrides(**overrides)
        payload = self._payload(messages, config)

        with tracer.start_as_current_span(
            "llm.complete",
            attributes=self._span_attributes(config, payload["messages"]),
        ) as span:
            try:
                result = await self._post_with_retries(config, payload)
                response = LLMResponse.from_api(result)

                span.set_attribute("llm.response.length", len(response.content))
                span.set_attribute("llm.usage.prompt_tokens", response.usage.prompt_tokens)
                span.set_attribute("llm.usage.completion_tokens", response.usage.completion_tokens)
                if response.finish_reason:
                    span.set_attribute("llm.finish_reason", response.finish_reason)
                span.set_attribute("llm.status", "success")
                span.set_status(trace.Status(trace.StatusCode.OK))
                return response
            except LLMError as e:
                span.set_attribute("llm.status", "error")
                span.set_status(trace.Status(trace.StatusCode.ERROR, str(e)))
                span.record_exception(e)
                raise

    async def chat(self, messages: Sequence[MessageLike], **overrides: Any) -> str:
        """Chat completion with message history.

        Returns:
            Assistant's response text
        """
        response = await self.complete(messages, **overrides)
        return response.content

    async def generate(self, prompt: str, *, system: Optional[str] = None, **overrides: Any) -> str:
        """Generate text completion for a single prompt.

        Args:
            prompt: User prompt/input
            system: Optional system prompt
            **overrides: LLMConfig fields to override, e.g. temperature=0.0

        Returns:
            Generated text
        """
        return await self.chat(_prompt_messages(prompt, system), **overrides)

    async def generate_stream(
        self, prompt: str, *, system: Optional[str] = None, **overrides: Any
    ) -> AsyncIterator[str]:
        """Generate text as a stream of content chunks (server-sent events).

        Streams are not retried: a failure after the first chunk would
        duplicate output.
        """
        config = self.config.with_overrides(**overrides)
        payload = self._payload(_prompt_messages(prompt, system), config, stream=True)
        url = self.chat_url(config)
        headers = self.headers(config)

        with tracer.start_as_current_span(
            "llm.stream",
            attributes=self._span_attributes(config, payload["messages"]),
        ) as span:
            chunks = 0
            try:
                async with httpx.AsyncClient(timeout=config.effective_timeout) as client:
                    async with client.stream(
                        "POST", url, json=payload, headers=headers, params=self.query_params(config)
                    ) as response:
                        try:
                            response.raise_for_status()
                        except httpx.HTTPStatusError as e:
                            await response.aread()
                            raise error_from_status(e.response.status_code, e.response.text) from e

                        async for line in response.aiter_lines():
                            if not line or not line.startswith("data:"):
                                continue
                            data = line[len("data:") :].strip()
                            if data == "[DONE]":
                                break
                            try:
                                event = json.loads(data)
                            except json.JSONDecodeError:
                                logger.debug("Skipping malformed stream chunk: %s", data)
                                continue
                            choices = event.get("choices") or [{}]
                            content = (choices[0].get("delta") or {}).get("content")
                            if content:
                                chunks += 1
                                yield content
            except httpx.TimeoutException as e:
                error: LLMError = LLMTimeoutError(
                    f"LLM stream timed out after {config.effective_timeout}s"
                )
                span.record_exception(error)
                span.set_status(trace.Status(trace.StatusCode.ERROR, str(error)))
                raise error from e
            except httpx.RequestError as e:
                error = LLMConnectionError(f"Failed to connect to LLM at {url}: {e}")
                span.record_exception(error)
                span.set_status(trace.Status(trace.StatusCode.ERROR, str(error)))
                raise error from e
            except LLMError as e:
                span.record_exception(e)
                span.set_status(trace.Status(trace.StatusCode.ERROR, str(e)))
                raise
            span.set_attribute("llm.stream.chunks", chunks)
            span.set_status(trace.Status(trace.StatusCode.OK))

    async def generate_structured(
        self,
        prompt: str,
        response_model: type[ModelT],
        *,
        system: Optional[str] = None,
        **overrides: Any,
    ) -> ModelT:
        """Generate a response validated against a pydantic model.

        Raises:
            LLMResponseError: If the output is not valid for response_model
        """
        content = await self.generate(
            prompt, system=system, response_format=response_model, **overrides
        )
        try:
            return response_model.model_validate_json(content)
        except ValidationError as e:
            raise LLMResponseError(
                f"LLM output does not match {response_model.__name__}: {e}"
            ) from e


__all__ = ["LLMProvider"]
