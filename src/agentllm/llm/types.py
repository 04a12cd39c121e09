"""LLM Types - Data structures for LLM interactions.

This module defines the message and response types exchanged with
OpenAI-compatible chat completion endpoints.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional

from .errors import LLMResponseError


@dataclass
class Message:
    """A chat message.

    Attributes:
        role: Message role (system, user, assistant)
        content: Message content
        name: Optional name for the message sender
    """

    role: str
    content: str
    name: Optional[str] = None

    def to_dict(self) -> dict[str, str]:
        """Convert to API format."""
        d = {"role": self.role, "content": self.content}
        if self.name:
            d["name"] = self.name
        return d


@dataclass
class Usage:
    """Token usage statistics."""

    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0

    @classmethod
    def from_api(cls, data: Optional[dict[str, Any]]) -> Usage:
        data = data or {}
        prompt = int(data.get("prompt_tokens") or 0)
        completion = int(data.get("completion_tokens") or 0)
        total = int(data.get("total_tokens") or prompt + completion)
        return cls(prompt_tokens=prompt, completion_tokens=completion, total_tokens=total)


@dataclass
class LLMResponse:
    """Response from an LLM call.

    Attributes:
        content: Generated text of the first choice
        model: Model that generated the response
        usage: Token usage statistics
        finish_reason: Why generation stopped
        choices: Text of every choice (more than one when n > 1)
        logprobs: Log probabilities of the first choice, when requested
        raw: Raw API response
    """

    content: str
    model: Optional[str] = None
    usage: Usage = field(default_factory=Usage)
    finish_reason: Optional[str] = None
    choices: list[str] = field(default_factory=list)
    logprobs: Optional[dict[str, Any]] = None
    raw: Optional[dict[str, Any]] = None

    @classmethod
    def from_api(cls, data: Any) -> LLMResponse:
        """Parse a chat completions response body."""
        if not isinstance(data, dict):
            raise LLMResponseError(f"Expected a JSON object from the LLM, got {type(data).__name__}")

        raw_choices = data.get("choices")
        if not raw_choices:
            raise LLMResponseError("No choices in LLM response")

        texts = []
        for choice in raw_choices:
            message = choice.get("message") or {}
            content = message.get("content")
            if content is None:
                # Tool-call-only answers have no text content
                if message.get("tool_calls"):
                    content = ""
                else:
                    raise LLMResponseError("LLM response choice has no message content")
            texts.append(content)

        first = raw_choices[0]
        return cls(
            content=texts[0],
            model=data.get("model"),
            usage=Usage.from_api(data.get("usage")),
            finish_reason=first.get("finish_reason"),
            choices=texts,
            logprobs=first.get("logprobs"),
            raw=data,
        )


__all__ = [
    "Message",
    "Usage",
    "LLMResponse",
]
