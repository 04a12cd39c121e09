"""Test fixtures and configuration for agentllm tests.

Test Structure:
    tests/
    ├── conftest.py          # Shared fixtures
    ├── unit/                # LLM layer unit tests (httpx mocked)
    │   ├── test_llm_config.py
    │   ├── test_llm_provider.py
    │   ├── test_llm_types.py
    │   └── test_providers.py
    ├── test_agent.py
    ├── test_cli.py
    ├── test_config.py
    └── test_telemetry.py

Running tests:
    pytest tests/unit -v                    # LLM layer only
    pytest -v                               # Everything
"""

from unittest.mock import AsyncMock, MagicMock

import pytest
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import SimpleSpanProcessor
from opentelemetry.sdk.trace.export.in_memory_span_exporter import InMemorySpanExporter

from agentllm import agent as agent_module
from agentllm.llm import provider as provider_module
from agentllm.llm.providers import list_providers

_ENV_VARS = {"OPENAI_MODEL_NAME", "AGENTLLM_TELEMETRY_AUTO", "AGENTLLM_TELEMETRY_CONSOLE"}
for _spec in list_providers():
    _ENV_VARS.update(
        var for var in (_spec.api_key_env, _spec.base_url_env, _spec.api_version_env) if var
    )


@pytest.fixture(autouse=True)
def clean_llm_env(monkeypatch):
    """Start every test without any LLM-related environment variables."""
    for var in _ENV_VARS:
        monkeypatch.delenv(var, raising=False)


@pytest.fixture
def mock_http():
    """Build a patched httpx.AsyncClient returning the given JSON body.

    Usage:
        with patch("httpx.AsyncClient") as client_class:
            client = mock_http(client_class, {"choices": [...]})
    """

    def install(client_class, response_data=None, *, side_effect=None):
        mock_response = MagicMock()
        mock_response.json.return_value = response_data
        mock_response.raise_for_status = MagicMock()

        mock_client = AsyncMock()
        if side_effect is not None:
            mock_client.post = AsyncMock(side_effect=side_effect)
        else:
            mock_client.post = AsyncMock(return_value=mock_response)

        client_class.return_value.__aenter__ = AsyncMock(return_value=mock_client)
        client_class.return_value.__aexit__ = AsyncMock(return_value=None)
        return mock_client

    return install


@pytest.fixture
def mock_stream():
    """Patch a streaming httpx.AsyncClient to yield the given SSE lines.

    status_error makes raise_for_status() fail with it; side_effect is raised
    by client.stream() itself (e.g. httpx.ReadTimeout).
    """

    def install(client_class, sse_lines=(), *, status_error=None, side_effect=None):
        async def mock_aiter_lines():
            for line in sse_lines:
                yield line

        mock_stream_response = MagicMock()
        mock_stream_response.raise_for_status = MagicMock(side_effect=status_error)
        mock_stream_response.aread = AsyncMock(return_value=b"")
        mock_stream_response.aiter_lines = mock_aiter_lines

        mock_stream_cm = MagicMock()
        mock_stream_cm.__aenter__ = AsyncMock(return_value=mock_stream_response)
        mock_stream_cm.__aexit__ = AsyncMock(return_value=None)

        mock_client = MagicMock()
        mock_client.stream = MagicMock(return_value=mock_stream_cm, side_effect=side_effect)

        client_class.return_value.__aenter__ = AsyncMock(return_value=mock_client)
        client_class.return_value.__aexit__ = AsyncMock(return_value=None)
        return mock_client

    return install


@pytest.fixture
def span_exporter(monkeypatch):
    """Capture spans from the LLM client and agents in memory."""
    exporter = InMemorySpanExporter()
    tracer_provider = TracerProvider()
    tracer_provider.add_span_processor(SimpleSpanProcessor(exporter))
    monkeypatch.setattr(provider_module, "tracer", tracer_provider.get_tracer("agentllm.llm"))
    monkeypatch.setattr(agent_module, "tracer", tracer_provider.get_tracer("agentllm.agent"))
    yield exporter
    exporter.clear()
