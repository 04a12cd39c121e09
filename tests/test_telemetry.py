"""Tests for telemetry initialization."""

from unittest.mock import patch

import pytest

from agentllm.telemetry import tracing


@pytest.fixture(autouse=True)
def reset_initialized():
    tracing._initialized = False
    yield
    tracing._initialized = False


def test_init_console_exporter_is_idempotent():
    with patch.object(tracing.trace, "set_tracer_provider") as set_provider:
        tracing.init_telemetry(service_name="test-svc", console=True)
        tracing.init_telemetry(service_name="test-svc", console=True)

    set_provider.assert_called_once()
    provider = set_provider.call_args.args[0]
    assert provider.resource.attributes["service.name"] == "test-svc"


def test_console_from_env(monkeypatch):
    monkeypatch.setenv("AGENTLLM_TELEMETRY_CONSOLE", "1")
    monkeypatch.delenv("OTEL_SERVICE_NAME", raising=False)
    with patch.object(tracing.trace, "set_tracer_provider") as set_provider:
        tracing.init_telemetry()

    provider = set_provider.call_args.args[0]
    assert provider.resource.attributes["service.name"] == "agentllm"


def test_shutdown_without_init_is_noop():
    with patch.object(tracing.trace, "get_tracer_provider") as get_provider:
        tracing.shutdown_telemetry()
    get_provider.assert_not_called()


def test_shutdown_after_init():
    with patch.object(tracing.trace, "set_tracer_provider"):
        tracing.init_telemetry(console=True)
    with patch.object(tracing.trace, "get_tracer_provider") as get_provider:
        tracing.shutdown_telemetry()
    get_provider.return_value.shutdown.assert_called_once()
    assert tracing._initialized is False
