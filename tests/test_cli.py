"""Tests for the agentllm command line interface."""

from unittest.mock import AsyncMock, patch

import pytest

from agentllm import cli
from agentllm.llm import LLMTimeoutError


@pytest.fixture
def project(tmp_path):
    config_file = tmp_path / "agentllm.toml"
    config_file.write_text(
        """
default_llm = "main"

[llm.main]
model = "gpt-4o-mini"
api_key = "sk-cli-test-key-1234"
temperature = 0.2

[llm.local]
model = "ollama/llama3.1"
"""
    )
    return config_file


def test_providers_lists_presets(capsys, monkeypatch):
    monkeypatch.setenv("GROQ_API_KEY", "gsk")
    assert cli.main(["providers"]) == 0
    out = capsys.readouterr().out
    assert "openai" in out
    assert "GROQ_API_KEY (set)" in out
    assert "OPENAI_API_KEY (missing)" in out
    assert "no key needed" in out


def test_check_prints_masked_config(project, capsys):
    assert cli.main(["check", "--config", str(project)]) == 0
    out = capsys.readouterr().out
    assert "gpt-4o-mini" in out
    assert "sk-...1234" in out
    assert "sk-cli-test-key-1234" not in out
    assert "Configuration OK" in out


def test_check_named_llm_with_override(project, capsys):
    assert cli.main(["check", "--config", str(project), "--llm", "local", "--timeout", "30"]) == 0
    out = capsys.readouterr().out
    assert "ollama" in out
    assert "http://localhost:11434/v1/chat/completions" in out


def test_check_missing_key_fails_with_hint(tmp_path, capsys):
    config_file = tmp_path / "agentllm.toml"
    config_file.write_text('[llm.main]\nmodel = "anthropic/claude-3-5-sonnet-20241022"\n')

    assert cli.main(["check", "--config", str(config_file)]) == 1
    err = capsys.readouterr().err
    assert "No API key" in err
    assert "ANTHROPIC_API_KEY" in err


def test_check_invalid_override(project, capsys):
    assert cli.main(["check", "--config", str(project), "--temperature", "9"]) == 1
    assert "temperature" in capsys.readouterr().err


def test_check_invalid_extra_table(tmp_path, capsys):
    config_file = tmp_path / "agentllm.toml"
    config_file.write_text('[llm.main]\nmodel = "gpt-4o"\nextra = "oops"\n')

    assert cli.main(["check", "--config", str(config_file)]) == 1
    err = capsys.readouterr().err
    assert "extra_params" in err
    assert "Hint:" in err


def test_ask_prints_answer(project, capsys):
    with patch(
        "agentllm.llm.provider.LLMProvider.generate", new=AsyncMock(return_value="Paris")
    ) as generate:
        assert cli.main(["ask", "Capital of France?", "--config", str(project)]) == 0

    assert capsys.readouterr().out.strip() == "Paris"
    assert generate.call_args.args[0] == "Capital of France?"


def test_ask_stream(project, capsys):
    async def fake_stream(self, prompt, *, system=None, **overrides):
        for chunk in ["Pa", "ris"]:
            yield chunk

    with patch("agentllm.llm.provider.LLMProvider.generate_stream", new=fake_stream):
        assert cli.main(["ask", "Capital?", "--config", str(project), "--stream"]) == 0

    assert capsys.readouterr().out.strip() == "Paris"


def test_ask_error_prints_hint(project, capsys):
    with patch(
        "agentllm.llm.provider.LLMProvider.generate",
        new=AsyncMock(side_effect=LLMTimeoutError("timed out after 5s")),
    ):
        assert cli.main(["ask", "Slow?", "--config", str(project)]) == 1

    err = capsys.readouterr().err
    assert "timed out" in err
    assert "Increase `timeout`" in err


def test_init_writes_templates(tmp_path, capsys):
    target = tmp_path / "proj"
    assert cli.main(["init", str(target)]) == 0
    assert (target / "agentllm.toml").exists()
    assert "OPENAI_API_KEY" in (target / ".env.example").read_text()

    # Refuses to overwrite without --force
    assert cli.main(["init", str(target)]) == 1
    assert cli.main(["init", str(target), "--force"]) == 0


def test_init_template_is_loadable(tmp_path, monkeypatch):
    from agentllm.config import ProjectConfig

    monkeypatch.setenv("OPENAI_API_KEY", "sk-template")
    cli.main(["init", str(tmp_path)])

    config = ProjectConfig.load(tmp_path / "agentllm.toml")
    assert config.get_llm().api_key == "sk-template"
    assert config.agents["assistant"].llm == "openai"


def test_trace_flag_initializes_telemetry(project):
    with patch("agentllm.telemetry.init_telemetry") as init, patch(
        "agentllm.telemetry.shutdown_telemetry"
    ) as shutdown:
        assert cli.main(["--trace", "check", "--config", str(project)]) == 0

    init.assert_called_once()
    shutdown.assert_called_once()
