"""Tests for the LLM-backed Agent."""

from unittest.mock import AsyncMock, patch

import pytest

from agentllm.agent import Agent
from agentllm.config import AgentConfig, ProjectConfig
from agentllm.llm import LLMConfig, LLMConfigError, LLMProvider


def test_agent_requires_role_and_goal():
    with pytest.raises(ValueError):
        Agent(role="", goal="anything")


def test_agent_default_llm_from_env(monkeypatch):
    monkeypatch.setenv("OPENAI_MODEL_NAME", "gpt-4o")
    agent = Agent(role="Analyst", goal="Analyze")
    assert isinstance(agent.llm, LLMProvider)
    assert agent.llm.config.model == "gpt-4o"
    assert agent.llm.agent_id == "analyst"


def test_agent_llm_from_model_string():
    agent = Agent(role="Analyst", goal="Analyze", llm="groq/llama-3.1-8b-instant")
    assert agent.llm.config.provider.name == "groq"


def test_agent_llm_from_config():
    config = LLMConfig(model="gpt-4o", temperature=0.1)
    agent = Agent(role="Analyst", goal="Analyze", llm=config)
    assert agent.llm.config is config


def test_agent_llm_from_provider_keeps_instance():
    provider = LLMProvider(LLMConfig(), max_retries=5)
    agent = Agent(role="Data Analyst", goal="Analyze", llm=provider)
    assert agent.llm is provider
    assert provider.agent_id == "data-analyst"


def test_agent_rejects_other_llm_types():
    with pytest.raises(LLMConfigError):
        Agent(role="Analyst", goal="Analyze", llm=42)


def test_system_prompt():
    agent = Agent(role="Historian", goal="Explain events", backstory="You love primary sources.")
    prompt = agent.system_prompt()
    assert "Historian" in prompt
    assert "Explain events" in prompt
    assert "primary sources" in prompt


@pytest.mark.asyncio
async def test_execute_sends_system_and_task():
    agent = Agent(role="Historian", goal="Explain events", llm=LLMConfig(api_key="sk-test"))

    with patch.object(agent.llm, "generate", new=AsyncMock(return_value="1066")) as generate:
        result = await agent.execute("When was Hastings?", context="England", temperature=0.0)

    assert result == "1066"
    args, kwargs = generate.call_args
    assert "When was Hastings?" in args[0]
    assert "England" in args[0]
    assert kwargs["system"] == agent.system_prompt()
    assert kwargs["temperature"] == 0.0


def test_run_is_blocking_wrapper():
    agent = Agent(role="Historian", goal="Explain events", llm=LLMConfig(api_key="sk-test"))

    with patch.object(agent.llm, "generate", new=AsyncMock(return_value="answer")):
        assert agent.run("Question?") == "answer"


def test_from_config_with_named_llm():
    project = ProjectConfig()
    local = LLMConfig(model="ollama/llama3.1")
    project.llm_providers["local"] = local
    project.agents["researcher"] = AgentConfig(
        name="researcher", role="Researcher", goal="Find facts", llm="local"
    )

    agent = Agent.from_config("researcher", project)

    assert agent.agent_id == "researcher"
    assert agent.llm.config is local


def test_from_config_with_model_string():
    project = ProjectConfig()
    project.agents["writer"] = AgentConfig(
        name="writer", role="Writer", goal="Write", llm="mistral/mistral-small-latest"
    )

    agent = Agent.from_config("writer", project)
    assert agent.llm.config.provider.name == "mistral"


def test_from_config_with_preset_name(monkeypatch):
    monkeypatch.setenv("GROQ_API_KEY", "gsk-test")
    project = ProjectConfig()
    project.agents["writer"] = AgentConfig(name="writer", role="Writer", goal="Write", llm="groq")

    agent = Agent.from_config("writer", project)

    assert agent.llm.config.provider.name == "groq"
    assert agent.llm.config.model_name != "groq"
    assert agent.llm.config.api_key == "gsk-test"
    assert agent.llm.agent_id == "writer"


def test_from_config_uses_project_default():
    project = ProjectConfig(default_llm="main")
    project.llm_providers["main"] = LLMConfig(model="gpt-4o")
    project.agents["writer"] = AgentConfig(name="writer", role="Writer", goal="Write")

    agent = Agent.from_config("writer", project)
    assert agent.llm.config.model == "gpt-4o"


def test_from_config_unknown_agent():
    with pytest.raises(LLMConfigError, match="Unknown agent"):
        Agent.from_config("ghost", ProjectConfig())
