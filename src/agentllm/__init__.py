"""agentllm - LLM connection configuration for agents.

One configuration record, LLMConfig, describes how an agent reaches a model:
which model, where it is served, how to authenticate, and how to sample.
Unset fields come from the environment (OPENAI_MODEL_NAME, OPENAI_API_BASE,
OPENAI_API_KEY, or the variables of the provider named in the model prefix).

Quick Start:
    ```python
    from agentllm import Agent, LLMConfig

    agent = Agent(
        role="Research Analyst",
        goal="Answer questions with cited facts",
        llm=LLMConfig(model="groq/llama-3.1-70b-versatile", temperature=0.2),
    )
    print(agent.run("Who proposed continental drift?"))
    ```

Module structure:
    - llm/: LLMConfig, provider presets, HTTP client, error taxonomy
    - config: agentllm.toml project configuration
    - agent: Agent bound to one LLM
    - telemetry/: OpenTelemetry tracing
    - cli: Command line interface
"""

__version__ = "0.1.0"

# LLM
from .llm import (
    LLMAPIError,
    LLMAuthenticationError,
    LLMConfig,
    LLMConfigError,
    LLMConnectionError,
    LLMError,
    LLMProvider,
    LLMRateLimitError,
    LLMResponse,
    LLMResponseError,
    LLMServerError,
    LLMTimeoutError,
    Message,
    ProviderSpec,
    get_provider,
    list_providers,
)

# Config
from .config import AgentConfig, ProjectConfig, load_project_config

# Agent
from .agent import Agent

# Telemetry
from .telemetry import init_telemetry, shutdown_telemetry

__all__ = [
    "__version__",
    # LLM
    "LLMConfig",
    "LLMProvider",
    "LLMResponse",
    "Message",
    "ProviderSpec",
    "get_provider",
    "list_providers",
    # Errors
    "LLMError",
    "LLMConfigError",
    "LLMAPIError",
    "LLMAuthenticationError",
    "LLMRateLimitError",
    "LLMServerError",
    "LLMConnectionError",
    "LLMTimeoutError",
    "LLMResponseError",
    # Config
    "AgentConfig",
    "ProjectConfig",
    "load_project_config",
    # Agent
    "Agent",
    # Telemetry
    "init_telemetry",
    "shutdown_telemetry",
]
