"""Configuration management for agentllm projects.

Parses agentllm.toml files with support for:
- Project metadata
- Named LLM connections
- Agent definitions that reference those connections

Example agentllm.toml structure:

    default_llm = "openai"

    [llm.openai]
    model = "gpt-4o-mini"
    api_key = "${OPENAI_API_KEY}"
    temperature = 0.2

    [llm.local]
    model = "ollama/llama3.1"
    timeout = 120

    [agents.researcher]
    role = "Researcher"
    goal = "Find reliable facts"
    llm = "local"

Note: Use proper TOML tables (not string-encoded Python dictionaries).
"""

from __future__ import annotations

import logging
import os
import re
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

from dotenv import load_dotenv

from .llm.config import LLMConfig
from .llm.errors import LLMConfigError

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib

logger = logging.getLogger(__name__)

CONFIG_FILENAME = "agentllm.toml"

_ENV_PATTERN = re.compile(r"\$\{([A-Za-z_][A-Za-z0-9_]*)\}|\$([A-Za-z_][A-Za-z0-9_]*)")


def _find_env_file(start: Path) -> Optional[Path]:
    """First .env next to the config file or in any parent directory."""
    current = start.resolve()
    while True:
        candidate = current / ".env"
        if candidate.is_file():
            return candidate
        if current == current.parent:
            break
        current = current.parent
    return None


def _expand_env_vars(value: Any) -> Any:
    """Recursively expand ${VAR} and $VAR environment variable references.

    Unset variables expand to an empty string so that settings fall back to
    their defaults instead of carrying a literal placeholder.
    """
    if isinstance(value, str):

        def replace_var(match: re.Match) -> str:
            var_name = match.group(1) or match.group(2)
            resolved = os.environ.get(var_name)
            if resolved is None:
                logger.warning("Environment variable %s referenced in config is not set", var_name)
                return ""
            return resolved

        return _ENV_PATTERN.sub(replace_var, value)
    elif isinstance(value, dict):
        return {k: _expand_env_vars(v) for k, v in value.items()}
    elif isinstance(value, list):
        return [_expand_env_vars(item) for item in value]
    else:
        return value


@dataclass
class AgentConfig:
    """Agent definition from an [agents.<name>] table."""

    name: str
    role: str
    goal: str
    backstory: str = ""
    llm: Optional[str] = None  # name of an [llm.<name>] table, or a model string


@dataclass
class ProjectConfig:
    """Complete agentllm project configuration."""

    # Project metadata
    name: Optional[str] = None
    version: str = "0.1.0"
    description: Optional[str] = None

    # LLM connections (key = connection name)
    default_llm: Optional[str] = None
    llm_providers: dict[str, LLMConfig] = field(default_factory=dict)

    # Agent definitions
    agents: dict[str, AgentConfig] = field(default_factory=dict)

    @classmethod
    def load(cls, path: Path = Path(CONFIG_FILENAME)) -> ProjectConfig:
        """Load configuration from an agentllm.toml file.

        Loads the nearest .env file first (variables already set in the
        environment win), then expands ${VAR} references in the config.
        """
        path = Path(path)
        if not path.exists():
            return cls()

        env_file = _find_env_file(path.parent)
        if env_file is not None:
            logger.debug("Loading environment from %s", env_file)
            load_dotenv(env_file, override=False)

        try:
            raw_data = tomllib.loads(path.read_text(encoding="utf-8"))
        except tomllib.TOMLDecodeError as e:
            raise LLMConfigError(f"Failed to parse {path}: {e}") from e

        # Expand environment variables in the entire config
        data = _expand_env_vars(raw_data)

        config = cls()

        # Project metadata
        config.name = data.get("name")
        config.version = data.get("version", "0.1.0")
        config.description = data.get("description")
        config.default_llm = data.get("default_llm")

        for section in ("llm", "agents"):
            if not isinstance(data.get(section, {}), dict):
                raise LLMConfigError(
                    f"'{section}' in {path} must be a table of [{section}.<name>] sections"
                )

        # LLM connections - expect proper TOML tables
        for llm_name, llm_data in data.get("llm", {}).items():
            if not isinstance(llm_data, dict):
                logger.warning("Skipping [llm.%s]: expected a table", llm_name)
                continue
            try:
                config.llm_providers[llm_name] = LLMConfig.from_dict(llm_data)
            except LLMConfigError as e:
                raise LLMConfigError(f"Invalid [llm.{llm_name}] in {path}: {e}") from e

        if config.default_llm and config.default_llm not in config.llm_providers:
            raise LLMConfigError(
                f"default_llm '{config.default_llm}' has no [llm.{config.default_llm}] table"
            )

        # Agents
        for agent_name, agent_data in data.get("agents", {}).items():
            if not isinstance(agent_data, dict):
                logger.warning("Skipping [agents.%s]: expected a table", agent_name)
                continue
            missing = [key for key in ("role", "goal") if not agent_data.get(key)]
            if missing:
                raise LLMConfigError(f"[agents.{agent_name}] is missing {', '.join(missing)}")
            config.agents[agent_name] = AgentConfig(
                name=agent_name,
                role=agent_data["role"],
                goal=agent_data["goal"],
                backstory=agent_data.get("backstory", ""),
                llm=agent_data.get("llm"),
            )

        return config

    def get_llm(self, name: Optional[str] = None) -> LLMConfig:
        """Resolve an LLM connection by name.

        Falls back to default_llm, then the first declared connection, then
        an LLMConfig built from environment variables.
        """
        if name is not None:
            if name not in self.llm_providers:
                raise LLMConfigError(
                    f"Unknown LLM '{name}'. Configured: {sorted(self.llm_providers)}"
                )
            return self.llm_providers[name]
        if self.default_llm:
            if self.default_llm not in self.llm_providers:
                raise LLMConfigError(
                    f"default_llm '{self.default_llm}' has no [llm.{self.default_llm}] table"
                )
            return self.llm_providers[self.default_llm]
        if self.llm_providers:
            return next(iter(self.llm_providers.values()))
        return LLMConfig()

    def to_env_vars(self) -> dict[str, str]:
        """Export the default LLM connection as OPENAI_* environment variables."""
        env: dict[str, str] = {}
        if not self.llm_providers:
            return env

        llm = self.get_llm()
        if llm.model:
            env["OPENAI_MODEL_NAME"] = llm.model
        if llm.base_url:
            env["OPENAI_API_BASE"] = llm.base_url
        if llm.api_key:
            env["OPENAI_API_KEY"] = llm.api_key
        return env


def load_project_config(start_dir: Path = Path(".")) -> ProjectConfig:
    """Load project configuration, searching up from start_dir."""
    current = Path(start_dir).resolve()
    while True:
        config_path = current / CONFIG_FILENAME
        if config_path.exists():
            return ProjectConfig.load(config_path)
        if current == current.parent:
            break
        current = current.parent

    # No config found, return defaults
    return ProjectConfig()


__all__ = [
    "CONFIG_FILENAME",
    "AgentConfig",
    "ProjectConfig",
    "load_project_config",
]
