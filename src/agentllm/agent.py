"""Agent - An LLM-backed agent with a role, a goal and a configured model.

The agent accepts its LLM in whichever form is most convenient:

    Agent(role="Analyst", goal="...")                              # env defaults
    Agent(role="Analyst", goal="...", llm="groq/llama-3.1-8b-instant")
    Agent(role="Analyst", goal="...", llm=LLMConfig(model="gpt-4o", temperature=0.1))
    Agent(role="Analyst", goal="...", llm=LLMProvider(config, max_retries=5))
"""

from __future__ import annotations

import asyncio
import logging
import os
import re
from typing import Any, Optional, Union

from opentelemetry import trace

from .config import ProjectConfig
from .llm import LLMConfig, LLMConfigError, LLMProvider
from .llm.providers import is_provider

logger = logging.getLogger(__name__)

# Get tracer for agent spans
tracer = trace.get_tracer(__name__)

LLMLike = Union[None, str, LLMConfig, LLMProvider]


def _slug(text: str) -> str:
    return re.sub(r"[^a-z0-9]+", "-", text.lower()).strip("-") or "agent"


class Agent:
    """An agent that prompts one LLM to perform tasks.

    Example:
        agent = Agent(
            role="Research Analyst",
            goal="Answer questions with cited facts",
            llm=LLMConfig(model="anthropic/claude-3-5-sonnet-20241022", temperature=0.3),
        )
        print(agent.run("What is the boiling point of water at 2000m?"))
    """

    def __init__(
        self,
        role: str,
        goal: str,
        backstory: str = "",
        llm: LLMLike = None,
        agent_id: Optional[str] = None,
    ):
        """Initialize agent.

        Args:
            role: What the agent is (used in its system prompt)
            goal: What the agent tries to achieve
            backstory: Extra persona context
            llm: None, a model name, an LLMConfig, or an LLMProvider
            agent_id: Identifier for logs and traces (default: slug of role)
        """
        if not role or not goal:
            raise ValueError("Agent requires both role and goal")

        self.role = role
        self.goal = goal
        self.backstory = backstory
        self.agent_id = agent_id or _slug(role)
        self.llm = self._resolve_llm(llm)

        if os.getenv("AGENTLLM_TELEMETRY_AUTO", "0") == "1":
            from .telemetry import init_telemetry

            try:
                init_telemetry(service_name=f"agent-{self.agent_id}")
            except Exception as e:
                logger.warning(
                    "Failed to initialize telemetry for agent %s: %s. Continuing without tracing.",
                    self.agent_id,
                    e,
                )

    def _resolve_llm(self, llm: LLMLike) -> LLMProvider:
        if isinstance(llm, LLMProvider):
            if llm.agent_id is None:
                llm.agent_id = self.agent_id
            return llm
        if llm is None:
            config = LLMConfig()
        elif isinstance(llm, str):
            config = LLMConfig(model=llm)
        elif isinstance(llm, LLMConfig):
            config = llm
        else:
            raise LLMConfigError(
                f"llm must be a model name, LLMConfig or LLMProvider, got {type(llm).__name__}"
            )
        return LLMProvider(config, agent_id=self.agent_id)

    def __repr__(self) -> str:
        return f"Agent(role={self.role!r}, model={self.llm.config.model!r})"

    @classmethod
    def from_config(cls, name: str, project_config: ProjectConfig) -> Agent:
        """Build an agent from an [agents.<name>] table.

        The table's ``llm`` value names an [llm.<name>] table or a provider
        preset; anything else is treated as a model string. Without it the
        project's default LLM is used.
        """
        agent_cfg = project_config.agents.get(name)
        if agent_cfg is None:
            raise LLMConfigError(
                f"Unknown agent '{name}'. Configured: {sorted(project_config.agents)}"
            )

        llm: LLMLike
        if agent_cfg.llm and agent_cfg.llm in project_config.llm_providers:
            llm = project_config.llm_providers[agent_cfg.llm]
        elif agent_cfg.llm and is_provider(agent_cfg.llm):
            llm = LLMProvider.from_name(agent_cfg.llm)
        elif agent_cfg.llm:
            llm = agent_cfg.llm
        else:
            llm = project_config.get_llm()

        return cls(
            role=agent_cfg.role,
            goal=agent_cfg.goal,
            backstory=agent_cfg.backstory,
            llm=llm,
            agent_id=name,
        )

    def system_prompt(self) -> str:
        lines = [f"You are {self.role}.", f"Your goal: {self.goal}"]
        if self.backstory:
            lines.append(self.backstory)
        return "\n".join(lines)

    def _task_prompt(self, task: str, context: Optional[str]) -> str:
        if not context:
            return task
        return f"{task}\n\nContext:\n{context}"

    async def execute(self, task: str, context: Optional[str] = None, **overrides: Any) -> str:
        """Run one task through the agent's LLM and return the answer."""
        with tracer.start_as_current_span(
            "agent.execute",
            attributes={
                "agent.id": self.agent_id,
                "agent.role": self.role,
                "task.length": len(task),
            },
        ):
            logger.debug("Agent %s executing task with %s", self.agent_id, self.llm.config.model)
            return await self.llm.generate(
                self._task_prompt(task, context),
                system=self.system_prompt(),
                **overrides,
            )

    def run(self, task: str, context: Optional[str] = None, **overrides: Any) -> str:
        """Run a task (blocking)."""
        return asyncio.run(self.execute(task, context, **overrides))


__all__ = ["Agent"]
