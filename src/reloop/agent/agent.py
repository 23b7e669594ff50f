"""Agent — wires a reasoner, tool registry, executor, and loop together."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import TYPE_CHECKING

from reloop.agent.loop import AgentLoop, Reasoner
from reloop.agent.types import AgentLoopConfig, LoopState, Observation
from reloop.tool.base import BaseTool
from reloop.tool.executor import ToolExecutor
from reloop.tool.registry import ToolRegistry

if TYPE_CHECKING:
    from reloop.config import ReloopConfig

logger = logging.getLogger(__name__)


class Agent:
    """A named agent ready to run.

    The registry is shared by the reasoner (which advertises its schema to
    the model) and the executor (which runs the chosen tool), so tools
    registered after construction are visible to both.
    """

    def __init__(
        self,
        name: str,
        reasoner: Reasoner,
        registry: ToolRegistry | None = None,
        loop_config: AgentLoopConfig | None = None,
    ) -> None:
        self.name = name
        self.reasoner = reasoner
        self.registry = registry if registry is not None else ToolRegistry()
        self.executor = ToolExecutor(self.registry)
        self.loop = AgentLoop(
            reasoner,
            self.executor,
            loop_config,
            on_observation=self._record_observation,
        )

    @classmethod
    def from_config(
        cls,
        name: str,
        config: ReloopConfig,
        registry: ToolRegistry | None = None,
    ) -> Agent:
        """Build a litellm-backed agent from configuration."""
        from reloop.llm import LLMReasoner, create_provider

        registry = registry if registry is not None else ToolRegistry()
        provider = create_provider(
            config.llm.model,
            temperature=config.loop.temperature,
            max_tokens=config.llm.max_tokens,
        )
        reasoner = LLMReasoner(
            provider,
            registry,
            system_prompt=config.system_prompt,
            temperature=config.loop.temperature,
        )
        return cls(name, reasoner, registry, config.loop.to_loop_config())

    @property
    def state(self) -> LoopState:
        return self.loop.state

    @property
    def iteration_count(self) -> int:
        return self.loop.iteration_count

    @property
    def system_prompt(self) -> str:
        """The reasoner's system prompt ("" if the reasoner has none)."""
        return getattr(self.reasoner, "system_prompt", "")

    @system_prompt.setter
    def system_prompt(self, prompt: str) -> None:
        if not hasattr(self.reasoner, "system_prompt"):
            raise AttributeError(
                f"{type(self.reasoner).__name__} does not take a system prompt"
            )
        self.reasoner.system_prompt = prompt  # type: ignore[attr-defined]

    def register_tool(self, tool: BaseTool) -> None:
        self.registry.register(tool)

    def register_tools(self, tools: Iterable[BaseTool]) -> None:
        self.registry.register_many(tools)

    def clear_history(self) -> None:
        """Forget the reasoner's conversation history, if it keeps one."""
        clear = getattr(self.reasoner, "clear_history", None)
        if callable(clear):
            clear()

    def _record_observation(self, iteration: int, observation: Observation) -> None:
        record = getattr(self.reasoner, "record_observation", None)
        if callable(record):
            record(observation)

    async def run(self, input: str) -> str:
        logger.info("Agent %s: running", self.name)
        return await self.loop.run(input)
