"""reloop — a bounded think/act/observe agent loop with validated tool calls."""

from __future__ import annotations

import logging

# Order matters: the tool package must be fully imported before the agent
# facade, which depends on the executor.
from reloop.tool import (
    BaseTool,
    ExecutionFailedError,
    FunctionTool,
    InvalidArgumentsError,
    MissingRequiredParameterError,
    ToolCall,
    ToolError,
    ToolExecutor,
    ToolNotFoundError,
    ToolParameter,
    ToolRegistry,
)
from reloop.agent import (
    Action,
    AgentLoop,
    AgentLoopConfig,
    LoopState,
    Observation,
    Reasoner,
    Thought,
)
from reloop.agent.agent import Agent

__version__ = "0.1.0"

__all__ = [
    "Agent",
    "AgentLoop",
    "AgentLoopConfig",
    "LoopState",
    "Reasoner",
    "Thought",
    "Action",
    "Observation",
    "BaseTool",
    "FunctionTool",
    "ToolParameter",
    "ToolRegistry",
    "ToolExecutor",
    "ToolCall",
    "ToolError",
    "ToolNotFoundError",
    "InvalidArgumentsError",
    "MissingRequiredParameterError",
    "ExecutionFailedError",
    "setup_logging",
]


def setup_logging(verbose: bool = False) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )
