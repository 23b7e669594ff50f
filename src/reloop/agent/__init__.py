"""Agent system — data model and the control loop.

The :class:`~reloop.agent.agent.Agent` facade is exported from the
top-level ``reloop`` package.
"""

from reloop.agent.loop import (
    COMPLETION_MARKERS,
    AgentLoop,
    Reasoner,
    build_context,
    extract_final_answer,
    format_observation,
    should_stop,
)
from reloop.agent.types import (
    Action,
    AgentLoopConfig,
    LoopState,
    Observation,
    Thought,
)

__all__ = [
    "COMPLETION_MARKERS",
    "AgentLoop",
    "Reasoner",
    "build_context",
    "extract_final_answer",
    "format_observation",
    "should_stop",
    "Action",
    "AgentLoopConfig",
    "LoopState",
    "Observation",
    "Thought",
]
