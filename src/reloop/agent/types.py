"""Loop data model — thoughts, actions, observations, and loop config."""

from __future__ import annotations

import enum
from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType

from pydantic import BaseModel, ConfigDict, Field

from reloop.tool.value import Arguments


@dataclass(frozen=True)
class Thought:
    """The reasoner's output for one iteration."""

    reasoning: str
    plan: tuple[str, ...] = ()
    next_action: str | None = None


@dataclass(frozen=True)
class Action:
    """A requested tool invocation.

    Arguments are only validated when the action is executed. ``call_id``
    carries the model's tool-call id through to the observation, when the
    action came from one.
    """

    tool_name: str
    arguments: Arguments = field(default_factory=dict)
    thought: Thought | None = None
    call_id: str | None = None


@dataclass(frozen=True)
class Observation:
    """Normalized result of executing an action."""

    content: str
    tool_name: str | None = None
    metadata: Mapping[str, str] = field(default_factory=dict, hash=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "metadata", MappingProxyType(dict(self.metadata)))


class LoopState(enum.Enum):
    """Where the loop currently is in its think/act/observe cycle."""

    IDLE = "idle"
    THINKING = "thinking"
    ACTING = "acting"
    OBSERVING = "observing"
    FINISHED = "finished"
    ERROR = "error"


class AgentLoopConfig(BaseModel):
    """Immutable loop configuration."""

    model_config = ConfigDict(frozen=True)

    max_iterations: int = Field(default=10, gt=0)
    stop_on_finish: bool = Field(default=True)
    temperature: float = Field(default=0.7, ge=0.0)
