"""The think → act → observe control loop."""

from __future__ import annotations

import logging
import re
from collections.abc import Sequence
from typing import TYPE_CHECKING, Callable, Protocol, runtime_checkable

from reloop.agent.types import (
    Action,
    AgentLoopConfig,
    LoopState,
    Observation,
    Thought,
)

if TYPE_CHECKING:
    from reloop.tool.executor import ToolExecutor

logger = logging.getLogger(__name__)

# Case-insensitive substrings in a thought's reasoning that end the run
# early when ``stop_on_finish`` is enabled.
COMPLETION_MARKERS: tuple[str, ...] = ("done", "finished", "complete", "完成", "结束")

_FINISH_ANSWER_RE = re.compile(r'finish\(answer\s*=\s*"([^"]+)"\)')


@runtime_checkable
class Reasoner(Protocol):
    """Protocol for the reasoning oracle consulted on every iteration."""

    async def think(self, context: str) -> tuple[Thought, Action | None]:
        """Produce a thought and, optionally, the next action to take."""
        ...


OnThought = Callable[[int, Thought], None] | None
OnAction = Callable[[int, Action], None] | None
OnObservation = Callable[[int, Observation], None] | None


class AgentLoop:
    """Bounded think → act → observe state machine.

    One ``run`` executes at a time per instance; iterations inside a run
    are strictly sequential because each one's input is the previous
    one's observation. No lock is held while awaiting the reasoner or a
    tool.

    State, iteration count and observation history are only changed by
    the loop itself and are exposed read-only.
    """

    def __init__(
        self,
        reasoner: Reasoner,
        executor: ToolExecutor,
        config: AgentLoopConfig | None = None,
        on_thought: OnThought = None,
        on_action: OnAction = None,
        on_observation: OnObservation = None,
    ) -> None:
        self._reasoner = reasoner
        self._executor = executor
        self._config = config or AgentLoopConfig()
        self._on_thought = on_thought
        self._on_action = on_action
        self._on_observation = on_observation

        self._state = LoopState.IDLE
        self._error: BaseException | None = None
        self._iteration_count = 0
        self._observations: list[Observation] = []
        self._running = False

    @property
    def config(self) -> AgentLoopConfig:
        return self._config

    @property
    def state(self) -> LoopState:
        return self._state

    @property
    def error(self) -> BaseException | None:
        """The fault that put the loop in ``LoopState.ERROR``, if any."""
        return self._error

    @property
    def iteration_count(self) -> int:
        return self._iteration_count

    @property
    def observations(self) -> tuple[Observation, ...]:
        return tuple(self._observations)

    async def run(self, input: str) -> str:
        """Drive the loop until the reasoner finishes or the bound is hit.

        Returns the final answer, or a fixed exhaustion message when
        ``max_iterations`` is reached first. Faults from the reasoner or
        the executor propagate unchanged after the state is set to ERROR.
        """
        if self._running:
            raise RuntimeError("AgentLoop.run() is already in progress")
        self._running = True
        try:
            return await self._run(input)
        except Exception as e:
            self._state = LoopState.ERROR
            self._error = e
            logger.error(
                "Agent loop failed at iteration %d: %s",
                self._iteration_count,
                e,
                exc_info=True,
            )
            raise
        finally:
            self._running = False

    async def _run(self, input: str) -> str:
        self._iteration_count = 0
        self._observations = []
        self._error = None
        self._state = LoopState.IDLE

        max_iterations = self._config.max_iterations
        current_input = input

        while self._iteration_count < max_iterations:
            self._iteration_count += 1
            step_no = self._iteration_count
            logger.info("Agent loop: iteration %d/%d", step_no, max_iterations)

            # 1. Think
            self._state = LoopState.THINKING
            context = build_context(current_input, self._observations)
            thought, action = await self._reasoner.think(context)
            if self._on_thought:
                self._on_thought(step_no, thought)

            if action is None:
                self._state = LoopState.FINISHED
                logger.info("Agent loop completed after %d iterations", step_no)
                return extract_final_answer(thought)

            # 2. Act
            self._state = LoopState.ACTING
            if self._on_action:
                self._on_action(step_no, action)
            observation = await self._executor.execute_action(action)
            self._observations.append(observation)

            # 3. Observe
            self._state = LoopState.OBSERVING
            if self._on_observation:
                self._on_observation(step_no, observation)
            current_input = format_observation(observation)

            if self._config.stop_on_finish and should_stop(thought):
                self._state = LoopState.FINISHED
                logger.info(
                    "Agent loop: completion marker seen at iteration %d", step_no
                )
                return extract_final_answer(thought)

        self._state = LoopState.FINISHED
        logger.warning("Agent loop hit max iterations (%d)", max_iterations)
        return exhaustion_message(max_iterations)


def build_context(input: str, observations: Sequence[Observation]) -> str:
    """Concatenate the current input with the numbered prior observations."""
    if not observations:
        return input

    lines = [input, "", "## Previous observations:"]
    for index, obs in enumerate(observations, start=1):
        lines.append(f"{index}. {obs.content}")
    return "\n".join(lines) + "\n"


def format_observation(observation: Observation) -> str:
    """Render an observation as the next iteration's input."""
    if observation.tool_name:
        return f"Tool '{observation.tool_name}' result: {observation.content}"
    return observation.content


def should_stop(thought: Thought) -> bool:
    """True if the reasoning text contains a completion marker."""
    text = thought.reasoning.lower()
    return any(marker in text for marker in COMPLETION_MARKERS)


def extract_final_answer(thought: Thought) -> str:
    """Pull the answer from ``finish(answer="...")``, else use the reasoning."""
    next_action = thought.next_action
    if next_action and next_action.startswith("finish"):
        match = _FINISH_ANSWER_RE.search(next_action)
        if match:
            return match.group(1)
    return thought.reasoning


def exhaustion_message(max_iterations: int) -> str:
    return f"Reached maximum iterations ({max_iterations}) without completing the task."
