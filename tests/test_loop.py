"""Tests for reloop.agent.loop (AgentLoop state machine and helpers)."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from reloop.agent.loop import (
    AgentLoop,
    Reasoner,
    build_context,
    exhaustion_message,
    extract_final_answer,
    format_observation,
    should_stop,
)
from reloop.agent.types import Action, AgentLoopConfig, LoopState, Observation, Thought
from reloop.tool.base import FunctionTool, ToolParameter
from reloop.tool.errors import ToolNotFoundError
from reloop.tool.executor import ToolExecutor
from reloop.tool.registry import ToolRegistry
from reloop.tool.value import Arguments


class _ScriptedReasoner:
    """Replays a fixed list of (thought, action) replies.

    When the script runs out, the last reply repeats. Every context it is
    given is recorded, along with the loop state at call time.
    """

    def __init__(self, replies: list[tuple[Thought, Action | None]]) -> None:
        self.replies = replies
        self.contexts: list[str] = []
        self.states: list[LoopState] = []
        self.loop: AgentLoop | None = None

    async def think(self, context: str) -> tuple[Thought, Action | None]:
        self.contexts.append(context)
        if self.loop is not None:
            self.states.append(self.loop.state)
        index = min(len(self.contexts) - 1, len(self.replies) - 1)
        return self.replies[index]


class _FailingReasoner:
    async def think(self, context: str) -> tuple[Thought, Action | None]:
        raise ConnectionError("model unreachable")


def _make_loop(
    replies: list[tuple[Thought, Action | None]],
    config: AgentLoopConfig | None = None,
) -> tuple[AgentLoop, _ScriptedReasoner, list[Arguments]]:
    calls: list[Arguments] = []

    def search(args: Arguments) -> str:
        calls.append(args)
        return f"result {len(calls)}"

    registry = ToolRegistry(
        [FunctionTool("search", "Search", search, [ToolParameter(name="query")])]
    )
    reasoner = _ScriptedReasoner(replies)
    loop = AgentLoop(reasoner, ToolExecutor(registry), config)
    reasoner.loop = loop
    return loop, reasoner, calls


_SEARCH = Action(tool_name="search", arguments={"query": "test"})


# ---------------------------------------------------------------------------
# Termination
# ---------------------------------------------------------------------------


class TestTermination:
    async def test_no_action_finishes_immediately(self) -> None:
        loop, reasoner, calls = _make_loop([(Thought(reasoning="The answer is 4"), None)])
        result = await loop.run("What is 2+2?")
        assert result == "The answer is 4"
        assert loop.state is LoopState.FINISHED
        assert loop.iteration_count == 1
        assert reasoner.contexts == ["What is 2+2?"]
        assert calls == []

    async def test_finish_answer_extracted(self) -> None:
        thought = Thought(reasoning="I know it", next_action='finish(answer="4")')
        loop, _, _ = _make_loop([(thought, None)])
        assert await loop.run("q") == "4"

    async def test_max_iterations_exhaustion(self) -> None:
        config = AgentLoopConfig(max_iterations=3, stop_on_finish=True)
        loop, reasoner, calls = _make_loop([(Thought(reasoning="searching"), _SEARCH)], config)
        result = await loop.run("q")
        assert result == exhaustion_message(3)
        assert "3" in result
        assert len(reasoner.contexts) == 3
        assert len(calls) == 3
        assert loop.iteration_count == 3
        assert loop.state is LoopState.FINISHED

    async def test_single_iteration_bound(self) -> None:
        config = AgentLoopConfig(max_iterations=1)
        loop, reasoner, calls = _make_loop([(Thought(reasoning="searching"), _SEARCH)], config)
        result = await loop.run("q")
        assert result == exhaustion_message(1)
        assert len(calls) == 1
        assert len(reasoner.contexts) == 1
        assert len(loop.observations) == 1

    async def test_completion_marker_stops_after_observation(self) -> None:
        replies = [
            (Thought(reasoning="Looking it up"), _SEARCH),
            (Thought(reasoning="Search is DONE, wrapping up"), _SEARCH),
            (Thought(reasoning="never reached"), None),
        ]
        loop, reasoner, calls = _make_loop(replies)
        result = await loop.run("q")
        assert result == "Search is DONE, wrapping up"
        assert len(reasoner.contexts) == 2
        assert len(calls) == 2
        assert len(loop.observations) == 2
        assert loop.state is LoopState.FINISHED

    async def test_completion_marker_uses_finish_payload(self) -> None:
        thought = Thought(reasoning="task complete", next_action='finish(answer="42")')
        loop, _, calls = _make_loop([(thought, _SEARCH)])
        assert await loop.run("q") == "42"
        assert len(calls) == 1

    async def test_marker_ignored_when_stop_on_finish_disabled(self) -> None:
        replies = [
            (Thought(reasoning="done searching"), _SEARCH),
            (Thought(reasoning="final"), None),
        ]
        loop, reasoner, _ = _make_loop(replies, AgentLoopConfig(stop_on_finish=False))
        assert await loop.run("q") == "final"
        assert len(reasoner.contexts) == 2


# ---------------------------------------------------------------------------
# Context and state
# ---------------------------------------------------------------------------


class TestContextAndState:
    async def test_context_accumulates_observations(self) -> None:
        replies = [
            (Thought(reasoning="a"), _SEARCH),
            (Thought(reasoning="b"), _SEARCH),
            (Thought(reasoning="c"), None),
        ]
        loop, reasoner, _ = _make_loop(replies)
        await loop.run("start")
        assert reasoner.contexts[0] == "start"
        assert reasoner.contexts[1] == (
            "Tool 'search' result: result 1\n\n## Previous observations:\n1. result 1\n"
        )
        assert reasoner.contexts[2] == (
            "Tool 'search' result: result 2\n\n"
            "## Previous observations:\n1. result 1\n2. result 2\n"
        )

    async def test_state_is_thinking_during_think(self) -> None:
        replies = [(Thought(reasoning="a"), _SEARCH), (Thought(reasoning="b"), None)]
        loop, reasoner, _ = _make_loop(replies)
        await loop.run("q")
        assert reasoner.states == [LoopState.THINKING, LoopState.THINKING]

    async def test_initial_state(self) -> None:
        loop, _, _ = _make_loop([(Thought(reasoning="x"), None)])
        assert loop.state is LoopState.IDLE
        assert loop.iteration_count == 0
        assert loop.observations == ()
        assert loop.error is None

    async def test_run_resets_between_calls(self) -> None:
        replies = [(Thought(reasoning="a"), _SEARCH), (Thought(reasoning="b"), None)]
        loop, reasoner, _ = _make_loop(replies)
        await loop.run("first")
        assert loop.iteration_count == 2
        reasoner.replies = [(Thought(reasoning="b"), None)]
        reasoner.contexts.clear()
        await loop.run("second")
        assert loop.iteration_count == 1
        assert loop.observations == ()
        assert reasoner.contexts == ["second"]

    async def test_callbacks_fire_in_order(self) -> None:
        events: list[tuple[str, int]] = []
        registry = ToolRegistry([FunctionTool("search", "", lambda a: "hit")])
        reasoner = _ScriptedReasoner(
            [(Thought(reasoning="a"), Action(tool_name="search")), (Thought(reasoning="b"), None)]
        )
        loop = AgentLoop(
            reasoner,
            ToolExecutor(registry),
            on_thought=lambda i, t: events.append(("thought", i)),
            on_action=lambda i, a: events.append(("action", i)),
            on_observation=lambda i, o: events.append(("observation", i)),
        )
        await loop.run("q")
        assert events == [
            ("thought", 1),
            ("action", 1),
            ("observation", 1),
            ("thought", 2),
        ]

    def test_reasoner_protocol(self) -> None:
        assert isinstance(_ScriptedReasoner([]), Reasoner)


# ---------------------------------------------------------------------------
# Failures
# ---------------------------------------------------------------------------


class TestFailures:
    async def test_reasoner_fault_propagates(self) -> None:
        loop = AgentLoop(_FailingReasoner(), ToolExecutor(ToolRegistry()))
        with pytest.raises(ConnectionError, match="model unreachable"):
            await loop.run("q")
        assert loop.state is LoopState.ERROR
        assert isinstance(loop.error, ConnectionError)
        assert loop.iteration_count == 1

    async def test_tool_fault_propagates(self) -> None:
        loop, _, _ = _make_loop([(Thought(reasoning="x"), Action(tool_name="missing"))])
        with pytest.raises(ToolNotFoundError):
            await loop.run("q")
        assert loop.state is LoopState.ERROR
        assert loop.observations == ()

    async def test_recovers_on_next_run(self) -> None:
        loop, reasoner, _ = _make_loop([(Thought(reasoning="x"), Action(tool_name="missing"))])
        with pytest.raises(ToolNotFoundError):
            await loop.run("q")
        reasoner.replies = [(Thought(reasoning="fine"), None)]
        reasoner.contexts.clear()
        assert await loop.run("again") == "fine"
        assert loop.state is LoopState.FINISHED
        assert loop.error is None

    async def test_concurrent_run_rejected(self) -> None:
        import asyncio

        gate = asyncio.Event()

        class _SlowReasoner:
            async def think(self, context: str) -> tuple[Thought, Action | None]:
                await gate.wait()
                return Thought(reasoning="ok"), None

        loop = AgentLoop(_SlowReasoner(), ToolExecutor(ToolRegistry()))
        first = asyncio.create_task(loop.run("one"))
        await asyncio.sleep(0)
        with pytest.raises(RuntimeError, match="already in progress"):
            await loop.run("two")
        gate.set()
        assert await first == "ok"


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


class TestHelpers:
    def test_build_context_without_observations(self) -> None:
        assert build_context("hello", []) == "hello"

    def test_format_observation_with_tool(self) -> None:
        obs = Observation(content="4", tool_name="calculator")
        assert format_observation(obs) == "Tool 'calculator' result: 4"

    def test_format_observation_without_tool(self) -> None:
        assert format_observation(Observation(content="plain")) == "plain"

    @pytest.mark.parametrize(
        "reasoning",
        ["All done", "FINISHED now", "task is complete", "Completed it", "任务完成", "结束"],
    )
    def test_should_stop_markers(self, reasoning: str) -> None:
        assert should_stop(Thought(reasoning=reasoning))

    def test_should_stop_without_marker(self) -> None:
        assert not should_stop(Thought(reasoning="still searching"))

    def test_extract_prefers_finish_payload(self) -> None:
        thought = Thought(reasoning="r", next_action='finish(answer = "Paris")')
        assert extract_final_answer(thought) == "Paris"

    def test_extract_requires_finish_prefix(self) -> None:
        thought = Thought(reasoning="r", next_action='then finish(answer="x")')
        assert extract_final_answer(thought) == "r"

    def test_extract_malformed_finish_falls_back(self) -> None:
        thought = Thought(reasoning="r", next_action="finish(answer=unquoted)")
        assert extract_final_answer(thought) == "r"

    def test_extract_without_next_action(self) -> None:
        assert extract_final_answer(Thought(reasoning="just text")) == "just text"


class TestDataModel:
    def test_thought_is_hashable(self) -> None:
        thought = Thought(reasoning="r", plan=("a", "b"))
        assert thought in {thought}
        assert thought.plan == ("a", "b")

    def test_thought_default_plan(self) -> None:
        assert Thought(reasoning="r").plan == ()

    def test_observation_metadata_is_read_only(self) -> None:
        obs = Observation(content="x", metadata={"tool_call_id": "c1"})
        assert obs.metadata == {"tool_call_id": "c1"}
        with pytest.raises(TypeError):
            obs.metadata["tool_call_id"] = "c2"  # type: ignore[index]
        assert obs in {obs}


class TestAgentLoopConfig:
    def test_defaults(self) -> None:
        config = AgentLoopConfig()
        assert config.max_iterations == 10
        assert config.stop_on_finish is True
        assert config.temperature == 0.7

    def test_rejects_non_positive_iterations(self) -> None:
        with pytest.raises(ValidationError):
            AgentLoopConfig(max_iterations=0)

    def test_frozen(self) -> None:
        config = AgentLoopConfig()
        with pytest.raises(ValidationError):
            config.max_iterations = 5  # type: ignore[misc]
