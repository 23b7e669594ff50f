"""LLM-backed reasoner — turns model replies into thoughts and actions."""

from __future__ import annotations

import logging
import re

from reloop.agent.types import Action, Observation, Thought
from reloop.llm.message import Message
from reloop.llm.provider import ChatProvider
from reloop.tool.executor import ToolCall
from reloop.tool.registry import ToolRegistry
from reloop.tool.value import parse_arguments

logger = logging.getLogger(__name__)

_THOUGHT_RE = re.compile(r"thought:", re.IGNORECASE)
_PLAN_RE = re.compile(r"plan:", re.IGNORECASE)
_ACTION_RE = re.compile(r"action:", re.IGNORECASE)
_PLAN_ITEM_RE = re.compile(r"^\s*(?:[-*]|\d+[.)])\s+(.*\S)\s*$")


def parse_thought(content: str) -> Thought:
    """Parse a ReAct-style reply into a Thought.

    Recognized layout (each section optional, case-insensitive):

        Thought: <reasoning>
        Plan:
        - step one
        - step two
        Action: <next action, e.g. finish(answer="...")>

    Without a ``Thought:`` marker the whole reply is the reasoning.
    """
    thought_match = _THOUGHT_RE.search(content)
    if not thought_match:
        return Thought(reasoning=content.strip())

    body = content[thought_match.end() :]
    next_action: str | None = None

    action_match = _ACTION_RE.search(body)
    if action_match:
        next_action = body[action_match.end() :].strip() or None
        body = body[: action_match.start()]

    plan: list[str] = []
    plan_match = _PLAN_RE.search(body)
    if plan_match:
        for line in body[plan_match.end() :].splitlines():
            item = _PLAN_ITEM_RE.match(line)
            if item:
                plan.append(item.group(1))
        body = body[: plan_match.start()]

    return Thought(reasoning=body.strip(), plan=tuple(plan), next_action=next_action)


class LLMReasoner:
    """Reasoner that consults a chat model with the registry's tools.

    Keeps its own running message history so follow-up iterations see the
    earlier exchange. Only the first tool call of a reply becomes the
    action; the loop executes one action per iteration. That call is kept
    in the history as an assistant tool call and is answered with a tool
    message, either by :meth:`record_observation` or, when nobody reported
    the result, with the next context handed to :meth:`think`.
    """

    def __init__(
        self,
        provider: ChatProvider,
        registry: ToolRegistry,
        system_prompt: str = "",
        temperature: float | None = None,
    ) -> None:
        self.provider = provider
        self.registry = registry
        self.system_prompt = system_prompt
        self.temperature = temperature
        self._history: list[Message] = []
        self._pending_call: ToolCall | None = None

    @property
    def history(self) -> list[Message]:
        return list(self._history)

    def clear_history(self) -> None:
        self._history.clear()
        self._pending_call = None

    def record_observation(self, observation: Observation) -> None:
        """Answer the outstanding tool call with the executed tool's result."""
        if self._pending_call is None:
            logger.debug("No outstanding tool call for observation; ignoring")
            return
        call_id = observation.metadata.get("tool_call_id", self._pending_call.id)
        if call_id != self._pending_call.id:
            logger.warning(
                "Observation for call %s does not match outstanding call %s",
                call_id,
                self._pending_call.id,
            )
            return
        self._history.append(Message.tool_result(call_id, observation.content))
        self._pending_call = None

    async def think(self, context: str) -> tuple[Thought, Action | None]:
        if self._pending_call is not None:
            turn = Message.tool_result(self._pending_call.id, context)
        else:
            turn = Message.user(context)

        messages: list[Message] = []
        if self.system_prompt:
            messages.append(Message.system(self.system_prompt))
        messages.extend(self._history)
        messages.append(turn)

        tools = self.registry.to_openai_tools()
        completion = await self.provider.complete(
            messages,
            tools=tools or None,
            temperature=self.temperature,
        )
        if completion.finish_reason == "length":
            logger.warning("Model reply was cut off at the token limit")

        thought = parse_thought(completion.content)

        if not completion.tool_calls:
            self._history.extend([turn, Message.assistant(completion.content)])
            self._pending_call = None
            return thought, None

        if len(completion.tool_calls) > 1:
            logger.info(
                "Model requested %d tool calls; acting on the first (%s)",
                len(completion.tool_calls),
                completion.tool_calls[0].tool_name,
            )
        call = completion.tool_calls[0]
        action = Action(
            tool_name=call.tool_name,
            arguments=parse_arguments(call.raw_arguments),
            thought=thought,
            call_id=call.id,
        )
        self._history.extend([turn, Message.assistant(completion.content, tool_calls=[call])])
        self._pending_call = call
        return thought, action
