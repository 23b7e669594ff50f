"""Tool executor — resolve, parse, validate, and run tool calls."""

from __future__ import annotations

import logging
import uuid
from collections.abc import Iterable, Sequence
from dataclasses import dataclass

from reloop.agent.types import Action, Observation
from reloop.tool.base import ToolParameter
from reloop.tool.errors import (
    ExecutionFailedError,
    InvalidArgumentsError,
    MissingRequiredParameterError,
    ToolNotFoundError,
)
from reloop.tool.registry import ToolRegistry
from reloop.tool.value import Arguments, encode_arguments, parse_arguments

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ToolCall:
    """A requested tool invocation with its raw JSON argument payload."""

    id: str
    tool_name: str
    raw_arguments: str = "{}"

    @classmethod
    def from_action(cls, action: Action) -> ToolCall:
        return cls(
            id=action.call_id or uuid.uuid4().hex,
            tool_name=action.tool_name,
            raw_arguments=encode_arguments(action.arguments),
        )


class ToolExecutor:
    """Runs tool calls against a registry.

    Failures are raised, never turned into observations: callers decide
    whether a failed call ends the run.
    """

    def __init__(self, registry: ToolRegistry) -> None:
        self._registry = registry

    @property
    def registry(self) -> ToolRegistry:
        return self._registry

    async def execute(self, call: ToolCall) -> Observation:
        """Execute a single tool call.

        Raises:
            ToolNotFoundError: the tool is not registered.
            InvalidArgumentsError: the payload is not a JSON object or an
                enum-constrained value is out of range.
            MissingRequiredParameterError: a required parameter is absent.
            ExecutionFailedError: the tool itself raised.
        """
        tool = self._registry.get(call.tool_name)
        if tool is None:
            logger.error("Unknown tool requested: %s", call.tool_name)
            raise ToolNotFoundError(call.tool_name)

        arguments = parse_arguments(call.raw_arguments)
        validate_arguments(arguments, tool.parameters)

        logger.debug("Executing tool %s (call %s)", tool.name, call.id)
        try:
            content = await tool.execute(arguments)
        except Exception as e:
            logger.error("Tool %s execution error: %s", tool.name, e, exc_info=True)
            raise ExecutionFailedError(tool.name, str(e) or type(e).__name__) from e

        return Observation(
            content=content,
            tool_name=tool.name,
            metadata={"tool_call_id": call.id},
        )

    async def execute_many(self, calls: Iterable[ToolCall]) -> list[Observation]:
        """Execute calls one after another, in order.

        A later call may depend on side effects of an earlier one, so calls
        are never run concurrently. The first failure stops the batch.
        """
        observations: list[Observation] = []
        for call in calls:
            observations.append(await self.execute(call))
        return observations

    async def execute_action(self, action: Action) -> Observation:
        """Execute an Action produced by the reasoner."""
        return await self.execute(ToolCall.from_action(action))


def validate_arguments(
    arguments: Arguments, parameters: Sequence[ToolParameter]
) -> None:
    """Check arguments against a tool's declared parameters.

    Only the declaration decides what is required; extra keys are allowed.
    """
    for param in parameters:
        if param.required and param.name not in arguments:
            raise MissingRequiredParameterError(param.name)

    for param in parameters:
        if param.enum_values is None:
            continue
        value = arguments.get(param.name)
        if isinstance(value, str) and value not in param.enum_values:
            raise InvalidArgumentsError(
                f"Value {value!r} for parameter '{param.name}' is not one of "
                f"{list(param.enum_values)}"
            )
