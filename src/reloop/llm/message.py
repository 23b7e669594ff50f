"""Chat message type exchanged with the LLM provider."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Literal

from reloop.tool.executor import ToolCall


@dataclass
class Message:
    """A conversation message in provider-neutral form."""

    role: Literal["system", "user", "assistant", "tool"]
    content: str = ""
    tool_calls: list[ToolCall] = field(default_factory=list)
    tool_call_id: str | None = None

    # --- Convenience constructors ---

    @classmethod
    def system(cls, text: str) -> Message:
        return cls(role="system", content=text)

    @classmethod
    def user(cls, text: str) -> Message:
        return cls(role="user", content=text)

    @classmethod
    def assistant(
        cls, text: str = "", tool_calls: list[ToolCall] | None = None
    ) -> Message:
        return cls(role="assistant", content=text, tool_calls=list(tool_calls or []))

    @classmethod
    def tool_result(cls, tool_call_id: str, content: str) -> Message:
        return cls(role="tool", content=content, tool_call_id=tool_call_id)

    def to_openai_dict(self) -> dict[str, Any]:
        """Convert to OpenAI chat-completions format."""
        if self.role == "tool":
            return {
                "role": "tool",
                "tool_call_id": self.tool_call_id or "",
                "content": self.content,
            }

        if self.role == "assistant":
            result: dict[str, Any] = {
                "role": "assistant",
                "content": self.content or None,
            }
            if self.tool_calls:
                result["tool_calls"] = [
                    {
                        "id": tc.id,
                        "type": "function",
                        "function": {
                            "name": tc.tool_name,
                            "arguments": tc.raw_arguments,
                        },
                    }
                    for tc in self.tool_calls
                ]
            return result

        # system or user
        return {"role": self.role, "content": self.content}
