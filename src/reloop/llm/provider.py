"""LLM provider abstraction — unified via litellm.

litellm handles provider-specific details (Anthropic, OpenAI, Gemini,
DeepSeek, ...) behind an OpenAI-shaped response. We normalize that into a
small :class:`Completion` the reasoner consumes.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

from tenacity import (
    before_sleep_log,
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from reloop.llm.message import Message
from reloop.tool.executor import ToolCall

if TYPE_CHECKING:
    from litellm import ModelResponse

logger = logging.getLogger(__name__)


@dataclass
class ProviderConfig:
    """Configuration for an LLM provider."""

    model: str
    temperature: float | None = None
    max_tokens: int | None = None


@dataclass
class Completion:
    """One non-streaming model reply."""

    content: str = ""
    tool_calls: list[ToolCall] = field(default_factory=list)
    finish_reason: str | None = None


@runtime_checkable
class ChatProvider(Protocol):
    """Protocol for LLM providers."""

    @property
    def config(self) -> ProviderConfig: ...

    async def complete(
        self,
        messages: list[Message],
        tools: list[dict[str, Any]] | None = None,
        temperature: float | None = None,
    ) -> Completion:
        """Run one chat completion."""
        ...


# ---------------------------------------------------------------------------
# litellm provider
# ---------------------------------------------------------------------------


@dataclass
class LiteLLMProvider:
    """Unified LLM provider using litellm.

    litellm detects the provider from the model string prefix
    (e.g. "anthropic/claude-...", "openai/gpt-4o", "deepseek/deepseek-chat")
    and reads API keys from environment variables automatically.
    """

    _config: ProviderConfig

    @property
    def config(self) -> ProviderConfig:
        return self._config

    async def complete(
        self,
        messages: list[Message],
        tools: list[dict[str, Any]] | None = None,
        temperature: float | None = None,
    ) -> Completion:
        kwargs: dict[str, Any] = {
            "model": self._config.model,
            "messages": [m.to_openai_dict() for m in messages],
        }

        if tools:
            kwargs["tools"] = tools

        # Per-call temperature wins over the provider default.
        if temperature is None:
            temperature = self._config.temperature
        if temperature is not None:
            kwargs["temperature"] = temperature

        if self._config.max_tokens is not None:
            kwargs["max_tokens"] = self._config.max_tokens

        response = await _acompletion_with_retry(**kwargs)
        return _response_to_completion(response)


@retry(
    retry=retry_if_exception_type((ConnectionError, TimeoutError, OSError)),
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=1, min=1, max=30),
    before_sleep=before_sleep_log(logger, logging.WARNING),
    reraise=True,
)
async def _acompletion_with_retry(**kwargs: Any) -> ModelResponse:
    """Call litellm.acompletion with retry on transient errors."""
    import litellm

    return await litellm.acompletion(**kwargs)


def _response_to_completion(response: Any) -> Completion:
    """Normalize a litellm ModelResponse.

    Shape follows OpenAI's ChatCompletion:
      response.choices[0].message.{content, tool_calls},
      response.choices[0].finish_reason
    """
    choices = getattr(response, "choices", None)
    if not choices:
        return Completion()

    choice = choices[0]
    message = choice.message
    tool_calls: list[ToolCall] = []
    for tc in getattr(message, "tool_calls", None) or []:
        func = tc.function
        tool_calls.append(
            ToolCall(
                id=tc.id or "",
                tool_name=(func.name if func else "") or "",
                raw_arguments=(func.arguments if func else "") or "",
            )
        )

    return Completion(
        content=message.content or "",
        tool_calls=tool_calls,
        finish_reason=getattr(choice, "finish_reason", None),
    )


# ---------------------------------------------------------------------------
# Factory
# ---------------------------------------------------------------------------


def create_provider(
    model: str,
    temperature: float | None = None,
    max_tokens: int | None = None,
) -> ChatProvider:
    """Create a LiteLLM provider.

    Args:
        model: Model name with provider prefix (e.g. "openai/gpt-4o",
               "anthropic/claude-sonnet-4-5-20250929").
        temperature: Default sampling temperature.
        max_tokens: Max output tokens.
    """
    config = ProviderConfig(
        model=model,
        temperature=temperature,
        max_tokens=max_tokens,
    )
    return LiteLLMProvider(_config=config)
