"""LLM layer — litellm provider and the model-backed reasoner."""

from reloop.llm.message import Message
from reloop.llm.provider import (
    ChatProvider,
    Completion,
    LiteLLMProvider,
    ProviderConfig,
    create_provider,
)
from reloop.llm.reasoner import LLMReasoner, parse_thought

__all__ = [
    "Message",
    "ChatProvider",
    "Completion",
    "LiteLLMProvider",
    "ProviderConfig",
    "create_provider",
    "LLMReasoner",
    "parse_thought",
]
