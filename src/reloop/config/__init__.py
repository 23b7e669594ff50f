"""Configuration — Pydantic models for reloop settings."""

from __future__ import annotations

import json
import os
from typing import Any

from dotenv import load_dotenv
from pydantic import BaseModel, Field

from reloop.agent.types import AgentLoopConfig


class LLMConfig(BaseModel):
    """LLM provider configuration.

    Model names use litellm's provider-prefix format:
        "openai/gpt-4o"
        "anthropic/claude-sonnet-4-5-20250929"
        "deepseek/deepseek-chat"

    API keys are read from env vars automatically by litellm
    (OPENAI_API_KEY, ANTHROPIC_API_KEY, DEEPSEEK_API_KEY, ...).
    """

    model: str = Field(default="openai/gpt-4o")
    max_tokens: int | None = Field(default=None)


class LoopSettings(BaseModel):
    """Agent loop settings."""

    max_iterations: int = Field(default=10, gt=0, description="Max think/act cycles per run")
    stop_on_finish: bool = Field(
        default=True,
        description="Stop as soon as the reasoning text signals completion",
    )
    temperature: float = Field(default=0.7, ge=0.0, description="Sampling temperature")

    def to_loop_config(self) -> AgentLoopConfig:
        return AgentLoopConfig(
            max_iterations=self.max_iterations,
            stop_on_finish=self.stop_on_finish,
            temperature=self.temperature,
        )


class ReloopConfig(BaseModel):
    """Top-level reloop configuration."""

    llm: LLMConfig = Field(default_factory=LLMConfig)
    loop: LoopSettings = Field(default_factory=LoopSettings)
    system_prompt: str = Field(default="", description="System prompt for the agent")

    @classmethod
    def load(cls, config_path: str | None = None) -> ReloopConfig:
        """Load config from file, env vars, or defaults.

        Priority: env vars > config file > defaults.

        Env vars:
            RELOOP_MODEL            - Override model (litellm format with provider prefix)
            RELOOP_MAX_ITERATIONS   - Override loop iteration bound
            RELOOP_STOP_ON_FINISH   - "1"/"true"/"yes" to enable, anything else disables
            RELOOP_TEMPERATURE      - Override sampling temperature
        """
        # .env values take precedence over stale shell exports.
        load_dotenv(override=True)

        config_data: dict[str, Any] = {}

        if config_path and os.path.exists(config_path):
            with open(config_path) as f:
                config_data = json.load(f)

        llm = config_data.get("llm", {})
        loop = config_data.get("loop", {})

        env_model = os.environ.get("RELOOP_MODEL")
        if env_model:
            llm["model"] = env_model

        env_max_iterations = os.environ.get("RELOOP_MAX_ITERATIONS")
        if env_max_iterations:
            loop["max_iterations"] = int(env_max_iterations)

        env_stop = os.environ.get("RELOOP_STOP_ON_FINISH")
        if env_stop:
            loop["stop_on_finish"] = env_stop.strip().lower() in ("1", "true", "yes")

        env_temperature = os.environ.get("RELOOP_TEMPERATURE")
        if env_temperature:
            loop["temperature"] = float(env_temperature)

        if llm:
            config_data["llm"] = llm
        if loop:
            config_data["loop"] = loop

        return cls.model_validate(config_data)
