"""Completion client: PydanticAI agents over Anthropic.

Every call streams, which keeps long structured extractions from being cut
by idle-connection timeouts. Structured calls validate against a pydantic
model; text calls return the raw completion for callers that parse
loosely-formatted JSON themselves.
"""

from __future__ import annotations

import time
from typing import TYPE_CHECKING, Any, TypeVar

import structlog
from pydantic import BaseModel
from pydantic_ai.models.anthropic import AnthropicModelSettings

from adsmith.errors import ServiceNotConfiguredError
from adsmith.metrics import llm_tokens_total, stage_duration_seconds

if TYPE_CHECKING:
    from pydantic_ai.models.anthropic import AnthropicModel
    from pydantic_ai.usage import RunUsage

    from adsmith.config import Settings

logger = structlog.get_logger()

T = TypeVar("T", bound=BaseModel)

DEFAULT_SYSTEM = "You are a helpful assistant."


def stream_usage(stream: Any) -> RunUsage:
    """Usage of a finished stream; a method on pydantic-ai 1.x, a property from 2.x."""
    usage = stream.usage
    return usage() if callable(usage) else usage


def _token_counts(usage: RunUsage) -> dict[str, int]:
    return {
        "request": usage.input_tokens or 0,
        "response": usage.output_tokens or 0,
        "cache_read": usage.cache_read_tokens or 0,
        "cache_write": usage.cache_write_tokens or 0,
    }


class LLMClient:
    """Async structured and free-text completions."""

    def __init__(self, settings: Settings) -> None:
        if not settings.anthropic_api_key:
            raise ServiceNotConfiguredError("Anthropic API key")
        self.settings = settings
        self._model: AnthropicModel | None = None

    @property
    def model(self) -> AnthropicModel:
        if self._model is None:
            from pydantic_ai.models.anthropic import AnthropicModel
            from pydantic_ai.providers.anthropic import AnthropicProvider

            self._model = AnthropicModel(
                self.settings.llm_model,
                provider=AnthropicProvider(api_key=self.settings.anthropic_api_key),
            )
        return self._model

    def _build_model_settings(
        self,
        temperature: float | None = None,
        max_tokens: int | None = None,
    ) -> AnthropicModelSettings:
        return AnthropicModelSettings(
            temperature=self.settings.llm_temperature if temperature is None else temperature,
            max_tokens=self.settings.llm_max_tokens if max_tokens is None else max_tokens,
            anthropic_cache_instructions=True,
        )

    def _record_usage(self, label: str, usage: RunUsage, elapsed: float) -> None:
        counts = _token_counts(usage)
        logger.info(
            "Completion finished",
            model=self.settings.llm_model,
            output_type=label,
            elapsed=round(elapsed, 2),
            input_tokens=counts["request"],
            output_tokens=counts["response"],
        )
        for token_type, count in counts.items():
            llm_tokens_total.labels(model=self.settings.llm_model, token_type=token_type).inc(count)

    async def _complete(
        self,
        prompt: str,
        output_type: Any,
        label: str,
        system: str,
        temperature: float | None,
        max_tokens: int | None,
    ) -> Any:
        from pydantic_ai import Agent

        agent = Agent(self.model, output_type=output_type, system_prompt=system or DEFAULT_SYSTEM)
        model_settings = self._build_model_settings(temperature, max_tokens)
        logger.debug("Completion request", model=self.settings.llm_model, output_type=label)

        start = time.monotonic()
        async with agent.run_stream(prompt, model_settings=model_settings) as stream:
            # Drain the stream so bytes keep flowing on long generations
            async for _ in stream.stream_output():
                pass
            output = await stream.get_output()
            usage = stream_usage(stream)
        elapsed = time.monotonic() - start

        stage_duration_seconds.labels(stage="completion").observe(elapsed)
        self._record_usage(label, usage, elapsed)
        return output

    async def generate(
        self,
        prompt: str,
        response_model: type[T],
        system: str = "",
        temperature: float | None = None,
        max_tokens: int | None = None,
    ) -> T:
        """Return a *response_model* instance produced by the model."""
        return await self._complete(
            prompt, response_model, response_model.__name__, system, temperature, max_tokens
        )

    async def generate_text(
        self,
        prompt: str,
        system: str = "",
        temperature: float | None = None,
        max_tokens: int | None = None,
    ) -> str:
        return await self._complete(prompt, str, "str", system, temperature, max_tokens)
