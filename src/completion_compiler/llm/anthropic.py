"""
Anthropic Claude LLM provider.
"""

from typing import Any

import anthropic
import httpx
import structlog

from ..errors import BackendError
from .base import BaseLLM, LLMMessage, LLMResponse

logger = structlog.get_logger()


class AnthropicLLM(BaseLLM):
    """Anthropic Claude LLM provider."""

    def __init__(
        self,
        api_key: str,
        model: str = "claude-3-opus-20240229",
        base_url: str | None = None,
        max_tokens: int = 1000,
        temperature: float = 0.1,
        timeout: float = 60.0,
    ):
        super().__init__(api_key, model, base_url, max_tokens, temperature, timeout)
        self._http_client = httpx.AsyncClient(timeout=httpx.Timeout(timeout))
        self.client = anthropic.AsyncAnthropic(
            api_key=api_key or "not-set",
            base_url=base_url,
            http_client=self._http_client,
        )

    @property
    def provider_name(self) -> str:
        return "anthropic"

    def _convert_messages(self, messages: list[LLMMessage]) -> list[dict[str, Any]]:
        """Convert LLMMessages to Anthropic format (system messages go separately)."""
        return [
            {"role": msg.role, "content": msg.content}
            for msg in messages
            if msg.role != "system"
        ]

    def _extract_system_prompt(self, messages: list[LLMMessage]) -> str | None:
        """Extract system prompt from messages."""
        for msg in messages:
            if msg.role == "system":
                return msg.content
        return None

    async def generate(
        self,
        messages: list[LLMMessage],
        system_prompt: str | None = None,
        model: str | None = None,
    ) -> LLMResponse:
        """Generate a response from Claude."""
        system = system_prompt or self._extract_system_prompt(messages)

        kwargs: dict[str, Any] = {
            "model": model or self.model,
            "max_tokens": self.max_tokens,
            "temperature": self.temperature,
            "messages": self._convert_messages(messages),
        }

        if system:
            kwargs["system"] = system

        try:
            response = await self.client.messages.create(**kwargs)
        except anthropic.APIError as e:
            logger.error("Anthropic API error", model=kwargs["model"], error=str(e))
            raise BackendError(str(e)) from e

        content = "".join(block.text for block in response.content if block.type == "text")

        return LLMResponse(
            content=content,
            input_tokens=response.usage.input_tokens,
            output_tokens=response.usage.output_tokens,
            model=response.model,
            stop_reason=response.stop_reason,
            raw_response=response,
        )
