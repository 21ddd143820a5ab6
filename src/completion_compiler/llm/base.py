"""
Base classes for LLM providers.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Literal

import httpx


@dataclass
class LLMMessage:
    """A message sent to the model."""

    role: Literal["user", "assistant", "system"]
    content: str


@dataclass
class LLMResponse:
    """Response from an LLM."""

    content: str
    input_tokens: int = 0
    output_tokens: int = 0
    model: str = ""
    stop_reason: str | None = None
    raw_response: Any = None


class BaseLLM(ABC):
    """Base class for LLM providers."""

    def __init__(
        self,
        api_key: str,
        model: str,
        base_url: str | None = None,
        max_tokens: int = 1000,
        temperature: float = 0.1,
        timeout: float = 60.0,
    ):
        self.api_key = api_key
        self.model = model
        self.base_url = base_url
        self.max_tokens = max_tokens
        self.temperature = temperature
        self.timeout = timeout
        self._http_client: httpx.AsyncClient | None = None

    @abstractmethod
    async def generate(
        self,
        messages: list[LLMMessage],
        system_prompt: str | None = None,
        model: str | None = None,
    ) -> LLMResponse:
        """Generate a response from the LLM."""
        pass

    async def complete(
        self,
        prompt: str | list[LLMMessage],
        model: str | None = None,
    ) -> str:
        """One-shot completion without conversation history.

        A plain string is sent as a single user message.
        """
        if isinstance(prompt, str):
            messages = [LLMMessage(role="user", content=prompt)]
        else:
            messages = prompt
        response = await self.generate(messages, model=model)
        return response.content

    async def aclose(self) -> None:
        """Close the HTTP client of the provider."""
        if self._http_client is not None:
            await self._http_client.aclose()

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """Get the provider name."""
        pass
