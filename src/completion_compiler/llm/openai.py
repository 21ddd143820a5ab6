"""
OpenAI GPT LLM provider (also works with Azure, llama.cpp and compatible APIs).
"""

from typing import Any

import httpx
import openai
import structlog

from ..errors import BackendError
from .base import BaseLLM, LLMMessage, LLMResponse

logger = structlog.get_logger()

# Models served by the legacy /completions endpoint
TEXT_COMPLETION_PREFIXES = ("text-", "davinci", "curie", "babbage", "ada", "gpt-3.5-turbo-instruct")


def is_text_completion_model(model: str) -> bool:
    """Check whether a model only accepts a flattened prompt."""
    return model.startswith(TEXT_COMPLETION_PREFIXES)


class OpenAILLM(BaseLLM):
    """OpenAI GPT LLM provider."""

    def __init__(
        self,
        api_key: str,
        model: str = "gpt-3.5-turbo",
        base_url: str | None = None,
        max_tokens: int = 1000,
        temperature: float = 0.1,
        timeout: float = 60.0,
    ):
        super().__init__(api_key, model, base_url, max_tokens, temperature, timeout)
        self.client = self._create_client()

    def _create_client(self) -> openai.AsyncOpenAI:
        self._http_client = httpx.AsyncClient(timeout=httpx.Timeout(self.timeout))
        return openai.AsyncOpenAI(
            api_key=self.api_key or "not-set",
            base_url=self.base_url,
            http_client=self._http_client,
        )

    @property
    def provider_name(self) -> str:
        return "openai"

    def _convert_messages(self, messages: list[LLMMessage]) -> list[dict[str, Any]]:
        """Convert LLMMessages to OpenAI format."""
        return [{"role": msg.role, "content": msg.content} for msg in messages]

    @staticmethod
    def _flatten(messages: list[LLMMessage], system_prompt: str | None) -> str:
        """Flatten messages into a single prompt for the completions endpoint."""
        parts = [system_prompt] if system_prompt else []
        parts.extend(msg.content for msg in messages)
        return "\n".join(parts)

    async def generate(
        self,
        messages: list[LLMMessage],
        system_prompt: str | None = None,
        model: str | None = None,
    ) -> LLMResponse:
        """Generate a response from GPT."""
        model = model or self.model

        if is_text_completion_model(model):
            return await self._generate_text(self._flatten(messages, system_prompt), model)

        converted_messages = self._convert_messages(messages)

        if system_prompt:
            converted_messages.insert(0, {"role": "system", "content": system_prompt})

        kwargs: dict[str, Any] = {
            "model": model,
            "max_tokens": self.max_tokens,
            "temperature": self.temperature,
            "messages": converted_messages,
        }

        try:
            response = await self.client.chat.completions.create(**kwargs)
        except openai.APIError as e:
            logger.error("OpenAI API error", provider=self.provider_name, model=model, error=str(e))
            raise BackendError(str(e)) from e

        choice = response.choices[0]
        return LLMResponse(
            content=choice.message.content or "",
            input_tokens=response.usage.prompt_tokens if response.usage else 0,
            output_tokens=response.usage.completion_tokens if response.usage else 0,
            model=response.model,
            stop_reason=choice.finish_reason,
            raw_response=response,
        )

    async def _generate_text(self, prompt: str, model: str) -> LLMResponse:
        """Generate a response from the legacy completions endpoint."""
        try:
            response = await self.client.completions.create(
                model=model,
                prompt=prompt,
                max_tokens=self.max_tokens,
                temperature=self.temperature,
            )
        except openai.APIError as e:
            logger.error("OpenAI API error", provider=self.provider_name, model=model, error=str(e))
            raise BackendError(str(e)) from e

        choice = response.choices[0]
        return LLMResponse(
            content=choice.text or "",
            input_tokens=response.usage.prompt_tokens if response.usage else 0,
            output_tokens=response.usage.completion_tokens if response.usage else 0,
            model=response.model,
            stop_reason=choice.finish_reason,
            raw_response=response,
        )


class AzureOpenAILLM(OpenAILLM):
    """Azure OpenAI deployment of a GPT model."""

    def __init__(
        self,
        api_key: str,
        model: str = "gpt-3.5-turbo",
        base_url: str | None = None,
        max_tokens: int = 1000,
        temperature: float = 0.1,
        timeout: float = 60.0,
        api_version: str = "2023-05-15",
        ad_token: str | None = None,
    ):
        self.api_version = api_version
        self.ad_token = ad_token
        super().__init__(api_key, model, base_url, max_tokens, temperature, timeout)

    def _create_client(self) -> openai.AsyncAzureOpenAI:
        if not self.base_url:
            raise ValueError("Azure OpenAI requires a resource endpoint (AZURE_BASE_URL)")
        if not self.api_key and not self.ad_token:
            raise BackendError("Azure OpenAI requires an API key or an Active Directory token")
        self._http_client = httpx.AsyncClient(timeout=httpx.Timeout(self.timeout))
        return openai.AsyncAzureOpenAI(
            api_key=self.api_key or None,
            azure_ad_token=self.ad_token or None,
            azure_endpoint=self.base_url,
            api_version=self.api_version,
            http_client=self._http_client,
        )

    @property
    def provider_name(self) -> str:
        return "azure"
