"""
LLM factory for creating provider instances.

Supports: OpenAI, Azure OpenAI, Anthropic Claude, llama.cpp server and
custom OpenAI-compatible services.
"""

import structlog

from ..config import LLMConfig, Settings
from ..credentials import CredentialStore
from .anthropic import AnthropicLLM
from .base import BaseLLM
from .embeddings import AzureOpenAIEmbeddings, BaseEmbeddings, OpenAIEmbeddings
from .openai import AzureOpenAILLM, OpenAILLM

logger = structlog.get_logger()


def create_llm(config: LLMConfig | None = None, settings: Settings | None = None) -> BaseLLM:
    """Create an LLM instance based on configuration.

    Provider routing:
    - openai -> OpenAILLM (native OpenAI SDK)
    - azure -> AzureOpenAILLM (OpenAI SDK, Azure client)
    - anthropic -> AnthropicLLM (native Anthropic SDK)
    - llama, custom -> OpenAILLM (OpenAI-compatible endpoint)
    """
    if config is None:
        if settings is None:
            from ..config import get_settings
            settings = get_settings()
        config = settings.get_llm_config()

    provider = config.provider
    common = {
        "api_key": config.api_key,
        "model": config.model,
        "base_url": config.base_url,
        "max_tokens": config.max_tokens,
        "temperature": config.temperature,
        "timeout": config.timeout,
    }

    if provider == "openai":
        return OpenAILLM(**common)
    elif provider == "azure":
        return AzureOpenAILLM(
            **common,
            api_version=config.api_version or "2023-05-15",
            ad_token=config.ad_token,
        )
    elif provider == "anthropic":
        return AnthropicLLM(**common)
    elif provider in ("llama", "custom"):
        if not config.base_url:
            raise ValueError(f"Service '{provider}' requires a base URL")
        return OpenAILLM(**common)
    else:
        raise ValueError(f"Unknown LLM provider: {provider}")


def create_embeddings(
    settings: Settings,
    credentials: CredentialStore | None = None,
) -> BaseEmbeddings:
    """Create the embedding provider used by contextual search.

    Anthropic has no embeddings endpoint, so that service embeds with OpenAI.
    """
    provider = settings.selected_service
    if provider == "anthropic":
        logger.info("Anthropic has no embeddings endpoint, using OpenAI embeddings")
        provider = "openai"

    config = settings.get_llm_config(provider, model=settings.embedding_model, credentials=credentials)

    if provider == "azure":
        return AzureOpenAIEmbeddings(
            api_key=config.api_key,
            model=config.model,
            base_url=config.base_url,
            timeout=config.timeout,
            api_version=config.api_version or "2023-05-15",
            ad_token=config.ad_token,
        )
    return OpenAIEmbeddings(
        api_key=config.api_key,
        model=config.model,
        base_url=config.base_url,
        timeout=config.timeout,
    )
