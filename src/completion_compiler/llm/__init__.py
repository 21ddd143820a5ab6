"""
LLM module for backend services.

Providers:
- OpenAI GPT (native SDK, chat and legacy completions)
- Azure OpenAI (OpenAI SDK)
- Anthropic Claude (native SDK)
- llama.cpp and custom services (via OpenAI-compatible endpoint)
"""

from .base import BaseLLM, LLMMessage, LLMResponse
from .anthropic import AnthropicLLM
from .openai import AzureOpenAILLM, OpenAILLM
from .embeddings import AzureOpenAIEmbeddings, BaseEmbeddings, OpenAIEmbeddings
from .factory import create_embeddings, create_llm

__all__ = [
    "BaseLLM",
    "LLMMessage",
    "LLMResponse",
    "AnthropicLLM",
    "AzureOpenAILLM",
    "OpenAILLM",
    "BaseEmbeddings",
    "AzureOpenAIEmbeddings",
    "OpenAIEmbeddings",
    "create_embeddings",
    "create_llm",
]
