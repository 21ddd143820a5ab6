"""
Tests for LLM and embedding providers.
"""

from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import anthropic
import httpx
import openai
import pytest

from completion_compiler.config import LLMConfig
from completion_compiler.errors import BackendError
from completion_compiler.llm.anthropic import AnthropicLLM
from completion_compiler.llm.base import LLMMessage
from completion_compiler.llm.embeddings import AzureOpenAIEmbeddings, OpenAIEmbeddings
from completion_compiler.llm.factory import create_embeddings, create_llm
from completion_compiler.llm.openai import AzureOpenAILLM, OpenAILLM, is_text_completion_model


def _usage(prompt_tokens=10, completion_tokens=5):
    return SimpleNamespace(prompt_tokens=prompt_tokens, completion_tokens=completion_tokens)


def _api_error(module, url):
    return module.APIError("invalid api key", request=httpx.Request("POST", url), body=None)


def test_is_text_completion_model():
    """Test legacy models are detected by name."""
    assert is_text_completion_model("text-davinci-003")
    assert is_text_completion_model("gpt-3.5-turbo-instruct")
    assert not is_text_completion_model("gpt-3.5-turbo")
    assert not is_text_completion_model("gpt-4")


@pytest.mark.asyncio
async def test_openai_chat_generate():
    """Test chat models go through the chat completions endpoint."""
    llm = OpenAILLM(api_key="test_key", model="gpt-4")
    llm.client = MagicMock()
    llm.client.chat.completions.create = AsyncMock(return_value=SimpleNamespace(
        choices=[SimpleNamespace(message=SimpleNamespace(content="Hi!"), finish_reason="stop")],
        usage=_usage(),
        model="gpt-4",
    ))

    response = await llm.generate([LLMMessage(role="user", content="Hello")], system_prompt="Be brief")

    assert response.content == "Hi!"
    assert response.input_tokens == 10
    assert response.stop_reason == "stop"
    kwargs = llm.client.chat.completions.create.call_args.kwargs
    assert kwargs["messages"] == [
        {"role": "system", "content": "Be brief"},
        {"role": "user", "content": "Hello"},
    ]
    assert kwargs["max_tokens"] == 1000


@pytest.mark.asyncio
async def test_openai_text_generate():
    """Test legacy models get one flattened prompt."""
    llm = OpenAILLM(api_key="test_key", model="text-davinci-003")
    llm.client = MagicMock()
    llm.client.completions.create = AsyncMock(return_value=SimpleNamespace(
        choices=[SimpleNamespace(text="Hi!", finish_reason="stop")],
        usage=None,
        model="text-davinci-003",
    ))

    response = await llm.generate([LLMMessage(role="user", content="Hello")], system_prompt="Be brief")

    assert response.content == "Hi!"
    assert response.input_tokens == 0
    assert llm.client.completions.create.call_args.kwargs["prompt"] == "Be brief\nHello"


@pytest.mark.asyncio
async def test_openai_complete_with_model_override():
    """Test one-shot completion sends a single user message."""
    llm = OpenAILLM(api_key="test_key")
    llm.client = MagicMock()
    llm.client.chat.completions.create = AsyncMock(return_value=SimpleNamespace(
        choices=[SimpleNamespace(message=SimpleNamespace(content="query"), finish_reason="stop")],
        usage=_usage(),
        model="gpt-4",
    ))

    assert await llm.complete("question", model="gpt-4") == "query"
    kwargs = llm.client.chat.completions.create.call_args.kwargs
    assert kwargs["model"] == "gpt-4"
    assert kwargs["messages"] == [{"role": "user", "content": "question"}]


@pytest.mark.asyncio
async def test_openai_api_error():
    """Test SDK errors are surfaced as BackendError."""
    llm = OpenAILLM(api_key="test_key")
    llm.client = MagicMock()
    llm.client.chat.completions.create = AsyncMock(
        side_effect=_api_error(openai, "https://api.openai.com/v1/chat/completions")
    )

    with pytest.raises(BackendError, match="invalid api key"):
        await llm.generate([LLMMessage(role="user", content="Hello")])


def test_azure_requires_endpoint():
    """Test Azure needs a resource endpoint."""
    with pytest.raises(ValueError):
        AzureOpenAILLM(api_key="test_key")


def test_azure_provider():
    llm = AzureOpenAILLM(api_key="test_key", base_url="https://example.openai.azure.com")

    assert llm.provider_name == "azure"
    assert llm.api_version == "2023-05-15"


@pytest.mark.asyncio
async def test_anthropic_generate():
    """Test system messages are passed separately to Claude."""
    llm = AnthropicLLM(api_key="test_key")
    llm.client = MagicMock()
    llm.client.messages.create = AsyncMock(return_value=SimpleNamespace(
        content=[
            SimpleNamespace(type="text", text="Hello "),
            SimpleNamespace(type="text", text="there"),
        ],
        usage=SimpleNamespace(input_tokens=12, output_tokens=3),
        model="claude-3-opus-20240229",
        stop_reason="end_turn",
    ))

    response = await llm.generate([
        LLMMessage(role="system", content="Be brief"),
        LLMMessage(role="user", content="Hi"),
    ])

    assert response.content == "Hello there"
    assert response.output_tokens == 3
    kwargs = llm.client.messages.create.call_args.kwargs
    assert kwargs["system"] == "Be brief"
    assert kwargs["messages"] == [{"role": "user", "content": "Hi"}]


@pytest.mark.asyncio
async def test_anthropic_api_error():
    llm = AnthropicLLM(api_key="test_key")
    llm.client = MagicMock()
    llm.client.messages.create = AsyncMock(
        side_effect=_api_error(anthropic, "https://api.anthropic.com/v1/messages")
    )

    with pytest.raises(BackendError):
        await llm.generate([LLMMessage(role="user", content="Hi")])


@pytest.mark.asyncio
async def test_embeddings_keep_input_order():
    """Test vectors are returned in input order."""
    embeddings = OpenAIEmbeddings(api_key="test_key")
    embeddings.client = MagicMock()
    embeddings.client.embeddings.create = AsyncMock(return_value=SimpleNamespace(data=[
        SimpleNamespace(index=1, embedding=[0.0, 1.0]),
        SimpleNamespace(index=0, embedding=[1.0, 0.0]),
    ]))

    vectors = await embeddings.embed_many(["first", "second"])

    assert vectors == [[1.0, 0.0], [0.0, 1.0]]


@pytest.mark.asyncio
async def test_embed_empty_vector():
    """Test an empty embedding is an error."""
    embeddings = OpenAIEmbeddings(api_key="test_key")
    embeddings.client = MagicMock()
    embeddings.client.embeddings.create = AsyncMock(return_value=SimpleNamespace(data=[]))

    with pytest.raises(BackendError):
        await embeddings.embed("query")


@pytest.mark.asyncio
async def test_embed_many_without_texts():
    embeddings = OpenAIEmbeddings(api_key="test_key")
    embeddings.client = MagicMock()

    assert await embeddings.embed_many([]) == []
    embeddings.client.embeddings.create.assert_not_called()


def test_create_llm_routing():
    """Test each service maps to its provider."""
    assert isinstance(create_llm(LLMConfig(provider="openai", api_key="k")), OpenAILLM)
    assert isinstance(create_llm(LLMConfig(provider="anthropic", api_key="k")), AnthropicLLM)
    assert isinstance(
        create_llm(LLMConfig(provider="azure", api_key="k", base_url="https://example.openai.azure.com")),
        AzureOpenAILLM,
    )

    llama = create_llm(LLMConfig(provider="llama", base_url="http://localhost:8080/v1"))
    assert isinstance(llama, OpenAILLM)
    assert llama.base_url == "http://localhost:8080/v1"


def test_create_llm_custom_without_url():
    """Test a custom service needs a URL."""
    with pytest.raises(ValueError):
        create_llm(LLMConfig(provider="custom"))


def test_create_llm_from_settings(settings):
    llm = create_llm(settings=settings)

    assert llm.provider_name == "openai"
    assert llm.model == "gpt-3.5-turbo"


def test_create_embeddings(settings):
    """Test anthropic embeds with OpenAI and azure with its deployment."""
    settings.selected_service = "anthropic"
    embeddings = create_embeddings(settings)
    assert isinstance(embeddings, OpenAIEmbeddings)
    assert embeddings.model == "text-embedding-ada-002"

    settings.selected_service = "azure"
    settings.azure_base_url = "https://example.openai.azure.com"
    settings.azure_openai_api_key = "test_azure_key"
    assert isinstance(create_embeddings(settings), AzureOpenAIEmbeddings)


def test_azure_requires_credentials(settings):
    """Test Azure without a key or AD token fails with BackendError."""
    with pytest.raises(BackendError):
        AzureOpenAILLM(api_key="", base_url="https://example.openai.azure.com")

    settings.selected_service = "azure"
    settings.azure_base_url = "https://example.openai.azure.com"
    with pytest.raises(BackendError):
        create_embeddings(settings)


def test_azure_accepts_ad_token():
    llm = AzureOpenAILLM(api_key="", base_url="https://example.openai.azure.com", ad_token="test_ad_token")

    assert llm.ad_token == "test_ad_token"


@pytest.mark.asyncio
async def test_aclose_closes_http_client():
    """Test providers release their HTTP clients."""
    providers = [
        OpenAILLM(api_key="test_key"),
        AnthropicLLM(api_key="test_key"),
        OpenAIEmbeddings(api_key="test_key"),
    ]

    for provider in providers:
        await provider.aclose()
        assert provider._http_client.is_closed
