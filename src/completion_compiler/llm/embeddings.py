"""
Embedding providers used by contextual search and codebase indexing.
"""

from abc import ABC, abstractmethod

import httpx
import openai
import structlog

from ..errors import BackendError

logger = structlog.get_logger()


class BaseEmbeddings(ABC):
    """Base class for embedding providers."""

    def __init__(self, api_key: str, model: str, base_url: str | None = None, timeout: float = 60.0):
        self.api_key = api_key
        self.model = model
        self.base_url = base_url
        self.timeout = timeout
        self._http_client: httpx.AsyncClient | None = None

    @abstractmethod
    async def embed_many(self, texts: list[str]) -> list[list[float]]:
        """Embed several texts, one vector per text, in order."""
        pass

    async def embed(self, text: str) -> list[float]:
        """Embed a single text."""
        vectors = await self.embed_many([text])
        if not vectors or not vectors[0]:
            raise BackendError(f"Embedding model '{self.model}' returned an empty vector")
        return vectors[0]

    async def aclose(self) -> None:
        """Close the HTTP client of the provider."""
        if self._http_client is not None:
            await self._http_client.aclose()

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """Get the provider name."""
        pass


class OpenAIEmbeddings(BaseEmbeddings):
    """OpenAI embeddings endpoint (also llama.cpp and compatible APIs)."""

    def __init__(
        self,
        api_key: str,
        model: str = "text-embedding-ada-002",
        base_url: str | None = None,
        timeout: float = 60.0,
    ):
        super().__init__(api_key, model, base_url, timeout)
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

    async def embed_many(self, texts: list[str]) -> list[list[float]]:
        if not texts:
            return []
        try:
            response = await self.client.embeddings.create(model=self.model, input=texts)
        except openai.APIError as e:
            logger.error("Embedding API error", provider=self.provider_name, model=self.model, error=str(e))
            raise BackendError(str(e)) from e

        ordered = sorted(response.data, key=lambda item: item.index)
        return [list(item.embedding) for item in ordered]


class AzureOpenAIEmbeddings(OpenAIEmbeddings):
    """Azure OpenAI embeddings deployment."""

    def __init__(
        self,
        api_key: str,
        model: str = "text-embedding-ada-002",
        base_url: str | None = None,
        timeout: float = 60.0,
        api_version: str = "2023-05-15",
        ad_token: str | None = None,
    ):
        self.api_version = api_version
        self.ad_token = ad_token
        super().__init__(api_key, model, base_url, timeout)

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
