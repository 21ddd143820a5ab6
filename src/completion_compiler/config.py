"""
Configuration management for Completion-Compiler

Uses pydantic-settings for environment variable parsing and validation.
"""

from functools import lru_cache
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .credentials import SERVICE_CREDENTIALS, CredentialKey, CredentialStore

ServiceType = Literal["openai", "azure", "anthropic", "llama", "custom"]


class LLMConfig(BaseSettings):
    """Configuration for a single backend service."""

    model_config = SettingsConfigDict(extra="ignore")

    provider: ServiceType = "openai"
    model: str = "gpt-3.5-turbo"
    api_key: str = ""
    base_url: str | None = None
    api_version: str | None = None
    ad_token: str | None = None
    max_tokens: int = 1000
    temperature: float = 0.1
    timeout: float = 60.0


class Settings(BaseSettings):
    """Main application settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        env_nested_delimiter="__",
    )

    # Application
    app_name: str = "Completion-Compiler"
    debug: bool = False
    log_level: str = "INFO"
    display_name: str = Field(default="User", description="Name shown for the user's messages")

    # Service selection
    selected_service: ServiceType = "openai"
    openai_base_url: str | None = Field(default=None, description="Override of the OpenAI API host")
    azure_base_url: str = Field(default="", description="Azure OpenAI resource endpoint")
    azure_api_version: str = "2023-05-15"
    llama_base_url: str = Field(default="http://localhost:8080/v1", description="llama.cpp server URL")
    custom_service_url: str = Field(default="", description="OpenAI-compatible service URL")

    # Credentials
    openai_api_key: str = Field(default="", description="OpenAI API key")
    azure_openai_api_key: str = Field(default="", description="Azure OpenAI API key")
    azure_active_directory_token: str = Field(default="", description="Azure AD token")
    anthropic_api_key: str = Field(default="", description="Anthropic API key")
    llama_api_key: str = Field(default="", description="llama.cpp server API key")
    custom_service_api_key: str = Field(default="", description="Custom service API key")

    # Completion
    chat_completion_model: str = "gpt-3.5-turbo"
    text_completion_model: str = "text-davinci-003"
    use_chat_completion: bool = True
    max_completion_tokens: int = Field(default=1000, description="Tokens reserved for the answer")
    temperature: float = 0.1
    request_timeout_seconds: float = 60.0
    system_prompt: str = Field(default="", description="Overrides the default system prompt")

    # Contextual search
    embedding_model: str = "text-embedding-ada-002"
    search_query_model: str = "gpt-4"
    retrieval_top_k: int = Field(default=1, ge=1)
    retrieval_min_score: float | None = Field(default=None, description="Minimum similarity of a match")
    retrieval_timeout_seconds: float = Field(default=30.0, gt=0)
    index_path: str = Field(default="~/.completion-compiler/index.json")

    @field_validator("system_prompt", mode="before")
    @classmethod
    def strip_system_prompt(cls, v: str | None) -> str:
        return v.strip() if v else ""

    @property
    def selected_model(self) -> str:
        """Get the model used for new conversations."""
        if self.use_chat_completion:
            return self.chat_completion_model
        return self.text_completion_model

    def get_llm_config(
        self,
        provider: ServiceType | None = None,
        model: str | None = None,
        credentials: CredentialStore | None = None,
    ) -> LLMConfig:
        """Get backend configuration for a service."""
        provider = provider or self.selected_service
        credentials = credentials or CredentialStore.from_settings(self)

        base_url_map = {
            "openai": self.openai_base_url,
            "azure": self.azure_base_url or None,
            "anthropic": None,
            "llama": self.llama_base_url,
            "custom": self.custom_service_url or None,
        }

        model_map = {
            "anthropic": "claude-3-opus-20240229",
        }

        return LLMConfig(
            provider=provider,
            model=model or model_map.get(provider, self.selected_model),
            api_key=credentials.get(SERVICE_CREDENTIALS[provider]) or "",
            base_url=base_url_map.get(provider),
            api_version=self.azure_api_version if provider == "azure" else None,
            ad_token=credentials.get(CredentialKey.AZURE_ACTIVE_DIRECTORY_TOKEN) if provider == "azure" else None,
            max_tokens=self.max_completion_tokens,
            temperature=self.temperature,
            timeout=self.request_timeout_seconds,
        )


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
