"""
Tests for configuration module.
"""

import os
from unittest.mock import patch

import pytest
from pydantic import ValidationError

from completion_compiler.config import Settings, LLMConfig
from completion_compiler.credentials import CredentialKey, CredentialStore


def test_settings_default_values():
    """Test that settings have sensible defaults."""
    with patch.dict(os.environ, {}, clear=True):
        settings = Settings(_env_file=None)

        assert settings.app_name == "Completion-Compiler"
        assert settings.selected_service == "openai"
        assert settings.display_name == "User"
        assert settings.max_completion_tokens == 1000
        assert settings.system_prompt == ""
        assert settings.retrieval_top_k == 1
        assert settings.selected_model == "gpt-3.5-turbo"


def test_settings_from_env():
    """Test loading settings from environment variables."""
    env = {
        "OPENAI_API_KEY": "test_openai_key",
        "SELECTED_SERVICE": "azure",
        "CHAT_COMPLETION_MODEL": "gpt-4",
        "MAX_COMPLETION_TOKENS": "2000",
        "USE_CHAT_COMPLETION": "false",
    }

    with patch.dict(os.environ, env, clear=True):
        settings = Settings(_env_file=None)

        assert settings.openai_api_key == "test_openai_key"
        assert settings.selected_service == "azure"
        assert settings.chat_completion_model == "gpt-4"
        assert settings.max_completion_tokens == 2000
        assert settings.selected_model == "text-davinci-003"


def test_system_prompt_is_stripped():
    """Test a blank system prompt means no override."""
    env = {"SYSTEM_PROMPT": "   \n  "}

    with patch.dict(os.environ, env, clear=True):
        assert Settings(_env_file=None).system_prompt == ""

    env = {"SYSTEM_PROMPT": "  You are terse.  "}

    with patch.dict(os.environ, env, clear=True):
        assert Settings(_env_file=None).system_prompt == "You are terse."


def test_invalid_service():
    """Test unknown services are rejected."""
    with patch.dict(os.environ, {"SELECTED_SERVICE": "gemini"}, clear=True):
        with pytest.raises(ValidationError):
            Settings(_env_file=None)


def test_get_llm_config():
    """Test getting LLM configuration."""
    env = {
        "ANTHROPIC_API_KEY": "test_key",
        "SELECTED_SERVICE": "anthropic",
    }

    with patch.dict(os.environ, env, clear=True):
        settings = Settings(_env_file=None)
        config = settings.get_llm_config()

        assert config.provider == "anthropic"
        assert config.api_key == "test_key"
        assert "claude" in config.model.lower()
        assert config.base_url is None


def test_get_llm_config_openai():
    """Test getting OpenAI LLM configuration."""
    env = {
        "OPENAI_API_KEY": "test_openai_key",
        "TEMPERATURE": "0.5",
    }

    with patch.dict(os.environ, env, clear=True):
        settings = Settings(_env_file=None)
        config = settings.get_llm_config("openai")

        assert isinstance(config, LLMConfig)
        assert config.provider == "openai"
        assert config.api_key == "test_openai_key"
        assert "gpt" in config.model.lower()
        assert config.temperature == 0.5
        assert config.max_tokens == 1000


def test_get_llm_config_azure():
    """Test Azure configuration carries the API version and AD token."""
    env = {
        "AZURE_OPENAI_API_KEY": "test_azure_key",
        "AZURE_ACTIVE_DIRECTORY_TOKEN": "test_ad_token",
        "AZURE_BASE_URL": "https://example.openai.azure.com",
    }

    with patch.dict(os.environ, env, clear=True):
        settings = Settings(_env_file=None)
        config = settings.get_llm_config("azure", model="gpt-4")

        assert config.api_key == "test_azure_key"
        assert config.ad_token == "test_ad_token"
        assert config.api_version == "2023-05-15"
        assert config.base_url == "https://example.openai.azure.com"
        assert config.model == "gpt-4"


def test_get_llm_config_uses_given_credentials(settings):
    """Test an explicit credential store wins over the settings."""
    credentials = CredentialStore({CredentialKey.LLAMA_API_KEY: "local_key"})

    config = settings.get_llm_config("llama", credentials=credentials)

    assert config.api_key == "local_key"
    assert config.base_url == "http://localhost:8080/v1"


def test_credential_store():
    """Test storing and removing secrets."""
    store = CredentialStore()
    assert store.get(CredentialKey.OPENAI_API_KEY) is None

    store.set_credential(CredentialKey.OPENAI_API_KEY, "sk-test")
    assert store.has(CredentialKey.OPENAI_API_KEY)
    assert store.get(CredentialKey.OPENAI_API_KEY) == "sk-test"

    store.set_credential(CredentialKey.OPENAI_API_KEY, "")
    assert not store.has(CredentialKey.OPENAI_API_KEY)


def test_credential_store_from_settings():
    """Test empty keys in the settings are not stored."""
    env = {"ANTHROPIC_API_KEY": "test_key"}

    with patch.dict(os.environ, env, clear=True):
        store = CredentialStore.from_settings(Settings(_env_file=None))

        assert store.get(CredentialKey.ANTHROPIC_API_KEY) == "test_key"
        assert not store.has(CredentialKey.OPENAI_API_KEY)
