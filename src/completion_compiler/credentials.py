"""
Credential lookup for backend services.

The compiler core never reads credentials. Only the backend factories do,
through the opaque CredentialStore.get lookup.
"""

from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .config import Settings


class CredentialKey(str, Enum):
    """Keys of the secrets a service may need."""
    OPENAI_API_KEY = "openai_api_key"
    AZURE_OPENAI_API_KEY = "azure_openai_api_key"
    AZURE_ACTIVE_DIRECTORY_TOKEN = "azure_active_directory_token"
    ANTHROPIC_API_KEY = "anthropic_api_key"
    LLAMA_API_KEY = "llama_api_key"
    CUSTOM_SERVICE_API_KEY = "custom_service_api_key"


SERVICE_CREDENTIALS: dict[str, CredentialKey] = {
    "openai": CredentialKey.OPENAI_API_KEY,
    "azure": CredentialKey.AZURE_OPENAI_API_KEY,
    "anthropic": CredentialKey.ANTHROPIC_API_KEY,
    "llama": CredentialKey.LLAMA_API_KEY,
    "custom": CredentialKey.CUSTOM_SERVICE_API_KEY,
}


class CredentialStore:
    """In-memory credential store."""

    def __init__(self, credentials: dict[CredentialKey, str] | None = None):
        self._credentials: dict[CredentialKey, str] = {}
        for key, value in (credentials or {}).items():
            self.set_credential(key, value)

    def get(self, key: CredentialKey) -> str | None:
        """Get a secret, or None when it is not set."""
        return self._credentials.get(key)

    def set_credential(self, key: CredentialKey, value: str | None) -> None:
        """Store a secret. Empty values remove it."""
        if value:
            self._credentials[key] = value
        else:
            self._credentials.pop(key, None)

    def has(self, key: CredentialKey) -> bool:
        return key in self._credentials

    @classmethod
    def from_settings(cls, settings: "Settings") -> "CredentialStore":
        """Build a store from the API keys found in the settings."""
        return cls({key: getattr(settings, key.value, "") for key in CredentialKey})
