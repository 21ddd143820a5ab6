"""
Model catalog: declared context sizes of the supported models.

The token budget of a request is the model's context size minus the tokens
reserved for the model's answer.
"""

from dataclasses import dataclass

import structlog

from .errors import UnknownModelError
from .models import ClientCode

logger = structlog.get_logger()


@dataclass(frozen=True)
class ModelSpec:
    """A model the client can talk to."""

    code: str
    description: str
    max_tokens: int
    client_code: ClientCode = ClientCode.CHAT_COMPLETION


DEFAULT_MODELS = [
    ModelSpec("gpt-3.5-turbo", "GPT-3.5 (4k)", 4097),
    ModelSpec("gpt-3.5-turbo-16k", "GPT-3.5 (16k)", 16384),
    ModelSpec("gpt-4", "GPT-4 (8k)", 8192),
    ModelSpec("gpt-4-32k", "GPT-4 (32k)", 32768),
    ModelSpec("gpt-4-1106-preview", "GPT-4 Turbo (128k)", 128000),
    ModelSpec("text-davinci-003", "Davinci - Most powerful (Default)", 4097, ClientCode.TEXT_COMPLETION),
    ModelSpec("text-curie-001", "Curie - Fast and efficient", 2049, ClientCode.TEXT_COMPLETION),
    ModelSpec("text-babbage-001", "Babbage - Powerful", 2049, ClientCode.TEXT_COMPLETION),
    ModelSpec("text-ada-001", "Ada - Fastest", 2049, ClientCode.TEXT_COMPLETION),
    ModelSpec("claude-3-opus-20240229", "Claude 3 Opus", 200000, ClientCode.ANTHROPIC_CHAT_COMPLETION),
    ModelSpec("claude-3-sonnet-20240229", "Claude 3 Sonnet", 200000, ClientCode.ANTHROPIC_CHAT_COMPLETION),
    ModelSpec("claude-3-haiku-20240307", "Claude 3 Haiku", 200000, ClientCode.ANTHROPIC_CHAT_COMPLETION),
]


class ModelCatalog:
    """Lookup of model context sizes.

    Unknown models raise UnknownModelError unless a default context size is
    given, which is useful for self-hosted (llama, custom) endpoints.
    """

    def __init__(
        self,
        models: list[ModelSpec] | None = None,
        default_max_tokens: int | None = None,
    ):
        self._models: dict[str, ModelSpec] = {}
        self.default_max_tokens = default_max_tokens
        for spec in DEFAULT_MODELS if models is None else models:
            self.register(spec)

    def register(self, spec: ModelSpec) -> None:
        """Add or replace a model."""
        if spec.max_tokens <= 0:
            raise ValueError(f"max_tokens must be positive for model {spec.code}")
        self._models[spec.code] = spec

    def get(self, model: str) -> ModelSpec | None:
        """Get the spec of a model, if declared."""
        return self._models.get(model)

    def max_tokens(self, model: str) -> int:
        """Get the context size of a model."""
        spec = self._models.get(model)
        if spec is not None:
            return spec.max_tokens
        if self.default_max_tokens is not None:
            logger.debug("Using default context size", model=model, max_tokens=self.default_max_tokens)
            return self.default_max_tokens
        raise UnknownModelError(model)

    def budget(self, model: str, reserved_tokens: int = 0) -> int:
        """Get the prompt token budget after reserving room for the answer."""
        return self.max_tokens(model) - reserved_tokens

    def client_code_for(self, model: str) -> ClientCode:
        """Get the request kind a model expects (chat when undeclared)."""
        spec = self._models.get(model)
        return spec.client_code if spec else ClientCode.CHAT_COMPLETION

    def list_models(self) -> list[ModelSpec]:
        """List declared models in registration order."""
        return list(self._models.values())
