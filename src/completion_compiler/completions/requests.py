"""
Completion request shapes handed to the transport layer.

Both shapes are members of one tagged union, discriminated by ``kind``.
"""

from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, Field, TypeAdapter


class ChatMessage(BaseModel):
    """One role-tagged message of a chat request."""

    role: Literal["system", "user", "assistant"]
    content: str


class _BaseRequest(BaseModel):
    model: str
    max_tokens: int | None = Field(default=None, description="Tokens reserved for the answer")
    temperature: float | None = None

    def to_payload(self) -> dict[str, Any]:
        """Wire body without the discriminator."""
        return self.model_dump(exclude={"kind"}, exclude_none=True)


class TextCompletionRequest(_BaseRequest):
    """Legacy request with a single flattened prompt."""

    kind: Literal["text"] = "text"
    prompt: str


class ChatCompletionRequest(_BaseRequest):
    """Structured request with role-based messages."""

    kind: Literal["chat"] = "chat"
    messages: list[ChatMessage]


CompletionRequest = Annotated[
    Union[TextCompletionRequest, ChatCompletionRequest],
    Field(discriminator="kind"),
]

completion_request_adapter: TypeAdapter[CompletionRequest] = TypeAdapter(CompletionRequest)
