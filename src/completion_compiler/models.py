"""
Conversation domain model.

A conversation is an ordered, append-only list of prompt/response pairs. The
order is conversational order and is replayed verbatim when prompts are rebuilt.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any
from uuid import uuid4


def _now() -> datetime:
    return datetime.now(timezone.utc)


class ClientCode(str, Enum):
    """Client kinds a conversation can be bound to."""
    TEXT_COMPLETION = "text_completion"
    CHAT_COMPLETION = "chat_completion"
    AZURE_TEXT_COMPLETION = "azure_text_completion"
    AZURE_CHAT_COMPLETION = "azure_chat_completion"
    ANTHROPIC_CHAT_COMPLETION = "anthropic_chat_completion"
    LLAMA_CHAT_COMPLETION = "llama_chat_completion"
    CUSTOM_CHAT_COMPLETION = "custom_chat_completion"

    @property
    def is_text_completion(self) -> bool:
        """Whether requests for this client are a single flattened prompt."""
        return self in (ClientCode.TEXT_COMPLETION, ClientCode.AZURE_TEXT_COMPLETION)


@dataclass
class Message:
    """A user prompt and the assistant's response to it."""

    prompt: str
    response: str | None = None
    id: str = field(default_factory=lambda: str(uuid4()))
    created_at: datetime = field(default_factory=_now)

    @property
    def is_pending(self) -> bool:
        """Whether the response has not arrived yet."""
        return self.response is None

    def set_response(self, response: str) -> None:
        """Fill in the response once it has been generated."""
        if self.response is not None:
            raise ValueError(f"Message {self.id} already has a response")
        self.response = response

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "prompt": self.prompt,
            "response": self.response,
            "created_at": self.created_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Message":
        message = cls(prompt=data["prompt"], response=data.get("response"))
        if data.get("id"):
            message.id = data["id"]
        if data.get("created_at"):
            message.created_at = datetime.fromisoformat(data["created_at"])
        return message


@dataclass
class Conversation:
    """Conversation history owned by one client session."""

    client_code: ClientCode = ClientCode.CHAT_COMPLETION
    model: str = ""
    messages: list[Message] = field(default_factory=list)
    id: str = field(default_factory=lambda: str(uuid4()))
    created_on: datetime = field(default_factory=_now)
    updated_on: datetime = field(default_factory=_now)

    def add_message(self, message: Message) -> None:
        """Append a message to the end of the history."""
        if any(existing.id == message.id for existing in self.messages):
            raise ValueError(f"Message {message.id} is already part of conversation {self.id}")
        self.messages.append(message)
        self.updated_on = _now()

    def snapshot(self) -> list[Message]:
        """Return a stable copy of the message sequence."""
        return list(self.messages)

    def find_message(self, message_id: str) -> Message | None:
        """Look up a message by id."""
        for message in self.messages:
            if message.id == message_id:
                return message
        return None

    @property
    def last_message(self) -> Message | None:
        """Get the most recent message."""
        return self.messages[-1] if self.messages else None

    @property
    def message_count(self) -> int:
        """Get the number of messages."""
        return len(self.messages)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "client_code": self.client_code.value,
            "model": self.model,
            "messages": [message.to_dict() for message in self.messages],
            "created_on": self.created_on.isoformat(),
            "updated_on": self.updated_on.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Conversation":
        conversation = cls(
            client_code=ClientCode(data.get("client_code", ClientCode.CHAT_COMPLETION.value)),
            model=data.get("model", ""),
            messages=[Message.from_dict(raw) for raw in data.get("messages", [])],
        )
        if data.get("id"):
            conversation.id = data["id"]
        if data.get("created_on"):
            conversation.created_on = datetime.fromisoformat(data["created_on"])
        if data.get("updated_on"):
            conversation.updated_on = datetime.fromisoformat(data["updated_on"])
        return conversation
