"""
Completion-Compiler - builds token-budgeted completion requests from chat history.
"""

from .catalog import ModelCatalog, ModelSpec
from .completions import (
    ChatCompletionRequest,
    CompletionRequest,
    ContextRetriever,
    RequestCompiler,
    TextCompletionRequest,
)
from .config import Settings, get_settings
from .errors import (
    BackendError,
    CompletionCompilerError,
    ContextRetrievalError,
    IndexUnavailableError,
    TotalUsageExceededError,
    UnknownModelError,
)
from .models import ClientCode, Conversation, Message

__version__ = "0.1.0"

__all__ = [
    "ModelCatalog",
    "ModelSpec",
    "ChatCompletionRequest",
    "CompletionRequest",
    "ContextRetriever",
    "RequestCompiler",
    "TextCompletionRequest",
    "Settings",
    "get_settings",
    "BackendError",
    "CompletionCompilerError",
    "ContextRetrievalError",
    "IndexUnavailableError",
    "TotalUsageExceededError",
    "UnknownModelError",
    "ClientCode",
    "Conversation",
    "Message",
]
