"""
Completions module - the conversation-to-request compiler.

Includes:
- RequestCompiler: Single entry point building text or chat requests
- reduce_history: Token-budgeted history reduction
- ContextRetriever: Contextual search over the semantic index
- Token estimation helpers
"""

from .provider import RequestCompiler, client_code_for_settings
from .reducer import ReductionResult, message_tokens, reduce_history
from .requests import (
    ChatCompletionRequest,
    ChatMessage,
    CompletionRequest,
    TextCompletionRequest,
    completion_request_adapter,
)
from .retriever import ContextRetriever, RetrievalOutcome, RetrievalState
from .tokens import PER_MESSAGE_OVERHEAD, create_token_counter, estimate_tokens

__all__ = [
    "RequestCompiler",
    "client_code_for_settings",
    "ReductionResult",
    "message_tokens",
    "reduce_history",
    "ChatCompletionRequest",
    "ChatMessage",
    "CompletionRequest",
    "TextCompletionRequest",
    "completion_request_adapter",
    "ContextRetriever",
    "RetrievalOutcome",
    "RetrievalState",
    "PER_MESSAGE_OVERHEAD",
    "create_token_counter",
    "estimate_tokens",
]
