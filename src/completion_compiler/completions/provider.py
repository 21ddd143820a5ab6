"""
Request compiler - turns a conversation and a new message into a request.

The compiler is the single entry point of the core:
1. Resolves the system prompt (configured override or the default)
2. Optionally answers from the project's semantic index (contextual search),
   falling back to the history path on any failure
3. Reduces history to the model's token budget
4. Renders a text or chat request, depending on the conversation's client
"""

import structlog

from ..catalog import ModelCatalog
from ..config import Settings
from ..models import ClientCode, Conversation, Message
from .prompts import AI_PREFIX, DEFAULT_SYSTEM_PROMPT, HUMAN_PREFIX
from .reducer import ReductionResult, reduce_history
from .requests import ChatCompletionRequest, ChatMessage, CompletionRequest, TextCompletionRequest
from .retriever import ContextRetriever
from .tokens import PER_MESSAGE_OVERHEAD, TokenCounter, estimate_tokens

logger = structlog.get_logger()


class RequestCompiler:
    """Builds completion requests that fit the target model."""

    def __init__(
        self,
        settings: Settings,
        catalog: ModelCatalog | None = None,
        retriever: ContextRetriever | None = None,
        token_counter: TokenCounter = estimate_tokens,
        per_message_overhead: int = PER_MESSAGE_OVERHEAD,
    ):
        self.settings = settings
        self.catalog = catalog or ModelCatalog()
        self.retriever = retriever
        self.token_counter = token_counter
        self.per_message_overhead = per_message_overhead

    @property
    def system_prompt(self) -> str:
        """Configured system prompt, or the default one when none is set."""
        return self.settings.system_prompt or DEFAULT_SYSTEM_PROMPT

    def budget_for(self, model: str) -> int:
        """Prompt token budget of a model."""
        return self.catalog.budget(model, self.settings.max_completion_tokens)

    async def compile(
        self,
        conversation: Conversation,
        message: Message | str,
        model: str | None = None,
        *,
        is_retry: bool = False,
        use_contextual_search: bool = False,
    ) -> CompletionRequest:
        """Build the request for a new message in a conversation.

        Args:
            conversation: Conversation the message belongs to
            message: New user message. When retrying, the last message of the
                conversation is regenerated and a string message is ignored
            model: Target model, defaults to the conversation's model
            is_retry: Regenerate the response of the last message
            use_contextual_search: Answer from the semantic index if possible

        Raises:
            TotalUsageExceededError: If the message cannot fit the budget
            UnknownModelError: If the model has no declared context size
            ValueError: If a retried Message is not the last message
        """
        model = model or conversation.model or self.settings.selected_model
        prompt = self._resolve_prompt(conversation, message, is_retry)

        if use_contextual_search:
            request = await self._try_contextual_request(conversation, prompt, model)
            if request is not None:
                return request

        if conversation.client_code.is_text_completion:
            return self.build_text_completion_request(conversation, prompt, model, is_retry)
        return self.build_chat_completion_request(conversation, prompt, model, is_retry)

    def _resolve_prompt(self, conversation: Conversation, message: Message | str, is_retry: bool) -> str:
        last = conversation.last_message
        if not is_retry or last is None:
            return message.prompt if isinstance(message, Message) else message
        if isinstance(message, Message) and message.id != last.id:
            raise ValueError(
                f"Only the last message of conversation {conversation.id} can be retried, got {message.id}"
            )
        return last.prompt

    async def _try_contextual_request(
        self,
        conversation: Conversation,
        prompt: str,
        model: str,
    ) -> CompletionRequest | None:
        if self.retriever is None:
            logger.warning("Contextual search requested but no retriever is configured")
            return None

        outcome = await self.retriever.retrieve(prompt)
        if not outcome.succeeded:
            logger.info("Falling back to conversation history", conversation_id=conversation.id)
            return None

        logger.info(
            "Using contextual search prompt",
            conversation_id=conversation.id,
            search_query=outcome.search_query,
            matches=len(outcome.hits),
        )
        if conversation.client_code.is_text_completion:
            return TextCompletionRequest(model=model, prompt=outcome.prompt, **self._sampling())
        return ChatCompletionRequest(
            model=model,
            messages=[ChatMessage(role="user", content=outcome.prompt)],
            **self._sampling(),
        )

    def reduce(
        self,
        conversation: Conversation,
        prompt: str,
        model: str,
        is_retry: bool = False,
    ) -> ReductionResult:
        """Reduce a snapshot of the conversation history to the model's budget."""
        return reduce_history(
            conversation.snapshot(),
            system_prompt=self.system_prompt,
            new_prompt=prompt,
            budget=self.budget_for(model),
            is_retry=is_retry,
            counter=self.token_counter,
            overhead=self.per_message_overhead,
        )

    def build_text_completion_request(
        self,
        conversation: Conversation,
        prompt: str,
        model: str,
        is_retry: bool = False,
    ) -> TextCompletionRequest:
        """Flatten the system prompt and the kept history into one prompt."""
        reduction = self.reduce(conversation, prompt, model, is_retry)

        parts = [f"{self.system_prompt}\n"]
        for message in reduction.messages:
            parts.append(f"{HUMAN_PREFIX}{message.prompt}\n{AI_PREFIX}{message.response or ''}\n")
        parts.append(f"{HUMAN_PREFIX}{reduction.prompt}\n{AI_PREFIX}\n")

        return TextCompletionRequest(model=model, prompt="".join(parts), **self._sampling())

    def build_chat_completion_request(
        self,
        conversation: Conversation,
        prompt: str,
        model: str,
        is_retry: bool = False,
    ) -> ChatCompletionRequest:
        """Render the system prompt and the kept history as role-based messages."""
        reduction = self.reduce(conversation, prompt, model, is_retry)

        messages = [ChatMessage(role="system", content=self.system_prompt)]
        for message in reduction.messages:
            messages.append(ChatMessage(role="user", content=message.prompt))
            # Pending messages have no answer to replay
            if message.response is not None:
                messages.append(ChatMessage(role="assistant", content=message.response))
        messages.append(ChatMessage(role="user", content=reduction.prompt))

        return ChatCompletionRequest(model=model, messages=messages, **self._sampling())

    def _sampling(self) -> dict:
        return {
            "max_tokens": self.settings.max_completion_tokens,
            "temperature": self.settings.temperature,
        }


def client_code_for_settings(settings: Settings) -> ClientCode:
    """Client code of a new conversation for the selected service and mode."""
    text = not settings.use_chat_completion
    if settings.selected_service == "azure":
        return ClientCode.AZURE_TEXT_COMPLETION if text else ClientCode.AZURE_CHAT_COMPLETION
    if settings.selected_service == "anthropic":
        return ClientCode.ANTHROPIC_CHAT_COMPLETION
    if settings.selected_service == "llama":
        return ClientCode.LLAMA_CHAT_COMPLETION
    if settings.selected_service == "custom":
        return ClientCode.CUSTOM_CHAT_COMPLETION
    return ClientCode.TEXT_COMPLETION if text else ClientCode.CHAT_COMPLETION
