"""
History reduction - fit conversation history into a token budget.

The reducer keeps the longest run of most recent messages that fits, together
with the system prompt and the new user message, which are always sent:

1. The system prompt and the new message are costed once.
2. History is walked from newest to oldest, each message costing its prompt,
   its response and a fixed framing overhead.
3. The walk stops at the first message that does not fit. Older messages are
   never re-included, so the kept messages are always a suffix of the history.
4. The kept messages are returned in chronological order.

When the system prompt and the new message alone exceed the budget, nothing can
be sent and TotalUsageExceededError is raised.
"""

from dataclasses import dataclass, field

import structlog

from ..errors import TotalUsageExceededError
from ..models import Message
from .tokens import PER_MESSAGE_OVERHEAD, TokenCounter, estimate_tokens

logger = structlog.get_logger()


@dataclass
class ReductionResult:
    """Result of a history reduction."""

    messages: list[Message] = field(default_factory=list)
    total_tokens: int = 0
    budget: int = 0
    dropped_count: int = 0
    retried_message: Message | None = None
    prompt: str = ""  # user prompt sent last (the retried prompt on retry)

    @property
    def remaining_tokens(self) -> int:
        return self.budget - self.total_tokens


def message_tokens(
    message: Message,
    counter: TokenCounter = estimate_tokens,
    overhead: int = PER_MESSAGE_OVERHEAD,
) -> int:
    """Token cost of replaying a message (prompt, response and framing)."""
    return counter(message.prompt) + counter(message.response) + overhead


def reduce_history(
    messages: list[Message],
    system_prompt: str,
    new_prompt: str,
    budget: int,
    is_retry: bool = False,
    counter: TokenCounter = estimate_tokens,
    overhead: int = PER_MESSAGE_OVERHEAD,
) -> ReductionResult:
    """Select the most recent messages that fit the budget.

    Args:
        messages: Conversation history, oldest first
        system_prompt: System prompt that is always sent
        new_prompt: New user message that is always sent
        budget: Maximum number of prompt tokens
        is_retry: The last history message is being regenerated. It is left
            out of the history and its prompt replaces new_prompt
        counter: Token counter
        overhead: Framing tokens per message

    Returns:
        The kept messages in chronological order and the token accounting

    Raises:
        TotalUsageExceededError: If the system prompt and new message alone
            exceed the budget
    """
    history = list(messages)
    retried_message = None
    if is_retry and history:
        retried_message = history.pop()
        new_prompt = retried_message.prompt

    fixed_tokens = counter(system_prompt) + overhead + counter(new_prompt) + overhead
    if fixed_tokens > budget:
        logger.warning(
            "System prompt and new message exceed the token budget",
            required_tokens=fixed_tokens,
            budget=budget,
        )
        raise TotalUsageExceededError(fixed_tokens, budget)

    kept: list[Message] = []
    running = 0
    for message in reversed(history):
        cost = message_tokens(message, counter, overhead)
        if running + cost + fixed_tokens > budget:
            break
        running += cost
        kept.append(message)

    kept.reverse()
    dropped = len(history) - len(kept)

    if dropped:
        logger.info(
            "Reduced conversation history",
            kept=len(kept),
            dropped=dropped,
            total_tokens=running + fixed_tokens,
            budget=budget,
        )

    return ReductionResult(
        messages=kept,
        total_tokens=running + fixed_tokens,
        budget=budget,
        dropped_count=dropped,
        retried_message=retried_message,
        prompt=new_prompt,
    )
