"""
Exceptions raised by the completion compiler.

Only TotalUsageExceededError (and UnknownModelError for an undeclared model)
escape RequestCompiler.compile. Everything raised while retrieving context is
turned into a fallback to the history-based request.
"""


class CompletionCompilerError(Exception):
    """Base class for all compiler errors."""


class TotalUsageExceededError(CompletionCompilerError):
    """The new message and the system prompt do not fit the token budget."""

    def __init__(self, total_tokens: int, budget: int):
        self.total_tokens = total_tokens
        self.budget = budget
        super().__init__(
            f"Total usage of {total_tokens} tokens exceeds the budget of {budget} tokens"
        )


class ContextRetrievalError(CompletionCompilerError):
    """Contextual search could not produce a prompt."""


class BackendError(CompletionCompilerError):
    """An LLM or embedding backend call failed."""


class IndexUnavailableError(CompletionCompilerError):
    """The project has not been indexed yet."""


class UnknownModelError(CompletionCompilerError, ValueError):
    """The model has no declared context size."""

    def __init__(self, model: str):
        self.model = model
        super().__init__(f"Unknown model: {model}")
