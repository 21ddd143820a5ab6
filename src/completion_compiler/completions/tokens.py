"""
Token estimation for budget accounting.

The default estimator is a character heuristic. It does not match any real
tokenizer, but it is deterministic and grows monotonically with the text length,
which is all the history reducer relies on.
"""

import importlib
from typing import Callable

# Approximate characters per token
CHARS_PER_TOKEN = 4

# Role and framing tokens added for every message sent to the model
PER_MESSAGE_OVERHEAD = 7

TokenCounter = Callable[[str], int]


def estimate_tokens(text: str | None) -> int:
    """Estimate the token count of a string (0 for empty or missing text)."""
    if not text:
        return 0
    return (len(text) + CHARS_PER_TOKEN - 1) // CHARS_PER_TOKEN


def create_token_counter(mode: str = "estimate") -> TokenCounter:
    """Factory for token counters.

    Modes:
        "estimate" - character heuristic (no dependencies)
        "tiktoken" - exact OpenAI encoding, needs the ``tiktoken`` extra
        "callable:module.path:func" - any importable callable
    """
    if mode == "estimate":
        return estimate_tokens

    if mode == "tiktoken":
        try:
            import tiktoken
        except ImportError:
            raise ImportError(
                "tiktoken not installed. Install with: pip install completion-compiler[tiktoken]"
            )
        encoding = tiktoken.get_encoding("cl100k_base")
        return lambda text: len(encoding.encode(text)) if text else 0

    if mode.startswith("callable:"):
        parts = mode[len("callable:"):].rsplit(":", 1)
        if len(parts) != 2:
            raise ValueError(f"Invalid callable spec: {mode}. Expected callable:module:func")
        module_path, func_name = parts
        module = importlib.import_module(module_path)
        return getattr(module, func_name)

    raise ValueError(f"Unknown token counter mode: {mode}")
