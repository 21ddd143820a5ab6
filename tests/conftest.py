"""
Shared fixtures for completion compiler tests.
"""

import os
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from completion_compiler.completions.tokens import PER_MESSAGE_OVERHEAD, estimate_tokens
from completion_compiler.config import Settings
from completion_compiler.models import Message


def create_dummy_message(token_size: int, prompt: str = "TEST_PROMPT") -> Message:
    """Create a complete message that costs exactly ``token_size`` tokens to replay."""
    # 'zzzz' = 1 token, plus the prompt and the per-message overhead
    response_tokens = token_size - estimate_tokens(prompt) - PER_MESSAGE_OVERHEAD
    return Message(prompt=prompt, response="zzzz" * response_tokens)


@pytest.fixture
def settings():
    """Settings isolated from the environment and any .env file."""
    with patch.dict(os.environ, {}, clear=True):
        yield Settings(_env_file=None)


@pytest.fixture
def mock_llm():
    llm = MagicMock()
    llm.complete = AsyncMock(return_value="TEST_SEARCH_QUERY")
    return llm


@pytest.fixture
def mock_embeddings():
    embeddings = MagicMock()
    embeddings.embed = AsyncMock(return_value=[-0.00692, -0.0053, -4.5471, -0.0240])
    return embeddings
