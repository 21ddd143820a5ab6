"""
Semantic index of project content used by contextual search.
"""

from .base import IndexedChunk, IndexStats, SearchHit, SemanticIndex
from .memory import InMemorySemanticIndex, cosine_similarity
from .builder import build_index, chunk_text

__all__ = [
    "IndexedChunk",
    "IndexStats",
    "SearchHit",
    "SemanticIndex",
    "InMemorySemanticIndex",
    "cosine_similarity",
    "build_index",
    "chunk_text",
]
