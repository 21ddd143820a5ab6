"""
Base classes for semantic indexes.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field


@dataclass
class IndexedChunk:
    """A piece of project content and its embedding."""

    content: str
    embedding: list[float]
    source: str = ""


@dataclass
class SearchHit:
    """A ranked match returned by an index query."""

    content: str
    score: float
    source: str = ""


@dataclass
class IndexStats:
    """Summary of an index."""

    chunk_count: int = 0
    sources: list[str] = field(default_factory=list)
    dimensions: int = 0


class SemanticIndex(ABC):
    """Embedding-ranked store of project content."""

    @property
    @abstractmethod
    def is_ready(self) -> bool:
        """Whether the project has been indexed."""
        pass

    @abstractmethod
    def query(self, vector: list[float], top_k: int = 1) -> list[SearchHit]:
        """Return the best matches, most similar first.

        Raises IndexUnavailableError when the project has not been indexed.
        """
        pass
