"""
In-memory semantic index with cosine-similarity ranking.

The index can be saved to and loaded from a JSON file so a codebase only has
to be embedded once.
"""

import json
from pathlib import Path
from typing import Callable

import structlog

from ..errors import IndexUnavailableError
from .base import IndexedChunk, IndexStats, SearchHit, SemanticIndex

logger = structlog.get_logger()

IndexingCompletedListener = Callable[["InMemorySemanticIndex"], None]


def cosine_similarity(a: list[float], b: list[float]) -> float:
    """Compute cosine similarity between two vectors of the same length."""
    if len(a) != len(b):
        raise ValueError(f"Cannot compare vectors of {len(a)} and {len(b)} dimensions")
    dot = sum(x * y for x, y in zip(a, b))
    norm_a = sum(x * x for x in a) ** 0.5
    norm_b = sum(x * x for x in b) ** 0.5
    if norm_a == 0 or norm_b == 0:
        return 0.0
    return dot / (norm_a * norm_b)


class InMemorySemanticIndex(SemanticIndex):
    """Semantic index held in memory."""

    def __init__(self, chunks: list[IndexedChunk] | None = None):
        self._chunks: list[IndexedChunk] = []
        self._ready = False
        self._listeners: list[IndexingCompletedListener] = []
        if chunks:
            self.add(chunks)
            self._ready = True

    @property
    def is_ready(self) -> bool:
        return self._ready

    def add(self, chunks: list[IndexedChunk]) -> None:
        """Add chunks to the index."""
        for chunk in chunks:
            if not chunk.embedding:
                raise ValueError(f"Chunk from '{chunk.source}' has no embedding")
            self._chunks.append(chunk)

    def clear(self) -> None:
        """Drop every chunk and mark the index as not indexed."""
        self._chunks.clear()
        self._ready = False

    def add_indexing_completed_listener(self, listener: IndexingCompletedListener) -> None:
        """Register a callback run when indexing completes."""
        self._listeners.append(listener)

    def mark_indexing_completed(self) -> None:
        """Mark the index as ready and notify listeners."""
        self._ready = True
        logger.info("Indexing completed", chunks=len(self._chunks))
        for listener in self._listeners:
            listener(self)

    def query(self, vector: list[float], top_k: int = 1) -> list[SearchHit]:
        if not self._ready:
            raise IndexUnavailableError("The project has not been indexed")
        if top_k < 1:
            raise ValueError("top_k must be at least 1")

        scored = [
            (cosine_similarity(vector, chunk.embedding), position, chunk)
            for position, chunk in enumerate(self._chunks)
        ]
        # Highest score first, insertion order breaks ties
        scored.sort(key=lambda item: (-item[0], item[1]))

        return [
            SearchHit(content=chunk.content, score=score, source=chunk.source)
            for score, _, chunk in scored[:top_k]
        ]

    def stats(self) -> IndexStats:
        """Summarize the index."""
        sources = list(dict.fromkeys(chunk.source for chunk in self._chunks if chunk.source))
        dimensions = len(self._chunks[0].embedding) if self._chunks else 0
        return IndexStats(chunk_count=len(self._chunks), sources=sources, dimensions=dimensions)

    def __len__(self) -> int:
        return len(self._chunks)

    def save(self, path: str | Path) -> Path:
        """Write the index to a JSON file."""
        path = Path(path).expanduser()
        path.parent.mkdir(parents=True, exist_ok=True)
        data = {
            "chunks": [
                {"content": c.content, "embedding": c.embedding, "source": c.source}
                for c in self._chunks
            ],
        }
        path.write_text(json.dumps(data))
        logger.info("Saved semantic index", path=str(path), chunks=len(self._chunks))
        return path

    @classmethod
    def load(cls, path: str | Path) -> "InMemorySemanticIndex":
        """Load an index written by save()."""
        path = Path(path).expanduser()
        if not path.is_file():
            raise IndexUnavailableError(f"No semantic index found at {path}")

        try:
            raw = json.loads(path.read_text())
            chunks = [
                IndexedChunk(
                    content=item["content"],
                    embedding=item["embedding"],
                    source=item.get("source", ""),
                )
                for item in raw.get("chunks", [])
            ]
            index = cls(chunks)
        except (ValueError, KeyError, TypeError, AttributeError) as e:
            raise IndexUnavailableError(f"Semantic index at {path} is corrupt: {e}") from e
        index._ready = True
        logger.info("Loaded semantic index", path=str(path), chunks=len(chunks))
        return index
