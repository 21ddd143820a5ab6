"""
Codebase indexing: split project files into chunks and embed them.
"""

from pathlib import Path
from typing import Iterable

import structlog

from ..llm.embeddings import BaseEmbeddings
from .base import IndexedChunk
from .memory import InMemorySemanticIndex

logger = structlog.get_logger()

DEFAULT_EXTENSIONS = {
    ".py", ".java", ".kt", ".js", ".ts", ".tsx", ".go", ".rs", ".rb", ".php",
    ".c", ".h", ".cpp", ".cs", ".swift", ".scala", ".md", ".txt", ".toml",
    ".yaml", ".yml", ".json", ".xml", ".gradle", ".sql", ".sh",
}

SKIPPED_DIRECTORIES = {".git", ".idea", ".venv", "venv", "node_modules", "build", "dist", "__pycache__"}


def chunk_text(text: str, max_lines: int = 60, overlap_lines: int = 10) -> list[str]:
    """Split a file into overlapping windows of lines.

    Blank windows are dropped.
    """
    if max_lines < 1 or not 0 <= overlap_lines < max_lines:
        raise ValueError("Need max_lines >= 1 and 0 <= overlap_lines < max_lines")

    lines = text.splitlines()
    chunks: list[str] = []
    start = 0
    while start < len(lines):
        end = min(start + max_lines, len(lines))
        window = "\n".join(lines[start:end]).strip()
        if window:
            chunks.append(window)
        if end >= len(lines):
            break
        start = end - overlap_lines
    return chunks


def iter_source_files(
    paths: Iterable[str | Path],
    extensions: set[str] | None = None,
) -> list[Path]:
    """Collect indexable files under the given files or directories."""
    extensions = extensions or DEFAULT_EXTENSIONS
    files: list[Path] = []
    for raw in paths:
        path = Path(raw).expanduser()
        if path.is_file():
            files.append(path)
            continue
        for candidate in sorted(path.rglob("*")):
            if any(part in SKIPPED_DIRECTORIES for part in candidate.parts):
                continue
            if candidate.is_file() and candidate.suffix in extensions:
                files.append(candidate)
    return files


async def build_index(
    paths: Iterable[str | Path],
    embeddings: BaseEmbeddings,
    index: InMemorySemanticIndex | None = None,
    batch_size: int = 16,
    max_lines: int = 60,
) -> InMemorySemanticIndex:
    """Embed every chunk of the given files into an index.

    The index is marked as completed, which notifies its listeners.
    """
    if index is None:
        index = InMemorySemanticIndex()
    pending: list[tuple[str, str]] = []

    for file in iter_source_files(paths):
        try:
            text = file.read_text(encoding="utf-8")
        except UnicodeDecodeError:
            logger.debug("Skipping non-text file", path=str(file))
            continue
        pending.extend((str(file), chunk) for chunk in chunk_text(text, max_lines=max_lines))

    logger.info("Indexing codebase", chunks=len(pending))

    for offset in range(0, len(pending), batch_size):
        batch = pending[offset:offset + batch_size]
        vectors = await embeddings.embed_many([chunk for _, chunk in batch])
        index.add([
            IndexedChunk(content=chunk, embedding=vector, source=source)
            for (source, chunk), vector in zip(batch, vectors)
        ])

    index.mark_indexing_completed()
    return index
