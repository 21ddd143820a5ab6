"""
Contextual search - answer questions from the project's semantic index.

The question goes through three steps before it becomes a prompt:

    IDLE -> REWRITING -> EMBEDDING -> SEARCHING -> DONE
                 \\           \\            \\
                  +-----------+------------+--> FAILED

1. Rewriting: a stateless few-shot completion turns the question into a short
   comma-separated search query.
2. Embedding: the query is embedded.
3. Searching: the vector is matched against the index.

The best matches are then folded into a single self-contained prompt. Any
error, empty result or timeout moves the pipeline to FAILED in one place, and
the caller falls back to the ordinary history-based request.
"""

import asyncio
from dataclasses import dataclass, field
from enum import Enum

import structlog

from ..errors import ContextRetrievalError
from ..index.base import SearchHit, SemanticIndex
from ..llm.base import BaseLLM
from ..llm.embeddings import BaseEmbeddings
from .prompts import build_context_prompt, build_search_query_prompt

logger = structlog.get_logger()


class RetrievalState(str, Enum):
    """Steps of the retrieval pipeline."""
    IDLE = "idle"
    REWRITING = "rewriting"
    EMBEDDING = "embedding"
    SEARCHING = "searching"
    DONE = "done"
    FAILED = "failed"


@dataclass
class RetrievalOutcome:
    """What the retrieval pipeline produced."""

    question: str
    state: RetrievalState = RetrievalState.IDLE
    search_query: str | None = None
    hits: list[SearchHit] = field(default_factory=list)
    prompt: str | None = None
    failed_step: RetrievalState | None = None
    error: str | None = None

    @property
    def succeeded(self) -> bool:
        return self.state == RetrievalState.DONE and self.prompt is not None


class ContextRetriever:
    """Builds context-augmented prompts from a semantic index."""

    def __init__(
        self,
        llm: BaseLLM,
        embeddings: BaseEmbeddings,
        index: SemanticIndex,
        search_query_model: str | None = None,
        top_k: int = 1,
        min_score: float | None = None,
        timeout: float | None = 30.0,
    ):
        if top_k < 1:
            raise ValueError("top_k must be at least 1")
        self.llm = llm
        self.embeddings = embeddings
        self.index = index
        self.search_query_model = search_query_model
        self.top_k = top_k
        self.min_score = min_score
        self.timeout = timeout

    async def retrieve(self, question: str) -> RetrievalOutcome:
        """Run the pipeline. Never raises; check ``outcome.succeeded``."""
        outcome = RetrievalOutcome(question=question)
        try:
            await asyncio.wait_for(self._run(outcome), timeout=self.timeout)
        except asyncio.TimeoutError:
            self._fail(outcome, f"timed out after {self.timeout}s")
        except Exception as e:
            self._fail(outcome, str(e) or type(e).__name__)
        return outcome

    async def build_prompt(self, question: str) -> str:
        """Get the context-augmented prompt for a question.

        Raises:
            ContextRetrievalError: If any step of the pipeline failed
        """
        outcome = await self.retrieve(question)
        if not outcome.succeeded:
            raise ContextRetrievalError(
                f"Contextual search failed while {outcome.failed_step.value}: {outcome.error}"
                if outcome.failed_step else "Contextual search failed"
            )
        return outcome.prompt  # type: ignore[return-value]

    async def aclose(self) -> None:
        """Close the backends of the pipeline."""
        await self.llm.aclose()
        await self.embeddings.aclose()

    async def _run(self, outcome: RetrievalOutcome) -> None:
        self._transition(outcome, RetrievalState.REWRITING)
        query = (await self.llm.complete(
            build_search_query_prompt(outcome.question),
            model=self.search_query_model,
        )).strip()
        if not query:
            raise ContextRetrievalError("empty search query")
        outcome.search_query = query

        self._transition(outcome, RetrievalState.EMBEDDING)
        vector = await self.embeddings.embed(query)
        if not vector:
            raise ContextRetrievalError("empty embedding")

        self._transition(outcome, RetrievalState.SEARCHING)
        hits = self.index.query(vector, self.top_k)
        if self.min_score is not None:
            hits = [hit for hit in hits if hit.score >= self.min_score]
        hits = [hit for hit in hits if hit.content.strip()]
        if not hits:
            raise ContextRetrievalError("no relevant match in the index")
        outcome.hits = hits

        context = "\n\n".join(hit.content for hit in hits)
        outcome.prompt = build_context_prompt(context, outcome.question)
        self._transition(outcome, RetrievalState.DONE)

    def _transition(self, outcome: RetrievalOutcome, state: RetrievalState) -> None:
        logger.debug("Contextual search step", state=state.value)
        outcome.state = state

    def _fail(self, outcome: RetrievalOutcome, error: str) -> None:
        outcome.failed_step = outcome.state
        outcome.state = RetrievalState.FAILED
        outcome.error = error
        outcome.prompt = None
        logger.warning(
            "Contextual search failed",
            step=outcome.failed_step.value,
            error=error,
        )
