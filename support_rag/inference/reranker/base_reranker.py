"""Abstract base class for reranker implementations."""

import asyncio
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Sequence

from ...core.config import settings
from ...core.exceptions import RerankerException
from ...core.logging_config import get_logger
from ...models.chunk import CandidateChunk, RankedChunk


def pass_through_rank(chunks: Sequence[CandidateChunk], top_k: int) -> List[RankedChunk]:
    """Keep input order and use the first-pass similarity as every score."""
    return [
        RankedChunk.from_candidate(
            chunk,
            llm_relevance_score=chunk.similarity,
            combined_score=chunk.similarity
        )
        for chunk in list(chunks)[:top_k]
    ]


class BaseReranker(ABC):
    """Abstract base class for all reranker implementations."""

    def __init__(self, model_name: str = None, **kwargs):
        self.logger = get_logger(__name__, "reranker")
        self.model_name = model_name
        self.config = kwargs

    @abstractmethod
    def _rerank_batch(
        self,
        question: str,
        chunks: List[CandidateChunk],
        top_k: int
    ) -> List[RankedChunk]:
        """Perform the actual reranking."""
        pass

    def rerank(
        self,
        question: str,
        chunks: Sequence[CandidateChunk],
        top_k: Optional[int] = None
    ) -> List[RankedChunk]:
        """Rerank chunks by relevance to the question, keeping at most ``top_k``."""
        top_k = settings.rerank_top_k if top_k is None else top_k
        if isinstance(top_k, bool) or not isinstance(top_k, int) or top_k <= 0:
            raise RerankerException(
                f"Invalid top_k value: {top_k}",
                component="reranker",
                error_code="INVALID_TOP_K",
                details={"top_k": top_k}
            )

        if not chunks:
            return []

        results = self._rerank_batch(question, list(chunks), top_k)

        self.logger.info(
            f"Reranked {len(chunks)} chunks to top {len(results)}",
            extra={
                "question_length": len(question),
                "candidate_count": len(chunks),
                "result_count": len(results),
                "reranker_type": self.__class__.__name__
            }
        )

        return results

    async def rerank_async(
        self,
        question: str,
        chunks: Sequence[CandidateChunk],
        top_k: Optional[int] = None
    ) -> List[RankedChunk]:
        """Asynchronously rerank chunks."""
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, self.rerank, question, chunks, top_k)

    def get_model_info(self) -> Dict[str, Any]:
        """Get information about the reranker."""
        return {
            "model_name": self.model_name,
            "reranker_type": self.__class__.__name__,
            "config": self.config
        }
