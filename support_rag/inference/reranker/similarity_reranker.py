"""Similarity-only reranker that keeps the retriever's ordering."""

from typing import List

from ...models.chunk import CandidateChunk, RankedChunk
from .base_reranker import BaseReranker, pass_through_rank


class SimilarityReranker(BaseReranker):
    """Pass-through ranking on first-pass similarity, no model call."""

    def __init__(self, **kwargs):
        super().__init__(model_name=None, **kwargs)

    def _rerank_batch(
        self,
        question: str,
        chunks: List[CandidateChunk],
        top_k: int
    ) -> List[RankedChunk]:
        return pass_through_rank(chunks, top_k)
