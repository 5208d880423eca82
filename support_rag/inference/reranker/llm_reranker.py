"""Two-stage reranker: first-pass similarity fused with LLM-graded relevance."""

import time
from typing import List, Optional

from ...core.config import settings
from ...core.exceptions import RerankerException
from ...core.logging_config import log_exception, log_performance
from ...models.chunk import CandidateChunk, RankedChunk
from ...models.reranker import GenerationRequest
from ..llm_client import BaseTextGenerator, create_default_generator
from .base_reranker import BaseReranker, pass_through_rank
from .score_parser import parse_relevance_scores


RERANK_PROMPT_TEMPLATE = """You are an expert at judging how useful text excerpts are for answering a question.

USER QUESTION:
"{question}"

DOCUMENT EXCERPTS TO GRADE:
{excerpts}

TASK:
Give each chunk a relevance score from 1 to 10:
- 10: Directly answers the question with specific information
- 7-9: Contains very useful information for the answer
- 4-6: Partially relevant, may complement the answer
- 1-3: Little or no relevance

Reply ONLY with a JSON array of scores in chunk order:
[score1, score2, score3, ...]"""


class LLMReranker(BaseReranker):
    """Reranks retrieval candidates with a single LLM grading call.

    Small candidate sets skip the model call. When the call fails the
    candidates are returned in their original order with similarity scores.
    """

    def __init__(
        self,
        text_generator: Optional[BaseTextGenerator] = None,
        model_name: str = None,
        similarity_weight: float = None,
        llm_weight: float = None,
        max_candidates: int = None,
        skip_threshold: int = None,
        excerpt_chars: int = None,
        neutral_score: int = None,
        **kwargs
    ):
        super().__init__(model_name or settings.gemini_model, **kwargs)
        self.text_generator = text_generator or create_default_generator()

        self.similarity_weight = settings.rerank_similarity_weight if similarity_weight is None else similarity_weight
        self.llm_weight = settings.rerank_llm_weight if llm_weight is None else llm_weight
        self.max_candidates = max_candidates or settings.rerank_max_candidates
        self.skip_threshold = settings.rerank_skip_threshold if skip_threshold is None else skip_threshold
        self.excerpt_chars = excerpt_chars or settings.rerank_excerpt_chars
        self.neutral_score = neutral_score or settings.rerank_neutral_score

        if self.similarity_weight < 0 or self.llm_weight < 0 or (self.similarity_weight + self.llm_weight) == 0:
            raise RerankerException(
                "Fusion weights must be non-negative and not both zero",
                component="reranker",
                error_code="INVALID_WEIGHTS",
                details={
                    "similarity_weight": self.similarity_weight,
                    "llm_weight": self.llm_weight
                }
            )

    def build_prompt(self, question: str, candidates: List[CandidateChunk]) -> str:
        """Render the grading prompt with 1-based chunk labels."""
        excerpts = "\n\n".join(
            f"[CHUNK {i}] {chunk.content[:self.excerpt_chars]}..."
            for i, chunk in enumerate(candidates, 1)
        )
        return RERANK_PROMPT_TEMPLATE.format(question=question, excerpts=excerpts)

    def fuse_scores(self, original_similarity: float, llm_relevance_score: float) -> float:
        """Weighted sum of the two relevance signals."""
        return self.similarity_weight * original_similarity + self.llm_weight * llm_relevance_score

    def _rerank_batch(
        self,
        question: str,
        chunks: List[CandidateChunk],
        top_k: int
    ) -> List[RankedChunk]:
        """Grade the leading candidates with the LLM and sort by fused score."""
        if len(chunks) <= self.skip_threshold:
            self.logger.debug(
                f"Skipping LLM grading for {len(chunks)} chunks",
                extra={"candidate_count": len(chunks), "skip_threshold": self.skip_threshold}
            )
            return pass_through_rank(chunks, top_k)

        candidates = chunks[:self.max_candidates]

        self.logger.info(
            f"Reranking {len(candidates)} chunks for question: \"{question[:50]}...\"",
            extra={"candidate_count": len(candidates), "input_count": len(chunks)}
        )

        start_time = time.time()

        try:
            request = GenerationRequest.from_prompt(
                self.build_prompt(question, candidates),
                temperature=settings.rerank_temperature,
                max_output_tokens=settings.rerank_max_output_tokens
            )
            response_text = self.text_generator.generate(request)
        except Exception as e:
            log_exception(
                self.logger,
                e,
                context={"stage": "llm_grading", "candidate_count": len(candidates)}
            )
            self.logger.warning(
                "Relevance grading failed, falling back to similarity order",
                extra={"fallback": "pass_through", "top_k": top_k}
            )
            return pass_through_rank(chunks, top_k)

        parsed = parse_relevance_scores(response_text)
        if not parsed.is_ok:
            self.logger.warning(
                "No relevance scores found in grading response, using neutral scores",
                extra={
                    "neutral_score": self.neutral_score,
                    "response_preview": (response_text or "")[:100]
                }
            )
        elif len(parsed.scores) < len(candidates):
            self.logger.warning(
                f"Grading returned {len(parsed.scores)} scores for {len(candidates)} chunks",
                extra={"score_count": len(parsed.scores), "candidate_count": len(candidates)}
            )

        ranked_chunks = []
        for i, chunk in enumerate(candidates):
            llm_relevance_score = parsed.score_for(i, self.neutral_score) / 10
            ranked_chunks.append(
                RankedChunk.from_candidate(
                    chunk,
                    llm_relevance_score=llm_relevance_score,
                    combined_score=self.fuse_scores(chunk.similarity, llm_relevance_score)
                )
            )

        # sorted() is stable with reverse=True, so ties keep input order
        ranked_chunks = sorted(ranked_chunks, key=lambda c: c.combined_score, reverse=True)

        duration = (time.time() - start_time) * 1000

        log_performance(
            self.logger,
            "llm_rerank",
            duration,
            success=parsed.is_ok,
            metadata={
                "question_length": len(question),
                "candidate_count": len(candidates),
                "top_k": top_k,
                "top_score": ranked_chunks[0].combined_score,
                "model": self.model_name
            }
        )

        return ranked_chunks[:top_k]

    def get_model_info(self) -> dict:
        """Get LLM reranker information."""
        info = super().get_model_info()
        info.update({
            "provider": "gemini",
            "similarity_weight": self.similarity_weight,
            "llm_weight": self.llm_weight,
            "max_candidates": self.max_candidates,
            "skip_threshold": self.skip_threshold
        })
        return info
