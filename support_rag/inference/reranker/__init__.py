"""Reranking stage of the chat retrieval path."""

from .base_reranker import BaseReranker, pass_through_rank
from .llm_reranker import LLMReranker
from .reranker_factory import RerankerFactory, create_default_reranker
from .score_parser import parse_relevance_scores
from .similarity_reranker import SimilarityReranker

__all__ = [
    "BaseReranker",
    "LLMReranker",
    "SimilarityReranker",
    "RerankerFactory",
    "create_default_reranker",
    "parse_relevance_scores",
    "pass_through_rank",
]
