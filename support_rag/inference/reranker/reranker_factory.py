"""Factory for creating reranker instances based on configuration."""

from typing import Dict

from ...core.config import settings
from ...core.exceptions import RerankerException
from ...core.logging_config import get_logger
from .base_reranker import BaseReranker
from .llm_reranker import LLMReranker
from .similarity_reranker import SimilarityReranker


class RerankerFactory:
    """Factory class for creating reranker instances."""

    _rerankers = {
        "llm": LLMReranker,
        "similarity": SimilarityReranker,
    }

    _descriptions = {
        "llm": "Gemini-graded relevance fused with vector similarity",
        "similarity": "Vector similarity order only, no model call",
    }

    @classmethod
    def create_reranker(
        cls,
        reranker_type: str = None,
        **kwargs
    ) -> BaseReranker:
        """Create a reranker instance based on type."""
        logger = get_logger(__name__, "reranker_factory")

        reranker_type = reranker_type or settings.reranker_type

        if reranker_type not in cls._rerankers:
            available_types = list(cls._rerankers.keys())
            raise RerankerException(
                f"Unknown reranker type: {reranker_type}. Available types: {available_types}",
                component="reranker_factory",
                error_code="UNKNOWN_RERANKER_TYPE",
                details={
                    "requested_type": reranker_type,
                    "available_types": available_types
                }
            )

        reranker_class = cls._rerankers[reranker_type]

        try:
            reranker = reranker_class(**kwargs)
        except Exception as e:
            raise RerankerException(
                f"Failed to create {reranker_type} reranker: {str(e)}",
                component="reranker_factory",
                error_code="RERANKER_CREATION_FAILED",
                details={
                    "reranker_type": reranker_type,
                    "options": sorted(kwargs.keys())
                }
            ) from e

        logger.info(
            f"Created {reranker_type} reranker",
            extra={
                "reranker_type": reranker_type,
                "class": reranker_class.__name__
            }
        )

        return reranker

    @classmethod
    def get_available_rerankers(cls) -> Dict[str, str]:
        """Get reranker types with descriptions."""
        return {
            name: cls._descriptions.get(name, reranker_class.__name__)
            for name, reranker_class in cls._rerankers.items()
        }

    @classmethod
    def register_reranker(cls, name: str, reranker_class: type, description: str = None) -> None:
        """Register a new reranker type."""
        if not isinstance(reranker_class, type) or not issubclass(reranker_class, BaseReranker):
            raise RerankerException(
                "Reranker class must inherit from BaseReranker",
                component="reranker_factory",
                error_code="INVALID_RERANKER_CLASS",
                details={"class_name": getattr(reranker_class, "__name__", repr(reranker_class))}
            )

        cls._rerankers[name] = reranker_class
        if description:
            cls._descriptions[name] = description
        logger = get_logger(__name__, "reranker_factory")
        logger.info(f"Registered new reranker type: {name}")


def create_default_reranker(**kwargs) -> BaseReranker:
    """Create a reranker using default configuration."""
    return RerankerFactory.create_reranker(**kwargs)
