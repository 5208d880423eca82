"""Custom exceptions for the support chat retrieval core."""

from typing import Any, Dict, Optional
import traceback
from datetime import datetime, timezone


class SupportRAGException(Exception):
    """Base exception for retrieval core errors."""

    def __init__(
        self,
        message: str,
        component: str = "unknown",
        error_code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        self.component = component
        self.error_code = error_code
        self.details = details or {}
        self.timestamp = datetime.now(timezone.utc).isoformat()
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for JSON logging."""
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "component": self.component,
            "error_code": self.error_code,
            "details": self.details,
            "timestamp": self.timestamp,
            "traceback": traceback.format_exc()
        }


class GenerationException(SupportRAGException):
    """Exception for text-generation calls."""
    pass


class RerankerException(SupportRAGException):
    """Exception for reranking operations."""
    pass


class ContextPackagingException(SupportRAGException):
    """Exception for context packaging operations."""
    pass


class InferenceException(SupportRAGException):
    """Exception for inference pipeline operations."""
    pass
