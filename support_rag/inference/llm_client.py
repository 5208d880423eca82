"""Text-generation collaborator backed by Gemini."""

from abc import ABC, abstractmethod
from typing import Any, Dict, Optional
import google.generativeai as genai

from ..core.config import settings
from ..core.exceptions import GenerationException
from ..core.logging_config import get_logger
from ..models.reranker import GenerationRequest


class BaseTextGenerator(ABC):
    """Anything that turns a generation request into a single completion."""

    @abstractmethod
    def generate(self, request: GenerationRequest) -> str:
        """Return the completion text for ``request``."""
        pass


class GeminiTextGenerator(BaseTextGenerator):
    """Single-turn completions from a Gemini model."""

    def __init__(self, api_key: str = None, model_name: str = None):
        self.logger = get_logger(__name__, "llm_client")
        self.api_key = api_key or settings.gemini_api_key
        self.model_name = model_name or settings.gemini_model
        self.model = None

        if not self.api_key:
            raise GenerationException(
                "Gemini API key not provided",
                component="llm_client",
                error_code="MISSING_API_KEY"
            )

        genai.configure(api_key=self.api_key)

    def _initialize(self) -> None:
        """Initialize the Gemini model."""
        if self.model is None:
            self.model = genai.GenerativeModel(model_name=self.model_name)

    def generate(self, request: GenerationRequest) -> str:
        """Send the request turns and return the stripped completion text."""
        self._initialize()

        try:
            response = self.model.generate_content(
                contents=request.to_contents(),
                generation_config={
                    "temperature": request.temperature,
                    "max_output_tokens": request.max_output_tokens
                }
            )
            return response.text.strip() if response.text else ""

        except Exception as e:
            raise GenerationException(
                f"Failed to generate completion: {str(e)}",
                component="llm_client",
                error_code="GENERATION_FAILED",
                details={
                    "model": self.model_name,
                    "turns": len(request.turns)
                }
            ) from e

    def get_model_info(self) -> Dict[str, Any]:
        return {
            "provider": "gemini",
            "model_name": self.model_name,
            "initialized": self.model is not None,
            "has_api_key": bool(self.api_key)
        }


def create_default_generator(api_key: Optional[str] = None) -> BaseTextGenerator:
    """Create the configured text generator."""
    return GeminiTextGenerator(api_key=api_key)
