"""Configuration management for the support chat retrieval core."""

from typing import Optional
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings with environment variable support."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Gemini Configuration
    gemini_api_key: Optional[str] = Field(default=None)
    gemini_model: str = Field(default="gemini-2.5-flash")

    # Reranker Configuration
    reranker_type: str = Field(default="llm")
    rerank_top_k: int = Field(default=30, gt=0)
    rerank_max_candidates: int = Field(default=50, gt=0)
    rerank_skip_threshold: int = Field(default=5, ge=0)
    rerank_excerpt_chars: int = Field(default=400, gt=0)
    rerank_similarity_weight: float = Field(default=0.4, ge=0.0)
    rerank_llm_weight: float = Field(default=0.6, ge=0.0)
    rerank_neutral_score: int = Field(default=5, ge=1, le=10)
    rerank_temperature: float = Field(default=0.1, ge=0.0)
    rerank_max_output_tokens: int = Field(default=500, gt=0)

    # Context Packaging Configuration
    context_max_tokens: int = Field(default=40000, gt=0)
    context_tokenizer: str = Field(default="cl100k_base")

    # Logging Configuration
    log_level: str = Field(default="INFO")
    log_file: Optional[str] = Field(default=None)


# Global settings instance
settings = Settings()
