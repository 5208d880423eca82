"""Core chunk data models for the retrieval core."""

from typing import Any, Dict
from dataclasses import dataclass, field


@dataclass(frozen=True)
class CandidateChunk:
    """Retrieved chunk with its first-pass similarity to the query."""
    id: str
    content: str
    similarity: float
    document_id: str
    chunk_index: int
    metadata: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'CandidateChunk':
        """Build a candidate from a retriever row (camelCase or snake_case keys)."""
        return cls(
            id=str(data["id"]),
            content=data.get("content") or "",
            similarity=float(data.get("similarity", 0.0)),
            document_id=str(data.get("document_id", data.get("documentId", ""))),
            chunk_index=int(data.get("chunk_index", data.get("chunkIndex", 0))),
            metadata=dict(data.get("metadata") or {})
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "content": self.content,
            "similarity": self.similarity,
            "document_id": self.document_id,
            "chunk_index": self.chunk_index,
            "metadata": self.metadata
        }


@dataclass(frozen=True)
class RankedChunk:
    """Candidate chunk augmented with reranking scores."""
    id: str
    content: str
    similarity: float
    document_id: str
    chunk_index: int
    metadata: Dict[str, Any]
    original_similarity: float
    llm_relevance_score: float
    combined_score: float

    @classmethod
    def from_candidate(
        cls,
        candidate: CandidateChunk,
        llm_relevance_score: float,
        combined_score: float
    ) -> 'RankedChunk':
        return cls(
            id=candidate.id,
            content=candidate.content,
            similarity=candidate.similarity,
            document_id=candidate.document_id,
            chunk_index=candidate.chunk_index,
            metadata=dict(candidate.metadata),
            original_similarity=candidate.similarity,
            llm_relevance_score=llm_relevance_score,
            combined_score=combined_score
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "content": self.content[:200] + "..." if len(self.content) > 200 else self.content,
            "document_id": self.document_id,
            "chunk_index": self.chunk_index,
            "original_similarity": self.original_similarity,
            "llm_relevance_score": self.llm_relevance_score,
            "combined_score": self.combined_score,
            "metadata": self.metadata
        }
