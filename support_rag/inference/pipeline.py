"""Chat retrieval orchestrator: candidates -> rerank -> context -> media links."""

import time
import uuid
from collections.abc import Mapping
from typing import Any, Callable, Dict, List, Optional, Sequence, Union
from dataclasses import dataclass, field
from enum import Enum

from ..core.config import settings
from ..core.exceptions import InferenceException
from ..core.logging_config import get_logger, log_performance
from ..models.chunk import CandidateChunk, RankedChunk
from ..models.media import VideoLink
from .context_packaging import ContextPackager, context_packager, ensure_document_diversity
from .link_extractor import extract_links
from .reranker.base_reranker import BaseReranker
from .reranker.reranker_factory import RerankerFactory


CandidateSupplier = Callable[[str], Sequence[Union[CandidateChunk, Mapping]]]


class RetrievalStage(Enum):
    """Stages of the chat retrieval path."""
    CANDIDATE_SUPPLY = "candidate_supply"
    RERANKING = "reranking"
    CONTEXT_PACKAGING = "context_packaging"
    LINK_EXTRACTION = "link_extraction"
    COMPLETED = "completed"


@dataclass
class RetrievalResponse:
    """Container for the material the answer step needs."""
    request_id: str
    question: str
    ranked_chunks: List[RankedChunk]
    context: str
    video_links: List[VideoLink]
    performance_metrics: Dict[str, float]
    metadata: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "request_id": self.request_id,
            "question": self.question,
            "ranked_chunks": [chunk.to_dict() for chunk in self.ranked_chunks],
            "context": self.context,
            "video_links": [link.to_dict() for link in self.video_links],
            "performance_metrics": self.performance_metrics,
            "metadata": self.metadata
        }


class ChatRetrievalPipeline:
    """Runs one chat question through reranking, packaging and link extraction."""

    def __init__(
        self,
        candidate_supplier: CandidateSupplier,
        reranker: Optional[BaseReranker] = None,
        packager: Optional[ContextPackager] = None,
        max_chunks_per_document: Optional[int] = None
    ):
        self.logger = get_logger(__name__, "retrieval_pipeline")
        self.candidate_supplier = candidate_supplier
        self.reranker = reranker
        self.packager = packager or context_packager
        self.max_chunks_per_document = max_chunks_per_document

    def _get_reranker(self) -> BaseReranker:
        if self.reranker is None:
            self.reranker = RerankerFactory.create_reranker()
        return self.reranker

    def process_query(self, question: str, top_k: Optional[int] = None) -> RetrievalResponse:
        """Build the ranked shortlist, prompt context and video links for a question."""
        if not question or not question.strip():
            raise InferenceException(
                "Empty question provided",
                component="retrieval_pipeline",
                error_code="EMPTY_QUERY"
            )

        request_id = str(uuid.uuid4())
        question = question.strip()
        top_k = settings.rerank_top_k if top_k is None else top_k
        stage_metrics: Dict[str, float] = {}
        start_time = time.time()

        self.logger.info(
            f"Starting retrieval for request {request_id}",
            extra={"request_id": request_id, "question": question[:100], "top_k": top_k}
        )

        stage_start = time.time()
        try:
            candidates = [
                row if isinstance(row, CandidateChunk) else CandidateChunk.from_dict(row)
                for row in self.candidate_supplier(question)
            ]
        except Exception as e:
            raise InferenceException(
                f"Candidate supply failed: {str(e)}",
                component="retrieval_pipeline",
                error_code="CANDIDATE_SUPPLY_FAILED",
                details={"request_id": request_id, "stage": RetrievalStage.CANDIDATE_SUPPLY.value}
            ) from e
        stage_metrics["candidate_supply_ms"] = (time.time() - stage_start) * 1000
        stage_metrics["candidate_count"] = len(candidates)

        if self.max_chunks_per_document:
            candidates = ensure_document_diversity(candidates, self.max_chunks_per_document)
            stage_metrics["diverse_candidate_count"] = len(candidates)

        stage_start = time.time()
        ranked_chunks = self._get_reranker().rerank(question, candidates, top_k)
        stage_metrics["reranking_ms"] = (time.time() - stage_start) * 1000
        stage_metrics["ranked_count"] = len(ranked_chunks)

        stage_start = time.time()
        packaged = self.packager.package_context(ranked_chunks, question)
        stage_metrics["context_packaging_ms"] = (time.time() - stage_start) * 1000
        stage_metrics["context_tokens"] = packaged.total_tokens

        stage_start = time.time()
        video_links = extract_links(ranked_chunks)
        stage_metrics["link_extraction_ms"] = (time.time() - stage_start) * 1000

        total_time = (time.time() - start_time) * 1000
        stage_metrics["total_pipeline_ms"] = total_time

        log_performance(
            self.logger,
            "chat_retrieval",
            total_time,
            metadata={"request_id": request_id, **stage_metrics}
        )

        return RetrievalResponse(
            request_id=request_id,
            question=question,
            ranked_chunks=ranked_chunks,
            context=packaged.context,
            video_links=video_links,
            performance_metrics=stage_metrics,
            metadata={
                "stage": RetrievalStage.COMPLETED.value,
                "reranker": self._get_reranker().get_model_info(),
                "dropped_chunks": packaged.dropped_count,
                "document_count": packaged.metadata.get("document_count", 0)
            }
        )
