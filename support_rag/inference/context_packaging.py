"""Context packaging of ranked chunks for the answer prompt."""

import time
import tiktoken
from typing import Any, Dict, List, Sequence
from dataclasses import dataclass

from ..core.config import settings
from ..core.exceptions import ContextPackagingException
from ..core.logging_config import get_logger, log_performance
from ..models.chunk import CandidateChunk, RankedChunk


SECTION_RULE = "=" * 63


@dataclass
class PackagedContext:
    """Container for context ready for the answer prompt."""
    context: str
    chunks: List[RankedChunk]
    total_tokens: int
    dropped_count: int
    metadata: Dict[str, Any]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "context": self.context,
            "chunk_ids": [chunk.id for chunk in self.chunks],
            "total_tokens": self.total_tokens,
            "dropped_count": self.dropped_count,
            "metadata": self.metadata
        }


def group_chunks_by_document(chunks: Sequence[CandidateChunk]) -> Dict[str, List[CandidateChunk]]:
    """Group chunks by source document, each group ordered by chunk index.

    Documents keep the order in which they first appear.
    """
    grouped: Dict[str, List[CandidateChunk]] = {}
    for chunk in chunks:
        grouped.setdefault(chunk.document_id, []).append(chunk)

    return {
        document_id: sorted(doc_chunks, key=lambda c: c.chunk_index)
        for document_id, doc_chunks in grouped.items()
    }


def _document_name(chunks: Sequence[CandidateChunk]) -> str:
    metadata = chunks[0].metadata if chunks else {}
    return metadata.get("fileName") or metadata.get("file_name") or "Document"


def format_grouped_context(grouped_chunks: Dict[str, List[CandidateChunk]]) -> str:
    """Render one headed section per document."""
    sections = []

    for doc_index, doc_chunks in enumerate(grouped_chunks.values(), 1):
        content = "\n\n".join(chunk.content for chunk in doc_chunks)
        sections.append(
            f"{SECTION_RULE}\n"
            f"DOCUMENT {doc_index}: {_document_name(doc_chunks)}\n"
            f"{SECTION_RULE}\n"
            f"{content}"
        )

    return "\n\n".join(sections)


def ensure_document_diversity(
    chunks: Sequence[CandidateChunk],
    max_chunks_per_doc: int = 3
) -> List[CandidateChunk]:
    """Keep the best ``max_chunks_per_doc`` chunks of every document.

    Applied to candidates by ``ChatRetrievalPipeline`` when it is built with
    ``max_chunks_per_document``.
    """
    selected = []
    for doc_chunks in group_chunks_by_document(chunks).values():
        best = sorted(doc_chunks, key=lambda c: c.similarity, reverse=True)
        selected.extend(best[:max_chunks_per_doc])

    return sorted(selected, key=lambda c: c.similarity, reverse=True)


class ContextPackager:
    """Token-budgeted assembly of ranked chunks into grouped context."""

    def __init__(self, max_context_tokens: int = None, tokenizer_name: str = None):
        self.logger = get_logger(__name__, "context_packaging")
        self.max_context_tokens = max_context_tokens or settings.context_max_tokens
        self._tokenizer = None
        self._tokenizer_name = tokenizer_name or settings.context_tokenizer

    def package_context(
        self,
        ranked_chunks: Sequence[RankedChunk],
        question: str,
        max_tokens: int = None
    ) -> PackagedContext:
        """Admit chunks in rank order while they fit, then group by document."""
        if not ranked_chunks:
            return PackagedContext(
                context="",
                chunks=[],
                total_tokens=0,
                dropped_count=0,
                metadata={"question": question, "result_count": 0}
            )

        token_limit = max_tokens or self.max_context_tokens

        try:
            start_time = time.time()

            reserved_tokens = self._estimate_tokens(question)
            available_tokens = token_limit - reserved_tokens

            selected = []
            total_tokens = 0
            dropped_count = 0

            for chunk in ranked_chunks:
                chunk_tokens = self._estimate_tokens(chunk.content)
                if total_tokens + chunk_tokens <= available_tokens:
                    selected.append(chunk)
                    total_tokens += chunk_tokens
                else:
                    dropped_count += 1

            grouped = group_chunks_by_document(selected)
            context = format_grouped_context(grouped)

            packaged_context = PackagedContext(
                context=context,
                chunks=selected,
                total_tokens=total_tokens,
                dropped_count=dropped_count,
                metadata={
                    "question": question,
                    "result_count": len(selected),
                    "document_count": len(grouped),
                    "token_limit": token_limit,
                    "reserved_tokens": reserved_tokens,
                    "available_tokens": available_tokens
                }
            )

            duration = (time.time() - start_time) * 1000

            log_performance(
                self.logger,
                "package_context",
                duration,
                metadata={
                    "input_results": len(ranked_chunks),
                    "final_chunks": len(selected),
                    "dropped_chunks": dropped_count,
                    "total_tokens": total_tokens
                }
            )

            if dropped_count:
                self.logger.warning(
                    f"Dropped {dropped_count} chunks over the {token_limit} token budget",
                    extra={"dropped_count": dropped_count, "token_limit": token_limit}
                )

            return packaged_context

        except ContextPackagingException:
            raise
        except Exception as e:
            raise ContextPackagingException(
                f"Failed to package context: {str(e)}",
                component="context_packaging",
                error_code="PACKAGING_FAILED",
                details={
                    "question": question[:100],
                    "result_count": len(ranked_chunks)
                }
            ) from e

    def _load_tokenizer(self) -> None:
        """Load tiktoken tokenizer for accurate token counting."""
        if self._tokenizer is None:
            try:
                self._tokenizer = tiktoken.get_encoding(self._tokenizer_name)
            except Exception as e:
                self.logger.critical(f"Failed to load tiktoken tokenizer: {e}")
                raise ContextPackagingException(
                    "Tokenizer load failed",
                    component="context_packaging",
                    error_code="TOKENIZER_LOAD_FAILED",
                    details={"tokenizer": self._tokenizer_name}
                ) from e

    def _estimate_tokens(self, text: str) -> int:
        """Get token count for text."""
        if not text or not text.strip():
            return 0

        if self._tokenizer is None:
            self._load_tokenizer()

        return len(self._tokenizer.encode(text))


# Global context packager instance
context_packager = ContextPackager()
