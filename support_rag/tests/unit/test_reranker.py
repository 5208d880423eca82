"""Unit tests for reranker functionality."""

import asyncio
import pytest
from unittest.mock import Mock, patch

from support_rag.core.exceptions import GenerationException, RerankerException
from support_rag.inference.llm_client import BaseTextGenerator
from support_rag.inference.reranker.base_reranker import BaseReranker, pass_through_rank
from support_rag.inference.reranker.llm_reranker import LLMReranker
from support_rag.inference.reranker.reranker_factory import RerankerFactory, create_default_reranker
from support_rag.inference.reranker.similarity_reranker import SimilarityReranker
from support_rag.models.chunk import CandidateChunk, RankedChunk
from support_rag.models.reranker import GenerationRequest


def make_candidates(similarities, content=None):
    return [
        CandidateChunk(
            id=f"chunk_{i}",
            content=content or f"Induction sealer SI-{200 + i} seals caps up to 120mm at 40 units/min.",
            similarity=similarity,
            document_id=f"doc_{i % 3}",
            chunk_index=i,
            metadata={"fileName": f"catalog_{i % 3}.xlsx"}
        )
        for i, similarity in enumerate(similarities)
    ]


class TestPassThroughRank:
    """Test suite for the shared identity-scoring helper."""

    def test_identity_scores_and_order(self):
        chunks = make_candidates([0.9, 0.2, 0.5])
        ranked = pass_through_rank(chunks, top_k=10)

        assert [r.id for r in ranked] == ["chunk_0", "chunk_1", "chunk_2"]
        for chunk, result in zip(chunks, ranked):
            assert isinstance(result, RankedChunk)
            assert result.original_similarity == chunk.similarity
            assert result.llm_relevance_score == chunk.similarity
            assert result.combined_score == chunk.similarity
            assert result.content == chunk.content
            assert result.document_id == chunk.document_id
            assert result.chunk_index == chunk.chunk_index

    def test_respects_top_k(self):
        ranked = pass_through_rank(make_candidates([0.1] * 8), top_k=3)
        assert [r.id for r in ranked] == ["chunk_0", "chunk_1", "chunk_2"]

    def test_ranked_chunk_owns_metadata_copy(self):
        chunk = make_candidates([0.7])[0]
        ranked = pass_through_rank([chunk], top_k=1)[0]

        ranked.metadata["reviewed"] = True

        assert ranked.metadata is not chunk.metadata
        assert chunk.metadata == {"fileName": "catalog_0.xlsx"}


class TestLLMReranker:
    """Test suite for LLMReranker."""

    @pytest.fixture
    def generator(self):
        """Create a fake text generator."""
        generator = Mock(spec=BaseTextGenerator)
        generator.generate.return_value = "[5, 5, 5, 5, 5, 5]"
        return generator

    @pytest.fixture
    def reranker(self, generator):
        """Create a test reranker instance with default weights."""
        return LLMReranker(
            text_generator=generator,
            model_name="test-model",
            similarity_weight=0.4,
            llm_weight=0.6,
            max_candidates=50,
            skip_threshold=5,
            excerpt_chars=400,
            neutral_score=5
        )

    @pytest.mark.parametrize("count", [0, 1, 5])
    def test_small_input_skips_grading(self, reranker, generator, count):
        """Five or fewer chunks are returned as-is without an LLM call."""
        chunks = make_candidates([0.3 + 0.1 * i for i in range(count)])

        results = reranker.rerank("What is the sealing speed?", chunks)

        generator.generate.assert_not_called()
        assert [r.id for r in results] == [c.id for c in chunks]
        for result in results:
            assert result.combined_score == result.original_similarity == result.llm_relevance_score

    def test_empty_chunks(self, reranker, generator):
        assert reranker.rerank("any question", []) == []
        generator.generate.assert_not_called()

    def test_llm_scores_reorder_candidates(self, reranker, generator):
        generator.generate.return_value = "[1, 2, 10, 4, 5, 6]"
        chunks = make_candidates([0.5] * 6)

        results = reranker.rerank("Which sealer handles 120mm caps?", chunks)

        assert [r.id for r in results] == ["chunk_2", "chunk_5", "chunk_4", "chunk_3", "chunk_1", "chunk_0"]
        assert results[0].llm_relevance_score == pytest.approx(1.0)
        assert results[0].combined_score == pytest.approx(0.4 * 0.5 + 0.6 * 1.0)
        assert results[-1].llm_relevance_score == pytest.approx(0.1)
        generator.generate.assert_called_once()

    def test_score_fusion(self, reranker, generator):
        """originalSimilarity 0.8 and grade 5 fuse to 0.62."""
        generator.generate.return_value = "[5, 1, 1, 1, 1, 1]"
        chunks = make_candidates([0.8, 0.1, 0.1, 0.1, 0.1, 0.1])

        results = reranker.rerank("question", chunks)

        top = results[0]
        assert top.id == "chunk_0"
        assert top.original_similarity == 0.8
        assert top.llm_relevance_score == pytest.approx(0.5)
        assert top.combined_score == pytest.approx(0.62)
        assert reranker.fuse_scores(0.8, 0.5) == pytest.approx(0.62)

    def test_llm_weighted_above_similarity(self, reranker, generator):
        generator.generate.return_value = "[2, 9, 5, 5, 5, 5]"
        chunks = make_candidates([0.9, 0.4, 0.1, 0.1, 0.1, 0.1])

        results = reranker.rerank("question", chunks)

        assert results[0].id == "chunk_1"

    def test_ties_keep_input_order(self, reranker, generator):
        generator.generate.return_value = "[5, 5, 5, 5, 5, 5]"
        chunks = make_candidates([0.3, 0.7, 0.3, 0.3, 0.7, 0.3])

        results = reranker.rerank("question", chunks)

        assert [r.id for r in results] == ["chunk_1", "chunk_4", "chunk_0", "chunk_2", "chunk_3", "chunk_5"]

    def test_fallback_on_generator_failure(self, reranker, generator):
        generator.generate.side_effect = GenerationException("quota exceeded", component="llm_client")
        chunks = make_candidates([0.2, 0.9, 0.4, 0.6, 0.1, 0.3, 0.8, 0.5])

        results = reranker.rerank("question", chunks, top_k=3)

        assert [r.id for r in results] == ["chunk_0", "chunk_1", "chunk_2"]
        for result in results:
            assert result.combined_score == result.original_similarity
            assert result.llm_relevance_score == result.original_similarity

    def test_fallback_on_unexpected_error(self, reranker, generator):
        generator.generate.side_effect = RuntimeError("connection reset")
        chunks = make_candidates([0.5] * 7)

        results = reranker.rerank("question", chunks, top_k=30)

        assert [r.id for r in results] == [c.id for c in chunks]

    def test_unparseable_response_uses_neutral_scores(self, reranker, generator):
        generator.generate.return_value = "I am unable to grade these excerpts."
        chunks = make_candidates([0.2, 0.9, 0.4, 0.6, 0.1, 0.3])

        results = reranker.rerank("question", chunks)

        assert [r.id for r in results] == ["chunk_1", "chunk_3", "chunk_2", "chunk_5", "chunk_0", "chunk_4"]
        assert all(r.llm_relevance_score == pytest.approx(0.5) for r in results)

    def test_array_wrapped_in_prose(self, reranker, generator):
        generator.generate.return_value = "Sure! Here are the scores:\n[3, 3, 3, 3, 3, 9]\nLet me know."
        chunks = make_candidates([0.5] * 6)

        results = reranker.rerank("question", chunks)

        assert results[0].id == "chunk_5"
        assert results[0].llm_relevance_score == pytest.approx(0.9)

    def test_short_score_array_defaults_missing_positions(self, reranker, generator):
        generator.generate.return_value = "[9, 1]"
        chunks = make_candidates([0.5] * 6)

        results = reranker.rerank("question", chunks)
        by_id = {r.id: r for r in results}

        assert by_id["chunk_0"].llm_relevance_score == pytest.approx(0.9)
        assert by_id["chunk_1"].llm_relevance_score == pytest.approx(0.1)
        for missing in ["chunk_2", "chunk_3", "chunk_4", "chunk_5"]:
            assert by_id[missing].llm_relevance_score == pytest.approx(0.5)

    def test_candidate_cap(self, reranker, generator):
        generator.generate.return_value = "[5]"
        chunks = make_candidates([0.5] * 60)

        results = reranker.rerank("question", chunks, top_k=100)

        assert len(results) == 50
        assert {r.id for r in results} == {f"chunk_{i}" for i in range(50)}
        prompt = generator.generate.call_args[0][0].turns[0]["text"]
        assert "[CHUNK 50]" in prompt
        assert "[CHUNK 51]" not in prompt

    @pytest.mark.parametrize("count,top_k,expected", [
        (0, 30, 0),
        (3, 2, 2),
        (5, 30, 5),
        (6, 30, 6),
        (6, 4, 4),
        (60, 30, 30),
        (60, 100, 50),
    ])
    def test_bounded_output_size(self, reranker, generator, count, top_k, expected):
        generator.generate.return_value = "[]"
        results = reranker.rerank("question", make_candidates([0.5] * count), top_k=top_k)
        assert len(results) == expected

    def test_prompt_excerpts_and_generation_parameters(self, reranker, generator):
        chunks = make_candidates([0.5] * 6, content="x" * 500)

        reranker.rerank("How fast is the SI-200?", chunks)

        request = generator.generate.call_args[0][0]
        assert isinstance(request, GenerationRequest)
        assert request.temperature == pytest.approx(0.1)
        assert request.max_output_tokens == 500
        assert request.turns[0]["role"] == "user"

        prompt = request.turns[0]["text"]
        assert '"How fast is the SI-200?"' in prompt
        assert "[CHUNK 1] " + "x" * 400 + "..." in prompt
        assert "x" * 401 not in prompt
        assert "JSON array" in prompt

    def test_does_not_mutate_input(self, reranker, generator):
        generator.generate.return_value = "[1, 2, 3, 4, 5, 10]"
        chunks = make_candidates([0.5] * 6)
        snapshot = list(chunks)

        reranker.rerank("question", chunks)

        assert chunks == snapshot

    @pytest.mark.parametrize("top_k", [0, -3])
    def test_invalid_top_k(self, reranker, top_k):
        with pytest.raises(RerankerException) as exc_info:
            reranker.rerank("question", make_candidates([0.5] * 6), top_k=top_k)

        assert exc_info.value.error_code == "INVALID_TOP_K"

    def test_invalid_weights(self, generator):
        with pytest.raises(RerankerException) as exc_info:
            LLMReranker(text_generator=generator, similarity_weight=0.0, llm_weight=0.0)

        assert exc_info.value.error_code == "INVALID_WEIGHTS"

    def test_rerank_async(self, reranker, generator):
        generator.generate.return_value = "[1, 1, 1, 1, 1, 10]"
        chunks = make_candidates([0.5] * 6)

        results = asyncio.run(reranker.rerank_async("question", chunks, 2))

        assert [r.id for r in results][0] == "chunk_5"
        assert len(results) == 2

    def test_get_model_info(self, reranker):
        info = reranker.get_model_info()

        assert info["model_name"] == "test-model"
        assert info["reranker_type"] == "LLMReranker"
        assert info["similarity_weight"] == 0.4
        assert info["llm_weight"] == 0.6
        assert info["max_candidates"] == 50


class TestSimilarityReranker:
    """Test suite for SimilarityReranker."""

    def test_keeps_retriever_order(self):
        chunks = make_candidates([0.1, 0.9, 0.5, 0.4, 0.3, 0.2, 0.8])
        results = SimilarityReranker().rerank("question", chunks, top_k=4)

        assert [r.id for r in results] == ["chunk_0", "chunk_1", "chunk_2", "chunk_3"]
        assert all(r.combined_score == r.original_similarity for r in results)


class TestRerankerFactory:
    """Test suite for RerankerFactory."""

    def test_create_llm_reranker(self):
        generator = Mock(spec=BaseTextGenerator)

        reranker = RerankerFactory.create_reranker(reranker_type="llm", text_generator=generator)

        assert isinstance(reranker, LLMReranker)
        assert reranker.text_generator is generator

    def test_create_similarity_reranker(self):
        reranker = RerankerFactory.create_reranker(reranker_type="similarity")
        assert isinstance(reranker, SimilarityReranker)

    def test_create_unknown_reranker(self):
        with pytest.raises(RerankerException) as exc_info:
            RerankerFactory.create_reranker(reranker_type="unknown")

        assert "Unknown reranker type" in str(exc_info.value)
        assert exc_info.value.error_code == "UNKNOWN_RERANKER_TYPE"

    def test_creation_failure_without_api_key(self):
        with patch('support_rag.inference.llm_client.settings') as mock_settings:
            mock_settings.gemini_api_key = None
            mock_settings.gemini_model = "gemini-2.5-flash"

            with pytest.raises(RerankerException) as exc_info:
                RerankerFactory.create_reranker(reranker_type="llm")

        assert exc_info.value.error_code == "RERANKER_CREATION_FAILED"
        assert isinstance(exc_info.value.__cause__, GenerationException)

    def test_get_available_rerankers(self):
        available = RerankerFactory.get_available_rerankers()

        assert set(["llm", "similarity"]) <= set(available)
        assert isinstance(available["llm"], str)

    def test_create_default_reranker(self):
        with patch('support_rag.inference.reranker.reranker_factory.settings') as mock_settings:
            mock_settings.reranker_type = "similarity"

            reranker = create_default_reranker()

        assert isinstance(reranker, SimilarityReranker)

    def test_register_new_reranker(self):
        class ReverseReranker(BaseReranker):
            def _rerank_batch(self, question, chunks, top_k):
                return pass_through_rank(list(reversed(chunks)), top_k)

        try:
            RerankerFactory.register_reranker("reverse", ReverseReranker, "Reverse order")

            available = RerankerFactory.get_available_rerankers()
            assert available["reverse"] == "Reverse order"

            reranker = RerankerFactory.create_reranker(reranker_type="reverse")
            results = reranker.rerank("question", make_candidates([0.1, 0.2]))
            assert [r.id for r in results] == ["chunk_1", "chunk_0"]
        finally:
            RerankerFactory._rerankers.pop("reverse", None)
            RerankerFactory._descriptions.pop("reverse", None)

    def test_register_invalid_reranker(self):
        class InvalidReranker:
            pass

        with pytest.raises(RerankerException) as exc_info:
            RerankerFactory.register_reranker("invalid", InvalidReranker)

        assert "must inherit from BaseReranker" in str(exc_info.value)
        assert exc_info.value.error_code == "INVALID_RERANKER_CLASS"


if __name__ == "__main__":
    pytest.main([__file__])
