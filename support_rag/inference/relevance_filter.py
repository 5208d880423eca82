"""Cheap lexical relevance check used before spending a model call.

Standalone helper for candidate suppliers; ``ChatRetrievalPipeline`` does not
apply it, since every supplied candidate goes to the reranker.
"""

from typing import List


def question_terms(question: str) -> List[str]:
    """Lower-cased whitespace-separated terms longer than two characters."""
    return [term for term in question.lower().split() if len(term) > 2]


def quick_relevance_filter(question: str, content: str) -> bool:
    """True when enough question terms appear in ``content``.

    At least two terms must match, or 30% of the terms for short questions.
    """
    terms = question_terms(question)
    content_lower = (content or "").lower()

    match_count = sum(1 for term in terms if term in content_lower)

    return match_count >= min(2, len(terms) * 0.3)
