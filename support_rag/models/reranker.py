"""Reranker data models for the retrieval core."""

from typing import Any, Dict, List, Optional
from dataclasses import dataclass, field


@dataclass(frozen=True)
class RelevanceScores:
    """Outcome of extracting relevance grades from model text.

    ``scores`` is ``None`` when the text held no usable array.
    """
    scores: Optional[List[int]] = None

    @classmethod
    def ok(cls, scores: List[int]) -> 'RelevanceScores':
        return cls(scores=list(scores))

    @classmethod
    def malformed(cls) -> 'RelevanceScores':
        return cls(scores=None)

    @property
    def is_ok(self) -> bool:
        return self.scores is not None

    def score_for(self, position: int, neutral: int) -> int:
        """Grade for a 0-based position, defaulting to ``neutral``.

        Missing positions and grades below 1 use the neutral grade; grades
        above 10 are clamped to 10.
        """
        if not self.scores or position >= len(self.scores):
            return neutral
        score = self.scores[position]
        if score < 1:
            return neutral
        return min(score, 10)


@dataclass
class GenerationRequest:
    """Role-tagged turns plus generation parameters for one completion."""
    turns: List[Dict[str, str]]
    temperature: float = 0.1
    max_output_tokens: int = 500
    metadata: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_prompt(
        cls,
        prompt: str,
        temperature: float = 0.1,
        max_output_tokens: int = 500
    ) -> 'GenerationRequest':
        return cls(
            turns=[{"role": "user", "text": prompt}],
            temperature=temperature,
            max_output_tokens=max_output_tokens
        )

    def to_contents(self) -> List[Dict[str, Any]]:
        """Convert turns to the ``contents`` shape expected by Gemini."""
        return [
            {"role": turn["role"], "parts": [{"text": turn["text"]}]}
            for turn in self.turns
        ]
