"""Best-effort extraction of relevance grades from free-form model text."""

import json
import re

from ...models.reranker import RelevanceScores


# Bracketed run of digits, commas and whitespace, e.g. "[8, 3, 10]".
SCORE_ARRAY_PATTERN = re.compile(r"\[[\d,\s]+\]")


def parse_relevance_scores(text: str) -> RelevanceScores:
    """Return the first bracketed digit array in ``text`` that decodes as JSON.

    Prose around the array is ignored. Text without any decodable array
    yields ``RelevanceScores.malformed()``.
    """
    if not isinstance(text, str) or not text:
        return RelevanceScores.malformed()

    for match in SCORE_ARRAY_PATTERN.finditer(text):
        try:
            decoded = json.loads(match.group(0))
        except ValueError:
            continue
        if isinstance(decoded, list) and all(isinstance(value, int) for value in decoded):
            return RelevanceScores.ok(decoded)

    return RelevanceScores.malformed()
