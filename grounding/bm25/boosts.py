"""
Post-scoring boost multipliers for code search.

Boosts are applied after the BM25 score is computed, multiplicatively, so the
order in which they are applied does not change the result:

- fileNameMatch: a query word (≥3 chars) appears in the file's extensionless basename
- methodNameMatch: a query word (≥3 chars) is a substring of an extracted method name
- locatorMatch: the chunk declares locators and the query uses selector vocabulary
- exactMatch: a query word (≥4 chars) appears verbatim in the raw content;
  dampened to 30% of the configured factor
"""

import os
from typing import Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from ..models import Chunk

SELECTOR_VOCABULARY = ('selector', 'locator', 'getby', 'data-qa', 'click', 'fill')
EXACT_MATCH_DAMPING = 0.3


class BoostFactors(BaseModel):
    """Multipliers per match type; None disables a boost"""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    file_name_match: Optional[float] = None
    method_name_match: Optional[float] = None
    locator_match: Optional[float] = None
    exact_match: Optional[float] = None


def _file_stem(file_path: str) -> str:
    base_name = file_path.replace('\\', '/').rsplit('/', 1)[-1].lower()
    return os.path.splitext(base_name)[0]


def apply_boosts(score: float, chunk: Chunk, query_lower: str, factors: BoostFactors) -> float:
    """
    Apply boost multipliers based on match characteristics.

    Args:
        score: Base BM25 score of the chunk
        chunk: Chunk being scored
        query_lower: Raw query text, lowercased
        factors: Boost multipliers

    Returns:
        Boosted score
    """
    query_words = query_lower.split()

    if factors.file_name_match:
        file_stem = _file_stem(chunk.file_path)
        if any(len(w) >= 3 and w in file_stem for w in query_words):
            score *= factors.file_name_match

    if factors.method_name_match and chunk.metadata.methods:
        method_names = [m.name.lower() for m in chunk.metadata.methods]
        if any(len(w) >= 3 and any(w in name for name in method_names) for w in query_words):
            score *= factors.method_name_match

    if factors.locator_match and chunk.metadata.locators:
        if any(term in query_lower for term in SELECTOR_VOCABULARY):
            score *= factors.locator_match

    if factors.exact_match:
        content_lower = chunk.content.lower()
        if any(len(w) >= 4 and w in content_lower for w in query_words):
            score *= 1 + (factors.exact_match - 1) * EXACT_MATCH_DAMPING

    return score
