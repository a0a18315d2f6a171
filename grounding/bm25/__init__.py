"""
BM25 (Best Match 25) keyword retrieval over source code chunks.

Components:
- tokenizer: code-aware tokenization (identifier splitting, quoted literals,
  CSS tokens, data-* attributes)
- stemmer: ordered suffix stemmer (default) or NLTK Snowball
- scorer: Okapi BM25 with corpus IDF
- boosts: file name / method name / locator / exact-match multipliers
- index: chunk collection, corpus statistics, search and persistence
"""

from .tokenizer import tokenize
from .stemmer import stem, get_stemmer
from .scorer import BM25Scorer
from .boosts import BoostFactors, apply_boosts
from .index import BM25Index, IndexedChunk, SearchResult

__all__ = [
    "tokenize",
    "stem",
    "get_stemmer",
    "BM25Scorer",
    "BoostFactors",
    "apply_boosts",
    "BM25Index",
    "IndexedChunk",
    "SearchResult",
]
