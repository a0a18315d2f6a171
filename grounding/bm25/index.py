"""
BM25 search index over code chunks.

Lifecycle:
    index = BM25Index()
    index.add_chunks(chunks)       # tokenize, marks the index stale
    index.build()                  # document frequency + average length
    results = index.search("login button selector", top_k=5)

`search` builds a stale index on demand. Rebuilds are whole-collection: to
refresh, construct a new index and swap the reference.

Persistence keeps only what cannot be cheaply recomputed (chunk identity,
line ranges, raw content, type, structural metadata, k1/b and the stemmer
name). Token sequences and corpus statistics are recomputed on load, so a
reloaded index ranks identically to a fresh build from the same content.
"""

import logging
from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from ..models import Chunk
from .boosts import BoostFactors, apply_boosts
from .scorer import BM25Scorer
from .stemmer import get_stemmer
from .tokenizer import tokenize

logger = logging.getLogger(__name__)


class PersistedIndex(BaseModel):
    """On-disk index layout (`to_json()` output)"""
    model_config = ConfigDict(populate_by_name=True)

    k1: float = Field(default=1.5, gt=0.0, allow_inf_nan=False)
    b: float = Field(default=0.6, ge=0.0, le=1.0)
    stemmer: str = "suffix"
    chunks: List[Chunk] = Field(default_factory=list)
    build_timestamp: Optional[str] = Field(default=None, alias="buildTimestamp")


@dataclass
class IndexedChunk:
    """Chunk with its derived (non-persisted) token data"""
    chunk: Chunk
    tokens: List[str]
    term_frequency: Counter = field(repr=False)


@dataclass
class SearchResult:
    """Single ranked chunk"""
    chunk: Chunk
    score: float
    matched_terms: List[str]

    def to_dict(self) -> Dict[str, Any]:
        """Result shape handed to prompt/context builders"""
        return {
            "content": self.chunk.content,
            "filePath": self.chunk.file_path,
            "startLine": self.chunk.start_line,
            "endLine": self.chunk.end_line,
            "type": self.chunk.type,
            "score": round(self.score, 3),
            "matchedTerms": list(self.matched_terms),
            "metadata": self.chunk.metadata.to_dict(),
        }


class BM25Index:
    """
    BM25 index: owns the chunk collection and its corpus statistics.
    """

    def __init__(self, k1: float = 1.5, b: float = 0.6, stemmer: str = "suffix"):
        self.scorer = BM25Scorer(k1=k1, b=b)
        self.stemmer = stemmer
        self._stem_fn = get_stemmer(stemmer)
        self.chunks: List[IndexedChunk] = []
        self.document_frequency: Dict[str, int] = {}
        self.average_document_length = 1.0
        self.total_documents = 0
        self.built = False
        self.build_timestamp: Optional[str] = None   # set when restored from disk

    @property
    def k1(self) -> float:
        return self.scorer.k1

    @property
    def b(self) -> float:
        return self.scorer.b

    def _tokenize(self, text: str) -> List[str]:
        return tokenize(text, stemmer=self._stem_fn)

    def add_chunks(self, chunks: Iterable[Chunk]) -> None:
        """Tokenize chunks and add them to the collection"""
        for chunk in chunks:
            tokens = self._tokenize(chunk.content)
            self.chunks.append(IndexedChunk(chunk=chunk, tokens=tokens, term_frequency=Counter(tokens)))
        self.built = False

    def build(self) -> None:
        """Compute document frequency, chunk count and average chunk length"""
        document_frequency: Counter = Counter()
        total_tokens = 0

        for indexed in self.chunks:
            total_tokens += len(indexed.tokens)
            document_frequency.update(indexed.term_frequency.keys())

        self.document_frequency = dict(document_frequency)
        self.total_documents = len(self.chunks)
        self.average_document_length = (
            total_tokens / self.total_documents if self.total_documents > 0 else 1.0
        )
        self.built = True

        logger.debug(
            f"Built BM25 index: {len(self.document_frequency)} unique terms from "
            f"{self.total_documents} chunks (avg {self.average_document_length:.1f} tokens)"
        )

    def search(
        self,
        query_text: str,
        top_k: int = 10,
        min_score: float = 0.1,
        type_filter: Optional[str] = None,
        boost_factors: Optional[Union[BoostFactors, Dict[str, float]]] = None,
        boost_terms: Optional[List[str]] = None,
    ) -> List[SearchResult]:
        """
        Search the index with BM25 scoring.

        Args:
            query_text: Natural language or code query
            top_k: Max results
            min_score: Min relevance score (after boosts)
            type_filter: Only score chunks of this type
            boost_factors: Per-match-type boost multipliers
            boost_terms: Extra vocabulary merged into the query terms
                (biases retrieval without changing the query text used
                for boost matching)

        Returns:
            Results sorted by score, descending
        """
        if not self.built:
            self.build()

        if not isinstance(query_text, str):
            return []

        query_terms = self._tokenize(query_text)
        if boost_terms:
            query_terms.extend(self._tokenize(' '.join(str(t) for t in boost_terms)))

        if not query_terms:
            return []

        if boost_factors is None:
            factors = BoostFactors()
        elif isinstance(boost_factors, BoostFactors):
            factors = boost_factors
        else:
            factors = BoostFactors.model_validate(boost_factors)

        distinct_terms = list(dict.fromkeys(query_terms))
        query_lower = query_text.lower()
        results = []

        for indexed in self.chunks:
            if type_filter and indexed.chunk.type != type_filter:
                continue

            score, matched_terms = self.scorer.score(
                distinct_terms,
                indexed.term_frequency,
                len(indexed.tokens),
                self.document_frequency,
                self.total_documents,
                self.average_document_length,
            )

            if score <= 0:
                continue

            score = apply_boosts(score, indexed.chunk, query_lower, factors)

            if score >= min_score:
                results.append(SearchResult(chunk=indexed.chunk, score=score, matched_terms=matched_terms))

        results.sort(key=lambda r: r.score, reverse=True)
        return results[:top_k]

    def get_stats(self) -> Dict[str, Any]:
        """Index statistics"""
        return {
            "totalChunks": len(self.chunks),
            "totalTerms": len(self.document_frequency),
            "avgDocLen": round(self.average_document_length),
            "byType": dict(Counter(indexed.chunk.type for indexed in self.chunks)),
            "built": self.built,
        }

    def to_json(self) -> Dict[str, Any]:
        """Serialize for disk persistence (tokens are rebuilt on load)"""
        return {
            "k1": self.k1,
            "b": self.b,
            "stemmer": self.stemmer,
            "chunks": [indexed.chunk.to_dict() for indexed in self.chunks],
            "buildTimestamp": datetime.now(timezone.utc).isoformat(),
        }

    @classmethod
    def from_json(cls, data: Dict[str, Any]) -> "BM25Index":
        """
        Restore an index from `to_json()` output.

        Raises:
            pydantic.ValidationError: If k1, b or a stored chunk is malformed
            ValueError: If the stored stemmer is unknown
        """
        persisted = PersistedIndex.model_validate(data)
        index = cls(k1=persisted.k1, b=persisted.b, stemmer=persisted.stemmer)
        index.add_chunks(persisted.chunks)
        index.build()
        index.build_timestamp = persisted.build_timestamp
        return index
