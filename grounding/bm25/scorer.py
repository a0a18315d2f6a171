"""
BM25 scorer with corpus-level IDF.

BM25 (Best Match 25) is a probabilistic ranking function used for information retrieval.

Formula:
    score(term, doc) = idf(term) × (tf × (k1 + 1)) / (tf + k1 × (1 - b + b × dl/avgdl))
    idf(term) = ln((N - df + 0.5) / (df + 0.5) + 1)

Where:
    tf = term frequency in the chunk
    df = number of chunks containing the term
    N = number of chunks in the corpus
    dl = chunk length (number of tokens)
    avgdl = average chunk length over the corpus
    k1 = term frequency saturation parameter (default: 1.5)
    b = length normalization parameter (default: 0.6)

The `+ 1` inside the logarithm keeps idf positive even for terms present in
more than half of the chunks.
"""

import math
from typing import Dict, Iterable, List, Tuple


class BM25Scorer:
    """
    Okapi BM25 scoring against fixed corpus statistics.
    """

    def __init__(self, k1: float = 1.5, b: float = 0.6):
        """
        Initialize BM25 scorer.

        Args:
            k1: Term frequency saturation parameter
                Higher = more weight to repeated terms
                Default: 1.5

            b: Length normalization parameter
                0 = no normalization, 1 = full
                Default: 0.6, lower than the textbook 0.75 so short chunks
                (e.g. a single locator line) are not penalized against long
                method bodies
        """
        self.k1 = k1
        self.b = b

    @staticmethod
    def idf(document_frequency: int, total_documents: int) -> float:
        """Inverse document frequency of a term"""
        return math.log(
            (total_documents - document_frequency + 0.5) / (document_frequency + 0.5) + 1
        )

    def term_weight(self, tf: int, doc_length: int, avg_doc_length: float) -> float:
        """Saturated, length-normalized term frequency"""
        numerator = tf * (self.k1 + 1)
        denominator = tf + self.k1 * (
            1 - self.b + self.b * (doc_length / avg_doc_length)
        )
        return numerator / denominator

    def score(
        self,
        query_terms: Iterable[str],
        doc_term_frequencies: Dict[str, int],
        doc_length: int,
        document_frequency: Dict[str, int],
        total_documents: int,
        avg_doc_length: float,
    ) -> Tuple[float, List[str]]:
        """
        Compute the BM25 score of one chunk for a set of distinct query terms.

        Args:
            query_terms: Distinct tokenized query terms
            doc_term_frequencies: Term frequency map of the chunk {term: count}
            doc_length: Total number of tokens in the chunk
            document_frequency: Corpus document frequency {term: chunks containing it}
            total_documents: Number of chunks in the corpus
            avg_doc_length: Average tokens per chunk

        Returns:
            (score, matched_terms) - matched terms in query order

        Example:
            >>> scorer = BM25Scorer()
            >>> scorer.score(
            ...     query_terms=["login", "button"],
            ...     doc_term_frequencies={"login": 3, "button": 1, "page": 2},
            ...     doc_length=6,
            ...     document_frequency={"login": 1, "button": 4, "page": 5},
            ...     total_documents=5,
            ...     avg_doc_length=8.0,
            ... )
            (2.74..., ['login', 'button'])
        """
        score = 0.0
        matched_terms = []

        for term in query_terms:
            tf = doc_term_frequencies.get(term, 0)

            if tf == 0:
                continue

            matched_terms.append(term)
            df = document_frequency.get(term, 0)
            score += self.idf(df, total_documents) * self.term_weight(tf, doc_length, avg_doc_length)

        return score, matched_terms
