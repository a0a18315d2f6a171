"""
Unit tests for BM25 scoring.
"""

import math

import pytest
from grounding.bm25.scorer import BM25Scorer

pytestmark = pytest.mark.unit


class TestIDF:
    """Test inverse document frequency"""

    def test_rare_term_higher_idf(self):
        """Test that rarer terms weigh more"""
        assert BM25Scorer.idf(1, 100) > BM25Scorer.idf(50, 100)

    def test_idf_positive_for_common_terms(self):
        """The +1 inside the log keeps idf positive when df > N/2"""
        assert BM25Scorer.idf(4, 5) > 0
        assert BM25Scorer.idf(5, 5) > 0

    def test_idf_formula(self):
        """Test idf = ln((N - df + 0.5) / (df + 0.5) + 1)"""
        assert BM25Scorer.idf(1, 5) == pytest.approx(math.log((5 - 1 + 0.5) / (1 + 0.5) + 1))


class TestBM25Scorer:
    """Test BM25 scoring logic"""

    STATS = dict(
        document_frequency={"login": 1, "button": 4, "page": 5},
        total_documents=5,
        avg_doc_length=8.0,
    )

    def test_defaults(self):
        """Test default k1 and b"""
        scorer = BM25Scorer()
        assert scorer.k1 == 1.5
        assert scorer.b == 0.6

    def test_matched_terms_in_query_order(self):
        """Test matched terms reported in query order"""
        scorer = BM25Scorer()
        score, matched = scorer.score(
            ["missing", "button", "login"], {"login": 3, "button": 1}, 6, **self.STATS
        )
        assert score > 0
        assert matched == ["button", "login"]

    def test_no_match_scores_zero(self):
        """Test chunk without query terms"""
        scorer = BM25Scorer()
        score, matched = scorer.score(["checkout"], {"login": 3}, 6, **self.STATS)
        assert score == 0.0
        assert matched == []

    def test_empty_query(self):
        """Test empty query scores zero"""
        scorer = BM25Scorer()
        assert scorer.score([], {"login": 3}, 6, **self.STATS) == (0.0, [])

    def test_monotonic_in_term_frequency(self):
        """Higher raw frequency never lowers the score (fixed length and corpus)"""
        scorer = BM25Scorer()
        scores = [
            scorer.score(["login"], {"login": tf}, 20, **self.STATS)[0]
            for tf in range(1, 21)
        ]
        assert scores == sorted(scores)

    def test_term_frequency_saturates(self):
        """Test diminishing gain from repeated terms"""
        scorer = BM25Scorer()
        gain_low = scorer.term_weight(2, 10, 10.0) - scorer.term_weight(1, 10, 10.0)
        gain_high = scorer.term_weight(20, 10, 10.0) - scorer.term_weight(19, 10, 10.0)
        assert gain_high < gain_low

    def test_length_normalization(self):
        """Shorter chunks score higher for the same tf when b > 0"""
        scorer = BM25Scorer()
        short, _ = scorer.score(["login"], {"login": 1}, 4, **self.STATS)
        long, _ = scorer.score(["login"], {"login": 1}, 40, **self.STATS)
        assert short > long

    def test_no_length_normalization(self):
        """Test b = 0 ignores chunk length"""
        scorer = BM25Scorer(b=0.0)
        short, _ = scorer.score(["login"], {"login": 1}, 4, **self.STATS)
        long, _ = scorer.score(["login"], {"login": 1}, 40, **self.STATS)
        assert short == pytest.approx(long)
