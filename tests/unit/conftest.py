"""Unit test configuration - no filesystem, no network"""

import pytest

from grounding.bm25.index import BM25Index


@pytest.fixture
def small_corpus(make_chunk):
    """Five chunks of mixed types covering login, search and checkout code"""
    return [
        make_chunk("tests/pageobjects/LoginPage.js",
                   "async login(user, pass) {\n    await this.submitButton.click();\n}",
                   type="pageObject"),
        make_chunk("tests/pageobjects/SearchPage.js",
                   "async search(term) {\n    await this.searchInput.fill(term);\n}",
                   type="pageObject"),
        make_chunk("tests/utils/dates.js",
                   "function formatDate(date) {\n    return date.toISOString();\n}",
                   type="utility"),
        make_chunk("tests/business-functions/checkout.js",
                   "async function checkout(cart) {\n    await payWithCard(cart.total);\n}",
                   type="businessFunction"),
        make_chunk("tests/test-data/users.json",
                   '{ "user": "standard_user", "role": "shopper" }',
                   type="testData"),
    ]


@pytest.fixture
def built_index(small_corpus):
    index = BM25Index()
    index.add_chunks(small_corpus)
    index.build()
    return index
