"""Shared fixtures for integration tests

Integration tests run the full pipeline (chunk → index → registry → persist)
against a temporary directory. No network, no external services.

To run integration tests only:
    pytest tests/integration/
    pytest -m integration
"""

import logging

import pytest

from grounding.config import GroundingSettings

LOGIN_URL = "https://app.test/login"

CHECKOUT_SOURCE = """async function checkout(cart) {
    await payWithCard(cart.total);
}

module.exports = checkout;"""


@pytest.fixture
def project_documents(login_page_source, search_helper_source):
    """(content, file_path, type) triples of a small Playwright project"""
    return [
        (login_page_source, "tests/pageobjects/LoginPage.js", "pageObject"),
        (search_helper_source, "tests/utils/search.js", "utility"),
        (CHECKOUT_SOURCE, "tests/business-functions/checkout.js", "businessFunction"),
    ]


@pytest.fixture
def exploration_snapshot():
    return (
        "runs/T-42-exploration.json",
        {
            "timestamp": "2026-03-01T10:00:00Z",
            "snapshots": [{
                "url": LOGIN_URL,
                "elements": [
                    {"role": "button", "name": "Submit", "dataQa": "submit-btn"},
                    {"role": "link", "name": "Forgot password"},
                ],
            }],
        },
    )


@pytest.fixture
def settings():
    return GroundingSettings.model_validate({
        "featureMap": [{
            "name": "Checkout",
            "keywords": ["billing"],
            "businessFunctions": ["tests/business-functions/checkout.js"],
        }],
    })


@pytest.fixture
def restore_root_logger():
    """Put back the root handlers replaced by setup_logging()"""
    root_logger = logging.getLogger()
    handlers = list(root_logger.handlers)
    level = root_logger.level
    yield root_logger
    for handler in root_logger.handlers:
        if handler not in handlers:
            handler.close()
    root_logger.handlers[:] = handlers
    root_logger.setLevel(level)
