"""Pytest configuration shared by unit and integration tests"""

import sys
from pathlib import Path

import pytest

# Add project root to path for grounding imports
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from grounding.models import Chunk, ChunkMetadata

LOGIN_PAGE_SOURCE = """const { expect } = require('@playwright/test');

class LoginPage {
    constructor(page) {
        this.page = page;
        this.usernameInput = page.locator('[data-qa="username"]');
        this.passwordInput = page.getByLabel('Password');
        this.submitButton = page.getByRole('button');
        this.errorBanner = page.locator('.error-banner');
        this.legacyLink = page.locator('//a[@id="legacy"]');
    }

    async login(user, pass) {
        await this.usernameInput.fill(user);
        await this.passwordInput.fill(pass);
        await this.submitButton.click();
    }

    async getErrorText() {
        return this.errorBanner.textContent();
    }
}

module.exports = { LoginPage };"""

SEARCH_HELPER_SOURCE = """async function searchProducts(page, term) {
    await page.fill('#search', term);
    await page.click('#search-submit');
    return page.locator('.product-card').count();
}

module.exports = searchProducts;"""


@pytest.fixture
def login_page_source():
    """Playwright page object with five field-bound locators"""
    return LOGIN_PAGE_SOURCE


@pytest.fixture
def search_helper_source():
    return SEARCH_HELPER_SOURCE


@pytest.fixture
def make_chunk():
    """Build a Chunk spanning the whole content"""
    def _make(file_path, content, type="unknown", metadata=None):
        end_line = len(content.split('\n'))
        return Chunk(
            id=Chunk.make_id(file_path, 1, end_line),
            file_path=file_path,
            start_line=1,
            end_line=end_line,
            content=content,
            type=type,
            metadata=metadata or ChunkMetadata(),
        )
    return _make
