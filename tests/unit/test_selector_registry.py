"""
Unit tests for the selector registry: ingestion, merge policy, ranking
and persistence.
"""

import json

import pytest
from grounding.models import SelectorSource
from grounding.selectors import SelectorRegistry

pytestmark = pytest.mark.unit

LOGIN_URL = "https://app.test/login"


def _exploration(elements, url=LOGIN_URL, **extra):
    return {"snapshots": [{"url": url, "elements": elements}], **extra}


def _entry(name, selector_type, reliability, page="/login", value=None):
    return {
        "elementName": name,
        "selectorType": selector_type,
        "selectorValue": value or f"{selector_type}:{name}",
        "page": page,
        "source": "live-exploration",
        "reliability": reliability,
    }


@pytest.fixture
def page_object_registry(login_page_source):
    registry = SelectorRegistry()
    registry.build_from_page_objects(
        [(login_page_source, "tests/pageobjects/LoginPage.js")],
        page_urls={"LoginPage": LOGIN_URL},
    )
    return registry


class TestPageObjectIngestion:
    """Static declarations from page object sources"""

    def test_field_bound_locators(self, login_page_source):
        """Test one entry per field-bound locator, classified and scored"""
        registry = SelectorRegistry()
        count = registry.build_from_page_objects([(login_page_source, "tests/pageobjects/LoginPage.js")])

        assert count == 5
        by_name = {e.element_name: e for e in registry.entries}
        assert by_name["usernameInput"].selector_type == "data-qa"
        assert by_name["usernameInput"].reliability == 0.95
        assert by_name["usernameInput"].selector_value == "locator('[data-qa=\"username\"]')"
        assert by_name["passwordInput"].selector_type == "getByLabel"
        assert by_name["submitButton"].selector_type == "getByRole"
        assert by_name["submitButton"].selector_value == "getByRole('button')"
        assert by_name["errorBanner"].selector_type == "css-class"
        assert by_name["legacyLink"].selector_type == "xpath"
        assert by_name["legacyLink"].reliability == 0.30

    def test_entry_provenance(self, login_page_source):
        """Test static entries carry page object name and file"""
        registry = SelectorRegistry()
        registry.build_from_page_objects([(login_page_source, "tests/pageobjects/LoginPage.js")])
        entry = registry.entries[0]

        assert entry.source == SelectorSource.STATIC_DECLARATION.value
        assert entry.page_name == "LoginPage"
        assert entry.page is None
        assert entry.metadata["file"] == "tests/pageobjects/LoginPage.js"

    def test_page_urls(self, page_object_registry):
        """Test page URLs mapped from page object names"""
        assert all(e.page == LOGIN_URL for e in page_object_registry.entries)

    def test_unbound_locators_ignored(self, search_helper_source):
        """Test locators outside fields not registered"""
        registry = SelectorRegistry()
        assert registry.build_from_page_objects([(search_helper_source, "utils/search.js")]) == 0

    def test_data_qa_attribute_upgrades_type(self):
        """Test data-qa attribute in any locator classifies as data-qa"""
        content = "this.go = page.getByText('[data-qa=\"go\"]');"
        registry = SelectorRegistry()
        registry.build_from_page_objects([(content, "pages/GoPage.js")])

        assert registry.entries[0].selector_type == "data-qa"
        assert registry.entries[0].reliability == 0.95

    def test_broken_document_skipped(self, login_page_source):
        """Test unreadable document skipped"""
        registry = SelectorRegistry()
        count = registry.build_from_page_objects([
            (None, "pages/Broken.js"),
            (login_page_source, "pages/LoginPage.js"),
        ])
        assert count == 5

    def test_custom_reliability_scores(self, login_page_source):
        """Test reliability table override"""
        registry = SelectorRegistry(reliability_scores={"xpath": 0.1})
        registry.build_from_page_objects([(login_page_source, "pages/LoginPage.js")])
        assert registry.get_element_selectors("legacyLink")[0].reliability == 0.1


class TestExplorationIngestion:
    """Live exploration snapshots"""

    ELEMENTS = [
        {"role": "button", "name": "Submit", "dataQa": "submit-btn"},
        {"role": "textbox", "name": "Email"},
        {"name": "Forgot password?"},
        {"ref": "e42"},
        {"ariaLabel": "Close"},
        {"testId": "cart"},
        {},
    ]

    def test_strategy_per_element(self):
        """Test strongest signal chosen per element"""
        registry = SelectorRegistry()
        count = registry.build_from_exploration([
            ("T-7-exploration.json", _exploration(self.ELEMENTS, ticketId="T-7", timestamp="2026-03-01T10:00:00Z")),
        ])

        assert count == 6
        assert [(e.element_name, e.selector_type) for e in registry.entries] == [
            ("Submit", "data-qa"),
            ("Email", "getByRole"),
            ("Forgot password?", "getByText"),
            ("e42", "locator"),
            ("Close", "aria-label"),
            ("cart", "getByTestId"),
        ]
        assert registry.entries[0].selector_value == "locator('[data-qa=\"submit-btn\"]')"
        assert registry.entries[1].selector_value == "getByRole('textbox', { name: 'Email' })"
        assert registry.entries[3].selector_value == "ref:e42"

    def test_entry_provenance(self):
        """Test exploration entries carry page, session and timestamp"""
        registry = SelectorRegistry()
        registry.build_from_exploration([
            ("x.json", _exploration(self.ELEMENTS[:1], sessionId="S-1", timestamp="2026-03-01T10:00:00Z")),
        ])
        entry = registry.entries[0]

        assert entry.source == SelectorSource.LIVE_EXPLORATION.value
        assert entry.page == LOGIN_URL
        assert entry.page_name == "S-1"
        assert entry.last_verified == "2026-03-01T10:00:00Z"

    def test_session_id_from_file_name(self):
        """Test session id derived from the file name"""
        registry = SelectorRegistry()
        registry.build_from_exploration([("runs/T-100-exploration.json", _exploration(self.ELEMENTS[:1]))])
        assert registry.entries[0].page_name == "T-100"

    def test_alternate_field_names(self):
        """Test pageUrl and accessibilityTree field names"""
        document = {"snapshots": [{"pageUrl": "/cart", "accessibilityTree": [{"role": "link", "name": "Home"}]}]}
        registry = SelectorRegistry()
        assert registry.build_from_exploration([("cart.json", document)]) == 1
        assert registry.entries[0].page == "/cart"

    def test_json_text_and_malformed_documents(self):
        """Test JSON text accepted and malformed text skipped"""
        registry = SelectorRegistry()
        count = registry.build_from_exploration([
            ("good.json", json.dumps(_exploration(self.ELEMENTS[:2]))),
            ("bad.json", "{not json"),
        ])
        assert count == 2


class TestVerifiedMerge:
    """Externally verified mappings"""

    @pytest.fixture
    def registry(self):
        registry = SelectorRegistry(reliability_scores={"getByRole": 0.6})
        registry.build_from_exploration([("login.json", _exploration([{"role": "button", "name": "Submit"}]))])
        return registry

    def test_higher_confidence_raises_reliability(self, registry):
        """Test higher verified confidence replaces reliability"""
        count = registry.merge_verified([{
            "page": "/login",
            "element": "Submit",
            "confidence": 0.9,
            "stableSelector": '[data-qa="submit"]',
            "lastUpdated": "2026-01-01T00:00:00Z",
        }])
        entry = registry.entries[0]

        assert count == 1
        assert len(registry.entries) == 1
        assert entry.reliability == 0.9
        assert entry.selector_value == '[data-qa="submit"]'
        assert entry.source == SelectorSource.EXTERNALLY_VERIFIED.value
        assert entry.last_verified == "2026-01-01T00:00:00Z"

    def test_lower_confidence_keeps_reliability_but_overwrites_value(self, registry):
        """Test lower confidence keeps reliability, value still overwritten"""
        registry.merge_verified([{
            "page": "/login",
            "element": "Submit",
            "confidence": 0.3,
            "stable": "#submit",
            "lastUpdated": "2026-02-01T00:00:00Z",
        }])
        entry = registry.entries[0]

        assert entry.reliability == 0.6
        assert entry.selector_value == "#submit"
        assert entry.source == SelectorSource.EXTERNALLY_VERIFIED.value
        assert entry.last_verified == "2026-02-01T00:00:00Z"

    def test_unmatched_mapping_added(self, registry):
        """Test new entry for a mapping with no match"""
        registry.merge_verified([{
            "page": "/cart",
            "element": "Checkout",
            "stable": "getByRole('button')",
            "tried": ["#checkout"],
        }])
        entry = registry.get_element_selectors("Checkout")[0]

        assert len(registry.entries) == 2
        assert entry.selector_type == "getByRole"
        assert entry.reliability == 0.8
        assert entry.metadata == {"tried": ["#checkout"]}

    def test_explicit_zero_confidence_kept(self, registry):
        """Test confidence 0 not replaced by the default"""
        registry.merge_verified([{"page": "/cart", "element": "Logo", "confidence": 0, "stable": ".logo"}])
        assert registry.get_element_selectors("Logo")[0].reliability == 0.0

    def test_malformed_mapping_skipped(self, registry):
        """Test mapping without element or selector"""
        assert registry.merge_verified([{"page": "/login"}]) == 0
        assert len(registry.entries) == 1


class TestRecommend:
    """Ranking and filtering"""

    def test_ranked_by_reliability(self, page_object_registry):
        """Test descending reliability order"""
        names = [e.element_name for e in page_object_registry.recommend("/login")]
        assert names == ["usernameInput", "submitButton", "passwordInput", "errorBanner", "legacyLink"]

    def test_near_tie_broken_by_priority(self):
        """Test reliabilities within 0.05 ordered by selector priority"""
        registry = SelectorRegistry.from_json({"entries": [
            _entry("a", "xpath", 0.96),
            _entry("b", "data-qa", 0.93),
        ]})
        assert [e.element_name for e in registry.recommend("/login")] == ["b", "a"]

    def test_clear_gap_ignores_priority(self):
        """Test reliability gap beats priority"""
        registry = SelectorRegistry.from_json({"entries": [
            _entry("a", "css-class", 0.5),
            _entry("b", "xpath", 0.99),
        ]})
        assert [e.element_name for e in registry.recommend("/login")] == ["b", "a"]

    def test_unknown_type_ranks_last_in_tie(self):
        """Test unknown selector type last among ties"""
        registry = SelectorRegistry.from_json({"entries": [
            _entry("a", "mystery", 0.9),
            _entry("b", "xpath", 0.9),
        ]})
        assert [e.element_name for e in registry.recommend("/login")] == ["b", "a"]

    def test_custom_priority_order(self):
        """Test priority order override"""
        registry = SelectorRegistry.from_json(
            {"entries": [_entry("a", "xpath", 0.96), _entry("b", "data-qa", 0.93)]},
            priority_order=["xpath", "data-qa"],
        )
        assert [e.element_name for e in registry.recommend("/login")] == ["a", "b"]

    def test_element_hint(self, page_object_registry):
        """Test hint narrows to matching elements"""
        assert [e.element_name for e in page_object_registry.recommend("/login", "submit")] == ["submitButton"]
        assert [e.element_name for e in page_object_registry.recommend("/login", "error banner")] == ["errorBanner"]

    def test_unmatched_hint_falls_back(self, page_object_registry):
        """Test unmatched hint returns all page entries"""
        assert len(page_object_registry.recommend("/login", "nonexistent")) == 5

    def test_page_matching_both_directions(self):
        """Test page match when either URL contains the other"""
        registry = SelectorRegistry.from_json({"entries": [
            _entry("a", "data-qa", 0.9, page="/login"),
            _entry("b", "data-qa", 0.9, page="https://app.test/login"),
            _entry("c", "data-qa", 0.9, page="/cart"),
        ]})
        assert {e.element_name for e in registry.recommend("https://app.test/login?next=1")} == {"a", "b"}
        assert {e.element_name for e in registry.recommend("/cart/items")} == {"c"}
        assert {e.element_name for e in registry.recommend("login")} == {"a", "b"}

    def test_no_page_returns_all(self, login_page_source):
        """Test empty page URL returns every entry"""
        registry = SelectorRegistry()
        registry.build_from_page_objects([(login_page_source, "pages/LoginPage.js")])
        assert len(registry.recommend("")) == 5
        assert registry.recommend("/login") == []


class TestLookups:
    """Test element lookups, stability scores and stats"""

    @pytest.mark.parametrize("selector, score", [
        ("button[data-qa=submit]", 0.95),
        ("getByRole('button')", 0.85),
        ("#main", 0.60),
        (".btn", 0.50),
        ("div > span", 0.55),
        ("//div[@id='x']", 0.30),
        ("", 0.5),
    ])
    def test_stability_score(self, selector, score):
        """Test stability score per selector form"""
        assert SelectorRegistry().get_stability_score(selector) == score

    def test_element_selectors(self, page_object_registry):
        """Test lookup by element name"""
        entries = page_object_registry.get_element_selectors("submitButton")
        assert [e.selector_type for e in entries] == ["getByRole"]
        assert page_object_registry.get_element_selectors("missing") == []

    def test_stats(self, page_object_registry):
        """Test registry stats by source, page and type"""
        stats = page_object_registry.get_stats()
        assert stats["totalSelectors"] == 5
        assert stats["bySource"] == {"static-declaration": 5}
        assert stats["byPage"] == {"LoginPage": 5}
        assert stats["byType"]["data-qa"] == 1
        assert stats["avgReliability"] == 0.67

    def test_empty_stats(self):
        """Test stats of an empty registry"""
        assert SelectorRegistry().get_stats()["avgReliability"] == 0


class TestPersistence:
    """Test JSON round-trip"""

    def test_round_trip(self, page_object_registry):
        """Test entries and lookups survive a reload"""
        payload = json.loads(json.dumps(page_object_registry.to_json()))
        restored = SelectorRegistry.from_json(payload)

        assert restored.entries == page_object_registry.entries
        assert restored.recommend("/login") == page_object_registry.recommend("/login")
        assert restored.get_element_selectors("submitButton")

    def test_camel_case_keys(self, page_object_registry):
        """Test persisted camelCase keys"""
        entry = page_object_registry.to_json()["entries"][0]
        assert entry["elementName"] == "usernameInput"
        assert entry["selectorType"] == "data-qa"
        assert entry["source"] == "static-declaration"
