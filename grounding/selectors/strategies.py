"""
Selector strategies and their default reliability.

Two closed vocabularies:
- SelectorType: what kind of selector an entry is (data-qa attribute,
  ARIA role, xpath, ...). Each type carries a default reliability score,
  an estimate of how well it survives UI changes.
- AccessMethod: the Playwright accessor used to declare a locator
  (locator, getByRole, ...). Each method knows how to render itself and
  which SelectorType it produces for a given selector argument.
"""

import re
from enum import Enum
from typing import Any, Dict, Optional, Tuple


class SelectorType(str, Enum):
    DATA_QA = "data-qa"
    DATA_TEST_ID = "data-test-id"
    DATA_TESTID = "data-testid"
    GET_BY_ROLE = "getByRole"
    ARIA_LABEL = "aria-label"
    GET_BY_TEXT = "getByText"
    GET_BY_LABEL = "getByLabel"
    GET_BY_PLACEHOLDER = "getByPlaceholder"
    GET_BY_TEST_ID = "getByTestId"
    GET_BY_ALT_TEXT = "getByAltText"
    CSS_CLASS = "css-class"
    CSS_ID = "css-id"
    LOCATOR = "locator"
    XPATH = "xpath"
    UNKNOWN = "unknown"

    @property
    def default_reliability(self) -> float:
        return DEFAULT_RELIABILITY.get(self.value, FALLBACK_RELIABILITY)


# Insertion order doubles as the default tie-break priority order
DEFAULT_RELIABILITY: Dict[str, float] = {
    SelectorType.DATA_QA.value: 0.95,
    SelectorType.DATA_TEST_ID.value: 0.95,
    SelectorType.DATA_TESTID.value: 0.95,
    SelectorType.GET_BY_ROLE.value: 0.85,
    SelectorType.ARIA_LABEL.value: 0.80,
    SelectorType.GET_BY_TEXT.value: 0.70,
    SelectorType.GET_BY_LABEL.value: 0.75,
    SelectorType.GET_BY_PLACEHOLDER.value: 0.70,
    SelectorType.GET_BY_TEST_ID.value: 0.90,
    SelectorType.GET_BY_ALT_TEXT.value: 0.65,
    SelectorType.CSS_CLASS.value: 0.50,
    SelectorType.CSS_ID.value: 0.60,
    SelectorType.LOCATOR.value: 0.55,
    SelectorType.XPATH.value: 0.30,
}

FALLBACK_RELIABILITY = 0.5

DATA_QA_ATTRIBUTE = re.compile(r'\[data-(?:qa|test-id|testid)')
ARIA_LABEL_ATTRIBUTE = re.compile(r'\[aria-label')


def classify_css_selector(selector: str) -> SelectorType:
    """Classify a raw locator() argument"""
    if DATA_QA_ATTRIBUTE.search(selector):
        return SelectorType.DATA_QA
    if ARIA_LABEL_ATTRIBUTE.search(selector):
        return SelectorType.ARIA_LABEL
    if selector.startswith('#'):
        return SelectorType.CSS_ID
    if selector.startswith('//') or selector.startswith('xpath='):
        return SelectorType.XPATH
    return SelectorType.CSS_CLASS


class AccessMethod(str, Enum):
    LOCATOR = "locator"
    GET_BY_ROLE = "getByRole"
    GET_BY_TEXT = "getByText"
    GET_BY_LABEL = "getByLabel"
    GET_BY_PLACEHOLDER = "getByPlaceholder"
    GET_BY_TEST_ID = "getByTestId"
    GET_BY_ALT_TEXT = "getByAltText"

    def selector_type(self, selector: str) -> SelectorType:
        """SelectorType produced by this accessor for a given argument"""
        if self is AccessMethod.LOCATOR:
            return classify_css_selector(selector)
        return SelectorType(self.value)

    def render(self, selector: str) -> str:
        """Canonical call rendering, e.g. getByRole('button')"""
        return f"{self.value}('{selector}')"

    @classmethod
    def parse(cls, method: str) -> Optional["AccessMethod"]:
        try:
            return cls(method)
        except ValueError:
            return None


def classify_selector_string(selector: Optional[str]) -> SelectorType:
    """
    Classify any selector string: a rendered accessor call
    (getByRole('button')), a raw CSS selector or an xpath.

    Examples:
        >>> classify_selector_string("button[data-qa=submit]")
        <SelectorType.DATA_QA: 'data-qa'>
        >>> classify_selector_string("//div[@id='x']")
        <SelectorType.XPATH: 'xpath'>
    """
    if not selector:
        return SelectorType.UNKNOWN
    s = selector.lower()
    if 'getbyrole' in s:
        return SelectorType.GET_BY_ROLE
    if 'getbytext' in s:
        return SelectorType.GET_BY_TEXT
    if 'getbylabel' in s:
        return SelectorType.GET_BY_LABEL
    if 'getbytestid' in s:
        return SelectorType.GET_BY_TEST_ID
    if 'data-qa' in s or 'data-test' in s:
        return SelectorType.DATA_QA
    if 'aria-label' in s:
        return SelectorType.ARIA_LABEL
    if 'xpath' in s or s.startswith('//'):
        return SelectorType.XPATH
    if s.startswith('#'):
        return SelectorType.CSS_ID
    if s.startswith('.'):
        return SelectorType.CSS_CLASS
    return SelectorType.LOCATOR


def _first(element: Dict[str, Any], *keys: str) -> Optional[Any]:
    for key in keys:
        value = element.get(key)
        if value:
            return value
    return None


def infer_element_strategy(element: Dict[str, Any]) -> Tuple[SelectorType, str]:
    """
    Pick the strongest identifying signal of a live UI element and render a
    selector for it.

    Priority: data-qa > test id > ARIA role > ARIA label > visible name > ref id.

    Args:
        element: Snapshot element {role, name, ref, dataQa / data-qa,
            testId / data-testid, ariaLabel / aria-label}

    Returns:
        (selector type, descriptive selector value)
    """
    data_qa = _first(element, 'dataQa', 'data-qa')
    test_id = _first(element, 'testId', 'data-testid')
    role = element.get('role')
    name = element.get('name')
    aria_label = _first(element, 'ariaLabel', 'aria-label')
    ref = element.get('ref')

    if data_qa:
        return SelectorType.DATA_QA, f"locator('[data-qa=\"{data_qa}\"]')"
    if test_id:
        return SelectorType.GET_BY_TEST_ID, f"getByTestId('{test_id}')"
    if role and name:
        return SelectorType.GET_BY_ROLE, f"getByRole('{role}', {{ name: '{name}' }})"
    if role:
        return SelectorType.GET_BY_ROLE, f"getByRole('{role}')"
    if aria_label:
        return SelectorType.ARIA_LABEL, f"locator('[aria-label=\"{aria_label}\"]')"
    if name:
        return SelectorType.GET_BY_TEXT, f"getByText('{name}')"
    return SelectorType.LOCATOR, f"ref:{ref}" if ref else "unknown"
