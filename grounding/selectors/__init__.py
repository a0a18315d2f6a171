"""
Selector knowledge base: strategies, reliability scores and the registry.

Usage:
    from grounding.selectors import SelectorRegistry

    registry = SelectorRegistry()
    registry.build_from_page_objects([(content, "pages/LoginPage.js")])
    registry.build_from_exploration([("login-exploration.json", raw_json)])
    registry.merge_verified(trust_store_mappings)

    best = registry.recommend("/login", "submit button")[0]
"""

from .strategies import (
    DEFAULT_RELIABILITY,
    AccessMethod,
    SelectorType,
    classify_selector_string,
    infer_element_strategy,
)
from .registry import SelectorRegistry, VerifiedMapping

__all__ = [
    'DEFAULT_RELIABILITY',
    'AccessMethod',
    'SelectorType',
    'classify_selector_string',
    'infer_element_strategy',
    'SelectorRegistry',
    'VerifiedMapping',
]
