"""
Selector registry: a scored knowledge base of UI element selectors.

Entries come from three provenance channels, ingested in this order on every
build:
1. Static declarations: locator fields declared in page object sources
   (`this.submitButton = page.locator('[data-qa="submit"]')`)
2. Live exploration: accessibility snapshots of visited pages
3. Externally verified mappings: selectors proven stable across runs

Each entry carries a reliability score derived from its selector type
(configurable), its provenance, the page it belongs to and when it was last
verified. `recommend()` ranks entries for a page by reliability, breaking
near-ties (within 0.05) by a configurable selector-type priority order.
"""

import json
import logging
from collections import Counter, defaultdict
from datetime import datetime, timezone
from functools import cmp_to_key
from pathlib import PurePath
from typing import Any, Dict, Iterable, List, Optional, Tuple, Union

from pydantic import AliasChoices, BaseModel, Field, ValidationError

from ..models import SelectorEntry, SelectorSource
from ..scanners import StructuralScanner, get_scanner
from .strategies import (
    DATA_QA_ATTRIBUTE,
    DEFAULT_RELIABILITY,
    FALLBACK_RELIABILITY,
    AccessMethod,
    SelectorType,
    classify_selector_string,
    infer_element_strategy,
)

logger = logging.getLogger(__name__)

TIE_EPSILON = 0.05
DEFAULT_VERIFIED_CONFIDENCE = 0.8
EXPLORATION_SUFFIX = "-exploration.json"
UNRANKED = 999


class VerifiedMapping(BaseModel):
    """Selector mapping proven stable by earlier runs (cross-run trust store)"""
    page: Optional[str] = None
    element: str
    confidence: Optional[float] = None
    stable_selector: str = Field(validation_alias=AliasChoices("stableSelector", "stable", "stable_selector"))
    tried_alternatives: List[str] = Field(
        default_factory=list,
        validation_alias=AliasChoices("triedAlternatives", "tried", "tried_alternatives"),
    )
    last_updated: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("lastUpdated", "last_updated"),
    )


class SelectorRegistry:
    """Centralized registry of known selectors across pages"""

    def __init__(
        self,
        reliability_scores: Optional[Dict[str, float]] = None,
        priority_order: Optional[List[str]] = None,
        scanner: Optional[StructuralScanner] = None,
    ):
        """
        Args:
            reliability_scores: Overrides of the default per-type reliability table
            priority_order: Selector types in tie-break order (default: table order)
            scanner: Structural scanner for page object sources
        """
        self.entries: List[SelectorEntry] = []
        self.reliability_scores = {**DEFAULT_RELIABILITY, **(reliability_scores or {})}
        self.priority_order = list(priority_order) if priority_order else list(DEFAULT_RELIABILITY)
        self.scanner = scanner or get_scanner("javascript")
        self._by_page: Dict[str, List[SelectorEntry]] = defaultdict(list)
        self._by_element: Dict[str, List[SelectorEntry]] = defaultdict(list)

    def reliability_for(self, selector_type: Union[SelectorType, str]) -> float:
        key = selector_type.value if isinstance(selector_type, SelectorType) else selector_type
        return self.reliability_scores.get(key, FALLBACK_RELIABILITY)

    # ─── Ingestion ───────────────────────────────────────────────────

    def build_from_page_objects(
        self,
        documents: Iterable[Tuple[str, str]],
        page_urls: Optional[Dict[str, str]] = None,
    ) -> int:
        """
        Extract field-bound locator declarations from page object sources.

        Args:
            documents: (content, file_path) pairs
            page_urls: Optional page name (file stem) → URL mapping, so static
                entries can be matched by page

        Returns:
            Number of selectors extracted
        """
        count = 0
        page_urls = page_urls or {}

        for content, file_path in documents:
            try:
                page_name = PurePath(file_path).stem
                selectors = self._extract_declarations(content, page_name, file_path)
            except Exception as e:
                logger.warning(f"Skipping page object {file_path}: {e}")
                continue

            for entry in selectors:
                entry.page = page_urls.get(page_name)
                self._add_entry(entry)
                count += 1

        logger.info(f"Extracted {count} selectors from page objects")
        return count

    def build_from_exploration(self, snapshots: Iterable[Tuple[str, Union[str, Dict[str, Any]]]]) -> int:
        """
        Extract selectors from live exploration snapshot documents.

        Args:
            snapshots: (source name, document) pairs. The document is JSON text
                or an already-parsed dict {sessionId|ticketId, timestamp,
                snapshots: [{url|pageUrl, elements|accessibilityTree: [...]}]}

        Returns:
            Number of selectors extracted
        """
        count = 0

        for source_name, document in snapshots:
            try:
                data = json.loads(document) if isinstance(document, (str, bytes)) else document
                entries = self._entries_from_snapshot(data, source_name)
            except Exception as e:
                logger.warning(f"Skipping exploration snapshot {source_name}: {e}")
                continue

            for entry in entries:
                self._add_entry(entry)
                count += 1

        logger.info(f"Extracted {count} selectors from exploration snapshots")
        return count

    def merge_verified(self, mappings: Iterable[Union[VerifiedMapping, Dict[str, Any]]]) -> int:
        """
        Merge externally verified selector mappings.

        A mapping matching an existing entry (same element name, mapping page
        contained in the entry page) raises its reliability to the mapping
        confidence when higher, and always replaces its selector value,
        source and verification time. Other mappings become new entries.

        Returns:
            Number of entries enriched or added
        """
        count = 0

        for raw in mappings:
            try:
                mapping = raw if isinstance(raw, VerifiedMapping) else VerifiedMapping.model_validate(raw)
            except ValidationError as e:
                logger.warning(f"Skipping malformed verified mapping: {e.error_count()} errors")
                continue

            confidence = mapping.confidence if mapping.confidence is not None else DEFAULT_VERIFIED_CONFIDENCE
            existing = self._find_entry(mapping.page, mapping.element)

            if existing is not None:
                # TODO: reclassify selector_type when the verified value changes strategy
                existing.reliability = max(existing.reliability, confidence)
                existing.selector_value = mapping.stable_selector
                existing.source = SelectorSource.EXTERNALLY_VERIFIED.value
                existing.last_verified = mapping.last_updated
            else:
                self._add_entry(SelectorEntry(
                    element_name=mapping.element,
                    selector_type=classify_selector_string(mapping.stable_selector).value,
                    selector_value=mapping.stable_selector,
                    page=mapping.page,
                    page_name=mapping.page,
                    source=SelectorSource.EXTERNALLY_VERIFIED,
                    reliability=confidence,
                    last_verified=mapping.last_updated,
                    metadata={"tried": list(mapping.tried_alternatives)},
                ))
            count += 1

        logger.info(f"Merged {count} verified selector mappings")
        return count

    # ─── Queries ─────────────────────────────────────────────────────

    def recommend(self, page_url: Optional[str], element_hint: Optional[str] = None) -> List[SelectorEntry]:
        """
        Get selector recommendations for a page.

        Args:
            page_url: Full or partial page URL (empty = all pages)
            element_hint: Optional element name/description to filter by

        Returns:
            Entries ranked by reliability, near-ties broken by priority order
        """
        candidates = self.get_page_selectors(page_url)

        if element_hint:
            hint = element_hint.lower()
            words = hint.split()

            def matches(entry: SelectorEntry) -> bool:
                name = (entry.element_name or '').lower()
                selector = (entry.selector_value or '').lower()
                return (
                    hint in name or hint in selector
                    or any(w in name or w in selector for w in words)
                )

            filtered = [e for e in candidates if matches(e)]
            if filtered:
                candidates = filtered

        return sorted(candidates, key=cmp_to_key(self._compare))

    def get_page_selectors(self, page_url: Optional[str]) -> List[SelectorEntry]:
        """All selectors whose page contains, or is contained in, the URL"""
        if not page_url:
            return list(self.entries)

        url_lower = page_url.lower()
        matched = {
            id(entry)
            for page, bucket in self._by_page.items()
            if url_lower in page.lower() or page.lower() in url_lower
            for entry in bucket
        }
        return [e for e in self.entries if id(e) in matched]

    def get_element_selectors(self, element_name: str) -> List[SelectorEntry]:
        """All selectors recorded for an element name, in ingestion order"""
        return list(self._by_element.get(element_name, []))

    def get_stability_score(self, selector: str) -> float:
        """Reliability score (0-1) of a selector string based on its type"""
        return self.reliability_for(classify_selector_string(selector))

    def get_stats(self) -> Dict[str, Any]:
        """Registry statistics"""
        total = len(self.entries)
        return {
            "totalSelectors": total,
            "bySource": dict(Counter(e.source for e in self.entries)),
            "byType": dict(Counter(e.selector_type for e in self.entries)),
            "byPage": dict(Counter(e.page_name or e.page or 'unknown' for e in self.entries)),
            "avgReliability": round(sum(e.reliability for e in self.entries) / total, 2) if total else 0,
        }

    # ─── Persistence ─────────────────────────────────────────────────

    def to_json(self) -> Dict[str, Any]:
        return {
            "entries": [e.to_dict() for e in self.entries],
            "buildTimestamp": datetime.now(timezone.utc).isoformat(),
        }

    @classmethod
    def from_json(
        cls,
        data: Dict[str, Any],
        reliability_scores: Optional[Dict[str, float]] = None,
        priority_order: Optional[List[str]] = None,
    ) -> "SelectorRegistry":
        """
        Restore a registry from `to_json()` output.

        Raises:
            pydantic.ValidationError: If a stored entry is malformed
        """
        registry = cls(reliability_scores=reliability_scores, priority_order=priority_order)
        registry.entries = [SelectorEntry.model_validate(e) for e in data.get("entries", [])]
        registry._rebuild_maps()
        return registry

    # ─── Private Helpers ─────────────────────────────────────────────

    def _add_entry(self, entry: SelectorEntry) -> None:
        self.entries.append(entry)
        if entry.page:
            self._by_page[entry.page].append(entry)
        if entry.element_name:
            self._by_element[entry.element_name].append(entry)

    def _rebuild_maps(self) -> None:
        self._by_page.clear()
        self._by_element.clear()
        for entry in self.entries:
            if entry.page:
                self._by_page[entry.page].append(entry)
            if entry.element_name:
                self._by_element[entry.element_name].append(entry)

    def _find_entry(self, page: Optional[str], element_name: str) -> Optional[SelectorEntry]:
        if not page:
            return None
        for entry in self._by_element.get(element_name, []):
            if entry.page and page in entry.page:
                return entry
        return None

    def _priority(self, selector_type: str) -> int:
        try:
            return self.priority_order.index(selector_type)
        except ValueError:
            return UNRANKED

    def _compare(self, a: SelectorEntry, b: SelectorEntry) -> float:
        reliability_diff = b.reliability - a.reliability
        if abs(reliability_diff) > TIE_EPSILON:
            return reliability_diff
        return self._priority(a.selector_type) - self._priority(b.selector_type)

    def _extract_declarations(self, content: str, page_name: str, file_path: str) -> List[SelectorEntry]:
        selectors = []

        for declaration in self.scanner.extract_locators(content):
            method = AccessMethod.parse(declaration.method)
            if not declaration.name or method is None:
                continue

            selector_type = method.selector_type(declaration.selector)
            selectors.append(SelectorEntry(
                element_name=declaration.name,
                selector_type=selector_type.value,
                selector_value=method.render(declaration.selector),
                page=None,
                page_name=page_name,
                source=SelectorSource.STATIC_DECLARATION,
                reliability=self.reliability_for(selector_type),
                last_verified=None,
                metadata={"file": file_path, "method": method.value, "rawSelector": declaration.selector},
            ))

        # data-qa style attributes win regardless of the accessor used
        for entry in selectors:
            if entry.selector_type != SelectorType.DATA_QA.value and DATA_QA_ATTRIBUTE.search(entry.metadata["rawSelector"]):
                entry.selector_type = SelectorType.DATA_QA.value
                entry.reliability = self.reliability_for(SelectorType.DATA_QA)

        return selectors

    def _entries_from_snapshot(self, data: Dict[str, Any], source_name: str) -> List[SelectorEntry]:
        session_id = (
            data.get("sessionId")
            or data.get("ticketId")
            or PurePath(source_name).name.replace(EXPLORATION_SUFFIX, "")
        )
        timestamp = data.get("timestamp")
        entries = []

        for snapshot in data.get("snapshots") or []:
            page_url = snapshot.get("url") or snapshot.get("pageUrl") or ""
            elements = snapshot.get("elements") or snapshot.get("accessibilityTree") or []

            for element in elements:
                selector_type, selector_value = infer_element_strategy(element)
                data_qa = element.get("dataQa") or element.get("data-qa")
                aria_label = element.get("ariaLabel") or element.get("aria-label")
                test_id = element.get("testId") or element.get("data-testid")

                element_name = (
                    element.get("name") or element.get("ref") or element.get("role")
                    or aria_label or data_qa or test_id
                )
                if not element_name:
                    continue

                entries.append(SelectorEntry(
                    element_name=str(element_name),
                    selector_type=selector_type.value,
                    selector_value=selector_value,
                    page=page_url,
                    page_name=session_id,
                    source=SelectorSource.LIVE_EXPLORATION,
                    reliability=self.reliability_for(selector_type),
                    last_verified=timestamp,
                    metadata={
                        "role": element.get("role"),
                        "ref": element.get("ref"),
                        "dataQa": data_qa,
                        "ariaLabel": aria_label,
                    },
                ))

        return entries
