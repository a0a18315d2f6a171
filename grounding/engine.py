"""
Grounding engine: ranked local context for LLM agents.

Wires the chunker, BM25 index and selector registry together for one
project session:

    settings = GroundingSettings.from_file("grounding-config.json")
    engine = GroundingEngine(settings, index_dir="grounding-data")

    engine.build(
        documents=[(content, "tests/pageobjects/LoginPage.js", "pageObject"), ...],
        snapshots=[("login-exploration.json", raw_json)],
        verified_mappings=trust_store.get_stable_selectors(),
    )
    engine.save()

    engine.query("login submit button selector")
    engine.recommend_selectors("/login", "submit")

One engine per session, passed by reference. Builds assemble a new index and
registry off to the side and swap them in only when complete; never mutate an
engine concurrently with queries.
"""

import logging
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Tuple, Union

from .bm25.index import BM25Index
from .chunker import Chunker
from .config import GroundingSettings
from .scanners import get_scanner
from .selectors.registry import SelectorRegistry, VerifiedMapping
from .storage import IndexStorage

logger = logging.getLogger(__name__)

PAGE_OBJECT_TYPE = "pageObject"


class GroundingEngine:
    """Session-scoped owner of a BM25 index and a selector registry"""

    def __init__(
        self,
        settings: Optional[GroundingSettings] = None,
        index_dir: Optional[Union[str, Path]] = None,
    ):
        """
        Args:
            settings: Grounding settings (default: built-in defaults)
            index_dir: Directory for persisted state; None disables save/load
        """
        self.settings = settings or GroundingSettings()
        self.storage = IndexStorage(index_dir) if index_dir else None
        self.scanner = get_scanner(self.settings.index_settings.dialect)

        self.index: Optional[BM25Index] = None
        self.selector_registry: Optional[SelectorRegistry] = None
        self.last_build_time: Optional[datetime] = None

    @property
    def initialized(self) -> bool:
        return self.index is not None

    # ─── Building ────────────────────────────────────────────────────

    def build(
        self,
        documents: Iterable[Tuple[str, str, str]],
        page_objects: Optional[Iterable[Tuple[str, str]]] = None,
        snapshots: Optional[Iterable[Tuple[str, Union[str, Dict[str, Any]]]]] = None,
        verified_mappings: Optional[Iterable[Union[VerifiedMapping, Dict[str, Any]]]] = None,
        page_urls: Optional[Dict[str, str]] = None,
    ) -> Dict[str, Any]:
        """
        Build a fresh index and selector registry and swap them in.

        Args:
            documents: (content, file_path, type) triples to index
            page_objects: (content, file_path) pairs for static selector
                extraction (default: documents of type "pageObject")
            snapshots: (source name, document) live exploration snapshots
            verified_mappings: Externally verified selector mappings
            page_urls: Page object name → page URL

        Returns:
            Build stats {chunks, selectors, files, elapsed}
        """
        start_time = time.monotonic()
        index_settings = self.settings.index_settings
        retrieval = self.settings.retrieval_settings

        logger.info("Building grounding index...")

        chunker = Chunker(
            chunk_size=index_settings.chunk_size,
            chunk_overlap=index_settings.chunk_overlap,
            class_aware=index_settings.class_aware_chunking,
            scanner=self.scanner,
        )
        index = BM25Index(k1=retrieval.k1, b=retrieval.b, stemmer=index_settings.stemmer)

        total_files = 0
        total_chunks = 0
        collected_page_objects = []

        for content, file_path, doc_type in documents:
            try:
                chunks = chunker.chunk_text(content, file_path, type=doc_type)
            except Exception as e:
                logger.warning(f"Skipping {file_path}: {e}")
                continue

            index.add_chunks(chunks)
            total_chunks += len(chunks)
            total_files += 1
            if doc_type == PAGE_OBJECT_TYPE:
                collected_page_objects.append((content, file_path))

        index.build()

        registry = self._new_registry()
        total_selectors = registry.build_from_page_objects(
            page_objects if page_objects is not None else collected_page_objects,
            page_urls=page_urls,
        )
        if snapshots is not None:
            total_selectors += registry.build_from_exploration(snapshots)
        if verified_mappings is not None:
            total_selectors += registry.merge_verified(verified_mappings)

        # Swap
        self.index = index
        self.selector_registry = registry
        self.last_build_time = datetime.now(timezone.utc)

        elapsed = round((time.monotonic() - start_time) * 1000)
        logger.info(
            f"Index built: {total_chunks} chunks from {total_files} files, "
            f"{total_selectors} selectors ({elapsed}ms)"
        )
        return {"chunks": total_chunks, "selectors": total_selectors, "files": total_files, "elapsed": elapsed}

    def ensure_initialized(self) -> None:
        """Load persisted state, or fall back to an empty index"""
        if self.initialized:
            return
        if not self.load():
            logger.info("No persisted grounding index - starting empty")
            self.index = BM25Index(
                k1=self.settings.retrieval_settings.k1,
                b=self.settings.retrieval_settings.b,
                stemmer=self.settings.index_settings.stemmer,
            )
            self.selector_registry = self._new_registry()

    # ─── Queries ─────────────────────────────────────────────────────

    def query(
        self,
        query_text: str,
        scope: Optional[str] = None,
        max_chunks: Optional[int] = None,
        min_score: Optional[float] = None,
        boost_terms: Optional[List[str]] = None,
    ) -> List[Dict[str, Any]]:
        """
        Search the grounding index.

        Args:
            query_text: Natural language or code query
            scope: Chunk type filter ("pageObject", "utility", ...; "all" = none)
            max_chunks: Override max results
            min_score: Override min relevance score
            boost_terms: Extra vocabulary to bias retrieval

        Returns:
            [{content, filePath, startLine, endLine, type, score, matchedTerms, metadata}]
        """
        self.ensure_initialized()
        retrieval = self.settings.retrieval_settings

        terms = list(boost_terms or [])
        if isinstance(query_text, str):
            terms.extend(self.settings.feature_boost_terms(query_text))

        results = self.index.search(
            query_text,
            top_k=max_chunks if max_chunks is not None else retrieval.max_chunks_per_query,
            min_score=min_score if min_score is not None else retrieval.min_relevance_score,
            type_filter=scope if scope and scope != "all" else None,
            boost_factors=retrieval.boost_factors,
            boost_terms=terms or None,
        )
        return [r.to_dict() for r in results]

    def query_for_agent(self, agent_name: str, task_description: str, **options) -> List[Dict[str, Any]]:
        """Query with the agent's configured boost vocabulary"""
        agent_terms = self.settings.retrieval_settings.agent_boosts.get(agent_name.lower(), [])
        boost_terms = list(options.pop("boost_terms", None) or []) + list(agent_terms)
        return self.query(task_description, boost_terms=boost_terms, **options)

    def recommend_selectors(
        self,
        page_url: Optional[str],
        element_hint: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> List[Dict[str, Any]]:
        """Ranked selector recommendations for a page"""
        self.ensure_initialized()
        entries = self.selector_registry.recommend(page_url, element_hint)
        if limit is not None:
            entries = entries[:limit]
        return [e.to_dict() for e in entries]

    def stats(self) -> Dict[str, Any]:
        return {
            "initialized": self.initialized,
            "lastBuildTime": self.last_build_time.isoformat() if self.last_build_time else None,
            "index": self.index.get_stats() if self.index else None,
            "selectors": self.selector_registry.get_stats() if self.selector_registry else None,
            "features": len(self.settings.feature_map),
        }

    # ─── Persistence ─────────────────────────────────────────────────

    def save(self) -> bool:
        """Persist index and registry; False when there is nothing to save"""
        if self.storage is None or self.index is None:
            return False
        self.storage.save_index(self.index)
        if self.selector_registry is not None:
            self.storage.save_registry(self.selector_registry)
        logger.info(f"Index persisted to {self.storage.index_dir}")
        return True

    def load(self) -> bool:
        """Restore persisted state; False on cache miss"""
        if self.storage is None:
            return False

        index = self.storage.load_index()
        if index is None:
            return False

        registry_settings = self.settings.selector_registry
        registry = self.storage.load_registry(
            reliability_scores=registry_settings.reliability_scores,
            priority_order=registry_settings.priority_order,
        )

        self.index = index
        self.selector_registry = registry if registry is not None else self._new_registry()
        self.last_build_time = _parse_timestamp(index.build_timestamp)
        return True

    def _new_registry(self) -> SelectorRegistry:
        registry_settings = self.settings.selector_registry
        return SelectorRegistry(
            reliability_scores=registry_settings.reliability_scores,
            priority_order=registry_settings.priority_order,
            scanner=self.scanner,
        )


def _parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        logger.warning(f"Unparseable build timestamp: {value}")
        return None
