"""
Local persistence for the grounding index and selector registry.

Structure on disk:
{index_dir}/
├── grounding-index.json      # {k1, b, stemmer, chunks: [...], buildTimestamp}
└── selector-registry.json    # {entries: [...], buildTimestamp}

Loading never raises for missing or corrupt files: it reports a cache miss
(None) so the caller can trigger a full rebuild.
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from pydantic import ValidationError

from .bm25.index import BM25Index
from .selectors.registry import SelectorRegistry

logger = logging.getLogger(__name__)

INDEX_FILE = "grounding-index.json"
SELECTOR_FILE = "selector-registry.json"


class IndexStorage:
    """Filesystem handler for persisted grounding state"""

    def __init__(self, index_dir: Union[str, Path]):
        """
        Args:
            index_dir: Directory for persisted index files (created on save)
        """
        self.index_dir = Path(index_dir)

    @property
    def index_path(self) -> Path:
        return self.index_dir / INDEX_FILE

    @property
    def registry_path(self) -> Path:
        return self.index_dir / SELECTOR_FILE

    def save_index(self, index: BM25Index) -> Path:
        return self._write(self.index_path, index.to_json())

    def save_registry(self, registry: SelectorRegistry) -> Path:
        return self._write(self.registry_path, registry.to_json())

    def load_index(self) -> Optional[BM25Index]:
        """Restore the BM25 index, or None on cache miss"""
        data = self._read(self.index_path)
        if data is None:
            return None

        try:
            index = BM25Index.from_json(data)
        except (ValidationError, ValueError, TypeError) as e:
            logger.warning(f"Corrupt index file {self.index_path}: {e}")
            return None

        logger.info(f"Index loaded from disk: {len(index.chunks)} chunks")
        return index

    def load_registry(
        self,
        reliability_scores: Optional[Dict[str, float]] = None,
        priority_order: Optional[List[str]] = None,
    ) -> Optional[SelectorRegistry]:
        """Restore the selector registry, or None on cache miss"""
        data = self._read(self.registry_path)
        if data is None:
            return None

        try:
            registry = SelectorRegistry.from_json(
                data,
                reliability_scores=reliability_scores,
                priority_order=priority_order,
            )
        except (ValidationError, ValueError, TypeError) as e:
            logger.warning(f"Corrupt selector registry file {self.registry_path}: {e}")
            return None

        logger.info(f"Selector registry loaded from disk: {len(registry.entries)} selectors")
        return registry

    def _write(self, path: Path, payload: Dict[str, Any]) -> Path:
        self.index_dir.mkdir(parents=True, exist_ok=True)
        # Readers see either the previous file or the complete new one
        tmp_path = path.with_suffix(path.suffix + ".tmp")
        with open(tmp_path, 'w', encoding='utf-8') as f:
            json.dump(payload, f, indent=2, ensure_ascii=False)
        tmp_path.replace(path)
        logger.debug(f"Persisted {path}")
        return path

    def _read(self, path: Path) -> Optional[Dict[str, Any]]:
        if not path.exists():
            logger.debug(f"No persisted file at {path}")
            return None

        try:
            with open(path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
            logger.warning(f"Cannot read {path}: {e}")
            return None

        if not isinstance(data, dict):
            logger.warning(f"Unexpected content in {path}: {type(data).__name__}")
            return None

        return data
