"""
Grounding core: local keyword retrieval and selector knowledge for
test-automation agents.

- chunker: line-based, class-aware chunking of source documents
- bm25: code-aware tokenization and BM25 ranking over chunks
- selectors: scored registry of UI selectors from page objects, live
  exploration snapshots and verified mappings
- engine: session-scoped orchestration, persistence and queries
"""

from .chunker import Chunker, chunk_document
from .config import GroundingSettings
from .engine import GroundingEngine
from .models import Chunk, ChunkMetadata, SelectorEntry, SelectorSource

__version__ = "0.1.0"

__all__ = [
    "Chunker",
    "chunk_document",
    "GroundingSettings",
    "GroundingEngine",
    "Chunk",
    "ChunkMetadata",
    "SelectorEntry",
    "SelectorSource",
]
