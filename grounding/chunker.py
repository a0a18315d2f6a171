"""
Line-based chunking of source documents for the BM25 index.

Strategies:
1. Whole file: documents with at most `chunk_size` lines become one chunk
2. Class-aware: walk method/class boundaries found by the structural scanner
   and pack whole declarations into chunks of up to `chunk_size` lines
3. Fixed-size: sliding `chunk_size`-line window advancing by
   `chunk_size - chunk_overlap` lines (fallback when no boundaries are found)

Every chunk carries structural metadata (classes, method signatures,
locators, exports) extracted independently of the chunking strategy.
Line ranges are 1-indexed and inclusive.
"""

import logging
from typing import List, Optional

from .models import Chunk
from .scanners import StructuralScanner, get_scanner

logger = logging.getLogger(__name__)


class Chunker:
    """Split documents into overlapping line-range chunks"""

    def __init__(
        self,
        chunk_size: int = 80,
        chunk_overlap: int = 20,
        class_aware: bool = True,
        scanner: Optional[StructuralScanner] = None,
    ):
        self.chunk_size = chunk_size
        self.chunk_overlap = chunk_overlap
        self.class_aware = class_aware
        self.scanner = scanner or get_scanner("javascript")

    def chunk_text(self, content: str, file_path: str, type: str = "unknown") -> List[Chunk]:
        """
        Split a document into chunks

        Args:
            content: Document text
            file_path: Relative file path (chunk identity and boost matching)
            type: Content type classification (pageObject, utility, ...)

        Returns:
            Ordered chunks covering the whole document
        """
        lines = content.split('\n')

        if len(lines) <= self.chunk_size:
            logger.debug(f"{file_path}: {len(lines)} lines, single chunk")
            return [self._make_chunk(lines, 0, len(lines), file_path, type)]

        if self.class_aware:
            chunks = self._class_aware_chunks(lines, file_path, type)
        else:
            chunks = self._fixed_chunks(lines, file_path, type)

        logger.debug(f"{file_path}: {len(lines)} lines → {len(chunks)} chunks")
        return chunks

    def _class_aware_chunks(self, lines: List[str], file_path: str, type: str) -> List[Chunk]:
        """Pack whole method/class regions into chunks"""
        boundaries = self.scanner.find_boundaries(lines)

        if not boundaries:
            return self._fixed_chunks(lines, file_path, type)

        chunks = []
        current_start = 0
        current_end = 0

        for boundary in boundaries:
            # Adding this region would overflow: close the current chunk
            if boundary.end - current_start > self.chunk_size and current_end > current_start:
                chunks.append(self._make_chunk(lines, current_start, current_end, file_path, type))
                current_start = max(current_end - self.chunk_overlap, boundary.start)

            current_end = boundary.end

        # Flush the tail
        if current_end > current_start or current_start < len(lines):
            final_end = max(current_end, len(lines))
            if '\n'.join(lines[current_start:final_end]).strip():
                chunks.append(self._make_chunk(lines, current_start, final_end, file_path, type))

        return chunks or self._fixed_chunks(lines, file_path, type)

    def _fixed_chunks(self, lines: List[str], file_path: str, type: str) -> List[Chunk]:
        """Sliding window with overlap"""
        chunks = []
        step = max(1, self.chunk_size - self.chunk_overlap)

        for start in range(0, len(lines), step):
            end = min(start + self.chunk_size, len(lines))

            if '\n'.join(lines[start:end]).strip():
                chunks.append(self._make_chunk(lines, start, end, file_path, type))

            if end >= len(lines):
                break

        return chunks

    def _make_chunk(self, lines: List[str], start: int, end: int, file_path: str, type: str) -> Chunk:
        """Build a chunk from 0-based [start, end) line indices"""
        content = '\n'.join(lines[start:end])
        return Chunk(
            id=Chunk.make_id(file_path, start + 1, end),
            file_path=file_path,
            start_line=start + 1,
            end_line=end,
            content=content,
            type=type,
            metadata=self.scanner.extract_metadata(content),
        )


def chunk_document(
    content: str,
    file_path: str,
    chunk_size: int = 80,
    chunk_overlap: int = 20,
    type: str = "unknown",
    class_aware: bool = True,
    scanner: Optional[StructuralScanner] = None,
) -> List[Chunk]:
    """
    Chunk a single document with a one-off Chunker

    Returns:
        List of Chunk models
    """
    chunker = Chunker(
        chunk_size=chunk_size,
        chunk_overlap=chunk_overlap,
        class_aware=class_aware,
        scanner=scanner,
    )
    return chunker.chunk_text(content, file_path, type=type)
