"""
Abstract base class for structural scanners.

A structural scanner knows the syntax of one source dialect. The chunker and
the selector registry only talk to this interface, so chunking and scoring
stay syntax-agnostic and a new dialect is a new subclass.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import List

from ..models import ChunkMetadata, LocatorDeclaration


@dataclass
class Boundary:
    """Region that starts at a function/method or class declaration"""
    start: int          # 0-based index of the declaration line
    end: int            # 0-based exclusive end (start of the next region)
    name: str           # method name, or "class:<Name>"


class StructuralScanner(ABC):
    """
    Abstract base class for structural scanners.
    
    All scanners must implement this interface to be swappable.
    """
    
    dialect: str = ""
    
    @abstractmethod
    def find_boundaries(self, lines: List[str]) -> List[Boundary]:
        """
        Find contiguous declaration regions in a document.
        
        Args:
            lines: Document lines (without newline characters)
            
        Returns:
            Boundaries in document order. Each region runs until the next
            declaration; the last one runs to the end of the document.
        """
        pass
    
    @abstractmethod
    def extract_metadata(self, content: str) -> ChunkMetadata:
        """
        Extract class names, method signatures, locator declarations and
        exported names from a piece of source text.
        """
        pass
    
    def extract_locators(self, content: str) -> List[LocatorDeclaration]:
        """UI locator declarations found in the text"""
        return self.extract_metadata(content).locators
