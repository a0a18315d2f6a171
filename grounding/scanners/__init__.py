"""
Structural scanners: dialect-specific extraction of declarations, locators
and exports.

Usage:
    from grounding.scanners import get_scanner
    
    scanner = get_scanner("javascript")
    boundaries = scanner.find_boundaries(content.split("\\n"))
    metadata = scanner.extract_metadata(content)
"""

from .base import Boundary, StructuralScanner
from .javascript import JavaScriptScanner

SCANNERS = {
    JavaScriptScanner.dialect: JavaScriptScanner,
}


def get_scanner(dialect: str = "javascript") -> StructuralScanner:
    """
    Create a scanner for a source dialect.
    
    Raises:
        ValueError: If no scanner is registered for the dialect
    """
    scanner_cls = SCANNERS.get(dialect.lower())
    if scanner_cls is None:
        raise ValueError(
            f"Unknown scanner dialect: {dialect}. "
            f"Valid options: {', '.join(SCANNERS)}"
        )
    return scanner_cls()


__all__ = [
    'Boundary',
    'StructuralScanner',
    'JavaScriptScanner',
    'get_scanner',
]
