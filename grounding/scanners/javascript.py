"""
Structural scanner for JavaScript page objects and helpers.

Recognizes:
- method/function declarations: `name(args) {`, `async name(args) {`,
  `function name(args) {`, `name = async (args) => {`
- class declarations: `class Name`
- Playwright locators: `page.locator('...')`, `this.page.getByRole('...')`, ...
  optionally bound to a field (`this.submitButton = page.locator(...)`)
- CommonJS exports (`module.exports = {...}` / `module.exports = Name`) and
  ES module `export` declarations
"""

import re
from typing import List

from ..models import ChunkMetadata, LocatorDeclaration, MethodSignature
from .base import Boundary, StructuralScanner

CONTROL_FLOW = frozenset(['if', 'for', 'while', 'switch', 'catch'])

ACCESS_METHODS = (
    'locator', 'getByRole', 'getByText', 'getByLabel',
    'getByPlaceholder', 'getByTestId', 'getByAltText',
)

BOUNDARY_PATTERNS = (
    re.compile(r'^(?:async\s+)?(?:function\s+)?(?:(?:get|set)\s+)?(\w+)\s*\([^)]*\)\s*\{?$'),
    re.compile(r'^(?:async\s+)?(\w+)\s*=\s*(?:async\s+)?\([^)]*\)\s*=>\s*\{?$'),
    re.compile(r'^(?:static\s+)?(?:async\s+)?(?:function\s+)?(\w+)\s*\([^)]*\)\s*\{'),
)
CLASS_LINE = re.compile(r'^class\s+(\w+)')

CLASS_NAME = re.compile(r'class\s+(\w+)')
METHOD_SIGNATURE = re.compile(r'(?:async\s+)?(\w+)\s*\(([^)]*)\)\s*\{')
LOCATOR_CALL = re.compile(
    r'(?:this\.(\w+)\s*=\s*)?(?:page|this\.page)\s*\.\s*'
    r'(' + '|'.join(ACCESS_METHODS) + r')\s*\(\s*([\'"`])(.*?)\3'
)
CSS_LOCATOR_CALL = re.compile(
    r'(?:this\.(\w+)\s*=\s*)?(?:page|this\.page)\s*\.\s*locator\s*\(\s*([\'"`])([^\'"`]+)\2'
)
COMMONJS_EXPORT_LIST = re.compile(r'module\.exports\s*=\s*\{([^}]+)\}')
COMMONJS_EXPORT_NAME = re.compile(r'module\.exports\s*=\s*(\w+)')
ES_EXPORT = re.compile(
    r'^\s*export\s+(?:default\s+)?(?:async\s+)?(?:class|function\*?|const|let|var)\s+(\w+)',
    re.MULTILINE,
)


class JavaScriptScanner(StructuralScanner):
    """Regex scanner for JavaScript / Playwright page-object sources"""
    
    dialect = "javascript"
    
    def find_boundaries(self, lines: List[str]) -> List[Boundary]:
        boundaries = []
        current = None
        
        for i, line in enumerate(lines):
            trimmed = line.strip()
            
            name = self._declared_method(trimmed)
            if name is not None:
                if current is not None and current.start < i:
                    current.end = i
                    boundaries.append(current)
                current = Boundary(start=i, end=i, name=name)
            
            class_match = CLASS_LINE.match(trimmed)
            if class_match:
                if current is not None:
                    current.end = i
                    boundaries.append(current)
                current = Boundary(start=i, end=i, name=f"class:{class_match.group(1)}")
        
        if current is not None:
            current.end = len(lines)
            boundaries.append(current)
        
        return boundaries
    
    def extract_metadata(self, content: str) -> ChunkMetadata:
        return ChunkMetadata(
            classes=CLASS_NAME.findall(content),
            methods=self._extract_methods(content),
            locators=self.extract_locators(content),
            exports=self._extract_exports(content),
        )
    
    def extract_locators(self, content: str) -> List[LocatorDeclaration]:
        locators = [
            LocatorDeclaration(name=m.group(1), method=m.group(2), selector=m.group(4))
            for m in LOCATOR_CALL.finditer(content)
        ]
        
        # locator() arguments the lazy pattern above can cut short
        seen = {loc.selector for loc in locators}
        for m in CSS_LOCATOR_CALL.finditer(content):
            if m.group(3) not in seen:
                seen.add(m.group(3))
                locators.append(LocatorDeclaration(name=m.group(1), method='locator', selector=m.group(3)))
        
        return locators
    
    @staticmethod
    def _declared_method(trimmed: str):
        for pattern in BOUNDARY_PATTERNS:
            match = pattern.match(trimmed)
            if match:
                name = match.group(1)
                return None if name in CONTROL_FLOW else name
        return None
    
    @staticmethod
    def _extract_methods(content: str) -> List[MethodSignature]:
        return [
            MethodSignature(name=m.group(1), params=m.group(2).strip())
            for m in METHOD_SIGNATURE.finditer(content)
            if m.group(1) not in CONTROL_FLOW and m.group(1) != 'constructor'
        ]
    
    @staticmethod
    def _extract_exports(content: str) -> List[str]:
        export_list = COMMONJS_EXPORT_LIST.search(content)
        if export_list:
            return [e.strip() for e in export_list.group(1).split(',') if e.strip()]
        
        default_export = COMMONJS_EXPORT_NAME.search(content)
        if default_export:
            return [default_export.group(1)]
        
        return ES_EXPORT.findall(content)
