"""
Data models shared by the chunker, the BM25 index and the selector registry.

Persisted JSON uses camelCase keys (filePath, startLine, selectorValue, ...)
while Python code uses snake_case attributes. Optional fields default, so
older or hand-edited files with missing metadata sub-fields still load.
"""

from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel


class _CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        use_enum_values=True,
    )

    def to_dict(self) -> Dict[str, Any]:
        """Dump with persisted (camelCase) keys."""
        return self.model_dump(by_alias=True)


class MethodSignature(_CamelModel):
    name: str
    params: str = ""


class LocatorDeclaration(_CamelModel):
    name: Optional[str] = None       # field the locator is bound to (this.<name> = ...)
    method: str                      # access method: locator, getByRole, ...
    selector: str                    # raw selector string argument


class ChunkMetadata(_CamelModel):
    classes: List[str] = Field(default_factory=list)
    methods: List[MethodSignature] = Field(default_factory=list)
    locators: List[LocatorDeclaration] = Field(default_factory=list)
    exports: List[str] = Field(default_factory=list)


class Chunk(_CamelModel):
    """Contiguous, 1-indexed inclusive line range of a document."""
    model_config = ConfigDict(frozen=True)

    id: str
    file_path: str
    start_line: int
    end_line: int
    content: str
    type: str = "unknown"
    metadata: ChunkMetadata = Field(default_factory=ChunkMetadata)

    @model_validator(mode="after")
    def _check_line_range(self) -> "Chunk":
        if not 1 <= self.start_line <= self.end_line:
            raise ValueError(f"Invalid line range {self.start_line}-{self.end_line}")
        expected_id = self.make_id(self.file_path, self.start_line, self.end_line)
        if self.id != expected_id:
            raise ValueError(f"Chunk id {self.id!r} does not match {expected_id!r}")
        return self

    @staticmethod
    def make_id(file_path: str, start_line: int, end_line: int) -> str:
        return f"{file_path}:{start_line}-{end_line}"


class SelectorSource(str, Enum):
    """Provenance channel that produced a selector entry"""
    STATIC_DECLARATION = "static-declaration"      # page object field declarations
    LIVE_EXPLORATION = "live-exploration"          # accessibility snapshots
    EXTERNALLY_VERIFIED = "externally-verified"    # cross-run trust store


class SelectorEntry(_CamelModel):
    element_name: str
    selector_type: str
    selector_value: str
    page: Optional[str] = None
    page_name: Optional[str] = None
    source: SelectorSource
    reliability: float = 0.5
    last_verified: Optional[str] = None
    metadata: Dict[str, Any] = Field(default_factory=dict)
