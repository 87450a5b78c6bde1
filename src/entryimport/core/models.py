"""Data models shared by the import pipeline and its callers"""

from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


class EntryStatus(str, Enum):
    """Publication states accepted by the storage layer"""
    draft = "draft"
    published = "published"
    archived = "archived"


class ImportMode(str, Enum):
    auto = "auto"
    json = "json"
    markup = "markup"


class DetectedFormat(str, Enum):
    json = "json"
    markup = "markup"
    none = "none"


class EntryContent(BaseModel):
    """Body of an entry: structured document plus its flat markup rendition."""
    model_config = ConfigDict(populate_by_name=True)

    doc: Optional[dict[str, Any]] = Field(default=None, alias="structuredDoc")
    markup: str = ""


class EntryFields(BaseModel):
    """Canonical output unit; None means the import did not set the field."""
    model_config = ConfigDict(populate_by_name=True)

    title:           Optional[str] = None
    excerpt:         Optional[str] = None
    cover_image_url: Optional[str] = Field(default=None, alias="coverImageUrl")
    cover_image_alt: Optional[str] = Field(default=None, alias="coverImageAlt")
    content:         Optional[EntryContent] = None
    status:          Optional[EntryStatus] = None
    journals:        Optional[list[str]] = None
    collections:     Optional[list[str]] = None

    def is_blank(self) -> bool:
        """True when no field carries a value."""
        return not self.model_dump(exclude_none=True)

    def merged(self, other: "EntryFields") -> "EntryFields":
        """Return a copy with every field set on other applied on top of this one."""
        data = self.model_dump(exclude_none=True)
        data.update(other.model_dump(exclude_none=True))
        return EntryFields.model_validate(data)


class EntryReport(BaseModel):
    """Per-entry diagnostics: fields found in the input and fields left untouched."""
    model_config = ConfigDict(frozen=True)

    detected: list[str] = []
    skipped:  list[str] = []


class ParseResult(BaseModel):
    """Outcome of one import invocation; never mutated after it is returned."""
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    success:         bool
    entries:         list[EntryFields] = []
    detected_format: DetectedFormat = Field(default=DetectedFormat.none, alias="detectedFormat")
    is_multiple:     bool = Field(default=False, alias="isMultiple")
    warnings:        list[str] = []
    error:           Optional[str] = None
    reports:         list[EntryReport] = []   # aligned with entries

    def to_json(self, indent: int = 2) -> str:
        return self.model_dump_json(indent=indent, by_alias=True, exclude_none=True)
