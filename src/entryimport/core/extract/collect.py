"""Gap-filling write policy and per-entry diagnostics shared by both extractors"""

from dataclasses import dataclass, field
from typing import Any, Callable, Optional

from entryimport.core.models import EntryContent, EntryFields
from entryimport.core.registry import DEFAULT_REGISTRY, FieldRegistry


@dataclass
class FieldMapping:
    """Fields extracted from one entry, with the names detected and skipped."""
    fields:   EntryFields
    detected: list[str] = field(default_factory=list)
    skipped:  list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)


def _doc_is_blank(doc: Optional[dict]) -> bool:
    if not doc:
        return True
    blocks = doc.get("content") or []
    return all(b.get("type") == "paragraph" and not b.get("content") for b in blocks)


def is_empty(value: Any) -> bool:
    """None, blank strings, empty collections and empty content count as empty."""
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, EntryContent):
        return not value.markup.strip() and _doc_is_blank(value.doc)
    if isinstance(value, (list, tuple, dict, set)):
        return not value
    return False


class FieldCollector:
    """Accumulates offered field values, writing only what the policy allows.

    With overwrite every detected field is written; otherwise a field is
    written only when the current value is empty, and is reported as
    skipped when it is not.
    """

    def __init__(self, overwrite: bool, current: Optional[EntryFields] = None, registry: FieldRegistry = DEFAULT_REGISTRY):
        self.overwrite = overwrite
        self.current = current or EntryFields()
        self.registry = registry
        self._values: dict[str, Any] = {}
        self.detected: list[str] = []
        self.skipped:  list[str] = []
        self.warnings: list[str] = []

    def should_write(self, name: str) -> bool:
        if self.overwrite:
            return True
        return is_empty(getattr(self.current, self.registry.get(name).attr))

    def offer(self, name: str, value: Any, build: Callable[[Any], Any] = None) -> bool:
        """Record value for field name; build converts it only when it will be written."""
        if is_empty(value) or name in self.detected:
            return False
        self.detected.append(name)
        if not self.should_write(name):
            self.skipped.append(name)
            return False
        built = build(value) if build else value
        if is_empty(built):
            return False
        self._values[self.registry.get(name).attr] = built
        return True

    def warn(self, message: Optional[str]) -> None:
        if message and message not in self.warnings:
            self.warnings.append(message)

    def result(self) -> FieldMapping:
        return FieldMapping(
            fields=EntryFields(**self._values),
            detected=list(self.detected),
            skipped=list(self.skipped),
            warnings=list(self.warnings),
        )
