"""Partition a payload into per-entry segments for JSON and markup input"""

import re
from dataclasses import dataclass, field
from typing import Any, Mapping

from bs4 import BeautifulSoup

from entryimport.core.models import DetectedFormat
from entryimport.core.registry import DEFAULT_REGISTRY, FieldRegistry


WRAPPER_KEYS = ("entries", "items")
ENTRY_KEYS = ("title", "content", "excerpt", "coverImageUrl")
ENTRY_WRAPPER_ATTR = "data-entry"
ENTRY_START = "ENTRY_START"
ENTRY_END = "ENTRY_END"

# An unterminated start marker runs to the next start marker or to the end of the payload.
ENTRY_SEGMENT_RE = re.compile(
    rf"<!--\s*{ENTRY_START}\s*-->(.*?)(?=<!--\s*{ENTRY_END}\s*-->|<!--\s*{ENTRY_START}\s*-->|\Z)",
    re.DOTALL,
)


@dataclass
class Split:
    segments:    list[Any]
    is_multiple: bool = False
    warnings:    list[str] = field(default_factory=list)


def _ignored_warning(keys: list[str]) -> list[str]:
    return [f"Ignored documentation keys: {', '.join(keys)}"] if keys else []


def split_json(value: Any, registry: FieldRegistry = DEFAULT_REGISTRY) -> Split:
    """Split a parsed JSON value into entry objects.

    Arrays split per element; objects with an ``entries``/``items`` array
    split per element of that array; any other object is a single entry,
    with documentation keys stripped when real entry keys sit beside them.
    """
    if isinstance(value, list):
        return Split(segments=list(value), is_multiple=len(value) > 1)
    if not isinstance(value, Mapping):
        return Split(segments=[value])

    ignored = [k for k in value if isinstance(k, str) and registry.is_ignored(k)]
    # Only an array (or null) makes the key a wrapper; other values belong to a single entry.
    wrapper = next((k for k in WRAPPER_KEYS if k in value and (value[k] is None or isinstance(value[k], list))), None)
    if wrapper is not None:
        items = value[wrapper]
        if not items:
            return Split(segments=[], warnings=_ignored_warning(ignored) + [f"Wrapper '{wrapper}' contains no entries"])
        return Split(segments=list(items), is_multiple=len(items) > 1, warnings=_ignored_warning(ignored))

    if ignored and any(k in value for k in ENTRY_KEYS):
        stripped = {k: v for k, v in value.items() if k not in ignored}
        return Split(segments=[stripped], warnings=_ignored_warning(ignored))
    return Split(segments=[value])


def _top_level_wrappers(soup: BeautifulSoup) -> list:
    wrappers = soup.find_all(attrs={ENTRY_WRAPPER_ATTR: True})
    return [w for w in wrappers if w.find_parent(attrs={ENTRY_WRAPPER_ATTR: True}) is None]


def split_markup(markup: str) -> Split:
    """Split markup on entry wrapper elements, else on ENTRY_START/ENTRY_END comments."""
    wrappers = _top_level_wrappers(BeautifulSoup(markup or "", "html.parser"))
    if len(wrappers) >= 2:
        return Split(segments=[w.decode_contents() for w in wrappers], is_multiple=True)

    regions = [m.group(1) for m in ENTRY_SEGMENT_RE.finditer(markup or "")]
    regions = [r for r in regions if r.strip()]
    if len(regions) >= 2:
        return Split(segments=regions, is_multiple=True)
    return Split(segments=[markup])


def split(payload: Any, declared_format: DetectedFormat, registry: FieldRegistry = DEFAULT_REGISTRY) -> Split:
    """Dispatch to the JSON or markup splitter for an already-detected payload."""
    if declared_format == DetectedFormat.json:
        return split_json(payload, registry)
    return split_markup(payload)
