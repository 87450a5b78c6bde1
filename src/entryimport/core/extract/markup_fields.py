"""Extract canonical entry fields from a markup document.

Two strategies run in order and the first that applies wins:

1. ``markers``: elements carrying ``data-entry-field`` name their field
   explicitly (``title``, ``excerpt``, ``coverImage``, ``content``, ``meta``).
   When any marker exists the layout heuristic is never consulted.
2. ``layout``: first ``<h1>`` is the title, first non-inline image is the
   cover, a short first ``<p>`` is the excerpt, and what is left is the body.
"""

import json
import logging
from typing import Optional

from bs4 import BeautifulSoup, Tag

from entryimport.core.convert.engine import EngineFactory, SoupEngine
from entryimport.core.extract.collect import FieldCollector, FieldMapping
from entryimport.core.extract.json_fields import build_content, coerce_names, coerce_status, first_match
from entryimport.core.models import EntryFields
from entryimport.core.registry import (
    DEFAULT_REGISTRY, FIELD_MARKER_ATTR, META_MARKER, FieldRegistry, FieldShape,
)
from entryimport.core.sanitize import is_unsafe_uri


logger = logging.getLogger(__name__)

EMPTY_AFTER_IMAGE_TAGS = ("figure", "picture", "p", "a")


def _text(el: Tag) -> str:
    return " ".join(el.get_text().split())


class MarkupExtractor:
    """Runs the marker and layout strategies over one markup entry."""

    strategies = (("markers", "_from_markers"), ("layout", "_from_layout"))

    def __init__(
        self,
        registry: FieldRegistry = DEFAULT_REGISTRY,
        engine_factory: EngineFactory = SoupEngine,
        excerpt_max_length: int = 300,
        ):
        self.registry = registry
        self.engine_factory = engine_factory
        self.excerpt_max_length = excerpt_max_length

    def extract(self, markup: str, overwrite: bool = True, current: Optional[EntryFields] = None) -> FieldMapping:
        collector = FieldCollector(overwrite, current, self.registry)
        try:
            soup = BeautifulSoup(markup or "", "html.parser")
        except Exception as e:
            logger.warning("Markup could not be parsed: %s", e)
            collector.warn("Markup could not be parsed")
            return collector.result()

        for name, method in self.strategies:
            if getattr(self, method)(soup, collector):
                logger.debug("Markup fields extracted by %s strategy", name)
                break
        return collector.result()

    # --- markers ---

    def _from_markers(self, soup: BeautifulSoup, collector: FieldCollector) -> bool:
        marked = soup.find_all(attrs={FIELD_MARKER_ATTR: True})
        if not marked:
            return False
        seen: set[str] = set()
        for el in marked:
            marker = (el.get(FIELD_MARKER_ATTR) or "").strip()
            if marker in seen:
                continue
            seen.add(marker)
            if marker == META_MARKER:
                self._meta(el, collector)
                continue
            definition = self.registry.field_for_marker(marker)
            if definition is None:
                collector.warn(f"Unknown field marker '{marker}' ignored")
            elif definition.shape == FieldShape.image:
                self._cover(el if el.name == "img" else el.find("img"), collector)
            elif definition.shape == FieldShape.rich_content:
                self._content(el.decode_contents(), collector)
            else:
                collector.offer(definition.name, _text(el))
        return True

    def _meta(self, el: Tag, collector: FieldCollector) -> None:
        raw = el.string if el.string is not None else el.get_text()
        try:
            meta = json.loads(raw or "")
        except ValueError:
            collector.warn("Meta marker does not contain valid JSON")
            return
        if not isinstance(meta, dict):
            collector.warn("Meta marker must contain a JSON object")
            return
        collector.offer("status", first_match(meta, self.registry.aliases_for("status"), coerce_status)[1])
        for name in ("journals", "collections"):
            collector.offer(name, first_match(meta, self.registry.aliases_for(name), coerce_names)[1])

    def _cover(self, img: Optional[Tag], collector: FieldCollector) -> bool:
        src = (img.get("src") or "").strip() if img is not None else ""
        if not src:
            return False
        if is_unsafe_uri(src):
            collector.warn("Unsafe cover image URL ignored")
            return False
        collector.offer("coverImageUrl", src)
        collector.offer("coverImageAlt", (img.get("alt") or "").strip())
        return True

    def _content(self, inner: str, collector: FieldCollector) -> None:
        if inner.strip():
            collector.offer("content", inner, lambda m: build_content(None, m, collector, self.engine_factory))

    # --- layout heuristic ---

    def _from_layout(self, soup: BeautifulSoup, collector: FieldCollector) -> bool:
        root = soup.find("body") or soup

        h1 = root.find("h1")
        if h1 is not None and _text(h1):
            collector.offer("title", _text(h1))
            h1.decompose()

        img = next(
            (i for i in root.find_all("img") if (i.get("src") or "").strip() and not i["src"].strip().startswith("data:")),
            None,
        )
        if img is not None and self._cover(img, collector):
            parent = img.parent
            img.decompose()
            if (parent is not None and parent is not root and parent.name in EMPTY_AFTER_IMAGE_TAGS
                    and not parent.get_text(strip=True) and parent.find(True) is None):
                parent.decompose()

        first_p = root.find("p")
        if first_p is not None:
            excerpt = _text(first_p)
            if 0 < len(excerpt) < self.excerpt_max_length:
                collector.offer("excerpt", excerpt)

        self._content(root.decode_contents(), collector)
        return True


def extract_from_markup(
    markup: str,
    overwrite: bool = True,
    current: Optional[EntryFields] = None,
    *,
    registry: FieldRegistry = DEFAULT_REGISTRY,
    engine_factory: EngineFactory = SoupEngine,
    excerpt_max_length: int = 300,
    ) -> FieldMapping:
    """Extract fields from one markup entry; markers win over the layout heuristic."""
    extractor = MarkupExtractor(registry, engine_factory, excerpt_max_length)
    return extractor.extract(markup, overwrite, current)
