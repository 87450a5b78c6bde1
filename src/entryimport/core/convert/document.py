"""Markup <-> structured document conversion with a guaranteed-valid fallback"""

import html
import logging
from typing import Any, Mapping, Optional

from pydantic import BaseModel

from entryimport.core.convert.engine import EngineFactory, SoupEngine
from entryimport.core.utils.text import plain_text, split_paragraphs


logger = logging.getLogger(__name__)

SIMPLIFIED_WARNING = "Content was simplified during conversion"
FAILED_WARNING = "Conversion failed, content simplified to plain text"
NORMALIZED_WARNING = "Structured document was normalized"
INVALID_DOC_WARNING = "Structured document was invalid; content rebuilt from markup"
UNKNOWN_WARNING = "Unknown content format"

DOC_KEYS = ("doc", "json", "structuredDoc")
MARKUP_KEYS = ("markup", "html")


class Conversion(BaseModel):
    """A valid document, its markup, and a warning when the result is lossy."""
    doc: dict[str, Any]
    markup: str = ""
    warning: Optional[str] = None


def minimal_doc(text: str = "") -> dict[str, Any]:
    """Return a valid document: one paragraph per blank-line-delimited chunk of text.

    Empty text yields the canonical empty document (a single empty paragraph).
    """
    paragraphs = split_paragraphs(text)
    if not paragraphs:
        return {"type": "doc", "content": [{"type": "paragraph", "content": []}]}
    return {
        "type": "doc",
        "content": [{"type": "paragraph", "content": [{"type": "text", "text": p}]} for p in paragraphs],
    }


def is_valid_doc(value: Any) -> bool:
    """True when value is a document node whose content is a list."""
    return isinstance(value, Mapping) and value.get("type") == "doc" and isinstance(value.get("content"), list)


def _degraded(markup: str, warning: str) -> Conversion:
    text = plain_text(markup)
    return Conversion(
        doc=minimal_doc(text),
        markup="".join(f"<p>{html.escape(p, quote=False)}</p>" for p in split_paragraphs(text)),
        warning=warning,
    )


def to_structured_doc(markup: str, engine_factory: EngineFactory = SoupEngine) -> Conversion:
    """Convert markup to a document using a fresh engine; never raises."""
    if not markup or not markup.strip():
        return Conversion(doc=minimal_doc(), markup="")
    try:
        with engine_factory() as engine:
            doc = engine.markup_to_doc(markup)
    except Exception as e:
        logger.warning("Markup conversion failed: %s", e)
        return _degraded(markup, FAILED_WARNING)

    if not is_valid_doc(doc) or not doc["content"]:
        return _degraded(markup, SIMPLIFIED_WARNING)
    try:
        with engine_factory() as engine:
            normalized = engine.doc_to_markup(doc)
    except Exception as e:
        logger.debug("Keeping original markup, rendering failed: %s", e)
        normalized = markup
    return Conversion(doc=doc, markup=normalized)


def to_markup(doc: Any, engine_factory: EngineFactory = SoupEngine) -> str:
    """Render a document to markup; invalid input or engine failure yields ''."""
    if not is_valid_doc(doc):
        return ""
    try:
        with engine_factory() as engine:
            return engine.doc_to_markup(dict(doc))
    except Exception as e:
        logger.warning("Document rendering failed: %s", e)
        return ""


def _first(data: Mapping, keys: tuple) -> Any:
    for key in keys:
        if data.get(key) is not None:
            return data[key]
    return None


def normalize_content(value: Any, engine_factory: EngineFactory = SoupEngine) -> Conversion:
    """Coerce any accepted content shape into a valid (doc, markup) pair.

    Accepts None, a markup string, a document node, a bare list of blocks,
    or a mapping carrying a document under doc/json/structuredDoc and/or
    markup under markup/html. A valid supplied document is authoritative and
    supplied markup is attached unchanged; missing markup is rendered from
    the document. Callers sanitize markup before handing it over.
    """
    if value is None:
        return Conversion(doc=minimal_doc(), markup="")
    if isinstance(value, str):
        return to_structured_doc(value, engine_factory)
    if isinstance(value, list):
        value = {"doc": value}
    if not isinstance(value, Mapping):
        return Conversion(doc=minimal_doc(), markup="", warning=UNKNOWN_WARNING)
    if value.get("type") == "doc":
        value = {"doc": value}

    doc = _first(value, DOC_KEYS)
    markup = _first(value, MARKUP_KEYS)
    markup = markup if isinstance(markup, str) else ""

    if doc is not None:
        if is_valid_doc(doc):
            return Conversion(doc=dict(doc), markup=markup or to_markup(doc, engine_factory))
        if isinstance(doc, list) and doc:
            wrapped = {"type": "doc", "content": list(doc)}
            return Conversion(
                doc=wrapped, markup=markup or to_markup(wrapped, engine_factory), warning=NORMALIZED_WARNING,
            )
        if markup.strip():
            converted = to_structured_doc(markup, engine_factory)
            return converted.model_copy(update={"warning": converted.warning or INVALID_DOC_WARNING})
        return Conversion(doc=minimal_doc(), markup="", warning=NORMALIZED_WARNING)

    if markup.strip():
        return to_structured_doc(markup, engine_factory)
    return Conversion(doc=minimal_doc(), markup="", warning=UNKNOWN_WARNING)
