"""Map an arbitrary JSON object onto canonical entry fields"""

import logging
from typing import Any, Callable, Mapping, Optional

from entryimport.core.convert.document import DOC_KEYS, MARKUP_KEYS, normalize_content
from entryimport.core.convert.engine import EngineFactory, SoupEngine
from entryimport.core.convert.markdown import render_markdown
from entryimport.core.extract.collect import FieldCollector, FieldMapping
from entryimport.core.models import EntryContent, EntryFields, EntryStatus
from entryimport.core.registry import DEFAULT_REGISTRY, FieldRegistry
from entryimport.core.sanitize import is_unsafe_uri, sanitize, sanitize_doc


logger = logging.getLogger(__name__)

MARKDOWN_ALIAS = "markdown"
NAME_KEYS = ("name", "title")
IMAGE_URL_KEYS = ("url", "src")


# --- shape coercion: each returns None when the value does not match the shape ---

def coerce_text(value: Any) -> Optional[str]:
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


def coerce_status(value: Any) -> Optional[EntryStatus]:
    """Accept an enum name (any case) or the boolean published flag."""
    if isinstance(value, bool):
        return EntryStatus.published if value else EntryStatus.draft
    if isinstance(value, str):
        try:
            return EntryStatus(value.strip().lower())
        except ValueError:
            return None
    return None


def coerce_names(value: Any) -> Optional[list[str]]:
    """Accept "a, b", ["a", "b"] or [{"name": "a"}, {"title": "b"}]; order kept, duplicates dropped."""
    if isinstance(value, str):
        raw = value.split(",")
    elif isinstance(value, (list, tuple)):
        raw = []
        for item in value:
            if isinstance(item, str):
                raw.append(item)
            elif isinstance(item, Mapping):
                raw.append(next((item[k] for k in NAME_KEYS if isinstance(item.get(k), str)), ""))
    else:
        return None
    names = list(dict.fromkeys(n.strip() for n in raw if n.strip()))
    return names or None


def coerce_image(value: Any) -> Optional[tuple[str, Optional[str]]]:
    """Accept a URL string or an object carrying url/src and alt; returns (url, alt)."""
    if isinstance(value, str) and value.strip():
        return value.strip(), None
    if isinstance(value, Mapping):
        url = next((value[k].strip() for k in IMAGE_URL_KEYS if coerce_text(value.get(k))), None)
        if url:
            return url, coerce_text(value.get("alt"))
    return None


def first_match(data: Mapping, aliases: tuple, coerce: Callable[[Any], Any]) -> tuple[Optional[str], Any]:
    """Return (alias, coerced value) for the first alias whose value matches the shape."""
    for alias in aliases:
        if data.get(alias) is None:
            continue
        coerced = coerce(data[alias])
        if coerced is not None:
            return alias, coerced
    return None, None


# --- content ---

def _as_doc(value: Any) -> Optional[dict]:
    """Return value as a document node if it is shaped like one."""
    if isinstance(value, Mapping):
        if value.get("type") == "doc" or ("type" not in value and isinstance(value.get("content"), list)):
            return {"type": "doc", "content": value.get("content")}
        return None
    if isinstance(value, list) and value and all(isinstance(b, Mapping) and "type" in b for b in value):
        return {"type": "doc", "content": list(value)}
    return None


def _split_content(data: Mapping, aliases: tuple) -> tuple[Optional[dict], Optional[str], Optional[str]]:
    """Resolve (doc, markup, markup_alias); a structured document outranks markup."""
    doc = markup = markup_alias = None
    for alias in aliases:
        value = data.get(alias)
        if doc is None:
            doc = _as_doc(value)
            if doc is None and isinstance(value, Mapping):
                doc = _as_doc(next((value[k] for k in DOC_KEYS if value.get(k) is not None), None))
                if doc is not None and markup is None:
                    markup = next((value[k] for k in MARKUP_KEYS if coerce_text(value.get(k))), None)
                    markup_alias = alias if markup else None
        if markup is None:
            if coerce_text(value):
                markup, markup_alias = value, alias
            elif isinstance(value, Mapping) and _as_doc(value) is None:
                markup = next((value[k] for k in MARKUP_KEYS if coerce_text(value.get(k))), None)
                markup_alias = alias if markup else None
    return doc, markup, markup_alias


def build_content(
    doc: Optional[dict],
    markup: Optional[str],
    collector: FieldCollector,
    engine_factory: EngineFactory = SoupEngine,
    ) -> EntryContent:
    """Sanitize and normalize a (doc, markup) pair into EntryContent, noting lossy conversions."""
    if doc is not None:
        clean_doc = sanitize_doc(doc)
        result = normalize_content({"doc": clean_doc, "markup": sanitize(markup) if markup else ""}, engine_factory)
        result = result.model_copy(update={"markup": sanitize(result.markup)})
    else:
        result = normalize_content(sanitize(markup or ""), engine_factory)
    collector.warn(result.warning)
    return EntryContent(doc=result.doc, markup=result.markup)


def map_json(
    obj: Any,
    overwrite: bool = True,
    current: Optional[EntryFields] = None,
    *,
    registry: FieldRegistry = DEFAULT_REGISTRY,
    engine_factory: EngineFactory = SoupEngine,
    markdown_preset: str = "gfm-like",
    ) -> FieldMapping:
    """Extract canonical fields from one JSON entry object.

    For each field the first alias (in registry order) whose value matches
    the field's shape wins. Every match is recorded in ``detected``; matches
    the gap-filling policy refuses are recorded in ``skipped``.
    """
    collector = FieldCollector(overwrite, current, registry)
    if not isinstance(obj, Mapping):
        collector.warn(f"Entry is not a JSON object (got {type(obj).__name__})")
        return collector.result()

    ignored = [k for k in obj if isinstance(k, str) and registry.is_ignored(k)]
    if ignored:
        collector.warn(f"Ignored documentation keys: {', '.join(ignored)}")
    data = {k: v for k, v in obj.items() if k not in ignored}
    unknown = [k for k in data if registry.field_for_alias(k) is None]
    if unknown:
        logger.debug("Unmapped keys: %s", ", ".join(map(str, unknown)))

    for name in ("title", "excerpt"):
        collector.offer(name, first_match(data, registry.aliases_for(name), coerce_text)[1])

    _, image = first_match(data, registry.aliases_for("coverImageUrl"), coerce_image)
    if image and is_unsafe_uri(image[0]):
        collector.warn("Unsafe cover image URL ignored")
        image = None
    if image:
        collector.offer("coverImageUrl", image[0])
    collector.offer("coverImageAlt", first_match(data, registry.aliases_for("coverImageAlt"), coerce_text)[1])
    if image and image[1]:
        collector.offer("coverImageAlt", image[1])

    doc, markup, markup_alias = _split_content(data, registry.aliases_for("content"))
    if doc is not None or markup:
        if markup and markup_alias == MARKDOWN_ALIAS:
            markup = render_markdown(markup, markdown_preset)
        collector.offer(
            "content", doc if doc is not None else markup,
            lambda _: build_content(doc, markup, collector, engine_factory),
        )

    collector.offer("status", first_match(data, registry.aliases_for("status"), coerce_status)[1])
    for name in ("journals", "collections"):
        collector.offer(name, first_match(data, registry.aliases_for(name), coerce_names)[1])

    return collector.result()
