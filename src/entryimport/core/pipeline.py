"""Import orchestration: detect format, split, extract per entry, aggregate diagnostics"""

import json
import logging
from dataclasses import dataclass, field
from enum import Enum
from functools import partial
from typing import Any, Callable, Optional

from entryimport.config import Settings
from entryimport.core.convert.engine import SoupEngine
from entryimport.core.extract.collect import FieldMapping
from entryimport.core.extract.json_fields import map_json
from entryimport.core.extract.markup_fields import extract_from_markup
from entryimport.core.extract.split import split
from entryimport.core.models import DetectedFormat, EntryFields, EntryReport, ImportMode, ParseResult
from entryimport.core.registry import DEFAULT_REGISTRY, FieldRegistry
from entryimport.core.utils.text import truncate


logger = logging.getLogger(__name__)

NO_CONTENT_ERROR = "No content to import"
UNDETECTED_ERROR = "Could not detect format. Input does not appear to be valid JSON or markup."
NO_FIELDS_WARNING = "No mappable fields were found in the input."


class ImportState(str, Enum):
    unparsed = "unparsed"
    detecting_format = "detecting_format"
    extracting_single = "extracting_single"
    extracting_multiple = "extracting_multiple"
    done = "done"
    failed = "failed"


@dataclass
class Detection:
    """Outcome of one format strategy: the parsed payload or why it did not match."""
    matched: bool
    payload: Any = None
    error:   Optional[str] = None


def detect_json(text: str) -> Detection:
    if not text.startswith(("{", "[")):
        return Detection(False, error="Input does not appear to be JSON")
    try:
        return Detection(True, json.loads(text))
    except ValueError as e:
        return Detection(False, error=str(e))


def detect_markup(text: str) -> Detection:
    if text[:9].lower() == "<!doctype" or (text.startswith("<") and ">" in text):
        return Detection(True, text)
    return Detection(False, error="Input does not appear to be markup")


# Tried in order; each is (format, modes it runs under, detector).
FORMAT_STRATEGIES: tuple[tuple[DetectedFormat, tuple[ImportMode, ...], Callable[[str], Detection]], ...] = (
    (DetectedFormat.json, (ImportMode.auto, ImportMode.json), detect_json),
    (DetectedFormat.markup, (ImportMode.auto, ImportMode.markup), detect_markup),
)


@dataclass
class _Run:
    """Mutable state of one invocation; frozen into a ParseResult at the end."""
    state:    ImportState = ImportState.unparsed
    detected: DetectedFormat = DetectedFormat.none
    multiple: bool = False
    entries:  list[EntryFields] = field(default_factory=list)
    reports:  list[EntryReport] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    def to(self, state: ImportState) -> None:
        logger.debug("import %s -> %s", self.state.value, state.value)
        self.state = state

    def warn(self, *messages: str) -> None:
        for m in messages:
            if m and m not in self.warnings:
                self.warnings.append(m)

    def fail(self, error: str) -> ParseResult:
        self.to(ImportState.failed)
        return ParseResult(success=False, detected_format=DetectedFormat.none, warnings=self.warnings, error=error)

    def finish(self) -> ParseResult:
        self.to(ImportState.done)
        if not self.entries:
            self.warn(NO_FIELDS_WARNING)
        return ParseResult(
            success=bool(self.entries),
            entries=self.entries,
            detected_format=self.detected,
            is_multiple=self.multiple,
            warnings=self.warnings,
            reports=self.reports,
        )


def _detect(text: str, mode: ImportMode, run: _Run) -> tuple[Optional[Any], Optional[str]]:
    """Run the format strategies allowed by mode; returns (payload, error)."""
    for fmt, modes, detector in FORMAT_STRATEGIES:
        if mode not in modes:
            continue
        detection = detector(text)
        if detection.matched:
            run.detected = fmt
            return detection.payload, None
        if mode == ImportMode.json:
            return None, f"JSON parsing failed: {detection.error}"
        if mode == ImportMode.markup:
            # An explicit markup request accepts any text.
            run.detected = fmt
            return text, None
    return None, UNDETECTED_ERROR


def _skipped_warning(skipped: list[str]) -> Optional[str]:
    return f"Skipped fields (already filled): {', '.join(skipped)}" if skipped else None


def parse_import(
    payload: str,
    mode: ImportMode | str = ImportMode.auto,
    overwrite: bool = False,
    current: Optional[EntryFields] = None,
    *,
    registry: FieldRegistry = DEFAULT_REGISTRY,
    settings: Optional[Settings] = None,
    engine_factory=None,
    ) -> ParseResult:
    """Parse one submitted payload into entries. Never raises.

    A single entry honours overwrite/current (gap-filling when overwrite is
    False). Multiple entries are each extracted with overwrite on and no
    current fields; segments yielding nothing are dropped with a warning.
    A single entry that ends up with nothing written is only kept when
    some of its fields were skipped by the gap-filling policy.
    """
    run = _Run()
    try:
        return _parse(payload, ImportMode(mode), overwrite, current, registry, settings or Settings(), engine_factory, run)
    except Exception as e:
        logger.exception("Import failed unexpectedly")
        return run.fail(f"Import failed: {e}")


def _parse(payload, mode, overwrite, current, registry, settings, engine_factory, run: _Run) -> ParseResult:
    text = (payload or "").strip()
    if not text:
        return run.fail(NO_CONTENT_ERROR)

    run.to(ImportState.detecting_format)
    parsed, error = _detect(text, mode, run)
    if error:
        return run.fail(error)

    factory = engine_factory or partial(SoupEngine, max_heading_level=settings.max_heading_level)
    if run.detected == DetectedFormat.json:
        extract = partial(
            map_json, registry=registry, engine_factory=factory, markdown_preset=settings.markdown_preset,
        )
    else:
        extract = partial(
            extract_from_markup, registry=registry, engine_factory=factory,
            excerpt_max_length=settings.excerpt_max_length,
        )

    parts = split(parsed, run.detected, registry)
    run.warn(*parts.warnings)
    run.multiple = parts.is_multiple

    if len(parts.segments) > 1:
        run.to(ImportState.extracting_multiple)
        for i, segment in enumerate(parts.segments, start=1):
            mapping = extract(segment, True, EntryFields())
            run.warn(*mapping.warnings)
            if mapping.fields.is_blank():
                run.warn(f"Entry {i} produced no fields and was dropped")
                continue
            _keep(run, mapping)
    elif parts.segments:
        run.to(ImportState.extracting_single)
        mapping = extract(parts.segments[0], overwrite, current or EntryFields())
        run.warn(*mapping.warnings)
        if not mapping.fields.is_blank() or mapping.skipped:
            _keep(run, mapping)
            run.warn(_skipped_warning(mapping.skipped))
    return run.finish()


def _keep(run: _Run, mapping: FieldMapping) -> None:
    run.entries.append(mapping.fields)
    run.reports.append(EntryReport(detected=mapping.detected, skipped=mapping.skipped))


def fields_summary(fields: EntryFields) -> list[str]:
    """Short human-readable preview lines for the fields an import set."""
    summary = []
    if fields.title:
        summary.append(f'Title: "{truncate(fields.title, 50)}"')
    if fields.excerpt:
        summary.append(f'Excerpt: "{truncate(fields.excerpt, 50)}"')
    if fields.cover_image_url:
        summary.append(f"Cover Image: {truncate(fields.cover_image_url, 40)}")
    if fields.cover_image_alt:
        summary.append(f'Cover Alt: "{fields.cover_image_alt}"')
    if fields.content:
        blocks = len(fields.content.doc["content"]) if fields.content.doc else 0
        summary.append(f"Content: {blocks} block(s)")
    if fields.status:
        summary.append(f"Status: {fields.status.value}")
    if fields.journals:
        summary.append(f"Journals: {', '.join(fields.journals)}")
    if fields.collections:
        summary.append(f"Collections: {', '.join(fields.collections)}")
    return summary
