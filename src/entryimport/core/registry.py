"""Field definitions: canonical entry fields, accepted input aliases, and markup markers"""

from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Optional


IGNORED_PREFIX = "__"
FIELD_MARKER_ATTR = "data-entry-field"
META_MARKER = "meta"


class FieldShape(str, Enum):
    """Input shapes a field accepts; each is matched explicitly by the extractors."""
    text = "text"                   # str
    image = "image"                 # str | {url|src, alt}
    alt_text = "alt_text"           # str
    rich_content = "rich_content"   # str | document | {doc|json, markup|html}
    status = "status"               # enum str | bool
    name_list = "name_list"         # "a, b" | [str] | [{name|title}]


@dataclass(frozen=True)
class FieldDefinition:
    name: str                       # canonical (public) field name
    attr: str                       # EntryFields attribute
    shape: FieldShape
    aliases: tuple[str, ...]        # input keys, highest priority first
    required: bool = False
    marker: Optional[str] = None    # value of the field-marker attribute in markup


class FieldRegistry:
    """Read-only lookup over field definitions, shared by both extractors."""

    def __init__(self, definitions: Iterable[FieldDefinition], ignored_keys: Iterable[str] = ()):
        self._definitions = tuple(definitions)
        self._by_name = {d.name: d for d in self._definitions}
        self._by_alias: dict[str, FieldDefinition] = {}
        for d in self._definitions:
            for alias in d.aliases:
                owner = self._by_alias.setdefault(alias, d)
                if owner is not d:
                    raise ValueError(f"Alias '{alias}' declared by both '{owner.name}' and '{d.name}'")
        self._ignored = frozenset(ignored_keys)

    @property
    def definitions(self) -> tuple[FieldDefinition, ...]:
        return self._definitions

    @property
    def ignored_keys(self) -> frozenset[str]:
        return self._ignored

    def get(self, name: str) -> FieldDefinition:
        try:
            return self._by_name[name]
        except KeyError:
            raise KeyError(f"Unknown entry field '{name}'") from None

    def aliases_for(self, name: str) -> tuple[str, ...]:
        return self.get(name).aliases

    def marker_for(self, name: str) -> Optional[str]:
        return self.get(name).marker

    def field_for_alias(self, alias: str) -> Optional[FieldDefinition]:
        return self._by_alias.get(alias)

    def field_for_marker(self, marker: str) -> Optional[FieldDefinition]:
        return next((d for d in self._definitions if d.marker == marker), None)

    @property
    def markers(self) -> tuple[str, ...]:
        """Recognized marker values, including the meta marker."""
        return tuple(d.marker for d in self._definitions if d.marker) + (META_MARKER,)

    def is_ignored(self, key: str) -> bool:
        """True for documentation/metadata keys that never map to a field."""
        return key in self._ignored or key.startswith(IGNORED_PREFIX)


DEFAULT_FIELDS = (
    FieldDefinition("title", "title", FieldShape.text, ("title", "name", "heading"), required=True, marker="title"),
    FieldDefinition("excerpt", "excerpt", FieldShape.text, ("excerpt", "summary", "description", "subtitle"), marker="excerpt"),
    FieldDefinition(
        "coverImageUrl", "cover_image_url", FieldShape.image,
        ("coverImageUrl", "cover_image_url", "coverImage", "cover", "image", "thumbnail", "featured_image", "featuredImage"),
        marker="coverImage",
    ),
    FieldDefinition(
        "coverImageAlt", "cover_image_alt", FieldShape.alt_text,
        ("coverImageAlt", "cover_image_alt", "coverAlt", "imageAlt", "image_alt"),
    ),
    FieldDefinition(
        "content", "content", FieldShape.rich_content,
        ("content_rich", "contentRich", "content", "body", "html", "content_html", "contentHtml", "text", "markdown"),
        marker="content",
    ),
    FieldDefinition("status", "status", FieldShape.status, ("status", "state", "published")),
    FieldDefinition("journals", "journals", FieldShape.name_list, ("journals", "journal", "categories", "category")),
    FieldDefinition("collections", "collections", FieldShape.name_list, ("collections", "collection", "tags", "labels", "label")),
)

DEFAULT_REGISTRY = FieldRegistry(DEFAULT_FIELDS, ignored_keys={"__meta", "__notes", "__template", "_meta", "_notes"})
