"""Unit tests for core/registry.py"""

import pytest

from entryimport.core.registry import (
    DEFAULT_REGISTRY, FieldDefinition, FieldRegistry, FieldShape,
)


def test_every_alias_resolves_to_its_field():
    """Alias lookup is the inverse of each definition's alias list."""
    for definition in DEFAULT_REGISTRY.definitions:
        for alias in definition.aliases:
            assert DEFAULT_REGISTRY.field_for_alias(alias) is definition


def test_overlapping_aliases_are_rejected():
    """An alias claimed by two fields would make extraction ambiguous."""
    with pytest.raises(ValueError, match="'summary'"):
        FieldRegistry([
            FieldDefinition("title", "title", FieldShape.text, ("title", "summary")),
            FieldDefinition("excerpt", "excerpt", FieldShape.text, ("excerpt", "summary")),
        ])


def test_get_unknown_field():
    with pytest.raises(KeyError):
        DEFAULT_REGISTRY.get("author")


@pytest.mark.parametrize("alias,field", [
    ("name",           "title"),
    ("subtitle",       "excerpt"),
    ("featured_image", "coverImageUrl"),
    ("image_alt",      "coverImageAlt"),
    ("body",           "content"),
    ("published",      "status"),
    ("categories",     "journals"),
    ("tags",           "collections"),
    ("label",          "collections"),
])
def test_field_for_alias(alias, field):
    assert DEFAULT_REGISTRY.field_for_alias(alias).name == field


def test_field_for_alias_unknown():
    assert DEFAULT_REGISTRY.field_for_alias("author") is None


def test_markers():
    """Marker values cover the marked fields plus meta."""
    assert set(DEFAULT_REGISTRY.markers) == {"title", "excerpt", "coverImage", "content", "meta"}
    assert DEFAULT_REGISTRY.field_for_marker("coverImage").name == "coverImageUrl"
    assert DEFAULT_REGISTRY.marker_for("coverImageAlt") is None


@pytest.mark.parametrize("key,ignored", [
    ("__meta",  True),
    ("__notes", True),
    ("_meta",   True),
    ("_notes",  True),
    ("_private", False),
    ("title",   False),
])
def test_is_ignored(key, ignored):
    assert DEFAULT_REGISTRY.is_ignored(key) is ignored


def test_only_title_is_required():
    assert [d.name for d in DEFAULT_REGISTRY.definitions if d.required] == ["title"]
