"""Unit tests for core/sanitize.py"""

import pytest

from entryimport.core import sanitize as sanitize_module
from entryimport.core.sanitize import is_unsafe_uri, sanitize, sanitize_doc


# --- is_unsafe_uri ---

@pytest.mark.parametrize("uri,unsafe", [
    ("https://example.com/a.png",               False),
    ("/relative/path",                          False),
    ("mailto:someone@example.com",              False),
    ("data:image/png;base64,iVBORw0KGgo=",      False),
    ("javascript:alert(1)",                     True),
    ("JaVaScRiPt:alert(1)",                     True),
    ("  javascript:alert(1)",                   True),
    ("java\tscript:alert(1)",                   True),
    ("vbscript:msgbox(1)",                      True),
    ("data:text/html;base64,PHNjcmlwdD4=",      True),
    ("data:image/svg+xml;base64,PHN2Zz4=",      True),
])
def test_is_unsafe_uri(uri, unsafe):
    """Script schemes and non-image data URIs are unsafe; ordinary links are not."""
    assert is_unsafe_uri(uri) is unsafe


# --- sanitize ---

def test_sanitize_removes_script_elements():
    """Script elements are removed together with their content."""
    assert sanitize("<p>Hi</p><script>alert(1)</script>") == "<p>Hi</p>"


@pytest.mark.parametrize("markup", [
    '<iframe src="https://evil.example"></iframe><p>ok</p>',
    '<object data="x.swf"></object><p>ok</p>',
    '<embed src="x.swf"><p>ok</p>',
    '<form action="/steal"><input name="a"></form><p>ok</p>',
    '<style>body { display: none }</style><p>ok</p>',
    '<noscript><img src="x"></noscript><p>ok</p>',
    '<base href="https://evil.example/"><p>ok</p>',
    '<meta http-equiv="refresh" content="0;url=javascript:alert(1)"><p>ok</p>',
])
def test_sanitize_removes_blocked_elements(markup):
    """Embedding, form and style elements are dropped entirely."""
    assert sanitize(markup) == "<p>ok</p>"


def test_sanitize_strips_event_handlers():
    """on* attributes are removed while safe attributes stay."""
    out = sanitize('<img src="x.png" onerror="alert(1)">')
    assert "onerror" not in out
    assert 'src="x.png"' in out


def test_sanitize_strips_mixed_case_handlers():
    """Handler detection ignores attribute case."""
    out = sanitize('<p OnClick="steal()">x</p>')
    assert "steal" not in out
    assert out == "<p>x</p>"


@pytest.mark.parametrize("href", [
    "javascript:alert(1)",
    "JAVASCRIPT:alert(1)",
    "java&#x09;script:alert(1)",
    "data:text/html;base64,PHNjcmlwdD4=",
])
def test_sanitize_strips_script_hrefs(href):
    """Links pointing at script or non-image data URIs lose their href."""
    out = sanitize(f'<a href="{href}" title="t">x</a>')
    assert out == '<a title="t">x</a>'


@pytest.mark.parametrize("srcset", [
    "javascript:alert(1) 1x",
    "safe.png 1x, javascript:alert(1) 2x",
    "safe.png 1x,data:image/svg+xml;base64,PHN2Zz4= 2x",
])
def test_sanitize_strips_unsafe_srcset(srcset):
    """A srcset with any unsafe candidate is removed."""
    out = sanitize(f'<img src="a.png" srcset="{srcset}">')
    assert "srcset" not in out
    assert 'src="a.png"' in out


def test_sanitize_keeps_safe_srcset():
    out = sanitize('<img src="a.png" srcset="a.png 1x, https://cdn.example/b.png 2x">')
    assert 'srcset="a.png 1x, https://cdn.example/b.png 2x"' in out


def test_sanitize_strips_svg_data_image():
    """SVG data URIs can carry script and are removed from image sources."""
    out = sanitize('<img src="data:image/svg+xml;base64,PHN2Zz4=" alt="a">')
    assert "data:" not in out
    assert 'alt="a"' in out


def test_sanitize_keeps_raster_data_image():
    """Raster image data URIs are kept."""
    out = sanitize('<img src="data:image/png;base64,iVBORw0KGgo=">')
    assert "data:image/png" in out


def test_sanitize_strips_script_in_style():
    """Inline styles using expression() or script URIs are removed."""
    assert sanitize('<div style="width: expression(alert(1))">x</div>') == "<div>x</div>"


def test_sanitize_drops_comments():
    """Comments are removed; surrounding text is joined."""
    assert sanitize("<p>a<!-- hidden -->b</p>") == "<p>ab</p>"


def test_sanitize_full_document_returns_body():
    """For a full document only the body's inner markup is returned."""
    markup = (
        "<!DOCTYPE html><html><head><title>T</title><script>x()</script></head>"
        "<body><p>x</p></body></html>"
    )
    assert sanitize(markup) == "<p>x</p>"


def test_sanitize_keeps_safe_markup():
    """Safe formatting and links pass through unchanged."""
    markup = '<p><strong>Bold</strong> <a href="https://example.com">link</a></p>'
    assert sanitize(markup) == markup


@pytest.mark.parametrize("markup", ["", "   ", None])
def test_sanitize_empty(markup):
    assert sanitize(markup) == ""


def test_sanitize_failure_returns_empty(monkeypatch):
    """An internal parser failure yields '' rather than the unsanitized input."""
    def boom(*args, **kwargs):
        raise RuntimeError("parser down")
    monkeypatch.setattr(sanitize_module, "BeautifulSoup", boom)
    assert sanitize("<p onclick='x()'>hi</p>") == ""


# --- sanitize_doc ---

def test_sanitize_doc_removes_script_links_and_images():
    """Script hrefs lose their link mark and script image nodes are dropped."""
    doc = {"type": "doc", "content": [
        {"type": "paragraph", "content": [
            {"type": "text", "text": "click", "marks": [
                {"type": "bold"},
                {"type": "link", "attrs": {"href": "javascript:alert(1)"}},
            ]},
        ]},
        {"type": "image", "attrs": {"src": "javascript:alert(1)"}},
        {"type": "image", "attrs": {"src": "https://cdn.example.com/a.png"}},
    ]}
    clean = sanitize_doc(doc)
    assert clean["content"][0]["content"][0]["marks"] == [{"type": "bold"}]
    assert [b["type"] for b in clean["content"]] == ["paragraph", "image"]
    assert clean["content"][1]["attrs"]["src"] == "https://cdn.example.com/a.png"


def test_sanitize_doc_does_not_mutate_input():
    doc = {"type": "doc", "content": [{"type": "image", "attrs": {"src": "javascript:x"}}]}
    sanitize_doc(doc)
    assert len(doc["content"]) == 1


def test_sanitize_doc_rejects_non_node():
    assert sanitize_doc("not a doc") is None
