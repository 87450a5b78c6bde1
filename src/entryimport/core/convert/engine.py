"""Schema-aware conversion engine between markup and the editor's document tree.

The editing surface stores rich text as a ProseMirror-style JSON tree::

    {"type": "doc", "content": [
        {"type": "heading", "attrs": {"level": 2, "textAlign": None}, "content": [...]},
        {"type": "paragraph", "attrs": {"textAlign": None}, "content": [
            {"type": "text", "text": "Hello ", "marks": [{"type": "bold"}]},
        ]},
    ]}

Only node and mark types the editor knows are produced; anything else in the
markup is flattened into its text or dropped. Engines are scoped resources:
callers open one with ``with``, run a single conversion, and let it close.
"""

import html
import re
from typing import Any, Callable, Optional, Protocol

from bs4 import BeautifulSoup, NavigableString, Tag
from bs4.element import PreformattedString


Node = dict[str, Any]

HEADING_TAGS = {f"h{n}": n for n in range(1, 7)}
MARK_TAGS = {
    "strong": "bold", "b": "bold",
    "em": "italic", "i": "italic", "cite": "italic",
    "u": "underline", "ins": "underline",
    "s": "strike", "strike": "strike", "del": "strike",
    "code": "code", "kbd": "code", "samp": "code",
}
# Rendered in this order, outermost first, so output is stable across round trips.
MARK_ORDER = ("link", "bold", "italic", "underline", "strike", "code")
MARK_HTML = {"bold": "strong", "italic": "em", "underline": "u", "strike": "s", "code": "code"}
CONTAINER_TAGS = frozenset({
    "html", "body", "div", "section", "article", "main", "header", "footer", "aside",
    "nav", "figure", "table", "thead", "tbody", "tfoot", "dl", "details", "center",
})
PARAGRAPH_LIKE_TAGS = frozenset({"p", "figcaption", "tr", "dt", "dd", "address", "summary", "caption"})
SKIP_TAGS = frozenset({"head", "title", "meta", "link", "script", "style", "template", "noscript"})
ALIGNMENTS = ("left", "center", "right", "justify")

_WS_RE = re.compile(r"\s+")
_ALIGN_RE = re.compile(r"text-align\s*:\s*(left|center|right|justify)", re.IGNORECASE)


class ConversionError(ValueError):
    """Raised by an engine when input cannot be converted at all."""


class ConversionEngine(Protocol):
    """Narrow capability the converter depends on; swappable and mockable."""

    def markup_to_doc(self, markup: str) -> Node: ...

    def doc_to_markup(self, doc: Node) -> str: ...

    def close(self) -> None: ...

    def __enter__(self) -> "ConversionEngine": ...

    def __exit__(self, *exc) -> None: ...


EngineFactory = Callable[[], ConversionEngine]


def _align(el: Tag) -> Optional[str]:
    m = _ALIGN_RE.search(el.get("style") or "")
    if m:
        return m.group(1).lower()
    for cls in el.get("class") or []:
        if cls.startswith("align-") and cls[6:] in ALIGNMENTS:
            return cls[6:]
    return None


def _text(text: str, marks: tuple) -> Node:
    node: Node = {"type": "text", "text": text}
    if marks:
        node["marks"] = [dict(m) for m in marks]
    return node


def _with_mark(marks: tuple, mark: Node) -> tuple:
    if any(m["type"] == mark["type"] for m in marks):
        return marks
    return tuple(sorted(marks + (mark,), key=lambda m: MARK_ORDER.index(m["type"])))


class SoupEngine:
    """BeautifulSoup-backed engine implementing the editor schema."""

    def __init__(self, max_heading_level: int = 3):
        self.max_heading_level = max_heading_level
        self._closed = False

    def __enter__(self) -> "SoupEngine":
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    def close(self) -> None:
        self._closed = True

    @property
    def closed(self) -> bool:
        return self._closed

    def _check_open(self) -> None:
        if self._closed:
            raise ConversionError("engine already closed")

    # --- markup -> doc ---

    def markup_to_doc(self, markup: str) -> Node:
        self._check_open()
        soup = BeautifulSoup(markup or "", "html.parser")
        return {"type": "doc", "content": self._blocks(soup.contents)}

    def _blocks(self, children) -> list[Node]:
        """Convert a run of sibling nodes to block nodes, wrapping stray inline content."""
        blocks: list[Node] = []
        pending: list = []

        def flush():
            if pending:
                blocks.extend(self._paragraphs(pending, {"textAlign": None}, drop_empty=True))
                pending.clear()

        for child in list(children):
            if isinstance(child, PreformattedString):
                continue
            if isinstance(child, NavigableString):
                pending.append(child)
                continue
            if not isinstance(child, Tag):
                continue
            name = child.name.lower()
            if name in SKIP_TAGS:
                continue
            block = self._block(child, name)
            if block is None:
                pending.append(child)
                continue
            flush()
            blocks.extend(block)
        flush()
        return blocks

    def _block(self, el: Tag, name: str) -> Optional[list[Node]]:
        """Block nodes for el, or None when el is inline content."""
        if name in HEADING_TAGS:
            level = min(HEADING_TAGS[name], self.max_heading_level)
            attrs = {"level": level, "textAlign": _align(el)}
            return self._paragraphs(el.contents, attrs, node_type="heading")
        if name in PARAGRAPH_LIKE_TAGS:
            return self._paragraphs(el.contents, {"textAlign": _align(el)}, drop_empty=name != "p")
        if name in ("ul", "ol", "menu"):
            return [self._list(el, name)]
        if name == "blockquote":
            return [{"type": "blockquote", "content": self._blocks(el.contents) or [_empty_paragraph()]}]
        if name == "pre":
            return [self._code_block(el)]
        if name == "hr":
            return [{"type": "horizontalRule"}]
        if name == "img":
            image = self._image(el)
            return [image] if image else []
        if name in CONTAINER_TAGS or name in ("td", "th", "li"):
            return self._blocks(el.contents)
        return None

    def _list(self, el: Tag, name: str) -> Node:
        items = []
        stray: list = []
        for child in el.contents:
            if isinstance(child, Tag) and child.name.lower() == "li":
                if stray:
                    items.append({"type": "listItem", "content": self._blocks(stray) or [_empty_paragraph()]})
                    stray = []
                items.append(self._list_item(child))
            elif not (isinstance(child, NavigableString) and not child.strip()):
                stray.append(child)
        if stray:
            items.append({"type": "listItem", "content": self._blocks(stray) or [_empty_paragraph()]})
        if not items:
            items.append({"type": "listItem", "content": [_empty_paragraph()]})
        if name == "ol":
            start = el.get("start") or "1"
            return {"type": "orderedList", "attrs": {"start": int(start) if start.isdigit() else 1}, "content": items}
        return {"type": "bulletList", "content": items}

    def _list_item(self, el: Tag) -> Node:
        return {"type": "listItem", "content": self._blocks(el.contents) or [_empty_paragraph()]}

    def _code_block(self, el: Tag) -> Node:
        language = None
        code = el.find("code")
        for cls in (code.get("class") if code else None) or el.get("class") or []:
            if cls.startswith("language-"):
                language = cls[len("language-"):]
        text = el.get_text()
        node: Node = {"type": "codeBlock", "attrs": {"language": language}, "content": []}
        if text:
            node["content"].append({"type": "text", "text": text})
        return node

    def _image(self, el: Tag) -> Optional[Node]:
        src = (el.get("src") or "").strip()
        if not src:
            return None
        return {"type": "image", "attrs": {"src": src, "alt": el.get("alt"), "title": el.get("title")}}

    def _paragraphs(self, children, attrs, node_type="paragraph", drop_empty=False) -> list[Node]:
        """Build text blocks from inline children, lifting images out as their own blocks."""
        out: list[Node] = []
        run: list[Node] = []

        def close_run(force=False):
            inline = _tidy_inline(run)
            if inline or (force and not drop_empty):
                node: Node = {"type": node_type}
                if attrs is not None:
                    node["attrs"] = dict(attrs)
                node["content"] = inline
                out.append(node)
            run.clear()

        for item in self._inline(children, ()):
            if item["type"] == "image" or item.get("_block"):
                item.pop("_block", None)
                close_run()
                out.append(item)
            else:
                run.append(item)
        close_run(force=not out)
        return out

    def _inline(self, children, marks: tuple) -> list[Node]:
        items: list[Node] = []
        for child in children:
            if isinstance(child, PreformattedString):
                continue
            if isinstance(child, NavigableString):
                text = _WS_RE.sub(" ", str(child))
                if text:
                    items.append(_text(text, marks))
                continue
            if not isinstance(child, Tag):
                continue
            name = child.name.lower()
            if name in SKIP_TAGS:
                continue
            if name == "br":
                items.append({"type": "hardBreak"})
            elif name == "img":
                image = self._image(child)
                if image:
                    items.append(image)
            elif name == "a" and child.get("href"):
                link = {"type": "link", "attrs": {"href": child["href"], "target": child.get("target")}}
                items.extend(self._inline(child.contents, _with_mark(marks, link)))
            elif name in MARK_TAGS:
                items.extend(self._inline(child.contents, _with_mark(marks, {"type": MARK_TAGS[name]})))
            elif name in ("td", "th"):
                items.extend(self._inline(child.contents, marks))
                items.append(_text(" ", marks))
            elif name in ("ul", "ol", "blockquote", "pre", "hr") or name in HEADING_TAGS:
                for block in self._block(child, name) or []:
                    block["_block"] = True
                    items.append(block)
            else:
                items.extend(self._inline(child.contents, marks))
        return items

    # --- doc -> markup ---

    def doc_to_markup(self, doc: Node) -> str:
        self._check_open()
        if not isinstance(doc, dict) or doc.get("type") != "doc" or not isinstance(doc.get("content"), list):
            raise ConversionError("not a document node")
        return "".join(self._render(node) for node in doc["content"])

    def _render(self, node: Node) -> str:
        if not isinstance(node, dict):
            raise ConversionError(f"unexpected node {node!r}")
        kind = node.get("type")
        attrs = node.get("attrs") or {}
        inner = "".join(self._render(child) for child in node.get("content") or [])
        if kind == "text":
            return self._render_text(node)
        if kind == "paragraph":
            return f"<p{_style(attrs)}>{inner}</p>"
        if kind == "heading":
            level = min(max(int(attrs.get("level") or 1), 1), 6)
            return f"<h{level}{_style(attrs)}>{inner}</h{level}>"
        if kind == "bulletList":
            return f"<ul>{inner}</ul>"
        if kind == "orderedList":
            start = attrs.get("start") or 1
            return f'<ol start="{int(start)}">{inner}</ol>' if start != 1 else f"<ol>{inner}</ol>"
        if kind == "listItem":
            return f"<li>{inner}</li>"
        if kind == "blockquote":
            return f"<blockquote>{inner}</blockquote>"
        if kind == "codeBlock":
            text = "".join(c.get("text", "") for c in node.get("content") or [])
            cls = f' class="language-{html.escape(attrs["language"])}"' if attrs.get("language") else ""
            return f"<pre><code{cls}>{html.escape(text, quote=False)}</code></pre>"
        if kind == "horizontalRule":
            return "<hr>"
        if kind == "hardBreak":
            return "<br>"
        if kind == "image":
            parts = [f'src="{html.escape(attrs.get("src") or "")}"']
            for key in ("alt", "title"):
                if attrs.get(key):
                    parts.append(f'{key}="{html.escape(attrs[key])}"')
            return f"<img {' '.join(parts)}>"
        return inner

    def _render_text(self, node: Node) -> str:
        out = html.escape(node.get("text") or "", quote=False)
        marks = sorted(
            (m for m in node.get("marks") or [] if m.get("type") in MARK_ORDER),
            key=lambda m: MARK_ORDER.index(m["type"]),
        )
        for mark in reversed(marks):
            if mark["type"] == "link":
                attrs = mark.get("attrs") or {}
                target = f' target="{html.escape(attrs["target"])}"' if attrs.get("target") else ""
                out = f'<a href="{html.escape(attrs.get("href") or "")}"{target}>{out}</a>'
            else:
                tag = MARK_HTML[mark["type"]]
                out = f"<{tag}>{out}</{tag}>"
        return out


def _style(attrs: dict) -> str:
    align = attrs.get("textAlign")
    return f' style="text-align: {align}"' if align in ALIGNMENTS else ""


def _empty_paragraph() -> Node:
    return {"type": "paragraph", "content": []}


def _tidy_inline(items: list[Node]) -> list[Node]:
    """Trim edge whitespace, drop empty text and merge neighbours with equal marks."""
    merged: list[Node] = []
    for item in items:
        if item["type"] == "text":
            prev = merged[-1] if merged else None
            text = item["text"]
            if prev is None or prev["type"] == "hardBreak":
                text = text.lstrip()
            if prev is not None and prev["type"] == "text" and prev["text"].endswith(" "):
                text = text.lstrip()
            if not text:
                continue
            if prev is not None and prev["type"] == "text" and prev.get("marks") == item.get("marks"):
                prev["text"] += text
                continue
            item = dict(item, text=text)
        merged.append(item)

    while merged and merged[-1]["type"] == "text":
        last = merged[-1]
        last["text"] = last["text"].rstrip()
        if last["text"]:
            break
        merged.pop()
    for i, item in enumerate(merged):
        if item["type"] == "text" and i + 1 < len(merged) and merged[i + 1]["type"] == "hardBreak":
            item["text"] = item["text"].rstrip()
    return [item for item in merged if item["type"] != "text" or item["text"]]
