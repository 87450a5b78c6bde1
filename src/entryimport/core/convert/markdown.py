"""Markdown rendering for content supplied as markdown rather than markup"""

from markdown_it import MarkdownIt


def _make_parser(preset: str) -> MarkdownIt:
    """Build a MarkdownIt instance for the given preset name."""
    return MarkdownIt(preset, options_update={"linkify": False})


def render_markdown(text: str, preset: str = "gfm-like") -> str:
    """Render markdown text to markup. Raw HTML passes through; sanitize afterwards."""
    return _make_parser(preset).render(text or "")
