"""Shared fixtures for core unit tests"""

import pytest

from entryimport.core.convert.engine import SoupEngine


SAMPLE_MARKUP = (
    '<h2>Field notes</h2>'
    '<p>Some <em>text</em> and <a href="https://example.com">a link</a>.</p>'
    '<ul><li>one</li><li>two</li></ul>'
    '<blockquote><p>quoted</p></blockquote>'
    '<pre><code class="language-py">print(1)</code></pre>'
    '<hr>'
)

MARKED_MARKUP = """\
<article>
  <h1>Heuristic title</h1>
  <img src="https://cdn.example.com/heuristic.png" alt="Heuristic">
  <p>Heuristic excerpt.</p>
  <h2 data-entry-field="title">Marker title</h2>
  <p data-entry-field="excerpt">Marker excerpt</p>
  <figure data-entry-field="coverImage"><img src="https://cdn.example.com/marker.png" alt="Marker alt"></figure>
  <div data-entry-field="content"><p>Marker body</p></div>
</article>
"""

LAYOUT_MARKUP = (
    '<h1>Layout title</h1>'
    '<figure><img src="https://cdn.example.com/cover.jpg" alt="Cover"></figure>'
    '<p>Short intro.</p>'
    '<p>Body text.</p>'
)


class ExplodingEngine(SoupEngine):
    """Engine whose markup conversion always fails."""

    def markup_to_doc(self, markup):
        self._check_open()
        raise RuntimeError("engine crashed")


class HollowEngine(SoupEngine):
    """Engine that returns a document with no blocks."""

    def markup_to_doc(self, markup):
        self._check_open()
        return {"type": "doc", "content": []}


@pytest.fixture(name="opened")
def opened_fixture():
    """Every engine instance handed out by the recording factories."""
    return []


def _recording(cls, opened):
    def make():
        engine = cls()
        opened.append(engine)
        return engine
    return make


@pytest.fixture(name="engine_factory")
def engine_factory_fixture(opened):
    return _recording(SoupEngine, opened)


@pytest.fixture(name="exploding_factory")
def exploding_factory_fixture(opened):
    return _recording(ExplodingEngine, opened)


@pytest.fixture(name="hollow_factory")
def hollow_factory_fixture(opened):
    return _recording(HollowEngine, opened)


@pytest.fixture(name="engine")
def engine_fixture():
    with SoupEngine() as engine:
        yield engine


@pytest.fixture(name="sample_markup")
def sample_markup_fixture():
    return SAMPLE_MARKUP


@pytest.fixture(name="marked_markup")
def marked_markup_fixture():
    return MARKED_MARKUP


@pytest.fixture(name="layout_markup")
def layout_markup_fixture():
    return LAYOUT_MARKUP
