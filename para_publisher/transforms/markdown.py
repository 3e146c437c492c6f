"""Markdown to HTML rendering."""

from typing import Optional

import inflection
from markdown_it import MarkdownIt
from mdit_py_plugins.anchors import anchors_plugin
from mdit_py_plugins.footnote import footnote_plugin
from mdit_py_plugins.tasklists import tasklists_plugin


def heading_id(text: str) -> str:
    """Generate a URL-safe id for a heading or section name."""
    return inflection.parameterize(text)


class MarkdownRenderer:
    """Renders document bodies with the extended rule set.

    Handles:
    - Tables and strikethrough
    - Task lists
    - Footnotes
    - Smart punctuation (quotes, dashes, ellipses)
    - Optional heading ids

    Raw HTML is passed through, so wiki-links rewritten to ``<a>`` and
    ``<span>`` elements before rendering survive unchanged.
    """

    def __init__(self, heading_ids: bool = False):
        self.heading_ids = heading_ids
        self._md = self._create_parser()

    def _create_parser(self) -> MarkdownIt:
        md = MarkdownIt("commonmark", {"typographer": True, "html": True})
        md.enable(["table", "strikethrough", "replacements", "smartquotes"])
        md.use(footnote_plugin)
        md.use(tasklists_plugin)
        if self.heading_ids:
            md.use(anchors_plugin, min_level=1, max_level=6, slug_func=heading_id)
        return md

    def render(self, content: str) -> str:
        """Convert markdown content to HTML."""
        return self._md.render(content)

    def __call__(self, content: str) -> str:
        return self.render(content)


_default_renderer: Optional[MarkdownRenderer] = None


def markdown_to_html(content: str, heading_ids: bool = False) -> str:
    """Convert markdown content to HTML with the extended rule set."""
    global _default_renderer
    if heading_ids:
        return MarkdownRenderer(heading_ids=True).render(content)
    if _default_renderer is None:
        _default_renderer = MarkdownRenderer()
    return _default_renderer.render(content)
