"""Turns backend question text into HTML pages for the web views.

Question and option text arrive as Markdown with ``$...$`` math. Markdown is
converted here; math is left in place for MathJax, which the page loads.
"""

from __future__ import annotations

import html
from dataclasses import dataclass, field

from markdown_it import MarkdownIt

MATHJAX_URL = "https://cdn.jsdelivr.net/npm/mathjax@3/es5/tex-mml-chtml.js"
EMPTY_QUESTION_HTML = "<p><em>(This question has no text.)</em></p>"

_MATHJAX_CONFIG = (
    "window.MathJax = {tex: {inlineMath: [['$', '$']], displayMath: [['$$', '$$']]}};"
)

_PAGE_CSS = """
body { margin: 0; padding: 12px 16px; color: #1f2933; background: transparent;
       font-family: 'Segoe UI', system-ui, sans-serif; }
.page { font-size: %(font_size)spt; line-height: 1.45; }
.option { margin: 6px 0; padding: 6px 10px; border: 1px solid #c8ccd0; border-radius: 6px; }
.option.selected { background: #e5f1fb; border-color: #0078d4; }
.headline.success { color: #107c10; }
.headline.warning { color: #b37a00; }
.headline.error { color: #d13438; }
.result-table th { padding-right: 24px; text-align: left; }
"""


@dataclass(slots=True)
class MarkdownMathRenderer:
    """Markdown-to-HTML converter; raw HTML in question text is escaped."""

    _parser: MarkdownIt = field(init=False, repr=False)

    def __post_init__(self) -> None:
        parser = MarkdownIt("commonmark", {"html": False})
        parser.enable(["table", "strikethrough"])
        self._parser = parser

    def render_fragment(self, markdown_text: str) -> str:
        text = markdown_text.strip()
        return self._parser.render(text) if text else EMPTY_QUESTION_HTML

    def render_inline(self, markdown_text: str) -> str:
        """Render an option label; no ``<p>`` wrapper so it sits beside its letter."""

        return self._parser.renderInline(markdown_text.strip())

    def wrap_with_mathjax(self, body_html: str, title: str = "ExamQt", font_size: int = 14) -> str:
        css = _PAGE_CSS % {"font_size": font_size}
        head = "\n".join(
            [
                '<meta charset="utf-8">',
                f"<title>{html.escape(title)}</title>",
                f"<style>{css}</style>",
                f"<script>{_MATHJAX_CONFIG}</script>",
                f'<script defer src="{MATHJAX_URL}"></script>',
            ]
        )
        return (
            "<!doctype html>\n<html lang=\"en\">\n"
            f"<head>\n{head}\n</head>\n"
            f"<body><div class=\"page\">{body_html}</div></body>\n</html>"
        )


# Shared instance; only used from the Qt thread.
renderer = MarkdownMathRenderer()
