"""Question rendering utilities for the attempt view."""

from __future__ import annotations

import html

from exam_app.core.markdown_math_renderer import renderer
from exam_app.core.models import Question


def option_label(index: int) -> str:
    return chr(ord("A") + index)


def render_question(
    question: Question,
    number: int,
    total: int,
    selected_option_id: str | None = None,
    font_size: int = 14,
) -> str:
    """Render a question with its options as HTML for QWebEngineView.

    The selected option is highlighted; selection itself happens through the
    radio buttons below the view, so the page needs no JavaScript bridge.
    """
    parts = [
        f"<p><strong>Question {number} of {total}</strong>"
        f" <small>({question.marks:g} mark{'s' if question.marks != 1 else ''}"
        + (f", -{question.negative_marks:g} if wrong" if question.negative_marks else "")
        + ")</small></p>",
        renderer.render_fragment(question.text),
    ]
    for index, option in enumerate(question.options):
        css_class = "option selected" if option.id == selected_option_id else "option"
        parts.append(
            f"<div class=\"{css_class}\"><strong>{option_label(index)}.</strong> "
            f"{renderer.render_inline(option.text) or html.escape('(empty)')}</div>"
        )
    return renderer.wrap_with_mathjax("\n".join(parts), title=f"Question {number}", font_size=font_size)
