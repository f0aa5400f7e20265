"""Turns an AttemptResult into display rows and an HTML score card."""

from __future__ import annotations

import html
from dataclasses import dataclass

from exam_app.constants.exam_constants import SCORE_SUCCESS_THRESHOLD, SCORE_WARNING_THRESHOLD
from exam_app.core.markdown_math_renderer import renderer
from exam_app.core.models import AttemptResult, SubmitReason
from exam_app.core.services.countdown_timer import format_duration


def score_band(percentage: float | None) -> str:
    """Colour band for a score: ``success``, ``warning`` or ``error``."""
    if percentage is None:
        return "neutral"
    if percentage >= SCORE_SUCCESS_THRESHOLD:
        return "success"
    if percentage >= SCORE_WARNING_THRESHOLD:
        return "warning"
    return "error"


def _format_marks(value: float) -> str:
    return f"{value:g}"


@dataclass(frozen=True, slots=True)
class ResultRow:
    label: str
    value: str


class ResultPresenter:
    """Renders the backend's score breakdown. Holds no state besides ``is_open``."""

    def __init__(self) -> None:
        self._result: AttemptResult | None = None
        self._reason: SubmitReason | None = None

    @property
    def is_open(self) -> bool:
        return self._result is not None

    @property
    def result(self) -> AttemptResult | None:
        return self._result

    def open(self, result: AttemptResult, reason: SubmitReason | None = None) -> None:
        self._result = result
        self._reason = reason

    def close(self) -> None:
        self._result = None
        self._reason = None

    def headline(self) -> str:
        result = self._require_result()
        verdict = "Passed" if result.passed else "Not passed"
        return f"{verdict}: {result.percentage:.1f}%"

    def rows(self) -> list[ResultRow]:
        result = self._require_result()
        rows = [
            ResultRow("Score", f"{_format_marks(result.marks_obtained)} / {_format_marks(result.total_marks)}"),
            ResultRow("Percentage", f"{result.percentage:.1f}%"),
            ResultRow("Result", "Pass" if result.passed else "Fail"),
            ResultRow("Correct", str(result.correct_count)),
            ResultRow("Wrong", str(result.wrong_count)),
            ResultRow("Unanswered", str(result.unanswered_count)),
            ResultRow("Time taken", format_duration(result.time_taken_seconds)),
        ]
        if self._reason is SubmitReason.TIMEOUT:
            rows.append(ResultRow("Submitted", "Automatically when time ran out"))
        return rows

    def render_html(self, font_size: int = 14) -> str:
        result = self._require_result()
        band = score_band(result.percentage)
        title = result.test_name or f"Test {result.test_id}"
        table_rows = "\n".join(
            f"<tr><th>{html.escape(row.label)}</th><td>{html.escape(row.value)}</td></tr>"
            for row in self.rows()
        )
        body = (
            f"<h2>{html.escape(title)}</h2>\n"
            f"<p class=\"headline {band}\">{html.escape(self.headline())}</p>\n"
            f"<table class=\"result-table\">\n{table_rows}\n</table>"
        )
        return renderer.wrap_with_mathjax(body, title=title, font_size=font_size)

    def _require_result(self) -> AttemptResult:
        if self._result is None:
            raise RuntimeError("No result is open.")
        return self._result
