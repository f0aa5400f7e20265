"""Question navigation and palette-state derivation."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping, Sequence

from exam_app.core.models import DisplayState, Question


def derive_display_state(answered: bool, marked: bool) -> DisplayState:
    if answered and marked:
        return DisplayState.ANSWERED_AND_MARKED
    if answered:
        return DisplayState.ANSWERED
    if marked:
        return DisplayState.MARKED
    return DisplayState.UNANSWERED


@dataclass(frozen=True, slots=True)
class PaletteEntry:
    """One cell of the question palette."""

    number: int
    question_id: str
    state: DisplayState
    is_current: bool


class QuestionNavigator:
    """Tracks the current question and the review marks of one session.

    ``answers`` is the live AnswerRecord owned by the synchronizer; the
    navigator only reads it. Display state never depends on which questions
    were visited or in what order.
    """

    def __init__(self, questions: Sequence[Question], answers: Mapping[str, str | None]) -> None:
        if not questions:
            raise ValueError("A test session needs at least one question.")
        self._questions = list(questions)
        self._answers = answers
        self._marked: set[str] = set()
        self._index = 0

    @property
    def index(self) -> int:
        return self._index

    @property
    def count(self) -> int:
        return len(self._questions)

    @property
    def current(self) -> Question:
        return self._questions[self._index]

    @property
    def questions(self) -> list[Question]:
        return list(self._questions)

    def is_first(self) -> bool:
        return self._index == 0

    def is_last(self) -> bool:
        return self._index == len(self._questions) - 1

    def next(self) -> Question:
        self._index = min(self._index + 1, len(self._questions) - 1)
        return self.current

    def previous(self) -> Question:
        self._index = max(self._index - 1, 0)
        return self.current

    def go_to(self, index: int) -> Question:
        if not 0 <= index < len(self._questions):
            raise IndexError(f"Question index {index} out of range")
        self._index = index
        return self.current

    # --- Review marks ---

    def is_marked(self, question_id: str) -> bool:
        return question_id in self._marked

    def toggle_mark(self, question_id: str | None = None) -> bool:
        """Flip the review mark (current question by default). Returns the new value."""
        target = question_id or self.current.id
        if target in self._marked:
            self._marked.discard(target)
            return False
        self._marked.add(target)
        return True

    def marked_ids(self) -> set[str]:
        return set(self._marked)

    # --- Derived state ---

    def is_answered(self, question_id: str) -> bool:
        return self._answers.get(question_id) is not None

    def display_state(self, question_id: str) -> DisplayState:
        return derive_display_state(self.is_answered(question_id), question_id in self._marked)

    def palette(self) -> list[PaletteEntry]:
        return [
            PaletteEntry(
                number=position + 1,
                question_id=question.id,
                state=self.display_state(question.id),
                is_current=position == self._index,
            )
            for position, question in enumerate(self._questions)
        ]

    def answered_count(self) -> int:
        return sum(1 for question in self._questions if self.is_answered(question.id))
