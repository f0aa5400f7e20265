"""Domain models for the exam client."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum


class SessionState(Enum):
    """Lifecycle of a test session as seen by the client."""

    NEGOTIATING = "negotiating"
    ACTIVE = "active"
    SUBMITTING = "submitting"
    COMPLETED = "completed"
    ABANDONED = "abandoned"


class ResumeChoice(Enum):
    """Learner decision when a live session already exists."""

    CONTINUE = "continue"
    ABANDON = "abandon"


class SubmitReason(Enum):
    MANUAL = "manual"
    TIMEOUT = "timeout"


class DisplayState(Enum):
    """Palette state of a question, derived from answers and review marks."""

    UNANSWERED = "unanswered"
    ANSWERED = "answered"
    MARKED = "marked"
    ANSWERED_AND_MARKED = "answered_and_marked"


@dataclass(frozen=True, slots=True)
class TestDefinition:
    """Server-owned description of a test. Read-only to the client."""

    __test__ = False

    id: str
    name: str
    time_limit_minutes: int
    total_marks: float
    passing_marks: float
    max_attempts: int | None = None
    negative_marking: bool = False
    negative_mark_percentage: float = 0.0
    question_count: int | None = None
    description: str = ""

    @property
    def time_limit_seconds(self) -> int:
        return self.time_limit_minutes * 60


@dataclass(frozen=True, slots=True)
class QuestionOption:
    id: str
    text: str


@dataclass(frozen=True, slots=True)
class Question:
    """Multiple-choice question as delivered for one session (no answer key)."""

    id: str
    text: str
    options: tuple[QuestionOption, ...]
    marks: float = 1.0
    negative_marks: float = 0.0

    def option_at(self, index: int) -> QuestionOption | None:
        if 0 <= index < len(self.options):
            return self.options[index]
        return None

    def has_option(self, option_id: str) -> bool:
        return any(option.id == option_id for option in self.options)


@dataclass(slots=True)
class TestSession:
    """Server-tracked, time-boxed attempt of one test."""

    __test__ = False

    session_id: str
    test_id: str
    started_at: datetime
    expires_at: datetime
    attempt_id: str | None = None
    state: SessionState = SessionState.NEGOTIATING

    @property
    def duration_seconds(self) -> float:
        return (self.expires_at - self.started_at).total_seconds()


@dataclass(frozen=True, slots=True)
class ActiveSessionInfo:
    """Answer of the backend to "is there a live session for this test?"."""

    has_active_session: bool
    session_id: str | None = None
    started_at: datetime | None = None
    expires_at: datetime | None = None


@dataclass(frozen=True, slots=True)
class SessionHandle:
    """Outcome of negotiation: the session to use and how it was obtained."""

    session: TestSession
    resumed: bool = False
    abandoned_session_id: str | None = None


@dataclass(frozen=True, slots=True)
class AttemptResult:
    """Score breakdown computed once by the backend on final submission."""

    attempt_id: str | None
    test_id: str
    marks_obtained: float
    total_marks: float
    percentage: float
    passed: bool
    correct_count: int
    wrong_count: int
    unanswered_count: int
    time_taken_seconds: int
    test_name: str = ""
    submitted_at: datetime | None = None


@dataclass(frozen=True, slots=True)
class AttemptSummary:
    """One row of the learner's attempt history."""

    attempt_id: str
    test_id: str
    test_name: str
    percentage: float | None
    marks_obtained: float | None
    total_marks: float | None
    passed: bool | None
    time_taken_seconds: int
    attempted_at: datetime
    completed_at: datetime | None = None

    @property
    def is_completed(self) -> bool:
        return self.completed_at is not None


@dataclass(frozen=True, slots=True)
class SubmissionSummary:
    """Pre-submit overview shown in the confirmation dialog."""

    answered: int
    unanswered: int
    marked: int
    elapsed_seconds: int
    total: int = field(default=0)
