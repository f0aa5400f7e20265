"""Pydantic wire schemas for the test backend (camelCase JSON)."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from exam_app.core.models import (
    ActiveSessionInfo,
    AttemptResult,
    AttemptSummary,
    Question,
    QuestionOption,
    SessionState,
    TestDefinition,
    TestSession,
)


def _as_utc(value: datetime | None) -> datetime | None:
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class WireModel(BaseModel):
    """Base schema: camelCase aliases, numeric ids accepted as strings."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        coerce_numbers_to_str=True,
        extra="ignore",
    )

    @field_validator("*", mode="after")
    @classmethod
    def _normalize_datetimes(cls, value):
        if isinstance(value, datetime):
            return _as_utc(value)
        return value


class TestDefinitionPayload(WireModel):
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

    def to_domain(self) -> TestDefinition:
        return TestDefinition(
            id=self.id,
            name=self.name,
            time_limit_minutes=self.time_limit_minutes,
            total_marks=self.total_marks,
            passing_marks=self.passing_marks,
            max_attempts=self.max_attempts,
            negative_marking=self.negative_marking,
            negative_mark_percentage=self.negative_mark_percentage,
            question_count=self.question_count,
            description=self.description,
        )


class ActiveSessionPayload(WireModel):
    has_active_session: bool
    session_id: str | None = None
    started_at: datetime | None = None
    expires_at: datetime | None = None

    def to_domain(self) -> ActiveSessionInfo:
        if self.has_active_session and (
            self.session_id is None or self.started_at is None or self.expires_at is None
        ):
            raise ValueError("Active session response is missing sessionId, startedAt or expiresAt.")
        return ActiveSessionInfo(
            has_active_session=self.has_active_session,
            session_id=self.session_id,
            started_at=self.started_at,
            expires_at=self.expires_at,
        )


class SessionStartPayload(WireModel):
    session_id: str
    attempt_id: str | None = None
    started_at: datetime
    expires_at: datetime

    def to_domain(self, test_id: str) -> TestSession:
        return TestSession(
            session_id=self.session_id,
            test_id=test_id,
            attempt_id=self.attempt_id,
            started_at=self.started_at,
            expires_at=self.expires_at,
            state=SessionState.NEGOTIATING,
        )


class OptionPayload(WireModel):
    id: str
    text: str


class QuestionPayload(WireModel):
    id: str
    text: str = Field(validation_alias=AliasChoices("text", "questionText"))
    options: list[OptionPayload]
    marks: float = 1.0
    negative_marks: float = 0.0

    @classmethod
    def from_domain(cls, question: Question) -> QuestionPayload:
        return cls(
            id=question.id,
            text=question.text,
            options=[OptionPayload(id=option.id, text=option.text) for option in question.options],
            marks=question.marks,
            negative_marks=question.negative_marks,
        )

    def to_domain(self) -> Question:
        return Question(
            id=self.id,
            text=self.text,
            options=tuple(QuestionOption(id=option.id, text=option.text) for option in self.options),
            marks=self.marks,
            negative_marks=self.negative_marks,
        )


class AnswerRequest(WireModel):
    session_id: str
    question_id: str
    selected_option_id: str | None


class SubmitRequest(WireModel):
    session_id: str


class AttemptResultPayload(WireModel):
    attempt_id: str | None = None
    test_id: str
    test_name: str = ""
    marks_obtained: float
    total_marks: float
    percentage: float
    passed: bool
    correct_count: int
    wrong_count: int
    unanswered_count: int
    time_taken_seconds: int
    submitted_at: datetime | None = None

    def to_domain(self) -> AttemptResult:
        return AttemptResult(
            attempt_id=self.attempt_id,
            test_id=self.test_id,
            test_name=self.test_name,
            marks_obtained=self.marks_obtained,
            total_marks=self.total_marks,
            percentage=self.percentage,
            passed=self.passed,
            correct_count=self.correct_count,
            wrong_count=self.wrong_count,
            unanswered_count=self.unanswered_count,
            time_taken_seconds=self.time_taken_seconds,
            submitted_at=self.submitted_at,
        )


class AttemptSummaryPayload(WireModel):
    attempt_id: str
    test_id: str
    test_name: str = ""
    percentage: float | None = None
    marks_obtained: float | None = None
    total_marks: float | None = None
    passed: bool | None = None
    time_taken_seconds: int = 0
    attempted_at: datetime
    completed_at: datetime | None = None

    def to_domain(self) -> AttemptSummary:
        return AttemptSummary(
            attempt_id=self.attempt_id,
            test_id=self.test_id,
            test_name=self.test_name,
            percentage=self.percentage,
            marks_obtained=self.marks_obtained,
            total_marks=self.total_marks,
            passed=self.passed,
            time_taken_seconds=self.time_taken_seconds,
            attempted_at=self.attempted_at,
            completed_at=self.completed_at,
        )


class ErrorPayload(BaseModel):
    """Error body: ``{"code", "message"}`` or FastAPI's ``{"detail"}``."""

    model_config = ConfigDict(extra="ignore")

    code: str | None = None
    message: str | None = None
    detail: Any = None

    def resolve(self) -> tuple[str | None, str | None]:
        code, message = self.code, self.message
        if isinstance(self.detail, dict):
            code = code or self.detail.get("code")
            message = message or self.detail.get("message")
        elif isinstance(self.detail, str):
            message = message or self.detail
        return code, message
