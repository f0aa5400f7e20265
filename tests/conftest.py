from __future__ import annotations

from collections import deque
from concurrent.futures import Executor, Future
from datetime import datetime, timedelta, timezone

import pytest

from exam_app.core.errors import BackendError
from exam_app.core.models import (
    ActiveSessionInfo,
    AttemptResult,
    Question,
    QuestionOption,
    SessionState,
    TestDefinition,
    TestSession,
)
from exam_app.core.session_store import SessionStore

T0 = datetime(2026, 3, 2, 9, 0, tzinfo=timezone.utc)

PRACTICE_BANK_TEXT = """\
TEST: quiz
NAME: Practice Quiz
TIMELIMIT: 10
PASSMARKS: 2
MAXATTEMPTS: 2
NEGATIVE: 50

Q: First question?
A: right
B: wrong
CORRECT: A
MARKS: 2

Q: Second question?
A: wrong
B: wrong too
C: right
CORRECT: C

Q: Third question?
A: wrong
B: right
CORRECT: B

---

TEST: open
NAME: Open Practice
TIMELIMIT: 1
PASSMARKS: 1

Q: Only question?
A: yes
B: no
CORRECT: A
"""


class FakeClock:
    """Mutable UTC clock shared by timers, coordinators and fake backends."""

    def __init__(self, start: datetime = T0) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> datetime:
        self.now = self.now + timedelta(seconds=seconds)
        return self.now


class InlineExecutor(Executor):
    """Runs each job on the calling thread before ``submit`` returns."""

    def submit(self, fn, /, *args, **kwargs) -> Future:
        future: Future = Future()
        try:
            future.set_result(fn(*args, **kwargs))
        except Exception as exc:
            future.set_exception(exc)
        return future


class ManualExecutor(Executor):
    """Queues jobs until the test runs them, in whatever order it likes."""

    def __init__(self) -> None:
        self.jobs: list[tuple[Future, object, tuple]] = []
        self.closed = False

    def submit(self, fn, /, *args, **kwargs) -> Future:
        if self.closed:
            raise RuntimeError("cannot schedule new futures after shutdown")
        future: Future = Future()
        self.jobs.append((future, fn, args))
        return future

    def shutdown(self, wait: bool = True, *, cancel_futures: bool = False) -> None:
        self.closed = True

    def run(self, index: int = 0) -> None:
        future, fn, args = self.jobs.pop(index)
        try:
            result = fn(*args)
        except Exception as exc:
            future.set_exception(exc)
        else:
            future.set_result(result)

    def run_all(self) -> None:
        while self.jobs:
            self.run(0)


def make_question(number: int, option_count: int = 4, marks: float = 1.0) -> Question:
    return Question(
        id=f"q{number}",
        text=f"Question {number}?",
        options=tuple(
            QuestionOption(id=f"q{number}-o{index}", text=f"Option {index}")
            for index in range(1, option_count + 1)
        ),
        marks=marks,
    )


def make_questions(count: int = 3) -> list[Question]:
    return [make_question(number) for number in range(1, count + 1)]


def make_definition(test_id: str = "t1", minutes: int = 10, **overrides) -> TestDefinition:
    values = dict(
        id=test_id,
        name=f"Test {test_id}",
        time_limit_minutes=minutes,
        total_marks=3.0,
        passing_marks=2.0,
    )
    values.update(overrides)
    return TestDefinition(**values)


def make_session(
    clock: FakeClock,
    test_id: str = "t1",
    session_id: str = "s1",
    minutes: int = 10,
    attempt_id: str | None = "a1",
) -> TestSession:
    return TestSession(
        session_id=session_id,
        test_id=test_id,
        attempt_id=attempt_id,
        started_at=clock(),
        expires_at=clock() + timedelta(minutes=minutes),
        state=SessionState.ACTIVE,
    )


def make_result(test_id: str = "t1", marks: float = 2.0, total: float = 3.0, **overrides) -> AttemptResult:
    values = dict(
        attempt_id="a1",
        test_id=test_id,
        test_name=f"Test {test_id}",
        marks_obtained=marks,
        total_marks=total,
        percentage=round(marks / total * 100, 2),
        passed=marks >= 2.0,
        correct_count=2,
        wrong_count=0,
        unanswered_count=1,
        time_taken_seconds=95,
    )
    values.update(overrides)
    return AttemptResult(**values)


def network_error() -> BackendError:
    return BackendError("connection reset", code="NETWORK_ERROR")


class FakeBackend:
    """In-memory stand-in for ExamApiClient that records every call in order."""

    def __init__(self, clock: FakeClock, *, minutes: int = 10, questions: list[Question] | None = None) -> None:
        self.clock = clock
        self.minutes = minutes
        self.questions = make_questions() if questions is None else questions
        self.calls: list[tuple] = []
        self.active_responses: deque[ActiveSessionInfo] = deque([ActiveSessionInfo(has_active_session=False)])
        self.start_errors: list[Exception] = []
        self.abandon_error: Exception | None = None
        self.questions_error: Exception | None = None
        self.failing_answer_pushes = 0
        self.submit_errors: list[Exception] = []
        self.result: AttemptResult | None = None
        self._started = 0

    def set_active(self, *infos: ActiveSessionInfo) -> None:
        self.active_responses = deque(infos)

    def names(self) -> list[str]:
        return [call[0] for call in self.calls]

    def check_active_session(self, test_id: str) -> ActiveSessionInfo:
        self.calls.append(("check_active_session", test_id))
        if len(self.active_responses) > 1:
            return self.active_responses.popleft()
        return self.active_responses[0]

    def abandon_session(self, test_id: str) -> None:
        self.calls.append(("abandon_session", test_id))
        if self.abandon_error is not None:
            raise self.abandon_error

    def start_session(self, test_id: str) -> TestSession:
        self.calls.append(("start_session", test_id))
        if self.start_errors:
            raise self.start_errors.pop(0)
        self._started += 1
        now = self.clock()
        return TestSession(
            session_id=f"s{self._started}",
            test_id=test_id,
            attempt_id=f"a{self._started}",
            started_at=now,
            expires_at=now + timedelta(minutes=self.minutes),
        )

    def fetch_questions(self, test_id: str, session_id: str) -> list[Question]:
        self.calls.append(("fetch_questions", test_id, session_id))
        if self.questions_error is not None:
            raise self.questions_error
        return list(self.questions)

    def submit_answer(
        self,
        test_id: str,
        session_id: str,
        question_id: str,
        selected_option_id: str | None,
    ) -> None:
        self.calls.append(("submit_answer", question_id, selected_option_id))
        if self.failing_answer_pushes > 0:
            self.failing_answer_pushes -= 1
            raise network_error()

    def submit_test(self, test_id: str, session_id: str) -> AttemptResult:
        self.calls.append(("submit_test", test_id, session_id))
        if self.submit_errors:
            raise self.submit_errors.pop(0)
        return self.result or make_result(test_id)

    def answer_pushes(self) -> list[tuple[str, str | None]]:
        return [(call[1], call[2]) for call in self.calls if call[0] == "submit_answer"]


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def store(tmp_path) -> SessionStore:
    return SessionStore(tmp_path / "state" / "sessions_active.json")
