"""In-memory test backend used by the bundled practice server.

Holds the test bank (with its answer key), one live session per learner and
test, the answers recorded for each session and the scored attempts. All
state sits behind a single lock because FastAPI runs sync endpoints on a
thread pool.
"""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from threading import Lock
from uuid import uuid4

from exam_app.constants.exam_constants import ANSWER_GRACE_SECONDS
from exam_app.core.models import AttemptResult, AttemptSummary, Question, QuestionOption, TestDefinition
from exam_app.core.services.countdown_timer import Clock, utc_now
from exam_app.core.test_bank_importer import BankTest

logger = logging.getLogger(__name__)


class PracticeError(Exception):
    """Rejected request; carries the HTTP status and error code to send back."""

    def __init__(self, status_code: int, code: str, message: str) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.code = code
        self.message = message


@dataclass(slots=True)
class _LiveSession:
    session_id: str
    attempt_id: str
    learner: str
    test_id: str
    started_at: datetime
    expires_at: datetime
    option_orders: dict[str, list[int]]
    answers: dict[str, str | None] = field(default_factory=dict)


@dataclass(slots=True)
class _Attempt:
    attempt_id: str
    learner: str
    test_id: str
    started_at: datetime
    result: AttemptResult | None = None


def _question_id(index: int) -> str:
    return f"q{index + 1}"


def _option_id(question_index: int, option_index: int) -> str:
    return f"q{question_index + 1}-o{option_index + 1}"


class PracticeBackend:
    """Implements the session endpoints against a loaded test bank."""

    def __init__(
        self,
        tests: list[BankTest],
        *,
        clock: Clock = utc_now,
        grace_seconds: float = ANSWER_GRACE_SECONDS,
        shuffle_seed: int | None = None,
    ) -> None:
        self._tests = {test.test_id: test for test in tests}
        self._clock = clock
        self._grace = timedelta(seconds=grace_seconds)
        self._rng = random.Random(shuffle_seed)
        self._lock = Lock()
        self._live: dict[tuple[str, str], _LiveSession] = {}
        self._attempts: dict[str, _Attempt] = {}
        self._results_by_session: dict[str, AttemptResult] = {}

    def test_ids(self) -> list[str]:
        return list(self._tests)

    # --- Catalog ---

    def get_definition(self, test_id: str) -> TestDefinition:
        return self._require_test(test_id).to_definition()

    # --- Sessions ---

    def active_session(self, learner: str, test_id: str) -> _LiveSession | None:
        self._require_test(test_id)
        with self._lock:
            return self._live.get((learner, test_id))

    def abandon(self, learner: str, test_id: str) -> None:
        self._require_test(test_id)
        with self._lock:
            live = self._live.pop((learner, test_id), None)
            if live is None:
                raise PracticeError(404, "NO_ACTIVE_SESSION", "No active session for this test.")
        logger.info("Learner %s abandoned session %s", learner, live.session_id)

    def start(self, learner: str, test_id: str) -> _LiveSession:
        test = self._require_test(test_id)
        now = self._clock()
        with self._lock:
            if (learner, test_id) in self._live:
                raise PracticeError(409, "SESSION_CONFLICT", "An active session already exists for this test.")
            if test.max_attempts is not None:
                used = sum(
                    1
                    for attempt in self._attempts.values()
                    if attempt.learner == learner and attempt.test_id == test_id
                )
                if used >= test.max_attempts:
                    raise PracticeError(403, "MAX_ATTEMPTS_REACHED", "Maximum attempts reached for this test.")
            live = _LiveSession(
                session_id=uuid4().hex,
                attempt_id=uuid4().hex,
                learner=learner,
                test_id=test_id,
                started_at=now,
                expires_at=now + timedelta(minutes=test.time_limit_minutes),
                option_orders=self._shuffled_orders(test),
            )
            self._live[(learner, test_id)] = live
            self._attempts[live.attempt_id] = _Attempt(
                attempt_id=live.attempt_id,
                learner=learner,
                test_id=test_id,
                started_at=now,
            )
        logger.info("Learner %s started session %s for %s", learner, live.session_id, test_id)
        return live

    def questions(self, learner: str, test_id: str, session_id: str) -> list[Question]:
        test = self._require_test(test_id)
        with self._lock:
            live = self._require_live(learner, test_id, session_id)
            orders = dict(live.option_orders)
        questions = []
        for index, bank_question in enumerate(test.questions):
            question_id = _question_id(index)
            questions.append(
                Question(
                    id=question_id,
                    text=bank_question.text,
                    options=tuple(
                        QuestionOption(id=_option_id(index, original), text=bank_question.options[original])
                        for original in orders[question_id]
                    ),
                    marks=bank_question.marks,
                    negative_marks=bank_question.negative_marks,
                )
            )
        return questions

    def record_answer(
        self,
        learner: str,
        test_id: str,
        session_id: str,
        question_id: str,
        option_id: str | None,
    ) -> None:
        test = self._require_test(test_id)
        question_index = self._question_index(test, question_id)
        if option_id is not None:
            valid = {_option_id(question_index, i) for i in range(len(test.questions[question_index].options))}
            if option_id not in valid:
                raise PracticeError(400, "VALIDATION_ERROR", f"Unknown option {option_id} for {question_id}.")
        now = self._clock()
        with self._lock:
            live = self._require_live(learner, test_id, session_id)
            if now > live.expires_at + self._grace:
                raise PracticeError(409, "SESSION_EXPIRED", "The time limit for this session has passed.")
            live.answers[question_id] = option_id

    def submit(self, learner: str, test_id: str, session_id: str) -> AttemptResult:
        test = self._require_test(test_id)
        now = self._clock()
        with self._lock:
            existing = self._results_by_session.get(session_id)
            if existing is not None:
                return existing
            live = self._require_live(learner, test_id, session_id)
            result = self._score(test, live, now)
            del self._live[(learner, test_id)]
            self._results_by_session[session_id] = result
            attempt = self._attempts.get(live.attempt_id)
            if attempt is not None:
                attempt.result = result
        logger.info(
            "Session %s scored %.2f/%.2f for %s",
            session_id,
            result.marks_obtained,
            result.total_marks,
            learner,
        )
        return result

    def attempts(self, learner: str) -> list[AttemptSummary]:
        with self._lock:
            own = [attempt for attempt in self._attempts.values() if attempt.learner == learner]
        summaries = []
        for attempt in sorted(own, key=lambda a: a.started_at, reverse=True):
            test = self._tests[attempt.test_id]
            result = attempt.result
            summaries.append(
                AttemptSummary(
                    attempt_id=attempt.attempt_id,
                    test_id=attempt.test_id,
                    test_name=test.name,
                    percentage=result.percentage if result else None,
                    marks_obtained=result.marks_obtained if result else None,
                    total_marks=result.total_marks if result else test.total_marks,
                    passed=result.passed if result else None,
                    time_taken_seconds=result.time_taken_seconds if result else 0,
                    attempted_at=attempt.started_at,
                    completed_at=result.submitted_at if result else None,
                )
            )
        return summaries

    # --- Internals ---

    def _shuffled_orders(self, test: BankTest) -> dict[str, list[int]]:
        orders = {}
        for index, question in enumerate(test.questions):
            order = list(range(len(question.options)))
            self._rng.shuffle(order)
            orders[_question_id(index)] = order
        return orders

    def _score(self, test: BankTest, live: _LiveSession, now: datetime) -> AttemptResult:
        marks = 0.0
        correct = wrong = unanswered = 0
        for index, question in enumerate(test.questions):
            chosen = live.answers.get(_question_id(index))
            if chosen is None:
                unanswered += 1
            elif chosen == _option_id(index, question.correct_index):
                correct += 1
                marks += question.marks
            else:
                wrong += 1
                marks -= question.negative_marks
        total = test.total_marks
        marks = max(0.0, round(marks, 2))
        percentage = round(marks / total * 100, 2) if total else 0.0
        taken = min(now, live.expires_at) - live.started_at
        return AttemptResult(
            attempt_id=live.attempt_id,
            test_id=test.test_id,
            test_name=test.name,
            marks_obtained=marks,
            total_marks=total,
            percentage=percentage,
            passed=marks >= test.passing_marks,
            correct_count=correct,
            wrong_count=wrong,
            unanswered_count=unanswered,
            time_taken_seconds=max(0, int(taken.total_seconds())),
            submitted_at=now,
        )

    def _require_test(self, test_id: str) -> BankTest:
        test = self._tests.get(test_id)
        if test is None:
            raise PracticeError(404, "NOT_FOUND", f"Test {test_id} not found.")
        return test

    def _require_live(self, learner: str, test_id: str, session_id: str) -> _LiveSession:
        live = self._live.get((learner, test_id))
        if live is None or live.session_id != session_id:
            raise PracticeError(404, "NO_ACTIVE_SESSION", "Session not found or no longer active.")
        return live

    @staticmethod
    def _question_index(test: BankTest, question_id: str) -> int:
        for index in range(len(test.questions)):
            if _question_id(index) == question_id:
                return index
        raise PracticeError(400, "VALIDATION_ERROR", f"Unknown question {question_id}.")
