"""Final submission of an attempt: summary, confirmation state, backend call."""

from __future__ import annotations

import logging
from enum import Enum
from threading import Lock
from typing import Callable, Protocol

from exam_app.core.errors import BackendError, InvalidSessionStateError, SubmissionError
from exam_app.core.models import AttemptResult, SubmissionSummary, SubmitReason, TestSession
from exam_app.core.services.countdown_timer import Clock, utc_now
from exam_app.core.services.question_navigator import QuestionNavigator

logger = logging.getLogger(__name__)


class SubmissionState(Enum):
    IDLE = "idle"
    CONFIRMING = "confirming"
    SUBMITTING = "submitting"
    COMPLETED = "completed"
    FAILED = "failed"


class SubmitBackend(Protocol):
    def submit_test(self, test_id: str, session_id: str) -> AttemptResult: ...


class SubmissionCoordinator:
    """Owns the only branch point between manual and timed-out submission.

    The confirmation dialog is modelled as the CONFIRMING state rather than a
    blocking prompt. Entering SUBMITTING is the point of no return: after it,
    every other submit request is ignored, so the backend receives a single
    submit per session. A failed submit leaves the attempt untouched in the
    FAILED state, from which ``retry`` (or a later timeout) submits again.
    """

    def __init__(
        self,
        session: TestSession,
        backend: SubmitBackend,
        navigator: QuestionNavigator,
        *,
        clock: Clock = utc_now,
        before_submit: Callable[[], None] | None = None,
    ) -> None:
        self._session = session
        self._backend = backend
        self._navigator = navigator
        self._clock = clock
        self._before_submit = before_submit
        self._lock = Lock()
        self._state = SubmissionState.IDLE
        self._reason: SubmitReason | None = None
        self._result: AttemptResult | None = None
        self._last_error: SubmissionError | None = None

    @property
    def state(self) -> SubmissionState:
        return self._state

    @property
    def reason(self) -> SubmitReason | None:
        return self._reason

    @property
    def result(self) -> AttemptResult | None:
        return self._result

    @property
    def last_error(self) -> SubmissionError | None:
        return self._last_error

    def build_summary(self) -> SubmissionSummary:
        total = self._navigator.count
        answered = self._navigator.answered_count()
        elapsed = (min(self._clock(), self._session.expires_at) - self._session.started_at).total_seconds()
        return SubmissionSummary(
            answered=answered,
            unanswered=total - answered,
            marked=len(self._navigator.marked_ids()),
            elapsed_seconds=max(0, int(elapsed)),
            total=total,
        )

    # --- Manual path ---

    def request_manual_submit(self) -> SubmissionSummary | None:
        """Open the confirmation modal. Returns None if submission is already underway."""
        with self._lock:
            if self._state not in (SubmissionState.IDLE, SubmissionState.FAILED):
                return None
            self._state = SubmissionState.CONFIRMING
        return self.build_summary()

    def cancel(self) -> None:
        with self._lock:
            if self._state is SubmissionState.CONFIRMING:
                self._state = SubmissionState.FAILED if self._last_error else SubmissionState.IDLE

    def claim_confirm(self) -> bool:
        with self._lock:
            if self._state is not SubmissionState.CONFIRMING:
                return False
            self._state = SubmissionState.SUBMITTING
            self._reason = SubmitReason.MANUAL
        return True

    def confirm(self) -> AttemptResult | None:
        return self.perform() if self.claim_confirm() else None

    # --- Timeout path ---

    def claim_timeout(self) -> bool:
        """Take the submission for a timeout. Overrides an open confirmation modal."""
        with self._lock:
            if self._state in (SubmissionState.SUBMITTING, SubmissionState.COMPLETED):
                return False
            self._state = SubmissionState.SUBMITTING
            self._reason = SubmitReason.TIMEOUT
        return True

    def submit_on_timeout(self) -> AttemptResult | None:
        return self.perform() if self.claim_timeout() else None

    def claim_retry(self) -> bool:
        with self._lock:
            if self._state is not SubmissionState.FAILED:
                return False
            self._state = SubmissionState.SUBMITTING
        return True

    def retry(self) -> AttemptResult | None:
        return self.perform() if self.claim_retry() else None

    def perform(self) -> AttemptResult:
        """Send the submit claimed by one of the ``claim_*`` calls.

        May run on a worker thread; the SUBMITTING state taken by the claim
        keeps every other submit request out until this returns.
        """
        if self._state is not SubmissionState.SUBMITTING:
            raise InvalidSessionStateError(f"No submit was claimed (state {self._state.value}).")
        logger.info(
            "Submitting session %s (%s)",
            self._session.session_id,
            self._reason.value if self._reason else "unknown",
        )
        if self._before_submit is not None:
            self._before_submit()
        try:
            result = self._backend.submit_test(self._session.test_id, self._session.session_id)
        except BackendError as exc:
            error = SubmissionError(f"Submitting the test failed: {exc.user_message}")
            with self._lock:
                self._state = SubmissionState.FAILED
                self._last_error = error
            logger.warning("Submit of session %s failed: %s", self._session.session_id, exc)
            raise error from exc
        with self._lock:
            self._state = SubmissionState.COMPLETED
            self._result = result
            self._last_error = None
        logger.info(
            "Session %s scored %.2f/%.2f",
            self._session.session_id,
            result.marks_obtained,
            result.total_marks,
        )
        return result
