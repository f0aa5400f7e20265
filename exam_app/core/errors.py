"""Exception hierarchy for the exam client.

Backend failures carry a machine-readable ``code`` so the UI can pick a
friendly message and decide whether offering a retry makes sense.
"""

from __future__ import annotations


ERROR_MESSAGES: dict[str, str] = {
    "VALIDATION_ERROR": "Please check your input and try again.",
    "BAD_CREDENTIALS": "Your login has expired. Please sign in again.",
    "FORBIDDEN": "You are not allowed to take this test.",
    "NOT_FOUND": "The requested test or session could not be found.",
    "SESSION_CONFLICT": "An attempt for this test is already in progress.",
    "NO_ACTIVE_SESSION": "There is no attempt in progress for this test.",
    "SESSION_EXPIRED": "The time limit for this attempt has passed.",
    "MAX_ATTEMPTS_REACHED": "You have used all attempts for this test.",
    "NETWORK_ERROR": "Network error. Please check your connection and try again.",
    "SERVER_ERROR": "Server error. Please try again later.",
    "TIMEOUT_ERROR": "Request timeout. Please try again.",
    "UNKNOWN_ERROR": "An unexpected error occurred. Please try again.",
}

STATUS_CODE_MAPPING: dict[int, str] = {
    400: "VALIDATION_ERROR",
    401: "BAD_CREDENTIALS",
    403: "FORBIDDEN",
    404: "NOT_FOUND",
    408: "TIMEOUT_ERROR",
    409: "SESSION_CONFLICT",
    422: "VALIDATION_ERROR",
    500: "SERVER_ERROR",
    502: "SERVER_ERROR",
    503: "SERVER_ERROR",
    504: "TIMEOUT_ERROR",
}

RETRYABLE_CODES = frozenset({"NETWORK_ERROR", "SERVER_ERROR", "TIMEOUT_ERROR"})


def code_for_status(status_code: int | None) -> str:
    if status_code is None:
        return "NETWORK_ERROR"
    if status_code in STATUS_CODE_MAPPING:
        return STATUS_CODE_MAPPING[status_code]
    if status_code >= 500:
        return "SERVER_ERROR"
    return "UNKNOWN_ERROR"


class ExamAppError(Exception):
    """Base class for all errors raised by the exam client."""


class BackendError(ExamAppError):
    """Raised when a backend call fails at the transport or HTTP level."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        code: str | None = None,
        server_message: str | None = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.code = code or code_for_status(status_code)
        # Text the backend put in its error body, if any.
        self.server_message = server_message

    @property
    def retryable(self) -> bool:
        return self.code in RETRYABLE_CODES

    @property
    def user_message(self) -> str:
        """The backend's own wording when it sent one, else the canned text for ``code``."""
        if self.server_message:
            return self.server_message
        return ERROR_MESSAGES.get(self.code, str(self) or ERROR_MESSAGES["UNKNOWN_ERROR"])


class SessionConflictError(BackendError):
    """A live session already exists for this learner and test."""


class NegotiationCancelledError(ExamAppError):
    """The learner dismissed the continue/abandon choice."""


class AbandonSessionError(ExamAppError):
    """The stale session could not be terminated; no new session was started."""


class QuestionFetchError(ExamAppError):
    """Questions for the session could not be loaded."""


class SubmissionError(ExamAppError):
    """Final submission failed; the attempt is intact and may be resubmitted."""


class InvalidSessionStateError(ExamAppError):
    """An operation was requested in a lifecycle state that does not allow it."""


class SessionAlreadyBoundError(InvalidSessionStateError):
    """The controller already owns a session for this attempt."""
