"""HTTP client for the test backend."""

from __future__ import annotations

import logging
from typing import Any

import httpx
from pydantic import ValidationError

from exam_app.constants.network_constants import DEFAULT_API_BASE_URL, REQUEST_TIMEOUT_SECONDS
from exam_app.core.errors import BackendError, SessionConflictError
from exam_app.core.models import (
    ActiveSessionInfo,
    AttemptResult,
    AttemptSummary,
    Question,
    TestDefinition,
    TestSession,
)
from exam_app.core.schemas import (
    ActiveSessionPayload,
    AnswerRequest,
    AttemptResultPayload,
    AttemptSummaryPayload,
    ErrorPayload,
    QuestionPayload,
    SessionStartPayload,
    SubmitRequest,
    TestDefinitionPayload,
)

logger = logging.getLogger(__name__)


class ExamApiClient:
    """Thin synchronous wrapper over the test endpoints.

    Every method either returns domain objects or raises ``BackendError``
    (``SessionConflictError`` for HTTP 409). The client is safe to share
    between the UI thread and the executor workers: ``httpx.Client`` is
    thread-safe for concurrent requests.
    """

    def __init__(
        self,
        base_url: str = DEFAULT_API_BASE_URL,
        token: str | None = None,
        timeout: float = REQUEST_TIMEOUT_SECONDS,
        http_client: httpx.Client | None = None,
    ) -> None:
        self._owns_client = http_client is None
        self._client = http_client or httpx.Client(base_url=base_url, timeout=timeout)
        self._token = token

    def set_token(self, token: str | None) -> None:
        self._token = token

    def close(self) -> None:
        if self._owns_client:
            self._client.close()

    # --- Catalog collaborator ---

    def fetch_test(self, test_id: str) -> TestDefinition:
        payload = self._request("GET", f"/tests/{test_id}")
        return self._parse(TestDefinitionPayload, payload).to_domain()

    # --- Session lifecycle ---

    def check_active_session(self, test_id: str) -> ActiveSessionInfo:
        payload = self._request("GET", f"/tests/{test_id}/active-session")
        parsed = self._parse(ActiveSessionPayload, payload)
        try:
            return parsed.to_domain()
        except ValueError as exc:
            raise BackendError(str(exc), code="SERVER_ERROR") from exc

    def abandon_session(self, test_id: str) -> None:
        self._request("POST", f"/tests/{test_id}/abandon-session")

    def start_session(self, test_id: str) -> TestSession:
        payload = self._request("POST", f"/tests/{test_id}/start")
        return self._parse(SessionStartPayload, payload).to_domain(test_id)

    def fetch_questions(self, test_id: str, session_id: str) -> list[Question]:
        payload = self._request("GET", f"/tests/{test_id}/questions", params={"sessionId": session_id})
        if not isinstance(payload, list):
            raise BackendError("Expected a list of questions.", code="SERVER_ERROR")
        return [self._parse(QuestionPayload, item).to_domain() for item in payload]

    def submit_answer(
        self,
        test_id: str,
        session_id: str,
        question_id: str,
        selected_option_id: str | None,
    ) -> None:
        body = AnswerRequest(
            session_id=session_id,
            question_id=question_id,
            selected_option_id=selected_option_id,
        )
        self._request("POST", f"/tests/{test_id}/answer", json=body.model_dump(by_alias=True))

    def submit_test(self, test_id: str, session_id: str) -> AttemptResult:
        body = SubmitRequest(session_id=session_id)
        payload = self._request("POST", f"/tests/{test_id}/submit", json=body.model_dump(by_alias=True))
        return self._parse(AttemptResultPayload, payload).to_domain()

    def list_attempts(self) -> list[AttemptSummary]:
        payload = self._request("GET", "/tests/attempts")
        if not isinstance(payload, list):
            raise BackendError("Expected a list of attempts.", code="SERVER_ERROR")
        return [self._parse(AttemptSummaryPayload, item).to_domain() for item in payload]

    # --- Plumbing ---

    def _headers(self) -> dict[str, str]:
        headers = {"Accept": "application/json"}
        if self._token:
            headers["Authorization"] = f"Bearer {self._token}"
        return headers

    def _request(
        self,
        method: str,
        path: str,
        *,
        json: dict[str, Any] | None = None,
        params: dict[str, str] | None = None,
    ) -> Any:
        logger.debug("%s %s", method, path)
        try:
            response = self._client.request(method, path, json=json, params=params, headers=self._headers())
        except httpx.TimeoutException as exc:
            raise BackendError(f"{method} {path} timed out", code="TIMEOUT_ERROR") from exc
        except httpx.HTTPError as exc:
            raise BackendError(f"{method} {path} failed: {exc}", code="NETWORK_ERROR") from exc

        if response.is_error:
            raise self._error_from_response(method, path, response)
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as exc:
            raise BackendError(f"{method} {path} returned invalid JSON", code="SERVER_ERROR") from exc

    @staticmethod
    def _error_from_response(method: str, path: str, response: httpx.Response) -> BackendError:
        code: str | None = None
        message: str | None = None
        try:
            code, message = ErrorPayload.model_validate(response.json()).resolve()
        except (ValueError, ValidationError):
            pass
        text = message or f"{method} {path} failed with HTTP {response.status_code}"
        logger.debug("Backend error %s on %s %s: %s", response.status_code, method, path, text)
        if response.status_code == 409 and code in (None, "SESSION_CONFLICT"):
            return SessionConflictError(text, status_code=409, code="SESSION_CONFLICT", server_message=message)
        return BackendError(text, status_code=response.status_code, code=code, server_message=message)

    @staticmethod
    def _parse(schema, payload: Any):
        try:
            return schema.model_validate(payload)
        except ValidationError as exc:
            raise BackendError(f"Unexpected response shape: {exc}", code="SERVER_ERROR") from exc
