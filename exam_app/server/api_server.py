"""FastAPI server that exposes the practice test endpoints."""

from __future__ import annotations

import logging
from threading import Thread

from fastapi import Depends, FastAPI, Header, HTTPException, Query
import uvicorn

from exam_app.constants.network_constants import DEFAULT_HOST, DEFAULT_PORT
from exam_app.core.schemas import (
    ActiveSessionPayload,
    AnswerRequest,
    AttemptResultPayload,
    AttemptSummaryPayload,
    QuestionPayload,
    SessionStartPayload,
    SubmitRequest,
    TestDefinitionPayload,
)
from exam_app.server.practice_backend import PracticeBackend, PracticeError

logger = logging.getLogger(__name__)

_GUEST_LEARNER = "guest"


def _learner_from_header(authorization: str | None = Header(default=None)) -> str:
    """Learner identity is the bearer token itself; no token means the guest learner."""
    if authorization is None:
        return _GUEST_LEARNER
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise HTTPException(
            status_code=401,
            detail={"code": "BAD_CREDENTIALS", "message": "Expected 'Authorization: Bearer <token>'."},
        )
    return token.strip()


def _get_backend_dependency(backend: PracticeBackend):
    def dependency() -> PracticeBackend:
        return backend

    return dependency


def _http_error(exc: PracticeError) -> HTTPException:
    return HTTPException(status_code=exc.status_code, detail={"code": exc.code, "message": exc.message})


def _dump(model) -> dict[str, object]:
    return model.model_dump(mode="json", by_alias=True)


def create_api_app(backend: PracticeBackend) -> FastAPI:
    """Create a FastAPI application wired to the provided practice backend."""
    app = FastAPI(title="ExamQt Practice API", version="0.1.0")
    backend_dep = _get_backend_dependency(backend)

    # Must be registered before /tests/{test_id} so "attempts" is not read as an id.
    @app.get("/tests/attempts")
    def list_attempts(
        learner: str = Depends(_learner_from_header),
        practice: PracticeBackend = Depends(backend_dep),
    ) -> list[dict[str, object]]:
        return [
            _dump(
                AttemptSummaryPayload(
                    attempt_id=summary.attempt_id,
                    test_id=summary.test_id,
                    test_name=summary.test_name,
                    percentage=summary.percentage,
                    marks_obtained=summary.marks_obtained,
                    total_marks=summary.total_marks,
                    passed=summary.passed,
                    time_taken_seconds=summary.time_taken_seconds,
                    attempted_at=summary.attempted_at,
                    completed_at=summary.completed_at,
                )
            )
            for summary in practice.attempts(learner)
        ]

    @app.get("/tests/{test_id}")
    def get_test(test_id: str, practice: PracticeBackend = Depends(backend_dep)) -> dict[str, object]:
        try:
            definition = practice.get_definition(test_id)
        except PracticeError as exc:
            raise _http_error(exc) from exc
        return _dump(
            TestDefinitionPayload(
                id=definition.id,
                name=definition.name,
                time_limit_minutes=definition.time_limit_minutes,
                total_marks=definition.total_marks,
                passing_marks=definition.passing_marks,
                max_attempts=definition.max_attempts,
                negative_marking=definition.negative_marking,
                negative_mark_percentage=definition.negative_mark_percentage,
                question_count=definition.question_count,
                description=definition.description,
            )
        )

    @app.get("/tests/{test_id}/active-session")
    def get_active_session(
        test_id: str,
        learner: str = Depends(_learner_from_header),
        practice: PracticeBackend = Depends(backend_dep),
    ) -> dict[str, object]:
        try:
            live = practice.active_session(learner, test_id)
        except PracticeError as exc:
            raise _http_error(exc) from exc
        if live is None:
            return _dump(ActiveSessionPayload(has_active_session=False))
        return _dump(
            ActiveSessionPayload(
                has_active_session=True,
                session_id=live.session_id,
                started_at=live.started_at,
                expires_at=live.expires_at,
            )
        )

    @app.post("/tests/{test_id}/abandon-session")
    def abandon_session(
        test_id: str,
        learner: str = Depends(_learner_from_header),
        practice: PracticeBackend = Depends(backend_dep),
    ) -> dict[str, object]:
        try:
            practice.abandon(learner, test_id)
        except PracticeError as exc:
            raise _http_error(exc) from exc
        return {"success": True}

    @app.post("/tests/{test_id}/start", status_code=201)
    def start_session(
        test_id: str,
        learner: str = Depends(_learner_from_header),
        practice: PracticeBackend = Depends(backend_dep),
    ) -> dict[str, object]:
        try:
            live = practice.start(learner, test_id)
        except PracticeError as exc:
            raise _http_error(exc) from exc
        return _dump(
            SessionStartPayload(
                session_id=live.session_id,
                attempt_id=live.attempt_id,
                started_at=live.started_at,
                expires_at=live.expires_at,
            )
        )

    @app.get("/tests/{test_id}/questions")
    def get_questions(
        test_id: str,
        session_id: str = Query(alias="sessionId"),
        learner: str = Depends(_learner_from_header),
        practice: PracticeBackend = Depends(backend_dep),
    ) -> list[dict[str, object]]:
        try:
            questions = practice.questions(learner, test_id, session_id)
        except PracticeError as exc:
            raise _http_error(exc) from exc
        return [_dump(QuestionPayload.from_domain(question)) for question in questions]

    @app.post("/tests/{test_id}/answer")
    def submit_answer(
        test_id: str,
        payload: AnswerRequest,
        learner: str = Depends(_learner_from_header),
        practice: PracticeBackend = Depends(backend_dep),
    ) -> dict[str, object]:
        try:
            practice.record_answer(
                learner,
                test_id,
                payload.session_id,
                payload.question_id,
                payload.selected_option_id,
            )
        except PracticeError as exc:
            raise _http_error(exc) from exc
        return {"success": True}

    @app.post("/tests/{test_id}/submit")
    def submit_test(
        test_id: str,
        payload: SubmitRequest,
        learner: str = Depends(_learner_from_header),
        practice: PracticeBackend = Depends(backend_dep),
    ) -> dict[str, object]:
        try:
            result = practice.submit(learner, test_id, payload.session_id)
        except PracticeError as exc:
            raise _http_error(exc) from exc
        return _dump(
            AttemptResultPayload(
                attempt_id=result.attempt_id,
                test_id=result.test_id,
                test_name=result.test_name,
                marks_obtained=result.marks_obtained,
                total_marks=result.total_marks,
                percentage=result.percentage,
                passed=result.passed,
                correct_count=result.correct_count,
                wrong_count=result.wrong_count,
                unanswered_count=result.unanswered_count,
                time_taken_seconds=result.time_taken_seconds,
                submitted_at=result.submitted_at,
            )
        )

    return app


def start_practice_server(
    backend: PracticeBackend,
    host: str = DEFAULT_HOST,
    port: int = DEFAULT_PORT,
) -> Thread:
    """Start the practice API server in a background daemon thread."""
    app = create_api_app(backend)
    config = uvicorn.Config(app=app, host=host, port=port, log_level="warning")
    server = uvicorn.Server(config)

    def run_server() -> None:
        server.run()

    thread = Thread(target=run_server, name="ExamPracticeServer", daemon=True)
    thread.start()
    logger.info("Practice server listening on http://%s:%d (%d tests)", host, port, len(backend.test_ids()))
    return thread
