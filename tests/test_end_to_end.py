from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from exam_app.core.api_client import ExamApiClient
from exam_app.core.errors import BackendError
from exam_app.core.models import ResumeChoice, SubmitReason
from exam_app.core.test_bank_importer import parse_bank_text
from exam_app.core.test_session_controller import ControllerState, TestSessionController
from exam_app.server.api_server import create_api_app
from exam_app.server.practice_backend import PracticeBackend
from tests.conftest import PRACTICE_BANK_TEXT, FakeClock, InlineExecutor

CORRECT = {"q1": "q1-o1", "q2": "q2-o3", "q3": "q3-o2"}


@pytest.fixture
def api(clock) -> ExamApiClient:
    backend = PracticeBackend(parse_bank_text(PRACTICE_BANK_TEXT), clock=clock, shuffle_seed=3)
    return ExamApiClient(token="alice", http_client=TestClient(create_api_app(backend)))


def _controller(api, store, clock: FakeClock, choice=ResumeChoice.CONTINUE) -> TestSessionController:
    return TestSessionController(
        api,
        store,
        chooser=lambda info: choice,
        executor=InlineExecutor(),
        clock=clock,
        flush_timeout=0,
    )


def test_full_attempt_over_http(api, store, clock):
    definition = api.fetch_test("quiz")
    controller = _controller(api, store, clock)

    controller.start(definition)
    for _ in range(definition.question_count):
        question = controller.current_question()
        controller.select_option(CORRECT[question.id])
        controller.next_question()
    clock.advance(200)
    controller.request_submit()
    result = controller.submit(SubmitReason.MANUAL)

    assert controller.state is ControllerState.COMPLETED
    assert result.marks_obtained == 4
    assert result.percentage == 100
    assert result.passed
    assert result.time_taken_seconds == 200
    assert controller.failed_answer_count() == 0
    assert store.pending() == []

    history = api.list_attempts()
    assert [attempt.test_id for attempt in history] == ["quiz"]
    assert history[0].is_completed


def test_exit_resume_and_timeout_keep_server_side_answers(api, store, clock):
    definition = api.fetch_test("quiz")
    first = _controller(api, store, clock)
    first.start(definition)
    first.select_option("q1-o1")
    session_id = first.session.session_id
    first.exit()

    clock.advance(300)
    resumed = _controller(api, store, clock, ResumeChoice.CONTINUE)
    handle = resumed.start(definition)

    assert handle.resumed
    assert resumed.session.session_id == session_id
    assert resumed.session.attempt_id == first.session.attempt_id
    assert resumed.remaining_seconds() == 300

    clock.advance(301)
    resumed.tick()

    assert resumed.state is ControllerState.COMPLETED
    assert resumed.submit_reason is SubmitReason.TIMEOUT
    result = resumed.results.result
    assert result.marks_obtained == 2
    assert result.unanswered_count == 2
    assert result.time_taken_seconds == 600


def test_abandon_starts_over_and_counts_toward_attempts(api, store, clock):
    definition = api.fetch_test("quiz")
    first = _controller(api, store, clock)
    first.start(definition)
    old_session = first.session.session_id
    first.exit()

    second = _controller(api, store, clock, ResumeChoice.ABANDON)
    handle = second.start(definition)

    assert handle.abandoned_session_id == old_session
    assert second.session.session_id != old_session
    assert store.load("quiz").session_id == second.session.session_id
    second.exit()

    third = _controller(api, store, clock, ResumeChoice.ABANDON)
    with pytest.raises(BackendError) as excinfo:
        third.start(definition)
    assert excinfo.value.code == "MAX_ATTEMPTS_REACHED"
    assert third.state is ControllerState.ERROR
