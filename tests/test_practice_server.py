from __future__ import annotations

from fastapi.testclient import TestClient

from exam_app.core.schemas import QuestionPayload
from exam_app.core.test_bank_importer import parse_bank_text
from exam_app.server.api_server import create_api_app
from exam_app.server.practice_backend import PracticeBackend
from tests.conftest import PRACTICE_BANK_TEXT, FakeClock

ALICE = {"Authorization": "Bearer alice"}
BOB = {"Authorization": "Bearer bob"}


def _client(clock: FakeClock) -> TestClient:
    backend = PracticeBackend(parse_bank_text(PRACTICE_BANK_TEXT), clock=clock, shuffle_seed=7)
    return TestClient(create_api_app(backend))


def _start(client: TestClient, headers=ALICE, test_id: str = "quiz") -> str:
    response = client.post(f"/tests/{test_id}/start", headers=headers)
    assert response.status_code == 201, response.text
    return response.json()["sessionId"]


def _answer(client: TestClient, session_id: str, question_id: str, option_id, headers=ALICE, test_id="quiz"):
    return client.post(
        f"/tests/{test_id}/answer",
        headers=headers,
        json={"sessionId": session_id, "questionId": question_id, "selectedOptionId": option_id},
    )


def _submit(client: TestClient, session_id: str, headers=ALICE, test_id="quiz"):
    return client.post(f"/tests/{test_id}/submit", headers=headers, json={"sessionId": session_id})


def test_definition_and_unknown_test():
    client = _client(FakeClock())

    body = client.get("/tests/quiz").json()
    assert body["name"] == "Practice Quiz"
    assert body["timeLimitMinutes"] == 10
    assert body["totalMarks"] == 4
    assert body["negativeMarking"] is True
    assert body["questionCount"] == 3

    missing = client.get("/tests/nope")
    assert missing.status_code == 404
    assert missing.json()["detail"]["code"] == "NOT_FOUND"


def test_one_live_session_per_learner_and_test():
    clock = FakeClock()
    client = _client(clock)

    assert client.get("/tests/quiz/active-session", headers=ALICE).json()["hasActiveSession"] is False
    session_id = _start(client)

    second = client.post("/tests/quiz/start", headers=ALICE)
    assert second.status_code == 409
    assert second.json()["detail"]["code"] == "SESSION_CONFLICT"

    active = client.get("/tests/quiz/active-session", headers=ALICE).json()
    assert active["hasActiveSession"] is True
    assert active["sessionId"] == session_id

    # Another learner is unaffected.
    _start(client, headers=BOB)


def test_abandon_then_restart_and_attempt_limit():
    client = _client(FakeClock())

    missing = client.post("/tests/quiz/abandon-session", headers=ALICE)
    assert missing.status_code == 404
    assert missing.json()["detail"]["code"] == "NO_ACTIVE_SESSION"

    _start(client)
    assert client.post("/tests/quiz/abandon-session", headers=ALICE).status_code == 200
    _start(client)
    client.post("/tests/quiz/abandon-session", headers=ALICE)

    third = client.post("/tests/quiz/start", headers=ALICE)
    assert third.status_code == 403
    assert third.json()["detail"]["code"] == "MAX_ATTEMPTS_REACHED"


def test_questions_hide_the_key_and_keep_option_ids_stable():
    client = _client(FakeClock())
    session_id = _start(client)

    questions = client.get("/tests/quiz/questions", headers=ALICE, params={"sessionId": session_id}).json()

    assert [q["id"] for q in questions] == ["q1", "q2", "q3"]
    assert sorted(option["id"] for option in questions[1]["options"]) == ["q2-o1", "q2-o2", "q2-o3"]
    assert all(set(q) == {"id", "text", "options", "marks", "negativeMarks"} for q in questions)
    assert questions[0]["negativeMarks"] == 1.0

    wrong_session = client.get("/tests/quiz/questions", headers=ALICE, params={"sessionId": "other"})
    assert wrong_session.status_code == 404


def test_scoring_with_negative_marks_and_last_write_wins():
    clock = FakeClock()
    client = _client(clock)
    session_id = _start(client)

    assert _answer(client, session_id, "q1", "q1-o2").status_code == 200
    _answer(client, session_id, "q1", "q1-o1")
    _answer(client, session_id, "q2", "q2-o1")
    _answer(client, session_id, "q3", "q3-o2")
    _answer(client, session_id, "q3", None)
    clock.advance(90)

    result = _submit(client, session_id).json()

    # +2 for q1, -0.5 for the wrong q2, q3 cleared.
    assert result["marksObtained"] == 1.5
    assert result["totalMarks"] == 4
    assert result["percentage"] == 37.5
    assert result["passed"] is False
    assert (result["correctCount"], result["wrongCount"], result["unansweredCount"]) == (1, 1, 1)
    assert result["timeTakenSeconds"] == 90


def test_score_never_goes_below_zero():
    client = _client(FakeClock())
    session_id = _start(client)
    _answer(client, session_id, "q1", "q1-o2")

    assert _submit(client, session_id).json()["marksObtained"] == 0


def test_submit_is_idempotent_and_closes_the_session():
    client = _client(FakeClock())
    session_id = _start(client)
    _answer(client, session_id, "q1", "q1-o1")

    first = _submit(client, session_id).json()
    second = _submit(client, session_id).json()

    assert first == second
    assert client.get("/tests/quiz/active-session", headers=ALICE).json()["hasActiveSession"] is False
    assert _answer(client, session_id, "q2", "q2-o3").status_code == 404


def test_answers_rejected_after_deadline_and_grace():
    clock = FakeClock()
    client = _client(clock)
    session_id = _start(client, test_id="open")

    clock.advance(62)
    assert _answer(client, session_id, "q1", "q1-o1", test_id="open").status_code == 200

    clock.advance(10)
    late = _answer(client, session_id, "q1", "q1-o2", test_id="open")
    assert late.status_code == 409
    assert late.json()["detail"]["code"] == "SESSION_EXPIRED"

    # The expired session still reports as active until it is submitted.
    assert client.get("/tests/open/active-session", headers=ALICE).json()["hasActiveSession"] is True
    result = _submit(client, session_id, test_id="open").json()
    assert result["passed"] is True
    assert result["timeTakenSeconds"] == 60


def test_invalid_answers_are_validation_errors():
    client = _client(FakeClock())
    session_id = _start(client)

    assert _answer(client, session_id, "q9", "q9-o1").json()["detail"]["code"] == "VALIDATION_ERROR"
    assert _answer(client, session_id, "q1", "q2-o1").status_code == 400


def test_history_is_newest_first_and_per_learner():
    clock = FakeClock()
    client = _client(clock)

    first = _start(client)
    _answer(client, first, "q1", "q1-o1")
    _submit(client, first)
    clock.advance(60)
    _start(client, test_id="open")

    history = client.get("/tests/attempts", headers=ALICE).json()

    assert [row["testId"] for row in history] == ["open", "quiz"]
    assert history[0]["completedAt"] is None
    assert history[0]["percentage"] is None
    assert history[1]["percentage"] == 50
    assert history[1]["completedAt"] is not None
    assert client.get("/tests/attempts", headers=BOB).json() == []


def test_missing_token_is_guest_and_bad_scheme_is_rejected():
    client = _client(FakeClock())

    assert client.post("/tests/quiz/start").status_code == 201
    rejected = client.get("/tests/quiz/active-session", headers={"Authorization": "Basic abc"})
    assert rejected.status_code == 401
    assert rejected.json()["detail"]["code"] == "BAD_CREDENTIALS"


def test_questions_are_served_in_the_client_wire_format():
    clock = FakeClock()
    backend = PracticeBackend(parse_bank_text(PRACTICE_BANK_TEXT), clock=clock, shuffle_seed=7)
    client = TestClient(create_api_app(backend))
    session_id = _start(client)

    served = client.get("/tests/quiz/questions", headers=ALICE, params={"sessionId": session_id}).json()

    parsed = [QuestionPayload.model_validate(item).to_domain() for item in served]
    assert parsed == backend.questions("alice", "quiz", session_id)
    assert served[0] == QuestionPayload.from_domain(parsed[0]).model_dump(mode="json", by_alias=True)
