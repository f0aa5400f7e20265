"""Local answer record with fire-and-forget backend synchronization."""

from __future__ import annotations

import logging
import time
from concurrent.futures import Executor, Future
from dataclasses import dataclass
from functools import partial
from threading import Condition, Lock
from types import MappingProxyType
from typing import Callable, Mapping, Protocol

logger = logging.getLogger(__name__)


class AnswerBackend(Protocol):
    def submit_answer(
        self,
        test_id: str,
        session_id: str,
        question_id: str,
        selected_option_id: str | None,
    ) -> None: ...


@dataclass(frozen=True, slots=True)
class PushKey:
    """Identifies the backend answer slot a push writes to."""

    session_id: str
    question_id: str


@dataclass(frozen=True, slots=True)
class AnswerPush:
    """Full desired state for one question, stamped with a local sequence."""

    key: PushKey
    selected_option_id: str | None
    sequence: int


@dataclass(slots=True)
class _InFlight:
    current: AnswerPush
    pending: AnswerPush | None = None


PushFailedHook = Callable[[AnswerPush, BaseException], None]
PushAcknowledgedHook = Callable[[AnswerPush], None]


class AnswerSynchronizer:
    """Keeps the AnswerRecord and mirrors every change to the backend.

    ``select``/``clear`` update the local record immediately and return.
    Pushes run on the supplied executor. At most one push per question is in
    flight; changes made meanwhile collapse into a single pending push that
    goes out when the in-flight one resolves, so the backend always ends on
    the latest choice. Failures are logged and handed to ``on_push_failed``;
    nothing is rolled back and nothing is retried unless ``retry_failed`` is
    called.
    """

    def __init__(
        self,
        test_id: str,
        session_id: str,
        backend: AnswerBackend,
        executor: Executor,
        *,
        on_push_failed: PushFailedHook | None = None,
        on_push_acknowledged: PushAcknowledgedHook | None = None,
    ) -> None:
        self._test_id = test_id
        self._session_id = session_id
        self._backend = backend
        self._executor = executor
        self._on_push_failed = on_push_failed
        self._on_push_acknowledged = on_push_acknowledged

        self._lock = Lock()
        # Signalled whenever a question leaves the in-flight table.
        self._drained = Condition(self._lock)
        self._sequence = 0
        self._answers: dict[str, str | None] = {}
        self._in_flight: dict[PushKey, _InFlight] = {}
        self._acknowledged: dict[PushKey, AnswerPush] = {}
        self._failed: dict[PushKey, AnswerPush] = {}

    @property
    def session_id(self) -> str:
        return self._session_id

    @property
    def answers(self) -> Mapping[str, str | None]:
        """Read-only live view of the local AnswerRecord."""
        return MappingProxyType(self._answers)

    def answer_for(self, question_id: str) -> str | None:
        return self._answers.get(question_id)

    def answered_ids(self) -> set[str]:
        return {question_id for question_id, option_id in self._answers.items() if option_id is not None}

    def select(self, question_id: str, option_id: str) -> None:
        self._record(question_id, option_id)

    def clear(self, question_id: str) -> None:
        self._record(question_id, None)

    def acknowledged_answer(self, question_id: str) -> AnswerPush | None:
        """Most recent push the backend confirmed for this question."""
        with self._lock:
            return self._acknowledged.get(PushKey(self._session_id, question_id))

    def is_synced(self, question_id: str) -> bool:
        with self._lock:
            key = PushKey(self._session_id, question_id)
            if key in self._in_flight or key in self._failed:
                return False
            acked = self._acknowledged.get(key)
        if question_id not in self._answers:
            return True
        return acked is not None and acked.selected_option_id == self._answers[question_id]

    def pending_count(self) -> int:
        with self._lock:
            return len(self._in_flight)

    def failed_pushes(self) -> list[AnswerPush]:
        with self._lock:
            return list(self._failed.values())

    def retry_failed(self) -> int:
        """Resend the current desired state of every question whose last push failed."""
        with self._lock:
            resend = [(key.question_id, self._answers.get(key.question_id)) for key in self._failed]
        for question_id, option_id in resend:
            self._record(question_id, option_id)
        return len(resend)

    def flush(self, timeout: float | None = None) -> bool:
        """Wait for outstanding pushes (including follow-ups). True when drained."""
        deadline = None if timeout is None else time.monotonic() + timeout
        with self._drained:
            while self._in_flight:
                remaining = None if deadline is None else deadline - time.monotonic()
                if remaining is not None and remaining <= 0:
                    logger.warning("%d answer push(es) still in flight after %.1fs", len(self._in_flight), timeout)
                    return False
                self._drained.wait(remaining)
            return True

    def _record(self, question_id: str, option_id: str | None) -> None:
        key = PushKey(self._session_id, question_id)
        with self._lock:
            self._sequence += 1
            push = AnswerPush(key=key, selected_option_id=option_id, sequence=self._sequence)
            self._answers[question_id] = option_id
            self._failed.pop(key, None)
            entry = self._in_flight.get(key)
            if entry is not None:
                entry.pending = push
                return
            entry = _InFlight(current=push)
            self._in_flight[key] = entry
        self._dispatch(push)

    def _dispatch(self, push: AnswerPush) -> None:
        try:
            future = self._executor.submit(self._send, push)
        except RuntimeError as exc:
            logger.warning("Could not schedule answer push for question %s: %s", push.key.question_id, exc)
            self._complete(push, exc)
            return
        future.add_done_callback(partial(self._on_done, push))

    def _send(self, push: AnswerPush) -> None:
        self._backend.submit_answer(
            self._test_id,
            push.key.session_id,
            push.key.question_id,
            push.selected_option_id,
        )

    def _on_done(self, push: AnswerPush, future: Future) -> None:
        self._complete(push, future.exception())

    def _complete(self, push: AnswerPush, error: BaseException | None) -> None:
        with self._lock:
            entry = self._in_flight.get(push.key)
            is_current = entry is not None and entry.current.sequence == push.sequence
            follow_up = None
            if is_current:
                follow_up = entry.pending
                if follow_up is None:
                    del self._in_flight[push.key]
                    self._drained.notify_all()
                else:
                    entry.current = follow_up
                    entry.pending = None
            if error is None:
                acked = self._acknowledged.get(push.key)
                if acked is None or push.sequence > acked.sequence:
                    self._acknowledged[push.key] = push
            elif is_current and follow_up is None:
                self._failed[push.key] = push

        if error is None:
            logger.debug("Answer for question %s stored (seq %d)", push.key.question_id, push.sequence)
            if self._on_push_acknowledged is not None:
                self._on_push_acknowledged(push)
        else:
            logger.warning(
                "Answer push for question %s failed (seq %d): %s",
                push.key.question_id,
                push.sequence,
                error,
            )
            if self._on_push_failed is not None:
                self._on_push_failed(push, error)

        if follow_up is not None:
            self._dispatch(follow_up)

