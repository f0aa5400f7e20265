"""Discovers an existing live session before a new one is started."""

from __future__ import annotations

import logging
from typing import Callable, Protocol

from exam_app.core.errors import (
    AbandonSessionError,
    BackendError,
    NegotiationCancelledError,
    SessionConflictError,
)
from exam_app.core.models import ActiveSessionInfo, ResumeChoice, SessionHandle, TestSession
from exam_app.core.session_store import SessionStore

logger = logging.getLogger(__name__)

ResumeChooser = Callable[[ActiveSessionInfo], ResumeChoice | None]


class SessionBackend(Protocol):
    def check_active_session(self, test_id: str) -> ActiveSessionInfo: ...

    def abandon_session(self, test_id: str) -> None: ...

    def start_session(self, test_id: str) -> TestSession: ...


class SessionNegotiator:
    """Obtains the session for one attempt without ever creating a duplicate.

    When the backend reports a live session the learner decides, through
    ``chooser``, whether to continue it or abandon it; neither happens
    implicitly. A chooser returning ``None`` cancels the start.
    """

    def __init__(self, backend: SessionBackend, store: SessionStore, chooser: ResumeChooser) -> None:
        self._backend = backend
        self._store = store
        self._chooser = chooser

    def negotiate(self, test_id: str) -> SessionHandle:
        info = self._backend.check_active_session(test_id)
        if info.has_active_session:
            handle = self._resolve_existing(test_id, info)
        else:
            handle = self._start_fresh(test_id, allow_conflict_retry=True)
        self._store.save(handle.session)
        return handle

    def _resolve_existing(self, test_id: str, info: ActiveSessionInfo) -> SessionHandle:
        choice = self._chooser(info)
        if choice is None:
            logger.info("Learner cancelled start of test %s", test_id)
            raise NegotiationCancelledError(f"Start of test {test_id} was cancelled.")

        if choice is ResumeChoice.CONTINUE:
            logger.info("Continuing session %s for test %s", info.session_id, test_id)
            return SessionHandle(session=self._adopt(test_id, info), resumed=True)

        logger.info("Abandoning session %s for test %s", info.session_id, test_id)
        try:
            self._backend.abandon_session(test_id)
        except BackendError as exc:
            raise AbandonSessionError(
                f"Could not abandon the previous attempt: {exc.user_message}"
            ) from exc
        self._store.remove(test_id)
        handle = self._start_fresh(test_id, allow_conflict_retry=False)
        return SessionHandle(session=handle.session, abandoned_session_id=info.session_id)

    def _start_fresh(self, test_id: str, *, allow_conflict_retry: bool) -> SessionHandle:
        try:
            session = self._backend.start_session(test_id)
        except SessionConflictError:
            if not allow_conflict_retry:
                raise
            logger.info("Start of test %s hit a live session; asking the learner", test_id)
            info = self._backend.check_active_session(test_id)
            if not info.has_active_session:
                raise
            return self._resolve_existing(test_id, info)
        logger.info("Started session %s for test %s", session.session_id, test_id)
        return SessionHandle(session=session)

    def _adopt(self, test_id: str, info: ActiveSessionInfo) -> TestSession:
        stored = self._store.load(test_id)
        attempt_id = stored.attempt_id if stored is not None and stored.session_id == info.session_id else None
        return TestSession(
            session_id=info.session_id,
            test_id=test_id,
            attempt_id=attempt_id,
            started_at=info.started_at,
            expires_at=info.expires_at,
        )
