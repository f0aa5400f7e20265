"""Client-local persistence of in-progress session identities.

Only the session id and its deadline are kept, so that after a restart the
client re-negotiates with the backend instead of silently starting a second
attempt. Answers are never stored here; the backend owns them.
"""

from __future__ import annotations

import json
import logging
import threading
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path

from pydantic import ValidationError

from exam_app.core.models import TestSession
from exam_app.core.schemas import WireModel

logger = logging.getLogger(__name__)


class _StoredSession(WireModel):
    session_id: str
    attempt_id: str | None = None
    started_at: datetime
    expires_at: datetime


@dataclass(frozen=True, slots=True)
class PendingSession:
    test_id: str
    session_id: str
    started_at: datetime
    expires_at: datetime
    attempt_id: str | None = None

    def is_expired(self, now: datetime) -> bool:
        return now >= self.expires_at


class SessionStore:
    """JSON file mapping test id to the live session for that test."""

    def __init__(self, path: Path) -> None:
        self._path = path
        self._lock = threading.Lock()

    @property
    def path(self) -> Path:
        return self._path

    def save(self, session: TestSession) -> None:
        entry = _StoredSession(
            session_id=session.session_id,
            attempt_id=session.attempt_id,
            started_at=session.started_at,
            expires_at=session.expires_at,
        )
        with self._lock:
            data = self._read()
            data[session.test_id] = entry.model_dump(mode="json", by_alias=True)
            self._write(data)
        logger.debug("Persisted session %s for test %s", session.session_id, session.test_id)

    def load(self, test_id: str) -> PendingSession | None:
        with self._lock:
            raw = self._read().get(test_id)
        if raw is None:
            return None
        try:
            stored = _StoredSession.model_validate(raw)
        except ValidationError:
            logger.warning("Ignoring unreadable stored session for test %s", test_id)
            return None
        return PendingSession(
            test_id=test_id,
            session_id=stored.session_id,
            attempt_id=stored.attempt_id,
            started_at=stored.started_at,
            expires_at=stored.expires_at,
        )

    def remove(self, test_id: str) -> None:
        with self._lock:
            data = self._read()
            if data.pop(test_id, None) is not None:
                self._write(data)

    def pending(self) -> list[PendingSession]:
        """Return every stored session, soonest deadline first."""
        with self._lock:
            test_ids = list(self._read())
        sessions = [session for test_id in test_ids if (session := self.load(test_id)) is not None]
        return sorted(sessions, key=lambda s: s.expires_at)

    def _read(self) -> dict[str, dict]:
        if not self._path.exists():
            return {}
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, ValueError):
            logger.warning("Session store %s is unreadable; starting empty", self._path)
            return {}
        return data if isinstance(data, dict) else {}

    def _write(self, data: dict[str, dict]) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self._path.with_suffix(self._path.suffix + ".tmp")
        tmp.write_text(json.dumps(data, indent=2, sort_keys=True), encoding="utf-8")
        tmp.replace(self._path)
