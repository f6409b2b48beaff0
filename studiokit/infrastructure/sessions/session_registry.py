from __future__ import annotations

import logging
import threading
import uuid
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Callable, Iterator

import numpy as np

from studiokit.application.use_cases.edit_session import EditSession, RenderedPreview
from studiokit.domain.errors import RenderError, SessionLimitError, SessionNotFoundError

logger = logging.getLogger(__name__)


@dataclass
class _Entry:
    session: EditSession
    lock: threading.Lock = field(default_factory=threading.Lock)


class SessionRegistry:
    """In-memory map of session handles to open `EditSession`s.

    Nothing is persisted; a process restart drops every session. Each session
    is driven by at most one call at a time.
    """

    def __init__(
        self,
        max_sessions: int = 32,
        session_factory: Callable[[], EditSession] = EditSession,
    ) -> None:
        self.max_sessions = max_sessions
        self._session_factory = session_factory
        self._entries: dict[str, _Entry] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, session_id: object) -> bool:
        with self._lock:
            return session_id in self._entries

    def open(self, source: np.ndarray) -> tuple[str, RenderedPreview]:
        with self._lock:
            if len(self._entries) >= self.max_sessions:
                raise SessionLimitError(f"Too many open sessions (max {self.max_sessions})")
        session = self._session_factory()
        preview = session.begin(source)  # LoadError leaves nothing registered
        session_id = uuid.uuid4().hex
        with self._lock:
            if len(self._entries) >= self.max_sessions:
                session.close()
                raise SessionLimitError(f"Too many open sessions (max {self.max_sessions})")
            self._entries[session_id] = _Entry(session=session)
        logger.info("Registered edit session %s", session_id)
        return session_id, preview

    @contextmanager
    def use(self, session_id: str) -> Iterator[EditSession]:
        """Hold a session exclusively for the duration of the block.

        A `RenderError` raised inside the block unregisters the session.
        """
        with self._lock:
            entry = self._entries.get(session_id)
        if entry is None:
            raise SessionNotFoundError(f"Session not found: {session_id}")
        with entry.lock:
            try:
                yield entry.session
            except RenderError:
                self._discard(session_id)
                raise

    def close(self, session_id: str) -> bool:
        """Close and forget a session. Returns False if it was not open."""
        with self._lock:
            entry = self._entries.pop(session_id, None)
        if entry is None:
            return False
        with entry.lock:
            entry.session.close()
        logger.info("Closed edit session %s", session_id)
        return True

    def close_all(self) -> None:
        with self._lock:
            ids = list(self._entries)
        for session_id in ids:
            self.close(session_id)

    def _discard(self, session_id: str) -> None:
        with self._lock:
            self._entries.pop(session_id, None)
        logger.warning("Discarded edit session %s after render failure", session_id)
