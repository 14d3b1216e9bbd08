import logging
import time
import uuid
from typing import Callable, Dict, Optional

from policyease.agent.schemas.requests import OutputLanguage
from policyease.services.analysis_service import PolicyAnalysisService
from policyease.services.lifecycle import AnalysisLifecycle

logger = logging.getLogger(__name__)


class SessionRepository:
    """
    In-process registry of analysis lifecycles, one per UI session.

    Nothing is persisted: a session only holds its current input, status and
    result, and is gone when the process stops or the session is deleted.
    Sessions untouched for `idle_ttl_seconds` are swept on the next create, and
    at most `max_sessions` are kept (least recently used idle ones go first).
    Sessions with an analysis in flight are never evicted.
    """

    def __init__(
        self,
        service: PolicyAnalysisService,
        max_sessions: int = 1000,
        idle_ttl_seconds: float = 3600.0,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._service = service
        self.max_sessions = max_sessions
        self.idle_ttl_seconds = idle_ttl_seconds
        self._clock = clock
        self._sessions: Dict[str, AnalysisLifecycle] = {}
        self._last_seen: Dict[str, float] = {}

    def create(self, language: OutputLanguage) -> tuple[str, AnalysisLifecycle]:
        self.sweep()
        self._enforce_cap(self.max_sessions - 1)

        session_id = str(uuid.uuid4())
        lifecycle = AnalysisLifecycle(self._service, language=language)
        self._sessions[session_id] = lifecycle
        self._last_seen[session_id] = self._clock()
        logger.info(f"Created session {session_id} ({language.value})")
        return session_id, lifecycle

    def get(self, session_id: str) -> Optional[AnalysisLifecycle]:
        lifecycle = self._sessions.get(session_id)
        if lifecycle is not None:
            self._last_seen[session_id] = self._clock()
        return lifecycle

    def delete(self, session_id: str) -> bool:
        lifecycle = self._sessions.pop(session_id, None)
        self._last_seen.pop(session_id, None)
        if lifecycle is None:
            return False
        lifecycle.reset()
        logger.info(f"Deleted session {session_id}")
        return True

    def sweep(self) -> int:
        """Drop idle sessions older than the TTL. Returns how many were removed."""
        cutoff = self._clock() - self.idle_ttl_seconds
        expired = [
            session_id
            for session_id, seen in self._last_seen.items()
            if seen <= cutoff and not self._sessions[session_id].is_busy
        ]
        for session_id in expired:
            self.delete(session_id)
        if expired:
            logger.info(f"Expired {len(expired)} idle session(s)")
        return len(expired)

    def _enforce_cap(self, limit: int) -> None:
        if len(self._sessions) <= limit:
            return
        idle = sorted(
            (seen, session_id)
            for session_id, seen in self._last_seen.items()
            if not self._sessions[session_id].is_busy
        )
        for _, session_id in idle[: len(self._sessions) - max(limit, 0)]:
            logger.warning(f"⚠️ Session limit reached, evicting {session_id}")
            self.delete(session_id)

    def __len__(self) -> int:
        return len(self._sessions)
