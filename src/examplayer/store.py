import logging
import uuid
from datetime import datetime, timedelta
from typing import Dict, Optional, Tuple

from .session import ExamSession

logger = logging.getLogger(__name__)


class SessionStore:
    """In-memory sessions keyed by id, dropped after a period of inactivity."""

    def __init__(self, timeout_minutes: int):
        self.timeout = timedelta(minutes=timeout_minutes)
        self._sessions: Dict[str, Tuple[ExamSession, datetime]] = {}

    def __len__(self) -> int:
        return len(self._sessions)

    def sweep(self) -> int:
        """Drop every session idle past the timeout. Returns how many were dropped."""
        cutoff = datetime.now() - self.timeout
        expired = [key for key, (_, last_seen) in self._sessions.items() if last_seen < cutoff]
        for key in expired:
            del self._sessions[key]
        if expired:
            logger.info(f"Expired {len(expired)} idle sessions")
        return len(expired)

    def create(self, session: ExamSession) -> str:
        self.sweep()
        session_id = str(uuid.uuid4())
        self._sessions[session_id] = (session, datetime.now())
        logger.info(f"New session: {session_id} [Exam: {session.exam.id}, Mode: {session.exam.mode}]")
        return session_id

    def get(self, session_id: Optional[str]) -> Optional[ExamSession]:
        if not session_id or session_id not in self._sessions:
            return None
        session, last_seen = self._sessions[session_id]
        now = datetime.now()
        if now - last_seen > self.timeout:
            del self._sessions[session_id]
            logger.info(f"Session expired: {session_id}")
            return None
        self._sessions[session_id] = (session, now)
        return session

    def discard(self, session_id: Optional[str]) -> bool:
        if session_id in self._sessions:
            del self._sessions[session_id]
            return True
        return False
