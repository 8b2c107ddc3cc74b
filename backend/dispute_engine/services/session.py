"""
Dispute Engine - Session Context

Request-independent context for one user's in-flight work: the analysed
report, its disputes, generated letters and the chat transcript. Sessions
live in memory only; letters that must survive go through LetterRepository.
"""
from __future__ import annotations
import logging
import threading
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, Iterator, List, Optional
from uuid import uuid4

from ..exceptions import SessionBusyError, SessionNotFoundError
from ..models.ssot import (
    ConversationMessage, CreditReportData, DisputeLetter, RecommendedDispute, UserInfo,
)
from .copilot.conversation import DisputeConversation

logger = logging.getLogger(__name__)


@dataclass
class DisputeSession:
    session_id: str = field(default_factory=lambda: str(uuid4()))
    user_id: Optional[str] = None
    report: Optional[CreditReportData] = None
    disputes: List[RecommendedDispute] = field(default_factory=list)
    notices: List[str] = field(default_factory=list)
    letters: List[DisputeLetter] = field(default_factory=list)
    messages: List[ConversationMessage] = field(default_factory=list)
    conversation: DisputeConversation = field(default_factory=DisputeConversation)
    profile: Optional[UserInfo] = None
    processing: bool = False
    created_at: datetime = field(default_factory=datetime.now)

    @property
    def user_info(self) -> UserInfo:
        """Explicit profile values win; gaps are filled from the report."""
        from_report = UserInfo.from_personal_info(self.report.personal_info if self.report else None)
        if self.profile is None:
            return from_report
        return UserInfo(
            name=self.profile.name or from_report.name,
            address=self.profile.address or from_report.address,
            city=self.profile.city or from_report.city,
            state=self.profile.state or from_report.state,
            zip_code=self.profile.zip_code or from_report.zip_code,
        )

    def find_letter(self, letter_id: str) -> Optional[DisputeLetter]:
        for letter in self.letters:
            if letter.letter_id == letter_id:
                return letter
        return None


class SessionStore:
    """In-memory session registry keyed by session id."""

    def __init__(self):
        self._sessions: Dict[str, DisputeSession] = {}
        self._lock = threading.Lock()

    def create(self, user_id: Optional[str] = None) -> DisputeSession:
        session = DisputeSession(user_id=user_id)
        self._sessions[session.session_id] = session
        logger.info(f"Created session {session.session_id}")
        return session

    def get(self, session_id: str) -> DisputeSession:
        session = self._sessions.get(session_id)
        if session is None:
            raise SessionNotFoundError(f"Session {session_id} not found")
        return session

    def get_or_create(self, session_id: Optional[str], user_id: Optional[str] = None) -> DisputeSession:
        if session_id:
            return self.get(session_id)
        return self.create(user_id)

    def discard(self, session_id: str) -> None:
        self._sessions.pop(session_id, None)

    @contextmanager
    def processing(self, session: DisputeSession) -> Iterator[DisputeSession]:
        """Guard against a second upload while one is in flight."""
        with self._lock:
            if session.processing:
                raise SessionBusyError(f"Session {session.session_id} is already processing a report")
            session.processing = True
        try:
            yield session
        finally:
            session.processing = False
