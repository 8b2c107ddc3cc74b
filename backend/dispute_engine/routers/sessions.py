"""
Dispute Engine - Sessions API Router

A session holds one user's analysed report, disputes, letters and chat.
"""
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from ..dependencies import get_session_store, get_user_id, load_session
from ..services.session import SessionStore
from .schemas import UserInfoModel

router = APIRouter(prefix="/sessions", tags=["sessions"])


class CreateSessionRequest(BaseModel):
    profile: Optional[UserInfoModel] = None


class SessionResponse(BaseModel):
    session_id: str
    user_id: Optional[str] = None
    created_at: datetime
    has_report: bool
    processing: bool
    dispute_count: int
    letter_count: int
    message_count: int
    chat_state: str


def _session_response(session) -> SessionResponse:
    return SessionResponse(
        session_id=session.session_id,
        user_id=session.user_id,
        created_at=session.created_at,
        has_report=session.report is not None,
        processing=session.processing,
        dispute_count=len(session.disputes),
        letter_count=len(session.letters),
        message_count=len(session.messages),
        chat_state=session.conversation.state.value,
    )


@router.post("", response_model=SessionResponse, status_code=201)
async def create_session(
    request: Optional[CreateSessionRequest] = None,
    user_id: Optional[str] = Depends(get_user_id),
    store: SessionStore = Depends(get_session_store),
):
    session = store.create(user_id)
    if request is not None and request.profile is not None:
        session.profile = request.profile.to_user_info()
    return _session_response(session)


@router.get("/{session_id}", response_model=SessionResponse)
async def get_session(session_id: str, store: SessionStore = Depends(get_session_store)):
    return _session_response(load_session(session_id, store))
