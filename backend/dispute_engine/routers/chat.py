"""
Dispute Engine - Chat API Router

Sends user messages to the session's dispute copilot and returns its replies.
"""
from __future__ import annotations
from typing import List, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy.orm import Session

from ..database import get_db
from ..dependencies import get_session_store, get_user_id, load_session
from ..services.session import SessionStore
from ..services.storage import LetterRepository
from .serialization import to_jsonable

router = APIRouter(prefix="/chat", tags=["chat"])


class ChatMessageRequest(BaseModel):
    content: str


class ChatReplyResponse(BaseModel):
    session_id: str
    state: str
    flow: Optional[str] = None
    replies: List[dict]


class TranscriptResponse(BaseModel):
    session_id: str
    state: str
    messages: List[dict]


@router.post("/{session_id}/messages", response_model=ChatReplyResponse)
async def post_message(
    session_id: str,
    request: ChatMessageRequest,
    user_id: Optional[str] = Depends(get_user_id),
    store: SessionStore = Depends(get_session_store),
    db: Session = Depends(get_db),
):
    session = load_session(session_id, store)
    conversation = session.conversation

    owner = user_id or session.user_id
    if owner:
        repository = LetterRepository(db)
        conversation.letter_sink = lambda letter: repository.save_dispute_letter(owner, letter)
    else:
        conversation.letter_sink = None

    replies = conversation.handle_message(session, request.content)
    return ChatReplyResponse(
        session_id=session.session_id,
        state=conversation.state.value,
        flow=conversation.flow.value if conversation.flow else None,
        replies=to_jsonable(replies),
    )


@router.get("/{session_id}/messages", response_model=TranscriptResponse)
async def get_transcript(session_id: str, store: SessionStore = Depends(get_session_store)):
    session = load_session(session_id, store)
    return TranscriptResponse(
        session_id=session.session_id,
        state=session.conversation.state.value,
        messages=to_jsonable(session.messages),
    )
