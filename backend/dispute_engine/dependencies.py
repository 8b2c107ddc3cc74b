"""
Dispute Engine - Shared FastAPI Dependencies
"""
from typing import Optional

from fastapi import Depends, Header, HTTPException, status

from .exceptions import SessionNotFoundError
from .services.session import DisputeSession, SessionStore

# One in-memory store per process
session_store = SessionStore()


def get_session_store() -> SessionStore:
    return session_store


def get_user_id(x_user_id: Optional[str] = Header(default=None)) -> Optional[str]:
    """Caller's user id. Authentication happens upstream; we only read the header."""
    return x_user_id.strip() if x_user_id and x_user_id.strip() else None


def require_user_id(user_id: Optional[str] = Depends(get_user_id)) -> str:
    if not user_id:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="X-User-Id header required")
    return user_id


def load_session(session_id: str, store: SessionStore) -> DisputeSession:
    try:
        return store.get(session_id)
    except SessionNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
