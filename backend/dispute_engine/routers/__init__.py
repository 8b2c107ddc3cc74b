"""Dispute Engine - API Routers"""
from .sessions import router as sessions_router
from .reports import router as reports_router
from .letters import router as letters_router
from .chat import router as chat_router

__all__ = [
    "sessions_router",
    "reports_router",
    "letters_router",
    "chat_router",
]
