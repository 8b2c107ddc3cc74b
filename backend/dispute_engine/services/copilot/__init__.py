"""Dispute Engine - Dispute Copilot

Scripted chat front-end over the analysis and letter pipeline.
"""
from .conversation import (
    ChatState,
    ConversationFlow,
    DisputeConversation,
    narrate_analysis,
    select_target_dispute,
    summarize_disputes,
)

__all__ = [
    "ChatState",
    "ConversationFlow",
    "DisputeConversation",
    "narrate_analysis",
    "select_target_dispute",
    "summarize_disputes",
]
