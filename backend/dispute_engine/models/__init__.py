"""Dispute Engine - Data Models"""
from .ssot import (
    # Enums
    Bureau, Severity, DisputeReason, Confidence, LetterStatus, Sender,
    SEVERITY_RANK, LETTER_STATUS_TRANSITIONS, ALL_BUREAUS, UNKNOWN_ACCOUNT,
    parse_bureau,
    # Normalizer output
    PersonalInfo, Account, BureauPresence, AnalysisResults, CreditReportData,
    # Identifier output
    LegalReference, RecommendedDispute,
    # Letter engine
    UserInfo, ManualDispute, DisputeLetter,
    # Chat
    ConversationMessage,
)

__all__ = [
    "Bureau", "Severity", "DisputeReason", "Confidence", "LetterStatus", "Sender",
    "SEVERITY_RANK", "LETTER_STATUS_TRANSITIONS", "ALL_BUREAUS", "UNKNOWN_ACCOUNT",
    "parse_bureau",
    "PersonalInfo", "Account", "BureauPresence", "AnalysisResults", "CreditReportData",
    "LegalReference", "RecommendedDispute",
    "UserInfo", "ManualDispute", "DisputeLetter",
    "ConversationMessage",
]
