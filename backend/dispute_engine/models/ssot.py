"""
Dispute Engine - Single Source of Truth Models

Pipeline objects, leaf-first:
- CreditReportData: output of the Report Normalizer
- RecommendedDispute: output of the Issue Identifier (immutable)
- DisputeLetter: output of the Letter Template Engine
- ConversationMessage: one turn of the chat transcript
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional, Tuple
from uuid import uuid4


# =============================================================================
# ENUMS
# =============================================================================

class Bureau(str, Enum):
    """Credit reporting bureaus."""
    EXPERIAN = "Experian"
    EQUIFAX = "Equifax"
    TRANSUNION = "TransUnion"


ALL_BUREAUS = "All Bureaus"
UNKNOWN_ACCOUNT = "Unknown Account"


def parse_bureau(value: Optional[str]) -> Optional[Bureau]:
    """Map free text ("experian", "Trans Union", ...) to a Bureau, or None."""
    if not value:
        return None
    compact = "".join(str(value).lower().split())
    for bureau in Bureau:
        if bureau.value.lower() in compact:
            return bureau
    return None


class Severity(str, Enum):
    """Presumed impact of a discrepancy on the consumer's score."""
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"

    @property
    def rank(self) -> int:
        return SEVERITY_RANK[self]


SEVERITY_RANK: Dict[Severity, int] = {
    Severity.HIGH: 0,
    Severity.MEDIUM: 1,
    Severity.LOW: 2,
}


class DisputeReason(str, Enum):
    """Category label of a recommended dispute."""
    NEGATIVE_REMARK = "Negative Remark"
    LATE_PAYMENT = "Late Payment"
    ACCOUNT_VERIFICATION = "Account Verification"
    DUPLICATE_ACCOUNT = "Duplicate Account"
    HIGH_UTILIZATION = "High Utilization"
    OBSOLETE_ITEM = "Obsolete Negative Item"
    PERSONAL_INFORMATION = "Personal Information"
    GENERAL_DISPUTE = "General Dispute"


class Confidence(str, Enum):
    """How the dispute was found. DEGRADED means raw-text scanning only."""
    NORMAL = "normal"
    DEGRADED = "degraded"


class LetterStatus(str, Enum):
    """Lifecycle of a dispute letter."""
    DRAFT = "draft"
    READY = "ready"
    SENT = "sent"


LETTER_STATUS_TRANSITIONS: Dict[LetterStatus, Tuple[LetterStatus, ...]] = {
    LetterStatus.DRAFT: (LetterStatus.READY,),
    LetterStatus.READY: (LetterStatus.SENT,),
    LetterStatus.SENT: (),
}


class Sender(str, Enum):
    USER = "user"
    AGENT = "agent"


# =============================================================================
# REPORT (output of the Report Normalizer)
# =============================================================================

@dataclass
class PersonalInfo:
    name: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zip_code: Optional[str] = None
    previous_addresses: List[str] = field(default_factory=list)


@dataclass
class Account:
    """One tradeline as extracted from the report."""
    account_name: Optional[str] = None
    account_number: Optional[str] = None
    account_type: Optional[str] = None
    balance: Optional[float] = None
    credit_limit: Optional[float] = None
    payment_status: Optional[str] = None
    date_opened: Optional[str] = None
    date_reported: Optional[str] = None
    remarks: List[str] = field(default_factory=list)
    bureau: Optional[str] = None

    @property
    def is_closed(self) -> bool:
        status = (self.payment_status or "").lower()
        return "closed" in status or "paid" in status


@dataclass
class BureauPresence:
    experian: bool = False
    equifax: bool = False
    transunion: bool = False

    def present(self) -> List[Bureau]:
        flags = [
            (Bureau.EXPERIAN, self.experian),
            (Bureau.EQUIFAX, self.equifax),
            (Bureau.TRANSUNION, self.transunion),
        ]
        return [bureau for bureau, flag in flags if flag]


@dataclass
class AnalysisResults:
    """Derived totals, filled in by the Issue Identifier."""
    total_accounts: int = 0
    open_accounts: int = 0
    closed_accounts: int = 0
    negative_items: int = 0
    account_type_summary: Dict[str, int] = field(default_factory=dict)
    total_balance: float = 0.0
    total_credit_limit: float = 0.0
    utilization: Optional[float] = None
    issue_count: int = 0
    high_severity_count: int = 0
    degraded: bool = False


@dataclass
class CreditReportData:
    """
    Parsed report.

    Accounts, personal info and bureau flags are fixed once analysis begins.
    Only analysis_results is written afterwards.
    """
    report_id: str = field(default_factory=lambda: str(uuid4()))
    personal_info: PersonalInfo = field(default_factory=PersonalInfo)
    accounts: List[Account] = field(default_factory=list)
    bureaus: BureauPresence = field(default_factory=BureauPresence)
    raw_text: str = ""
    source_filename: Optional[str] = None
    parse_warning: Optional[str] = None
    analysis_results: Optional[AnalysisResults] = None
    created_at: datetime = field(default_factory=datetime.now)


# =============================================================================
# DISPUTES (output of the Issue Identifier)
# =============================================================================

@dataclass(frozen=True)
class LegalReference:
    law: str
    section: str
    description: str
    citation: Optional[str] = None

    def display(self) -> str:
        text = f"{self.law} § {self.section}"
        if self.citation:
            text += f" ({self.citation})"
        return text


@dataclass(frozen=True)
class RecommendedDispute:
    """One candidate dispute. Never mutated; use dataclasses.replace."""
    account_name: str
    reason: DisputeReason
    description: str
    severity: Severity
    bureau: str = ALL_BUREAUS
    account_number: Optional[str] = None
    legal_basis: Tuple[LegalReference, ...] = ()
    sample_dispute_language: Optional[str] = None
    confidence: Confidence = Confidence.NORMAL
    dispute_id: str = field(default_factory=lambda: str(uuid4()))

    @property
    def severity_rank(self) -> int:
        return self.severity.rank


# =============================================================================
# LETTERS (output of the Letter Template Engine)
# =============================================================================

@dataclass
class UserInfo:
    """Consumer identity printed on the letter. Missing values become placeholders."""
    name: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zip_code: Optional[str] = None

    @classmethod
    def from_personal_info(cls, info: Optional[PersonalInfo]) -> "UserInfo":
        if info is None:
            return cls()
        return cls(
            name=info.name,
            address=info.address,
            city=info.city,
            state=info.state,
            zip_code=info.zip_code,
        )


@dataclass
class ManualDispute:
    """Fields collected by hand, either through the chat or the manual form."""
    bureau: Optional[str] = None
    account_name: Optional[str] = None
    account_number: Optional[str] = None
    error_type: Optional[str] = None
    explanation: Optional[str] = None

    @property
    def slots_filled(self) -> bool:
        return bool(self.bureau and self.account_name and self.error_type)


@dataclass
class DisputeLetter:
    bureau: str
    account_name: str
    content: str
    account_number: Optional[str] = None
    error_type: Optional[str] = None
    explanation: Optional[str] = None
    laws: List[str] = field(default_factory=list)
    status: LetterStatus = LetterStatus.DRAFT
    simplified: bool = False
    letter_id: str = field(default_factory=lambda: str(uuid4()))
    created_at: datetime = field(default_factory=datetime.now)

    def can_transition_to(self, status: LetterStatus) -> bool:
        return status in LETTER_STATUS_TRANSITIONS[self.status]


# =============================================================================
# CONVERSATION
# =============================================================================

@dataclass
class ConversationMessage:
    sender: Sender
    content: str
    discrepancies: Optional[List[RecommendedDispute]] = None
    letter_id: Optional[str] = None
    timestamp: datetime = field(default_factory=datetime.now)
