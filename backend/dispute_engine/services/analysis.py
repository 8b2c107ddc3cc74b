"""
Dispute Engine - Analysis Pipeline

Upload -> Report Normalizer -> Issue Identifier -> Legal Reference Resolver.

A file that cannot be parsed still produces a result: an empty-account
report plus a parsing-issue notice.
"""
from __future__ import annotations
import logging
from dataclasses import dataclass, field
from typing import List, Optional

from ..exceptions import ParseError
from ..models.ssot import Confidence, CreditReportData, RecommendedDispute
from .audit.engine import IssueIdentifier
from .copilot.conversation import narrate_analysis
from .legal.reference_resolver import enrich_disputes
from .parsing.report_normalizer import ReportNormalizer
from .session import DisputeSession, SessionStore

logger = logging.getLogger(__name__)


PARSING_ISSUE_NOTICE = (
    "Credit Report Parsing Issue: I couldn't read the accounts in your report reliably. "
    "The items below are a best effort, and you can always create a letter manually."
)

DEGRADED_NOTICE = (
    "Some items were found by scanning the report text only. Check the account details "
    "before sending any letter."
)


@dataclass
class AnalysisOutcome:
    report: CreditReportData
    disputes: List[RecommendedDispute]
    notices: List[str] = field(default_factory=list)


def analyze_report(
    content: bytes,
    filename: Optional[str] = None,
    content_type: Optional[str] = None,
    normalizer: Optional[ReportNormalizer] = None,
    identifier: Optional[IssueIdentifier] = None,
) -> AnalysisOutcome:
    normalizer = normalizer or ReportNormalizer()
    identifier = identifier or IssueIdentifier()

    try:
        report = normalizer.normalize_file(content, filename, content_type)
    except ParseError as e:
        logger.warning(f"Could not parse {filename or 'upload'}: {e}")
        report = CreditReportData(source_filename=filename, parse_warning=str(e))

    disputes = enrich_disputes(identifier.identify(report))

    notices = []
    if report.parse_warning:
        notices.append(f"{PARSING_ISSUE_NOTICE} ({report.parse_warning})")
    if any(d.confidence == Confidence.DEGRADED for d in disputes):
        notices.append(DEGRADED_NOTICE)

    return AnalysisOutcome(report=report, disputes=disputes, notices=notices)


def analyze_into_session(
    store: SessionStore,
    session: DisputeSession,
    content: bytes,
    filename: Optional[str] = None,
    content_type: Optional[str] = None,
) -> AnalysisOutcome:
    """Analyse an upload and replace the session's report, disputes and notices."""
    with store.processing(session):
        outcome = analyze_report(content, filename, content_type)
        session.report = outcome.report
        session.disputes = outcome.disputes
        session.notices = outcome.notices
        session.messages.append(narrate_analysis(outcome.disputes, outcome.notices))
    logger.info(
        f"Session {session.session_id}: analysed {filename or 'upload'}, "
        f"{len(outcome.disputes)} disputes"
    )
    return outcome
