"""
Dispute Engine - Issue Identifier

Takes CreditReportData and outputs an ordered list of RecommendedDispute,
best-first by severity.

Pass order:
1. Per-account primary issue (first match in ACCOUNT_RULES)
2. Additive per-account checks (utilization, obsolescence)
3. Duplicate accounts (grouped by normalized name)
4. Personal information
5. Raw-text creditor scan, only when the report has no accounts
6. Catch-all dispute, only when nothing else was found

Malformed fields degrade to defaults; the scan itself never raises.
"""
from __future__ import annotations
import logging
import re
from collections import OrderedDict
from datetime import date
from typing import Dict, List, Optional, Sequence, Tuple

from ...models.ssot import (
    ALL_BUREAUS, UNKNOWN_ACCOUNT, Account, AnalysisResults, Confidence,
    CreditReportData, DisputeReason, RecommendedDispute, Severity,
)
from ..legal.reference_resolver import resolve_legal_basis
from ..parsing.account_names import clean_account_name, find_creditor_mentions, is_valid_account_name
from .rules import ACCOUNT_RULES, ADDITIVE_CHECKS, AccountRule, is_negative, match_account_rule

logger = logging.getLogger(__name__)


CATCH_ALL_DESCRIPTION = (
    "I dispute all negative items on my credit report and request full verification of every "
    "account, including the original documentation used to verify each item."
)

# Characters scanned around a creditor mention in raw text
RAW_WINDOW_BEFORE = 100
RAW_WINDOW_AFTER = 300

RAW_ACCOUNT_NUMBER_RE = re.compile(
    r"(?:Account|Acct)\s*(?:#|No\.?|Number)?\s*[:\-]?\s*([A-Za-z0-9*][A-Za-z0-9*\-]{3,})", re.IGNORECASE
)
RAW_BALANCE_RE = re.compile(r"Balance\s*[:\-]?\s*\$?\s*([\d,]+(?:\.\d{2})?)", re.IGNORECASE)


def normalize_account_key(name: str) -> str:
    """Grouping key for duplicate detection: lower-cased, whitespace removed."""
    return re.sub(r"\s+", "", name or "").lower()


class IssueIdentifier:
    """
    Runs the issue rules over a normalized report.

    Usage:
        identifier = IssueIdentifier()
        disputes = identifier.identify(report)
    """

    def __init__(
        self,
        rules: Tuple[AccountRule, ...] = ACCOUNT_RULES,
        additive_checks=ADDITIVE_CHECKS,
        today: Optional[date] = None,
    ):
        self.rules = rules
        self.additive_checks = additive_checks
        self.today = today

    def identify(self, report: CreditReportData) -> List[RecommendedDispute]:
        today = self.today or date.today()
        accounts = self._named_accounts(report.accounts)
        disputes: List[RecommendedDispute] = []
        degraded = False

        for account, name in accounts:
            disputes.extend(self._account_issues(account, name, today))

        disputes.extend(self._duplicate_issues(accounts))
        disputes.extend(self._personal_info_issues(report))

        if not accounts and report.raw_text:
            fallback = self._raw_text_issues(report.raw_text)
            degraded = bool(fallback)
            disputes.extend(fallback)

        if not disputes:
            logger.info(f"No issues found in report {report.report_id}, using catch-all dispute")
            disputes.append(self._build(
                account_name="All Negative Items",
                account_number=None,
                bureau=None,
                reason=DisputeReason.GENERAL_DISPUTE,
                severity=Severity.MEDIUM,
                description=CATCH_ALL_DESCRIPTION,
            ))

        # sorted() is stable, so equal severities keep discovery order
        disputes = sorted(disputes, key=lambda d: d.severity_rank)

        report.analysis_results = self._summarize(
            [account for account, _ in accounts], disputes, degraded
        )
        logger.info(
            f"Identified {len(disputes)} issues in report {report.report_id} "
            f"({report.analysis_results.high_severity_count} high severity)"
        )
        return disputes

    # -------------------------------------------------------------------------
    # Passes
    # -------------------------------------------------------------------------

    def _named_accounts(self, accounts: Sequence[Account]) -> List[Tuple[Account, str]]:
        """Pairs of (account, display name); unreadable names are cleaned or become Unknown Account."""
        readable = []
        for account in accounts:
            raw = (account.account_name or "").strip()
            if not raw:
                readable.append((account, UNKNOWN_ACCOUNT))
                continue
            if is_valid_account_name(raw):
                readable.append((account, raw))
                continue
            cleaned = clean_account_name(raw)
            if cleaned and is_valid_account_name(cleaned):
                readable.append((account, cleaned))
            else:
                logger.warning(f"Unreadable account name {raw[:40]!r}, using {UNKNOWN_ACCOUNT!r}")
                readable.append((account, UNKNOWN_ACCOUNT))
        return readable

    def _account_issues(self, account: Account, name: str, today: date) -> List[RecommendedDispute]:
        issues = []
        rule = match_account_rule(account, self.rules)
        if rule is not None:
            issues.append(self._build(
                account_name=name,
                account_number=account.account_number,
                bureau=account.bureau,
                reason=rule.reason,
                severity=rule.severity,
                description=rule.describe(account, name),
            ))

        for check in self.additive_checks:
            for reason, severity, description in check(account, name, today):
                issues.append(self._build(
                    account_name=name,
                    account_number=account.account_number,
                    bureau=account.bureau,
                    reason=reason,
                    severity=severity,
                    description=description,
                ))
        return issues

    def _duplicate_issues(self, accounts: List[Tuple[Account, str]]) -> List[RecommendedDispute]:
        groups: Dict[str, List[Tuple[Account, str]]] = OrderedDict()
        for account, name in accounts:
            if name == UNKNOWN_ACCOUNT:
                continue
            groups.setdefault(normalize_account_key(name), []).append((account, name))

        issues = []
        for members in groups.values():
            if len(members) < 2:
                continue
            first_account, name = members[0]
            numbers = [a.account_number for a, _ in members if a.account_number]
            listed = f" Account numbers reported: {', '.join(numbers)}." if numbers else ""
            bureaus = {a.bureau for a, _ in members}
            issues.append(self._build(
                account_name=name,
                account_number=first_account.account_number,
                bureau=bureaus.pop() if len(bureaus) == 1 else None,
                reason=DisputeReason.DUPLICATE_ACCOUNT,
                severity=Severity.HIGH,
                description=(
                    f"The same {name} account appears {len(members)} times on your report. "
                    f"Duplicate tradelines overstate your debt and must be merged or removed."
                    f"{listed}"
                ),
            ))
        return issues

    def _personal_info_issues(self, report: CreditReportData) -> List[RecommendedDispute]:
        previous = report.personal_info.previous_addresses
        if not previous:
            return []
        return [self._build(
            account_name=report.personal_info.name or "Personal Information",
            account_number=None,
            bureau=None,
            reason=DisputeReason.PERSONAL_INFORMATION,
            severity=Severity.LOW,
            description=(
                f"Your report lists {len(previous)} previous address(es): {'; '.join(previous)}. "
                f"Outdated or incorrect personal information should be removed."
            ),
        )]

    def _raw_text_issues(self, raw_text: str) -> List[RecommendedDispute]:
        issues = []
        for offset, creditor in find_creditor_mentions(raw_text):
            window = raw_text[max(0, offset - RAW_WINDOW_BEFORE): offset + RAW_WINDOW_AFTER]
            number_match = RAW_ACCOUNT_NUMBER_RE.search(window)
            balance_match = RAW_BALANCE_RE.search(window)
            balance = f" A balance of ${balance_match.group(1)} appears nearby." if balance_match else ""
            issues.append(self._build(
                account_name=creditor,
                account_number=number_match.group(1) if number_match else None,
                bureau=None,
                reason=DisputeReason.ACCOUNT_VERIFICATION,
                severity=Severity.MEDIUM,
                description=(
                    f"The {creditor} account was found in the report text, but its details could "
                    f"not be read reliably.{balance} Every item reported for this account should "
                    f"be verified."
                ),
                confidence=Confidence.DEGRADED,
            ))
        if issues:
            logger.warning(f"No readable accounts; found {len(issues)} creditors in raw text")
        return issues

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    def _build(
        self,
        account_name: str,
        account_number: Optional[str],
        bureau: Optional[str],
        reason: DisputeReason,
        severity: Severity,
        description: str,
        confidence: Confidence = Confidence.NORMAL,
    ) -> RecommendedDispute:
        bureau = (bureau or "").strip() or ALL_BUREAUS
        name = (account_name or "").strip() or UNKNOWN_ACCOUNT
        resolution = resolve_legal_basis(reason, description, name, bureau)
        return RecommendedDispute(
            account_name=name,
            account_number=account_number,
            bureau=bureau,
            reason=reason,
            description=description,
            severity=severity,
            legal_basis=resolution.references,
            confidence=confidence,
        )

    def _summarize(
        self,
        accounts: List[Account],
        disputes: List[RecommendedDispute],
        degraded: bool,
    ) -> AnalysisResults:
        type_summary: Dict[str, int] = {}
        for account in accounts:
            key = account.account_type or "Unknown"
            type_summary[key] = type_summary.get(key, 0) + 1

        total_balance = sum(a.balance for a in accounts if a.balance)
        total_limit = sum(a.credit_limit for a in accounts if a.credit_limit)
        closed = sum(1 for a in accounts if a.is_closed)

        return AnalysisResults(
            total_accounts=len(accounts),
            open_accounts=len(accounts) - closed,
            closed_accounts=closed,
            negative_items=sum(1 for a in accounts if is_negative(a)),
            account_type_summary=type_summary,
            total_balance=total_balance,
            total_credit_limit=total_limit,
            utilization=round(total_balance / total_limit, 4) if total_limit else None,
            issue_count=len(disputes),
            high_severity_count=sum(1 for d in disputes if d.severity == Severity.HIGH),
            degraded=degraded,
        )


def identify_issues(report: CreditReportData, today: Optional[date] = None) -> List[RecommendedDispute]:
    """Factory function to run the Issue Identifier on a report."""
    return IssueIdentifier(today=today).identify(report)


def select_dispute_issues(
    disputes: Sequence[RecommendedDispute],
    max_high: int = 5,
    target: int = 3,
) -> List[RecommendedDispute]:
    """
    Pick the issues worth a letter.

    Up to max_high high-severity issues, topped up with medium ones until
    target is reached. With neither, the first target issues.
    """
    high = [d for d in disputes if d.severity == Severity.HIGH][:max_high]
    selected = list(high)
    if len(selected) < target:
        medium = [d for d in disputes if d.severity == Severity.MEDIUM]
        selected.extend(medium[:target - len(selected)])
    if not selected:
        selected = list(disputes[:target])
    return selected
