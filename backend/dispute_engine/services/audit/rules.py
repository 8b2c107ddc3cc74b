"""
Dispute Engine - Issue Rules

ACCOUNT_RULES is ordered: the first rule whose predicate matches an account
decides that account's primary issue. AccountRules checks are additive and
run on every account regardless of the primary match.
"""
from __future__ import annotations
from dataclasses import dataclass
from datetime import date, datetime
from typing import Callable, List, Optional, Tuple

from dateutil import parser as date_parser
from dateutil.relativedelta import relativedelta

from ...models.ssot import Account, DisputeReason, Severity

# Status keywords that mark a delinquent account (case-insensitive substring)
LATE_STATUS_KEYWORDS = ("late", "delinquent", "collection")
CHARGE_OFF_KEYWORDS = ("charge off", "charged off", "chargeoff", "charge-off")

HIGH_UTILIZATION_RATIO = 0.70
OBSOLESCENCE_YEARS = 7


# =============================================================================
# PREDICATES
# =============================================================================

def has_remarks(account: Account) -> bool:
    return any(remark and remark.strip() for remark in account.remarks)


def has_late_status(account: Account) -> bool:
    status = (account.payment_status or "").lower()
    return any(keyword in status for keyword in LATE_STATUS_KEYWORDS)


def is_negative(account: Account) -> bool:
    status = (account.payment_status or "").lower()
    return has_remarks(account) or has_late_status(account) or any(k in status for k in CHARGE_OFF_KEYWORDS)


def parse_report_date(value: Optional[str]) -> Optional[date]:
    """Best-effort parse of report dates like 03/2015, 2015-03-01, Mar 2015."""
    if not value:
        return None
    try:
        return date_parser.parse(value, default=datetime(2000, 1, 1)).date()
    except (ValueError, OverflowError):
        return None


# =============================================================================
# FIRST-MATCH RULE TABLE
# =============================================================================

@dataclass(frozen=True)
class AccountRule:
    name: str
    predicate: Callable[[Account], bool]
    reason: DisputeReason
    severity: Severity
    describe: Callable[[Account, str], str]


def _describe_remarks(account: Account, name: str) -> str:
    remarks = "; ".join(r.strip() for r in account.remarks if r and r.strip())
    return (
        f"The {name} account carries negative remarks ({remarks}). Negative remarks must be "
        f"verified as accurate and complete, or removed."
    )


def _describe_late(account: Account, name: str) -> str:
    return (
        f"The {name} account is reported as '{account.payment_status}'. Late or delinquent "
        f"payment history must be fully verified with the furnisher."
    )


def _describe_verification(account: Account, name: str) -> str:
    return (
        f"All details of the {name} account should be verified for accuracy and completeness "
        f"by the bureau and the furnisher."
    )


ACCOUNT_RULES: Tuple[AccountRule, ...] = (
    AccountRule(
        name="negative_remark",
        predicate=has_remarks,
        reason=DisputeReason.NEGATIVE_REMARK,
        severity=Severity.HIGH,
        describe=_describe_remarks,
    ),
    AccountRule(
        name="late_payment",
        predicate=has_late_status,
        reason=DisputeReason.LATE_PAYMENT,
        severity=Severity.HIGH,
        describe=_describe_late,
    ),
    AccountRule(
        name="account_verification",
        predicate=lambda account: True,
        reason=DisputeReason.ACCOUNT_VERIFICATION,
        severity=Severity.MEDIUM,
        describe=_describe_verification,
    ),
)


def match_account_rule(account: Account, rules: Tuple[AccountRule, ...] = ACCOUNT_RULES) -> Optional[AccountRule]:
    for rule in rules:
        if rule.predicate(account):
            return rule
    return None


# =============================================================================
# ADDITIVE CHECKS
# =============================================================================

# (reason, severity, description)
Finding = Tuple[DisputeReason, Severity, str]


class AccountRules:
    """Additive per-account checks. Each returns zero or more findings."""

    @staticmethod
    def check_high_utilization(account: Account, name: str, today: date) -> List[Finding]:
        if not account.balance or not account.credit_limit or account.credit_limit <= 0:
            return []
        ratio = account.balance / account.credit_limit
        if ratio <= HIGH_UTILIZATION_RATIO:
            return []
        return [(
            DisputeReason.HIGH_UTILIZATION,
            Severity.MEDIUM,
            f"The reported balance of ${account.balance:,.2f} on the {name} account is "
            f"{ratio:.0%} of the ${account.credit_limit:,.2f} credit limit. Confirm the balance "
            f"and limit are reported correctly.",
        )]

    @staticmethod
    def check_obsolete(account: Account, name: str, today: date) -> List[Finding]:
        if not is_negative(account):
            return []
        opened = parse_report_date(account.date_opened)
        if opened is None or opened > today - relativedelta(years=OBSOLESCENCE_YEARS):
            return []
        return [(
            DisputeReason.OBSOLETE_ITEM,
            Severity.HIGH,
            f"The {name} account was opened {account.date_opened}, more than "
            f"{OBSOLESCENCE_YEARS} years ago. Negative information older than seven years "
            f"must not be reported.",
        )]


ADDITIVE_CHECKS: Tuple[Callable[[Account, str, date], List[Finding]], ...] = (
    AccountRules.check_high_utilization,
    AccountRules.check_obsolete,
)
