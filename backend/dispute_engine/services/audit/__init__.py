"""Dispute Engine - Issue Identifier

Finds disputable discrepancies in CreditReportData.
"""
from .engine import IssueIdentifier, identify_issues, select_dispute_issues, normalize_account_key
from .rules import ACCOUNT_RULES, AccountRule, AccountRules

__all__ = [
    "IssueIdentifier",
    "identify_issues",
    "select_dispute_issues",
    "normalize_account_key",
    "ACCOUNT_RULES",
    "AccountRule",
    "AccountRules",
]
