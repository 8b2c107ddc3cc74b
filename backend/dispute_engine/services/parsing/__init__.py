"""Dispute Engine - Parsing Layer

Converts uploaded files into CreditReportData.
"""
from .account_names import KNOWN_CREDITORS, clean_account_name, is_valid_account_name
from .report_normalizer import ReportNormalizer, normalize_report
from .text_extractor import extract_text, validate_upload

__all__ = [
    "KNOWN_CREDITORS",
    "clean_account_name",
    "is_valid_account_name",
    "ReportNormalizer",
    "normalize_report",
    "extract_text",
    "validate_upload",
]
