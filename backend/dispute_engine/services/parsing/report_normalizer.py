"""
Dispute Engine - Report Normalizer

Reads extracted report text and outputs CreditReportData.
Everything downstream works from CreditReportData, never from the file.

Reports are segmented into blocks separated by blank lines. A block is an
account when it carries a creditor name (labelled, or an upper-case header
line) plus at least one other tradeline field. A name that stays unreadable
after cleaning is left as None; the account itself is kept.
"""
from __future__ import annotations
import logging
import re
from typing import Dict, List, Optional, Tuple

from ...models.ssot import (
    Account, BureauPresence, CreditReportData, PersonalInfo, parse_bureau,
)
from .account_names import clean_account_name, is_valid_account_name
from .text_extractor import extract_text, looks_unparsed

logger = logging.getLogger(__name__)


# =============================================================================
# CONSTANTS
# =============================================================================

NOT_REPORTED = {"", "-", "--", "N/A", "NA", "NONE", "NOT REPORTED", "NOT AVAILABLE"}

# Header lines that are report sections, not creditors
NON_ACCOUNT_SECTIONS = {
    "PERSONAL INFORMATION", "PERSONAL INFO", "CONSUMER INFORMATION",
    "ACCOUNTS", "ACCOUNT INFORMATION", "ACCOUNT HISTORY", "TRADELINES",
    "SUMMARY", "ACCOUNT SUMMARY", "CREDIT SUMMARY", "INQUIRIES",
    "PUBLIC RECORDS", "CREDIT SCORE", "SCORE FACTORS", "ALERTS",
    "EMPLOYMENT", "ADDRESSES", "ADDRESS HISTORY", "CREDIT REPORT",
    "EXPERIAN", "EQUIFAX", "TRANSUNION",
}

MIN_BLOCK_LENGTH = 20

_FLAGS = re.IGNORECASE | re.MULTILINE

ACCOUNT_NAME_RE = re.compile(
    r"^\s*(?:Creditor(?:\s+Name)?|Account\s+Name|Subscriber(?:\s+Name)?|Company(?:\s+Name)?|Furnisher)\s*[:\-]\s*(.+?)\s*$",
    _FLAGS,
)

ACCOUNT_FIELD_PATTERNS: Dict[str, "re.Pattern[str]"] = {
    "account_number": re.compile(
        r"^\s*Account\s*(?:#|No\.?|Number)\s*[:\-]?\s*([A-Za-z0-9*][A-Za-z0-9*\- ]{2,})\s*$", _FLAGS
    ),
    "account_type": re.compile(r"^\s*(?:Account\s+)?Type\s*[:\-]\s*(.+?)\s*$", _FLAGS),
    "balance": re.compile(r"^\s*(?:Current\s+)?Balance\s*[:\-]\s*(.+?)\s*$", _FLAGS),
    "credit_limit": re.compile(r"^\s*(?:Credit\s+Limit|High\s+Credit|Limit)\s*[:\-]\s*(.+?)\s*$", _FLAGS),
    "payment_status": re.compile(
        r"^\s*(?:(?:Payment|Pay|Account)\s+)?Status\s*[:\-]\s*(.+?)\s*$", _FLAGS
    ),
    "date_opened": re.compile(r"^\s*(?:Date\s+Opened|Open(?:ed)?\s+Date|Opened)\s*[:\-]\s*(.+?)\s*$", _FLAGS),
    "date_reported": re.compile(
        r"^\s*(?:Date\s+Reported|Last\s+Reported|Reported)\s*[:\-]\s*(.+?)\s*$", _FLAGS
    ),
}

REMARKS_RE = re.compile(r"^\s*(?:Remarks?|Comments?)\s*[:\-]\s*(.+?)\s*$", _FLAGS)
BUREAU_LINE_RE = re.compile(r"^\s*(?:Bureau|Reported\s+By|Source)\s*[:\-]\s*(.+?)\s*$", _FLAGS)
HEADER_LINE_RE = re.compile(r"^[A-Z][A-Z0-9&.,'\- ]{2,}$")

NAME_RE = re.compile(r"^\s*(?:Consumer\s+|Full\s+)?Name\s*[:\-]\s*(.+?)\s*$", _FLAGS)
ADDRESS_RE = re.compile(r"^\s*(?:Current\s+)?Address\s*[:\-]\s*(.+?)\s*$", _FLAGS)
PREVIOUS_ADDRESS_RE = re.compile(r"^\s*(?:Previous|Former|Prior)\s+Address(?:es)?\s*[:\-]\s*(.*?)\s*$", re.IGNORECASE)
CITY_STATE_ZIP_RE = re.compile(r"^\s*([A-Za-z .'\-]+),\s*([A-Z]{2})\s+(\d{5}(?:-\d{4})?)\s*$", re.MULTILINE)
ADDRESS_WITH_CITY_RE = re.compile(r"^(.*?),\s*([A-Za-z .'\-]+),\s*([A-Z]{2})\s+(\d{5}(?:-\d{4})?)$")


# =============================================================================
# HELPER FUNCTIONS
# =============================================================================

def _clean_text(text: Optional[str]) -> Optional[str]:
    """Collapse whitespace, returning None if empty or 'not reported'."""
    if not text:
        return None
    text = re.sub(r"\s+", " ", text).strip()
    if text.upper() in NOT_REPORTED:
        return None
    return text


def _parse_money(amount_str: Optional[str]) -> Optional[float]:
    """Parse money string to float."""
    cleaned = _clean_text(amount_str)
    if not cleaned:
        return None

    cleaned = re.sub(r"[$,\s]", "", cleaned)

    # Handle negative amounts in parentheses
    is_negative = cleaned.startswith("(") and cleaned.endswith(")")
    if is_negative:
        cleaned = cleaned[1:-1]

    match = re.match(r"-?\d+(?:\.\d+)?", cleaned)
    if not match:
        return None
    value = float(match.group(0))
    return -value if is_negative else value


def _split_blocks(text: str) -> List[str]:
    return [block.strip() for block in re.split(r"\n\s*\n", text) if block.strip()]


def _first(pattern: "re.Pattern[str]", text: str) -> Optional[str]:
    match = pattern.search(text)
    return _clean_text(match.group(1)) if match else None


def detect_bureaus(text: str) -> BureauPresence:
    """Bureau presence flags from case-insensitive substring matches."""
    lowered = text.lower()
    return BureauPresence(
        experian="experian" in lowered,
        equifax="equifax" in lowered,
        transunion="transunion" in lowered or "trans union" in lowered,
    )


# =============================================================================
# NORMALIZER
# =============================================================================

class ReportNormalizer:
    """Turns uploaded report files or their text into CreditReportData."""

    def normalize_file(
        self,
        content: bytes,
        filename: Optional[str] = None,
        content_type: Optional[str] = None,
    ) -> CreditReportData:
        """Extract text and normalize it. Raises ParseError if the file is unreadable."""
        text = extract_text(content, filename, content_type)
        return self.normalize_text(text, source_filename=filename)

    def normalize_text(self, text: str, source_filename: Optional[str] = None) -> CreditReportData:
        bureaus = detect_bureaus(text)
        personal_info = self._extract_personal_info(text)
        accounts, unreadable = self._extract_accounts(text, bureaus)

        report = CreditReportData(
            personal_info=personal_info,
            accounts=accounts,
            bureaus=bureaus,
            raw_text=text,
            source_filename=source_filename,
        )

        if looks_unparsed(text):
            report.parse_warning = (
                "The report text looks incomplete. The file may be scanned or "
                "protected, so some information could be missing."
            )
        elif not accounts:
            report.parse_warning = "No accounts could be extracted from this report."

        logger.info(
            f"Normalized report {report.report_id}: {len(accounts)} accounts, "
            f"{unreadable} unreadable names, bureaus={[b.value for b in bureaus.present()]}"
        )
        return report

    # -------------------------------------------------------------------------
    # Personal information
    # -------------------------------------------------------------------------

    def _extract_personal_info(self, text: str) -> PersonalInfo:
        info = PersonalInfo(
            name=_first(NAME_RE, text),
            address=_first(ADDRESS_RE, text),
        )

        if info.address:
            match = ADDRESS_WITH_CITY_RE.match(info.address)
            if match:
                info.address = match.group(1).strip()
                info.city = match.group(2).strip()
                info.state = match.group(3)
                info.zip_code = match.group(4)

        if not info.city:
            match = CITY_STATE_ZIP_RE.search(text)
            if match:
                info.city = match.group(1).strip()
                info.state = match.group(2)
                info.zip_code = match.group(3)

        info.previous_addresses = self._extract_previous_addresses(text)
        return info

    def _extract_previous_addresses(self, text: str) -> List[str]:
        addresses: List[str] = []
        in_section = False
        for line in text.split("\n"):
            match = PREVIOUS_ADDRESS_RE.match(line)
            if match:
                value = _clean_text(match.group(1))
                if value:
                    addresses.append(value)
                    in_section = False
                else:
                    in_section = True
                continue
            if in_section:
                value = _clean_text(line)
                if not value or ":" in value:
                    in_section = False
                    continue
                addresses.append(value)
        return addresses

    # -------------------------------------------------------------------------
    # Accounts
    # -------------------------------------------------------------------------

    def _extract_accounts(self, text: str, bureaus: BureauPresence) -> Tuple[List[Account], int]:
        present = bureaus.present()
        default_bureau = present[0].value if len(present) == 1 else None

        accounts: List[Account] = []
        unreadable = 0
        for block in _split_blocks(text):
            if len(block) < MIN_BLOCK_LENGTH:
                continue

            raw_name = self._block_name(block)
            if raw_name is None:
                continue

            fields = {key: _first(pattern, block) for key, pattern in ACCOUNT_FIELD_PATTERNS.items()}
            if not any(fields[key] for key in ("account_number", "balance", "payment_status", "account_type")):
                continue

            name = raw_name
            if not is_valid_account_name(name):
                name = clean_account_name(raw_name)
                if not is_valid_account_name(name):
                    logger.warning(f"Unreadable account name: {raw_name[:40]!r}")
                    unreadable += 1
                    name = None

            accounts.append(Account(
                account_name=name,
                account_number=fields["account_number"],
                account_type=fields["account_type"],
                balance=_parse_money(fields["balance"]),
                credit_limit=_parse_money(fields["credit_limit"]),
                payment_status=fields["payment_status"],
                date_opened=fields["date_opened"],
                date_reported=fields["date_reported"],
                remarks=[r for r in (_clean_text(m) for m in REMARKS_RE.findall(block)) if r],
                bureau=self._block_bureau(block) or default_bureau,
            ))

        return accounts, unreadable

    def _block_name(self, block: str) -> Optional[str]:
        labelled = _first(ACCOUNT_NAME_RE, block)
        if labelled:
            return labelled

        first_line = block.split("\n", 1)[0].strip()
        if HEADER_LINE_RE.match(first_line) and first_line.upper() not in NON_ACCOUNT_SECTIONS:
            return first_line
        return None

    def _block_bureau(self, block: str) -> Optional[str]:
        labelled = parse_bureau(_first(BUREAU_LINE_RE, block))
        if labelled:
            return labelled.value

        mentioned = detect_bureaus(block).present()
        if len(mentioned) == 1:
            return mentioned[0].value
        return None


def normalize_report(
    content: bytes,
    filename: Optional[str] = None,
    content_type: Optional[str] = None,
) -> CreditReportData:
    """Factory function: uploaded file bytes to CreditReportData."""
    return ReportNormalizer().normalize_file(content, filename, content_type)
