"""
FCRA Statute Table

Maps FCRA section identifiers to U.S. Code citations and titles.
Section numbers map to 15 U.S.C. § 1681 plus a letter suffix:
611 -> 1681i (reinvestigation), 623 -> 1681s-2 (furnisher duties),
605 -> 1681c (obsolescence), 607 -> 1681e (accuracy procedures).
"""
import re
from typing import Dict

from ...exceptions import ResolutionError

FCRA_STATUTE_MAP: Dict[str, Dict[str, str]] = {
    "604": {
        "usc": "15 U.S.C. § 1681b",
        "title": "Permissible purposes of consumer reports",
        "description": "A report may only be furnished for a permissible purpose",
    },
    "605(a)": {
        "usc": "15 U.S.C. § 1681c(a)",
        "title": "Information excluded from consumer reports",
        "description": "Most adverse items may not be reported after seven years",
    },
    "607(b)": {
        "usc": "15 U.S.C. § 1681e(b)",
        "title": "Accuracy of report",
        "description": "Reasonable procedures to assure maximum possible accuracy",
    },
    "609": {
        "usc": "15 U.S.C. § 1681g",
        "title": "Disclosures to consumers",
        "description": "Consumers may obtain all information in their file",
    },
    "611(a)": {
        "usc": "15 U.S.C. § 1681i(a)",
        "title": "Reinvestigation of disputed information",
        "description": "Requires CRAs to reinvestigate disputed information within 30 days",
    },
    "611(a)(2)": {
        "usc": "15 U.S.C. § 1681i(a)(2)",
        "title": "Prompt notice to furnisher",
        "description": "CRA must forward the dispute to the furnisher",
    },
    "611(a)(5)(A)": {
        "usc": "15 U.S.C. § 1681i(a)(5)(A)",
        "title": "Deletion requirement",
        "description": "Promptly delete inaccurate or unverifiable information",
    },
    "623(a)(1)": {
        "usc": "15 U.S.C. § 1681s-2(a)(1)",
        "title": "Duty to provide accurate information",
        "description": "Furnishers may not report information they know is inaccurate",
    },
    "623(a)(2)": {
        "usc": "15 U.S.C. § 1681s-2(a)(2)",
        "title": "Duty to correct and update information",
        "description": "Furnishers must correct information found to be incomplete or inaccurate",
    },
    "623(b)": {
        "usc": "15 U.S.C. § 1681s-2(b)",
        "title": "Duties after notice of dispute",
        "description": "Furnishers must investigate disputes forwarded by a CRA",
    },
}

BASE_SECTION_MAP = {
    "604": "15 U.S.C. § 1681b",
    "605": "15 U.S.C. § 1681c",
    "607": "15 U.S.C. § 1681e",
    "609": "15 U.S.C. § 1681g",
    "611": "15 U.S.C. § 1681i",
    "623": "15 U.S.C. § 1681s-2",
}

SECTION_RE = re.compile(r"(\d{3})((?:\([0-9A-Za-z]+\))*)$")


def normalize_section(section: str) -> str:
    """'§ 611 (a)' / 'Section 611(a)' -> '611(a)'"""
    cleaned = re.sub(r"(?i)fcra|section|§|\s", "", section or "")
    return cleaned


def resolve_statute(section: str) -> str:
    """
    Convert an FCRA section identifier to its U.S. Code citation.

    >>> resolve_statute("611(a)")
    '15 U.S.C. § 1681i(a)'
    >>> resolve_statute("623(b)(1)")
    '15 U.S.C. § 1681s-2(b)(1)'

    Raises ResolutionError for sections outside the table.
    """
    section_clean = normalize_section(section)
    if section_clean in FCRA_STATUTE_MAP:
        return FCRA_STATUTE_MAP[section_clean]["usc"]

    match = SECTION_RE.match(section_clean)
    if match and match.group(1) in BASE_SECTION_MAP:
        return f"{BASE_SECTION_MAP[match.group(1)]}{match.group(2)}"

    raise ResolutionError(f"Unknown FCRA section: {section!r}")


def get_statute_details(section: str) -> Dict[str, str]:
    """Title, description and citation for a section in the table."""
    section_clean = normalize_section(section)
    if section_clean not in FCRA_STATUTE_MAP:
        raise ResolutionError(f"No details for FCRA section: {section!r}")
    return FCRA_STATUTE_MAP[section_clean]
