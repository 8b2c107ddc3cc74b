"""
Dispute Engine - Account Name Heuristics

PDF extraction regularly hands us creditor names like "12 0 obj <</Length"
or "endstreamCHASE". These helpers decide whether a name is human-readable
and try to salvage the creditor from the ones that are not.
"""
from __future__ import annotations
import re
from typing import List, Optional, Tuple


# =============================================================================
# CONSTANTS
# =============================================================================

# Order matters for scanning: longer names before names they contain
KNOWN_CREDITORS: List[str] = [
    "BANK OF AMERICA",
    "AMERICAN EXPRESS",
    "CAPITAL ONE",
    "WELLS FARGO",
    "NAVY FEDERAL",
    "GOLDMAN SACHS",
    "FIRST PREMIER",
    "CREDIT ONE",
    "SYNCHRONY",
    "VERIZON",
    "AT&T",
    "DISCOVER",
    "CITIBANK",
    "BARCLAYS",
    "TD BANK",
    "US BANK",
    "CARMAX",
    "CHASE",
    "CITI",
    "AMEX",
    "USAA",
    "PNC",
    "TOYOTA",
    "HONDA",
    "BMW",
    "MERCEDES",
    "FORD",
    "CHRYSLER",
    "GM",
    "GE",
]

# PDF object syntax that leaks into extracted text
ARTIFACT_RE = re.compile(
    r"endstream|endobj|\bobj\b|\bstream\b|/Length|/Type|/Filter|/FlateDecode|/First|/GM\b|^\d+\s+0\s"
)
ARTIFACT_CHARS = set("{}\\<>")

MAX_SPECIAL_RATIO = 0.15

UPPER_RUN_RE = re.compile(r"[A-Z][A-Z0-9&.'\- ]*[A-Z0-9]")


# =============================================================================
# HELPERS
# =============================================================================

def _special_ratio(name: str) -> float:
    special = sum(1 for ch in name if not ch.isalnum() and not ch.isspace())
    return special / len(name)


def creditor_pattern(creditor: str) -> "re.Pattern[str]":
    """Word-bounded pattern so CITI does not match inside CITIBANK."""
    return re.compile(r"\b" + re.escape(creditor) + r"\b")


def find_known_creditor(text: str) -> Optional[str]:
    """First known creditor (by list order) mentioned in upper-cased text."""
    upper = text.upper()
    for creditor in KNOWN_CREDITORS:
        if creditor_pattern(creditor).search(upper):
            return creditor
    return None


def find_creditor_mentions(text: str) -> List[Tuple[int, str]]:
    """
    All distinct known creditors in text with the offset of their first match,
    sorted by offset. Case-sensitive: report headers print creditors in caps.
    """
    mentions = []
    claimed: List[Tuple[int, int]] = []
    for creditor in KNOWN_CREDITORS:
        match = creditor_pattern(creditor).search(text)
        if not match:
            continue
        # Skip "CITI" style hits that sit inside an already claimed longer name
        if any(start <= match.start() < end for start, end in claimed):
            continue
        claimed.append(match.span())
        mentions.append((match.start(), creditor))
    return sorted(mentions)


# =============================================================================
# PUBLIC API
# =============================================================================

def is_valid_account_name(name: Optional[str]) -> bool:
    """Whether an extracted account name is human-readable."""
    if not name:
        return False
    name = name.strip()
    if not name:
        return False

    if ARTIFACT_RE.search(name) or any(ch in ARTIFACT_CHARS for ch in name):
        return False
    if name.upper() in KNOWN_CREDITORS:
        return True
    # Short creditor abbreviations such as GE or TD
    if 2 <= len(name) <= 3 and name.isalpha() and name.isupper():
        return True
    if _special_ratio(name) > MAX_SPECIAL_RATIO:
        return False
    if len(name) > 5 and not any(ch.isupper() for ch in name):
        return False

    if find_known_creditor(name) and any(ch.isupper() for ch in name):
        return True

    return len(name) >= 3 and any(ch.isupper() for ch in name)


def clean_account_name(name: Optional[str]) -> Optional[str]:
    """
    Try to recover a readable creditor name from a garbled one.

    Returns None when nothing usable is left.
    """
    if not name:
        return None

    text = ARTIFACT_RE.sub(" ", name)
    text = re.sub(r"[{}\\<>\[\]()/]", " ", text)
    text = re.sub(r"^[\d\s.,:-]+", "", text)
    text = re.sub(r"\s+", " ", text).strip()
    if not text:
        return None

    creditor = find_known_creditor(text)
    runs = [run.strip() for run in UPPER_RUN_RE.findall(text) if len(run.strip()) >= 2]

    if creditor:
        for run in runs:
            if creditor in run:
                return run
        return creditor

    if runs:
        return max(runs, key=len)

    letters = re.sub(r"[^A-Za-z0-9&' ]", "", text).strip()
    if len(letters) >= 3:
        return letters.title()
    return None
