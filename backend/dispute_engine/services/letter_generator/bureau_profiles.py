"""
Dispute Engine - Bureau Profiles

Mailing addresses for dispute correspondence.
"""
from typing import Any, Dict, Optional

from ...models.ssot import ALL_BUREAUS, parse_bureau

BUREAU_NAME_PLACEHOLDER = "[CREDIT BUREAU]"
BUREAU_ADDRESS_PLACEHOLDER = "[BUREAU ADDRESS]"


# =============================================================================
# BUREAU PROFILES
# =============================================================================

BUREAU_PROFILES: Dict[str, Dict[str, Any]] = {
    "experian": {
        "name": "Experian",
        "address": """Experian
P.O. Box 4500
Allen, TX 75013""",
    },

    "equifax": {
        "name": "Equifax",
        "address": """Equifax Information Services LLC
P.O. Box 740256
Atlanta, GA 30374""",
    },

    "transunion": {
        "name": "TransUnion",
        "address": """TransUnion LLC
Consumer Dispute Center
P.O. Box 2000
Chester, PA 19016""",
    },
}


def get_bureau_profile(bureau: Optional[str]) -> Optional[Dict[str, Any]]:
    canonical = parse_bureau(bureau)
    if canonical is None:
        return None
    return BUREAU_PROFILES[canonical.value.lower()]


def get_bureau_address(bureau: Optional[str]) -> str:
    """Mailing address block, or the placeholder token for unknown bureaus."""
    profile = get_bureau_profile(bureau)
    return profile["address"] if profile else BUREAU_ADDRESS_PLACEHOLDER


def get_bureau_name(bureau: Optional[str]) -> str:
    """Canonical bureau name, the caller's text when unknown, or the placeholder."""
    profile = get_bureau_profile(bureau)
    if profile:
        return profile["name"]
    text = (bureau or "").strip()
    if not text or text == ALL_BUREAUS:
        return BUREAU_NAME_PLACEHOLDER
    return text
