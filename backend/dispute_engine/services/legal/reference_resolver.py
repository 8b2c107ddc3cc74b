"""
Dispute Engine - Legal Reference Resolver

Maps an issue's reason and description to FCRA citations and a sample
dispute phrase. Deterministic: the same input always gives the same output.

Phrase selection is an ordered keyword table. The first rule whose keyword
appears in the reason or description wins; nothing matching falls back to
the generic §611(a) phrase.
"""
from __future__ import annotations
import logging
from dataclasses import dataclass, replace
from typing import Dict, List, Optional, Sequence, Tuple, Union

from ...exceptions import ResolutionError
from ...models.ssot import ALL_BUREAUS, DisputeReason, LegalReference, RecommendedDispute, parse_bureau
from .fcra_statutes import get_statute_details, resolve_statute

logger = logging.getLogger(__name__)


# =============================================================================
# PHRASE TABLE
# =============================================================================

@dataclass(frozen=True)
class LanguageRule:
    category: str
    keywords: Tuple[str, ...]
    template: str
    sections: Tuple[str, ...]


DISPUTE_LANGUAGE_RULES: Tuple[LanguageRule, ...] = (
    LanguageRule(
        category="balance",
        keywords=("balance",),
        template=(
            "The balance shown on the {account} account is incorrect. {bureau} must verify the "
            "balance with the furnisher and report it accurately according to Metro 2 Format "
            "standards, or remove the account."
        ),
        sections=("623(a)(2)", "611(a)"),
    ),
    LanguageRule(
        category="late_payment",
        keywords=("payment", "late"),
        template=(
            "The {account} account is incorrectly reported as delinquent. I have no record of the "
            "late payments shown. Under FCRA Section 623, the furnisher must report accurate payment "
            "history, and {bureau} must delete any payment history it cannot verify."
        ),
        sections=("623(a)(1)", "611(a)"),
    ),
    LanguageRule(
        category="account_status",
        keywords=("status",),
        template=(
            "The account status reported for {account} is inaccurate. Please verify the current "
            "status with the furnisher and correct it, or delete the account if the status cannot "
            "be verified."
        ),
        sections=("623(a)(2)", "611(a)"),
    ),
    LanguageRule(
        category="dates",
        keywords=("date",),
        template=(
            "The dates reported for the {account} account (date opened, date of last activity or "
            "date of first delinquency) are incorrect. Inaccurate dates affect how long this item "
            "may legally be reported and must be corrected by {bureau}."
        ),
        sections=("605(a)", "611(a)"),
    ),
    LanguageRule(
        category="personal_information",
        keywords=("personal information", "personal info", "address"),
        template=(
            "My personal information is reported incorrectly by {bureau}. Please remove any names, "
            "addresses or other identifying information that does not belong to me or is no "
            "longer current."
        ),
        sections=("607(b)", "611(a)"),
    ),
    LanguageRule(
        category="inquiry",
        keywords=("inquiry", "inquiries"),
        template=(
            "I did not authorize the inquiry from {account}. Under FCRA Section 604, a consumer "
            "report may only be obtained for a permissible purpose. Please remove this inquiry."
        ),
        sections=("604", "611(a)"),
    ),
    LanguageRule(
        category="student_loan",
        keywords=("student",),
        template=(
            "The {account} student loan is reported inaccurately. Please verify the loan status, "
            "balance and payment history with the servicer and the Department of Education "
            "records, and correct or remove the account."
        ),
        sections=("623(a)(2)", "611(a)"),
    ),
)

GENERIC_TEMPLATE = (
    "The {field} for this account is being inaccurately reported by {bureau}. Under FCRA "
    "Section 611(a), I request a reasonable reinvestigation of this information and its "
    "correction or deletion, as it does not comply with Metro 2 Format standards."
)

GENERIC_SECTIONS = ("611(a)",)

REASON_SECTIONS: Dict[DisputeReason, Tuple[str, ...]] = {
    DisputeReason.NEGATIVE_REMARK: ("611(a)", "623(a)(2)", "605(a)"),
    DisputeReason.LATE_PAYMENT: ("623(a)(1)", "611(a)"),
    DisputeReason.ACCOUNT_VERIFICATION: ("611(a)", "609"),
    DisputeReason.DUPLICATE_ACCOUNT: ("611(a)", "623(a)(2)", "607(b)"),
    DisputeReason.HIGH_UTILIZATION: ("623(a)(2)", "611(a)"),
    DisputeReason.OBSOLETE_ITEM: ("605(a)", "611(a)(5)(A)"),
    DisputeReason.PERSONAL_INFORMATION: ("607(b)", "611(a)"),
    DisputeReason.GENERAL_DISPUTE: ("611(a)", "611(a)(5)(A)"),
}

SECURITY_BREACHES: Dict[str, str] = {
    "Equifax": (
        "Equifax suffered a data breach in 2017 that exposed the personal information of "
        "approximately 147 million consumers, which raises serious concerns about the accuracy "
        "and integrity of the data in my file."
    ),
    "Experian": (
        "Experian suffered a data breach in 2015 that exposed the personal information of "
        "approximately 15 million consumers, which raises concerns about the integrity of the "
        "data in my file."
    ),
    "TransUnion": (
        "Credit bureaus, including TransUnion, have experienced security incidents affecting "
        "consumer data, which raises concerns about the integrity of the data in my file."
    ),
}


# =============================================================================
# RESOLVER
# =============================================================================

@dataclass(frozen=True)
class LegalResolution:
    references: Tuple[LegalReference, ...]
    sample_language: Optional[str]
    category: str


def _reference(section: str) -> LegalReference:
    details = get_statute_details(section)
    return LegalReference(
        law="FCRA",
        section=section,
        description=details["description"],
        citation=resolve_statute(section),
    )


# Used when the statute table itself cannot resolve a section
FALLBACK_REFERENCE = LegalReference(
    law="FCRA",
    section="611(a)",
    description="Requires CRAs to reinvestigate disputed information within 30 days",
    citation="15 U.S.C. § 1681i(a)",
)


def _as_reason(reason: Union[DisputeReason, str, None]) -> Optional[DisputeReason]:
    if isinstance(reason, DisputeReason):
        return reason
    try:
        return DisputeReason(reason)
    except ValueError:
        return None


def match_language_rule(text: str) -> Optional[LanguageRule]:
    lowered = (text or "").lower()
    for rule in DISPUTE_LANGUAGE_RULES:
        if any(keyword in lowered for keyword in rule.keywords):
            return rule
    return None


def references_for_sections(sections: Sequence[str]) -> Tuple[LegalReference, ...]:
    return tuple(_reference(section) for section in sections)


def resolve_legal_basis(
    reason: Union[DisputeReason, str, None],
    description: str = "",
    account_name: str = "",
    bureau: str = "",
) -> LegalResolution:
    """
    Citations and sample phrase for an issue.

    Accepts tagged reasons from the Issue Identifier or free-text error types
    typed by the user. Lookup failures are logged and replaced by the generic
    §611(a) phrase.
    """
    reason_text = reason.value if isinstance(reason, DisputeReason) else (reason or "")
    tagged = _as_reason(reason)
    rule = match_language_rule(f"{reason_text} {description or ''}")

    account = (account_name or "").strip() or "this"
    bureau_label = (bureau or "").strip() or "the credit bureau"
    if bureau_label == ALL_BUREAUS:
        bureau_label = "the credit bureau"
    else:
        canonical = parse_bureau(bureau_label)
        bureau_label = canonical.value if canonical else bureau_label
    field_name = reason_text.strip().lower() or "information"

    try:
        if tagged is not None:
            sections = REASON_SECTIONS[tagged]
        elif rule is not None:
            sections = rule.sections
        else:
            sections = GENERIC_SECTIONS
        references = references_for_sections(sections)

        if rule is not None:
            phrase = rule.template.format(account=account, bureau=bureau_label)
            category = rule.category
        else:
            phrase = GENERIC_TEMPLATE.format(field=field_name, bureau=bureau_label)
            category = "general"
    except (ResolutionError, KeyError) as e:
        logger.warning(f"Legal reference lookup failed for {reason_text!r}: {e}")
        return LegalResolution(
            references=(FALLBACK_REFERENCE,),
            sample_language=GENERIC_TEMPLATE.format(field=field_name, bureau=bureau_label),
            category="general",
        )

    return LegalResolution(references=references, sample_language=phrase, category=category)


def get_sample_dispute_language(account_name: str, field: str, bureau: str) -> str:
    """Sample phrase for a disputed field (e.g. 'balance', 'late payment')."""
    return resolve_legal_basis(field, "", account_name, bureau).sample_language or ""


def check_security_breaches(bureau: Optional[str]) -> Optional[str]:
    """Data breach note for a bureau, if one is on file."""
    canonical = parse_bureau(bureau)
    if canonical is None:
        return None
    return SECURITY_BREACHES.get(canonical.value)


def enrich_disputes(disputes: Sequence[RecommendedDispute]) -> List[RecommendedDispute]:
    """
    Fill sample dispute language for every dispute.

    Each dispute is resolved independently and returned as a new value;
    the inputs are left untouched.
    """
    enriched = []
    for dispute in disputes:
        resolution = resolve_legal_basis(
            dispute.reason, dispute.description, dispute.account_name, dispute.bureau
        )
        enriched.append(replace(
            dispute,
            legal_basis=dispute.legal_basis or resolution.references,
            sample_dispute_language=dispute.sample_dispute_language or resolution.sample_language,
        ))
    logger.info(f"Enriched {len(enriched)} disputes with sample language")
    return enriched
