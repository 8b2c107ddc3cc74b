"""
Dispute Engine - Letter Assembler

Fills the dispute letter skeleton from a RecommendedDispute or from
manually entered dispute fields.

Generation is total: missing values become bracketed placeholders the user
can edit. If the full template fails, the simplified template is used; if
that fails too, GenerationError is raised and the caller shows
GENERATION_FAILED_MESSAGE.
"""
from __future__ import annotations
import logging
import re
from dataclasses import dataclass, field
from datetime import date
from typing import List, Optional, Sequence, Tuple

from ...exceptions import GenerationError
from ...models.ssot import (
    DisputeLetter, LegalReference, LetterStatus, ManualDispute,
    RecommendedDispute, UserInfo,
)
from ..audit.engine import select_dispute_issues
from ..legal.reference_resolver import (
    FALLBACK_REFERENCE, check_security_breaches, resolve_legal_basis,
)
from .bureau_profiles import (
    BUREAU_ADDRESS_PLACEHOLDER, BUREAU_NAME_PLACEHOLDER, get_bureau_address, get_bureau_name,
    get_bureau_profile,
)
from . import templates

logger = logging.getLogger(__name__)


# =============================================================================
# DATA STRUCTURES
# =============================================================================

@dataclass
class LetterFields:
    """Everything a template needs, already reduced to display strings."""
    bureau: Optional[str]
    account_name: Optional[str]
    account_number: Optional[str]
    reason: Optional[str]
    description: Optional[str]
    sample_language: Optional[str] = None
    legal_basis: Tuple[LegalReference, ...] = ()
    explanation: Optional[str] = None

    @classmethod
    def from_dispute(cls, dispute: RecommendedDispute) -> "LetterFields":
        reason = getattr(dispute.reason, "value", dispute.reason)
        return cls(
            bureau=dispute.bureau,
            account_name=dispute.account_name,
            account_number=dispute.account_number,
            reason=reason,
            description=dispute.description,
            sample_language=dispute.sample_dispute_language,
            legal_basis=tuple(dispute.legal_basis or ()),
        )

    @classmethod
    def from_manual(cls, manual: ManualDispute) -> "LetterFields":
        resolution = resolve_legal_basis(
            manual.error_type, manual.explanation or "", manual.account_name or "", manual.bureau or ""
        )
        return cls(
            bureau=manual.bureau,
            account_name=manual.account_name,
            account_number=manual.account_number,
            reason=manual.error_type,
            description=manual.explanation,
            sample_language=resolution.sample_language,
            legal_basis=resolution.references,
            explanation=manual.explanation,
        )


@dataclass
class RenderedLetter:
    content: str
    simplified: bool
    laws: List[str] = field(default_factory=list)


# =============================================================================
# FORMATTING HELPERS
# =============================================================================

def format_letter_date(value: date) -> str:
    """Long US format, e.g. 'October 18, 2026'."""
    return f"{value:%B} {value.day}, {value.year}"


def mask_account_number(account_number: Optional[str]) -> str:
    """
    Display pattern xx-xxxx-<last4>.

    >>> mask_account_number("4147 2020 1234 5678")
    'xx-xxxx-5678'
    >>> mask_account_number(None)
    '[ACCOUNT NUMBER]'
    """
    compact = re.sub(r"[\s\-.]", "", str(account_number or ""))
    if not compact:
        return templates.ACCOUNT_NUMBER_PLACEHOLDER
    return f"xx-xxxx-{compact[-4:]}"


def _text(value) -> str:
    return str(value).strip() if value is not None else ""


def _or(value, placeholder: str) -> str:
    return _text(value) or placeholder


def _sender_block(user: UserInfo) -> List[str]:
    city = _or(user.city, templates.CITY_PLACEHOLDER)
    state = _or(user.state, templates.STATE_PLACEHOLDER)
    zip_code = _or(user.zip_code, templates.ZIP_PLACEHOLDER)
    return [
        _or(user.name, templates.NAME_PLACEHOLDER),
        _or(user.address, templates.ADDRESS_PLACEHOLDER),
        f"{city}, {state} {zip_code}",
    ]


def _recipient_block(bureau: Optional[str]) -> List[str]:
    # A known bureau's address block already starts with its name
    if get_bureau_profile(bureau):
        return [get_bureau_address(bureau)]
    return [get_bureau_name(bureau), BUREAU_ADDRESS_PLACEHOLDER]


def _has_placeholders(content: str) -> bool:
    return any(token in content for token in (
        *templates.USER_PLACEHOLDERS,
        templates.ACCOUNT_NUMBER_PLACEHOLDER,
        templates.ACCOUNT_NAME_PLACEHOLDER,
        templates.REASON_PLACEHOLDER,
        BUREAU_NAME_PLACEHOLDER,
        BUREAU_ADDRESS_PLACEHOLDER,
    ))


# =============================================================================
# TEMPLATE ENGINE
# =============================================================================

class LetterTemplateEngine:
    """
    Renders dispute letters.

    Usage:
        engine = LetterTemplateEngine()
        text = engine.generate_letter(dispute, user)
        letter = engine.build_dispute_letter(dispute, user)
    """

    def __init__(self, today: Optional[date] = None, include_breach_note: bool = False):
        self.today = today
        self.include_breach_note = include_breach_note

    # -------------------------------------------------------------------------
    # Public API
    # -------------------------------------------------------------------------

    def generate_letter(self, dispute: RecommendedDispute, user: Optional[UserInfo] = None) -> str:
        return self._render(LetterFields.from_dispute(dispute), user).content

    def generate_manual_letter(self, manual: ManualDispute, user: Optional[UserInfo] = None) -> str:
        return self._render(LetterFields.from_manual(manual), user).content

    def build_dispute_letter(self, dispute: RecommendedDispute, user: Optional[UserInfo] = None) -> DisputeLetter:
        fields = LetterFields.from_dispute(dispute)
        return self._to_letter(fields, self._render(fields, user))

    def build_manual_letter(self, manual: ManualDispute, user: Optional[UserInfo] = None) -> DisputeLetter:
        fields = LetterFields.from_manual(manual)
        return self._to_letter(fields, self._render(fields, user))

    def generate_letters(
        self,
        disputes: Sequence[RecommendedDispute],
        user: Optional[UserInfo] = None,
    ) -> List[DisputeLetter]:
        """One letter per selected issue. Issues that cannot be rendered are skipped."""
        letters = []
        for dispute in select_dispute_issues(disputes):
            try:
                letters.append(self.build_dispute_letter(dispute, user))
            except GenerationError as e:
                logger.error(f"Skipping letter for {dispute.account_name}: {e}")
        logger.info(f"Generated {len(letters)} letters from {len(disputes)} disputes")
        return letters

    # -------------------------------------------------------------------------
    # Rendering
    # -------------------------------------------------------------------------

    def _render(self, fields: LetterFields, user: Optional[UserInfo]) -> RenderedLetter:
        user = user or UserInfo()
        try:
            return self._render_full(fields, user)
        except Exception as e:
            logger.warning(f"Full letter template failed, using simplified letter: {e}")

        try:
            return self._render_simplified(fields, user)
        except Exception as e:
            logger.error(f"Simplified letter template failed: {e}")
            raise GenerationError(str(e)) from e

    def _render_full(self, fields: LetterFields, user: UserInfo) -> RenderedLetter:
        bureau_name = get_bureau_name(fields.bureau)
        today = self.today or date.today()

        references = list(fields.legal_basis) or [FALLBACK_REFERENCE]
        laws = [ref.display() for ref in references]
        legal_lines = [f"- {ref.display()}: {ref.description}" for ref in references]

        body = [
            *_sender_block(user),
            "",
            format_letter_date(today),
            "",
            get_bureau_address(fields.bureau),
            "",
            templates.SUBJECT_LINE,
            "",
            templates.SALUTATION,
            "",
            f"I am writing to dispute inaccurate information that {bureau_name} is reporting on "
            f"my credit report. I have identified the following item as inaccurate or incomplete:",
            "",
            templates.DISPUTED_ITEMS_HEADER,
            f"Account Name: {_or(fields.account_name, templates.ACCOUNT_NAME_PLACEHOLDER).upper()}",
            f"Account Number: {mask_account_number(fields.account_number)}",
            f"Reason for Dispute: {_or(fields.reason, templates.REASON_PLACEHOLDER)}",
        ]

        description = _text(fields.description)
        if description:
            body += ["", description]

        sample = _text(fields.sample_language)
        if sample and sample != description:
            body += ["", sample]

        if self.include_breach_note:
            note = check_security_breaches(fields.bureau)
            if note:
                body += ["", note]

        body += [
            "",
            templates.LEGAL_BASIS_HEADER,
            *legal_lines,
            "",
            templates.FCRA_REQUEST_BLOCK,
            "",
            templates.CLOSING,
            "",
            _or(user.name, templates.NAME_PLACEHOLDER),
            "",
            templates.ENCLOSURES_BLOCK,
        ]
        return RenderedLetter(content="\n".join(body), simplified=False, laws=laws)

    def _render_simplified(self, fields: LetterFields, user: UserInfo) -> RenderedLetter:
        today = self.today or date.today()
        reason = _or(fields.reason, templates.REASON_PLACEHOLDER)

        body = [
            *_sender_block(user),
            "",
            format_letter_date(today),
            "",
            *_recipient_block(fields.bureau),
            "",
            templates.SIMPLIFIED_SUBJECT_LINE,
            "",
            templates.SALUTATION,
            "",
            "I am writing to dispute the following information in my credit report:",
            "",
            f"Account Name: {_or(fields.account_name, templates.ACCOUNT_NAME_PLACEHOLDER).upper()}",
            f"Account Number: {mask_account_number(fields.account_number)}",
            f"Issue: {reason}",
            f"Reason: {_text(fields.description) or reason}",
            "",
            templates.SIMPLIFIED_REQUEST,
            "",
            templates.CLOSING,
            "",
            _or(user.name, templates.NAME_PLACEHOLDER),
        ]
        return RenderedLetter(content="\n".join(body), simplified=True, laws=["FCRA § 611(a)"])

    def _to_letter(self, fields: LetterFields, rendered: RenderedLetter) -> DisputeLetter:
        status = LetterStatus.DRAFT if _has_placeholders(rendered.content) else LetterStatus.READY
        return DisputeLetter(
            bureau=get_bureau_name(fields.bureau),
            account_name=_text(fields.account_name) or templates.ACCOUNT_NAME_PLACEHOLDER,
            account_number=_text(fields.account_number) or None,
            error_type=_text(fields.reason) or None,
            explanation=_text(fields.explanation or fields.description) or None,
            content=rendered.content,
            laws=rendered.laws,
            status=status,
            simplified=rendered.simplified,
        )
