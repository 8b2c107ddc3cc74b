"""
Dispute Engine - Dispute Copilot Conversation

Keyword-driven chat that drives the pipeline for one in-progress dispute.

Two named flows share a single state machine:
- MANUAL: slot filling (bureau -> account -> error type -> explanation)
- AUTOMATIC: a letter request against an already analysed report picks a
  RecommendedDispute and generates the letter straight away

Automatic generation and report summaries are only considered while no
manual dispute is in progress (NO_DISPUTE or LETTER_GENERATED).
"""
from __future__ import annotations
import logging
import re
from dataclasses import replace
from enum import Enum
from typing import TYPE_CHECKING, Callable, Dict, List, Optional, Sequence

from ...exceptions import GenerationError
from ...models.ssot import (
    ALL_BUREAUS, ConversationMessage, DisputeLetter, ManualDispute,
    RecommendedDispute, Sender, parse_bureau,
)
from ..audit.engine import normalize_account_key
from ..letter_generator import GENERATION_FAILED_MESSAGE, LetterTemplateEngine

if TYPE_CHECKING:
    from ..session import DisputeSession

logger = logging.getLogger(__name__)


# =============================================================================
# STATES
# =============================================================================

class ChatState(str, Enum):
    NO_DISPUTE = "no_dispute"
    BUREAU_ASKED = "bureau_asked"
    ACCOUNT_ASKED = "account_asked"
    ERROR_TYPE_ASKED = "error_type_asked"
    EXPLANATION_ASKED = "explanation_asked"
    EXPLANATION_RECEIVED = "explanation_received"
    LETTER_GENERATED = "letter_generated"


class ConversationFlow(str, Enum):
    MANUAL = "manual"
    AUTOMATIC = "automatic"


IDLE_STATES = (ChatState.NO_DISPUTE, ChatState.LETTER_GENERATED)

BUREAU_PROMPT = "Which credit bureau is reporting the error: Experian, Equifax or TransUnion?"
ACCOUNT_PROMPT = "Which account is this about? Please give me the creditor or account name."
ERROR_TYPE_PROMPT = (
    "What kind of error is it? For example: incorrect balance, late payment, wrong account "
    "status, wrong dates or incorrect personal information."
)
EXPLANATION_PROMPT = (
    "Please explain in your own words what is wrong and what the correct information should be."
)

# Slot each state is waiting for, the state that follows, and the question for it
SLOT_CONFIG: Dict[ChatState, Dict[str, object]] = {
    ChatState.BUREAU_ASKED: {
        "slot": "bureau",
        "prompt": BUREAU_PROMPT,
        "next": ChatState.ACCOUNT_ASKED,
    },
    ChatState.ACCOUNT_ASKED: {
        "slot": "account_name",
        "prompt": ACCOUNT_PROMPT,
        "next": ChatState.ERROR_TYPE_ASKED,
    },
    ChatState.ERROR_TYPE_ASKED: {
        "slot": "error_type",
        "prompt": ERROR_TYPE_PROMPT,
        "next": ChatState.EXPLANATION_ASKED,
    },
    ChatState.EXPLANATION_ASKED: {
        "slot": "explanation",
        "prompt": EXPLANATION_PROMPT,
        "next": ChatState.EXPLANATION_RECEIVED,
    },
}

LETTER_INTENT_KEYWORDS = ("generate", "dispute", "letter", "yes", "create", "write")
SUMMARY_INTENT_KEYWORDS = ("issue", "problem", "discrepanc", "found", "show", "list", "summary")
MANUAL_INTENT_KEYWORDS = ("manual", "myself", "different account")


def _contains_any(text: str, keywords: Sequence[str]) -> bool:
    lowered = text.lower()
    return any(keyword in lowered for keyword in keywords)


def agent_message(content: str, **kwargs) -> ConversationMessage:
    return ConversationMessage(sender=Sender.AGENT, content=content, **kwargs)


def _mentions(text: str, name: str) -> bool:
    """Whole-word, case-insensitive match, so FORD does not match inside 'afford'."""
    name = name.strip()
    if not name:
        return False
    pattern = r"(?<!\w)" + re.escape(name) + r"(?!\w)"
    return re.search(pattern, text, re.IGNORECASE) is not None


def select_target_dispute(
    disputes: Sequence[RecommendedDispute],
    text: str,
) -> Optional[RecommendedDispute]:
    """
    Dispute a letter request refers to.

    Mentioned account name first, then mentioned bureau, then the highest
    severity. A mentioned bureau readdresses an "All Bureaus" dispute.
    """
    if not disputes:
        return None

    for dispute in disputes:
        if dispute.account_name and _mentions(text, dispute.account_name):
            return dispute

    top = min(disputes, key=lambda d: d.severity_rank)

    bureau = parse_bureau(text)
    if bureau is not None:
        for dispute in disputes:
            if parse_bureau(dispute.bureau) == bureau:
                return dispute
        if top.bureau == ALL_BUREAUS:
            return replace(top, bureau=bureau.value)

    return top


def summarize_disputes(disputes: Sequence[RecommendedDispute]) -> str:
    if not disputes:
        return "I didn't find anything to dispute yet. Upload a credit report to get started."
    lines = [f"I found {len(disputes)} item(s) worth disputing:"]
    for index, dispute in enumerate(disputes, start=1):
        lines.append(
            f"{index}. {dispute.account_name} ({dispute.bureau}): {dispute.reason.value}, "
            f"{dispute.severity.value} impact"
        )
    lines.append("Say \"generate\" and I'll write a letter for the most important one, "
                 "or name an account or bureau.")
    return "\n".join(lines)


# =============================================================================
# CONVERSATION
# =============================================================================

class DisputeConversation:
    """
    Chat state for one session.

    Usage:
        conversation = DisputeConversation(engine)
        replies = conversation.handle_message(session, "generate a letter for Chase")
    """

    def __init__(
        self,
        engine: Optional[LetterTemplateEngine] = None,
        letter_sink: Optional[Callable[[DisputeLetter], bool]] = None,
    ):
        self.engine = engine or LetterTemplateEngine()
        self.letter_sink = letter_sink
        self.state = ChatState.NO_DISPUTE
        self.flow: Optional[ConversationFlow] = None
        self.draft = ManualDispute()

    def handle_message(self, session: "DisputeSession", text: str) -> List[ConversationMessage]:
        """Record the user's message, advance the machine, return the agent's replies."""
        session.messages.append(ConversationMessage(sender=Sender.USER, content=text))
        replies = self._respond(session, text or "")
        session.messages.extend(replies)
        return replies

    def _respond(self, session: "DisputeSession", text: str) -> List[ConversationMessage]:
        if self.state in IDLE_STATES:
            wants_manual = _contains_any(text, MANUAL_INTENT_KEYWORDS)
            if session.disputes and not wants_manual:
                if _contains_any(text, LETTER_INTENT_KEYWORDS) or parse_bureau(text):
                    return self._generate_automatic(session, text)
                if _contains_any(text, SUMMARY_INTENT_KEYWORDS):
                    return [agent_message(
                        summarize_disputes(session.disputes),
                        discrepancies=list(session.disputes),
                    )]
            return self._start_manual()

        return self._fill_slot(session, text)

    # -------------------------------------------------------------------------
    # Manual flow
    # -------------------------------------------------------------------------

    def _start_manual(self) -> List[ConversationMessage]:
        self.flow = ConversationFlow.MANUAL
        self.draft = ManualDispute()
        self.state = ChatState.BUREAU_ASKED
        return [agent_message(
            "Let's put together a dispute letter. " + BUREAU_PROMPT
        )]

    def _fill_slot(self, session: "DisputeSession", text: str) -> List[ConversationMessage]:
        config = SLOT_CONFIG[self.state]
        value = text.strip()
        if not value:
            return [agent_message(str(config["prompt"]))]

        replies: List[ConversationMessage] = []
        slot = config["slot"]

        if slot == "bureau":
            bureau = parse_bureau(value)
            if bureau is None:
                replies.append(agent_message(
                    f"I don't have a mailing address for \"{value}\", so I'll leave a placeholder "
                    f"for you to fill in."
                ))
            self.draft.bureau = bureau.value if bureau else value
        elif slot == "account_name":
            self.draft.account_name = value
            self.draft.account_number = self._lookup_account_number(session, value)
        elif slot == "error_type":
            self.draft.error_type = value
        else:
            self.draft.explanation = value

        self.state = config["next"]
        if self.state == ChatState.EXPLANATION_RECEIVED:
            return replies + self._generate_manual(session)

        replies.append(agent_message(str(SLOT_CONFIG[self.state]["prompt"])))
        return replies

    def _lookup_account_number(self, session: "DisputeSession", account_name: str) -> Optional[str]:
        if session.report is None:
            return None
        key = normalize_account_key(account_name)
        for account in session.report.accounts:
            if account.account_name and normalize_account_key(account.account_name) == key:
                return account.account_number
        return None

    def _generate_manual(self, session: "DisputeSession") -> List[ConversationMessage]:
        try:
            letter = self.engine.build_manual_letter(self.draft, session.user_info)
        except GenerationError as e:
            logger.error(f"Manual letter generation failed: {e}")
            self.state = ChatState.NO_DISPUTE
            return [agent_message(GENERATION_FAILED_MESSAGE)]
        return self._deliver(session, letter)

    # -------------------------------------------------------------------------
    # Automatic flow
    # -------------------------------------------------------------------------

    def _generate_automatic(self, session: "DisputeSession", text: str) -> List[ConversationMessage]:
        self.flow = ConversationFlow.AUTOMATIC
        target = select_target_dispute(session.disputes, text)
        try:
            letter = self.engine.build_dispute_letter(target, session.user_info)
        except GenerationError as e:
            logger.error(f"Automatic letter generation failed for {target.account_name}: {e}")
            return [agent_message(GENERATION_FAILED_MESSAGE)]
        return self._deliver(session, letter, target)

    # -------------------------------------------------------------------------
    # Delivery
    # -------------------------------------------------------------------------

    def _deliver(
        self,
        session: "DisputeSession",
        letter: DisputeLetter,
        dispute: Optional[RecommendedDispute] = None,
    ) -> List[ConversationMessage]:
        session.letters.append(letter)
        if self.letter_sink is not None and not self.letter_sink(letter):
            logger.warning(f"Letter {letter.letter_id} was not saved; it is still available in this session")
        self.state = ChatState.LETTER_GENERATED

        intro = (
            f"Here is your dispute letter to {letter.bureau} for {letter.account_name}"
            f"{f' ({letter.error_type})' if letter.error_type else ''}."
        )
        if letter.simplified:
            intro += " I used a simplified format, so please review it carefully."
        if "[" in letter.content:
            intro += " Replace the bracketed placeholders with your details before sending."
        return [agent_message(
            f"{intro}\n\n{letter.content}",
            discrepancies=[dispute] if dispute else None,
            letter_id=letter.letter_id,
        )]


def narrate_analysis(
    disputes: Sequence[RecommendedDispute],
    notices: Sequence[str],
) -> ConversationMessage:
    """Agent message posted after a report upload has been analysed."""
    parts = list(notices)
    parts.append(summarize_disputes(disputes))
    return agent_message("\n\n".join(parts), discrepancies=list(disputes))
