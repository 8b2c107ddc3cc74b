"""
Dispute Engine - Letters API Router

Generates dispute letters from analysed disputes or manual input, and
manages persisted letters for the calling user (X-User-Id header).
"""
from __future__ import annotations
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel
from sqlalchemy.orm import Session

from ..database import get_db
from ..dependencies import get_session_store, get_user_id, load_session, require_user_id
from ..exceptions import GenerationError, InvalidStatusTransition
from ..models.ssot import DisputeLetter, LetterStatus, ManualDispute, RecommendedDispute
from ..services.letter_generator import GENERATION_FAILED_MESSAGE, LetterTemplateEngine
from ..services.session import DisputeSession, SessionStore
from ..services.storage import LetterRepository
from .schemas import LetterResponse, UserInfoModel

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/letters", tags=["letters"])


# =============================================================================
# REQUEST MODELS
# =============================================================================

class GenerateLetterRequest(BaseModel):
    session_id: str
    dispute_id: Optional[str] = None
    user_info: Optional[UserInfoModel] = None
    include_breach_note: bool = False


class ManualLetterRequest(BaseModel):
    bureau: str
    account_name: str
    error_type: str
    account_number: Optional[str] = None
    explanation: Optional[str] = None
    session_id: Optional[str] = None
    user_info: Optional[UserInfoModel] = None
    include_breach_note: bool = False


class BatchLetterRequest(BaseModel):
    session_id: str
    user_info: Optional[UserInfoModel] = None
    include_breach_note: bool = False


class StatusUpdateRequest(BaseModel):
    status: LetterStatus


# =============================================================================
# HELPERS
# =============================================================================

def _pick_dispute(session: DisputeSession, dispute_id: Optional[str]) -> RecommendedDispute:
    if not session.disputes:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="No analysed disputes in this session")
    if dispute_id is None:
        return session.disputes[0]
    for dispute in session.disputes:
        if dispute.dispute_id == dispute_id:
            return dispute
    raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Dispute {dispute_id} not found")


def _user_info(session: Optional[DisputeSession], override: Optional[UserInfoModel]):
    if override is not None:
        return override.to_user_info()
    return session.user_info if session is not None else None


def _store_letter(letter: DisputeLetter, user_id: Optional[str], db: Session) -> bool:
    """Persist when we know the user. A failed save still returns the letter."""
    if not user_id:
        return False
    return LetterRepository(db).save_dispute_letter(user_id, letter)


# =============================================================================
# API ENDPOINTS
# =============================================================================

@router.post("/generate", response_model=LetterResponse)
async def generate_letter(
    request: GenerateLetterRequest,
    user_id: Optional[str] = Depends(get_user_id),
    store: SessionStore = Depends(get_session_store),
    db: Session = Depends(get_db),
):
    """Letter for one analysed dispute (the highest-severity one by default)."""
    session = load_session(request.session_id, store)
    dispute = _pick_dispute(session, request.dispute_id)
    engine = LetterTemplateEngine(include_breach_note=request.include_breach_note)

    try:
        letter = engine.build_dispute_letter(dispute, _user_info(session, request.user_info))
    except GenerationError:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=GENERATION_FAILED_MESSAGE)

    session.letters.append(letter)
    saved = _store_letter(letter, user_id or session.user_id, db)
    return LetterResponse.from_letter(letter, saved=saved)


@router.post("/manual", response_model=LetterResponse)
async def generate_manual_letter(
    request: ManualLetterRequest,
    user_id: Optional[str] = Depends(get_user_id),
    store: SessionStore = Depends(get_session_store),
    db: Session = Depends(get_db),
):
    """Letter from fields the user typed in."""
    session = load_session(request.session_id, store) if request.session_id else None
    manual = ManualDispute(
        bureau=request.bureau,
        account_name=request.account_name,
        account_number=request.account_number,
        error_type=request.error_type,
        explanation=request.explanation,
    )
    engine = LetterTemplateEngine(include_breach_note=request.include_breach_note)

    try:
        letter = engine.build_manual_letter(manual, _user_info(session, request.user_info))
    except GenerationError:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=GENERATION_FAILED_MESSAGE)

    if session is not None:
        session.letters.append(letter)
    saved = _store_letter(letter, user_id or (session.user_id if session else None), db)
    return LetterResponse.from_letter(letter, saved=saved)


@router.post("/batch", response_model=List[LetterResponse])
async def generate_batch(
    request: BatchLetterRequest,
    user_id: Optional[str] = Depends(get_user_id),
    store: SessionStore = Depends(get_session_store),
    db: Session = Depends(get_db),
):
    """Letters for the top issues of the session's report."""
    session = load_session(request.session_id, store)
    if not session.disputes:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="No analysed disputes in this session")

    engine = LetterTemplateEngine(include_breach_note=request.include_breach_note)
    letters = engine.generate_letters(session.disputes, _user_info(session, request.user_info))
    session.letters.extend(letters)

    owner = user_id or session.user_id
    return [LetterResponse.from_letter(letter, saved=_store_letter(letter, owner, db)) for letter in letters]


@router.get("", response_model=List[LetterResponse])
async def list_letters(
    user_id: str = Depends(require_user_id),
    db: Session = Depends(get_db),
):
    """Saved letters of the calling user, newest first."""
    letters = LetterRepository(db).get_user_dispute_letters(user_id)
    return [LetterResponse.from_letter(letter, saved=True) for letter in letters]


@router.patch("/{letter_id}/status", response_model=LetterResponse)
async def update_letter_status(
    letter_id: str,
    request: StatusUpdateRequest,
    user_id: str = Depends(require_user_id),
    db: Session = Depends(get_db),
):
    """Move a saved letter along draft -> ready -> sent."""
    repository = LetterRepository(db)
    if repository.get_letter(user_id, letter_id) is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Letter {letter_id} not found")

    try:
        letter = repository.update_letter_status(user_id, letter_id, request.status)
    except InvalidStatusTransition as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))

    if letter is None:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Letter status could not be saved")
    return LetterResponse.from_letter(letter, saved=True)
