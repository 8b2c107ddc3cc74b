"""
Dispute Engine - Reports API Router

Upload a credit report into a session and read back the analysis.
"""
from __future__ import annotations
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile, status
from pydantic import BaseModel

from ..dependencies import get_session_store, get_user_id, load_session
from ..exceptions import (
    FileTooLargeError, FileValidationError, SessionBusyError, UnsupportedFormatError,
)
from ..services.analysis import analyze_into_session
from ..services.parsing import validate_upload
from ..services.session import DisputeSession, SessionStore
from .serialization import to_jsonable

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/reports", tags=["reports"])


# =============================================================================
# RESPONSE MODELS
# =============================================================================

class ReportAnalysisResponse(BaseModel):
    session_id: str
    report_id: str
    source_file: Optional[str] = None
    parse_warning: Optional[str] = None
    notices: List[str]
    bureaus: List[str]
    personal_info: dict
    accounts: List[dict]
    disputes: List[dict]
    analysis_results: Optional[dict] = None


def _analysis_response(session: DisputeSession) -> ReportAnalysisResponse:
    report = session.report
    return ReportAnalysisResponse(
        session_id=session.session_id,
        report_id=report.report_id,
        source_file=report.source_filename,
        parse_warning=report.parse_warning,
        notices=list(session.notices),
        bureaus=[bureau.value for bureau in report.bureaus.present()],
        personal_info=to_jsonable(report.personal_info),
        accounts=to_jsonable(report.accounts),
        disputes=to_jsonable(session.disputes),
        analysis_results=to_jsonable(report.analysis_results) if report.analysis_results else None,
    )


# =============================================================================
# API ENDPOINTS
# =============================================================================

@router.post("/upload", response_model=ReportAnalysisResponse)
async def upload_report(
    file: UploadFile = File(...),
    session_id: Optional[str] = Form(default=None),
    user_id: Optional[str] = Depends(get_user_id),
    store: SessionStore = Depends(get_session_store),
):
    """
    Upload a PDF, HTML or text report and analyse it.

    Creates a session when none is given. Reports that cannot be read still
    return 200 with a parsing-issue notice.
    """
    content = await file.read()
    try:
        validate_upload(file.filename, content, file.content_type)
    except FileTooLargeError as e:
        raise HTTPException(status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE, detail=str(e))
    except UnsupportedFormatError as e:
        raise HTTPException(status_code=status.HTTP_415_UNSUPPORTED_MEDIA_TYPE, detail=str(e))
    except FileValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    session = load_session(session_id, store) if session_id else store.create(user_id)

    try:
        analyze_into_session(store, session, content, file.filename, file.content_type)
    except SessionBusyError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))

    return _analysis_response(session)


@router.get("/{session_id}", response_model=ReportAnalysisResponse)
async def get_report(session_id: str, store: SessionStore = Depends(get_session_store)):
    session = load_session(session_id, store)
    if session.report is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="No report uploaded for this session")
    return _analysis_response(session)
