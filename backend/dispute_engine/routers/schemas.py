"""Dispute Engine - Shared request/response models"""
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel

from ..models.ssot import DisputeLetter, UserInfo


class UserInfoModel(BaseModel):
    name: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zip_code: Optional[str] = None

    def to_user_info(self) -> UserInfo:
        return UserInfo(
            name=self.name,
            address=self.address,
            city=self.city,
            state=self.state,
            zip_code=self.zip_code,
        )


class LetterResponse(BaseModel):
    letter_id: str
    bureau: str
    account_name: str
    account_number: Optional[str] = None
    error_type: Optional[str] = None
    explanation: Optional[str] = None
    status: str
    simplified: bool
    laws: List[str]
    content: str
    created_at: datetime
    saved: bool = False

    @classmethod
    def from_letter(cls, letter: DisputeLetter, saved: bool = False) -> "LetterResponse":
        return cls(
            letter_id=letter.letter_id,
            bureau=letter.bureau,
            account_name=letter.account_name,
            account_number=letter.account_number,
            error_type=letter.error_type,
            explanation=letter.explanation,
            status=letter.status.value,
            simplified=letter.simplified,
            laws=list(letter.laws),
            content=letter.content,
            created_at=letter.created_at,
            saved=saved,
        )
