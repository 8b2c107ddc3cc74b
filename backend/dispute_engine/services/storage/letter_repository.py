"""
Dispute Engine - Letter Repository

Durable storage for generated letters. Failures are logged and reported as
False / [] / None so a storage problem never keeps a letter from the user.
"""
from __future__ import annotations
import logging
from typing import List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ...exceptions import InvalidStatusTransition, PersistenceError
from ...models.db_models import DisputeLetterDB
from ...models.ssot import DisputeLetter, LetterStatus

logger = logging.getLogger(__name__)


def _fit(column: str, value: Optional[str]) -> Optional[str]:
    """Clip free text to the declared length of a dispute_letters column."""
    if value is None:
        return None
    return value[:DisputeLetterDB.__table__.c[column].type.length]


def letter_from_row(row: DisputeLetterDB) -> DisputeLetter:
    return DisputeLetter(
        letter_id=row.id,
        bureau=row.bureau,
        account_name=row.account_name,
        account_number=row.account_number,
        error_type=row.error_type,
        explanation=row.explanation,
        content=row.content,
        laws=list(row.laws or []),
        status=LetterStatus(row.status),
        simplified=bool(row.simplified),
        created_at=row.created_at,
    )


class LetterRepository:
    """Reads and writes DisputeLetter rows for one database session."""

    def __init__(self, db: Session):
        self.db = db

    def _commit(self) -> None:
        try:
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            raise PersistenceError(str(e)) from e

    def save_dispute_letter(self, user_id: str, letter: DisputeLetter) -> bool:
        """Insert or overwrite a letter. Last writer wins."""
        try:
            row = self.db.get(DisputeLetterDB, letter.letter_id)
            if row is None:
                row = DisputeLetterDB(id=letter.letter_id, user_id=user_id, created_at=letter.created_at)
                self.db.add(row)
            row.bureau = _fit("bureau", letter.bureau)
            row.account_name = _fit("account_name", letter.account_name)
            row.account_number = _fit("account_number", letter.account_number)
            row.error_type = _fit("error_type", letter.error_type)
            row.explanation = letter.explanation
            row.content = letter.content
            row.laws = list(letter.laws)
            row.status = letter.status.value
            row.simplified = letter.simplified
            self._commit()
        except (PersistenceError, SQLAlchemyError) as e:
            logger.error(f"Failed to save letter {letter.letter_id} for user {user_id}: {e}")
            return False
        logger.info(f"Saved letter {letter.letter_id} for user {user_id}")
        return True

    def get_user_dispute_letters(self, user_id: str) -> List[DisputeLetter]:
        """All letters of a user, newest first."""
        try:
            rows = (
                self.db.query(DisputeLetterDB)
                .filter(DisputeLetterDB.user_id == user_id)
                .order_by(DisputeLetterDB.created_at.desc())
                .all()
            )
        except SQLAlchemyError as e:
            logger.error(f"Failed to load letters for user {user_id}: {e}")
            return []
        return [letter_from_row(row) for row in rows]

    def get_letter(self, user_id: str, letter_id: str) -> Optional[DisputeLetter]:
        try:
            row = (
                self.db.query(DisputeLetterDB)
                .filter(DisputeLetterDB.id == letter_id, DisputeLetterDB.user_id == user_id)
                .first()
            )
        except SQLAlchemyError as e:
            logger.error(f"Failed to load letter {letter_id}: {e}")
            return None
        return letter_from_row(row) if row else None

    def update_letter_status(self, user_id: str, letter_id: str, status: LetterStatus) -> Optional[DisputeLetter]:
        """
        Move a letter to a new status.

        Returns None when the letter does not exist or could not be saved.
        Raises InvalidStatusTransition for transitions the lifecycle forbids.
        """
        letter = self.get_letter(user_id, letter_id)
        if letter is None:
            return None
        if not letter.can_transition_to(status):
            raise InvalidStatusTransition(
                f"Cannot move letter from {letter.status.value} to {status.value}"
            )
        letter.status = status
        return letter if self.save_dispute_letter(user_id, letter) else None
