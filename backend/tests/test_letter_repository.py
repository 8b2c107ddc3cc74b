"""
Letter Repository Tests

Verifies:
1. Letters are saved per user and listed newest first
2. Status lifecycle draft -> ready -> sent
3. Storage failures are reported, not raised
"""
from datetime import datetime

import pytest
from sqlalchemy.exc import SQLAlchemyError

from dispute_engine.exceptions import InvalidStatusTransition
from dispute_engine.models.ssot import DisputeLetter, LetterStatus
from dispute_engine.services.storage import LetterRepository


def _letter(account_name="Chase Card", created_at=None, status=LetterStatus.DRAFT):
    return DisputeLetter(
        bureau="Experian",
        account_name=account_name,
        content=f"Letter about {account_name}",
        account_number="4147202012345678",
        error_type="Late Payment",
        laws=["FCRA § 611(a) (15 U.S.C. § 1681i(a))"],
        status=status,
        created_at=created_at or datetime(2026, 10, 1, 12, 0),
    )


@pytest.fixture
def repository(db):
    return LetterRepository(db)


class TestSaveAndList:

    def test_round_trip_keeps_fields(self, repository):
        letter = _letter()
        assert repository.save_dispute_letter("user-1", letter)

        stored = repository.get_letter("user-1", letter.letter_id)
        assert stored.account_name == "Chase Card"
        assert stored.account_number == "4147202012345678"
        assert stored.laws == ["FCRA § 611(a) (15 U.S.C. § 1681i(a))"]
        assert stored.status == LetterStatus.DRAFT
        assert stored.created_at == letter.created_at

    def test_lists_newest_first(self, repository):
        older = _letter("Chase Card", created_at=datetime(2026, 1, 1))
        newer = _letter("Discover", created_at=datetime(2026, 2, 1))
        repository.save_dispute_letter("user-1", older)
        repository.save_dispute_letter("user-1", newer)

        names = [letter.account_name for letter in repository.get_user_dispute_letters("user-1")]
        assert names == ["Discover", "Chase Card"]

    def test_letters_are_scoped_to_user(self, repository):
        letter = _letter()
        repository.save_dispute_letter("user-1", letter)

        assert repository.get_user_dispute_letters("user-2") == []
        assert repository.get_letter("user-2", letter.letter_id) is None

    def test_save_overwrites_existing_letter(self, repository):
        letter = _letter()
        repository.save_dispute_letter("user-1", letter)
        letter.content = "Edited letter"
        repository.save_dispute_letter("user-1", letter)

        letters = repository.get_user_dispute_letters("user-1")
        assert len(letters) == 1
        assert letters[0].content == "Edited letter"

    def test_long_free_text_bureau_is_clipped(self, repository):
        letter = _letter()
        letter.bureau = "My local credit reporting agency " * 10
        assert repository.save_dispute_letter("user-1", letter)

        stored = repository.get_letter("user-1", letter.letter_id)
        assert stored.bureau == letter.bureau[:255]
        assert len(stored.bureau) == 255

    def test_commit_failure_returns_false(self, repository, db, monkeypatch):
        def broken_commit():
            raise SQLAlchemyError("disk full")

        monkeypatch.setattr(db, "commit", broken_commit)
        assert repository.save_dispute_letter("user-1", _letter()) is False


class TestStatusLifecycle:

    def test_draft_to_ready_to_sent(self, repository):
        letter = _letter()
        repository.save_dispute_letter("user-1", letter)

        ready = repository.update_letter_status("user-1", letter.letter_id, LetterStatus.READY)
        assert ready.status == LetterStatus.READY
        sent = repository.update_letter_status("user-1", letter.letter_id, LetterStatus.SENT)
        assert sent.status == LetterStatus.SENT
        assert repository.get_letter("user-1", letter.letter_id).status == LetterStatus.SENT

    @pytest.mark.parametrize("start,target", [
        (LetterStatus.DRAFT, LetterStatus.SENT),
        (LetterStatus.READY, LetterStatus.DRAFT),
        (LetterStatus.SENT, LetterStatus.READY),
        (LetterStatus.SENT, LetterStatus.DRAFT),
    ])
    def test_invalid_transitions_raise(self, repository, start, target):
        letter = _letter(status=start)
        repository.save_dispute_letter("user-1", letter)

        with pytest.raises(InvalidStatusTransition):
            repository.update_letter_status("user-1", letter.letter_id, target)

    def test_unknown_letter_returns_none(self, repository):
        assert repository.update_letter_status("user-1", "missing", LetterStatus.READY) is None
