"""
Dispute Engine - SQLAlchemy ORM Models
"""
from datetime import datetime
from sqlalchemy import Column, String, Boolean, DateTime, Text, JSON

from ..database import Base


class DisputeLetterDB(Base):
    """Persisted dispute letters, owned by user id."""
    __tablename__ = "dispute_letters"

    id = Column(String(36), primary_key=True)  # UUID, same as DisputeLetter.letter_id
    user_id = Column(String(64), nullable=False, index=True)

    bureau = Column(String(255), nullable=False)
    account_name = Column(String(255), nullable=False)
    account_number = Column(String(64), nullable=True)
    error_type = Column(String(255), nullable=True)
    explanation = Column(Text, nullable=True)
    content = Column(Text, nullable=False)
    laws = Column(JSON)  # List of citation strings
    status = Column(String(20), default="draft")
    simplified = Column(Boolean, default=False)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
