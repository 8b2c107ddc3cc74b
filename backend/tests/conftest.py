"""Shared fixtures for dispute engine tests"""
from datetime import date
from typing import Generator

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from dispute_engine.database import Base, get_db
from dispute_engine.dependencies import get_session_store
from dispute_engine.models import db_models  # noqa: F401  registers tables
from dispute_engine.services.session import SessionStore


TODAY = date(2026, 10, 18)

SAMPLE_REPORT_TEXT = """CREDIT REPORT
Experian

PERSONAL INFORMATION
Name: John Q Consumer
Address: 123 Main St, Springfield, IL 62704
Previous Address: 45 Oak Ave, Chicago, IL 60601

Creditor: CHASE CARD
Account Number: 4147202012345678
Account Type: Credit Card
Balance: $4,500.00
Credit Limit: $5,000.00
Status: Late 30 days
Date Opened: 03/15/2021
Date Reported: 09/01/2026

Creditor: CAPITAL ONE
Account Number: 5178059912349876
Account Type: Credit Card
Balance: $250.00
Credit Limit: $1,000.00
Status: Open
Remarks: Account charged off
Date Opened: 01/10/2012

Creditor: BANK OF AMERICA
Account #: 1111222233334444
Type: Auto Loan
Balance: $12,000
Status: Current

Creditor: BANK OF AMERICA
Account #: 5555666677778888
Type: Auto Loan
Balance: $11,500
Status: Current
"""


@pytest.fixture
def sample_report_text() -> str:
    return SAMPLE_REPORT_TEXT


@pytest.fixture
def today() -> date:
    return TODAY


@pytest.fixture
def db_engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db(db_engine) -> Generator[Session, None, None]:
    """Create test database and session"""
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=db_engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def session_store() -> SessionStore:
    return SessionStore()


@pytest.fixture
def client(db: Session, session_store: SessionStore) -> TestClient:
    """FastAPI test client with an in-memory database and a fresh session store"""
    from dispute_engine.main import app

    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_session_store] = lambda: session_store
    yield TestClient(app)
    app.dependency_overrides.clear()
