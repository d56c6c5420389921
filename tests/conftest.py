"""Pytest fixtures for testing"""

import itertools
import pytest
from datetime import datetime, timedelta
from typing import Generator
from unittest.mock import AsyncMock
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool
from lendada_gateway.api.dependencies import get_ledger_client
from lendada_gateway.api.main import create_app
from lendada_gateway.domain.models import OnChainMetrics
from lendada_gateway.infrastructure.database.models import Base, CreditCheck, User
from lendada_gateway.infrastructure.database.session import get_db
from lendada_gateway.services.loans import LoanLocks, LoanService
from lendada_gateway.utils.date_utils import utcnow

BORROWER = "addr_test1qborrower"

# Test database: one shared in-memory connection
engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db() -> Generator[Session, None, None]:
    """Create test database and session"""
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def ledger() -> AsyncMock:
    """Ledger submitter double returning a fresh hash per operation"""
    counter = itertools.count(1)
    mock = AsyncMock()
    mock.submit.side_effect = lambda operation: f"tx{next(counter):04d}"
    return mock


@pytest.fixture
def good_metrics() -> OnChainMetrics:
    """Established wallet scoring in the medium tier (710)"""
    return OnChainMetrics(
        total_transactions=60,
        total_value_transacted=1500.0,
        account_age_days=200,
        staking_activity=True,
        nft_count=0,
        defi_interactions=0,
        average_balance=2000.0,
        consistent_activity=True,
    )


@pytest.fixture
def collector(good_metrics: OnChainMetrics) -> AsyncMock:
    mock = AsyncMock()
    mock.get_onchain_metrics.return_value = good_metrics
    return mock


@pytest.fixture
def borrower(db: Session) -> User:
    """Account holding an identity credential"""
    user = User(
        wallet_address=BORROWER,
        identity_nft="policy123.LendADA_ID_1700000000000",
        commitment_hash="ab" * 32,
        kyc_level=1,
        reputation_points=0,
    )
    db.add(user)
    db.commit()
    return user


@pytest.fixture
def session_factory() -> sessionmaker:
    return TestingSessionLocal


@pytest.fixture
def make_credit_check(db: Session):
    """Factory for stored credit checks; one hour old by default"""

    def _make(
        address: str = BORROWER,
        max_loan_ada: int = 1000,
        interest_rate: int = 800,
        created_at: datetime | None = None,
    ) -> CreditCheck:
        check = CreditCheck(
            wallet_address=address,
            score=700,
            risk_level="medium",
            max_loan_amount=max_loan_ada * 1_000_000,
            interest_rate=interest_rate,
            job_id="job_seed",
            created_at=created_at or utcnow() - timedelta(hours=1),
        )
        db.add(check)
        db.commit()
        return check

    return _make


@pytest.fixture
def credit_check(borrower: User, make_credit_check) -> CreditCheck:
    return make_credit_check()


@pytest.fixture
def loan_service(db: Session, ledger: AsyncMock) -> LoanService:
    return LoanService(db, ledger, LoanLocks())


@pytest.fixture
def client(db: Session, ledger: AsyncMock, collector: AsyncMock) -> Generator[TestClient, None, None]:
    """Create FastAPI test client with test database and ledger double"""
    app = create_app(session_factory=TestingSessionLocal, collector=collector)

    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_ledger_client] = lambda: ledger
    with TestClient(app) as test_client:
        yield test_client
