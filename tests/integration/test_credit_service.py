"""Tests for the credit check cache and cached-or-compute lookups"""

import pytest
from datetime import datetime, timedelta
from unittest.mock import AsyncMock
from sqlalchemy.orm import Session
from lendada_gateway.domain.exceptions import JobTimeoutError, ScoringJobFailedError
from lendada_gateway.domain.models import CreditScoreRequest, JobStatus, ScoringJob
from lendada_gateway.domain.scoring import calculate_credit_score
from lendada_gateway.infrastructure.database.models import CreditCheck, User
from lendada_gateway.services.credit import CreditCheckCache, CreditService, persist_credit_check
from lendada_gateway.services.jobs import ScoringJobManager

BORROWER = "addr_test1qborrower"
NOW = datetime(2024, 6, 1, 12, 0, 0)


def test_cache_window_is_strict(db: Session, make_credit_check):
    """Test a check exactly 24h old is stale and one a second younger is fresh"""
    cache = CreditCheckCache(db, freshness_hours=24, clock=lambda: NOW)
    make_credit_check(created_at=NOW - timedelta(hours=24))

    assert cache.get_cached(BORROWER) is None

    fresh = make_credit_check(created_at=NOW - timedelta(hours=24) + timedelta(seconds=1))
    assert cache.get_cached(BORROWER).id == fresh.id


def test_cache_returns_newest_check(db: Session, make_credit_check):
    cache = CreditCheckCache(db, freshness_hours=24, clock=lambda: NOW)
    make_credit_check(max_loan_ada=100, created_at=NOW - timedelta(hours=5))
    newest = make_credit_check(max_loan_ada=900, created_at=NOW - timedelta(hours=1))

    assert cache.get_cached(BORROWER).id == newest.id
    assert cache.get_cached("addr_test1qother") is None


def test_store_appends_and_updates_user(db: Session, borrower: User, good_metrics):
    cache = CreditCheckCache(db, freshness_hours=24, clock=lambda: NOW)
    result = calculate_credit_score(good_metrics, 500)

    cache.store(BORROWER, result, "job_abc")
    cache.store(BORROWER, result, "job_def")
    db.commit()

    checks = db.query(CreditCheck).filter(CreditCheck.wallet_address == BORROWER).all()
    assert len(checks) == 2
    assert checks[0].max_loan_amount == 1_000_000_000
    assert checks[0].risk_level == "medium"
    assert checks[0].created_at == NOW
    db.refresh(borrower)
    assert borrower.credit_score == 710


async def test_persist_hook_uses_own_session(db: Session, session_factory, good_metrics):
    hook = persist_credit_check(session_factory)
    result = calculate_credit_score(good_metrics, 500)

    await hook("job_hook", CreditScoreRequest(BORROWER, 500, 30), result)

    check = db.query(CreditCheck).filter(CreditCheck.job_id == "job_hook").one()
    assert check.score == 710


async def test_cached_score_skips_scoring(db: Session, collector: AsyncMock, make_credit_check):
    make_credit_check(max_loan_ada=1000, interest_rate=800)
    manager = ScoringJobManager(collector)
    service = CreditService(db, manager, poll_interval=0)

    lookup = await service.get_credit_score(BORROWER)

    assert lookup.cached is True
    assert lookup.score == 700
    assert lookup.max_loan_amount == 1000
    assert lookup.interest_rate == 800
    assert lookup.job_id == "job_seed"
    collector.get_onchain_metrics.assert_not_awaited()


async def test_uncached_score_runs_job_and_persists(db: Session, session_factory, collector: AsyncMock):
    manager = ScoringJobManager(collector, on_complete=persist_credit_check(session_factory))
    service = CreditService(db, manager, poll_interval=0)

    lookup = await service.get_credit_score(BORROWER, loan_amount=2000)

    assert lookup.cached is False
    assert lookup.score == 710
    assert lookup.max_loan_amount == 1000
    assert "exceeds maximum approved amount" in lookup.recommendation
    assert len(lookup.factors) == 8

    # Second lookup is served from the persisted check
    again = await service.get_credit_score(BORROWER)
    assert again.cached is True
    assert again.job_id == lookup.job_id
    collector.get_onchain_metrics.assert_awaited_once()


async def test_poll_reports_failed_job(db: Session):
    manager = AsyncMock(spec=ScoringJobManager)
    manager.get_status = lambda job_id: ScoringJob(job_id=job_id, status=JobStatus.FAILED, error="boom")
    service = CreditService(db, manager, poll_interval=0, max_attempts=3)

    with pytest.raises(ScoringJobFailedError, match="boom"):
        await service.poll_job("job_x")


async def test_poll_times_out_after_attempt_budget(db: Session):
    sleep = AsyncMock()
    manager = AsyncMock(spec=ScoringJobManager)
    manager.get_status = lambda job_id: ScoringJob(job_id=job_id, status=JobStatus.PROCESSING)
    service = CreditService(db, manager, poll_interval=1.0, max_attempts=4, sleep=sleep)

    with pytest.raises(JobTimeoutError, match="Credit scoring timeout"):
        await service.poll_job("job_x")

    assert sleep.await_count == 4
