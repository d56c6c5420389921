"""Credit check cache and the cached-or-compute credit score flow"""

import asyncio
import logging
import math
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Callable, List, Optional
from sqlalchemy.orm import Session, sessionmaker
from lendada_gateway.config import settings
from lendada_gateway.domain.exceptions import JobTimeoutError, ScoringJobFailedError
from lendada_gateway.domain.models import CreditFactor, CreditScoreRequest, CreditScoreResult, JobStatus
from lendada_gateway.infrastructure.database.models import CreditCheck
from lendada_gateway.infrastructure.database.repositories import CreditCheckRepository, UserRepository
from lendada_gateway.services.jobs import CompletionHook, ScoringJobManager
from lendada_gateway.utils.date_utils import utcnow
from lendada_gateway.utils.units import LOVELACE_PER_ADA, to_ada

logger = logging.getLogger(__name__)


class CreditCheckCache:
    """Serves the newest credit check inside the freshness window"""

    def __init__(self, db: Session, freshness_hours: int | None = None, clock: Callable[[], datetime] = utcnow):
        self.db = db
        self.window = timedelta(hours=freshness_hours or settings.credit_check_freshness_hours)
        self.clock = clock
        self.checks = CreditCheckRepository(db)

    def get_cached(self, wallet_address: str) -> Optional[CreditCheck]:
        """Newest check younger than the window (strictly), else None"""
        return self.checks.latest_since(wallet_address, self.clock() - self.window)

    def store(self, wallet_address: str, result: CreditScoreResult, job_id: Optional[str]) -> CreditCheck:
        """Append a new check; earlier checks are kept, never overwritten"""
        check = self.checks.create(
            wallet_address=wallet_address,
            score=result.score,
            risk_level=result.risk_level.value,
            max_loan_amount=math.floor(result.max_loan_amount * LOVELACE_PER_ADA),
            interest_rate=result.suggested_interest_rate,
            job_id=job_id,
            created_at=self.clock(),
        )
        UserRepository(self.db).set_credit_score(wallet_address, result.score)
        return check


def persist_credit_check(session_factory: sessionmaker) -> CompletionHook:
    """Completion hook that stores each finished job's result in its own session"""

    async def _store(job_id: str, request: CreditScoreRequest, result: CreditScoreResult) -> None:
        db = session_factory()
        try:
            CreditCheckCache(db).store(request.borrower_address, result, job_id)
            db.commit()
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()

    return _store


@dataclass
class CreditScoreLookup:
    """Credit score as served to clients, amounts in ADA"""

    score: int
    risk_level: str
    max_loan_amount: float
    interest_rate: int
    cached: bool
    created_at: Optional[datetime] = None
    job_id: Optional[str] = None
    recommendation: Optional[str] = None
    factors: List[CreditFactor] = field(default_factory=list)


class CreditService:
    """Returns a fresh cached score, or scores the address through a job and polls it"""

    def __init__(
        self,
        db: Session,
        job_manager: ScoringJobManager,
        poll_interval: float | None = None,
        max_attempts: int | None = None,
        sleep: Callable = asyncio.sleep,
    ):
        self.cache = CreditCheckCache(db)
        self.job_manager = job_manager
        self.poll_interval = poll_interval if poll_interval is not None else settings.job_poll_interval_seconds
        self.max_attempts = max_attempts or settings.job_max_poll_attempts
        self.sleep = sleep

    async def get_credit_score(
        self,
        wallet_address: str,
        loan_amount: float = 1000,
        duration: int = 30,
    ) -> CreditScoreLookup:
        cached = self.cache.get_cached(wallet_address)
        if cached is not None:
            return CreditScoreLookup(
                score=cached.score,
                risk_level=cached.risk_level,
                max_loan_amount=to_ada(cached.max_loan_amount),
                interest_rate=cached.interest_rate,
                cached=True,
                created_at=cached.created_at,
                job_id=cached.job_id,
            )

        job = self.job_manager.start_job(CreditScoreRequest(wallet_address, loan_amount, duration))
        result = await self.poll_job(job.job_id)
        return CreditScoreLookup(
            score=result.score,
            risk_level=result.risk_level.value,
            max_loan_amount=result.max_loan_amount,
            interest_rate=result.suggested_interest_rate,
            cached=False,
            job_id=job.job_id,
            recommendation=result.recommendation,
            factors=result.factors,
        )

    async def poll_job(self, job_id: str) -> CreditScoreResult:
        """
        Poll until the job is terminal.

        Raises:
            ScoringJobFailedError: job reached the failed state
            JobTimeoutError: attempt budget exhausted first
        """
        for _ in range(self.max_attempts):
            job = self.job_manager.get_status(job_id)
            if job.status is JobStatus.COMPLETED:
                return job.result
            if job.status is JobStatus.FAILED:
                raise ScoringJobFailedError(job.error or "Credit scoring failed")
            await self.sleep(self.poll_interval)

        logger.warning("Scoring job polling timed out", extra={"job_id": job_id})
        raise JobTimeoutError("Credit scoring timeout")
