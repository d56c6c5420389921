"""Asynchronous scoring jobs with poll-based status"""

import asyncio
import dataclasses
import logging
import threading
import time
import uuid
from datetime import timedelta
from typing import Awaitable, Callable, Dict, Optional, Set
from lendada_gateway.config import settings
from lendada_gateway.domain.exceptions import NotFoundError, ValidationError
from lendada_gateway.domain.models import CreditScoreRequest, CreditScoreResult, JobStatus, ScoringJob
from lendada_gateway.domain.scoring import calculate_credit_score
from lendada_gateway.infrastructure.clients.blockfrost import OnChainMetricsCollector
from lendada_gateway.infrastructure.observability.logging import log_credit_score
from lendada_gateway.infrastructure.observability.metrics import record_credit_score, scoring_job_counter
from lendada_gateway.utils.date_utils import utcnow

logger = logging.getLogger(__name__)

CompletionHook = Callable[[str, CreditScoreRequest, CreditScoreResult], Awaitable[None]]


class JobStore:
    """Thread-safe job table; terminal jobs are evicted once older than the TTL"""

    def __init__(self, ttl_seconds: int | None = None, clock: Callable = utcnow):
        self.ttl = timedelta(seconds=ttl_seconds if ttl_seconds is not None else settings.job_ttl_seconds)
        self.clock = clock
        self._jobs: Dict[str, ScoringJob] = {}
        self._lock = threading.Lock()

    def create(self, job: ScoringJob) -> ScoringJob:
        with self._lock:
            self._jobs[job.job_id] = job
            return dataclasses.replace(job)

    def get(self, job_id: str) -> Optional[ScoringJob]:
        """Snapshot copy, safe to hand to pollers"""
        with self._lock:
            job = self._jobs.get(job_id)
            return dataclasses.replace(job) if job else None

    def update(self, job_id: str, **changes) -> ScoringJob:
        with self._lock:
            job = self._jobs[job_id]
            for name, value in changes.items():
                setattr(job, name, value)
            job.updated_at = self.clock()
            return dataclasses.replace(job)

    def sweep(self) -> int:
        """Drop finished jobs past their TTL, returning how many were removed"""
        cutoff = self.clock() - self.ttl
        with self._lock:
            expired = [
                job_id
                for job_id, job in self._jobs.items()
                if job.is_terminal and job.updated_at < cutoff
            ]
            for job_id in expired:
                del self._jobs[job_id]
        return len(expired)

    def __len__(self) -> int:
        with self._lock:
            return len(self._jobs)


def new_job_id() -> str:
    return f"job_{uuid.uuid4().hex}"


def validate_request(request: CreditScoreRequest) -> None:
    if not request.borrower_address or request.loan_amount is None or request.duration is None:
        raise ValidationError("Missing required fields: borrower_address, loan_amount, duration")
    if request.loan_amount <= 0 or request.duration <= 0:
        raise ValidationError("loan_amount and duration must be positive")


class ScoringJobManager:
    """
    Runs credit scoring off the request path.

    Job states: processing -> completed | failed. Progress moves 0 -> 25 (metrics
    requested) -> 75 (score computed) -> 100 (result stored). The optional completion
    hook runs between 75 and 100; if it raises, the job fails.
    """

    def __init__(
        self,
        collector: OnChainMetricsCollector,
        store: JobStore | None = None,
        on_complete: CompletionHook | None = None,
    ):
        self.collector = collector
        self.store = store if store is not None else JobStore()
        self.on_complete = on_complete
        self._tasks: Set[asyncio.Task] = set()

    def start_job(self, request: CreditScoreRequest) -> ScoringJob:
        """Validate, register the job and schedule it without waiting. Needs a running loop."""
        validate_request(request)
        self.store.sweep()

        job = self.store.create(ScoringJob(job_id=new_job_id(), status=JobStatus.PROCESSING, progress=0))

        task = asyncio.get_running_loop().create_task(self._process(job.job_id, request))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

        logger.info("Scoring job started", extra={"job_id": job.job_id, "address": request.borrower_address})
        return job

    def get_status(self, job_id: str) -> ScoringJob:
        job = self.store.get(job_id)
        if job is None:
            raise NotFoundError("Job not found")
        return job

    async def _process(self, job_id: str, request: CreditScoreRequest) -> None:
        start_time = time.time()
        try:
            self.store.update(job_id, progress=25)
            metrics = await self.collector.get_onchain_metrics(request.borrower_address)
            result = calculate_credit_score(metrics, request.loan_amount)
            self.store.update(job_id, progress=75)

            if self.on_complete is not None:
                await self.on_complete(job_id, request, result)

            self.store.update(job_id, status=JobStatus.COMPLETED, progress=100, result=result)

            record_credit_score(result.score, result.risk_level.value)
            duration_ms = (time.time() - start_time) * 1000
            log_credit_score(job_id, request.borrower_address, result.score, result.risk_level.value, duration_ms)

        except Exception as e:
            scoring_job_counter.labels(outcome="failed").inc()
            logger.exception(f"Scoring job failed: {e}", extra={"job_id": job_id})
            self.store.update(job_id, status=JobStatus.FAILED, error=str(e) or "Unknown error")

    async def wait_idle(self) -> None:
        """Wait for every in-flight job to settle"""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def shutdown(self) -> None:
        for task in list(self._tasks):
            task.cancel()
        await asyncio.gather(*list(self._tasks), return_exceptions=True)
