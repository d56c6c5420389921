"""Dependency injection for FastAPI endpoints"""

from fastapi import Depends, Request
from sqlalchemy.orm import Session
from lendada_gateway.infrastructure.clients.ledger import LedgerClient
from lendada_gateway.infrastructure.database.session import get_db
from lendada_gateway.services.credit import CreditService
from lendada_gateway.services.identity import IdentityService, ReputationService
from lendada_gateway.services.jobs import ScoringJobManager
from lendada_gateway.services.loans import LoanLocks, LoanService


def get_ledger_client() -> LedgerClient:
    """Provide ledger submitter client instance"""
    return LedgerClient()


def get_job_manager(request: Request) -> ScoringJobManager:
    """Process-wide scoring job manager"""
    return request.app.state.job_manager


def get_loan_locks(request: Request) -> LoanLocks:
    return request.app.state.loan_locks


def get_loan_service(
    db: Session = Depends(get_db),
    ledger: LedgerClient = Depends(get_ledger_client),
    locks: LoanLocks = Depends(get_loan_locks),
) -> LoanService:
    return LoanService(db, ledger, locks)


def get_credit_service(
    db: Session = Depends(get_db),
    job_manager: ScoringJobManager = Depends(get_job_manager),
) -> CreditService:
    return CreditService(db, job_manager)


def get_identity_service(
    db: Session = Depends(get_db),
    ledger: LedgerClient = Depends(get_ledger_client),
) -> IdentityService:
    return IdentityService(db, ledger)


def get_reputation_service(db: Session = Depends(get_db)) -> ReputationService:
    return ReputationService(db)
