"""Data access layer for accounts, credit checks, loans and ledger transactions"""

import uuid
from datetime import datetime
from typing import Any, Dict, List, Optional
from sqlalchemy import or_
from sqlalchemy.orm import Session
from lendada_gateway.infrastructure.database.models import CreditCheck, LedgerTransaction, Loan, User
from lendada_gateway.domain.models import LoanStatus, TransactionType


class UserRepository:
    """Repository for wallet accounts and their identity credentials"""

    def __init__(self, db: Session):
        self.db = db

    def get_by_address(self, wallet_address: str) -> Optional[User]:
        return self.db.query(User).filter(User.wallet_address == wallet_address).first()

    def get_or_create(self, wallet_address: str) -> User:
        user = self.get_by_address(wallet_address)
        if user is None:
            user = User(wallet_address=wallet_address, reputation_points=0)
            self.db.add(user)
            self.db.flush()
        return user

    def upsert_identity(self, wallet_address: str, identity_nft: str, commitment_hash: str, kyc_level: int) -> User:
        """Attach (or replace) the account's single identity credential"""
        user = self.get_or_create(wallet_address)
        user.identity_nft = identity_nft
        user.commitment_hash = commitment_hash
        user.kyc_level = kyc_level
        self.db.flush()
        return user

    def set_credit_score(self, wallet_address: str, score: int) -> None:
        user = self.get_by_address(wallet_address)
        if user is not None:
            user.credit_score = score
            self.db.flush()

    def increment_reputation(self, user_id: uuid.UUID, points: int) -> None:
        """Atomic in-database increment"""
        self.db.query(User).filter(User.id == user_id).update(
            {User.reputation_points: User.reputation_points + points},
            synchronize_session=False,
        )


class CreditCheckRepository:
    """Repository for credit check records (append-only)"""

    def __init__(self, db: Session):
        self.db = db

    def create(
        self,
        wallet_address: str,
        score: int,
        risk_level: str,
        max_loan_amount: int,
        interest_rate: int,
        job_id: Optional[str],
        created_at: Optional[datetime] = None,
    ) -> CreditCheck:
        check = CreditCheck(
            wallet_address=wallet_address,
            score=score,
            risk_level=risk_level,
            max_loan_amount=max_loan_amount,
            interest_rate=interest_rate,
            job_id=job_id,
        )
        if created_at is not None:
            check.created_at = created_at
        self.db.add(check)
        self.db.flush()
        return check

    def latest_since(self, wallet_address: str, cutoff: datetime) -> Optional[CreditCheck]:
        """Most recent check created strictly after cutoff"""
        return (
            self.db.query(CreditCheck)
            .filter(CreditCheck.wallet_address == wallet_address, CreditCheck.created_at > cutoff)
            .order_by(CreditCheck.created_at.desc())
            .first()
        )


class LoanRepository:
    """Repository for loans"""

    def __init__(self, db: Session):
        self.db = db

    def create(self, **fields: Any) -> Loan:
        loan = Loan(**fields)
        self.db.add(loan)
        self.db.flush()
        return loan

    def get(self, loan_id: uuid.UUID) -> Optional[Loan]:
        return self.db.query(Loan).filter(Loan.id == loan_id).first()

    def transition(self, loan_id: uuid.UUID, expected: LoanStatus, target: LoanStatus, **fields: Any) -> bool:
        """
        Compare-and-swap on status.

        Issues a single UPDATE guarded by the expected status, so a stale read can
        never commit an invalid transition. Returns False when no row matched.
        """
        values: Dict[Any, Any] = {Loan.status: target}
        values.update({getattr(Loan, name): value for name, value in fields.items()})
        updated = (
            self.db.query(Loan)
            .filter(Loan.id == loan_id, Loan.status == expected)
            .update(values, synchronize_session=False)
        )
        return updated == 1

    def list_loans(
        self,
        status: Optional[LoanStatus] = None,
        participant_id: Optional[uuid.UUID] = None,
        limit: int = 50,
    ) -> List[Loan]:
        """Newest first, optionally filtered by status and borrower-or-lender"""
        query = self.db.query(Loan)
        if status is not None:
            query = query.filter(Loan.status == status)
        if participant_id is not None:
            query = query.filter(or_(Loan.borrower_id == participant_id, Loan.lender_id == participant_id))
        return query.order_by(Loan.created_at.desc()).limit(limit).all()

    def list_for_borrower(self, borrower_id: uuid.UUID, statuses: List[LoanStatus]) -> List[Loan]:
        return (
            self.db.query(Loan)
            .filter(Loan.borrower_id == borrower_id, Loan.status.in_(statuses))
            .all()
        )


class TransactionRepository:
    """Repository for the append-only ledger transaction log"""

    def __init__(self, db: Session):
        self.db = db

    def create(
        self,
        type: TransactionType,
        amount: int,
        tx_hash: str,
        user_id: Optional[uuid.UUID] = None,
        loan_id: Optional[uuid.UUID] = None,
        details: Optional[Dict[str, Any]] = None,
        status: str = "confirmed",
    ) -> LedgerTransaction:
        entry = LedgerTransaction(
            user_id=user_id,
            loan_id=loan_id,
            type=type,
            amount=amount,
            tx_hash=tx_hash,
            status=status,
            details=details,
        )
        self.db.add(entry)
        self.db.flush()
        return entry

    def list_for_loan(self, loan_id: uuid.UUID) -> List[LedgerTransaction]:
        return (
            self.db.query(LedgerTransaction)
            .filter(LedgerTransaction.loan_id == loan_id)
            .order_by(LedgerTransaction.created_at)
            .all()
        )
