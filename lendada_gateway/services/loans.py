"""Loan lifecycle state machine: create, fund, claim, repay"""

import asyncio
import logging
import uuid
import weakref
from contextlib import asynccontextmanager, contextmanager
from dataclasses import dataclass
from datetime import datetime
from typing import AsyncIterator, Callable, Iterator, List, Optional
from sqlalchemy.orm import Session
from lendada_gateway.config import Settings, settings as default_settings
from lendada_gateway.domain.exceptions import (
    AuthorizationError,
    NotFoundError,
    PreconditionError,
    ValidationError,
)
from lendada_gateway.domain.identity import split_identity_token
from lendada_gateway.domain.loans import (
    calculate_amount_due,
    calculate_collateral,
    calculate_due_date,
    reputation_points_for,
    validate_loan_terms,
)
from lendada_gateway.domain.models import LoanStatus, TransactionType
from lendada_gateway.domain.operations import ClaimLoan, FundLoan, LockCollateral, MintReputation, RepayLoan
from lendada_gateway.infrastructure.clients.ledger import LedgerClient
from lendada_gateway.infrastructure.database.models import Loan
from lendada_gateway.infrastructure.database.repositories import (
    LoanRepository,
    TransactionRepository,
    UserRepository,
)
from lendada_gateway.infrastructure.observability.logging import log_loan_transition
from lendada_gateway.infrastructure.observability.metrics import record_loan_transition
from lendada_gateway.services.credit import CreditCheckCache
from lendada_gateway.utils.date_utils import to_epoch_ms, utcnow
from lendada_gateway.utils.units import to_ada, to_lovelace

logger = logging.getLogger(__name__)

CLIENT_ERRORS = (ValidationError, PreconditionError, NotFoundError, AuthorizationError)


class LoanLocks:
    """Per-loan mutual exclusion within this process"""

    def __init__(self):
        self._locks: "weakref.WeakValueDictionary[uuid.UUID, asyncio.Lock]" = weakref.WeakValueDictionary()

    @asynccontextmanager
    async def hold(self, loan_id: uuid.UUID) -> AsyncIterator[None]:
        lock = self._locks.get(loan_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[loan_id] = lock
        async with lock:
            yield


@dataclass
class TransitionResult:
    loan: Loan
    tx_hash: str


def parse_loan_id(loan_id: uuid.UUID | str) -> uuid.UUID:
    if isinstance(loan_id, uuid.UUID):
        return loan_id
    try:
        return uuid.UUID(str(loan_id))
    except ValueError:
        raise ValidationError("Invalid loan ID format")


class LoanService:
    """
    Validates and executes loan transitions.

    Every transition checks its preconditions, submits its ledger operation and only
    then writes to the database. Status changes are compare-and-swap updates and run
    under a per-loan lock, so concurrent calls on one loan cannot both commit.
    """

    def __init__(
        self,
        db: Session,
        ledger: LedgerClient,
        locks: LoanLocks,
        clock: Callable[[], datetime] = utcnow,
        config: Settings = default_settings,
    ):
        self.db = db
        self.ledger = ledger
        self.locks = locks
        self.clock = clock
        self.config = config
        self.users = UserRepository(db)
        self.loans = LoanRepository(db)
        self.transactions = TransactionRepository(db)

    @contextmanager
    def _outcome(self, operation: str) -> Iterator[None]:
        """Roll back on any failure and count the outcome"""
        try:
            yield
        except CLIENT_ERRORS:
            self.db.rollback()
            record_loan_transition(operation, "rejected")
            raise
        except Exception:
            self.db.rollback()
            record_loan_transition(operation, "error")
            raise
        record_loan_transition(operation, "success")

    def _get_loan(self, loan_id: uuid.UUID) -> Loan:
        loan = self.loans.get(loan_id)
        if loan is None:
            raise NotFoundError("Loan not found")
        return loan

    @staticmethod
    def _require_borrower(loan: Loan, address: str) -> None:
        if loan.borrower.wallet_address != address:
            raise AuthorizationError("Not authorized")

    @staticmethod
    def _require_status(loan: Loan, expected: LoanStatus, message: str) -> None:
        if loan.status != expected:
            raise PreconditionError(message)

    def _swap_status(self, loan: Loan, expected: LoanStatus, target: LoanStatus, message: str, **fields) -> None:
        if not self.loans.transition(loan.id, expected, target, **fields):
            raise PreconditionError(message)

    async def create_loan(
        self,
        borrower_address: str,
        principal: float,
        duration: int,
        interest_rate: Optional[int] = None,
    ) -> TransitionResult:
        """
        Request a new loan, locking 150% collateral in escrow.

        Args:
            principal: Requested amount in ADA
            duration: Loan term in days
            interest_rate: Basis points; defaults to the credit check's suggested rate
        """
        with self._outcome("create"):
            principal_lovelace = to_lovelace(principal)
            validate_loan_terms(
                principal_lovelace,
                duration,
                interest_rate,
                min_amount=self.config.min_loan_amount,
                max_amount=self.config.max_loan_amount,
                min_duration=self.config.min_loan_duration_days,
                max_duration=self.config.max_loan_duration_days,
            )

            borrower = self.users.get_by_address(borrower_address)
            if borrower is None or not borrower.has_identity:
                raise PreconditionError("User must complete identity verification first")

            credit_check = CreditCheckCache(
                self.db, self.config.credit_check_freshness_hours, clock=self.clock
            ).get_cached(borrower_address)
            if credit_check is None:
                raise PreconditionError("Credit score required. Please run credit check first.")
            if principal_lovelace > credit_check.max_loan_amount:
                raise PreconditionError(
                    f"Maximum approved loan amount is {to_ada(credit_check.max_loan_amount):g} ADA"
                )

            collateral = calculate_collateral(principal_lovelace, self.config.collateral_ratio_bp)
            rate = interest_rate if interest_rate is not None else credit_check.interest_rate
            now = self.clock()
            due_at = calculate_due_date(now, duration)
            policy_id, asset_name = split_identity_token(borrower.identity_nft)

            tx_hash = await self.ledger.submit(
                LockCollateral(
                    borrower=borrower_address,
                    principal=principal_lovelace,
                    interest_rate=rate,
                    duration_days=duration,
                    collateral=collateral,
                    identity_policy_id=policy_id,
                    identity_asset_name=asset_name,
                    min_credit_score=credit_check.score,
                    created_at_ms=to_epoch_ms(now),
                    due_at_ms=to_epoch_ms(due_at),
                )
            )

            loan = self.loans.create(
                borrower_id=borrower.id,
                principal=principal_lovelace,
                interest_rate=rate,
                duration=duration,
                collateral=collateral,
                status=LoanStatus.PENDING,
                tx_hash=tx_hash,
                utxo_ref=f"{tx_hash}#0",
                created_at=now,
                due_at=due_at,
            )
            self.transactions.create(
                type=TransactionType.LOAN_CREATE,
                amount=collateral,
                tx_hash=tx_hash,
                user_id=borrower.id,
                loan_id=loan.id,
            )
            self.db.commit()

        log_loan_transition("create", str(loan.id), loan.status.value, tx_hash, borrower_address)
        return TransitionResult(loan=loan, tx_hash=tx_hash)

    async def fund_loan(self, loan_id: uuid.UUID | str, lender_address: str) -> TransitionResult:
        """Lender moves the principal into escrow: PENDING -> FUNDED"""
        with self._outcome("fund"):
            loan_uuid = parse_loan_id(loan_id)
            if not lender_address:
                raise ValidationError("lender_address is required")

            async with self.locks.hold(loan_uuid):
                loan = self._get_loan(loan_uuid)
                message = "Loan is not available for funding"
                self._require_status(loan, LoanStatus.PENDING, message)

                lender = self.users.get_or_create(lender_address)
                tx_hash = await self.ledger.submit(
                    FundLoan(lender=lender_address, output_ref=loan.utxo_ref, principal=loan.principal)
                )

                self._swap_status(
                    loan,
                    LoanStatus.PENDING,
                    LoanStatus.FUNDED,
                    message,
                    lender_id=lender.id,
                    funded_at=self.clock(),
                )
                self.transactions.create(
                    type=TransactionType.LOAN_FUND,
                    amount=loan.principal,
                    tx_hash=tx_hash,
                    user_id=lender.id,
                    loan_id=loan.id,
                )
                self.db.commit()

        log_loan_transition("fund", str(loan.id), loan.status.value, tx_hash, lender_address)
        return TransitionResult(loan=loan, tx_hash=tx_hash)

    async def claim_loan(self, loan_id: uuid.UUID | str, borrower_address: str) -> TransitionResult:
        """Borrower takes the escrowed principal: FUNDED -> ACTIVE"""
        with self._outcome("claim"):
            loan_uuid = parse_loan_id(loan_id)

            async with self.locks.hold(loan_uuid):
                loan = self._get_loan(loan_uuid)
                self._require_borrower(loan, borrower_address)
                message = "Loan is not ready to be claimed"
                self._require_status(loan, LoanStatus.FUNDED, message)

                tx_hash = await self.ledger.submit(ClaimLoan(borrower=borrower_address, output_ref=loan.utxo_ref))

                self._swap_status(loan, LoanStatus.FUNDED, LoanStatus.ACTIVE, message, claimed_at=self.clock())
                self.transactions.create(
                    type=TransactionType.LOAN_CLAIM,
                    amount=loan.principal,
                    tx_hash=tx_hash,
                    user_id=loan.borrower_id,
                    loan_id=loan.id,
                )
                self.db.commit()

        log_loan_transition("claim", str(loan.id), loan.status.value, tx_hash, borrower_address)
        return TransitionResult(loan=loan, tx_hash=tx_hash)

    async def repay_loan(self, loan_id: uuid.UUID | str, borrower_address: str, amount: float) -> TransitionResult:
        """
        Borrower repays: ACTIVE -> REPAID, then earns reputation.

        Any positive amount is accepted. The amount due and any shortfall are kept in
        the transaction metadata. Both ledger operations (repayment and reputation
        mint) are submitted before anything is written.
        """
        with self._outcome("repay"):
            loan_uuid = parse_loan_id(loan_id)
            amount_lovelace = to_lovelace(amount)
            if amount_lovelace <= 0:
                raise ValidationError("Repayment amount must be positive")

            async with self.locks.hold(loan_uuid):
                loan = self._get_loan(loan_uuid)
                self._require_borrower(loan, borrower_address)
                message = "Loan is not active"
                self._require_status(loan, LoanStatus.ACTIVE, message)

                now = self.clock()
                tx_hash = await self.ledger.submit(
                    RepayLoan(borrower=borrower_address, output_ref=loan.utxo_ref, amount=amount_lovelace)
                )
                reputation_tx_hash = await self.ledger.submit(
                    MintReputation(
                        owner=borrower_address,
                        loan_amount=loan.principal,
                        repayment_time_ms=to_epoch_ms(now),
                        due_time_ms=to_epoch_ms(loan.due_at),
                    )
                )

                amount_due = calculate_amount_due(loan.principal, loan.interest_rate)
                points = reputation_points_for(loan.principal)
                if amount_lovelace < amount_due:
                    logger.warning(
                        "Loan repaid below amount due",
                        extra={"loan_id": str(loan.id), "amount": amount_lovelace, "amount_due": amount_due},
                    )

                self._swap_status(loan, LoanStatus.ACTIVE, LoanStatus.REPAID, message, repaid_at=now)
                self.users.increment_reputation(loan.borrower_id, points)
                self.transactions.create(
                    type=TransactionType.LOAN_REPAY,
                    amount=amount_lovelace,
                    tx_hash=tx_hash,
                    user_id=loan.borrower_id,
                    loan_id=loan.id,
                    details={
                        "amount_due": amount_due,
                        "shortfall": max(amount_due - amount_lovelace, 0),
                        "reputation_points": points,
                        "reputation_tx_hash": reputation_tx_hash,
                        "repaid_late": now > loan.due_at,
                    },
                )
                self.db.commit()

        log_loan_transition("repay", str(loan.id), loan.status.value, tx_hash, borrower_address)
        return TransitionResult(loan=loan, tx_hash=tx_hash)

    def list_loans(self, status: Optional[str] = None, user_address: Optional[str] = None) -> List[Loan]:
        """Newest first, capped; a user filter matches borrower or lender"""
        status_filter = None
        if status:
            try:
                status_filter = LoanStatus(status)
            except ValueError:
                raise ValidationError(f"Unknown loan status: {status}")

        participant_id = None
        if user_address:
            user = self.users.get_by_address(user_address)
            if user is None:
                return []
            participant_id = user.id

        return self.loans.list_loans(status_filter, participant_id, limit=self.config.loan_list_limit)

    def get_loan(self, loan_id: uuid.UUID | str) -> Loan:
        return self._get_loan(parse_loan_id(loan_id))
