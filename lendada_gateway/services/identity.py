"""Identity credential issuance/verification and reputation summaries"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Dict, Optional
from sqlalchemy.orm import Session
from lendada_gateway.config import settings
from lendada_gateway.domain.exceptions import NotFoundError, ValidationError
from lendada_gateway.domain.identity import (
    REQUIRED_KYC_FIELDS,
    commit_kyc,
    identity_asset_name,
    identity_token,
    verify_commitment,
)
from lendada_gateway.domain.models import LoanStatus, TransactionType
from lendada_gateway.domain.operations import MintIdentity
from lendada_gateway.infrastructure.clients.ledger import LedgerClient
from lendada_gateway.infrastructure.database.models import User
from lendada_gateway.infrastructure.database.repositories import (
    LoanRepository,
    TransactionRepository,
    UserRepository,
)
from lendada_gateway.utils.date_utils import to_epoch_ms, utcnow

logger = logging.getLogger(__name__)


@dataclass
class IssuedIdentity:
    identity_nft: str
    commitment_hash: str
    kyc_level: int
    tx_hash: str


@dataclass
class Reputation:
    points: int
    total_loans: int
    repaid_loans: int
    defaulted_loans: int
    repayment_rate: float
    credit_score: Optional[int]


def _validate_kyc(kyc_data: Dict[str, Any]) -> None:
    missing = [name for name in REQUIRED_KYC_FIELDS if not kyc_data.get(name)]
    if missing:
        raise ValidationError(f"Missing KYC fields: {', '.join(missing)}")


class IdentityService:
    """Issues at most one identity credential per wallet address"""

    def __init__(self, db: Session, ledger: LedgerClient, clock: Callable[[], datetime] = utcnow):
        self.db = db
        self.ledger = ledger
        self.clock = clock
        self.users = UserRepository(db)
        self.transactions = TransactionRepository(db)

    async def issue_identity(self, wallet_address: str, kyc_data: Dict[str, Any], kyc_level: int) -> IssuedIdentity:
        """
        Commit to the KYC data, mint the identity token and record the credential.

        The raw KYC attributes are only hashed; the country code is the single
        attribute published on-chain.
        """
        if not wallet_address:
            raise ValidationError("wallet_address is required")
        _validate_kyc(kyc_data)

        commitment = commit_kyc(kyc_data)
        created_at_ms = to_epoch_ms(self.clock())
        asset_name = identity_asset_name(created_at_ms)

        try:
            tx_hash = await self.ledger.submit(
                MintIdentity(
                    owner=wallet_address,
                    commitment_hash=commitment,
                    kyc_level=kyc_level,
                    country_code=str(kyc_data["country"]),
                    asset_name=asset_name,
                    created_at_ms=created_at_ms,
                )
            )

            token = identity_token(settings.identity_nft_policy, asset_name)
            user = self.users.upsert_identity(wallet_address, token, commitment, kyc_level)
            self.transactions.create(
                type=TransactionType.IDENTITY_MINT,
                amount=0,
                tx_hash=tx_hash,
                user_id=user.id,
                details={"asset_name": asset_name, "kyc_level": kyc_level},
            )
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        logger.info("Identity issued", extra={"address": wallet_address, "tx_hash": tx_hash})
        return IssuedIdentity(identity_nft=token, commitment_hash=commitment, kyc_level=kyc_level, tx_hash=tx_hash)

    def verify_identity(self, wallet_address: str, kyc_data: Dict[str, Any]) -> tuple[bool, Optional[int]]:
        """Check kyc_data against the stored commitment; returns (valid, kyc_level)"""
        user = self.users.get_by_address(wallet_address)
        if user is None or not user.commitment_hash:
            raise NotFoundError("Identity not found")
        return verify_commitment(kyc_data, user.commitment_hash), user.kyc_level

    def get_identity(self, wallet_address: str) -> User:
        user = self.users.get_by_address(wallet_address)
        if user is None:
            raise NotFoundError("User not found")
        return user


class ReputationService:
    def __init__(self, db: Session):
        self.users = UserRepository(db)
        self.loans = LoanRepository(db)

    def get_reputation(self, wallet_address: str) -> Reputation:
        """Repayment record over the borrower's settled loans"""
        user = self.users.get_by_address(wallet_address)
        if user is None:
            raise NotFoundError("User not found")

        settled = self.loans.list_for_borrower(user.id, [LoanStatus.REPAID, LoanStatus.DEFAULTED])
        repaid = sum(1 for loan in settled if loan.status == LoanStatus.REPAID)
        defaulted = sum(1 for loan in settled if loan.status == LoanStatus.DEFAULTED)
        total = len(settled)

        return Reputation(
            points=user.reputation_points,
            total_loans=total,
            repaid_loans=repaid,
            defaulted_loans=defaulted,
            repayment_rate=(repaid / total) * 100 if total > 0 else 0.0,
            credit_score=user.credit_score,
        )
