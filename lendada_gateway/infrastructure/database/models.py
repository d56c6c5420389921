"""SQLAlchemy ORM models for accounts, credit checks, loans and the ledger audit log"""

import uuid
from sqlalchemy import Column, Text, BigInteger, Integer, DateTime, ForeignKey, JSON, Enum, Uuid
from sqlalchemy.orm import declarative_base, relationship
from lendada_gateway.domain.models import LoanStatus, TransactionType
from lendada_gateway.utils.date_utils import utcnow

Base = declarative_base()


class User(Base):
    """Wallet account, optionally holding an identity credential"""

    __tablename__ = "users"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    wallet_address = Column(Text, nullable=False, unique=True, index=True)
    identity_nft = Column(Text, nullable=True)
    commitment_hash = Column(Text, nullable=True)
    kyc_level = Column(Integer, nullable=True)
    credit_score = Column(Integer, nullable=True)
    reputation_points = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    loans_as_borrower = relationship("Loan", back_populates="borrower", foreign_keys="Loan.borrower_id")
    loans_as_lender = relationship("Loan", back_populates="lender", foreign_keys="Loan.lender_id")

    @property
    def has_identity(self) -> bool:
        return bool(self.identity_nft)


class CreditCheck(Base):
    """Immutable scoring outcome; later checks supersede earlier ones"""

    __tablename__ = "credit_check"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    wallet_address = Column(Text, nullable=False, index=True)
    score = Column(Integer, nullable=False)
    risk_level = Column(Text, nullable=False)
    max_loan_amount = Column(BigInteger, nullable=False)  # lovelace
    interest_rate = Column(Integer, nullable=False)  # basis points
    job_id = Column(Text, nullable=True)
    created_at = Column(DateTime, nullable=False, default=utcnow, index=True)


class Loan(Base):
    """Collateralized loan moving through PENDING -> FUNDED -> ACTIVE -> REPAID"""

    __tablename__ = "loan"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    borrower_id = Column(Uuid(as_uuid=True), ForeignKey("users.id"), nullable=False, index=True)
    lender_id = Column(Uuid(as_uuid=True), ForeignKey("users.id"), nullable=True, index=True)
    principal = Column(BigInteger, nullable=False)  # lovelace
    interest_rate = Column(Integer, nullable=False)  # basis points
    duration = Column(Integer, nullable=False)  # days
    collateral = Column(BigInteger, nullable=False)  # lovelace
    status = Column(
        Enum(LoanStatus, name="loan_status", native_enum=False),
        nullable=False,
        default=LoanStatus.PENDING,
        index=True,
    )
    tx_hash = Column(Text, nullable=True)
    utxo_ref = Column(Text, nullable=True)
    created_at = Column(DateTime, nullable=False, default=utcnow)
    funded_at = Column(DateTime, nullable=True)
    claimed_at = Column(DateTime, nullable=True)
    repaid_at = Column(DateTime, nullable=True)
    due_at = Column(DateTime, nullable=False)

    borrower = relationship("User", back_populates="loans_as_borrower", foreign_keys=[borrower_id])
    lender = relationship("User", back_populates="loans_as_lender", foreign_keys=[lender_id])
    transactions = relationship(
        "LedgerTransaction",
        back_populates="loan",
        order_by="LedgerTransaction.created_at",
    )


class LedgerTransaction(Base):
    """Append-only audit entry for a submitted ledger operation"""

    __tablename__ = "ledger_transaction"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid(as_uuid=True), ForeignKey("users.id"), nullable=True, index=True)
    loan_id = Column(Uuid(as_uuid=True), ForeignKey("loan.id"), nullable=True, index=True)
    type = Column(Enum(TransactionType, name="transaction_type", native_enum=False), nullable=False)
    amount = Column(BigInteger, nullable=False)  # lovelace
    tx_hash = Column(Text, nullable=False)
    status = Column(Text, nullable=False, default="confirmed")
    details = Column("metadata", JSON, nullable=True)
    created_at = Column(DateTime, nullable=False, default=utcnow)

    loan = relationship("Loan", back_populates="transactions")
