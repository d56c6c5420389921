"""Ledger operations submitted for each lifecycle step, one variant per kind"""

from dataclasses import dataclass, asdict
from enum import IntEnum
from typing import Any, ClassVar, Dict, Optional, Union


class LoanRedeemer(IntEnum):
    """Escrow spending conditions, by constructor index"""

    FUND = 0
    CLAIM = 1
    REPAY = 2


@dataclass(frozen=True)
class LockCollateral:
    """Open a loan escrow holding the borrower's collateral"""

    kind: ClassVar[str] = "lock_collateral"

    borrower: str
    principal: int
    interest_rate: int
    duration_days: int
    collateral: int
    identity_policy_id: str
    identity_asset_name: str
    min_credit_score: int
    created_at_ms: int
    due_at_ms: int


@dataclass(frozen=True)
class FundLoan:
    kind: ClassVar[str] = "fund_loan"
    redeemer: ClassVar[LoanRedeemer] = LoanRedeemer.FUND

    lender: str
    output_ref: str
    principal: int


@dataclass(frozen=True)
class ClaimLoan:
    kind: ClassVar[str] = "claim_loan"
    redeemer: ClassVar[LoanRedeemer] = LoanRedeemer.CLAIM

    borrower: str
    output_ref: str


@dataclass(frozen=True)
class RepayLoan:
    kind: ClassVar[str] = "repay_loan"
    redeemer: ClassVar[LoanRedeemer] = LoanRedeemer.REPAY

    borrower: str
    output_ref: str
    amount: int


@dataclass(frozen=True)
class MintIdentity:
    """Mint the non-transferable identity token carrying the KYC commitment"""

    kind: ClassVar[str] = "mint_identity"

    owner: str
    commitment_hash: str
    kyc_level: int
    country_code: str
    asset_name: str
    created_at_ms: int


@dataclass(frozen=True)
class MintReputation:
    """Mint a reputation token after a repayment; timing kept for late-penalty policies"""

    kind: ClassVar[str] = "mint_reputation"

    owner: str
    loan_amount: int
    repayment_time_ms: int
    due_time_ms: int


LedgerOperation = Union[LockCollateral, FundLoan, ClaimLoan, RepayLoan, MintIdentity, MintReputation]


def to_payload(operation: LedgerOperation) -> Dict[str, Any]:
    """Serialize an operation for the ledger submitter"""
    payload: Dict[str, Any] = {"operation": operation.kind, "params": asdict(operation)}
    redeemer: Optional[LoanRedeemer] = getattr(operation, "redeemer", None)
    if redeemer is not None:
        fields = [operation.amount] if isinstance(operation, RepayLoan) else []
        payload["redeemer"] = {"constructor": int(redeemer), "fields": fields}
    return payload
