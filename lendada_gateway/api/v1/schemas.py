"""Pydantic schemas for API request/response validation"""

from datetime import datetime
from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field
from lendada_gateway.domain.models import Impact, RiskLevel


# Identity


class KycData(BaseModel):
    """Private KYC attributes; only their commitment is stored"""

    name: str = Field(..., min_length=1)
    date_of_birth: str = Field(..., min_length=1)
    country: str = Field(..., min_length=2, description="ISO country code, published on-chain")
    id_number: str = Field(..., min_length=1)


class IdentityRequest(BaseModel):
    """Request body for POST /v1/identity"""

    wallet_address: str = Field(..., min_length=1)
    kyc_data: KycData
    kyc_level: int = Field(1, ge=0)


class IdentityIssuedResponse(BaseModel):
    nft: str
    proof_hash: str
    kyc_level: int
    tx_hash: str


class IdentityVerifyRequest(BaseModel):
    wallet_address: str = Field(..., min_length=1)
    kyc_data: KycData


class IdentityVerifyResponse(BaseModel):
    valid: bool
    kyc_level: Optional[int] = None


class IdentityResponse(BaseModel):
    wallet_address: str
    identity_nft: Optional[str] = None
    kyc_level: Optional[int] = None
    credit_score: Optional[int] = None
    reputation_points: int
    has_identity: bool


# Credit scoring


class CreditFactorSchema(BaseModel):
    name: str
    value: str
    impact: Impact
    weight: int


class CreditScoreResponse(BaseModel):
    """Response for GET /v1/credit/{address}, amounts in ADA"""

    score: int
    risk_level: str
    max_loan_amount: float
    interest_rate: int
    cached: bool
    created_at: Optional[datetime] = None
    job_id: Optional[str] = None
    recommendation: Optional[str] = None
    factors: List[CreditFactorSchema] = []


class ReputationResponse(BaseModel):
    points: int
    total_loans: int
    repaid_loans: int
    defaulted_loans: int
    repayment_rate: float
    credit_score: Optional[int] = None


class StartJobRequest(BaseModel):
    """Request body for POST /v1/jobs"""

    borrower_address: Optional[str] = None
    loan_amount: Optional[float] = Field(None, allow_inf_nan=False)
    duration: Optional[int] = None


class StartJobResponse(BaseModel):
    job_id: str
    status: str
    message: str = "Credit scoring job initiated"


class CreditScoreResultSchema(BaseModel):
    score: int
    risk_level: RiskLevel
    factors: List[CreditFactorSchema]
    recommendation: str
    max_loan_amount: float
    suggested_interest_rate: int


class JobStatusResponse(BaseModel):
    job_id: str
    status: str
    progress: int
    result: Optional[CreditScoreResultSchema] = None
    error: Optional[str] = None


# Loans


class CreateLoanRequest(BaseModel):
    """Request body for POST /v1/loans, amounts in ADA"""

    borrower_address: str = Field(..., min_length=1)
    principal: float = Field(..., gt=0, allow_inf_nan=False)
    duration: int = Field(..., gt=0, description="Loan term in days")
    interest_rate: Optional[int] = Field(None, ge=0, description="Basis points")


class FundLoanRequest(BaseModel):
    lender_address: str = Field(..., min_length=1)


class ClaimLoanRequest(BaseModel):
    borrower_address: str = Field(..., min_length=1)


class RepayLoanRequest(BaseModel):
    borrower_address: str = Field(..., min_length=1)
    amount: float = Field(..., gt=0, allow_inf_nan=False, description="Repayment in ADA")


class LoanSchema(BaseModel):
    id: str
    borrower: str
    lender: Optional[str] = None
    principal: float
    collateral: float
    interest_rate: int
    duration: int
    status: str
    created_at: datetime
    funded_at: Optional[datetime] = None
    claimed_at: Optional[datetime] = None
    repaid_at: Optional[datetime] = None
    due_at: datetime
    tx_hash: Optional[str] = None


class LoanTransitionResponse(BaseModel):
    loan: LoanSchema
    tx_hash: str


class LoanListResponse(BaseModel):
    loans: List[LoanSchema]


class BorrowerDetail(BaseModel):
    address: str
    credit_score: Optional[int] = None
    reputation_points: int


class TransactionSchema(BaseModel):
    id: str
    type: str
    amount: float
    tx_hash: str
    status: str
    metadata: Optional[Dict[str, Any]] = None
    created_at: datetime


class LoanDetailResponse(LoanSchema):
    borrower_detail: BorrowerDetail
    transactions: List[TransactionSchema]
