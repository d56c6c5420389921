"""Loan lifecycle endpoints - create, fund, claim, repay and reads"""

from typing import Optional
from fastapi import APIRouter, Depends, Query

from lendada_gateway.api.v1.schemas import (
    BorrowerDetail,
    ClaimLoanRequest,
    CreateLoanRequest,
    FundLoanRequest,
    LoanDetailResponse,
    LoanListResponse,
    LoanSchema,
    LoanTransitionResponse,
    RepayLoanRequest,
    TransactionSchema,
)
from lendada_gateway.api.dependencies import get_loan_service
from lendada_gateway.infrastructure.database.models import Loan
from lendada_gateway.services.loans import LoanService, TransitionResult
from lendada_gateway.utils.units import to_ada

router = APIRouter()


def loan_to_schema(loan: Loan) -> LoanSchema:
    return LoanSchema(
        id=str(loan.id),
        borrower=loan.borrower.wallet_address,
        lender=loan.lender.wallet_address if loan.lender else None,
        principal=to_ada(loan.principal),
        collateral=to_ada(loan.collateral),
        interest_rate=loan.interest_rate,
        duration=loan.duration,
        status=loan.status.value,
        created_at=loan.created_at,
        funded_at=loan.funded_at,
        claimed_at=loan.claimed_at,
        repaid_at=loan.repaid_at,
        due_at=loan.due_at,
        tx_hash=loan.tx_hash,
    )


def _transition_response(result: TransitionResult) -> LoanTransitionResponse:
    return LoanTransitionResponse(loan=loan_to_schema(result.loan), tx_hash=result.tx_hash)


@router.post("/loans", response_model=LoanTransitionResponse)
async def create_loan(body: CreateLoanRequest, service: LoanService = Depends(get_loan_service)):
    """
    Request a loan.

    Requires an identity credential and a fresh credit check covering the principal;
    locks 150% of the principal as collateral.
    """
    result = await service.create_loan(
        borrower_address=body.borrower_address,
        principal=body.principal,
        duration=body.duration,
        interest_rate=body.interest_rate,
    )
    return _transition_response(result)


@router.get("/loans", response_model=LoanListResponse)
def list_loans(
    status: Optional[str] = Query(None, description="Filter by loan status"),
    user_address: Optional[str] = Query(None, description="Borrower or lender address"),
    service: LoanService = Depends(get_loan_service),
):
    """Newest 50 loans matching the filters"""
    loans = service.list_loans(status=status, user_address=user_address)
    return LoanListResponse(loans=[loan_to_schema(loan) for loan in loans])


@router.get("/loans/{loan_id}", response_model=LoanDetailResponse)
def get_loan(loan_id: str, service: LoanService = Depends(get_loan_service)):
    loan = service.get_loan(loan_id)
    return LoanDetailResponse(
        **loan_to_schema(loan).model_dump(),
        borrower_detail=BorrowerDetail(
            address=loan.borrower.wallet_address,
            credit_score=loan.borrower.credit_score,
            reputation_points=loan.borrower.reputation_points,
        ),
        transactions=[
            TransactionSchema(
                id=str(tx.id),
                type=tx.type.value,
                amount=to_ada(tx.amount),
                tx_hash=tx.tx_hash,
                status=tx.status,
                metadata=tx.details,
                created_at=tx.created_at,
            )
            for tx in loan.transactions
        ],
    )


@router.post("/loans/{loan_id}/fund", response_model=LoanTransitionResponse)
async def fund_loan(loan_id: str, body: FundLoanRequest, service: LoanService = Depends(get_loan_service)):
    result = await service.fund_loan(loan_id, body.lender_address)
    return _transition_response(result)


@router.post("/loans/{loan_id}/claim", response_model=LoanTransitionResponse)
async def claim_loan(loan_id: str, body: ClaimLoanRequest, service: LoanService = Depends(get_loan_service)):
    result = await service.claim_loan(loan_id, body.borrower_address)
    return _transition_response(result)


@router.post("/loans/{loan_id}/repay", response_model=LoanTransitionResponse)
async def repay_loan(loan_id: str, body: RepayLoanRequest, service: LoanService = Depends(get_loan_service)):
    result = await service.repay_loan(loan_id, body.borrower_address, body.amount)
    return _transition_response(result)
