"""GET /v1/credit/{address} and GET /v1/reputation/{address}"""

from dataclasses import asdict
from fastapi import APIRouter, Depends, Query

from lendada_gateway.api.v1.schemas import CreditScoreResponse, ReputationResponse
from lendada_gateway.api.dependencies import get_credit_service, get_reputation_service
from lendada_gateway.services.credit import CreditService
from lendada_gateway.services.identity import ReputationService

router = APIRouter()


@router.get("/credit/{wallet_address}", response_model=CreditScoreResponse)
async def get_credit_score(
    wallet_address: str,
    loan_amount: float = Query(1000, gt=0, allow_inf_nan=False, description="Requested amount in ADA"),
    duration: int = Query(30, gt=0, description="Loan term in days"),
    service: CreditService = Depends(get_credit_service),
):
    """
    Credit score for an address.

    Serves the newest check from the last 24 hours when one exists; otherwise runs a
    scoring job and waits for it (up to the polling budget).
    """
    lookup = await service.get_credit_score(wallet_address, loan_amount, duration)
    return CreditScoreResponse(**asdict(lookup))


@router.get("/reputation/{wallet_address}", response_model=ReputationResponse)
def get_reputation(wallet_address: str, service: ReputationService = Depends(get_reputation_service)):
    return ReputationResponse(**asdict(service.get_reputation(wallet_address)))
