"""Identity credential endpoints"""

from fastapi import APIRouter, Depends

from lendada_gateway.api.v1.schemas import (
    IdentityIssuedResponse,
    IdentityRequest,
    IdentityResponse,
    IdentityVerifyRequest,
    IdentityVerifyResponse,
)
from lendada_gateway.api.dependencies import get_identity_service
from lendada_gateway.services.identity import IdentityService

router = APIRouter()


@router.post("/identity", response_model=IdentityIssuedResponse)
async def create_identity(body: IdentityRequest, service: IdentityService = Depends(get_identity_service)):
    """Mint an identity token committing to the caller's KYC data"""
    issued = await service.issue_identity(body.wallet_address, body.kyc_data.model_dump(), body.kyc_level)
    return IdentityIssuedResponse(
        nft=issued.identity_nft,
        proof_hash=issued.commitment_hash,
        kyc_level=issued.kyc_level,
        tx_hash=issued.tx_hash,
    )


@router.post("/identity/verify", response_model=IdentityVerifyResponse)
def verify_identity(body: IdentityVerifyRequest, service: IdentityService = Depends(get_identity_service)):
    valid, kyc_level = service.verify_identity(body.wallet_address, body.kyc_data.model_dump())
    return IdentityVerifyResponse(valid=valid, kyc_level=kyc_level)


@router.get("/identity/{wallet_address}", response_model=IdentityResponse)
def get_identity(wallet_address: str, service: IdentityService = Depends(get_identity_service)):
    user = service.get_identity(wallet_address)
    return IdentityResponse(
        wallet_address=user.wallet_address,
        identity_nft=user.identity_nft,
        kyc_level=user.kyc_level,
        credit_score=user.credit_score,
        reputation_points=user.reputation_points,
        has_identity=user.has_identity,
    )
