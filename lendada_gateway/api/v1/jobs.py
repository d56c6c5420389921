"""Scoring agent endpoints - availability, input schema, start_job and status"""

from dataclasses import asdict
from fastapi import APIRouter, Depends

from lendada_gateway.api.v1.schemas import JobStatusResponse, StartJobRequest, StartJobResponse
from lendada_gateway.api.dependencies import get_job_manager
from lendada_gateway.config import settings
from lendada_gateway.domain.models import CreditScoreRequest
from lendada_gateway.services.jobs import ScoringJobManager
from lendada_gateway.utils.units import to_ada

router = APIRouter()


@router.get("/agent/availability")
def availability():
    return {
        "available": True,
        "name": "LendADA Credit Scoring Agent",
        "description": "Credit scoring for Cardano addresses from on-chain activity",
        "version": "1.0.0",
        "capabilities": ["on-chain-analysis", "credit-scoring", "risk-assessment", "loan-recommendation"],
    }


@router.get("/agent/input_schema")
def input_schema():
    return {
        "type": "object",
        "properties": {
            "borrower_address": {
                "type": "string",
                "description": "Cardano wallet address to analyze",
                "pattern": "^addr[a-z0-9_]+$",
            },
            "loan_amount": {
                "type": "number",
                "description": "Requested loan amount in ADA",
                "minimum": to_ada(settings.min_loan_amount),
                "maximum": to_ada(settings.max_loan_amount),
            },
            "duration": {
                "type": "number",
                "description": "Loan duration in days",
                "minimum": settings.min_loan_duration_days,
                "maximum": settings.max_loan_duration_days,
            },
        },
        "required": ["borrower_address", "loan_amount", "duration"],
    }


@router.post("/jobs", response_model=StartJobResponse)
async def start_job(body: StartJobRequest, manager: ScoringJobManager = Depends(get_job_manager)):
    """Start a scoring job; poll GET /v1/jobs/{job_id} for the result"""
    job = manager.start_job(CreditScoreRequest(body.borrower_address, body.loan_amount, body.duration))
    return StartJobResponse(job_id=job.job_id, status=job.status.value)


@router.get("/jobs/{job_id}", response_model=JobStatusResponse)
def get_job_status(job_id: str, manager: ScoringJobManager = Depends(get_job_manager)):
    job = manager.get_status(job_id)
    return JobStatusResponse(
        job_id=job.job_id,
        status=job.status.value,
        progress=job.progress,
        result=asdict(job.result) if job.result else None,
        error=job.error,
    )
