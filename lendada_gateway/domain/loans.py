"""Loan term arithmetic - collateral, due dates, amount due and reputation"""

from datetime import datetime
from lendada_gateway.domain.exceptions import ValidationError
from lendada_gateway.utils.date_utils import add_days
from lendada_gateway.utils.units import to_ada, whole_ada

BASIS_POINTS = 10_000


def calculate_collateral(principal: int, collateral_ratio_bp: int) -> int:
    """
    Collateral locked for a principal, both in lovelace.

    Integer arithmetic: 100 ADA at 15000 bp -> exactly 150 ADA.
    """
    return principal * collateral_ratio_bp // BASIS_POINTS


def calculate_due_date(start: datetime, duration_days: int) -> datetime:
    return add_days(start, duration_days)


def calculate_amount_due(principal: int, interest_rate_bp: int) -> int:
    """Principal plus flat interest over the loan term, floored to the lovelace"""
    return principal * (BASIS_POINTS + interest_rate_bp) // BASIS_POINTS


def reputation_points_for(principal: int) -> int:
    """One point per whole ADA of principal repaid"""
    return whole_ada(principal)


def validate_loan_terms(
    principal: int,
    duration_days: int,
    interest_rate_bp: int | None,
    min_amount: int,
    max_amount: int,
    min_duration: int,
    max_duration: int,
) -> None:
    """
    Check requested terms against the configured bounds.

    Raises:
        ValidationError: naming the first constraint that failed
    """
    if principal < min_amount or principal > max_amount:
        raise ValidationError(
            f"Loan amount must be between {to_ada(min_amount):g} and {to_ada(max_amount):g} ADA"
        )
    if duration_days < min_duration or duration_days > max_duration:
        raise ValidationError(
            f"Loan duration must be between {min_duration} and {max_duration} days"
        )
    if interest_rate_bp is not None and not 0 <= interest_rate_bp <= BASIS_POINTS:
        raise ValidationError("Interest rate must be between 0 and 10000 basis points")
