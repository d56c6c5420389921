"""Unit tests for loan term arithmetic and validation"""

import pytest
from datetime import datetime
from lendada_gateway.domain.exceptions import ValidationError
from lendada_gateway.domain.loans import (
    calculate_amount_due,
    calculate_collateral,
    calculate_due_date,
    reputation_points_for,
    validate_loan_terms,
)
from lendada_gateway.utils.date_utils import to_epoch_ms
from lendada_gateway.utils.units import to_ada, to_lovelace, whole_ada

BOUNDS = dict(
    min_amount=10_000_000,
    max_amount=100_000_000_000,
    min_duration=7,
    max_duration=365,
)


def test_collateral_is_150_percent():
    """Test 100 ADA locks exactly 150 ADA"""
    assert calculate_collateral(100_000_000, 15_000) == 150_000_000


def test_collateral_floors_to_lovelace():
    assert calculate_collateral(3, 15_000) == 4


def test_amount_due_adds_flat_interest():
    assert calculate_amount_due(100_000_000, 800) == 108_000_000
    assert calculate_amount_due(100_000_000, 0) == 100_000_000


def test_due_date_adds_duration():
    start = datetime(2024, 1, 30, 12, 0)
    due = calculate_due_date(start, 30)

    assert due == datetime(2024, 2, 29, 12, 0)


def test_reputation_points_are_whole_ada():
    assert reputation_points_for(100_000_000) == 100
    assert reputation_points_for(100_999_999) == 100


def test_validate_accepts_bounds():
    validate_loan_terms(10_000_000, 7, None, **BOUNDS)
    validate_loan_terms(100_000_000_000, 365, 10_000, **BOUNDS)


@pytest.mark.parametrize("principal", [9_999_999, 100_000_000_001])
def test_validate_rejects_principal_out_of_range(principal):
    with pytest.raises(ValidationError, match="Loan amount must be between 10 and 100000 ADA"):
        validate_loan_terms(principal, 30, None, **BOUNDS)


@pytest.mark.parametrize("duration", [6, 366])
def test_validate_rejects_duration_out_of_range(duration):
    with pytest.raises(ValidationError, match="between 7 and 365 days"):
        validate_loan_terms(50_000_000, duration, None, **BOUNDS)


def test_validate_rejects_interest_rate_above_100_percent():
    with pytest.raises(ValidationError):
        validate_loan_terms(50_000_000, 30, 10_001, **BOUNDS)


def test_unit_conversion():
    assert to_lovelace(100) == 100_000_000
    assert to_lovelace(0.1) == 100_000
    assert to_lovelace(1.0000005) == 1_000_000
    assert to_ada(1_500_000) == 1.5
    assert whole_ada(1_999_999) == 1


def test_epoch_ms_treats_naive_as_utc():
    assert to_epoch_ms(datetime(1970, 1, 2)) == 86_400_000


@pytest.mark.parametrize("amount", [float("inf"), float("-inf"), float("nan"), "NaN"])
def test_non_finite_amounts_are_rejected(amount):
    with pytest.raises(ValidationError, match="finite"):
        to_lovelace(amount)
