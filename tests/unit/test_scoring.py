"""Unit tests for credit scoring logic"""

import pytest
from lendada_gateway.domain.models import Impact, OnChainMetrics, RiskLevel
from lendada_gateway.domain.scoring import (
    BASE_SCORE,
    calculate_credit_score,
    calculate_interest_rate,
    calculate_max_loan,
    clamp_score,
    determine_risk_level,
    generate_recommendation,
    score_account_age,
    score_balance,
    score_defi_activity,
    score_factors,
    score_nft_holdings,
    score_transaction_history,
    score_value_transacted,
)


@pytest.mark.parametrize(
    "days,expected",
    [(0, 0), (29, 0), (30, 20), (90, 40), (179, 40), (180, 70), (364, 70), (365, 100), (2000, 100)],
)
def test_score_account_age(days, expected):
    assert score_account_age(days) == expected


@pytest.mark.parametrize(
    "count,expected",
    [(0, 0), (5, 10), (9, 18), (10, 30), (20, 60), (50, 100), (99, 100), (100, 150)],
)
def test_score_transaction_history(count, expected):
    assert score_transaction_history(count) == expected


@pytest.mark.parametrize(
    "value,expected",
    [(0, 0), (45.9, 4), (99.99, 9), (100, 20), (500, 40), (1000, 60), (5000, 80), (10_000, 100)],
)
def test_score_value_transacted(value, expected):
    """Below 100 ADA the weight is one point per 10 ADA, floored"""
    assert score_value_transacted(value) == expected


@pytest.mark.parametrize("interactions,expected", [(0, 0), (4, 12), (5, 20), (10, 35), (20, 50)])
def test_score_defi_activity(interactions, expected):
    assert score_defi_activity(interactions) == expected


@pytest.mark.parametrize("count,expected", [(0, 0), (1, 5), (2, 15), (5, 30), (10, 50)])
def test_score_nft_holdings(count, expected):
    assert score_nft_holdings(count) == expected


@pytest.mark.parametrize("balance,expected", [(0, 0), (99, 0), (100, 10), (500, 20), (1000, 30), (5000, 40), (10_000, 50)])
def test_score_balance(balance, expected):
    assert score_balance(balance) == expected


def test_factors_sum_to_raw_score():
    """Test the score is exactly the base plus every factor weight"""
    metrics = OnChainMetrics(
        total_transactions=25,
        total_value_transacted=750.0,
        account_age_days=100,
        staking_activity=False,
        nft_count=3,
        defi_interactions=6,
        average_balance=600.0,
        consistent_activity=True,
    )

    factors = score_factors(metrics)
    result = calculate_credit_score(metrics, 100)

    assert len(factors) == 8
    # 40 + 60 + 40 + 0 + 70 + 20 + 15 + 20
    assert sum(f.weight for f in factors) == 265
    assert result.score == BASE_SCORE + 265


def test_empty_wallet_scores_minimum():
    """Test all-zero metrics: consistency subtracts 30, clamping restores 300"""
    result = calculate_credit_score(OnChainMetrics(), 100)

    assert result.score == 300
    assert result.risk_level == RiskLevel.VERY_HIGH
    assert result.max_loan_amount == 0
    assert result.suggested_interest_rate == 1500
    consistency = next(f for f in result.factors if f.name == "Activity Consistency")
    assert consistency.weight == -30
    assert consistency.impact == Impact.NEGATIVE


def test_maximal_wallet_is_clamped_to_850():
    metrics = OnChainMetrics(
        total_transactions=500,
        total_value_transacted=50_000.0,
        account_age_days=1000,
        staking_activity=True,
        nft_count=20,
        defi_interactions=30,
        average_balance=50_000.0,
        consistent_activity=True,
    )

    result = calculate_credit_score(metrics, 1000)

    # 300 + 650 raw, clamped
    assert result.score == 850
    assert result.risk_level == RiskLevel.LOW
    assert result.max_loan_amount == 10_000
    assert result.suggested_interest_rate == 500


def test_factor_impact_labels():
    """Test impact thresholds per factor"""
    metrics = OnChainMetrics(
        total_transactions=50,
        total_value_transacted=500.0,
        account_age_days=30,
        staking_activity=True,
        nft_count=2,
        defi_interactions=5,
        average_balance=500.0,
        consistent_activity=True,
    )

    impacts = {f.name: f.impact for f in score_factors(metrics)}

    assert impacts["Account Age"] == Impact.POSITIVE
    assert impacts["Transaction History"] == Impact.POSITIVE
    assert impacts["Total Value Transacted"] == Impact.POSITIVE
    assert impacts["Staking Activity"] == Impact.POSITIVE
    # 20 points is not above the threshold of 20
    assert impacts["DeFi Experience"] == Impact.NEUTRAL
    assert impacts["NFT Portfolio"] == Impact.NEUTRAL
    assert impacts["Average Balance"] == Impact.NEUTRAL


def test_clamp_score():
    assert clamp_score(120) == 300
    assert clamp_score(640) == 640
    assert clamp_score(990) == 850


@pytest.mark.parametrize(
    "score,expected",
    [
        (850, RiskLevel.LOW),
        (750, RiskLevel.LOW),
        (749, RiskLevel.MEDIUM),
        (650, RiskLevel.MEDIUM),
        (649, RiskLevel.HIGH),
        (550, RiskLevel.HIGH),
        (549, RiskLevel.VERY_HIGH),
        (300, RiskLevel.VERY_HIGH),
    ],
)
def test_determine_risk_level(score, expected):
    assert determine_risk_level(score) == expected


def test_max_loan_capped_by_half_balance():
    """Test tier ceiling versus half of the average balance"""
    assert calculate_max_loan(RiskLevel.LOW, 100_000) == 10_000
    assert calculate_max_loan(RiskLevel.LOW, 3_000) == 1_500
    assert calculate_max_loan(RiskLevel.MEDIUM, 20_000) == 5_000
    assert calculate_max_loan(RiskLevel.HIGH, 20_000) == 2_000
    assert calculate_max_loan(RiskLevel.VERY_HIGH, 20_000) == 500


def test_interest_rate_by_tier():
    assert calculate_interest_rate(RiskLevel.LOW) == 500
    assert calculate_interest_rate(RiskLevel.MEDIUM) == 800
    assert calculate_interest_rate(RiskLevel.HIGH) == 1200
    assert calculate_interest_rate(RiskLevel.VERY_HIGH) == 1500


def test_recommendation_when_request_exceeds_max():
    message = generate_recommendation(2000, 1000, RiskLevel.MEDIUM)

    assert message == (
        "Requested amount (2000 ADA) exceeds maximum approved amount (1000 ADA). "
        "Consider reducing loan amount or building credit history."
    )


def test_recommendation_keeps_fractional_amounts():
    message = generate_recommendation(100.123, 50.5, RiskLevel.HIGH)

    assert message.startswith("Requested amount (100.123 ADA) exceeds maximum approved amount (50.5 ADA).")


def test_recommendation_by_tier():
    assert generate_recommendation(100, 1000, RiskLevel.LOW).startswith("Excellent credit profile!")
    assert generate_recommendation(100, 1000, RiskLevel.MEDIUM).startswith("Good credit profile.")
    assert generate_recommendation(100, 1000, RiskLevel.HIGH).startswith("Moderate credit risk.")
    assert generate_recommendation(100, 1000, RiskLevel.VERY_HIGH).startswith("High credit risk.")


def test_calculate_credit_score_is_deterministic(good_metrics: OnChainMetrics):
    first = calculate_credit_score(good_metrics, 500)
    second = calculate_credit_score(good_metrics, 500)

    assert first == second
    assert first.score == 710
    assert first.risk_level == RiskLevel.MEDIUM
    assert first.max_loan_amount == 1000
    assert first.suggested_interest_rate == 800


def test_score_always_within_bounds():
    """Test every combination on a coarse metrics grid lands in [300, 850]"""
    for tx_count in (0, 15, 150):
        for value in (0.0, 750.0, 20_000.0):
            for age in (0, 120, 800):
                for flags in ((False, False), (True, True)):
                    metrics = OnChainMetrics(
                        total_transactions=tx_count,
                        total_value_transacted=value,
                        account_age_days=age,
                        staking_activity=flags[0],
                        nft_count=tx_count // 10,
                        defi_interactions=tx_count // 5,
                        average_balance=value,
                        consistent_activity=flags[1],
                    )
                    result = calculate_credit_score(metrics, 100)
                    assert 300 <= result.score <= 850
                    assert result.risk_level == determine_risk_level(result.score)
