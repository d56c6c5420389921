"""Credit scoring engine - core business logic for on-chain credit scores"""

import math
from typing import List
from lendada_gateway.domain.models import (
    CreditFactor,
    CreditScoreResult,
    Impact,
    OnChainMetrics,
    RiskLevel,
)

BASE_SCORE = 300
MIN_SCORE = 300
MAX_SCORE = 850

# Tier -> (max loan in ADA, suggested rate in basis points)
TIER_TERMS = {
    RiskLevel.LOW: (10_000, 500),
    RiskLevel.MEDIUM: (5_000, 800),
    RiskLevel.HIGH: (2_000, 1200),
    RiskLevel.VERY_HIGH: (500, 1500),
}


def score_account_age(days: int) -> int:
    """Max +100 points"""
    if days >= 365:
        return 100
    if days >= 180:
        return 70
    if days >= 90:
        return 40
    if days >= 30:
        return 20
    return 0


def score_transaction_history(count: int) -> int:
    """Max +150 points"""
    if count >= 100:
        return 150
    if count >= 50:
        return 100
    if count >= 20:
        return 60
    if count >= 10:
        return 30
    return count * 2


def score_value_transacted(value: float) -> int:
    """Max +100 points, value in ADA"""
    if value >= 10_000:
        return 100
    if value >= 5_000:
        return 80
    if value >= 1_000:
        return 60
    if value >= 500:
        return 40
    if value >= 100:
        return 20
    return math.floor(value / 10)


def score_defi_activity(interactions: int) -> int:
    """Max +50 points"""
    if interactions >= 20:
        return 50
    if interactions >= 10:
        return 35
    if interactions >= 5:
        return 20
    return interactions * 3


def score_nft_holdings(count: int) -> int:
    """Max +50 points"""
    if count >= 10:
        return 50
    if count >= 5:
        return 30
    if count >= 2:
        return 15
    return count * 5


def score_balance(balance: float) -> int:
    """Max +50 points, balance in ADA"""
    if balance >= 10_000:
        return 50
    if balance >= 5_000:
        return 40
    if balance >= 1_000:
        return 30
    if balance >= 500:
        return 20
    if balance >= 100:
        return 10
    return 0


def _impact(weight: int, threshold: int) -> Impact:
    return Impact.POSITIVE if weight > threshold else Impact.NEUTRAL


def _format_ada(amount: float) -> str:
    """Whole amounts without a trailing .0, anything else as given"""
    return str(int(amount)) if float(amount).is_integer() else str(amount)


def score_factors(metrics: OnChainMetrics) -> List[CreditFactor]:
    """
    Score every factor individually.

    Impact labels use an informal per-factor threshold on the weight; staking and
    activity consistency are binary and report negative when absent.
    """
    age = score_account_age(metrics.account_age_days)
    txs = score_transaction_history(metrics.total_transactions)
    value = score_value_transacted(metrics.total_value_transacted)
    staking = 80 if metrics.staking_activity else 0
    # Only factor that can subtract from the base score
    consistency = 70 if metrics.consistent_activity else -30
    defi = score_defi_activity(metrics.defi_interactions)
    nfts = score_nft_holdings(metrics.nft_count)
    balance = score_balance(metrics.average_balance)

    return [
        CreditFactor("Account Age", f"{metrics.account_age_days} days", _impact(age, 0), age),
        CreditFactor(
            "Transaction History",
            f"{metrics.total_transactions} transactions",
            _impact(txs, 50),
            txs,
        ),
        CreditFactor(
            "Total Value Transacted",
            f"{metrics.total_value_transacted:.2f} ADA",
            _impact(value, 30),
            value,
        ),
        CreditFactor(
            "Staking Activity",
            "Active" if metrics.staking_activity else "Inactive",
            Impact.POSITIVE if metrics.staking_activity else Impact.NEGATIVE,
            staking,
        ),
        CreditFactor(
            "Activity Consistency",
            "Consistent" if metrics.consistent_activity else "Inactive",
            Impact.POSITIVE if metrics.consistent_activity else Impact.NEGATIVE,
            consistency,
        ),
        CreditFactor(
            "DeFi Experience",
            f"{metrics.defi_interactions} interactions",
            _impact(defi, 20),
            defi,
        ),
        CreditFactor("NFT Portfolio", f"{metrics.nft_count} NFTs", _impact(nfts, 20), nfts),
        CreditFactor(
            "Average Balance",
            f"{metrics.average_balance:.2f} ADA",
            _impact(balance, 20),
            balance,
        ),
    ]


def clamp_score(raw_score: int) -> int:
    return min(MAX_SCORE, max(MIN_SCORE, raw_score))


def determine_risk_level(score: int) -> RiskLevel:
    """
    Map a clamped score to its risk tier.

    - 750+:    low
    - 650-749: medium
    - 550-649: high
    - <550:    very-high
    """
    if score >= 750:
        return RiskLevel.LOW
    if score >= 650:
        return RiskLevel.MEDIUM
    if score >= 550:
        return RiskLevel.HIGH
    return RiskLevel.VERY_HIGH


def calculate_max_loan(risk_level: RiskLevel, average_balance: float) -> float:
    """Tier ceiling, capped at half of the average balance (ADA)"""
    tier_max, _ = TIER_TERMS[risk_level]
    return min(tier_max, average_balance * 0.5)


def calculate_interest_rate(risk_level: RiskLevel) -> int:
    _, rate_bp = TIER_TERMS[risk_level]
    return rate_bp


def generate_recommendation(requested_amount: float, max_amount: float, risk_level: RiskLevel) -> str:
    if requested_amount > max_amount:
        return (
            f"Requested amount ({_format_ada(requested_amount)} ADA) exceeds maximum approved amount "
            f"({_format_ada(max_amount)} ADA). Consider reducing loan amount or building credit history."
        )

    if risk_level is RiskLevel.LOW:
        return "Excellent credit profile! Approved for loan with favorable terms."
    if risk_level is RiskLevel.MEDIUM:
        return "Good credit profile. Approved with standard terms. Consider staking more ADA to improve score."
    if risk_level is RiskLevel.HIGH:
        return (
            "Moderate credit risk. Loan approved with higher interest rate. "
            "Increase on-chain activity to improve terms."
        )
    return (
        "High credit risk. Loan approved with maximum interest rate and lower limits. "
        "Build transaction history to improve creditworthiness."
    )


def calculate_credit_score(metrics: OnChainMetrics, requested_amount: float) -> CreditScoreResult:
    """
    Main entry point: score an address from its on-chain metrics.

    Deterministic and side-effect free. The final score is the base of 300 plus every
    factor weight, clamped to [300, 850].
    """
    factors = score_factors(metrics)
    raw_score = BASE_SCORE + sum(f.weight for f in factors)
    score = clamp_score(raw_score)

    risk_level = determine_risk_level(score)
    max_loan = calculate_max_loan(risk_level, metrics.average_balance)

    return CreditScoreResult(
        score=score,
        risk_level=risk_level,
        factors=factors,
        recommendation=generate_recommendation(requested_amount, max_loan, risk_level),
        max_loan_amount=max_loan,
        suggested_interest_rate=calculate_interest_rate(risk_level),
    )
