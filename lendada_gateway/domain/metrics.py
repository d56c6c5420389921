"""Derive on-chain behavioral metrics from raw ledger data"""

from typing import Any, Dict, List
from lendada_gateway.domain.models import OnChainMetrics
from lendada_gateway.utils.units import LOVELACE_PER_ADA

SECONDS_PER_DAY = 86_400
RECENT_WINDOW_DAYS = 30
CONSISTENT_ACTIVITY_MIN_TXS = 3


def default_metrics() -> OnChainMetrics:
    """All-zero bundle used when the data source is unavailable"""
    return OnChainMetrics()


def _days_since(block_time: int, now_ts: float) -> int:
    return int((now_ts - block_time) // SECONDS_PER_DAY)


def calculate_metrics(
    address_info: Dict[str, Any],
    transactions: List[Dict[str, Any]],
    utxos: List[Dict[str, Any]],
    now_ts: float,
) -> OnChainMetrics:
    """
    Build the metrics bundle for an address.

    Args:
        address_info: Address summary; first `amount` entry is the lovelace balance,
            `stake_address` is set when the address is delegated
        transactions: Address transactions, newest first
        utxos: Unspent outputs with their asset amounts
        now_ts: Reference time as Unix seconds

    Notes:
    - Account age is measured from the oldest transaction returned
    - An NFT is any non-lovelace asset held with quantity exactly 1
    - A DeFi interaction is a transaction touching more than two asset types
    - Activity is consistent when at least 3 transactions fall in the last 30 days
    """
    total_value = sum(int(tx.get("amount") or 0) for tx in transactions)

    account_age = 0
    if transactions:
        account_age = _days_since(transactions[-1].get("block_time", now_ts), now_ts)

    staking_activity = address_info.get("stake_address") is not None

    nft_count = sum(
        1
        for utxo in utxos
        for asset in utxo.get("amount") or []
        if str(asset.get("quantity")) == "1" and asset.get("unit") != "lovelace"
    )

    amounts = address_info.get("amount") or []
    current_balance = int(amounts[0].get("quantity", 0)) if amounts else 0

    recent_count = sum(
        1
        for tx in transactions
        if _days_since(tx.get("block_time", 0), now_ts) <= RECENT_WINDOW_DAYS
    )

    defi_interactions = sum(1 for tx in transactions if int(tx.get("asset_count") or 0) > 2)

    return OnChainMetrics(
        total_transactions=len(transactions),
        total_value_transacted=total_value / LOVELACE_PER_ADA,
        account_age_days=max(account_age, 0),
        staking_activity=staking_activity,
        nft_count=nft_count,
        defi_interactions=defi_interactions,
        # Current balance stands in for the average
        average_balance=current_balance / LOVELACE_PER_ADA,
        consistent_activity=recent_count >= CONSISTENT_ACTIVITY_MIN_TXS,
    )
