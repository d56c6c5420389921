"""Tests for the ledger submitter and Blockfrost clients"""

import json
import httpx
import pytest
from lendada_gateway.domain.exceptions import LedgerSubmissionError
from lendada_gateway.domain.models import OnChainMetrics
from lendada_gateway.domain.operations import RepayLoan
from lendada_gateway.infrastructure.clients.blockfrost import BlockfrostClient, OnChainMetricsCollector
from lendada_gateway.infrastructure.clients.ledger import LedgerClient

NOW = 1_700_000_000
ADDRESS = "addr_test1qclient"
REPAY = RepayLoan(borrower="addr_b", output_ref="tx#0", amount=108_000_000)


def ledger_client(handler) -> LedgerClient:
    return LedgerClient(base_url="http://ledger.test", timeout=1.0, transport=httpx.MockTransport(handler))


async def test_submit_returns_tx_hash():
    captured = {}

    def handler(request: httpx.Request) -> httpx.Response:
        captured["url"] = str(request.url)
        captured["body"] = json.loads(request.content)
        return httpx.Response(200, json={"tx_hash": "abc123"})

    tx_hash = await ledger_client(handler).submit(REPAY)

    assert tx_hash == "abc123"
    assert captured["url"] == "http://ledger.test/submit"
    assert captured["body"]["operation"] == "repay_loan"
    assert captured["body"]["redeemer"] == {"constructor": 2, "fields": [108_000_000]}
    assert "network" in captured["body"]


@pytest.mark.parametrize(
    "response",
    [
        httpx.Response(503, text="unavailable"),
        httpx.Response(200, json={"status": "ok"}),
        httpx.Response(200, json={"tx_hash": ""}),
        httpx.Response(200, text="not json"),
    ],
)
async def test_submit_failures_raise(response):
    with pytest.raises(LedgerSubmissionError):
        await ledger_client(lambda request: response).submit(REPAY)


async def test_submit_timeout_is_not_retried():
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        raise httpx.ReadTimeout("timed out", request=request)

    with pytest.raises(LedgerSubmissionError, match="timed out"):
        await ledger_client(handler).submit(REPAY)

    assert len(calls) == 1


def blockfrost_handler(request: httpx.Request, stake_address="stake_test1uclient") -> httpx.Response:
    path = request.url.path
    if path.endswith("/transactions"):
        assert request.url.params["order"] == "desc"
        return httpx.Response(
            200,
            json=[
                {"block_time": NOW - 86_400, "amount": 60_000_000, "asset_count": 1},
                {"block_time": NOW - 2 * 86_400, "amount": 40_000_000, "asset_count": 3},
                {"block_time": NOW - 5 * 86_400, "amount": 0, "asset_count": 1},
                {"block_time": NOW - 200 * 86_400, "amount": 0, "asset_count": 1},
            ],
        )
    if path.endswith("/utxos"):
        return httpx.Response(200, json=[{"amount": [{"unit": "policy.nft", "quantity": "1"}]}])
    assert request.headers["project_id"] == "preprodKey"
    return httpx.Response(
        200,
        json={"amount": [{"unit": "lovelace", "quantity": "800000000"}], "stake_address": stake_address},
    )


async def test_collector_derives_metrics():
    source = BlockfrostClient(
        base_url="http://blockfrost.test",
        project_id="preprodKey",
        transport=httpx.MockTransport(blockfrost_handler),
    )
    collector = OnChainMetricsCollector(source=source, clock=lambda: NOW)

    metrics = await collector.get_onchain_metrics(ADDRESS)

    assert metrics.total_transactions == 4
    assert metrics.total_value_transacted == 100.0
    assert metrics.account_age_days == 200
    assert metrics.staking_activity is True
    assert metrics.nft_count == 1
    assert metrics.defi_interactions == 1
    assert metrics.average_balance == 800.0
    assert metrics.consistent_activity is True


async def test_undelegated_address_has_no_staking_activity():
    """Test staking comes from the address summary and only the three address endpoints are hit"""
    paths = []

    def handler(request: httpx.Request) -> httpx.Response:
        paths.append(request.url.path)
        return blockfrost_handler(request, stake_address=None)

    source = BlockfrostClient(base_url="http://blockfrost.test", project_id="preprodKey", transport=httpx.MockTransport(handler))
    metrics = await OnChainMetricsCollector(source=source, clock=lambda: NOW).get_onchain_metrics(ADDRESS)

    assert metrics.staking_activity is False
    assert metrics.total_transactions == 4
    assert not any(path.endswith("/total") for path in paths)


@pytest.mark.parametrize(
    "handler",
    [
        lambda request: httpx.Response(500),
        lambda request: httpx.Response(200, text="<html>"),
        lambda request: httpx.Response(200, json={"amount": "unexpected"}),
    ],
)
async def test_collector_falls_back_to_defaults(handler):
    source = BlockfrostClient(base_url="http://blockfrost.test", transport=httpx.MockTransport(handler))
    collector = OnChainMetricsCollector(source=source, clock=lambda: NOW)

    assert await collector.get_onchain_metrics(ADDRESS) == OnChainMetrics()


async def test_collector_falls_back_when_unreachable():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    source = BlockfrostClient(base_url="http://blockfrost.test", transport=httpx.MockTransport(handler))

    assert await OnChainMetricsCollector(source=source).get_onchain_metrics(ADDRESS) == OnChainMetrics()
