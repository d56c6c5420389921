"""Ledger submitter client - builds, signs and submits lifecycle transactions"""

import httpx
from lendada_gateway.config import settings
from lendada_gateway.domain.exceptions import LedgerSubmissionError
from lendada_gateway.domain.operations import LedgerOperation, to_payload
from lendada_gateway.infrastructure.observability.metrics import ledger_latency_histogram, ledger_failure_counter


class LedgerClient:
    """Client for the external ledger/wallet submitter"""

    def __init__(
        self,
        base_url: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = base_url or settings.ledger_submitter_url
        self.timeout = timeout or settings.ledger_timeout_seconds
        self.transport = transport

    async def submit(self, operation: LedgerOperation) -> str:
        """
        Submit one ledger operation and return its transaction hash.

        No retries: resubmitting a transaction risks spending twice, so any
        timeout or error is reported to the caller as a failure.

        Raises:
            LedgerSubmissionError: On timeout, HTTP errors, or a response without a hash
        """
        payload = to_payload(operation)
        payload["network"] = settings.cardano_network

        async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
            try:
                with ledger_latency_histogram.time():
                    response = await client.post(f"{self.base_url}/submit", json=payload)
                    response.raise_for_status()
                tx_hash = response.json()["tx_hash"]
                if not tx_hash:
                    raise ValueError("empty tx_hash")
                return str(tx_hash)

            except httpx.TimeoutException as e:
                ledger_failure_counter.labels(operation=operation.kind).inc()
                raise LedgerSubmissionError(f"Ledger submission timed out after {self.timeout}s") from e
            except httpx.HTTPStatusError as e:
                ledger_failure_counter.labels(operation=operation.kind).inc()
                raise LedgerSubmissionError(f"Ledger submitter error: {e.response.status_code}") from e
            except httpx.RequestError as e:
                ledger_failure_counter.labels(operation=operation.kind).inc()
                raise LedgerSubmissionError(f"Ledger submitter unreachable: {e}") from e
            except (KeyError, ValueError, TypeError) as e:
                ledger_failure_counter.labels(operation=operation.kind).inc()
                raise LedgerSubmissionError(f"Invalid ledger submitter response: {e}") from e
