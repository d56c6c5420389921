"""Blockfrost HTTP client and on-chain metrics collector"""

import logging
import time
from typing import Any, Callable, Dict, List, Optional
import httpx
from lendada_gateway.config import settings
from lendada_gateway.domain.exceptions import MetricsSourceError
from lendada_gateway.domain.metrics import calculate_metrics, default_metrics
from lendada_gateway.domain.models import OnChainMetrics
from lendada_gateway.infrastructure.observability.metrics import metrics_source_failures_counter

logger = logging.getLogger(__name__)


class BlockfrostClient:
    """Client for the Blockfrost address API"""

    def __init__(
        self,
        base_url: str | None = None,
        project_id: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = base_url or settings.blockfrost_api_base
        self.project_id = project_id if project_id is not None else settings.blockfrost_project_id
        self.timeout = timeout or settings.http_timeout_seconds
        self.transport = transport

    async def _get(self, client: httpx.AsyncClient, path: str, params: Optional[Dict[str, Any]] = None) -> Any:
        try:
            response = await client.get(f"{self.base_url}{path}", params=params)
            response.raise_for_status()
            return response.json()
        except httpx.TimeoutException as e:
            raise MetricsSourceError(f"Blockfrost timeout after {self.timeout}s") from e
        except httpx.HTTPStatusError as e:
            raise MetricsSourceError(f"Blockfrost error: {e.response.status_code}") from e
        except (httpx.RequestError, ValueError) as e:
            raise MetricsSourceError(f"Blockfrost request failed: {e}") from e

    async def fetch_address_data(self, address: str, tx_limit: int = 100) -> Dict[str, Any]:
        """
        Fetch everything needed to derive metrics for an address.

        Raises:
            MetricsSourceError: On timeout, HTTP errors, or invalid response
        """
        headers = {"project_id": self.project_id}
        async with httpx.AsyncClient(timeout=self.timeout, headers=headers, transport=self.transport) as client:
            address_info = await self._get(client, f"/addresses/{address}")
            transactions = await self._get(
                client,
                f"/addresses/{address}/transactions",
                params={"count": tx_limit, "order": "desc"},
            )
            utxos = await self._get(client, f"/addresses/{address}/utxos")

        return {
            "address_info": address_info,
            "transactions": transactions,
            "utxos": utxos,
        }


class OnChainMetricsCollector:
    """Gathers behavioral metrics, falling back to an all-zero bundle on any failure"""

    def __init__(self, source: BlockfrostClient | None = None, clock: Callable[[], float] = time.time):
        self.source = source or BlockfrostClient()
        self.clock = clock

    async def get_onchain_metrics(self, address: str) -> OnChainMetrics:
        try:
            data = await self.source.fetch_address_data(address)
            return calculate_metrics(
                address_info=data["address_info"] or {},
                transactions=list(data["transactions"] or []),
                utxos=list(data["utxos"] or []),
                now_ts=self.clock(),
            )
        except (MetricsSourceError, KeyError, ValueError, TypeError, AttributeError) as e:
            # Scoring must stay available; degrade to defaults instead of failing
            metrics_source_failures_counter.inc()
            logger.warning(f"Metrics source failed, using defaults: {e}", extra={"address": address})
            return default_metrics()
