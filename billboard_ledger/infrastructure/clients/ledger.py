"""Ledger webhook client with exponential backoff retry logic"""

import asyncio
import logging
from typing import Any, Dict

import httpx

from billboard_ledger.config import settings
from billboard_ledger.infrastructure.observability.metrics import webhook_failure_counter, webhook_latency_histogram

logger = logging.getLogger(__name__)


class LedgerClient:
    """Client that writes committed ledger entries back to the ledger service"""

    def __init__(
        self,
        webhook_url: str | None = None,
        max_retries: int | None = None,
        backoff_base: float | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.webhook_url = webhook_url or settings.ledger_webhook_url
        self.max_retries = max_retries if max_retries is not None else settings.webhook_max_retries
        self.backoff_base = backoff_base if backoff_base is not None else settings.webhook_backoff_base
        self.timeout = timeout if timeout is not None else settings.http_timeout_seconds
        self.transport = transport

    async def post_distribution(self, payload: Dict[str, Any]) -> None:
        """
        Send a committed distributed payment to the ledger with retry logic.

        Retry strategy:
        - Exponential backoff: base, 2x base, 4x base, ... (base * 2^(attempt-1))
        - Retries on 5xx errors and network failures
        - 4xx responses are raised without retry
        - Tracks latency histogram and failure counter

        Args:
            payload: group id and ledger entries to persist
        """
        attempt = 0
        async with httpx.AsyncClient(transport=self.transport, timeout=self.timeout) as client:
            while attempt < self.max_retries:
                try:
                    with webhook_latency_histogram.time():
                        response = await client.post(self.webhook_url, json=payload)
                        response.raise_for_status()
                        return  # Success

                except (httpx.HTTPStatusError, httpx.RequestError) as e:
                    webhook_failure_counter.inc()

                    if isinstance(e, httpx.HTTPStatusError) and e.response.status_code < 500:
                        logger.error(
                            "Ledger rejected distribution",
                            extra={"group_id": payload.get("group_id"), "status": e.response.status_code},
                        )
                        raise

                    attempt += 1
                    if attempt >= self.max_retries:
                        # Final failure after all retries
                        logger.error(
                            "Ledger webhook failed after retries",
                            extra={"group_id": payload.get("group_id"), "attempts": attempt},
                        )
                        raise

                    backoff = self.backoff_base * (2 ** (attempt - 1))
                    await asyncio.sleep(backoff)
