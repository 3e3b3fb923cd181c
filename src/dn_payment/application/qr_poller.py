"""Client-side QR status poll loop.

Used by kiosk and CLI clients after showing a QR. It stops at the first
terminal status or at the 15-minute deadline. Hitting the deadline raises
`QrPaymentExpiredError` and does nothing else: the server still honours a
late gateway SUCCESS.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from datetime import datetime

import httpx

from config.settings import settings
from src.dn_common.datetime_utils import seconds_until, utc_now
from src.dn_common.errors import QrPaymentExpiredError, UpstreamUnavailableError
from src.dn_payment.domain.constants import QR_EXPIRY, QR_POLL_INTERVAL_SECONDS

logger = logging.getLogger(__name__)

TERMINAL_STATUSES = frozenset({"SUCCESS", "FAIL", "CANCELLED"})

StatusFetcher = Callable[[str], Awaitable[str]]


class QrStatusPoller:
    def __init__(
        self,
        fetch_status: StatusFetcher,
        interval: float = QR_POLL_INTERVAL_SECONDS,
        clock: Callable[[], datetime] = utc_now,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self._fetch_status = fetch_status
        self._interval = interval
        self._clock = clock
        self._sleep = sleep

    async def wait(self, reference: str, created_at: datetime) -> str:
        """Poll until a terminal status; return it. Raises QrPaymentExpiredError at the deadline."""
        deadline = created_at + QR_EXPIRY
        while True:
            remaining = seconds_until(deadline, self._clock())
            if remaining <= 0:
                logger.info("Stopped polling QR %s at its deadline", reference)
                raise QrPaymentExpiredError(reference)

            status = await self._fetch_status(reference)
            if status in TERMINAL_STATUSES:
                return status

            await self._sleep(min(self._interval, remaining))


class ApiStatusFetcher:
    """Fetch a QR status from this service's own `GET /api/v1/payments/qr/{reference}`."""

    def __init__(
        self,
        base_url: str,
        access_token: str,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._access_token = access_token
        self._transport = transport

    async def __call__(self, reference: str) -> str:
        url = f"{self._base_url}/api/v1/payments/qr/{reference}"
        try:
            async with httpx.AsyncClient(
                transport=self._transport, timeout=settings.HTTP_TIMEOUT_SECONDS
            ) as client:
                resp = await client.get(
                    url, headers={"Authorization": f"Bearer {self._access_token}"}
                )
                resp.raise_for_status()
        except httpx.HTTPError as exc:
            logger.warning("QR status request for %s failed: %s", reference, exc)
            raise UpstreamUnavailableError("Donation service") from exc
        return str(resp.json()["data"]["status"])
