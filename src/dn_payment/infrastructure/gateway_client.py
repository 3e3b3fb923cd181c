"""PaySolutions gateway client: order-status re-query and PromptPay QR minting.

The order-status endpoint is the authority on whether a card or QR payment
succeeded; callbacks and client polls are only triggers to ask it.
"""

import logging
from typing import Any

import httpx
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from config.settings import settings
from src.dn_common.errors import InsufficientUpstreamDataError, UpstreamUnavailableError
from src.dn_common.satang import satang_to_baht

logger = logging.getLogger(__name__)

_SERVICE_NAME = "Payment gateway"


class GatewayOrderStatus(BaseModel):
    """One row of the order-status response. Unknown vendor fields are ignored."""

    model_config = ConfigDict(populate_by_name=True)

    order_no: str | None = Field(default=None, alias="OrderNo")
    status: str | None = Field(default=None, alias="Status")
    status_name: str | None = Field(default=None, alias="StatusName")
    total: str | None = Field(default=None, alias="Total")
    currency_code: str | None = Field(default=None, alias="CurrencyCode")
    order_date_time: str | None = Field(default=None, alias="OrderDateTime")


class QrCreation(BaseModel):
    reference: str
    qr_image: str


def parse_order_status(payload: Any) -> list[GatewayOrderStatus]:
    rows = payload if isinstance(payload, list) else [payload]
    try:
        return [GatewayOrderStatus.model_validate(row) for row in rows if isinstance(row, dict)]
    except ValidationError as exc:
        logger.error("Malformed order-status payload %r: %s", payload, exc.errors())
        raise InsufficientUpstreamDataError("order status") from None


class PaySolutionsClient:
    def __init__(
        self,
        api_url: str | None = None,
        qr_url: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._api_url = api_url or settings.PAYSOLUTIONS_API_URL
        self._qr_url = qr_url or settings.PAYSOLUTIONS_QR_URL
        self._transport = transport

    def _headers(self) -> dict[str, str]:
        return {
            "merchantId": settings.PAYSOLUTIONS_MERCHANT_ID[-5:],
            "merchantSecretKey": settings.PAYSOLUTIONS_SECRET_KEY,
            "apikey": settings.PAYSOLUTIONS_API_KEY,
        }

    async def _post(self, url: str, body: dict[str, Any]) -> Any:
        try:
            async with httpx.AsyncClient(
                transport=self._transport, timeout=settings.HTTP_TIMEOUT_SECONDS
            ) as client:
                resp = await client.post(url, json=body, headers=self._headers())
                resp.raise_for_status()
        except httpx.HTTPError as exc:
            logger.error("PaySolutions request to %s failed: %s", url, exc)
            raise UpstreamUnavailableError(_SERVICE_NAME) from exc
        try:
            return resp.json()
        except ValueError:
            logger.error("PaySolutions returned non-JSON from %s: %s", url, resp.text[:500])
            raise InsufficientUpstreamDataError("non-JSON gateway response") from None

    async def order_status(self, reference: str) -> list[GatewayOrderStatus]:
        """Authoritative status rows for one order; empty when the gateway knows none."""
        payload = await self._post(
            self._api_url,
            {
                "merchantId": settings.PAYSOLUTIONS_MERCHANT_ID[-5:],
                "orderNo": reference,
                "refno": reference,
                "productDetail": "Payment Verification",
            },
        )
        return parse_order_status(payload)

    async def create_qr(
        self,
        reference_no: str,
        amount: int,
        product_detail: str,
        customer_email: str,
    ) -> QrCreation:
        """Mint a PromptPay QR for `amount` satang; the gateway assigns the order number."""
        payload = await self._post(
            self._qr_url,
            {
                "merchantID": settings.PAYSOLUTIONS_MERCHANT_ID,
                "referenceNo": reference_no,
                "total": satang_to_baht(amount),
                "productDetail": product_detail,
                "customerEmail": customer_email,
            },
        )
        data = payload.get("data") if isinstance(payload, dict) else None
        if not isinstance(data, dict):
            logger.error("QR creation response without data: %r", payload)
            raise InsufficientUpstreamDataError("QR creation")
        reference = data.get("orderNo") or data.get("OrderNo")
        image = data.get("image") or data.get("qrImage")
        if not reference or not image:
            logger.error("QR creation response missing orderNo/image: %r", payload)
            raise InsufficientUpstreamDataError("QR order number or image")
        return QrCreation(reference=str(reference), qr_image=str(image))
