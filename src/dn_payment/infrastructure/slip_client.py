"""EasySlip slip-recognition client and its typed response.

The vendor reads a bank-transfer slip image and returns the declared
sender, receiver, amount and its own transaction reference (`transRef`).
The raw JSON is parsed into `SlipData` once, here; nothing downstream
touches untyped vendor dicts except the audit copy.
"""

import base64
import logging
from typing import Any

import httpx
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from config.settings import settings
from src.dn_common.errors import InvalidSlipError, UpstreamUnavailableError

logger = logging.getLogger(__name__)

_SERVICE_NAME = "Slip verification service"


class SlipAccountName(BaseModel):
    th: str | None = None
    en: str | None = None


class SlipBankAccount(BaseModel):
    type: str | None = None          # BANKAC | TOKEN | DUMMY
    account: str | None = None


class SlipAccount(BaseModel):
    name: SlipAccountName = Field(default_factory=SlipAccountName)
    bank: SlipBankAccount | None = None


class SlipParty(BaseModel):
    account: SlipAccount | None = None


class SlipAmount(BaseModel):
    amount: int | float | str        # baht, converted once by baht_to_satang


class SlipData(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    trans_ref: str | None = Field(default=None, alias="transRef")
    date: str | None = None
    amount: SlipAmount
    sender: SlipParty | None = None
    receiver: SlipParty | None = None

    @property
    def receiver_account(self) -> SlipAccount | None:
        return self.receiver.account if self.receiver else None

    @property
    def sender_name(self) -> str | None:
        if self.sender is None or self.sender.account is None:
            return None
        return self.sender.account.name.th or self.sender.account.name.en


def parse_slip(payload: dict[str, Any]) -> SlipData:
    """Validate the vendor body; InvalidSlipError when `data` is absent or malformed."""
    data = payload.get("data")
    if not data:
        raise InvalidSlipError(str(payload.get("message") or "no slip data"))
    try:
        return SlipData.model_validate(data)
    except ValidationError as exc:
        logger.warning("Malformed slip payload: %s", exc.errors())
        raise InvalidSlipError("malformed slip data") from None


class EasySlipClient:
    def __init__(
        self,
        api_url: str | None = None,
        api_key: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._api_url = api_url or settings.EASYSLIP_API_URL
        self._api_key = api_key if api_key is not None else settings.EASYSLIP_API_KEY
        self._transport = transport

    async def verify(self, image: bytes) -> dict[str, Any]:
        """POST the base64 image; return the decoded JSON body."""
        if not self._api_key:
            logger.error("EASYSLIP_API_KEY is not configured")
            raise UpstreamUnavailableError(_SERVICE_NAME)

        try:
            async with httpx.AsyncClient(
                transport=self._transport, timeout=settings.HTTP_TIMEOUT_SECONDS
            ) as client:
                resp = await client.post(
                    self._api_url,
                    json={"image": base64.b64encode(image).decode("ascii")},
                    headers={"Authorization": f"Bearer {self._api_key}"},
                )
        except httpx.HTTPError as exc:
            logger.error("EasySlip request failed: %s", exc)
            raise UpstreamUnavailableError(_SERVICE_NAME) from exc

        if resp.status_code >= 500:
            logger.error("EasySlip server error %d: %s", resp.status_code, resp.text)
            raise UpstreamUnavailableError(_SERVICE_NAME)
        if resp.is_error:
            logger.info("EasySlip rejected slip %d: %s", resp.status_code, resp.text)
            raise InvalidSlipError(_error_message(resp))

        try:
            body = resp.json()
        except ValueError:
            raise InvalidSlipError("unreadable vendor response") from None
        if not isinstance(body, dict):
            raise InvalidSlipError("unreadable vendor response")
        return body


def _error_message(resp: httpx.Response) -> str:
    try:
        body = resp.json()
    except ValueError:
        return resp.text[:200]
    if isinstance(body, dict) and body.get("message"):
        return str(body["message"])
    return resp.text[:200]
