"""Slip and gateway verifiers."""

from unittest.mock import AsyncMock

import pytest

from src.dn_common.errors import (
    InsufficientUpstreamDataError,
    InvalidReceiverError,
    InvalidSlipError,
    UnauthorizedCallbackError,
    VerificationFailedError,
)
from src.dn_payment.application.verifier import GatewayVerifier, SlipVerifier
from src.dn_payment.domain.vocabulary import GatewayOutcome
from src.dn_payment.infrastructure.gateway_client import GatewayOrderStatus


def _slip(
    trans_ref: str | None = "TX-001",
    amount: object = 500,
    name_th: str | None = "มูลนิธิเพื่อผู้พิการไทย",
    name_en: str | None = None,
    account: str | None = "xxx-x-x1965-x",
    account_type: str | None = "BANKAC",
    with_receiver: bool = True,
) -> dict:
    data: dict = {
        "transRef": trans_ref,
        "date": "2026-10-18T09:00:00+07:00",
        "amount": {"amount": amount},
        "sender": {"account": {"name": {"th": "นาย ผู้บริจาค"}}},
    }
    if with_receiver:
        data["receiver"] = {
            "account": {
                "name": {"th": name_th, "en": name_en},
                "bank": {"type": account_type, "account": account},
            }
        }
    return {"status": 200, "data": data}


def _slip_verifier(payload: dict) -> SlipVerifier:
    client = AsyncMock()
    client.verify.return_value = payload
    return SlipVerifier(client=client)


class TestSlipVerifier:
    async def test_valid_slip(self) -> None:
        result = await _slip_verifier(_slip()).verify(b"img")

        assert result.reference == "TX-001"
        assert result.amount == 50000
        assert result.payer_identifier == "นาย ผู้บริจาค"
        assert result.raw_payload["data"]["transRef"] == "TX-001"

    async def test_decimal_string_amount(self) -> None:
        result = await _slip_verifier(_slip(amount="1,250.50")).verify(b"img")
        assert result.amount == 125050

    async def test_name_only_match_passes(self) -> None:
        payload = _slip(account="999-9-99999-9")
        assert (await _slip_verifier(payload).verify(b"img")).reference == "TX-001"

    async def test_account_only_match_passes(self) -> None:
        payload = _slip(name_th="บุคคลอื่น", account="162-8-11965-8")
        assert (await _slip_verifier(payload).verify(b"img")).reference == "TX-001"

    async def test_wrong_receiver(self) -> None:
        payload = _slip(name_th="บุคคลอื่น", name_en="SOMEONE", account="999-9-99999-9")
        with pytest.raises(InvalidReceiverError) as exc_info:
            await _slip_verifier(payload).verify(b"img")
        assert "162-8-11965-8" in exc_info.value.message

    async def test_no_receiver(self) -> None:
        with pytest.raises(InvalidReceiverError):
            await _slip_verifier(_slip(with_receiver=False)).verify(b"img")

    async def test_missing_trans_ref(self) -> None:
        with pytest.raises(InsufficientUpstreamDataError):
            await _slip_verifier(_slip(trans_ref=None)).verify(b"img")

    async def test_zero_amount(self) -> None:
        with pytest.raises(InvalidSlipError):
            await _slip_verifier(_slip(amount=0)).verify(b"img")

    async def test_no_data(self) -> None:
        with pytest.raises(InvalidSlipError):
            await _slip_verifier({"status": 404, "message": "slip_not_found"}).verify(b"img")


def _gateway(rows: list[GatewayOrderStatus]) -> GatewayVerifier:
    client = AsyncMock()
    client.order_status.return_value = rows
    return GatewayVerifier(client=client, callback_secret="s3cret")


class TestCheckSecret:
    def test_matching(self) -> None:
        _gateway([]).check_secret("s3cret")

    @pytest.mark.parametrize("supplied", [None, "", "wrong", "s3cret "])
    def test_mismatch(self, supplied: str | None) -> None:
        with pytest.raises(UnauthorizedCallbackError):
            _gateway([]).check_secret(supplied)

    def test_unconfigured_secret_rejects_everything(self) -> None:
        verifier = GatewayVerifier(client=AsyncMock(), callback_secret="")
        with pytest.raises(UnauthorizedCallbackError):
            verifier.check_secret("")


class TestGatewayOutcome:
    async def test_no_rows_is_pending(self) -> None:
        outcome, row = await _gateway([]).outcome("ORD-1")
        assert outcome is GatewayOutcome.PENDING
        assert row is None

    async def test_confirm_success(self) -> None:
        row = GatewayOrderStatus(OrderNo="ORD-1", Status="CP", StatusName="Paid", Total="100")
        assert await _gateway([row]).confirm("ORD-1") is row

    async def test_confirm_by_name_only(self) -> None:
        row = GatewayOrderStatus(OrderNo="ORD-1", Status="??", StatusName="COMPLETED")
        assert await _gateway([row]).confirm("ORD-1") is row

    async def test_confirm_failure(self) -> None:
        row = GatewayOrderStatus(OrderNo="ORD-1", Status="C", StatusName="Cancelled")
        with pytest.raises(VerificationFailedError):
            await _gateway([row]).confirm("ORD-1")

    async def test_confirm_without_rows(self) -> None:
        with pytest.raises(VerificationFailedError):
            await _gateway([]).confirm("ORD-1")
