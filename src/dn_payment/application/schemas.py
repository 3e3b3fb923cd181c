"""Pydantic schemas and cursor utilities for dn_payment API."""

import base64
import json
from datetime import datetime

from pydantic import BaseModel, Field

from src.dn_common.satang import satang_to_display
from src.dn_payment.domain.models import PaymentRecord, QrPaymentAttempt

_MAX_BIGINT = 9_223_372_036_854_775_807

# ---------------------------------------------------------------------------
# Cursor-based pagination utilities
# ---------------------------------------------------------------------------


def cursor_encode(last_id: int) -> str:
    """Encode a BIGINT primary key into an opaque Base64 cursor string."""
    payload = json.dumps({"id": last_id})
    return base64.b64encode(payload.encode()).decode()


def cursor_decode(cursor: str | None) -> int | None:
    """Decode a cursor string back to the last seen id.

    Returns None on error or when the id is outside the BIGSERIAL range.
    """
    if cursor is None:
        return None
    try:
        payload = json.loads(base64.b64decode(cursor.encode()).decode())
        last_id = int(payload["id"])
    except (ValueError, KeyError, TypeError):
        return None
    return last_id if 0 < last_id <= _MAX_BIGINT else None


# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------


class QrCreateRequest(BaseModel):
    amount_satang: int = Field(..., gt=0, description="Donation amount in satang")
    project_id: int | None = Field(
        None, gt=0, le=2_147_483_647, description="Earmark; omit for the general fund"
    )


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


class SlipSubmissionResponse(BaseModel):
    reference: str
    amount_satang: int
    amount_display: str
    credited: bool
    balance_after_satang: int | None = None
    project_id: int | None = None
    project_progress: str | None = None


class QrPaymentResponse(BaseModel):
    reference: str
    qr_image: str
    promptpay_id: str
    amount_satang: int
    amount_display: str
    project_id: int | None
    created_at: str
    expires_at: str

    @classmethod
    def from_attempt(cls, attempt: QrPaymentAttempt) -> "QrPaymentResponse":
        return cls(
            reference=attempt.reference,
            qr_image=attempt.qr_image,
            promptpay_id=attempt.promptpay_id,
            amount_satang=attempt.amount,
            amount_display=satang_to_display(attempt.amount),
            project_id=attempt.project_id,
            created_at=attempt.created_at.isoformat(),
            expires_at=attempt.expires_at.isoformat(),
        )


class QrStatusResponse(BaseModel):
    reference: str
    status: str                      # PENDING | SUCCESS | FAIL | CANCELLED
    expires_at: str
    expired: bool
    balance_after_satang: int | None = None


class QrCancelResponse(BaseModel):
    reference: str
    ok: bool = True
    status: str


class CallbackResponse(BaseModel):
    status: str                      # success | duplicate
    reference: str


class PaymentItem(BaseModel):
    id: int
    reference: str
    status: str
    status_label: str
    rail: str
    amount_satang: int
    amount_display: str
    total_satang: int
    project_id: int | None
    payment_date: str | None

    @classmethod
    def from_record(cls, record: PaymentRecord) -> "PaymentItem":
        return cls(
            id=record.id,
            reference=record.reference,
            status=record.status,
            status_label=record.status_label,
            rail=record.rail,
            amount_satang=record.amount,
            amount_display=satang_to_display(record.amount),
            total_satang=record.total,
            project_id=record.project_id,
            payment_date=_iso(record.payment_date),
        )


class PaymentListResponse(BaseModel):
    items: list[PaymentItem]
    next_cursor: str | None
    has_more: bool


class DonationTotalResponse(BaseModel):
    count: int
    donor_count: int = 0
    total_satang: int
    total_display: str


def _iso(value: datetime | None) -> str | None:
    return value.isoformat() if value else None
