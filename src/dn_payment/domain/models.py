"""Domain models for dn_payment — pure dataclasses, no SQLAlchemy dependency."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from src.dn_common.enums import PaymentRail, PaymentStatus


@dataclass(frozen=True)
class ReceiverIdentity:
    """The foundation's known payee details, matched fuzzily against slips."""

    name_th: str
    name_th_partial: str
    name_en: str
    name_en_partial: str
    account_number: str
    account_fragments: tuple[str, ...]
    account_type: str

    def describe(self) -> str:
        return f"{self.name_th} ({self.account_number})"


@dataclass(frozen=True)
class VerifiedPayment:
    """Rail-agnostic output of every verifier."""

    reference: str
    amount: int                      # satang
    payer_identifier: str | None
    raw_payload: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class LedgerCredit:
    """Input of the ledger writer: a verified, resolved, not-yet-recorded payment."""

    reference: str
    amount: int                      # satang credited to the balance
    total: int                       # satang gross value reported upstream
    rail: PaymentRail
    user_id: str
    project_id: int | None = None
    payer_identifier: str | None = None
    raw_payload: dict[str, Any] = field(default_factory=dict)


@dataclass
class PaymentRecord:
    id: int
    reference: str
    status: str                      # PaymentStatus value
    status_label: str
    amount: int
    total: int
    rail: str                        # PaymentRail value
    payer_identifier: str | None
    user_id: str | None
    project_id: int | None
    created_at: datetime | None = None
    payment_date: datetime | None = None


@dataclass
class QrPaymentAttempt:
    reference: str
    user_id: str
    amount: int
    project_id: int | None
    promptpay_id: str
    qr_image: str
    status: str                      # PaymentStatus value
    created_at: datetime
    expires_at: datetime
    updated_at: datetime | None = None

    @property
    def is_terminal(self) -> bool:
        return PaymentStatus(self.status).is_terminal

    def is_expired(self, now: datetime) -> bool:
        return now > self.expires_at


@dataclass(frozen=True)
class LedgerResult:
    record: PaymentRecord
    balance_after: int
    project_progress: str | None = None


@dataclass(frozen=True)
class DonationTotal:
    count: int
    total: int                       # satang
    donors: int = 0                  # distinct signed-in donors
