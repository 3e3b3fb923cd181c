"""Fixed payment parameters of the foundation."""

from datetime import timedelta

from src.dn_payment.domain.models import ReceiverIdentity

EXPECTED_RECEIVER = ReceiverIdentity(
    name_th="มูลนิธิเพื่อผู้พิการไทย",
    name_th_partial="มูลนิธิเพื่อผู้พิการไทย",
    name_en="FOUNDATION F",
    name_en_partial="FOUNDATION F",
    account_number="162-8-11965-8",
    account_fragments=("9658", "1965", "658", "1628"),
    account_type="BANKAC",
)

MAX_SLIP_BYTES = 10 * 1024 * 1024

QR_EXPIRY = timedelta(minutes=15)
QR_POLL_INTERVAL_SECONDS = 3.0

GENERAL_FUND_DETAIL = "donation_general"
EARMARK_DETAIL_PREFIX = "donation_"
