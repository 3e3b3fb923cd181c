"""QR / PromptPay rail: creation, resume, status polling, cancel, expiry."""

from datetime import UTC, datetime, timedelta
from unittest.mock import AsyncMock

import pytest

from ledger_fakes import (
    FakeBalanceRepository,
    FakeLedgerStore,
    FakePaymentRepository,
    FakeProjectRepository,
    FakeQrAttemptRepository,
    RecordingNotifier,
)
from src.dn_common.enums import PaymentRail
from src.dn_common.errors import InvalidPayloadError, QrPaymentNotFoundError
from src.dn_payment.application.ledger_writer import LedgerWriter
from src.dn_payment.application.qr_promptpay import QrPromptPayRail, product_detail
from src.dn_payment.domain.models import LedgerCredit
from src.dn_payment.domain.vocabulary import GatewayOutcome
from src.dn_payment.infrastructure.gateway_client import GatewayOrderStatus, QrCreation

T0 = datetime(2026, 10, 18, 9, 0, tzinfo=UTC)


class Clock:
    def __init__(self, now: datetime = T0) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now


def _row(status: str, name: str, total: str = "500.00") -> GatewayOrderStatus:
    return GatewayOrderStatus(OrderNo="ORD-1", Status=status, StatusName=name, Total=total)


@pytest.fixture
def clock() -> Clock:
    return Clock()


@pytest.fixture
def store(clock: Clock) -> FakeLedgerStore:
    s = FakeLedgerStore(clock=clock)
    s.add_user("user-1", 0)
    s.add_user("user-2", 0)
    return s


@pytest.fixture
def gateway() -> AsyncMock:
    gw = AsyncMock()
    gw.create_qr.return_value = QrCreation(reference="ORD-1", qr_image="data:image/png;base64,AAA")
    return gw


@pytest.fixture
def verifier() -> AsyncMock:
    v = AsyncMock()
    v.outcome.return_value = (GatewayOutcome.PENDING, None)
    return v


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def rail(
    store: FakeLedgerStore,
    gateway: AsyncMock,
    verifier: AsyncMock,
    clock: Clock,
    notifier: RecordingNotifier,
) -> QrPromptPayRail:
    attempts = FakeQrAttemptRepository(store)
    return QrPromptPayRail(
        gateway=gateway,
        verifier=verifier,
        attempts=attempts,
        writer=LedgerWriter(
            payments=FakePaymentRepository(store),
            balances=FakeBalanceRepository(store),
            projects=FakeProjectRepository(store),
            qr_attempts=attempts,
            notifier=notifier,
        ),
        clock=clock,
        promptpay_id="0105558000000",
    )


class TestProductDetail:
    def test_general(self) -> None:
        assert product_detail(None) == "donation_general"

    def test_project(self) -> None:
        assert product_detail(12) == "donation_12"


class TestCreate:
    async def test_persists_pending_attempt(
        self, rail: QrPromptPayRail, store: FakeLedgerStore, gateway: AsyncMock
    ) -> None:
        result = await rail.create(store.session(), "user-1", "a@example.com", 50000, 3)

        assert result.reference == "ORD-1"
        assert result.promptpay_id == "0105558000000"
        assert result.expires_at == (T0 + timedelta(minutes=15)).isoformat()
        attempt = store.attempts["ORD-1"]
        assert attempt.status == "PENDING"
        assert attempt.project_id == 3
        kwargs = gateway.create_qr.call_args.kwargs
        assert kwargs["product_detail"] == "donation_3"
        assert kwargs["customer_email"] == "a@example.com"
        assert kwargs["amount"] == 50000

    async def test_non_positive_amount(self, rail: QrPromptPayRail, store: FakeLedgerStore) -> None:
        with pytest.raises(InvalidPayloadError):
            await rail.create(store.session(), "user-1", "a@example.com", 0)


class TestPending:
    async def test_resumes_latest_unexpired(
        self, rail: QrPromptPayRail, store: FakeLedgerStore
    ) -> None:
        await rail.create(store.session(), "user-1", "a@example.com", 50000)

        result = await rail.pending(store.session(), "user-1")

        assert result is not None
        assert result.reference == "ORD-1"

    async def test_none_after_expiry(
        self, rail: QrPromptPayRail, store: FakeLedgerStore, clock: Clock
    ) -> None:
        await rail.create(store.session(), "user-1", "a@example.com", 50000)
        clock.now = T0 + timedelta(minutes=16)

        assert await rail.pending(store.session(), "user-1") is None


class TestStatus:
    async def test_pending_stays_pending(
        self, rail: QrPromptPayRail, store: FakeLedgerStore
    ) -> None:
        await rail.create(store.session(), "user-1", "a@example.com", 50000)

        result = await rail.status(store.session(), "user-1", "ORD-1")

        assert result.status == "PENDING"
        assert result.expired is False
        assert store.payments == {}

    async def test_success_records_payment_once(
        self,
        rail: QrPromptPayRail,
        store: FakeLedgerStore,
        verifier: AsyncMock,
        notifier: RecordingNotifier,
    ) -> None:
        await rail.create(store.session(), "user-1", "a@example.com", 50000)
        verifier.outcome.return_value = (GatewayOutcome.SUCCESS, _row("CP", "Paid"))

        first = await rail.status(store.session(), "user-1", "ORD-1")
        second = await rail.status(store.session(), "user-1", "ORD-1")

        assert first.status == "SUCCESS"
        assert first.balance_after_satang == 50000
        assert second.status == "SUCCESS"
        assert store.balances["user-1"] == 50000
        assert store.payments["ORD-1"].rail == "QR"
        assert store.attempts["ORD-1"].status == "COMPLETED"
        assert notifier.events == [("QR", 50000)]
        # The second poll answers from the attempt row
        assert verifier.outcome.await_count == 1

    async def test_success_after_webhook_already_recorded(
        self, rail: QrPromptPayRail, store: FakeLedgerStore, verifier: AsyncMock
    ) -> None:
        await rail.create(store.session(), "user-1", "a@example.com", 50000)
        webhook_db = store.session()
        await FakePaymentRepository(store).insert_completed(
            webhook_db,
            LedgerCredit(
                reference="ORD-1",
                amount=50000,
                total=50000,
                rail=PaymentRail.QR,
                user_id="user-1",
            ),
            None,
            "ชำระผ่าน QR พร้อมเพย์สำเร็จ",
        )
        await webhook_db.commit()
        verifier.outcome.return_value = (GatewayOutcome.SUCCESS, _row("Y", "COMPLETED"))

        result = await rail.status(store.session(), "user-1", "ORD-1")

        assert result.status == "SUCCESS"
        assert store.balances["user-1"] == 0
        assert len(store.payments) == 1

    async def test_failure_marks_attempt_failed(
        self, rail: QrPromptPayRail, store: FakeLedgerStore, verifier: AsyncMock
    ) -> None:
        await rail.create(store.session(), "user-1", "a@example.com", 50000)
        verifier.outcome.return_value = (GatewayOutcome.FAILURE, _row("FL", "Failed"))

        result = await rail.status(store.session(), "user-1", "ORD-1")

        assert result.status == "FAIL"
        assert store.attempts["ORD-1"].status == "FAILED"
        assert store.payments == {}

    async def test_expired_pending_is_flagged_not_completed(
        self, rail: QrPromptPayRail, store: FakeLedgerStore, clock: Clock
    ) -> None:
        await rail.create(store.session(), "user-1", "a@example.com", 50000)
        clock.now = T0 + timedelta(minutes=15, seconds=1)

        result = await rail.status(store.session(), "user-1", "ORD-1")

        assert result.status == "PENDING"
        assert result.expired is True
        assert store.attempts["ORD-1"].status == "PENDING"
        assert store.payments == {}

    async def test_late_success_after_expiry_still_recorded(
        self,
        rail: QrPromptPayRail,
        store: FakeLedgerStore,
        verifier: AsyncMock,
        clock: Clock,
    ) -> None:
        await rail.create(store.session(), "user-1", "a@example.com", 50000)
        clock.now = T0 + timedelta(minutes=20)
        verifier.outcome.return_value = (GatewayOutcome.SUCCESS, _row("CP", "Paid"))

        result = await rail.status(store.session(), "user-1", "ORD-1")

        assert result.status == "SUCCESS"
        assert result.expired is False
        assert store.balances["user-1"] == 50000

    async def test_other_users_attempt_is_not_found(
        self, rail: QrPromptPayRail, store: FakeLedgerStore
    ) -> None:
        await rail.create(store.session(), "user-1", "a@example.com", 50000)

        with pytest.raises(QrPaymentNotFoundError):
            await rail.status(store.session(), "user-2", "ORD-1")

    async def test_unknown_reference(self, rail: QrPromptPayRail, store: FakeLedgerStore) -> None:
        with pytest.raises(QrPaymentNotFoundError):
            await rail.status(store.session(), "user-1", "NOPE")


class TestCancel:
    async def test_cancel_pending(self, rail: QrPromptPayRail, store: FakeLedgerStore) -> None:
        await rail.create(store.session(), "user-1", "a@example.com", 50000)

        result = await rail.cancel(store.session(), "user-1", "ORD-1")

        assert result.ok is True
        assert result.status == "CANCELLED"
        assert store.attempts["ORD-1"].status == "CANCELLED"

    async def test_cancel_is_idempotent(
        self, rail: QrPromptPayRail, store: FakeLedgerStore
    ) -> None:
        await rail.create(store.session(), "user-1", "a@example.com", 50000)
        await rail.cancel(store.session(), "user-1", "ORD-1")

        result = await rail.cancel(store.session(), "user-1", "ORD-1")

        assert result.ok is True
        assert result.status == "CANCELLED"

    async def test_cancel_completed_is_a_no_op(
        self, rail: QrPromptPayRail, store: FakeLedgerStore, verifier: AsyncMock
    ) -> None:
        await rail.create(store.session(), "user-1", "a@example.com", 50000)
        verifier.outcome.return_value = (GatewayOutcome.SUCCESS, _row("CP", "Paid"))
        await rail.status(store.session(), "user-1", "ORD-1")

        result = await rail.cancel(store.session(), "user-1", "ORD-1")

        assert result.ok is True
        assert result.status == "SUCCESS"
        assert store.attempts["ORD-1"].status == "COMPLETED"

    async def test_cancelled_attempt_is_not_polled(
        self, rail: QrPromptPayRail, store: FakeLedgerStore, verifier: AsyncMock
    ) -> None:
        await rail.create(store.session(), "user-1", "a@example.com", 50000)
        await rail.cancel(store.session(), "user-1", "ORD-1")

        result = await rail.status(store.session(), "user-1", "ORD-1")

        assert result.status == "CANCELLED"
        verifier.outcome.assert_not_called()

    async def test_cancel_other_users_attempt(
        self, rail: QrPromptPayRail, store: FakeLedgerStore
    ) -> None:
        await rail.create(store.session(), "user-1", "a@example.com", 50000)

        with pytest.raises(QrPaymentNotFoundError):
            await rail.cancel(store.session(), "user-2", "ORD-1")
