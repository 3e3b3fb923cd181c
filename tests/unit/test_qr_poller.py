"""Client poll loop: terminal statuses, interval, and the 15-minute deadline."""

from datetime import UTC, datetime, timedelta

import httpx
import pytest

from src.dn_common.errors import QrPaymentExpiredError, UpstreamUnavailableError
from src.dn_payment.application.qr_poller import ApiStatusFetcher, QrStatusPoller

T0 = datetime(2026, 10, 18, 9, 0, tzinfo=UTC)


class FakeTime:
    """Clock and sleep sharing one virtual timeline."""

    def __init__(self, start: datetime = T0) -> None:
        self.now = start
        self.sleeps: list[float] = []

    def clock(self) -> datetime:
        return self.now

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += timedelta(seconds=seconds)


def _fetcher(statuses: list[str]):  # type: ignore[no-untyped-def]
    calls: list[str] = []

    async def fetch(reference: str) -> str:
        calls.append(reference)
        return statuses[min(len(calls), len(statuses)) - 1]

    fetch.calls = calls  # type: ignore[attr-defined]
    return fetch


class TestQrStatusPoller:
    async def test_returns_on_success(self) -> None:
        t = FakeTime()
        fetch = _fetcher(["PENDING", "PENDING", "SUCCESS"])
        poller = QrStatusPoller(fetch, clock=t.clock, sleep=t.sleep)

        assert await poller.wait("ORD-1", T0) == "SUCCESS"
        assert t.sleeps == [3.0, 3.0]

    @pytest.mark.parametrize("terminal", ["FAIL", "CANCELLED"])
    async def test_returns_on_other_terminal_statuses(self, terminal: str) -> None:
        t = FakeTime()
        poller = QrStatusPoller(_fetcher([terminal]), clock=t.clock, sleep=t.sleep)
        assert await poller.wait("ORD-1", T0) == terminal

    async def test_stops_at_deadline(self) -> None:
        t = FakeTime()
        fetch = _fetcher(["PENDING"])
        poller = QrStatusPoller(fetch, clock=t.clock, sleep=t.sleep)

        with pytest.raises(QrPaymentExpiredError):
            await poller.wait("ORD-1", T0)

        assert t.now == T0 + timedelta(minutes=15)
        assert len(fetch.calls) == 300  # type: ignore[attr-defined]

    async def test_resumed_attempt_already_expired(self) -> None:
        t = FakeTime(T0 + timedelta(minutes=16))
        fetch = _fetcher(["SUCCESS"])
        poller = QrStatusPoller(fetch, clock=t.clock, sleep=t.sleep)

        with pytest.raises(QrPaymentExpiredError):
            await poller.wait("ORD-1", T0)
        assert fetch.calls == []  # type: ignore[attr-defined]

    async def test_last_sleep_shortened_to_deadline(self) -> None:
        t = FakeTime(T0 + timedelta(minutes=15) - timedelta(seconds=1))
        poller = QrStatusPoller(_fetcher(["PENDING"]), clock=t.clock, sleep=t.sleep)

        with pytest.raises(QrPaymentExpiredError):
            await poller.wait("ORD-1", T0)
        assert t.sleeps == [1.0]


class TestApiStatusFetcher:
    async def test_reads_status_from_envelope(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.url.path == "/api/v1/payments/qr/ORD-1"
            assert request.headers["Authorization"] == "Bearer tok"
            return httpx.Response(200, json={"code": 0, "data": {"status": "SUCCESS"}})

        fetch = ApiStatusFetcher("http://svc/", "tok", transport=httpx.MockTransport(handler))
        assert await fetch("ORD-1") == "SUCCESS"

    async def test_http_error(self) -> None:
        transport = httpx.MockTransport(lambda request: httpx.Response(503))
        fetch = ApiStatusFetcher("http://svc", "tok", transport=transport)
        with pytest.raises(UpstreamUnavailableError):
            await fetch("ORD-1")
