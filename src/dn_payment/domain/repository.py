"""Repository Protocols for dn_payment.

Unit tests inject in-memory fakes conforming to these Protocols; the
infrastructure layer provides the PostgreSQL implementations.
"""

from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.dn_payment.domain.models import (
    DonationTotal,
    LedgerCredit,
    PaymentRecord,
    QrPaymentAttempt,
)


class PaymentRepositoryProtocol(Protocol):
    async def reference_exists(self, db: AsyncSession, reference: str) -> bool: ...

    async def insert_completed(
        self,
        db: AsyncSession,
        credit: LedgerCredit,
        project_id: int | None,
        status_label: str,
    ) -> PaymentRecord: ...

    async def list_by_user(
        self, db: AsyncSession, user_id: str, cursor_id: int | None, limit: int
    ) -> list[PaymentRecord]: ...

    async def completed_total(self, db: AsyncSession) -> DonationTotal: ...


class QrAttemptRepositoryProtocol(Protocol):
    async def insert(self, db: AsyncSession, attempt: QrPaymentAttempt) -> None: ...

    async def get(self, db: AsyncSession, reference: str) -> QrPaymentAttempt | None: ...

    async def latest_pending(self, db: AsyncSession, user_id: str) -> QrPaymentAttempt | None: ...

    async def transition(
        self, db: AsyncSession, reference: str, new_status: str
    ) -> bool: ...
