"""Idempotency guard — advisory fast-fail on already-recorded references.

The authoritative check is the `uq_payment_records_reference` constraint hit
by the ledger writer; a lookup followed by an insert always leaves a race
window between requests.
"""

from sqlalchemy.ext.asyncio import AsyncSession

from src.dn_common.errors import PaymentAlreadyUsedError
from src.dn_payment.domain.repository import PaymentRepositoryProtocol
from src.dn_payment.infrastructure.persistence import PaymentRepository


class IdempotencyGuard:
    def __init__(self, repo: PaymentRepositoryProtocol | None = None) -> None:
        self._repo: PaymentRepositoryProtocol = repo or PaymentRepository()

    async def is_already_used(self, db: AsyncSession, reference: str) -> bool:
        return await self._repo.reference_exists(db, reference)

    async def ensure_unused(self, db: AsyncSession, reference: str) -> None:
        if await self.is_already_used(db, reference):
            raise PaymentAlreadyUsedError(reference)
