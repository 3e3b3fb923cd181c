"""Read side of dn_payment: donor history and the public donation total."""

from sqlalchemy.ext.asyncio import AsyncSession

from src.dn_common.satang import satang_to_display
from src.dn_payment.application.schemas import (
    DonationTotalResponse,
    PaymentItem,
    PaymentListResponse,
    cursor_decode,
    cursor_encode,
)
from src.dn_payment.domain.repository import PaymentRepositoryProtocol
from src.dn_payment.infrastructure.persistence import PaymentRepository


class PaymentQueryService:
    def __init__(self, repo: PaymentRepositoryProtocol | None = None) -> None:
        self._repo: PaymentRepositoryProtocol = repo or PaymentRepository()

    async def list_payments(
        self,
        db: AsyncSession,
        user_id: str,
        limit: int = 20,
        cursor: str | None = None,
    ) -> PaymentListResponse:
        cursor_id = cursor_decode(cursor)
        rows = await self._repo.list_by_user(db, user_id, cursor_id, limit + 1)
        has_more = len(rows) > limit
        items = rows[:limit]
        next_cursor = cursor_encode(items[-1].id) if has_more and items else None
        return PaymentListResponse(
            items=[PaymentItem.from_record(r) for r in items],
            next_cursor=next_cursor,
            has_more=has_more,
        )

    async def donation_total(self, db: AsyncSession) -> DonationTotalResponse:
        total = await self._repo.completed_total(db)
        return DonationTotalResponse(
            count=total.count,
            donor_count=total.donors,
            total_satang=total.total,
            total_display=satang_to_display(total.total),
        )
