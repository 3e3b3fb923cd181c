"""Repository Protocol — dependency inversion for testability.

Unit tests inject a fake that conforms to this Protocol.
"""

from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.dn_account.domain.models import UserBalance


class BalanceRepositoryProtocol(Protocol):
    async def get_balance(self, db: AsyncSession, user_id: str) -> UserBalance | None: ...

    async def credit(self, db: AsyncSession, user_id: str, amount: int) -> UserBalance | None: ...
