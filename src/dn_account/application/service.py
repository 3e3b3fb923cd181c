"""AccountApplicationService — read side of the donor balance.

Credits never go through here: the payment ledger writer is the only path
that changes a balance.
"""

from sqlalchemy.ext.asyncio import AsyncSession

from src.dn_account.application.schemas import BalanceResponse
from src.dn_account.domain.repository import BalanceRepositoryProtocol
from src.dn_account.infrastructure.persistence import BalanceRepository
from src.dn_common.errors import BalanceNotFoundError


class AccountApplicationService:
    def __init__(self, repo: BalanceRepositoryProtocol | None = None) -> None:
        self._repo: BalanceRepositoryProtocol = repo or BalanceRepository()

    async def get_balance(self, db: AsyncSession, user_id: str) -> BalanceResponse:
        balance = await self._repo.get_balance(db, user_id)
        if balance is None:
            raise BalanceNotFoundError(user_id)
        return BalanceResponse.from_satang(user_id=user_id, balance=balance.balance)
