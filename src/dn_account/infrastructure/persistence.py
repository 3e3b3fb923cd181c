"""BalanceRepository — concrete implementation of BalanceRepositoryProtocol.

Credits are a single `UPDATE ... RETURNING`: the row lock it takes is held
until the caller's transaction ends, so concurrent credits to one user
serialise instead of losing an increment.

Transaction ownership: the CALLER commits or rolls back.
"""

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.dn_account.domain.models import UserBalance

_GET_BALANCE_SQL = text("""
    SELECT user_id, balance, updated_at
    FROM user_balances
    WHERE user_id = :user_id
""")

_CREDIT_SQL = text("""
    UPDATE user_balances
    SET balance = balance + :amount,
        updated_at = NOW()
    WHERE user_id = :user_id
    RETURNING user_id, balance, updated_at
""")


def _row_to_balance(row: object) -> UserBalance:
    return UserBalance(
        user_id=row.user_id,  # type: ignore[attr-defined]
        balance=row.balance,  # type: ignore[attr-defined]
        updated_at=row.updated_at,  # type: ignore[attr-defined]
    )


class BalanceRepository:
    async def get_balance(self, db: AsyncSession, user_id: str) -> UserBalance | None:
        result = await db.execute(_GET_BALANCE_SQL, {"user_id": user_id})
        row = result.fetchone()
        return _row_to_balance(row) if row else None

    async def credit(self, db: AsyncSession, user_id: str, amount: int) -> UserBalance | None:
        """Add `amount` satang; None when the user has no balance row."""
        result = await db.execute(_CREDIT_SQL, {"user_id": user_id, "amount": amount})
        row = result.fetchone()
        return _row_to_balance(row) if row else None
