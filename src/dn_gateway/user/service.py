"""Donor account service: register, login, refresh, lookup by e-mail.

All DB operations use the injected AsyncSession. Registration runs inside a
transaction opened by the router via `async with db.begin()`.
"""

from sqlalchemy import select, text
from sqlalchemy.ext.asyncio import AsyncSession

from src.dn_common.errors import (
    AccountDisabledError,
    EmailExistsError,
    InvalidCredentialsError,
)
from src.dn_gateway.auth.jwt_handler import (
    create_access_token,
    create_refresh_token,
    decode_token,
)
from src.dn_gateway.auth.password import hash_password, verify_password
from src.dn_gateway.user.db_models import UserModel

_CREATE_BALANCE_SQL = text(
    "INSERT INTO user_balances (user_id, balance) VALUES (:user_id, 0)"
)


class UserService:
    """Stateless service — instantiate once, reuse across requests."""

    async def register(
        self,
        email: str,
        display_name: str,
        password: str,
        db: AsyncSession,
    ) -> UserModel:
        """Create the user and its zero balance row in the caller's transaction.

        The ledger writer assumes the balance row exists, so both inserts
        must commit together.
        """
        normalized = email.strip().lower()
        if await self.find_by_email(normalized, db) is not None:
            raise EmailExistsError()

        user = UserModel(
            email=normalized,
            display_name=display_name,
            password_hash=hash_password(password),
            is_active=True,
        )
        db.add(user)
        await db.flush()  # Get user.id without committing

        await db.execute(_CREATE_BALANCE_SQL, {"user_id": str(user.id)})
        return user

    async def login(
        self,
        email: str,
        password: str,
        db: AsyncSession,
    ) -> tuple[UserModel, str, str]:
        """Authenticate and return (user, access_token, refresh_token).

        Unknown e-mail and wrong password raise the same error on purpose.
        """
        user = await self.find_by_email(email.strip().lower(), db)

        if user is None or not verify_password(password, user.password_hash):
            raise InvalidCredentialsError()

        if not user.is_active:
            raise AccountDisabledError()

        return (
            user,
            create_access_token(str(user.id)),
            create_refresh_token(str(user.id)),
        )

    async def refresh(self, refresh_token: str) -> str:
        payload = decode_token(refresh_token, expected_type="refresh")
        return create_access_token(str(payload["sub"]))

    async def find_by_email(self, email: str, db: AsyncSession) -> UserModel | None:
        """Case-insensitive lookup; used by registration and the gateway webhook."""
        result = await db.execute(
            select(UserModel).where(UserModel.email == email.strip().lower())
        )
        return result.scalar_one_or_none()
