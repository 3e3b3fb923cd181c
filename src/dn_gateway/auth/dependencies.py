"""FastAPI session dependencies.

Every payment operation receives the resolved user explicitly from one of
these; nothing deeper in the pipeline looks the session up on its own.

    @router.get("/protected")
    async def protected(user: UserModel = Depends(get_current_user)): ...

    @router.post("/anonymous-ok")
    async def open_(user: UserModel | None = Depends(get_optional_user)): ...
"""

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.dn_common.database import get_db_session
from src.dn_common.errors import AccountDisabledError, InvalidCredentialsError
from src.dn_gateway.auth.jwt_handler import decode_token
from src.dn_gateway.user.db_models import UserModel

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/v1/auth/login")
optional_oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/v1/auth/login", auto_error=False)

_CREDENTIALS_EXCEPTION = HTTPException(
    status_code=status.HTTP_401_UNAUTHORIZED,
    detail="Invalid or expired token",
    headers={"WWW-Authenticate": "Bearer"},
)


async def _resolve_user(token: str, db: AsyncSession) -> UserModel:
    try:
        payload = decode_token(token, expected_type="access")
    except InvalidCredentialsError:
        raise _CREDENTIALS_EXCEPTION from None

    user_id: str | None = payload.get("sub")
    if not user_id:
        raise _CREDENTIALS_EXCEPTION

    result = await db.execute(select(UserModel).where(UserModel.id == user_id))
    user = result.scalar_one_or_none()
    if user is None:
        raise _CREDENTIALS_EXCEPTION

    if not user.is_active:
        raise AccountDisabledError()

    return user


async def get_current_user(
    token: str = Depends(oauth2_scheme),
    db: AsyncSession = Depends(get_db_session),
) -> UserModel:
    """Require a valid Bearer token; HTTP 401 otherwise."""
    return await _resolve_user(token, db)


async def get_optional_user(
    token: str | None = Depends(optional_oauth2_scheme),
    db: AsyncSession = Depends(get_db_session),
) -> UserModel | None:
    """Anonymous callers get None; a present but invalid token is still a 401."""
    if token is None:
        return None
    return await _resolve_user(token, db)
