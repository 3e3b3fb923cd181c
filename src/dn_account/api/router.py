"""dn_account REST API — balance of the signed-in donor."""

from typing import Annotated

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.dn_account.application.service import AccountApplicationService
from src.dn_common.database import get_db_session
from src.dn_common.response import ApiResponse, success_response
from src.dn_gateway.auth.dependencies import get_current_user
from src.dn_gateway.middleware.request_log import get_request_id
from src.dn_gateway.user.db_models import UserModel

router = APIRouter(prefix="/account", tags=["account"])

_service = AccountApplicationService()


@router.get("/balance")
async def get_balance(
    current_user: Annotated[UserModel, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.get_balance(db, str(current_user.id))
    resp = success_response(data.model_dump())
    resp.request_id = get_request_id(request)
    return resp
