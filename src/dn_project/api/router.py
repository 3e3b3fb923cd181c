"""Public progress bar data for a fundraising project."""

from typing import Annotated

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.dn_common.database import get_db_session
from src.dn_common.response import ApiResponse, success_response
from src.dn_gateway.middleware.request_log import get_request_id
from src.dn_project.application.service import ProjectApplicationService

router = APIRouter(prefix="/projects", tags=["projects"])

_service = ProjectApplicationService()


@router.get("/{project_id}/progress")
async def get_progress(
    project_id: int,
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.get_progress(db, project_id)
    resp = success_response(data.model_dump())
    resp.request_id = get_request_id(request)
    return resp
