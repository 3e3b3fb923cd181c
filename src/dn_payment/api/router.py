"""dn_payment REST API — the three payment rails plus donation history.

Rails are provided through dependencies so tests can swap them with
`app.dependency_overrides`.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, File, Form, Query, Request, UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from src.dn_common.database import get_db_session
from src.dn_common.response import ApiResponse, success_response
from src.dn_gateway.auth.dependencies import get_current_user, get_optional_user
from src.dn_gateway.middleware.request_log import get_request_id
from src.dn_gateway.user.db_models import UserModel
from src.dn_payment.application.bank_slip import BankSlipRail, SlipUpload
from src.dn_payment.application.card_gateway import CardGatewayRail
from src.dn_payment.application.qr_promptpay import QrPromptPayRail
from src.dn_payment.application.query_service import PaymentQueryService
from src.dn_payment.application.schemas import QrCreateRequest

router = APIRouter(prefix="/payments", tags=["payments"])

_bank_slip_rail = BankSlipRail()
_qr_rail = QrPromptPayRail()
_card_rail = CardGatewayRail()
_query_service = PaymentQueryService()


def get_bank_slip_rail() -> BankSlipRail:
    return _bank_slip_rail


def get_qr_rail() -> QrPromptPayRail:
    return _qr_rail


def get_card_rail() -> CardGatewayRail:
    return _card_rail


def get_query_service() -> PaymentQueryService:
    return _query_service


def _respond(request: Request, data: object, message: str = "success") -> ApiResponse:
    resp = success_response(data, message=message)
    resp.request_id = get_request_id(request)
    return resp


# ---------------------------------------------------------------------------
# Bank slip
# ---------------------------------------------------------------------------


@router.post("/slip", summary="Submit a bank-transfer slip")
async def submit_slip(
    request: Request,
    db: Annotated[AsyncSession, Depends(get_db_session)],
    rail: Annotated[BankSlipRail, Depends(get_bank_slip_rail)],
    current_user: Annotated[UserModel | None, Depends(get_optional_user)],
    file: UploadFile | None = File(None),
    project_id: int | None = Form(None, gt=0, le=2_147_483_647),
) -> ApiResponse:
    upload = None
    if file is not None:
        upload = SlipUpload(
            filename=file.filename,
            content_type=file.content_type,
            content=await file.read(),
        )
    data = await rail.submit(
        db,
        upload,
        str(current_user.id) if current_user else None,
        project_id,
    )
    return _respond(request, data.model_dump())


# ---------------------------------------------------------------------------
# QR / PromptPay
# ---------------------------------------------------------------------------


@router.post("/qr", summary="Create a PromptPay QR")
async def create_qr(
    request: Request,
    body: QrCreateRequest,
    db: Annotated[AsyncSession, Depends(get_db_session)],
    rail: Annotated[QrPromptPayRail, Depends(get_qr_rail)],
    current_user: Annotated[UserModel, Depends(get_current_user)],
) -> ApiResponse:
    data = await rail.create(
        db, str(current_user.id), current_user.email, body.amount_satang, body.project_id
    )
    return _respond(request, data.model_dump())


@router.get("/qr/pending", summary="Resume the latest unexpired QR")
async def pending_qr(
    request: Request,
    db: Annotated[AsyncSession, Depends(get_db_session)],
    rail: Annotated[QrPromptPayRail, Depends(get_qr_rail)],
    current_user: Annotated[UserModel, Depends(get_current_user)],
) -> ApiResponse:
    data = await rail.pending(db, str(current_user.id))
    return _respond(request, data.model_dump() if data else None)


@router.get("/qr/{reference}", summary="Poll QR payment status")
async def qr_status(
    reference: str,
    request: Request,
    db: Annotated[AsyncSession, Depends(get_db_session)],
    rail: Annotated[QrPromptPayRail, Depends(get_qr_rail)],
    current_user: Annotated[UserModel, Depends(get_current_user)],
) -> ApiResponse:
    data = await rail.status(db, str(current_user.id), reference)
    return _respond(request, data.model_dump())


@router.delete("/qr/{reference}", summary="Cancel a pending QR")
async def cancel_qr(
    reference: str,
    request: Request,
    db: Annotated[AsyncSession, Depends(get_db_session)],
    rail: Annotated[QrPromptPayRail, Depends(get_qr_rail)],
    current_user: Annotated[UserModel, Depends(get_current_user)],
) -> ApiResponse:
    data = await rail.cancel(db, str(current_user.id), reference)
    return _respond(request, data.model_dump())


# ---------------------------------------------------------------------------
# Gateway webhook
# ---------------------------------------------------------------------------


@router.post("/gateway/callback", summary="Payment gateway callback")
async def gateway_callback(
    request: Request,
    db: Annotated[AsyncSession, Depends(get_db_session)],
    rail: Annotated[CardGatewayRail, Depends(get_card_rail)],
) -> ApiResponse:
    form = await request.form()
    fields = {key: value for key, value in form.items() if isinstance(value, str)}
    data = await rail.handle_callback(db, fields)
    return _respond(request, data.model_dump())


# ---------------------------------------------------------------------------
# Read side
# ---------------------------------------------------------------------------


@router.get("", summary="Donation history of the signed-in donor")
async def list_payments(
    request: Request,
    db: Annotated[AsyncSession, Depends(get_db_session)],
    service: Annotated[PaymentQueryService, Depends(get_query_service)],
    current_user: Annotated[UserModel, Depends(get_current_user)],
    cursor: str | None = Query(None, description="Pagination cursor (opaque Base64)"),
    limit: int = Query(20, ge=1, le=100, description="Items per page"),
) -> ApiResponse:
    data = await service.list_payments(db, str(current_user.id), limit, cursor)
    return _respond(request, data.model_dump())


@router.get("/total", summary="Public donation total")
async def donation_total(
    request: Request,
    db: Annotated[AsyncSession, Depends(get_db_session)],
    service: Annotated[PaymentQueryService, Depends(get_query_service)],
) -> ApiResponse:
    data = await service.donation_total(db)
    return _respond(request, data.model_dump())
