"""Bank-slip rail: uploaded transfer slip → verify → guard → ledger.

Anonymous donors may submit a slip to have it checked; only a signed-in
donor's slip is recorded and credited.
"""

import logging
from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncSession

from src.dn_common.enums import PaymentRail
from src.dn_common.errors import InvalidPayloadError
from src.dn_common.satang import satang_to_display
from src.dn_payment.application.guard import IdempotencyGuard
from src.dn_payment.application.ledger_writer import LedgerWriter
from src.dn_payment.application.schemas import SlipSubmissionResponse
from src.dn_payment.application.verifier import SlipVerifier
from src.dn_payment.domain.constants import MAX_SLIP_BYTES
from src.dn_payment.domain.models import LedgerCredit

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SlipUpload:
    filename: str | None
    content_type: str | None
    content: bytes


def validate_upload(upload: SlipUpload | None) -> bytes:
    if upload is None or not upload.content:
        raise InvalidPayloadError("invalid_payload")
    if len(upload.content) > MAX_SLIP_BYTES:
        raise InvalidPayloadError("image_size_too_large")
    if not (upload.content_type or "").startswith("image/"):
        raise InvalidPayloadError("invalid_image")
    return upload.content


class BankSlipRail:
    def __init__(
        self,
        verifier: SlipVerifier | None = None,
        guard: IdempotencyGuard | None = None,
        writer: LedgerWriter | None = None,
    ) -> None:
        self._verifier = verifier or SlipVerifier()
        self._guard = guard or IdempotencyGuard()
        self._writer = writer or LedgerWriter()

    async def submit(
        self,
        db: AsyncSession,
        upload: SlipUpload | None,
        user_id: str | None,
        project_id: int | None = None,
    ) -> SlipSubmissionResponse:
        image = validate_upload(upload)

        verified = await self._verifier.verify(image)
        await self._guard.ensure_unused(db, verified.reference)

        if user_id is None:
            logger.info("Anonymous slip %s verified; not credited", verified.reference)
            return SlipSubmissionResponse(
                reference=verified.reference,
                amount_satang=verified.amount,
                amount_display=satang_to_display(verified.amount),
                credited=False,
                project_id=project_id,
            )

        result = await self._writer.record(
            db,
            LedgerCredit(
                reference=verified.reference,
                amount=verified.amount,
                total=verified.amount,
                rail=PaymentRail.BANK,
                user_id=user_id,
                project_id=project_id,
                payer_identifier=verified.payer_identifier,
                raw_payload=verified.raw_payload,
            ),
        )
        return SlipSubmissionResponse(
            reference=verified.reference,
            amount_satang=verified.amount,
            amount_display=satang_to_display(verified.amount),
            credited=True,
            balance_after_satang=result.balance_after,
            project_id=result.record.project_id,
            project_progress=result.project_progress,
        )
