"""Global enums — must match DB CHECK constraints exactly."""

from enum import Enum


class PaymentStatus(str, Enum):
    PENDING = "PENDING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"
    CANCELLED = "CANCELLED"

    @property
    def is_terminal(self) -> bool:
        return self is not PaymentStatus.PENDING


class PaymentRail(str, Enum):
    BANK = "BANK"
    QR = "QR"
    CARD = "CARD"


# Human label stored on each payment record
STATUS_LABELS: dict[PaymentRail, str] = {
    PaymentRail.BANK: "โอนเงินผ่านธนาคารสำเร็จ",
    PaymentRail.QR: "ชำระผ่าน QR พร้อมเพย์สำเร็จ",
    PaymentRail.CARD: "ชำระเงินสำเร็จ",
}
