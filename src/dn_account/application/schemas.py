"""Pydantic schemas for dn_account API."""

from pydantic import BaseModel

from src.dn_common.satang import satang_to_display


class BalanceResponse(BaseModel):
    user_id: str
    balance_satang: int
    balance_display: str

    @classmethod
    def from_satang(cls, user_id: str, balance: int) -> "BalanceResponse":
        return cls(
            user_id=user_id,
            balance_satang=balance,
            balance_display=satang_to_display(balance),
        )
