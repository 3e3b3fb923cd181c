"""Fundraising project totals.

Only the two numeric fields matter to the ledger: `current_amount` and the
derived `progress_percentage`. They are always written together from
`credited()`, so a reader never observes one without the other.
"""

from dataclasses import dataclass, replace
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal

_HUNDRED = Decimal(100)
_TWO_PLACES = Decimal("0.01")


def compute_progress(current_amount: int, target_amount: int) -> Decimal:
    """clamp(current / target, 0, 1) * 100, two decimal places.

    A zero (or negative) target is treated as 1 satang so the division is
    always defined; the CHECK constraint keeps such rows out of the table.
    """
    target = target_amount if target_amount > 0 else 1
    ratio = Decimal(current_amount) / Decimal(target)
    ratio = min(max(ratio, Decimal(0)), Decimal(1))
    return (ratio * _HUNDRED).quantize(_TWO_PLACES, rounding=ROUND_HALF_UP)


@dataclass
class FundraisingProject:
    id: int
    title: str
    target_amount: int       # satang
    current_amount: int      # satang
    progress_percentage: Decimal
    updated_at: datetime | None = None

    def credited(self, amount: int) -> "FundraisingProject":
        """Project state after an earmarked donation of `amount` satang."""
        new_current = self.current_amount + amount
        return replace(
            self,
            current_amount=new_current,
            progress_percentage=compute_progress(new_current, self.target_amount),
        )
