"""Gateway status vocabularies, normalised in one table.

Gateway versions report the same outcome with different codes and names
(`CP`/`Y`, `Paid`/`COMPLETED`). A new vocabulary is one more entry below.
"""

from enum import Enum


class GatewayOutcome(str, Enum):
    SUCCESS = "SUCCESS"
    FAILURE = "FAILURE"
    PENDING = "PENDING"


_STATUS_CODES: dict[str, GatewayOutcome] = {
    "CP": GatewayOutcome.SUCCESS,
    "Y": GatewayOutcome.SUCCESS,
    "PE": GatewayOutcome.PENDING,
    "N": GatewayOutcome.FAILURE,
    "FL": GatewayOutcome.FAILURE,
    "FAIL": GatewayOutcome.FAILURE,
    "C": GatewayOutcome.FAILURE,
    "CANCELLED": GatewayOutcome.FAILURE,
}

_STATUS_NAMES: dict[str, GatewayOutcome] = {
    "Paid": GatewayOutcome.SUCCESS,
    "COMPLETED": GatewayOutcome.SUCCESS,
    "Pending": GatewayOutcome.PENDING,
    "PENDING": GatewayOutcome.PENDING,
    "Failed": GatewayOutcome.FAILURE,
    "FAIL": GatewayOutcome.FAILURE,
    "Cancelled": GatewayOutcome.FAILURE,
    "CANCELLED": GatewayOutcome.FAILURE,
}


def normalize_status(code: str | None, name: str | None) -> GatewayOutcome:
    """One success match is enough; otherwise any failure; otherwise still pending."""
    outcomes = {
        _STATUS_CODES.get((code or "").strip()),
        _STATUS_NAMES.get((name or "").strip()),
    }
    if GatewayOutcome.SUCCESS in outcomes:
        return GatewayOutcome.SUCCESS
    if GatewayOutcome.FAILURE in outcomes:
        return GatewayOutcome.FAILURE
    return GatewayOutcome.PENDING
