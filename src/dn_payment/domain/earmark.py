"""Project earmark smuggled through the gateway's free-text product detail.

Never raises: an unreadable earmark means the general fund, not a failed
payment.
"""

import re

_DELIMITED_RE = re.compile(r"_([^_\s]+)")
_LEADING_DIGITS_RE = re.compile(r"^\d+")
_ANY_DIGITS_RE = re.compile(r"\d+")

# fundraising_projects.id is a SERIAL (int4)
_MAX_PROJECT_ID = 2_147_483_647


def parse_earmark(product_detail: str | None) -> int | None:
    """'donation_12' -> 12, 'donation_general' -> None, 'project 7 gift' -> 7."""
    if not product_detail:
        return None

    delimited = _DELIMITED_RE.search(product_detail)
    if delimited:
        token = delimited.group(1)
        if token.lower() == "general":
            return None
        leading = _LEADING_DIGITS_RE.match(token)
        if leading:
            return _positive(leading.group(0))

    found = _ANY_DIGITS_RE.search(product_detail)
    return _positive(found.group(0)) if found else None


def _positive(digits: str) -> int | None:
    value = int(digits)
    return value if 0 < value <= _MAX_PROJECT_ID else None
