"""UTC clock helpers for QR expiry windows and event timestamps."""

from datetime import datetime, timezone


def utc_now() -> datetime:
    """Return timezone-aware UTC now."""
    return datetime.now(timezone.utc)


def seconds_until(deadline: datetime, now: datetime) -> float:
    """Seconds left before `deadline`; zero or negative once it has passed."""
    return (deadline - now).total_seconds()
