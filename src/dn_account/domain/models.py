"""Domain models for dn_account — pure dataclasses, no SQLAlchemy dependency."""

from dataclasses import dataclass
from datetime import datetime


@dataclass
class UserBalance:
    user_id: str
    balance: int          # satang, never negative
    updated_at: datetime | None = None
