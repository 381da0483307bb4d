"""
models.py
Lightweight domain types (member record, subscription status, dashboard metrics)
and the date parsing shared by the store and the status rules.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, timezone

# Fields a caller may supply on create / patch on update
MEMBER_FIELDS = (
    "first_name",
    "last_name",
    "email",
    "phone_number",
    "picture_url",
    "subscription_start_date",
    "subscription_end_date",
)

DATE_FIELDS = ("subscription_start_date", "subscription_end_date")

# what callers may pass wherever a calendar day is expected
DateLike = date | datetime | str


class InvalidDateError(ValueError):
    """Raised when a member date cannot be read as a calendar date."""


class SubscriptionStatus:
    ACTIVE = "active"
    EXPIRING_SOON = "expiring_soon"
    EXPIRES_TODAY = "expires_today"
    EXPIRED = "expired"

    ALL = (ACTIVE, EXPIRING_SOON, EXPIRES_TODAY, EXPIRED)


def parse_date(value: DateLike) -> date:
    """
    Accepts a date, a datetime (truncated to its day) or an ISO string
    ("2024-06-15" or a full ISO timestamp). Anything else is a data-quality error.
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        text = value.strip()
        try:
            if len(text) > 10:
                return datetime.fromisoformat(text).date()
            return date.fromisoformat(text)
        except ValueError as exc:
            raise InvalidDateError(f"Invalid date: {value!r}") from exc
    raise InvalidDateError(f"Invalid date: {value!r}")


def parse_timestamp(value) -> datetime:
    if isinstance(value, datetime):
        return value
    try:
        return datetime.fromisoformat(str(value))
    except ValueError as exc:
        raise InvalidDateError(f"Invalid timestamp: {value!r}") from exc


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class Member:
    id: str
    first_name: str
    last_name: str
    email: str
    subscription_start_date: date
    subscription_end_date: date
    created_at: datetime
    updated_at: datetime
    phone_number: str | None = None
    picture_url: str | None = None

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    @property
    def initials(self) -> str:
        return "".join(part[:1] for part in (self.first_name, self.last_name)).upper()

    @classmethod
    def from_row(cls, row) -> "Member":
        return cls(
            id=row["id"],
            first_name=row["first_name"],
            last_name=row["last_name"],
            email=row["email"],
            phone_number=row["phone_number"],
            picture_url=row["picture_url"],
            subscription_start_date=parse_date(row["subscription_start_date"]),
            subscription_end_date=parse_date(row["subscription_end_date"]),
            created_at=parse_timestamp(row["created_at"]),
            updated_at=parse_timestamp(row["updated_at"]),
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "first_name": self.first_name,
            "last_name": self.last_name,
            "email": self.email,
            "phone_number": self.phone_number,
            "picture_url": self.picture_url,
            "subscription_start_date": self.subscription_start_date.isoformat(),
            "subscription_end_date": self.subscription_end_date.isoformat(),
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
        }


@dataclass(frozen=True)
class StatusResult:
    state: str  # one of SubscriptionStatus.ALL
    text: str
    days: int  # end day minus today; negative once expired


@dataclass(frozen=True)
class DashboardMetrics:
    total: int
    renewals_today: list[Member] = field(default_factory=list)
    upcoming_renewals: list[Member] = field(default_factory=list)
    expired: list[Member] = field(default_factory=list)
    expired_this_week: list[Member] = field(default_factory=list)
    active_members: list[Member] = field(default_factory=list)
    renewed_this_month: list[Member] = field(default_factory=list)
    renewal_percentage: int = 0
