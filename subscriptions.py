"""
subscriptions.py
Subscription status rules and dashboard metrics.

Everything here is pure: members are only read, and "now" can be injected
(defaults to the wall clock) so results are reproducible in tests.
All comparisons are made on calendar days.
"""

from __future__ import annotations

import math
from datetime import date, datetime, timedelta
from typing import Iterable

from models import DashboardMetrics, DateLike, Member, StatusResult, SubscriptionStatus, parse_date

UPCOMING_WINDOW_DAYS = 7
EXPIRED_RECENT_DAYS = 7

STATUS_FILTERS = ("all", "active", "expired")


def reference_day(now: DateLike | None = None) -> date:
    if now is None:
        return datetime.now().date()
    return parse_date(now)


def days_until(end_date: DateLike, now: DateLike | None = None) -> int:
    """
    Calendar days from today until end_date.
    Returns negative numbers if the date has passed.
    """
    return (parse_date(end_date) - reference_day(now)).days


def classify_subscription(end_date: DateLike, now: DateLike | None = None) -> StatusResult:
    days = days_until(end_date, now)

    if days < 0:
        return StatusResult(SubscriptionStatus.EXPIRED, f"Expired {-days} days ago", days)
    if days == 0:
        return StatusResult(SubscriptionStatus.EXPIRES_TODAY, "Expires today", days)
    if days <= UPCOMING_WINDOW_DAYS:
        return StatusResult(SubscriptionStatus.EXPIRING_SOON, f"Expires in {days} days", days)
    return StatusResult(SubscriptionStatus.ACTIVE, "Active", days)


def member_status(member: Member, now: DateLike | None = None) -> StatusResult:
    return classify_subscription(member.subscription_end_date, now)


def renewal_percentage(renewed: int, total: int) -> int:
    if total <= 0:
        return 0
    # half-up, so 12.5 -> 13
    return int(math.floor(renewed / total * 100 + 0.5))


def compute_dashboard_metrics(members: Iterable[Member], now: DateLike | None = None) -> DashboardMetrics:
    members = list(members)
    today = reference_day(now)
    month_start = today.replace(day=1)
    week_ago = today - timedelta(days=EXPIRED_RECENT_DAYS)

    renewals_today: list[Member] = []
    upcoming: list[Member] = []
    expired: list[Member] = []
    expired_this_week: list[Member] = []
    active: list[Member] = []
    renewed: list[Member] = []

    for m in members:
        end = parse_date(m.subscription_end_date)
        start = parse_date(m.subscription_start_date)
        diff = (end - today).days

        if diff == 0:
            renewals_today.append(m)
        elif 0 < diff <= UPCOMING_WINDOW_DAYS:
            upcoming.append(m)

        if end < today:
            expired.append(m)
            if end >= week_ago:
                expired_this_week.append(m)
        else:
            active.append(m)

        if start >= month_start:
            renewed.append(m)

    return DashboardMetrics(
        total=len(members),
        renewals_today=renewals_today,
        upcoming_renewals=upcoming,
        expired=expired,
        expired_this_week=expired_this_week,
        active_members=active,
        renewed_this_month=renewed,
        renewal_percentage=renewal_percentage(len(renewed), len(members)),
    )


def filter_members(members: Iterable[Member], search: str = "", status_filter: str = "all",
                   now: DateLike | None = None) -> list[Member]:
    """
    Search is a case-insensitive substring match over first name, last name and email.
    "active" keeps everyone not yet expired (expiring soon and expiring today included).
    """
    if status_filter not in STATUS_FILTERS:
        raise ValueError(f"Unknown status filter: {status_filter!r}")

    term = search.strip().lower()
    out: list[Member] = []
    for m in members:
        if term and not any(term in (v or "").lower() for v in (m.first_name, m.last_name, m.email)):
            continue
        if status_filter != "all":
            expired = member_status(m, now).state == SubscriptionStatus.EXPIRED
            if expired != (status_filter == "expired"):
                continue
        out.append(m)
    return out
