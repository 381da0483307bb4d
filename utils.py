"""
utils.py
Validation, display tables, exports, sample data.
"""

from __future__ import annotations

from datetime import timedelta

import pandas as pd

import db
from models import DateLike, InvalidDateError, Member, parse_date
from subscriptions import member_status, reference_day

TABLE_COLUMNS = [
    "id", "first_name", "last_name", "email", "phone_number",
    "subscription_start_date", "subscription_end_date", "status", "status_text",
]


def format_days(n: int) -> str:
    n = abs(n)
    return f"{n} day" if n == 1 else f"{n} days"


def validate_member_inputs(form: dict) -> list[str]:
    errors: list[str] = []
    if not (form.get("first_name") or "").strip():
        errors.append("First name is required.")
    if not (form.get("last_name") or "").strip():
        errors.append("Last name is required.")

    email = (form.get("email") or "").strip()
    local, _, domain = email.partition("@")
    if not email:
        errors.append("Email is required.")
    elif not local or not domain or "@" in domain:
        errors.append("Email must be a valid address.")

    start = form.get("subscription_start_date")
    end = form.get("subscription_end_date")
    if not start or not end:
        errors.append("Start and end dates are required.")
        return errors
    try:
        if parse_date(end) < parse_date(start):
            errors.append("End date must not be before start date.")
    except InvalidDateError:
        errors.append("Start/end dates must be valid ISO dates (YYYY-MM-DD).")
    return errors


def delete_confirm_key(member_id: str) -> str:
    # one confirmation per member, so a tick never carries over to another selection
    return f"del_confirm_{member_id}"


def members_frame(members: list[Member], now: DateLike | None = None) -> pd.DataFrame:
    rows = []
    for m in members:
        status = member_status(m, now)
        rows.append({**m.to_dict(), "status": status.state, "status_text": status.text})
    if not rows:
        return pd.DataFrame(columns=TABLE_COLUMNS)
    return pd.DataFrame(rows, columns=TABLE_COLUMNS)


def members_to_csv_bytes(members: list[Member], now: DateLike | None = None) -> bytes:
    return members_frame(members, now).to_csv(index=False).encode("utf-8")


def insert_sample_data(now: DateLike | None = None) -> list[Member]:
    """
    Insert 4 members, one per subscription status (adds new rows each run).
    """
    today = reference_day(now)

    samples = [
        # ends today, started this month
        ("Ahmed", "Hassan", "ahmed@example.com", "01000000001",
         today.replace(day=1), today),
        # expiring in 5 days
        ("Mona", "Ali", "mona@example.com", "01000000002",
         today - timedelta(days=25), today + timedelta(days=5)),
        # expired 2 days ago
        ("Omar", "Samy", "omar@example.com", None,
         today - timedelta(days=60), today - timedelta(days=2)),
        # active for another quarter
        ("Sara", "Nabil", "sara@example.com", "01000000004",
         today - timedelta(days=10), today + timedelta(days=80)),
    ]

    created = []
    for first, last, email, phone, start, end in samples:
        created.append(db.create_member({
            "first_name": first,
            "last_name": last,
            "email": email,
            "phone_number": phone,
            "subscription_start_date": start,
            "subscription_end_date": end,
        }))
    return created
