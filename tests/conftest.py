from __future__ import annotations

from datetime import date, datetime, timezone

import pytest

import db
from models import Member
from settings import settings

NOW = date(2024, 6, 15)


@pytest.fixture
def store(tmp_path, monkeypatch):
    """Point the member store at a throwaway SQLite file."""
    monkeypatch.setattr(settings, "DB_FILE", tmp_path / "gym.db")
    db._create_tables()
    yield db


def make_member(end, start=date(2024, 5, 1), first_name="Test", last_name="Member",
                email=None, member_id=None) -> Member:
    stamp = datetime(2024, 5, 1, tzinfo=timezone.utc)
    return Member(
        id=member_id or f"{first_name}-{last_name}-{end}".lower(),
        first_name=first_name,
        last_name=last_name,
        email=email or f"{first_name}.{last_name}@example.com".lower(),
        subscription_start_date=start,
        subscription_end_date=end,
        created_at=stamp,
        updated_at=stamp,
    )


def member_data(**overrides) -> dict:
    data = {
        "first_name": "Mona",
        "last_name": "Ali",
        "email": "mona@example.com",
        "phone_number": "01000000002",
        "picture_url": "",
        "subscription_start_date": "2024-06-01",
        "subscription_end_date": "2024-07-01",
    }
    data.update(overrides)
    return data
