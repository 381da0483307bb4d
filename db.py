"""
db.py
SQLite helpers + initialization (creates DB/tables, inserts default admin)
and the member store used by the dashboard.
"""

from __future__ import annotations

import sqlite3
import uuid
from contextlib import contextmanager

from applog import get_logger
from models import DATE_FIELDS, MEMBER_FIELDS, InvalidDateError, Member, parse_date, utc_now
from settings import settings

logger = get_logger("gym-dashboard.db")

OPTIONAL_FIELDS = ("phone_number", "picture_url")


class MemberStoreError(Exception):
    """Generic failure of a member store operation; the message is safe to show to the user."""


@contextmanager
def get_conn():
    conn = sqlite3.connect(settings.DB_FILE, check_same_thread=False)
    conn.row_factory = sqlite3.Row
    try:
        yield conn
        conn.commit()
    finally:
        conn.close()


def execute(sql: str, params: tuple = ()) -> int:
    with get_conn() as conn:
        cur = conn.execute(sql, params)
        return cur.rowcount


def fetch_one(sql: str, params: tuple = ()):
    with get_conn() as conn:
        cur = conn.execute(sql, params)
        return cur.fetchone()


def fetch_all(sql: str, params: tuple = ()) -> list[sqlite3.Row]:
    with get_conn() as conn:
        cur = conn.execute(sql, params)
        return cur.fetchall()


def _create_tables() -> None:
    execute(
        """
        CREATE TABLE IF NOT EXISTS admin_users (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            username TEXT NOT NULL UNIQUE,
            password_hash TEXT NOT NULL,
            created_at TEXT NOT NULL
        )
        """
    )

    execute(
        """
        CREATE TABLE IF NOT EXISTS members (
            id TEXT PRIMARY KEY,
            first_name TEXT NOT NULL,
            last_name TEXT NOT NULL,
            email TEXT NOT NULL,
            phone_number TEXT,
            picture_url TEXT,
            subscription_start_date TEXT NOT NULL,
            subscription_end_date TEXT NOT NULL,
            created_at TEXT NOT NULL,
            updated_at TEXT NOT NULL
        )
        """
    )

    # Small settings table (used to force password change on first login)
    execute(
        """
        CREATE TABLE IF NOT EXISTS app_settings (
            key TEXT PRIMARY KEY,
            value TEXT NOT NULL
        )
        """
    )


def _get_setting(key: str, default: str | None = None) -> str | None:
    row = fetch_one("SELECT value FROM app_settings WHERE key = ?", (key,))
    if row:
        return str(row["value"])
    return default


def _set_setting(key: str, value: str) -> None:
    execute(
        """
        INSERT INTO app_settings(key, value) VALUES(?, ?)
        ON CONFLICT(key) DO UPDATE SET value=excluded.value
        """,
        (key, value),
    )


def init_db(default_admin_hash: str) -> None:
    """
    Initialize the database.
    - Create tables
    - Insert default admin if no admin exists
    - Force password change on first login
    """
    _create_tables()

    admin = fetch_one("SELECT id FROM admin_users LIMIT 1")
    if not admin:
        now = utc_now().isoformat(timespec="seconds")
        execute(
            "INSERT INTO admin_users(username, password_hash, created_at) VALUES(?,?,?)",
            ("admin", default_admin_hash, now),
        )
        _set_setting("force_password_change", "1")
        logger.info("Created default admin user")
    elif _get_setting("force_password_change") is None:
        _set_setting("force_password_change", "0")


def is_force_password_change() -> bool:
    return _get_setting("force_password_change") == "1"


def clear_force_password_change() -> None:
    _set_setting("force_password_change", "0")


# ---------- Member store ----------

def _clean_fields(data: dict, action: str) -> dict:
    unknown = set(data) - set(MEMBER_FIELDS)
    if unknown:
        logger.error("Rejected %s: unknown member fields %s", action, sorted(unknown))
        raise MemberStoreError(f"Failed to {action} member")

    fields = {}
    for key, value in data.items():
        if key in DATE_FIELDS:
            try:
                value = parse_date(value).isoformat()
            except InvalidDateError as exc:
                logger.error("Rejected %s: %s", action, exc)
                raise MemberStoreError(f"Failed to {action} member") from exc
        elif isinstance(value, str):
            value = value.strip()
        # optional contact fields are stored as NULL rather than ""
        if key in OPTIONAL_FIELDS and not value:
            value = None
        fields[key] = value
    return fields


def list_members() -> list[Member]:
    try:
        rows = fetch_all("SELECT * FROM members ORDER BY created_at DESC, rowid DESC")
    except sqlite3.Error as exc:
        logger.exception("Listing members failed")
        raise MemberStoreError("Failed to fetch members") from exc
    try:
        return [Member.from_row(r) for r in rows]
    except InvalidDateError as exc:
        logger.exception("Stored member has an unreadable date")
        raise MemberStoreError("Failed to fetch members") from exc


def get_member(member_id: str) -> Member | None:
    try:
        row = fetch_one("SELECT * FROM members WHERE id = ?", (member_id,))
        return Member.from_row(row) if row else None
    except (sqlite3.Error, InvalidDateError) as exc:
        logger.exception("Loading member %s failed", member_id)
        raise MemberStoreError("Failed to fetch member") from exc


def member_for_update(member_id: str) -> Member:
    """The member being edited; a member deleted in the meantime is an update failure."""
    member = get_member(member_id)
    if member is None:
        logger.error("Edit for unknown member %s", member_id)
        raise MemberStoreError("Failed to update member")
    return member


def create_member(data: dict) -> Member:
    fields = _clean_fields(data, "add")
    missing = [k for k in ("first_name", "last_name", "email", *DATE_FIELDS) if not fields.get(k)]
    if missing:
        logger.error("Rejected add: missing member fields %s", missing)
        raise MemberStoreError("Failed to add member")

    now = utc_now().isoformat()
    record = {k: fields.get(k) for k in MEMBER_FIELDS}
    record.update(id=str(uuid.uuid4()), created_at=now, updated_at=now)

    columns = ", ".join(record)
    placeholders = ", ".join("?" for _ in record)
    try:
        with get_conn() as conn:
            conn.execute(f"INSERT INTO members({columns}) VALUES({placeholders})", tuple(record.values()))
            row = conn.execute("SELECT * FROM members WHERE id = ?", (record["id"],)).fetchone()
    except sqlite3.Error as exc:
        logger.exception("Adding member failed")
        raise MemberStoreError("Failed to add member") from exc

    logger.info("Added member %s", record["id"])
    return Member.from_row(row)


def update_member(member_id: str, patch: dict) -> Member:
    fields = _clean_fields(patch, "update")
    fields["updated_at"] = utc_now().isoformat()

    assignments = ", ".join(f"{k}=?" for k in fields)
    try:
        with get_conn() as conn:
            cur = conn.execute(
                f"UPDATE members SET {assignments} WHERE id = ?",
                (*fields.values(), member_id),
            )
            row = conn.execute("SELECT * FROM members WHERE id = ?", (member_id,)).fetchone()
    except sqlite3.Error as exc:
        logger.exception("Updating member %s failed", member_id)
        raise MemberStoreError("Failed to update member") from exc

    if cur.rowcount == 0 or row is None:
        logger.error("Update for unknown member %s", member_id)
        raise MemberStoreError("Failed to update member")

    logger.info("Updated member %s (%s)", member_id, ", ".join(sorted(patch)) or "no fields")
    return Member.from_row(row)


def delete_member(member_id: str) -> None:
    try:
        deleted = execute("DELETE FROM members WHERE id = ?", (member_id,))
    except sqlite3.Error as exc:
        logger.exception("Deleting member %s failed", member_id)
        raise MemberStoreError("Failed to delete member") from exc

    if deleted == 0:
        logger.error("Delete for unknown member %s", member_id)
        raise MemberStoreError("Failed to delete member")

    logger.info("Deleted member %s", member_id)
