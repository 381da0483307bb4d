from __future__ import annotations

import auth
import db


def test_hash_and_verify():
    hashed = auth.hash_password("s3cret!")
    assert hashed != "s3cret!"
    assert auth.verify_password("s3cret!", hashed)
    assert not auth.verify_password("wrong", hashed)


def test_long_passwords_truncate_to_72_bytes():
    hashed = auth.hash_password("x" * 100)
    assert auth.verify_password("x" * 72, hashed)


def test_init_creates_admin_and_forces_password_change(store):
    db.init_db(auth.hash_password("admin123"))
    assert auth.login("admin", "admin123")
    assert not auth.login("admin", "nope")
    assert not auth.login("someone", "admin123")
    assert db.is_force_password_change()


def test_init_is_idempotent(store):
    db.init_db(auth.hash_password("admin123"))
    db.init_db(auth.hash_password("other"))
    assert auth.login("admin", "admin123")


def test_change_password_clears_flag(store):
    db.init_db(auth.hash_password("admin123"))
    auth.change_password("admin", "n3w-pass")
    assert auth.login("admin", "n3w-pass")
    assert not auth.login("admin", "admin123")
    assert not db.is_force_password_change()


def test_password_problems():
    assert auth.password_problems("abcdef", "abcdef") == []
    assert auth.password_problems("abc", "abc") == ["Password must be at least 6 characters."]
    assert auth.password_problems("abcdef", "abcdeg") == ["Passwords do not match."]
