from __future__ import annotations

import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from currency_api.database import Database, resolve_database_path
from currency_api.errors import DuplicateEmailError, ValidationError


@pytest.fixture()
def database(tmp_path: Path) -> Database:
    db_path = tmp_path / "accounts.sqlite3"
    db = Database(db_path)
    db.initialize()
    return db


def test_create_account_hashes_password(database: Database) -> None:
    account = database.create_account("owner@example.com", "Sup3rSecurePwd!", "Sup3rSecurePwd!")

    assert account.id > 0
    assert account.email == "owner@example.com"
    assert account.password_hash != "Sup3rSecurePwd!"
    assert "Sup3rSecurePwd!" not in account.password_hash
    assert account.created_at.tzinfo is not None


def test_same_password_produces_different_hashes(database: Database) -> None:
    first = database.create_account("one@example.com", "shared-password")
    second = database.create_account("two@example.com", "shared-password")

    assert first.password_hash != second.password_hash


def test_duplicate_email_is_rejected_and_first_account_kept(database: Database) -> None:
    original = database.create_account("owner@example.com", "first-password")

    with pytest.raises(DuplicateEmailError) as excinfo:
        database.create_account("owner@example.com", "second-password")

    assert excinfo.value.errors == {"email": ["has already been taken"]}
    stored = database.get_account_by_email("owner@example.com")
    assert stored == original
    assert database.verify_password(stored, "first-password")
    assert not database.verify_password(stored, "second-password")
    assert len(database.list_accounts()) == 1


def test_email_lookup_is_case_sensitive(database: Database) -> None:
    database.create_account("Owner@Example.com", "password-one")

    assert database.get_account_by_email("owner@example.com") is None
    assert database.get_account_by_email("Owner@Example.com") is not None

    other = database.create_account("owner@example.com", "password-two")
    assert other.email == "owner@example.com"


def test_blank_fields_fail_validation(database: Database) -> None:
    with pytest.raises(ValidationError) as excinfo:
        database.create_account("  ", "")

    assert set(excinfo.value.errors) == {"email", "password"}
    assert database.list_accounts() == []


def test_mismatched_confirmation_fails_validation(database: Database) -> None:
    with pytest.raises(ValidationError) as excinfo:
        database.create_account("owner@example.com", "password-one", "password-two")

    assert excinfo.value.errors == {"password_confirmation": ["doesn't match Password"]}


def test_get_account_by_id(database: Database) -> None:
    account = database.create_account("owner@example.com", "password-one")

    assert database.get_account(account.id) == account
    assert database.get_account(account.id + 100) is None


def test_authenticate(database: Database) -> None:
    account = database.create_account("owner@example.com", "password-one")

    assert database.authenticate("owner@example.com", "password-one") == account
    assert database.authenticate("owner@example.com", "wrong") is None
    assert database.authenticate("missing@example.com", "password-one") is None
    assert database.authenticate(None, None) is None


def test_verify_password_with_corrupt_hash(database: Database) -> None:
    account = database.create_account("owner@example.com", "password-one")
    corrupt = type(account)(
        id=account.id,
        email=account.email,
        password_hash="not-a-hash",
        created_at=account.created_at,
    )

    assert database.verify_password(corrupt, "password-one") is False


def test_resolve_database_path_prefers_env(tmp_path: Path) -> None:
    target = tmp_path / "custom.sqlite3"

    assert resolve_database_path(str(target)) == target.resolve()
    assert resolve_database_path(None).name == "currency_api.sqlite3"


def test_unknown_email_still_performs_hash_work(database: Database, monkeypatch) -> None:
    calls = []
    monkeypatch.setattr("currency_api.database._dummy_verify", lambda: calls.append("dummy"))
    database.create_account("owner@example.com", "password-one")

    assert database.authenticate("missing@example.com", "password-one") is None
    assert database.authenticate("", "password-one") is None
    assert calls == ["dummy", "dummy"]

    assert database.authenticate("owner@example.com", "wrong") is None
    assert calls == ["dummy", "dummy"]
