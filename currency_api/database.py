"""SQLite-backed persistence for accounts."""
from __future__ import annotations

import sqlite3
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, List, Optional

from passlib.context import CryptContext

from .errors import DuplicateEmailError, ValidationError
from .models import Account


def _ensure_directory(path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)


def resolve_database_path(env_value: Optional[str]) -> Path:
    """Resolve the on-disk path for the accounts database."""

    if env_value:
        return Path(env_value).expanduser().resolve(strict=False)
    base_dir = Path(__file__).resolve().parent.parent / "data"
    return (base_dir / "currency_api.sqlite3").resolve(strict=False)


def _current_timestamp() -> datetime:
    return datetime.now(timezone.utc)


def _serialize_datetime(value: datetime) -> str:
    return value.isoformat()


def _parse_datetime(value: str) -> datetime:
    return datetime.fromisoformat(value)


_pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")


def _hash_password(password: str) -> str:
    return _pwd_context.hash(password)


def _verify_password(password: str, hashed: str) -> bool:
    try:
        return _pwd_context.verify(password, hashed)
    except ValueError:
        return False


def _dummy_verify() -> None:
    # Unknown emails cost the same hash work as a wrong password.
    _pwd_context.dummy_verify()


def _validate_registration(
    email: str,
    password: Optional[str],
    password_confirmation: Optional[str],
) -> Dict[str, List[str]]:
    errors: Dict[str, List[str]] = {}
    if not email:
        errors.setdefault("email", []).append("can't be blank")
    if not password:
        errors.setdefault("password", []).append("can't be blank")
    if password_confirmation is not None and password_confirmation != password:
        errors.setdefault("password_confirmation", []).append("doesn't match Password")
    return errors


class Database:
    """Simple wrapper around SQLite for persisting accounts."""

    def __init__(self, path: Path) -> None:
        _ensure_directory(path)
        self._path = path

    @property
    def path(self) -> Path:
        return self._path

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self._path, check_same_thread=False)
        conn.row_factory = sqlite3.Row
        return conn

    def initialize(self) -> None:
        """Create the required tables if they do not already exist."""

        with self._connect() as conn:
            conn.executescript(
                """
                CREATE TABLE IF NOT EXISTS accounts (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    email TEXT NOT NULL UNIQUE,
                    password_hash TEXT NOT NULL,
                    created_at TEXT NOT NULL
                );
                """
            )

    # ------------------------------------------------------------------
    # Account management
    # ------------------------------------------------------------------
    def create_account(
        self,
        email: Optional[str],
        password: Optional[str],
        password_confirmation: Optional[str] = None,
    ) -> Account:
        """Create a new account, hashing the password before it is stored."""

        normalized_email = (email or "").strip()
        errors = _validate_registration(normalized_email, password, password_confirmation)
        if errors:
            raise ValidationError(errors)

        created_at = _current_timestamp()
        password_hash = _hash_password(password)

        with self._connect() as conn:
            try:
                cursor = conn.execute(
                    "INSERT INTO accounts (email, password_hash, created_at) VALUES (?, ?, ?)",
                    (normalized_email, password_hash, _serialize_datetime(created_at)),
                )
            except sqlite3.IntegrityError as exc:
                raise DuplicateEmailError(normalized_email) from exc

            account_id = cursor.lastrowid

        return Account(
            id=int(account_id),
            email=normalized_email,
            password_hash=password_hash,
            created_at=created_at,
        )

    def get_account(self, account_id: int) -> Optional[Account]:
        with self._connect() as conn:
            row = conn.execute("SELECT * FROM accounts WHERE id = ?", (account_id,)).fetchone()
        if row is None:
            return None
        return self._row_to_account(row)

    def get_account_by_email(self, email: str) -> Optional[Account]:
        with self._connect() as conn:
            row = conn.execute(
                "SELECT * FROM accounts WHERE email = ?",
                (email.strip(),),
            ).fetchone()
        if row is None:
            return None
        return self._row_to_account(row)

    def list_accounts(self) -> List[Account]:
        with self._connect() as conn:
            rows = conn.execute("SELECT * FROM accounts ORDER BY id").fetchall()
        return [self._row_to_account(row) for row in rows]

    def verify_password(self, account: Account, password: Optional[str]) -> bool:
        """Return ``True`` if ``password`` matches the account's stored hash."""

        if not password or not account.password_hash:
            return False
        return _verify_password(password, account.password_hash)

    def authenticate(self, email: Optional[str], password: Optional[str]) -> Optional[Account]:
        account = self.get_account_by_email(email) if email else None
        if account is None:
            _dummy_verify()
            return None
        if not self.verify_password(account, password):
            return None
        return account

    def _row_to_account(self, row: sqlite3.Row) -> Account:
        return Account(
            id=int(row["id"]),
            email=str(row["email"]),
            password_hash=str(row["password_hash"]),
            created_at=_parse_datetime(str(row["created_at"])),
        )


__all__ = ["Database", "resolve_database_path"]
