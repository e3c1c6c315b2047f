from __future__ import annotations

import inspect
import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest
from fastapi import Depends, FastAPI
from fastapi.testclient import TestClient

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from currency_api.database import Database
from currency_api.errors import AuthorizationError
from currency_api.models import Account
from currency_api.security import BearerTokenAuth
from currency_api.tokens import TokenCodec


NOW = datetime(2024, 6, 1, 10, 0, tzinfo=timezone.utc)


@pytest.fixture()
def guard_setup(tmp_path: Path):
    database = Database(tmp_path / "accounts.sqlite3")
    database.initialize()
    account = database.create_account("guarded@example.com", "guarded-password")
    codec = TokenCodec("guard-secret")
    guard = BearerTokenAuth(database, codec, clock=lambda: NOW)
    return guard, codec, account


@pytest.fixture()
def guarded_client(guard_setup):
    guard, codec, account = guard_setup
    app = FastAPI()

    @app.get("/whoami")
    def whoami(current: Account = Depends(guard)):
        return {"id": current.id}

    return TestClient(app), codec, account


def test_valid_token_resolves_account(guard_setup) -> None:
    guard, codec, account = guard_setup
    token = codec.issue(account.id, account.email, NOW)

    assert guard.authenticate(token) == account


def test_absent_header_is_rejected(guard_setup) -> None:
    guard, _, _ = guard_setup

    with pytest.raises(AuthorizationError) as excinfo:
        guard.authenticate(None, header_present=False)
    assert excinfo.value.message == "Authorization Absent!"
    assert excinfo.value.status_code == 401


@pytest.mark.parametrize("token", [None, "", "garbage"])
def test_malformed_token_is_invalid(guard_setup, token) -> None:
    guard, _, _ = guard_setup

    with pytest.raises(AuthorizationError) as excinfo:
        guard.authenticate(token)
    assert excinfo.value.message == "Invalid token"


def test_expired_token_reports_session_expired(guard_setup) -> None:
    guard, codec, account = guard_setup
    token = codec.issue(account.id, account.email, NOW - timedelta(days=60))

    with pytest.raises(AuthorizationError) as excinfo:
        guard.authenticate(token)
    assert excinfo.value.message == "Your session has expired"


def test_token_signed_with_other_secret_is_invalid(guard_setup) -> None:
    guard, _, account = guard_setup
    token = TokenCodec("other-secret").issue(account.id, account.email, NOW)

    with pytest.raises(AuthorizationError) as excinfo:
        guard.authenticate(token)
    assert excinfo.value.message == "Invalid token"


def test_unknown_subject_is_rejected(guard_setup) -> None:
    guard, codec, account = guard_setup
    token = codec.issue(account.id + 1000, "ghost@example.com", NOW)

    with pytest.raises(AuthorizationError) as excinfo:
        guard.authenticate(token)
    assert excinfo.value.message == "Account not found"


def test_guard_dependency_runs_in_threadpool(guard_setup) -> None:
    guard, _, _ = guard_setup

    assert not inspect.iscoroutinefunction(guard.__call__)


def test_guard_dependency_parses_bearer_header(guarded_client) -> None:
    client, codec, account = guarded_client
    token = codec.issue(account.id, account.email, NOW)

    with client:
        lower = client.get("/whoami", headers={"Authorization": f"bearer {token}"})
        upper = client.get("/whoami", headers={"Authorization": f"Bearer {token}"})

    assert lower.status_code == 200
    assert upper.json() == {"id": account.id}


@pytest.mark.parametrize(
    "headers, message",
    [
        ({}, "Authorization Absent!"),
        ({"Authorization": "Bearer"}, "Invalid token"),
        ({"Authorization": "Basic dXNlcjpwYXNz"}, "Invalid token"),
    ],
)
def test_guard_dependency_rejects_unusable_headers(guarded_client, headers, message) -> None:
    client, _, _ = guarded_client

    with pytest.raises(AuthorizationError) as excinfo:
        with client:
            client.get("/whoami", headers=headers)
    assert excinfo.value.message == message


def test_guard_publishes_bearer_scheme_in_openapi(guarded_client) -> None:
    client, _, _ = guarded_client

    with client:
        schema = client.get("/openapi.json").json()

    assert schema["components"]["securitySchemes"]["HTTPBearer"]["scheme"] == "bearer"
