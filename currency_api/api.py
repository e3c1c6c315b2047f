"""FastAPI application exposing account and currency endpoints."""
from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional

from fastapi import APIRouter, Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel, model_validator
from starlette.exceptions import HTTPException as StarletteHTTPException

from .database import Database
from .envelope import envelope_response, success
from .errors import (
    AuthenticationFailure,
    AuthorizationError,
    CurrencyAPIError,
    MissingParameterError,
    UpstreamError,
)
from .exchange import ExchangeClient
from .models import Account
from .security import BearerTokenAuth
from .tokens import TokenCodec

logger = logging.getLogger("currency_api.api")

API_PREFIX = "/api/v1"


def _unwrap_account(value: Any) -> Any:
    # Clients may nest the fields under an "account" key.
    if isinstance(value, dict) and isinstance(value.get("account"), dict):
        return value["account"]
    return value


class RegisterRequest(BaseModel):
    email: Optional[str] = None
    password: Optional[str] = None
    password_confirmation: Optional[str] = None

    @model_validator(mode="before")
    @classmethod
    def _unwrap(cls, value: Any) -> Any:
        return _unwrap_account(value)


class LoginRequest(BaseModel):
    email: Optional[str] = None
    password: Optional[str] = None

    @model_validator(mode="before")
    @classmethod
    def _unwrap(cls, value: Any) -> Any:
        return _unwrap_account(value)


def account_session(account: Account, token: str) -> Dict[str, object]:
    return {"account": account.to_public_dict(), "token": token}


def require_params(**params: Optional[str]) -> Dict[str, str]:
    """Return stripped parameter values, raising when any is absent or blank."""

    cleaned = {name: (value or "").strip() for name, value in params.items()}
    missing = [name for name, value in cleaned.items() if not value]
    if missing:
        raise MissingParameterError(missing)
    return cleaned


def _upstream_data(result: Dict[str, Any]) -> Any:
    return result.get("data")


def _validation_errors(exc: RequestValidationError) -> Dict[str, List[str]]:
    errors: Dict[str, List[str]] = {}
    for error in exc.errors():
        location = [str(part) for part in error.get("loc", ()) if part not in ("body", "query", "path")]
        field = ".".join(location) or "body"
        errors.setdefault(field, []).append(str(error.get("msg", "is invalid")))
    return errors


def create_app(
    *,
    database: Database,
    codec: TokenCodec,
    exchange_client: ExchangeClient,
    clock: Optional[Callable[[], datetime]] = None,
) -> FastAPI:
    auth = BearerTokenAuth(database, codec, clock=clock)

    app = FastAPI(
        title="Currency API",
        description="Account registration and proxied currency exchange rates",
        version="1.0.0",
    )
    app.state.database = database
    app.state.codec = codec
    app.state.exchange_client = exchange_client

    def _now() -> Optional[datetime]:
        return clock() if clock is not None else None

    def get_db() -> Database:
        return database

    def get_exchange_client() -> ExchangeClient:
        return exchange_client

    @app.get("/health")
    async def healthcheck() -> JSONResponse:
        return success("Service is healthy", None)

    accounts_router = APIRouter(prefix=API_PREFIX, tags=["accounts"])

    @accounts_router.post("/register")
    def register(payload: RegisterRequest, db: Database = Depends(get_db)) -> JSONResponse:
        account = db.create_account(
            payload.email,
            payload.password,
            payload.password_confirmation,
        )
        token = codec.issue(account.id, account.email, _now())
        logger.info("Registered account %s", account.id)
        return success("Account created successfully", account_session(account, token))

    @accounts_router.post("/login")
    def login(payload: LoginRequest, db: Database = Depends(get_db)) -> JSONResponse:
        account = db.authenticate(payload.email, payload.password)
        if account is None:
            logger.warning("Failed login attempt for %s", payload.email)
            raise AuthenticationFailure()
        token = codec.issue(account.id, account.email, _now())
        logger.info("Account %s logged in", account.id)
        return success("Logged in successfully", account_session(account, token))

    currencies_router = APIRouter(
        prefix=f"{API_PREFIX}/currencies",
        tags=["currencies"],
        dependencies=[Depends(auth)],
    )

    @currencies_router.get("/exchange")
    def exchange(
        base_currency: Optional[str] = None,
        target_currency: Optional[str] = None,
        client: ExchangeClient = Depends(get_exchange_client),
    ) -> JSONResponse:
        params = require_params(base_currency=base_currency, target_currency=target_currency)
        result = client.exchange(params["base_currency"], params["target_currency"])
        return success("Currency exchanged successfully", _upstream_data(result))

    @currencies_router.get("/history")
    def history(
        base_currency: Optional[str] = None,
        from_date: Optional[str] = None,
        to_date: Optional[str] = None,
        client: ExchangeClient = Depends(get_exchange_client),
    ) -> JSONResponse:
        params = require_params(
            base_currency=base_currency,
            from_date=from_date,
            to_date=to_date,
        )
        result = client.history(params["base_currency"], params["from_date"], params["to_date"])
        return success("Currency history retrieved successfully", _upstream_data(result))

    @currencies_router.get("/{currency}")
    def currency(currency: str, client: ExchangeClient = Depends(get_exchange_client)) -> JSONResponse:
        params = require_params(currency=currency)
        result = client.info(params["currency"])
        return success("Currency information retrieved successfully", _upstream_data(result))

    app.include_router(accounts_router)
    app.include_router(currencies_router)

    @app.exception_handler(CurrencyAPIError)
    async def handle_api_error(_: Request, exc: CurrencyAPIError) -> JSONResponse:
        if isinstance(exc, UpstreamError):
            logger.warning(
                "Currency provider request failed (status %s): %s",
                exc.upstream_status,
                exc.message,
            )
        headers = {"WWW-Authenticate": "Bearer"} if isinstance(exc, AuthorizationError) else None
        return envelope_response(exc.status_code, exc.message, exc.data, headers=headers)

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(_: Request, exc: RequestValidationError) -> JSONResponse:
        return envelope_response(400, "Malformed request", _validation_errors(exc))

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_exception(_: Request, exc: StarletteHTTPException) -> JSONResponse:
        message = exc.detail if isinstance(exc.detail, str) else None
        return envelope_response(exc.status_code, message, None, headers=getattr(exc, "headers", None))

    @app.exception_handler(Exception)
    async def handle_unexpected(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled error while serving %s %s", request.method, request.url.path)
        return envelope_response(500, "Internal server error", None)

    return app


__all__ = ["API_PREFIX", "create_app", "require_params"]
