"""Bearer token authentication for the protected currency routes."""
from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable, Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from .database import Database
from .errors import AuthorizationError
from .models import Account
from .tokens import ExpiredToken, MalformedOrInvalidToken, TokenCodec

logger = logging.getLogger("currency_api.security")

_bearer = HTTPBearer(auto_error=False)


class BearerTokenAuth:
    """Resolve the calling account from the ``Authorization`` header."""

    def __init__(
        self,
        database: Database,
        codec: TokenCodec,
        *,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        self._database = database
        self._codec = codec
        self._clock = clock

    def authenticate(self, token: Optional[str], *, header_present: bool = True) -> Account:
        if not header_present:
            raise AuthorizationError("Authorization Absent!")

        now = self._clock() if self._clock is not None else None
        try:
            account_id = self._codec.verify(token, now)
        except ExpiredToken:
            logger.info("Rejected expired token")
            raise AuthorizationError("Your session has expired") from None
        except MalformedOrInvalidToken as exc:
            logger.info("Rejected invalid token: %s", exc)
            raise AuthorizationError("Invalid token") from None

        account = self._database.get_account(account_id)
        if account is None:
            logger.warning("Token subject %s does not resolve to an account", account_id)
            raise AuthorizationError("Account not found")
        return account

    # Sync so FastAPI runs the account lookup in its threadpool.
    def __call__(
        self,
        request: Request,
        credentials: Optional[HTTPAuthorizationCredentials] = Depends(_bearer),
    ) -> Account:
        token = credentials.credentials if credentials is not None else None
        account = self.authenticate(token, header_present="authorization" in request.headers)
        request.state.account = account
        return account


__all__ = ["BearerTokenAuth"]
