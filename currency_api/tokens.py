"""Signed bearer tokens issued on registration and login."""

from __future__ import annotations

import calendar
from datetime import datetime, timezone
from typing import Optional

from jose import JWTError, jwt

TOKEN_ALGORITHM = "HS256"


class TokenError(Exception):
    """Base class for token verification failures."""


class ExpiredToken(TokenError):
    """The signature is valid but the ``exp`` claim has passed."""


class MalformedOrInvalidToken(TokenError):
    """The token is missing, corrupt, or was not signed with our secret."""


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def add_one_month(value: datetime) -> datetime:
    """Advance ``value`` by one calendar month, clamping the day (Jan 31 -> Feb 28/29)."""

    year = value.year + (1 if value.month == 12 else 0)
    month = 1 if value.month == 12 else value.month + 1
    day = min(value.day, calendar.monthrange(year, month)[1])
    return value.replace(year=year, month=month, day=day)


class TokenCodec:
    """Encode and decode account tokens with a shared HMAC secret."""

    def __init__(self, secret: str) -> None:
        if not secret:
            raise ValueError("Token signing secret must not be empty")
        self._secret = secret

    def expiry_for(self, now: Optional[datetime] = None) -> datetime:
        return add_one_month(_as_utc(now or _utcnow()))

    def issue(self, subject_id: int, subject_email: str, now: Optional[datetime] = None) -> str:
        expires_at = self.expiry_for(now)
        claims = {
            "user_id": int(subject_id),
            "email": subject_email,
            "exp": int(expires_at.timestamp()),
        }
        return jwt.encode(claims, self._secret, algorithm=TOKEN_ALGORITHM)

    def verify(self, token: Optional[str], now: Optional[datetime] = None) -> int:
        """Return the subject id carried by ``token``.

        Expiry is checked against ``now`` rather than the wall clock so the
        caller controls time; the signature is always checked first.
        """

        if not token:
            raise MalformedOrInvalidToken("Token is missing")

        try:
            claims = jwt.decode(
                token,
                self._secret,
                algorithms=[TOKEN_ALGORITHM],
                options={"verify_exp": False},
            )
        except JWTError as exc:
            raise MalformedOrInvalidToken(str(exc)) from exc

        subject_id = claims.get("user_id")
        expires_at = claims.get("exp")
        if isinstance(subject_id, bool) or not isinstance(subject_id, int):
            raise MalformedOrInvalidToken("Token is missing the user_id claim")
        if isinstance(expires_at, bool) or not isinstance(expires_at, (int, float)):
            raise MalformedOrInvalidToken("Token is missing the exp claim")

        current = _as_utc(now or _utcnow())
        if current.timestamp() >= expires_at:
            raise ExpiredToken("Signature has expired")

        return subject_id


__all__ = [
    "ExpiredToken",
    "MalformedOrInvalidToken",
    "TOKEN_ALGORITHM",
    "TokenCodec",
    "TokenError",
    "add_one_month",
]
