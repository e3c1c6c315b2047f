"""Error taxonomy shared by the account, token and currency layers."""

from __future__ import annotations

from typing import Any, Dict, List, Optional


class CurrencyAPIError(Exception):
    """Base class for failures that are rendered as a response envelope."""

    status_code = 500

    def __init__(self, message: str, *, data: Any = None) -> None:
        super().__init__(message)
        self.message = message
        self.data = data


class ValidationError(CurrencyAPIError):
    """Raised when submitted values fail basic presence or shape checks."""

    status_code = 422

    def __init__(self, errors: Dict[str, List[str]], message: str = "Validation failed") -> None:
        super().__init__(message, data=errors)
        self.errors = errors


class MissingParameterError(ValidationError):
    """Raised when a required query or path parameter was not supplied."""

    status_code = 400

    def __init__(self, names: List[str]) -> None:
        errors = {name: ["is required"] for name in names}
        super().__init__(errors, message=f"Missing required parameters: {', '.join(names)}")
        self.names = names


class DuplicateEmailError(ValidationError):
    """Raised when an account with the same email already exists."""

    def __init__(self, email: str) -> None:
        super().__init__({"email": ["has already been taken"]}, message="Account could not be created")
        self.email = email


class AuthenticationFailure(CurrencyAPIError):
    """Bad credentials at login. The message never says which field was wrong."""

    status_code = 401

    def __init__(self) -> None:
        super().__init__("incorrect email/password")


class AuthorizationError(CurrencyAPIError):
    """Missing, invalid or expired bearer token, or an unknown subject."""

    status_code = 401


class UpstreamError(CurrencyAPIError):
    """The currency provider answered with a non-success response.

    ``payload`` is the provider's error body, decoded as JSON when possible and
    kept as the raw text otherwise.
    """

    status_code = 422

    def __init__(
        self,
        payload: Any,
        *,
        upstream_status: Optional[int] = None,
        message: str = "Currency provider rejected the request",
    ) -> None:
        super().__init__(message, data=payload)
        self.payload = payload
        self.upstream_status = upstream_status


class UpstreamUnavailableError(UpstreamError):
    """The currency provider could not be reached at all."""

    status_code = 500

    def __init__(self, reason: str) -> None:
        super().__init__(None, message="Currency provider is unavailable")
        self.reason = reason


__all__ = [
    "AuthenticationFailure",
    "AuthorizationError",
    "CurrencyAPIError",
    "DuplicateEmailError",
    "MissingParameterError",
    "UpstreamError",
    "UpstreamUnavailableError",
    "ValidationError",
]
