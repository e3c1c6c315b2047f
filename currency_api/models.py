"""Domain models for the currency API."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Dict


@dataclass(frozen=True)
class Account:
    """Represents a registered account stored in the accounts database."""

    id: int
    email: str
    password_hash: str
    created_at: datetime

    def to_public_dict(self) -> Dict[str, object]:
        return {
            "id": self.id,
            "email": self.email,
            "created_at": self.created_at.isoformat(),
        }


__all__ = ["Account"]
