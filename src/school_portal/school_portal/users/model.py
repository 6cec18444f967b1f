from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..common.datetime_utils import parse_timestamp
from ..core.enums import Role


@dataclass(frozen=True)
class Profile:
    """Domain entity: a portal user. Credentials live with the identity provider."""

    id: str
    email: str
    full_name: Optional[str]
    role: Role
    created_at: datetime
    lecturer_id: Optional[str] = None

    @classmethod
    def from_row(cls, row: dict) -> "Profile":
        return cls(
            id=str(row["id"]),
            email=row["email"],
            full_name=row.get("full_name"),
            role=Role(row["role"]),
            created_at=parse_timestamp(row["created_at"]),
            lecturer_id=row.get("lecturer_id"),
        )

    @property
    def display_name(self) -> str:
        return self.full_name or self.email
