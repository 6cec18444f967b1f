from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Optional

from ..common.datetime_utils import parse_timestamp
from ..core.enums import AssignmentStatus, RoomStatus


@dataclass(frozen=True)
class Hostel:
    id: str
    name: str
    description: Optional[str]
    total_rooms: int

    @classmethod
    def from_row(cls, row: dict) -> "Hostel":
        return cls(
            id=str(row["id"]),
            name=row["name"],
            description=row.get("description"),
            total_rooms=int(row.get("total_rooms") or 0),
        )


@dataclass(frozen=True)
class Room:
    id: str
    hostel_id: str
    room_number: str
    capacity: int
    occupied: int
    status: RoomStatus
    price: Optional[Decimal] = None
    amenities: tuple[str, ...] = field(default_factory=tuple)

    @property
    def is_full(self) -> bool:
        return self.occupied >= self.capacity

    @classmethod
    def from_row(cls, row: dict) -> "Room":
        price = row.get("price")
        return cls(
            id=str(row["id"]),
            hostel_id=str(row["hostel_id"]),
            room_number=row["room_number"],
            capacity=int(row.get("capacity") or 0),
            occupied=int(row.get("occupied") or 0),
            status=RoomStatus(row.get("status") or RoomStatus.AVAILABLE.value),
            price=Decimal(str(price)) if price is not None else None,
            amenities=tuple(row.get("amenities") or ()),
        )


@dataclass(frozen=True)
class HostelAssignment:
    """A student placed in a room by an admin."""

    id: str
    student_id: str
    hostel_id: str
    room_id: Optional[str]
    assigned_by: str
    status: AssignmentStatus
    assigned_at: datetime
    notes: Optional[str] = None
    vacated_at: Optional[datetime] = None

    @classmethod
    def from_row(cls, row: dict) -> "HostelAssignment":
        vacated_at = row.get("vacated_at")
        return cls(
            id=str(row["id"]),
            student_id=str(row["student_id"]),
            hostel_id=str(row["hostel_id"]),
            room_id=row.get("room_id"),
            assigned_by=str(row["assigned_by"]),
            status=AssignmentStatus(row["status"]),
            assigned_at=parse_timestamp(row["assigned_at"]),
            notes=row.get("notes"),
            vacated_at=parse_timestamp(vacated_at) if vacated_at else None,
        )


@dataclass(frozen=True)
class StudentHostelView:
    """Read-model: where a lecturer's student lives."""

    student_id: str
    student_name: str
    hostel_name: str
    room_number: Optional[str]
    assigned_at: datetime
