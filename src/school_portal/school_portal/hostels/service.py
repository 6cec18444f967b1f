from __future__ import annotations

import logging
from typing import Callable, Optional

from ..approvals.aggregator import BatchAggregator
from ..approvals.model import Batch, batch_from_row
from ..approvals.state_machine import ReviewStateMachine
from ..common.context import RequestContext, require_role
from ..common.datetime_utils import now_utc
from ..common.validators import optional_text, parse_enum, require_amount, require_non_empty
from ..core.constants import DEFAULT_REVIEW_LIMIT
from ..core.enums import AssignmentStatus, BatchKind, BatchStatus, Role, RoomStatus
from ..core.exceptions import InvalidStateError, NotFoundError, ValidationError
from ..courses.service import EnrollmentService
from ..store.repository import RecordStore
from ..users.service import UserService
from .model import Hostel, HostelAssignment, Room, StudentHostelView

logger = logging.getLogger(__name__)


def _capacity(value) -> int:
    try:
        capacity = int(value)
    except (TypeError, ValueError):
        raise ValidationError("Capacity must be a whole number")
    if capacity < 1:
        raise ValidationError("Capacity must be at least 1")
    return capacity


def _amenities(value) -> list[str]:
    if value is None:
        return []
    if isinstance(value, str):
        value = value.split(",")
    return [a.strip() for a in value if a and str(a).strip()]


class HostelService:
    """Hostels, rooms, booking requests and direct room assignments.

    Room occupancy is a projection of the ``assigned`` rows in
    ``student_hostel_assignments`` and is recomputed on every assign/vacate.
    """

    def __init__(
        self,
        store: RecordStore,
        users: UserService,
        enrollments: EnrollmentService,
        aggregator: BatchAggregator,
        reviews: ReviewStateMachine,
        *,
        clock: Callable = now_utc,
    ):
        self._store = store
        self._users = users
        self._enrollments = enrollments
        self._aggregator = aggregator
        self._reviews = reviews
        self._clock = clock

    # ---- Hostels ----
    def get_hostel(self, hostel_id: str) -> Hostel:
        row = self._store.get("hostels", str(hostel_id))
        if not row:
            raise NotFoundError("Hostel not found")
        return Hostel.from_row(row)

    def list_hostels(self) -> list[Hostel]:
        return [Hostel.from_row(r) for r in self._store.select("hostels", order_by="name")]

    def create_hostel(self, ctx: RequestContext, *, name: str, description: Optional[str] = None) -> Hostel:
        require_role(ctx, Role.ADMIN)
        row = {
            "name": require_non_empty(name, "Hostel name"),
            "description": optional_text(description),
            "total_rooms": 0,
            "created_at": self._clock(),
        }
        hostel_id = self._store.insert("hostels", row)
        logger.info("Hostel %s created by %s", hostel_id, ctx.user_id)
        return Hostel.from_row({**row, "id": hostel_id})

    def update_hostel(
        self, ctx: RequestContext, hostel_id: str, *, name: Optional[str] = None, description: Optional[str] = None
    ) -> Hostel:
        require_role(ctx, Role.ADMIN)
        hostel = self.get_hostel(hostel_id)
        patch: dict = {}
        if name is not None:
            patch["name"] = require_non_empty(name, "Hostel name")
        if description is not None:
            patch["description"] = optional_text(description)
        if patch:
            self._store.update("hostels", hostel.id, patch)
        return self.get_hostel(hostel.id)

    def delete_hostel(self, ctx: RequestContext, hostel_id: str) -> None:
        require_role(ctx, Role.ADMIN)
        hostel = self.get_hostel(hostel_id)
        if self._store.select("rooms", {"hostel_id": hostel.id}, limit=1):
            raise ValidationError("Remove the hostel's rooms before deleting it")
        self._store.delete("hostels", hostel.id)

    def _refresh_room_count(self, hostel_id: str) -> None:
        total = len(self._store.select("rooms", {"hostel_id": hostel_id}))
        self._store.update("hostels", hostel_id, {"total_rooms": total})

    # ---- Rooms ----
    def get_room(self, room_id: str) -> Room:
        row = self._store.get("rooms", str(room_id))
        if not row:
            raise NotFoundError("Room not found")
        return Room.from_row(row)

    def list_rooms(self, *, hostel_id: Optional[str] = None, available_only: bool = False) -> list[Room]:
        filters: dict = {}
        if hostel_id:
            filters["hostel_id"] = str(hostel_id)
        if available_only:
            filters["status"] = RoomStatus.AVAILABLE.value
        rooms = [Room.from_row(r) for r in self._store.select("rooms", filters or None, order_by="room_number")]
        if available_only:
            rooms = [r for r in rooms if not r.is_full]
        return rooms

    def create_room(
        self,
        ctx: RequestContext,
        *,
        hostel_id: str,
        room_number: str,
        capacity,
        price=None,
        amenities=None,
        status=RoomStatus.AVAILABLE,
    ) -> Room:
        require_role(ctx, Role.ADMIN)
        hostel = self.get_hostel(hostel_id)
        number = require_non_empty(room_number, "Room number")
        if self._store.select("rooms", {"hostel_id": hostel.id, "room_number": number}, limit=1):
            raise ValidationError(f"Room {number} already exists in {hostel.name}")

        row = {
            "hostel_id": hostel.id,
            "room_number": number,
            "capacity": _capacity(capacity),
            "occupied": 0,
            "price": require_amount(price, "Price", allow_zero=True) if price not in (None, "") else None,
            "amenities": _amenities(amenities),
            "status": parse_enum(RoomStatus, status, "Room status").value,
            "created_at": self._clock(),
        }
        with self._store.transaction():
            room_id = self._store.insert("rooms", row)
            self._refresh_room_count(hostel.id)
        return Room.from_row({**row, "id": room_id})

    def update_room(self, ctx: RequestContext, room_id: str, **changes) -> Room:
        require_role(ctx, Role.ADMIN)
        room = self.get_room(room_id)
        patch: dict = {}
        if "room_number" in changes:
            patch["room_number"] = require_non_empty(changes["room_number"], "Room number")
        if "capacity" in changes:
            capacity = _capacity(changes["capacity"])
            if capacity < room.occupied:
                raise ValidationError("Capacity cannot be lower than the current occupancy")
            patch["capacity"] = capacity
        if "price" in changes:
            price = changes["price"]
            patch["price"] = require_amount(price, "Price", allow_zero=True) if price not in (None, "") else None
        if "amenities" in changes:
            patch["amenities"] = _amenities(changes["amenities"])

        with self._store.transaction():
            if patch:
                self._store.update("rooms", room.id, patch)
            self._refresh_occupancy(room.id)
        return self.get_room(room.id)

    def set_room_status(self, ctx: RequestContext, room_id: str, status) -> Room:
        require_role(ctx, Role.ADMIN)
        room = self.get_room(room_id)
        new_status = parse_enum(RoomStatus, status, "Room status")
        if new_status is RoomStatus.AVAILABLE and room.is_full:
            raise ValidationError("A full room cannot be marked available")
        self._store.update("rooms", room.id, {"status": new_status.value})
        return self.get_room(room.id)

    def delete_room(self, ctx: RequestContext, room_id: str) -> None:
        require_role(ctx, Role.ADMIN)
        room = self.get_room(room_id)
        if self._assigned_count(room.id):
            raise ValidationError("Cannot delete a room with students assigned")
        with self._store.transaction():
            self._store.delete("rooms", room.id)
            self._refresh_room_count(room.hostel_id)

    def _assigned_count(self, room_id: str) -> int:
        return len(
            self._store.select(
                "student_hostel_assignments",
                {"room_id": room_id, "status": AssignmentStatus.ASSIGNED.value},
            )
        )

    def _refresh_occupancy(self, room_id: str) -> None:
        room = self.get_room(room_id)
        occupied = self._assigned_count(room.id)
        status = room.status
        if status is not RoomStatus.MAINTENANCE:
            status = RoomStatus.OCCUPIED if occupied >= room.capacity else RoomStatus.AVAILABLE
        self._store.update("rooms", room.id, {"occupied": occupied, "status": status.value})

    # ---- Booking requests ----
    def book_room(
        self,
        ctx: RequestContext,
        room_id: str,
        *,
        academic_year: Optional[str] = None,
        semester: Optional[str] = None,
    ) -> Batch:
        require_role(ctx, Role.STUDENT)
        room = self.get_room(room_id)
        if room.status is not RoomStatus.AVAILABLE or room.is_full:
            raise ValidationError("This room is not available for booking")

        pending = self._store.select(
            BatchKind.ROOM_BOOKING.value,
            {"submitter_id": ctx.user_id, "status": BatchStatus.PENDING.value},
            limit=1,
        )
        if pending:
            raise ValidationError("You already have a pending hostel booking")

        return self._aggregator.create_batch(
            ctx,
            BatchKind.ROOM_BOOKING,
            member_record_ids=(room.id,),
            details={"academic_year": optional_text(academic_year), "semester": optional_text(semester)},
        )

    def cancel_booking(self, ctx: RequestContext, booking_id: str) -> Batch:
        return self._reviews.cancel(ctx, BatchKind.ROOM_BOOKING, booking_id)

    def respond_to_booking(self, ctx: RequestContext, booking_id: str, decision, response: Optional[str] = None) -> Batch:
        return self._reviews.review(ctx, BatchKind.ROOM_BOOKING, booking_id, decision, response)

    def list_bookings(self, ctx: RequestContext, *, status=None) -> list[Batch]:
        filters: dict = {}
        if status:
            filters["status"] = parse_enum(BatchStatus, status, "Status").value
        if ctx.role is Role.STUDENT:
            filters["submitter_id"] = ctx.user_id
        else:
            require_role(ctx, Role.ADMIN)
        rows = self._store.select(
            BatchKind.ROOM_BOOKING.value, filters or None, order_by="submitted_at", descending=True,
            limit=DEFAULT_REVIEW_LIMIT,
        )
        return [batch_from_row(BatchKind.ROOM_BOOKING, r) for r in rows]

    # ---- Direct assignments ----
    def _active_assignment(self, student_id: str) -> Optional[HostelAssignment]:
        rows = self._store.select(
            "student_hostel_assignments",
            {"student_id": str(student_id), "status": AssignmentStatus.ASSIGNED.value},
            limit=1,
        )
        return HostelAssignment.from_row(rows[0]) if rows else None

    def assign_student(
        self, ctx: RequestContext, *, student_id: str, room_id: str, notes: Optional[str] = None
    ) -> HostelAssignment:
        require_role(ctx, Role.ADMIN)
        self._users.require_profile_with_role(student_id, Role.STUDENT, "Student")

        with self._store.transaction():
            room = self.get_room(room_id)
            if self._active_assignment(student_id):
                raise ValidationError("Student already has an active hostel assignment")
            if room.status is RoomStatus.MAINTENANCE:
                raise ValidationError("Room is under maintenance")
            if self._assigned_count(room.id) >= room.capacity:
                raise ValidationError("Room is full")

            row = {
                "student_id": str(student_id),
                "hostel_id": room.hostel_id,
                "room_id": room.id,
                "assigned_by": ctx.user_id,
                "notes": optional_text(notes),
                "status": AssignmentStatus.ASSIGNED.value,
                "assigned_at": self._clock(),
                "vacated_at": None,
            }
            assignment_id = self._store.insert("student_hostel_assignments", row)
            self._refresh_occupancy(room.id)

        logger.info("Student %s assigned to room %s", student_id, room.id)
        return HostelAssignment.from_row({**row, "id": assignment_id})

    def vacate_assignment(self, ctx: RequestContext, assignment_id: str) -> HostelAssignment:
        require_role(ctx, Role.ADMIN)
        with self._store.transaction():
            row = self._store.get("student_hostel_assignments", str(assignment_id))
            if not row:
                raise NotFoundError("Hostel assignment not found")
            assignment = HostelAssignment.from_row(row)
            swapped = self._store.update_if(
                "student_hostel_assignments",
                assignment.id,
                AssignmentStatus.ASSIGNED.value,
                {"status": AssignmentStatus.VACATED.value, "vacated_at": self._clock()},
            )
            if not swapped:
                raise InvalidStateError("Assignment has already been vacated")
            if assignment.room_id:
                self._refresh_occupancy(assignment.room_id)

        return HostelAssignment.from_row(self._store.get("student_hostel_assignments", assignment.id))

    def list_assignments(self, ctx: RequestContext, *, active_only: bool = True) -> list[HostelAssignment]:
        require_role(ctx, Role.ADMIN)
        filters = {"status": AssignmentStatus.ASSIGNED.value} if active_only else None
        rows = self._store.select("student_hostel_assignments", filters, order_by="assigned_at", descending=True)
        return [HostelAssignment.from_row(r) for r in rows]

    def my_assignment(self, ctx: RequestContext) -> Optional[HostelAssignment]:
        require_role(ctx, Role.STUDENT)
        return self._active_assignment(ctx.user_id)

    def student_hostels_for_lecturer(self, ctx: RequestContext) -> list[StudentHostelView]:
        require_role(ctx, Role.LECTURER)
        roster = {r.student_id: r.full_name for r in self._enrollments.students_for_lecturer(ctx)}
        if not roster:
            return []

        rows = self._store.select(
            "student_hostel_assignments",
            {"student_id": list(roster), "status": AssignmentStatus.ASSIGNED.value},
        )
        assignments = [HostelAssignment.from_row(r) for r in rows]
        hostels = {h.id: h for h in self.list_hostels()}
        room_ids = [a.room_id for a in assignments if a.room_id]
        rooms = {str(r["id"]): Room.from_row(r) for r in self._store.select("rooms", {"id": room_ids})} if room_ids else {}

        views = [
            StudentHostelView(
                student_id=a.student_id,
                student_name=roster[a.student_id],
                hostel_name=hostels[a.hostel_id].name if a.hostel_id in hostels else "Unknown",
                room_number=rooms[a.room_id].room_number if a.room_id in rooms else None,
                assigned_at=a.assigned_at,
            )
            for a in assignments
        ]
        views.sort(key=lambda v: v.student_name.lower())
        return views
