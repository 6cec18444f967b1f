from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """User roles used for authorization checkpoints."""

    ADMIN = "admin"
    LECTURER = "lecturer"
    STUDENT = "student"


class BatchKind(str, Enum):
    """Reviewable submission types. Values are the backing table names."""

    ATTENDANCE = "attendance_approvals"
    ENROLLMENT = "enrollment_requests"
    ROOM_BOOKING = "room_bookings"
    FEE_PAYMENT = "fee_payments"


class BatchStatus(str, Enum):
    """Review lifecycle of a batch."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    CANCELLED = "cancelled"


class AttendanceMark(str, Enum):
    PRESENT = "present"
    ABSENT = "absent"
    LATE = "late"


class EnrollmentStatus(str, Enum):
    ACTIVE = "active"
    DROPPED = "dropped"
    COMPLETED = "completed"


class RoomStatus(str, Enum):
    AVAILABLE = "available"
    OCCUPIED = "occupied"
    MAINTENANCE = "maintenance"


class AssignmentStatus(str, Enum):
    """Hostel room assignment state."""

    ASSIGNED = "assigned"
    VACATED = "vacated"


class ResultStatus(str, Enum):
    DRAFT = "draft"
    PUBLISHED = "published"


class EventType(str, Enum):
    SEMESTER_START = "semester_start"
    SEMESTER_END = "semester_end"
    EXAM = "exam"
    HOLIDAY = "holiday"
    REGISTRATION = "registration"
    OTHER = "other"


class Severity(str, Enum):
    INFO = "info"
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"
