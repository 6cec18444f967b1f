"""Relational schema known to the record store.

Only tables and columns listed here can be read or written.
"""

from __future__ import annotations

_BATCH_COLUMNS = (
    "id",
    "submitter_id",
    "member_record_ids",
    "status",
    "reviewer_id",
    "reviewer_feedback",
    "submitted_at",
    "reviewed_at",
)

TABLES: dict[str, tuple[str, ...]] = {
    "profiles": ("id", "email", "full_name", "role", "lecturer_id", "created_at"),
    "courses": (
        "id", "course_code", "title", "description", "credits",
        "semester", "academic_year", "lecturer_id", "created_at", "updated_at",
    ),
    "enrollments": ("id", "student_id", "course_id", "status", "enrollment_date", "final_grade", "source_request_id"),
    "attendance": ("id", "student_id", "course_id", "lecturer_id", "session_date", "mark", "notes", "created_at"),
    "attendance_approvals": _BATCH_COLUMNS + ("course_id", "session_date"),
    "enrollment_requests": _BATCH_COLUMNS + ("course_id",),
    "fee_accounts": (
        "id", "student_id", "total_fees", "amount_paid", "balance",
        "academic_year", "semester", "updated_by", "updated_at",
    ),
    "fee_payments": _BATCH_COLUMNS + (
        "account_id", "amount", "payment_slip_url", "transaction_message", "academic_year", "semester",
    ),
    "hostels": ("id", "name", "description", "total_rooms", "created_at"),
    "rooms": (
        "id", "hostel_id", "room_number", "capacity", "occupied",
        "price", "amenities", "status", "created_at",
    ),
    "room_bookings": _BATCH_COLUMNS + ("room_id", "academic_year", "semester"),
    "student_hostel_assignments": (
        "id", "student_id", "hostel_id", "room_id", "assigned_by",
        "notes", "status", "assigned_at", "vacated_at",
    ),
    "assignments": ("id", "course_id", "created_by", "title", "description", "due_date", "max_points", "created_at"),
    "submissions": (
        "id", "assignment_id", "student_id", "content", "grade",
        "feedback", "graded_by", "graded_at", "submitted_at",
    ),
    "results": (
        "id", "student_id", "course_id", "points", "grade", "gpa",
        "academic_year", "semester", "status", "audited_by", "audited_at",
        "published_by", "published_at", "created_at",
    ),
    "academic_calendar": (
        "id", "title", "description", "event_type", "start_date", "end_date",
        "academic_year", "semester", "created_by", "created_at",
    ),
    "notifications": ("id", "user_id", "message", "severity", "is_read", "created_at"),
}

JSON_COLUMNS = frozenset({"member_record_ids", "amenities"})
