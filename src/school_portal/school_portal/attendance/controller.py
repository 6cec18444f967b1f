from __future__ import annotations

from flask import Flask, request

from ..common.http import current_context, identity_required, json_body, ok
from ..container import Container
from ..core.enums import AttendanceMark
from ..core.exceptions import ValidationError
from .model import AttendanceEntry


def _entries(raw) -> list[AttendanceEntry]:
    if not isinstance(raw, list):
        raise ValidationError("entries must be a list")
    out = []
    for item in raw:
        if not isinstance(item, dict):
            raise ValidationError("Each entry must be an object")
        out.append(
            AttendanceEntry(
                student_id=str(item.get("student_id") or ""),
                mark=item.get("mark") or AttendanceMark.PRESENT.value,
                notes=item.get("notes"),
            )
        )
    return out


def register(app: Flask, container: Container) -> None:
    auth = identity_required(container.user_service)
    attendance = container.attendance_service

    @app.route("/api/courses/<course_id>/roster", methods=["GET"], endpoint="course_roster")
    @auth
    def course_roster(course_id: str):
        return ok(attendance.course_roster(current_context(), course_id))

    @app.route("/api/attendance", methods=["POST"], endpoint="submit_attendance")
    @auth
    def submit_attendance():
        data = json_body()
        batch = attendance.submit(
            current_context(),
            course_id=data.get("course_id"),
            session_date=data.get("session_date"),
            entries=_entries(data.get("entries") or []),
        )
        return ok(batch, message="Attendance submitted for approval", status=201)

    @app.route("/api/attendance/batches", methods=["GET"], endpoint="attendance_batches")
    @auth
    def attendance_batches():
        return ok(attendance.list_for_review(current_context(), status=request.args.get("status")))

    @app.route("/api/attendance/batches/<batch_id>", methods=["GET"], endpoint="attendance_batch_details")
    @auth
    def attendance_batch_details(batch_id: str):
        return ok(attendance.batch_details(current_context(), batch_id))

    @app.route("/api/attendance/batches/<batch_id>/review", methods=["POST"], endpoint="review_attendance")
    @auth
    def review_attendance(batch_id: str):
        data = json_body()
        batch = attendance.review(current_context(), batch_id, data.get("decision"), data.get("feedback"))
        return ok(batch, message=f"Attendance {batch.status.value}")

    @app.route("/api/attendance/feedback", methods=["GET"], endpoint="attendance_feedback")
    @auth
    def attendance_feedback():
        return ok(attendance.feedback_for_lecturer(current_context()))
