from __future__ import annotations

from flask import Flask, request

from ..common.http import current_context, identity_required, json_body, ok
from ..container import Container

_COURSE_FIELDS = ("course_code", "title", "description", "credits", "semester", "academic_year")


def register(app: Flask, container: Container) -> None:
    auth = identity_required(container.user_service)
    courses = container.course_service
    enrollments = container.enrollment_service

    @app.route("/api/courses", methods=["GET"], endpoint="list_courses")
    @auth
    def list_courses():
        return ok(courses.list_courses())

    @app.route("/api/courses", methods=["POST"], endpoint="create_course")
    @auth
    def create_course():
        data = json_body()
        course = courses.create_course(
            current_context(),
            course_code=data.get("course_code"),
            title=data.get("title"),
            description=data.get("description"),
            credits=data.get("credits"),
            semester=data.get("semester"),
            academic_year=data.get("academic_year"),
            lecturer_id=data.get("lecturer_id"),
        )
        return ok(course, message="Course created", status=201)

    @app.route("/api/courses/<course_id>", methods=["PATCH"], endpoint="update_course")
    @auth
    def update_course(course_id: str):
        data = json_body()
        changes = {k: data[k] for k in _COURSE_FIELDS if k in data}
        return ok(courses.update_course(current_context(), course_id, **changes), message="Course updated")

    @app.route("/api/courses/<course_id>/lecturer", methods=["PUT"], endpoint="assign_course_lecturer")
    @auth
    def assign_course_lecturer(course_id: str):
        course = courses.assign_lecturer(current_context(), course_id, json_body().get("lecturer_id"))
        return ok(course, message="Lecturer assigned")

    @app.route("/api/courses/<course_id>", methods=["DELETE"], endpoint="delete_course")
    @auth
    def delete_course(course_id: str):
        courses.delete_course(current_context(), course_id)
        return ok(message="Course deleted")

    @app.route("/api/lecturer/courses", methods=["GET"], endpoint="lecturer_courses")
    @auth
    def lecturer_courses():
        return ok(courses.list_for_lecturer(current_context()))

    @app.route("/api/lecturer/students", methods=["GET"], endpoint="lecturer_students")
    @auth
    def lecturer_students():
        return ok(enrollments.students_for_lecturer(current_context()))

    @app.route("/api/student/courses/available", methods=["GET"], endpoint="available_courses")
    @auth
    def available_courses():
        return ok(enrollments.available_courses(current_context()))

    @app.route("/api/student/enrollments", methods=["GET"], endpoint="my_enrollments")
    @auth
    def my_enrollments():
        pairs = enrollments.my_enrollments(current_context())
        return ok([{"course": c, "enrollment": e} for c, e in pairs])

    @app.route("/api/enrollment-requests", methods=["POST"], endpoint="request_enrollment")
    @auth
    def request_enrollment():
        batch = enrollments.request_enrollment(current_context(), json_body().get("course_id"))
        return ok(batch, message="Enrollment request submitted", status=201)

    @app.route("/api/enrollment-requests", methods=["GET"], endpoint="list_enrollment_requests")
    @auth
    def list_enrollment_requests():
        return ok(enrollments.list_requests(current_context(), status=request.args.get("status")))

    @app.route("/api/enrollment-requests/<request_id>/review", methods=["POST"], endpoint="review_enrollment")
    @auth
    def review_enrollment(request_id: str):
        data = json_body()
        batch = enrollments.review(current_context(), request_id, data.get("decision"), data.get("feedback"))
        return ok(batch, message=f"Request {batch.status.value}")
