from __future__ import annotations

from flask import Flask

from ..common.http import current_context, identity_required, json_body, ok
from ..container import Container


def register(app: Flask, container: Container) -> None:
    auth = identity_required(container.user_service)
    grading = container.grading_service

    @app.route("/api/assignments", methods=["POST"], endpoint="create_assignment")
    @auth
    def create_assignment():
        data = json_body()
        assignment = grading.create_assignment(
            current_context(),
            course_id=data.get("course_id"),
            title=data.get("title"),
            description=data.get("description"),
            due_date=data.get("due_date"),
            max_points=data.get("max_points"),
        )
        return ok(assignment, message="Assignment created", status=201)

    @app.route("/api/courses/<course_id>/assignments", methods=["GET"], endpoint="course_assignments")
    @auth
    def course_assignments(course_id: str):
        return ok(grading.list_for_course(current_context(), course_id))

    @app.route("/api/assignments/<assignment_id>/submissions", methods=["GET"], endpoint="assignment_submissions")
    @auth
    def assignment_submissions(assignment_id: str):
        return ok(grading.submissions_for(current_context(), assignment_id))

    @app.route("/api/assignments/<assignment_id>/submissions", methods=["POST"], endpoint="submit_assignment")
    @auth
    def submit_assignment(assignment_id: str):
        submission = grading.submit(current_context(), assignment_id, json_body().get("content"))
        return ok(submission, message="Submission saved", status=201)

    @app.route("/api/submissions/<submission_id>/grade", methods=["POST"], endpoint="grade_submission")
    @auth
    def grade_submission(submission_id: str):
        data = json_body()
        submission = grading.grade(current_context(), submission_id, data.get("grade"), data.get("feedback"))
        return ok(submission, message="Submission graded")

    @app.route("/api/student/assignments", methods=["GET"], endpoint="student_assignments")
    @auth
    def student_assignments():
        return ok(grading.list_for_student(current_context()))

    @app.route("/api/student/grades", methods=["GET"], endpoint="student_grades")
    @auth
    def student_grades():
        return ok(grading.student_grades(current_context()))
