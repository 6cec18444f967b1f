from __future__ import annotations

from flask import Flask, request

from ..common.http import current_context, identity_required, json_body, ok
from ..container import Container


def register(app: Flask, container: Container) -> None:
    auth = identity_required(container.user_service)
    results = container.result_service

    @app.route("/api/results", methods=["GET"], endpoint="list_results")
    @auth
    def list_results():
        return ok(results.list_results(current_context(), status=request.args.get("status")))

    @app.route("/api/results", methods=["POST"], endpoint="create_result")
    @auth
    def create_result():
        data = json_body()
        result = results.create_result(
            current_context(),
            student_id=data.get("student_id"),
            course_id=data.get("course_id"),
            points=data.get("points"),
            academic_year=data.get("academic_year"),
            semester=data.get("semester"),
        )
        return ok(result, message="Result drafted", status=201)

    @app.route("/api/results/<result_id>/audit", methods=["POST"], endpoint="audit_result")
    @auth
    def audit_result(result_id: str):
        return ok(results.audit_result(current_context(), result_id), message="Result audited")

    @app.route("/api/results/<result_id>/publish", methods=["POST"], endpoint="publish_result")
    @auth
    def publish_result(result_id: str):
        return ok(results.publish_result(current_context(), result_id), message="Result published")

    @app.route("/api/student/results", methods=["GET"], endpoint="my_results")
    @auth
    def my_results():
        ctx = current_context()
        published = results.published_for_student(ctx)
        return ok({"results": published, "cumulative_gpa": results.my_gpa(ctx)})
