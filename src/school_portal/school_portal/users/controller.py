from __future__ import annotations

from flask import Flask, request

from ..common.http import current_context, identity_required, json_body, ok
from ..container import Container


def register(app: Flask, container: Container) -> None:
    auth = identity_required(container.user_service)
    users = container.user_service

    @app.route("/api/me", methods=["GET"], endpoint="me")
    @auth
    def me():
        return ok(users.get_profile(current_context().user_id))

    @app.route("/api/users", methods=["GET"], endpoint="list_users")
    @auth
    def list_users():
        return ok(users.list_users(current_context(), role=request.args.get("role")))

    @app.route("/api/users", methods=["POST"], endpoint="create_user")
    @auth
    def create_user():
        data = json_body()
        profile = users.create_user(
            current_context(),
            email=data.get("email"),
            full_name=data.get("full_name"),
            role=data.get("role"),
            lecturer_id=data.get("lecturer_id"),
        )
        return ok(profile, message="User created", status=201)

    @app.route("/api/users/<user_id>/role", methods=["PUT"], endpoint="change_role")
    @auth
    def change_role(user_id: str):
        return ok(users.change_role(current_context(), user_id, json_body().get("role")), message="Role updated")

    @app.route("/api/users/<user_id>/lecturer", methods=["PUT"], endpoint="assign_student_lecturer")
    @auth
    def assign_student_lecturer(user_id: str):
        profile = users.assign_lecturer(current_context(), user_id, json_body().get("lecturer_id"))
        return ok(profile, message="Lecturer assigned")

    @app.route("/api/users/<user_id>", methods=["DELETE"], endpoint="delete_user")
    @auth
    def delete_user(user_id: str):
        users.delete_user(current_context(), user_id)
        return ok(message="User deleted")

    @app.route("/api/advisees", methods=["GET"], endpoint="advisees")
    @auth
    def advisees():
        return ok(users.advisees(current_context()))
