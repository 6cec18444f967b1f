from __future__ import annotations

from flask import Flask, request

from ..common.http import current_context, identity_required, ok
from ..container import Container


def register(app: Flask, container: Container) -> None:
    auth = identity_required(container.user_service)
    notifications = container.notification_service

    @app.route("/api/notifications", methods=["GET"], endpoint="list_notifications")
    @auth
    def list_notifications():
        unread_only = request.args.get("unread", "").lower() in ("1", "true", "yes")
        return ok(notifications.list_for_user(current_context(), unread_only=unread_only))

    @app.route("/api/notifications/<notification_id>/read", methods=["POST"], endpoint="mark_notification_read")
    @auth
    def mark_notification_read(notification_id: str):
        return ok(notifications.mark_read(current_context(), notification_id))
