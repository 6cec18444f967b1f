from __future__ import annotations

from flask import Flask

from ..common.http import current_context, identity_required, ok
from ..container import Container


def register(app: Flask, container: Container) -> None:
    auth = identity_required(container.user_service)
    analytics = container.analytics_service

    @app.route("/api/analytics/registrations", methods=["GET"], endpoint="registration_chart")
    @auth
    def registration_chart():
        return ok(analytics.registration_chart(current_context()))

    @app.route("/api/analytics/dashboard", methods=["GET"], endpoint="dashboard_counts")
    @auth
    def dashboard_counts():
        return ok(analytics.dashboard_counts(current_context()))
