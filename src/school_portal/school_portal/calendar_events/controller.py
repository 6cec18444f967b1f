from __future__ import annotations

from flask import Flask, request

from ..common.http import current_context, identity_required, json_body, ok
from ..container import Container

_EVENT_FIELDS = ("title", "description", "event_type", "start_date", "end_date", "academic_year", "semester")


def register(app: Flask, container: Container) -> None:
    auth = identity_required(container.user_service)
    calendar = container.calendar_service

    @app.route("/api/calendar", methods=["GET"], endpoint="list_events")
    @auth
    def list_events():
        return ok(calendar.list_events(current_context(), academic_year=request.args.get("academic_year")))

    @app.route("/api/calendar", methods=["POST"], endpoint="create_event")
    @auth
    def create_event():
        data = json_body()
        event = calendar.create_event(current_context(), **{k: data.get(k) for k in _EVENT_FIELDS})
        return ok(event, message="Event created", status=201)

    @app.route("/api/calendar/<event_id>", methods=["PATCH"], endpoint="update_event")
    @auth
    def update_event(event_id: str):
        data = json_body()
        changes = {k: data[k] for k in _EVENT_FIELDS if k in data}
        return ok(calendar.update_event(current_context(), event_id, **changes), message="Event updated")

    @app.route("/api/calendar/<event_id>", methods=["DELETE"], endpoint="delete_event")
    @auth
    def delete_event(event_id: str):
        calendar.delete_event(current_context(), event_id)
        return ok(message="Event deleted")
