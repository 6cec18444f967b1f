from __future__ import annotations

from datetime import date, datetime
from typing import Callable, Optional

from ..common.context import RequestContext, require_role, require_user
from ..common.datetime_utils import now_utc, parse_iso_date
from ..common.validators import optional_text, parse_enum, require_date_order, require_non_empty
from ..core.enums import EventType, Role
from ..core.exceptions import NotFoundError, ValidationError
from ..store.repository import RecordStore
from .model import CalendarEvent


def _date(value) -> Optional[date]:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return parse_iso_date(str(value))


class CalendarService:
    """Academic calendar: admins maintain events, every role reads them."""

    def __init__(self, store: RecordStore, *, clock: Callable = now_utc):
        self._store = store
        self._clock = clock

    def get_event(self, event_id: str) -> CalendarEvent:
        row = self._store.get("academic_calendar", str(event_id))
        if not row:
            raise NotFoundError("Calendar event not found")
        return CalendarEvent.from_row(row)

    def create_event(
        self,
        ctx: RequestContext,
        *,
        title: str,
        event_type,
        start_date,
        end_date=None,
        description: Optional[str] = None,
        academic_year: Optional[str] = None,
        semester: Optional[str] = None,
    ) -> CalendarEvent:
        require_role(ctx, Role.ADMIN)
        start = _date(start_date)
        if start is None:
            raise ValidationError("Start date is required")
        end = _date(end_date)
        require_date_order(start, end)

        row = {
            "title": require_non_empty(title, "Title"),
            "description": optional_text(description),
            "event_type": parse_enum(EventType, event_type, "Event type").value,
            "start_date": start,
            "end_date": end,
            "academic_year": optional_text(academic_year),
            "semester": optional_text(semester),
            "created_by": ctx.user_id,
            "created_at": self._clock(),
        }
        event_id = self._store.insert("academic_calendar", row)
        return CalendarEvent.from_row({**row, "id": event_id})

    def update_event(self, ctx: RequestContext, event_id: str, **changes) -> CalendarEvent:
        require_role(ctx, Role.ADMIN)
        event = self.get_event(event_id)
        patch: dict = {}
        if "title" in changes:
            patch["title"] = require_non_empty(changes["title"], "Title")
        if "description" in changes:
            patch["description"] = optional_text(changes["description"])
        if "event_type" in changes:
            patch["event_type"] = parse_enum(EventType, changes["event_type"], "Event type").value
        for key in ("academic_year", "semester"):
            if key in changes:
                patch[key] = optional_text(changes[key])

        start = _date(changes["start_date"]) if changes.get("start_date") else event.start_date
        end = _date(changes["end_date"]) if "end_date" in changes else event.end_date
        require_date_order(start, end)
        patch["start_date"] = start
        patch["end_date"] = end

        self._store.update("academic_calendar", event.id, patch)
        return self.get_event(event.id)

    def delete_event(self, ctx: RequestContext, event_id: str) -> None:
        require_role(ctx, Role.ADMIN)
        event = self.get_event(event_id)
        self._store.delete("academic_calendar", event.id)

    def list_events(self, ctx: RequestContext, *, academic_year: Optional[str] = None) -> list[CalendarEvent]:
        require_user(ctx)
        filters = {"academic_year": academic_year.strip()} if academic_year and academic_year.strip() else None
        rows = self._store.select("academic_calendar", filters, order_by="start_date")
        return [CalendarEvent.from_row(r) for r in rows]
