from __future__ import annotations

from ..common.context import RequestContext
from ..core.constants import DEFAULT_LIST_LIMIT
from ..core.exceptions import AuthorizationError, NotFoundError
from ..store.repository import RecordStore
from .model import Notification


class NotificationService:
    def __init__(self, store: RecordStore):
        self._store = store

    def list_for_user(self, ctx: RequestContext, *, unread_only: bool = False) -> list[Notification]:
        filters: dict = {"user_id": ctx.user_id}
        if unread_only:
            filters["is_read"] = False
        rows = self._store.select(
            "notifications", filters, order_by="created_at", descending=True, limit=DEFAULT_LIST_LIMIT
        )
        return [Notification.from_row(r) for r in rows]

    def mark_read(self, ctx: RequestContext, notification_id: str) -> Notification:
        row = self._store.get("notifications", notification_id)
        if not row:
            raise NotFoundError("Notification not found")
        if str(row["user_id"]) != ctx.user_id:
            raise AuthorizationError("Not your notification")
        self._store.update("notifications", notification_id, {"is_read": True})
        return Notification.from_row({**row, "is_read": True})
