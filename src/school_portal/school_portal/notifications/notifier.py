from __future__ import annotations

import logging
from typing import Callable, Protocol

from ..common.datetime_utils import now_utc
from ..core.enums import Severity
from ..core.exceptions import StoreError
from ..store.repository import RecordStore

logger = logging.getLogger(__name__)


class Notifier(Protocol):
    def notify(self, user_id: str, message: str, severity: Severity = Severity.INFO) -> None:
        """Fire-and-forget: must never raise into the caller."""

        raise NotImplementedError


class StoreNotifier(Notifier):
    """Persists notifications so the recipient sees them in their list."""

    def __init__(self, store: RecordStore, *, clock: Callable = now_utc):
        self._store = store
        self._clock = clock

    def notify(self, user_id: str, message: str, severity: Severity = Severity.INFO) -> None:
        try:
            self._store.insert(
                "notifications",
                {
                    "user_id": str(user_id),
                    "message": message,
                    "severity": Severity(severity).value,
                    "is_read": False,
                    "created_at": self._clock(),
                },
            )
        except StoreError:
            logger.exception("Failed to deliver notification to user %s", user_id)
