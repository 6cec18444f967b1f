from __future__ import annotations

from contextlib import AbstractContextManager
from typing import Any, Mapping, Optional, Protocol, Sequence

Filters = Mapping[str, Any]


class FileStorage(Protocol):
    def upload(self, bucket: str, path: str, data: bytes) -> str:
        """Store bytes and return a public URL."""

        raise NotImplementedError

    def delete(self, bucket: str, path: str) -> None:
        """Remove a stored file; a missing file is not an error."""

        raise NotImplementedError


class RecordStore(Protocol):
    """Relational record store consumed by every service.

    Failures (constraint violations, connectivity) raise ``StoreError``.
    A filter value that is a list, tuple or set means ``column IN (...)``.
    """

    def insert(self, table: str, record: Mapping[str, Any]) -> str:
        raise NotImplementedError

    def get(self, table: str, record_id: str) -> Optional[dict]:
        raise NotImplementedError

    def select(
        self,
        table: str,
        filters: Optional[Filters] = None,
        *,
        order_by: Optional[str] = None,
        descending: bool = False,
        limit: Optional[int] = None,
    ) -> Sequence[dict]:
        raise NotImplementedError

    def update(self, table: str, record_id: str, patch: Mapping[str, Any]) -> None:
        raise NotImplementedError

    def update_if(self, table: str, record_id: str, expected_status: str, patch: Mapping[str, Any]) -> bool:
        """Compare-and-swap on ``status``: apply only while it still equals ``expected_status``."""

        raise NotImplementedError

    def delete(self, table: str, record_id: str) -> bool:
        raise NotImplementedError

    def transaction(self) -> AbstractContextManager:
        raise NotImplementedError

    def upload(self, bucket: str, path: str, data: bytes) -> str:
        raise NotImplementedError

    def delete_upload(self, bucket: str, path: str) -> None:
        raise NotImplementedError
