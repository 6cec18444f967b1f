from __future__ import annotations

import threading
import uuid
from collections import defaultdict
from contextlib import contextmanager
from copy import deepcopy
from datetime import datetime, timedelta
from enum import Enum

from src.school_portal.school_portal.common.context import RequestContext
from src.school_portal.school_portal.core.enums import Role, Severity
from src.school_portal.school_portal.core.exceptions import NotFoundError, StoreError
from src.school_portal.school_portal.store.tables import TABLES


def _plain(value):
    return value.value if isinstance(value, Enum) else value


class InMemoryRecordStore:
    """RecordStore backed by dicts. Transactions hold one lock and restore a snapshot on error."""

    def __init__(self, file_storage=None):
        self.tables: dict[str, dict[str, dict]] = defaultdict(dict)
        self.files: dict[str, bytes] = {}
        self._file_storage = file_storage
        self._lock = threading.RLock()
        self._depth = 0

    @staticmethod
    def _check(table, names=()):
        if table not in TABLES:
            raise StoreError(f"Unknown table: {table}")
        unknown = set(names) - set(TABLES[table])
        if unknown:
            raise StoreError(f"Unknown column(s) for {table}: {sorted(unknown)}")

    def insert(self, table, record):
        with self._lock:
            row = {k: deepcopy(_plain(v)) for k, v in dict(record).items()}
            row.setdefault("id", str(uuid.uuid4()))
            self._check(table, row)
            self.tables[table][row["id"]] = row
            return row["id"]

    def get(self, table, record_id):
        with self._lock:
            self._check(table)
            row = self.tables[table].get(str(record_id))
            return deepcopy(row) if row else None

    def select(self, table, filters=None, *, order_by=None, descending=False, limit=None):
        with self._lock:
            self._check(table, (filters or {}).keys())
            rows = []
            for row in self.tables[table].values():
                ok = True
                for column, value in (filters or {}).items():
                    if isinstance(value, (list, tuple, set, frozenset)):
                        ok = row.get(column) in {_plain(v) for v in value}
                    elif value is None:
                        ok = row.get(column) is None
                    else:
                        ok = row.get(column) == _plain(value)
                    if not ok:
                        break
                if ok:
                    rows.append(deepcopy(row))
            if order_by:
                rows.sort(key=lambda r: (r.get(order_by) is None, r.get(order_by)), reverse=descending)
            return rows[:limit] if limit else rows

    def update(self, table, record_id, patch):
        with self._lock:
            self._check(table, patch)
            row = self.tables[table].get(str(record_id))
            if row is None:
                raise NotFoundError(f"{table} {record_id} not found")
            row.update({k: deepcopy(_plain(v)) for k, v in patch.items()})

    def update_if(self, table, record_id, expected_status, patch):
        with self._lock:
            self._check(table, patch)
            row = self.tables[table].get(str(record_id))
            if row is None or row.get("status") != _plain(expected_status):
                return False
            row.update({k: deepcopy(_plain(v)) for k, v in patch.items()})
            return True

    def delete(self, table, record_id):
        with self._lock:
            self._check(table)
            return self.tables[table].pop(str(record_id), None) is not None

    @contextmanager
    def transaction(self):
        with self._lock:
            outer = self._depth == 0
            snapshot = deepcopy(self.tables) if outer else None
            self._depth += 1
            try:
                yield self
            except BaseException:
                if outer:
                    self.tables = snapshot
                raise
            finally:
                self._depth -= 1

    def upload(self, bucket, path, data):
        key = f"{bucket}/{path}"
        self.files[key] = bytes(data)
        if self._file_storage is not None:
            return self._file_storage.upload(bucket, path, data)
        return f"memory://{key}"

    def delete_upload(self, bucket, path):
        self.files.pop(f"{bucket}/{path}", None)
        if self._file_storage is not None:
            self._file_storage.delete(bucket, path)

    def count(self, table, **filters):
        return len(self.select(table, filters or None))


class RecordingNotifier:
    def __init__(self):
        self.sent: list[tuple[str, str, Severity]] = []

    def notify(self, user_id, message, severity=Severity.INFO):
        self.sent.append((user_id, message, severity))


class StepClock:
    """Deterministic clock: each call advances one minute."""

    def __init__(self, start=datetime(2026, 1, 5, 9, 0, 0)):
        self._now = start

    def __call__(self):
        self._now += timedelta(minutes=1)
        return self._now


def make_profile(store, role, email, full_name="", *, created_at=None, lecturer_id=None):
    profile_id = store.insert(
        "profiles",
        {
            "email": email,
            "full_name": full_name or email.split("@")[0].title(),
            "role": role.value,
            "lecturer_id": lecturer_id,
            "created_at": created_at or datetime(2026, 1, 1, 8, 0, 0),
        },
    )
    return RequestContext(user_id=profile_id, role=role)
