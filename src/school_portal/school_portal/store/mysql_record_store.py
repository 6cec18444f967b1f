from __future__ import annotations

import uuid
from contextlib import AbstractContextManager
from typing import Any, Mapping, Optional, Sequence

from ..core.exceptions import NotFoundError, StoreError
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, db_transaction, dump_json_column, fetchall, fetchone, load_json_column
from .repository import FileStorage, Filters, RecordStore
from .tables import JSON_COLUMNS, TABLES


def _check_table(table: str) -> tuple[str, ...]:
    columns = TABLES.get(table)
    if columns is None:
        raise StoreError(f"Unknown table: {table}")
    return columns


def _check_columns(table: str, names) -> None:
    columns = _check_table(table)
    unknown = [n for n in names if n not in columns]
    if unknown:
        raise StoreError(f"Unknown column(s) for {table}: {', '.join(unknown)}")


def _encode(column: str, value: Any) -> Any:
    if column in JSON_COLUMNS:
        return dump_json_column(value)
    if hasattr(value, "value") and isinstance(getattr(value, "value"), str):
        return value.value
    return value


def _decode_row(row: dict) -> dict:
    out = dict(row)
    for column in JSON_COLUMNS.intersection(out):
        out[column] = load_json_column(out[column])
    return out


def _where(filters: Optional[Filters]) -> tuple[str, list]:
    clauses = ["1=1"]
    params: list[object] = []
    for column, value in (filters or {}).items():
        if isinstance(value, (list, tuple, set, frozenset)):
            values = list(value)
            if not values:
                clauses.append("1=0")
                continue
            clauses.append(f"`{column}` IN ({', '.join(['%s'] * len(values))})")
            params.extend(_encode(column, v) for v in values)
        elif value is None:
            clauses.append(f"`{column}` IS NULL")
        else:
            clauses.append(f"`{column}`=%s")
            params.append(_encode(column, value))
    return " AND ".join(clauses), params


class MySQLRecordStore(RecordStore):
    def __init__(self, conn_factory: DatabaseConnection, files: FileStorage):
        self._conn_factory = conn_factory
        self._files = files

    def insert(self, table: str, record: Mapping[str, Any]) -> str:
        row = dict(record)
        row.setdefault("id", str(uuid.uuid4()))
        _check_columns(table, row.keys())

        names = list(row.keys())
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                INSERT INTO `{table}`({', '.join(f'`{n}`' for n in names)})
                VALUES({', '.join(['%s'] * len(names))})
                """,
                tuple(_encode(n, row[n]) for n in names),
            )
        return str(row["id"])

    def get(self, table: str, record_id: str) -> Optional[dict]:
        _check_table(table)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT * FROM `{table}` WHERE id=%s", (str(record_id),))
            row = fetchone(cur)
            return _decode_row(row) if row else None

    def select(
        self,
        table: str,
        filters: Optional[Filters] = None,
        *,
        order_by: Optional[str] = None,
        descending: bool = False,
        limit: Optional[int] = None,
    ) -> Sequence[dict]:
        _check_columns(table, list((filters or {}).keys()) + ([order_by] if order_by else []))
        where, params = _where(filters)

        sql = f"SELECT * FROM `{table}` WHERE {where}"
        if order_by:
            sql += f" ORDER BY `{order_by}` {'DESC' if descending else 'ASC'}"
        if limit is not None:
            sql += " LIMIT %s"
            params.append(int(limit))

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql, tuple(params))
            return [_decode_row(r) for r in fetchall(cur)]

    def update(self, table: str, record_id: str, patch: Mapping[str, Any]) -> None:
        if not self._update(table, record_id, patch, expected_status=None):
            raise NotFoundError(f"{table} record {record_id} not found")

    def update_if(self, table: str, record_id: str, expected_status: str, patch: Mapping[str, Any]) -> bool:
        return self._update(table, record_id, patch, expected_status=expected_status)

    def _update(self, table: str, record_id: str, patch: Mapping[str, Any], *, expected_status: Optional[str]) -> bool:
        _check_columns(table, patch.keys())
        if not patch:
            return self.get(table, record_id) is not None

        assignments = ", ".join(f"`{n}`=%s" for n in patch)
        params = [_encode(n, v) for n, v in patch.items()] + [str(record_id)]
        sql = f"UPDATE `{table}` SET {assignments} WHERE id=%s"
        if expected_status is not None:
            sql += " AND status=%s"
            params.append(_encode("status", expected_status))

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql, tuple(params))
            if cur.rowcount > 0:
                return True
            if expected_status is not None:
                return False
            # MySQL reports 0 affected rows when the values did not change.
            cur.execute(f"SELECT 1 AS found FROM `{table}` WHERE id=%s", (str(record_id),))
            return fetchone(cur) is not None

    def delete(self, table: str, record_id: str) -> bool:
        _check_table(table)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"DELETE FROM `{table}` WHERE id=%s", (str(record_id),))
            return cur.rowcount > 0

    def transaction(self) -> AbstractContextManager:
        return db_transaction(self._conn_factory)

    def upload(self, bucket: str, path: str, data: bytes) -> str:
        return self._files.upload(bucket, path, data)

    def delete_upload(self, bucket: str, path: str) -> None:
        self._files.delete(bucket, path)
