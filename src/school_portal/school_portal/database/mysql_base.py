from __future__ import annotations

import json
import threading
from contextlib import contextmanager
from typing import Any, Dict, List, Optional

import mysql.connector

from ..core.exceptions import StoreError
from .connection import DatabaseConnection

_local = threading.local()


def _active_connection(conn_factory: DatabaseConnection):
    return getattr(_local, "connections", {}).get(id(conn_factory))


@contextmanager
def db_transaction(conn_factory: DatabaseConnection):
    """One connection for every ``db_cursor`` opened inside the block.

    Nested blocks join the outer transaction.
    """

    if _active_connection(conn_factory) is not None:
        yield
        return

    conn = conn_factory.connect()
    connections = _local.__dict__.setdefault("connections", {})
    connections[id(conn_factory)] = conn
    try:
        conn.start_transaction()
        yield
        conn.commit()
    except mysql.connector.Error as e:
        conn.rollback()
        raise StoreError(str(e)) from e
    except Exception:
        conn.rollback()
        raise
    finally:
        connections.pop(id(conn_factory), None)
        conn.close()


@contextmanager
def db_cursor(conn_factory: DatabaseConnection, *, dictionary: bool = True):
    active = _active_connection(conn_factory)
    if active is not None:
        cur = active.cursor(dictionary=dictionary)
        try:
            yield active, cur
        except mysql.connector.Error as e:
            raise StoreError(str(e)) from e
        finally:
            cur.close()
        return

    conn = conn_factory.connect()
    try:
        cur = conn.cursor(dictionary=dictionary)
        try:
            yield conn, cur
            conn.commit()
        finally:
            cur.close()
    except mysql.connector.Error as e:
        conn.rollback()
        raise StoreError(str(e)) from e
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()


def fetchone(cur) -> Optional[Dict[str, Any]]:
    row = cur.fetchone()
    return row if row else None


def fetchall(cur) -> List[Dict[str, Any]]:
    rows = cur.fetchall()
    return list(rows or [])


def load_json_column(value: Any) -> Any:
    """mysql-connector hands JSON columns back as str or bytes."""

    if value is None:
        return None
    if isinstance(value, (bytes, bytearray)):
        value = value.decode("utf-8")
    if isinstance(value, str):
        return json.loads(value)
    return value


def dump_json_column(value: Any) -> Optional[str]:
    if value is None:
        return None
    return json.dumps(list(value) if isinstance(value, tuple) else value)
