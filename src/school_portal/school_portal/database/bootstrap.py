from __future__ import annotations

import re
import uuid
from pathlib import Path
from typing import Iterable

import mysql.connector

from ..common.datetime_utils import now_utc
from .connection import DBConfig


def _connect(db_config: dict, *, with_database: bool = True):
    target = DBConfig.from_dict(db_config)
    kwargs = dict(
        host=target.host,
        port=target.port,
        user=target.user,
        password=target.password,
        connection_timeout=target.connection_timeout,
        use_pure=True,
    )
    if with_database:
        kwargs["database"] = target.database
    return mysql.connector.connect(**kwargs)


def _strip_create_db_and_use(sql: str) -> str:
    # schema.sql stays usable under any database name
    sql = re.sub(r"(?im)^\s*CREATE\s+DATABASE\b.*?;\s*$", "", sql)
    sql = re.sub(r"(?im)^\s*USE\b.*?;\s*$", "", sql)
    return sql


def _iter_sql_statements(sql: str) -> Iterable[str]:
    """Split a SQL script on top-level ';', skipping '--' line comments."""
    buf: list[str] = []
    quote = ""
    i = 0
    while i < len(sql):
        ch = sql[i]
        if quote:
            buf.append(ch)
            if ch == "\\" and i + 1 < len(sql):
                buf.append(sql[i + 1])
                i += 2
                continue
            if ch == quote:
                quote = ""
        elif ch in ("'", '"', "`"):
            quote = ch
            buf.append(ch)
        elif sql.startswith("--", i):
            end = sql.find("\n", i)
            i = len(sql) if end == -1 else end
            continue
        elif ch == ";":
            stmt = "".join(buf).strip()
            buf.clear()
            if stmt:
                yield stmt
        else:
            buf.append(ch)
        i += 1

    tail = "".join(buf).strip()
    if tail:
        yield tail


def ensure_database_exists(db_config: dict) -> None:
    database = DBConfig.from_dict(db_config).database
    conn = _connect(db_config, with_database=False)
    try:
        cur = conn.cursor()
        cur.execute(
            f"CREATE DATABASE IF NOT EXISTS `{database}` CHARACTER SET utf8mb4 COLLATE utf8mb4_unicode_ci"
        )
        conn.commit()
    finally:
        conn.close()


def apply_schema(db_config: dict, *, schema_path: str | Path) -> None:
    ensure_database_exists(db_config)
    sql = _strip_create_db_and_use(Path(schema_path).read_text(encoding="utf-8"))

    conn = _connect(db_config)
    try:
        cur = conn.cursor()
        for stmt in _iter_sql_statements(sql):
            cur.execute(stmt)
        conn.commit()
    finally:
        conn.close()


DEMO_PROFILES = (
    ("admin@school.test", "Admin Demo", "admin"),
    ("lecturer@school.test", "Lecturer Demo", "lecturer"),
    ("student@school.test", "Student Demo", "student"),
)


def ensure_demo_profiles(db_config: dict) -> list[str]:
    """Insert one profile per role if missing. Returns the ids in DEMO_PROFILES order."""
    conn = _connect(db_config)
    ids: list[str] = []
    try:
        cur = conn.cursor(dictionary=True)
        for email, full_name, role in DEMO_PROFILES:
            cur.execute("SELECT id FROM profiles WHERE email=%s", (email,))
            existing = cur.fetchone()
            if existing:
                cur.execute("UPDATE profiles SET full_name=%s, role=%s WHERE id=%s", (full_name, role, existing["id"]))
                ids.append(str(existing["id"]))
                continue
            profile_id = str(uuid.uuid4())
            cur.execute(
                "INSERT INTO profiles (id, email, full_name, role, created_at) VALUES (%s, %s, %s, %s, %s)",
                (profile_id, email, full_name, role, now_utc()),
            )
            ids.append(profile_id)
        conn.commit()
    finally:
        conn.close()
    return ids


def list_tables(db_config: dict) -> list[str]:
    conn = _connect(db_config)
    try:
        cur = conn.cursor()
        cur.execute("SHOW TABLES")
        return [row[0] for row in cur.fetchall()]
    finally:
        conn.close()
