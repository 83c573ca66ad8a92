import json
from typing import Any, Dict, Optional

from psycopg2 import pool as psycopg2_pool
from psycopg2.extras import Json, RealDictCursor

import config


# ---- TABLES (Key-Value, JSONB payload) ----
PK_MAP = {
    "users": "email",
    "verifications": "id",
}


def _normalize_db_url(url: str) -> str:
    if not url:
        raise ValueError("DATABASE_URL is not set")
    if "sslmode=" in url or "localhost" in url or "127.0.0.1" in url:
        return url
    separator = "&" if "?" in url else "?"
    return f"{url}{separator}sslmode=require"


def _pk_column(table: str) -> str:
    pk_col = PK_MAP.get(table)
    if not pk_col:
        raise ValueError(f"Unknown table: {table}")
    return pk_col


# ---- CONNECTION POOL (reuses warm TCP+SSL connections) ----
_connection_pool = None

def _get_pool():
    global _connection_pool
    if _connection_pool is None:
        db_url = _normalize_db_url(config.DATABASE_URL)
        _connection_pool = psycopg2_pool.ThreadedConnectionPool(
            minconn=1,
            maxconn=10,
            dsn=db_url,
            cursor_factory=RealDictCursor,
        )
    return _connection_pool


def get_connection():
    """Get a connection from the pool."""
    return _get_pool().getconn()


def release_connection(conn):
    """Return a connection back to the pool."""
    _get_pool().putconn(conn)


def init_db():
    conn = get_connection()
    try:
        cursor = conn.cursor()
        for table, pk_col in PK_MAP.items():
            cursor.execute(
                f"""
                CREATE TABLE IF NOT EXISTS {table} (
                    {pk_col} TEXT PRIMARY KEY,
                    json_data JSONB
                )
                """
            )
        conn.commit()
    finally:
        release_connection(conn)


# ---- GENERIC HELPERS ----

def put_item(table: str, key: str, data: Dict[str, Any]):
    """Store a dict as JSON (insert or replace)."""
    pk_col = _pk_column(table)
    conn = get_connection()
    try:
        cursor = conn.cursor()
        cursor.execute(
            f"""
            INSERT INTO {table} ({pk_col}, json_data)
            VALUES (%s, %s)
            ON CONFLICT ({pk_col}) DO UPDATE SET json_data = EXCLUDED.json_data
            """,
            (key, Json(data)),
        )
        conn.commit()
    finally:
        release_connection(conn)


def get_item(table: str, key: str) -> Optional[Dict[str, Any]]:
    """Retrieve dict from JSON"""
    pk_col = _pk_column(table)
    conn = get_connection()
    try:
        cursor = conn.cursor()
        cursor.execute(f"SELECT json_data FROM {table} WHERE {pk_col} = %s", (key,))
        row = cursor.fetchone()
    finally:
        release_connection(conn)

    if row:
        if isinstance(row["json_data"], str):
            return json.loads(row["json_data"])
        return row["json_data"]
    return None
