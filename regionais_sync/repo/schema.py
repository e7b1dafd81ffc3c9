"""Database schema for repository layer.

Defines SQL for the `regionais` table and a helper to create it.
"""
from __future__ import annotations

from typing import Any
import sqlite3


NOME_MAX_LENGTH = 200


# external_id is intentionally not UNIQUE: a rename keeps the old row
# (inactive) next to the new active one.
REGIONAIS_TABLE_SQL = f"""
CREATE TABLE IF NOT EXISTS regionais (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    external_id INTEGER,
    nome TEXT NOT NULL CHECK (length(nome) <= {NOME_MAX_LENGTH}),
    ativo INTEGER NOT NULL DEFAULT 1,
    created_at TEXT NOT NULL,
    updated_at TEXT
);
"""


REGIONAIS_EXTERNAL_ID_INDEX_SQL = """
CREATE INDEX IF NOT EXISTS idx_regionais_external_id ON regionais (external_id);
"""


def create_tables(conn: sqlite3.Connection | Any) -> None:
    """Create required tables on the given SQLite connection.

    The function will execute DDL statements and commit the transaction.
    """
    cur = conn.cursor()
    cur.execute(REGIONAIS_TABLE_SQL)
    cur.execute(REGIONAIS_EXTERNAL_ID_INDEX_SQL)
    conn.commit()


__all__ = [
    "NOME_MAX_LENGTH",
    "REGIONAIS_TABLE_SQL",
    "REGIONAIS_EXTERNAL_ID_INDEX_SQL",
    "create_tables",
]
