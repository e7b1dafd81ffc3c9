"""Repository helpers for regional records.

Rows are never deleted here: the only writes are inserting a new record and
flipping the `ativo` flag of an existing one. Each write commits on its own.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, List, Optional
import sqlite3


_COLUMNS = "id, external_id, nome, ativo, created_at, updated_at"


@dataclass(frozen=True)
class Regional:
    id: int
    external_id: Optional[int]
    nome: str
    ativo: bool = True
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    @property
    def is_legacy(self) -> bool:
        """Rows created before the external integration have no external id."""
        return self.external_id is None


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _row_to_regional(row: Any) -> Regional:
    return Regional(
        id=int(row[0]),
        external_id=int(row[1]) if row[1] is not None else None,
        nome=row[2],
        ativo=bool(row[3]),
        created_at=row[4],
        updated_at=row[5],
    )


def _select(conn: sqlite3.Connection, where_sql: str = "", order_sql: str = "ORDER BY id ASC", params: tuple = ()) -> List[Regional]:
    cur = conn.cursor()
    cur.execute(f"SELECT {_COLUMNS} FROM regionais {where_sql} {order_sql}", params)
    return [_row_to_regional(r) for r in cur.fetchall()]


def insert_regional(conn: sqlite3.Connection, external_id: Optional[int], nome: str, ativo: bool = True) -> int:
    """Insert a new regional record and return the inserted id.

    The function commits the transaction.
    """
    now = _now()
    cur = conn.cursor()
    cur.execute(
        """
        INSERT INTO regionais (external_id, nome, ativo, created_at, updated_at)
        VALUES (?, ?, ?, ?, ?)
        """,
        (external_id, nome, int(bool(ativo)), now, now),
    )
    conn.commit()
    return int(cur.lastrowid)


def set_regional_ativo(conn: sqlite3.Connection, regional_id: int, ativo: bool) -> None:
    """Set the `ativo` flag of an existing record and bump `updated_at`.

    Raises `LookupError` if no record has `regional_id`.
    """
    cur = conn.cursor()
    cur.execute(
        "UPDATE regionais SET ativo = ?, updated_at = ? WHERE id = ?",
        (int(bool(ativo)), _now(), int(regional_id)),
    )
    if cur.rowcount == 0:
        conn.rollback()
        raise LookupError(f"Regional not found: {regional_id}")
    conn.commit()


def get_regional(conn: sqlite3.Connection, regional_id: int) -> Optional[Regional]:
    rows = _select(conn, "WHERE id = ?", "", (int(regional_id),))
    return rows[0] if rows else None


def list_regionais(conn: sqlite3.Connection) -> List[Regional]:
    """Return every record, active or not, ordered by id."""
    return _select(conn)


def list_regionais_by_nome(conn: sqlite3.Connection) -> List[Regional]:
    """Return every record ordered by `nome` (case-sensitive), then id."""
    return _select(conn, order_sql="ORDER BY nome ASC, id ASC")


def list_active_regionais(conn: sqlite3.Connection) -> List[Regional]:
    return _select(conn, "WHERE ativo = 1")


class SqliteRegionalStore:
    """Persistence boundary used by the sync driver, backed by one connection."""

    def __init__(self, conn: sqlite3.Connection) -> None:
        self.conn = conn

    def find_all(self) -> List[Regional]:
        return list_regionais(self.conn)

    def find_all_ordered_by_nome(self) -> List[Regional]:
        return list_regionais_by_nome(self.conn)

    def find_active(self) -> List[Regional]:
        return list_active_regionais(self.conn)

    def insert(self, external_id: Optional[int], nome: str) -> int:
        return insert_regional(self.conn, external_id, nome, ativo=True)

    def set_ativo(self, regional_id: int, ativo: bool) -> None:
        set_regional_ativo(self.conn, regional_id, ativo)


__all__ = [
    "Regional",
    "insert_regional",
    "set_regional_ativo",
    "get_regional",
    "list_regionais",
    "list_regionais_by_nome",
    "list_active_regionais",
    "SqliteRegionalStore",
]
