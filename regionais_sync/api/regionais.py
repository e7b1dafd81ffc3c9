"""API endpoints for regionais synchronization and listing.

`POST /regionais/sync` runs one cycle on demand (waiting for a scheduled
cycle already in flight); the GET endpoints read the local table only.
"""
from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel

from ..core.db import init_db, get_connection
from ..core.errors import ConfigurationError, SynchronizationError
from ..pipeline.regional_source import RegionalSource
from ..pipeline.regional_sync import RegionalSyncService, build_regional_source
from ..repo.regionais import Regional, SqliteRegionalStore
from ..repo.schema import create_tables

router = APIRouter()


def _init_db_conn():
    init_db()
    conn = get_connection()
    create_tables(conn)
    return conn


def get_regional_source() -> RegionalSource:
    try:
        return build_regional_source()
    except ConfigurationError as exc:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc)) from exc


class RegionalOut(BaseModel):
    id: int
    external_id: Optional[int] = None
    nome: str
    ativo: bool
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


class SyncSummaryOut(BaseModel):
    inserted: int
    updated: int
    inactivated: int
    reactivated: int


class SyncResponse(BaseModel):
    message: str
    summary: SyncSummaryOut


def _to_out(regionais: List[Regional]) -> List[RegionalOut]:
    return [
        RegionalOut(
            id=r.id,
            external_id=r.external_id,
            nome=r.nome,
            ativo=r.ativo,
            created_at=r.created_at,
            updated_at=r.updated_at,
        )
        for r in regionais
    ]


@router.post("/regionais/sync", response_model=SyncResponse)
def synchronize_regionais(source: RegionalSource = Depends(get_regional_source)):
    """Manually trigger synchronization with the external API."""
    conn = _init_db_conn()
    try:
        summary = RegionalSyncService(source, SqliteRegionalStore(conn)).synchronize()
    except SynchronizationError as exc:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc)) from exc
    finally:
        conn.close()

    return {"message": "Synchronization completed successfully", "summary": summary.as_dict()}


@router.get("/regionais", response_model=List[RegionalOut])
def list_regionais():
    """All regionais ordered by name, inactive ones included."""
    conn = _init_db_conn()
    try:
        return _to_out(SqliteRegionalStore(conn).find_all_ordered_by_nome())
    finally:
        conn.close()


@router.get("/regionais/active", response_model=List[RegionalOut])
def list_active_regionais():
    conn = _init_db_conn()
    try:
        return _to_out(SqliteRegionalStore(conn).find_active())
    finally:
        conn.close()


__all__ = ["router", "get_regional_source"]
