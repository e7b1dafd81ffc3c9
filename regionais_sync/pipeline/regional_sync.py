"""Regional synchronization pipeline.

Converges the local `regionais` table toward the external snapshot:

- new in the external API: insert locally
- removed from the external API: inactivate locally
- name changed: inactivate the old row and insert a new one (history kept)
- back with the same name after removal: reactivate the existing row

`reconcile` is the pure decision step; `RegionalSyncService` fetches,
reconciles and applies the resulting writes one record at a time. Only one
cycle runs at a time per process (`SYNC_LOCK`); a trigger arriving while a
cycle is in flight waits for it and then runs its own cycle.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Protocol, Tuple

from ..core.config import Settings, settings
from ..core.db import get_connection, init_db
from ..core.errors import ConfigurationError, SynchronizationError
from ..repo.regionais import Regional, SqliteRegionalStore
from ..repo.schema import create_tables
from .regional_source import ExternalRegional, RegionalSource


LOG = logging.getLogger(__name__)

RESOURCE = "regionais"

SYNC_LOCK = threading.Lock()


class SyncState(str, Enum):
    IDLE = "idle"
    FETCHING = "fetching"
    RECONCILING = "reconciling"
    APPLYING = "applying"
    FAILED = "failed"


@dataclass(frozen=True)
class SyncSummary:
    inserted: int = 0
    updated: int = 0
    inactivated: int = 0
    reactivated: int = 0

    def as_dict(self) -> Dict[str, int]:
        return asdict(self)


@dataclass(frozen=True)
class SyncPlan:
    """Writes needed to converge local state; the three lists are disjoint."""

    to_insert: Tuple[ExternalRegional, ...] = ()
    to_inactivate: Tuple[Regional, ...] = ()
    to_reactivate: Tuple[Regional, ...] = ()
    summary: SyncSummary = field(default_factory=SyncSummary)

    @property
    def is_empty(self) -> bool:
        return not (self.to_insert or self.to_inactivate or self.to_reactivate)

    @property
    def write_count(self) -> int:
        return len(self.to_insert) + len(self.to_inactivate) + len(self.to_reactivate)


class RegionalStore(Protocol):
    def find_all(self) -> List[Regional]: ...

    def find_all_ordered_by_nome(self) -> List[Regional]: ...

    def find_active(self) -> List[Regional]: ...

    def insert(self, external_id: Optional[int], nome: str) -> int: ...

    def set_ativo(self, regional_id: int, ativo: bool) -> None: ...


class Source(Protocol):
    def fetch(self) -> List[ExternalRegional]: ...


# ---------------------------------------------------------------------------
# reconciliation
# ---------------------------------------------------------------------------


def _index_external(external: Iterable[ExternalRegional]) -> Dict[int, ExternalRegional]:
    # duplicated ids in one snapshot: last occurrence wins
    by_id: Dict[int, ExternalRegional] = {}
    for entry in external:
        by_id[entry.external_id] = entry
    return by_id


def _group_local(local: Iterable[Regional]) -> Dict[int, List[Regional]]:
    groups: Dict[int, List[Regional]] = {}
    for regional in local:
        if regional.external_id is None:
            continue
        groups.setdefault(regional.external_id, []).append(regional)
    return groups


def _by_id(regional: Regional) -> int:
    return regional.id


def reconcile(external: Iterable[ExternalRegional], local: Iterable[Regional]) -> SyncPlan:
    """Compute the writes that bring `local` in line with `external`.

    Pure and deterministic: permuting either input yields the same plan, and
    feeding the converged state back in yields an empty plan. Records without
    an external id never appear in the plan.

    When several local rows share one external id, the active row with the
    highest id represents it and any other active row is inactivated. With no
    active row, the inactive row carrying the external name (highest id) is
    reactivated; failing that a new row is inserted.
    """
    external_by_id = _index_external(external)
    local_by_id = _group_local(local)

    to_insert: List[ExternalRegional] = []
    to_inactivate: List[Regional] = []
    to_reactivate: List[Regional] = []
    inserted = updated = inactivated = reactivated = 0

    for external_id, entry in external_by_id.items():
        rows = local_by_id.get(external_id)
        if not rows:
            to_insert.append(entry)
            inserted += 1
            LOG.debug("Insert regional: %s - %s", external_id, entry.nome)
            continue

        active = sorted((r for r in rows if r.ativo), key=_by_id)
        if active:
            current = active[-1]
            for stale in active[:-1]:
                to_inactivate.append(stale)
                inactivated += 1
                LOG.debug("Inactivate duplicate active regional %s (external %s)", stale.id, external_id)
            if current.nome != entry.nome:
                to_inactivate.append(current)
                to_insert.append(entry)
                updated += 1
                LOG.debug("Update regional: %s - Old: '%s', New: '%s'", external_id, current.nome, entry.nome)
            continue

        same_name = [r for r in rows if r.nome == entry.nome]
        if same_name:
            target = max(same_name, key=_by_id)
            to_reactivate.append(target)
            reactivated += 1
            LOG.debug("Reactivate regional: %s - %s", external_id, entry.nome)
        else:
            to_insert.append(entry)
            updated += 1
            LOG.debug("Insert renamed regional over inactive history: %s - %s", external_id, entry.nome)

    for external_id, rows in local_by_id.items():
        if external_id in external_by_id:
            continue
        for regional in rows:
            if regional.ativo:
                to_inactivate.append(regional)
                inactivated += 1
                LOG.debug("Inactivate regional: %s - %s", external_id, regional.nome)

    return SyncPlan(
        to_insert=tuple(sorted(to_insert, key=lambda e: e.external_id)),
        to_inactivate=tuple(sorted(to_inactivate, key=_by_id)),
        to_reactivate=tuple(sorted(to_reactivate, key=_by_id)),
        summary=SyncSummary(inserted=inserted, updated=updated, inactivated=inactivated, reactivated=reactivated),
    )


# ---------------------------------------------------------------------------
# driver
# ---------------------------------------------------------------------------


class RegionalSyncService:
    """Runs reconciliation cycles against an injected source and store.

    Writes are applied one record at a time with no enclosing transaction.
    If a write fails the cycle aborts with `SynchronizationError` and the
    writes already made stay in place; running the cycle again completes
    the convergence.
    """

    def __init__(self, source: Source, store: RegionalStore, lock: Optional[Any] = None) -> None:
        self.source = source
        self.store = store
        self._lock = lock if lock is not None else SYNC_LOCK
        self.state = SyncState.IDLE

    def synchronize(self) -> SyncSummary:
        """Run one full cycle and return its counts.

        Raises `SynchronizationError` if fetching, reading or writing fails.
        """
        with self._lock:
            try:
                return self._run_cycle()
            finally:
                self.state = SyncState.IDLE

    def _run_cycle(self) -> SyncSummary:
        LOG.info("Starting regional synchronization from: %s", getattr(self.source, "url", self.source))

        self.state = SyncState.FETCHING
        try:
            external = self.source.fetch()
        except Exception as exc:
            self.state = SyncState.FAILED
            LOG.error("Error fetching regionais from external API", exc_info=True)
            raise SynchronizationError(RESOURCE, str(exc)) from exc

        if not external:
            LOG.warning("No regionais returned from external API")
            return SyncSummary()

        self.state = SyncState.RECONCILING
        try:
            plan = reconcile(external, self.store.find_all())
        except Exception as exc:
            self.state = SyncState.FAILED
            LOG.error("Error reading local regionais", exc_info=True)
            raise SynchronizationError(RESOURCE, str(exc)) from exc

        self.state = SyncState.APPLYING
        self._apply(plan)

        summary = plan.summary
        LOG.info(
            "Regional synchronization completed - Inserted: %d, Updated: %d, Inactivated: %d, Reactivated: %d",
            summary.inserted,
            summary.updated,
            summary.inactivated,
            summary.reactivated,
        )
        return summary

    def _apply(self, plan: SyncPlan) -> None:
        # inactivations go first so a renamed external id never has two active rows
        applied = 0
        try:
            for regional in plan.to_inactivate:
                self.store.set_ativo(regional.id, False)
                applied += 1
            for regional in plan.to_reactivate:
                self.store.set_ativo(regional.id, True)
                applied += 1
            for entry in plan.to_insert:
                self.store.insert(entry.external_id, entry.nome)
                applied += 1
        except Exception as exc:
            self.state = SyncState.FAILED
            LOG.error(
                "Regional synchronization aborted after %d of %d write(s)", applied, plan.write_count, exc_info=True
            )
            raise SynchronizationError(
                RESOURCE, f"write failed after {applied} of {plan.write_count} change(s): {exc}"
            ) from exc

    def list_all(self) -> List[Regional]:
        """All records ordered by name, inactive ones included."""
        return self.store.find_all_ordered_by_nome()

    def list_active(self) -> List[Regional]:
        return self.store.find_active()


# ---------------------------------------------------------------------------
# wiring
# ---------------------------------------------------------------------------


def build_regional_source(cfg: Optional[Settings] = None) -> RegionalSource:
    cfg = cfg or settings
    if not cfg.REGIONAIS_API_URL:
        raise ConfigurationError("REGIONAIS_API_URL is not configured")
    return RegionalSource(cfg.REGIONAIS_API_URL, timeout=cfg.REGIONAIS_FETCH_TIMEOUT_SECONDS)


def run_regional_sync(source: Optional[Source] = None) -> SyncSummary:
    """Open a connection from settings and run one synchronization cycle."""
    if source is None:
        source = build_regional_source()
    init_db()
    conn = get_connection()
    try:
        create_tables(conn)
        return RegionalSyncService(source, SqliteRegionalStore(conn)).synchronize()
    finally:
        conn.close()


__all__ = [
    "SYNC_LOCK",
    "SyncState",
    "SyncSummary",
    "SyncPlan",
    "RegionalStore",
    "reconcile",
    "RegionalSyncService",
    "build_regional_source",
    "run_regional_sync",
]
