"""
Coordinador de la sincronizacion del catalogo.

Maquina de estados Idle/Running:
- Un disparo mientras hay una corrida en curso se omite (no se encola).
- Descarga completa -> reemplazo completo del almacen.
- Si la corrida no produce articulos (error o upstream vacio) el almacen no
  se toca: se conserva el ultimo snapshot bueno.

Lo disparan el scheduler, el endpoint /sync/run y el script CLI.
"""

from __future__ import annotations

import asyncio
import threading
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, List, Optional, Protocol, Set

from loguru import logger

from catalog_bff.domain.repositories.catalog_repository import ICatalogStore
from catalog_bff.infrastructure.external.upstream_catalog.types import FetchResult, utc_now
from catalog_bff.shared.constants.catalog_constants import SyncState, SyncStatus
from catalog_bff.shared.exceptions.sync import CatalogPersistenceError


class CatalogFetcher(Protocol):
    async def fetch_all(
        self,
        filter_expr: Optional[str] = None,
        *,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> FetchResult:
        ...


@dataclass(frozen=True)
class SyncReport:
    """Resumen de una corrida (no se persiste)."""

    status: SyncStatus
    started_at: datetime
    finished_at: Optional[datetime] = None
    pages_fetched: int = 0
    records_fetched: int = 0
    records_kept: int = 0
    records_dropped: int = 0
    records_inserted: int = 0
    rejected_ids: List[str] = field(default_factory=list)
    truncated: bool = False
    error: Optional[str] = None


class CatalogSyncCoordinator:
    """
    Orquestador de corridas de sincronizacion.

    El guard es un `threading.Lock` adquirido sin bloquear: test-and-set
    atomico, sin esperas.
    """

    def __init__(
        self,
        fetcher: CatalogFetcher,
        store: ICatalogStore,
        *,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._fetcher = fetcher
        self._store = store
        self._clock = clock

        self._guard = threading.Lock()
        self._state = SyncState.IDLE
        self._last_report: Optional[SyncReport] = None
        self._cancel_event: Optional[asyncio.Event] = None
        self._background: Set[asyncio.Task] = set()

    @property
    def state(self) -> SyncState:
        return self._state

    @property
    def is_running(self) -> bool:
        return self._state == SyncState.RUNNING

    @property
    def last_report(self) -> Optional[SyncReport]:
        return self._last_report

    async def trigger(self) -> SyncReport:
        """
        Ejecuta una corrida si no hay otra en curso.

        Returns:
            SyncReport: resultado; `skipped_overlap` si ya habia una corrida
        """
        if not self._try_claim():
            now = self._clock()
            logger.warning("[CatalogSync] Sincronizacion ya en curso. Se omite este disparo.")
            return SyncReport(status=SyncStatus.SKIPPED_OVERLAP, started_at=now, finished_at=now)
        return await self._run_claimed()

    def start_in_background(self) -> bool:
        """
        Reserva la corrida y la lanza como tarea sin esperar el resultado.

        Returns:
            bool: False si ya habia una corrida en curso
        """
        if not self._try_claim():
            return False
        task = asyncio.create_task(self._run_claimed())
        self._background.add(task)
        task.add_done_callback(self._on_background_done)
        return True

    def cancel(self) -> bool:
        """Pide cancelar la corrida en curso (se aplica entre paginas)."""
        if self._cancel_event is None:
            return False
        logger.warning("[CatalogSync] Cancelacion solicitada")
        self._cancel_event.set()
        return True

    def _try_claim(self) -> bool:
        """Test-and-set del guard; si gana, el estado pasa a RUNNING."""
        if not self._guard.acquire(blocking=False):
            return False
        self._state = SyncState.RUNNING
        self._cancel_event = asyncio.Event()
        return True

    async def _run_claimed(self) -> SyncReport:
        """Ejecuta la corrida ya reservada y libera el guard al terminar."""
        try:
            report = await self._run(self._clock())
            self._last_report = report
            return report
        finally:
            self._cancel_event = None
            self._state = SyncState.IDLE
            self._guard.release()

    def _on_background_done(self, task: asyncio.Task) -> None:
        self._background.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.opt(exception=exc).error(f"[CatalogSync] Error inesperado en corrida en background: {exc}")

    async def _run(self, started_at: datetime) -> SyncReport:
        logger.info("[CatalogSync] Iniciando sincronizacion del catalogo...")
        result = await self._fetcher.fetch_all(cancel_event=self._cancel_event)

        counters = dict(
            started_at=started_at,
            pages_fetched=result.pages_fetched,
            records_fetched=result.raw_fetched,
            records_kept=len(result.items),
            records_dropped=result.dropped,
            truncated=result.truncated,
        )

        if result.error is not None:
            logger.error(f"[CatalogSync] Descarga abortada, se conserva el catalogo actual: {result.error}")
            return SyncReport(
                status=SyncStatus.FAILED,
                finished_at=self._clock(),
                error=str(result.error),
                **counters,
            )

        if not result.items:
            logger.warning("[CatalogSync] 0 articulos obtenidos. No se modifica el catalogo almacenado.")
            return SyncReport(status=SyncStatus.SKIPPED_EMPTY, finished_at=self._clock(), **counters)

        try:
            replaced = await self._store.replace_all(result.items)
        except CatalogPersistenceError as e:
            logger.error(f"[CatalogSync] Fallo el reemplazo del catalogo: {e.message}")
            return SyncReport(
                status=SyncStatus.FAILED,
                finished_at=self._clock(),
                error=e.message,
                rejected_ids=e.rejected_ids,
                **counters,
            )

        if replaced.rejected_ids:
            logger.warning(f"[CatalogSync] {replaced.rejected} articulos rechazados por el almacen")

        logger.success(
            f"[CatalogSync] Sincronizacion completada: {replaced.inserted} articulos guardados "
            f"({result.pages_fetched} paginas, {result.dropped} descartados)"
        )
        return SyncReport(
            status=SyncStatus.COMPLETED,
            finished_at=self._clock(),
            records_inserted=replaced.inserted,
            rejected_ids=list(replaced.rejected_ids),
            **counters,
        )
