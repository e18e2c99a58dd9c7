"""
Programacion del job de sincronizacion del catalogo (APScheduler).

- Job `catalog_sync`: expresion cron (por defecto `0 3 * * *`).
- Job `catalog_sync_startup`: una ejecucion al arrancar.

max_instances=1 + coalesce evitan acumular ejecuciones; el coordinador
ademas ignora disparos mientras hay una corrida en curso.
"""
from datetime import datetime
from typing import Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger
from apscheduler.triggers.date import DateTrigger
from loguru import logger

from catalog_bff.application.use_cases.catalog_sync_use_cases import CatalogSyncCoordinator

SYNC_JOB_ID = "catalog_sync"
STARTUP_JOB_ID = "catalog_sync_startup"


async def run_scheduled_sync(coordinator: CatalogSyncCoordinator) -> None:
    """Funcion que ejecuta el scheduler."""
    report = await coordinator.trigger()
    logger.info(f"[Scheduler] Corrida programada finalizada: {report.status.value}")


def build_sync_scheduler(
    coordinator: CatalogSyncCoordinator,
    *,
    cron: str,
    timezone: str,
    run_on_startup: bool = True,
    startup_run_at: Optional[datetime] = None,
) -> AsyncIOScheduler:
    """
    Crea el scheduler con los jobs registrados (sin arrancarlo).

    Args:
        coordinator: Coordinador de sincronizacion
        cron: Expresion cron de 5 campos
        timezone: Zona horaria de la expresion cron
        run_on_startup: Si True, agenda una corrida inmediata
        startup_run_at: Momento de la corrida inicial (por defecto, ahora)

    Raises:
        ValueError: si la expresion cron no es valida
    """
    scheduler = AsyncIOScheduler(timezone=timezone)

    scheduler.add_job(
        run_scheduled_sync,
        trigger=CronTrigger.from_crontab(cron, timezone=timezone),
        args=[coordinator],
        id=SYNC_JOB_ID,
        name="Sincronizacion del catalogo",
        max_instances=1,
        coalesce=True,
        replace_existing=True,
    )
    logger.info(f"[Scheduler] Job '{SYNC_JOB_ID}' programado con cron '{cron}' ({timezone})")

    if run_on_startup:
        scheduler.add_job(
            run_scheduled_sync,
            trigger=DateTrigger(run_date=startup_run_at),
            args=[coordinator],
            id=STARTUP_JOB_ID,
            name="Sincronizacion inicial",
            max_instances=1,
            replace_existing=True,
        )
        logger.info(f"[Scheduler] Job '{STARTUP_JOB_ID}' programado para el arranque")

    return scheduler
