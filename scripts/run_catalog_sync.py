"""
CLI: catalogo upstream -> base de datos local (una corrida).

Uso recomendado:
  - Ejecutar como job (cron/systemd timer) cuando el API corre con
    SYNC_ENABLED=false, o para forzar una corrida manual.

Variables de entorno requeridas:
  - UPSTREAM_BASE_URL
  - UPSTREAM_USERNAME
  - UPSTREAM_PASSWORD
  - DATABASE_URL (o sus componentes DATABASE_*)

Ejecución:
  python scripts/run_catalog_sync.py
  python scripts/run_catalog_sync.py --dry-run

Codigo de salida: 0 si la corrida termina `completed`, 1 en otro caso.
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from pathlib import Path

from dotenv import load_dotenv
from loguru import logger

# Permite ejecutar este script desde cualquier cwd sin configurar PYTHONPATH.
_REPO_ROOT = Path(__file__).resolve().parents[1]
if str(_REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(_REPO_ROOT))

# Cargar variables desde .env antes de construir `settings`.
load_dotenv(_REPO_ROOT / ".env", override=False)

from catalog_bff.application.use_cases.catalog_sync_use_cases import CatalogSyncCoordinator
from catalog_bff.core.config import settings
from catalog_bff.infrastructure.database.session import AsyncSessionLocal, close_db, init_db
from catalog_bff.infrastructure.external.assets.cloudinary_store import build_asset_store
from catalog_bff.infrastructure.external.upstream_catalog.factory import SyncConfigError, build_from_settings
from catalog_bff.infrastructure.repositories.catalog_repository_impl import SqlAlchemyCatalogStore
from catalog_bff.shared.constants.catalog_constants import SyncStatus


async def _dry_run(pipeline) -> int:
    result = await pipeline.fetcher.fetch_all()
    if result.error is not None:
        logger.error(f"Dry run fallido: {result.error}")
        return 1

    logger.info(
        f"Dry run OK: paginas={result.pages_fetched}, brutos={result.raw_fetched}, "
        f"validos={len(result.items)}, descartados={result.dropped}, truncado={result.truncated}"
    )
    for item in result.items[:5]:
        logger.info(f"  {item.id} | {item.scientific_name} | {item.image_url}")
    return 0


async def _run(dry_run: bool) -> int:
    asset_store = build_asset_store(settings) if settings.IMAGE_STRATEGY == "asset_store" else None
    try:
        pipeline = build_from_settings(settings, asset_store=asset_store)
    except SyncConfigError as e:
        logger.error(f"Configuracion invalida: {e}")
        return 1

    try:
        if dry_run:
            return await _dry_run(pipeline)

        await init_db()
        coordinator = CatalogSyncCoordinator(pipeline.fetcher, SqlAlchemyCatalogStore(AsyncSessionLocal))
        report = await coordinator.trigger()
        logger.info(
            f"Sync {report.status.value}: paginas={report.pages_fetched}, brutos={report.records_fetched}, "
            f"validos={report.records_kept}, descartados={report.records_dropped}, "
            f"insertados={report.records_inserted}, rechazados={len(report.rejected_ids)}"
        )
        if report.error:
            logger.error(f"Error: {report.error}")
        return 0 if report.status == SyncStatus.COMPLETED else 1
    finally:
        await pipeline.aclose()
        if not dry_run:
            await close_db()


def main() -> int:
    parser = argparse.ArgumentParser(description="Sincroniza el catalogo upstream una vez.")
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Descarga y transforma sin tocar la base de datos.",
    )
    args = parser.parse_args()

    logger.info("Iniciando sincronizacion del catalogo...")
    return asyncio.run(_run(args.dry_run))


if __name__ == "__main__":
    raise SystemExit(main())
