"""
Manejadores de eventos de inicio y cierre de la aplicacion.
"""
from typing import Callable
from fastapi import FastAPI
from loguru import logger

from catalog_bff.application.use_cases.auth_use_cases import AuthUseCases
from catalog_bff.application.use_cases.catalog_sync_use_cases import CatalogSyncCoordinator
from catalog_bff.core.config import settings
from catalog_bff.infrastructure.database.session import AsyncSessionLocal, init_db, close_db
from catalog_bff.infrastructure.external.assets.cloudinary_store import build_asset_store
from catalog_bff.infrastructure.external.upstream_catalog.factory import SyncConfigError, build_from_settings
from catalog_bff.infrastructure.repositories.catalog_repository_impl import SqlAlchemyCatalogStore
from catalog_bff.infrastructure.repositories.user_repository_impl import UserRepositoryImpl
from catalog_bff.infrastructure.scheduling.sync_scheduler import build_sync_scheduler


def startup_handler(app: FastAPI) -> Callable:
    """
    Manejador de eventos de inicio de la aplicacion.

    Args:
        app: Instancia de FastAPI

    Returns:
        Callable: Funcion asincrona de inicio
    """
    async def startup() -> None:
        """Inicializa recursos al inicio de la aplicacion."""
        try:
            logger.info(f"Iniciando {settings.APP_NAME} v{settings.APP_VERSION}")
            logger.info(f"Entorno: {settings.ENVIRONMENT}")

            # Configurar logging adicional
            logger.add(
                settings.LOG_FILE,
                rotation="500 MB",
                retention="10 days",
                level=settings.LOG_LEVEL
            )

            _validate_config()

            # Inicializar base de datos (crea tablas si no existen)
            await init_db()
            logger.info("Base de datos inicializada")

            await _ensure_initial_admin()

            app.state.asset_store = build_asset_store(settings)
            app.state.upstream_pipeline = None
            app.state.sync_coordinator = None
            app.state.scheduler = None

            try:
                pipeline = build_from_settings(settings, asset_store=app.state.asset_store)
            except SyncConfigError as e:
                logger.warning(f"CONFIG: sincronizacion deshabilitada - {e}")
            else:
                app.state.upstream_pipeline = pipeline
                app.state.sync_coordinator = CatalogSyncCoordinator(
                    pipeline.fetcher,
                    SqlAlchemyCatalogStore(AsyncSessionLocal),
                )

            if settings.SYNC_ENABLED and app.state.sync_coordinator is not None:
                scheduler = build_sync_scheduler(
                    app.state.sync_coordinator,
                    cron=settings.SYNC_CRON,
                    timezone=settings.SYNC_TIMEZONE,
                    run_on_startup=settings.SYNC_RUN_ON_STARTUP,
                )
                scheduler.start()
                app.state.scheduler = scheduler
                logger.info("Scheduler de sincronizacion iniciado")

            logger.success("Aplicacion iniciada correctamente")

            _print_available_urls()

        except Exception as e:
            logger.error(f"Error durante startup: {e}")
            logger.exception("Detalle del error:")
            raise

    return startup


def _validate_config() -> None:
    """Valida que la configuracion critica este presente."""
    warnings = []

    if not settings.upstream_configured:
        warnings.append("UPSTREAM_BASE_URL/USERNAME/PASSWORD no configurados - no habra sincronizacion")

    if settings.SECRET_KEY == "change-this-secret-key-in-production" and not settings.is_development:
        warnings.append("SECRET_KEY por defecto en un entorno que no es de desarrollo")

    if not settings.ADMIN_EMAIL or not settings.ADMIN_PASSWORD:
        warnings.append("ADMIN_EMAIL/ADMIN_PASSWORD vacios - no se creara el usuario administrador")

    for warning in warnings:
        logger.warning(f"CONFIG: {warning}")


async def _ensure_initial_admin() -> None:
    """Crea el usuario comercial inicial si esta configurado y no existe."""
    if not settings.ADMIN_EMAIL or not settings.ADMIN_PASSWORD:
        return

    async with AsyncSessionLocal() as session:
        use_cases = AuthUseCases(UserRepositoryImpl(session))
        created = await use_cases.ensure_initial_admin(
            settings.ADMIN_EMAIL,
            settings.ADMIN_PASSWORD,
            settings.ADMIN_NAME,
        )
        if created:
            await session.commit()


def _print_available_urls() -> None:
    """Imprime las URLs disponibles de la aplicacion."""
    if settings.HOST == "0.0.0.0":
        access_host = "localhost"
    else:
        access_host = settings.HOST

    base_url = f"http://{access_host}:{settings.PORT}"

    logger.opt(colors=True).info("<bold><green>" + "=" * 80 + "</green></bold>")
    logger.opt(colors=True).info("<bold><green>URLS DISPONIBLES:</green></bold>")
    logger.opt(colors=True).info("<bold><green>" + "=" * 80 + "</green></bold>")
    logger.opt(colors=True).info(f"<cyan>  Swagger UI:  {base_url}/docs</cyan>")
    logger.opt(colors=True).info(f"<cyan>  Catalogo:    {base_url}/api/v1/catalog/items</cyan>")
    logger.opt(colors=True).info(f"<cyan>  Health:      {base_url}/health</cyan>")
    logger.opt(colors=True).info("<bold><green>" + "=" * 80 + "</green></bold>")


def shutdown_handler(app: FastAPI) -> Callable:
    """
    Manejador de eventos de cierre de la aplicacion.

    Args:
        app: Instancia de FastAPI

    Returns:
        Callable: Funcion asincrona de cierre
    """
    async def shutdown() -> None:
        """Libera recursos al cerrar la aplicacion."""
        logger.info("Cerrando aplicacion...")

        scheduler = getattr(app.state, "scheduler", None)
        if scheduler is not None:
            scheduler.shutdown(wait=False)
            logger.info("Scheduler detenido")

        coordinator = getattr(app.state, "sync_coordinator", None)
        if coordinator is not None and coordinator.cancel():
            logger.info("Sincronizacion en curso cancelada")

        pipeline = getattr(app.state, "upstream_pipeline", None)
        if pipeline is not None:
            await pipeline.aclose()
            logger.info("Cliente upstream cerrado")

        # Cerrar conexiones de base de datos
        await close_db()
        logger.info("Conexiones de base de datos cerradas")

        logger.success("Aplicacion cerrada correctamente")

    return shutdown
