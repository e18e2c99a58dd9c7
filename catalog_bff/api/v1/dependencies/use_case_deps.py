"""
Dependencias para inyeccion de casos de uso.
"""
from typing import Optional

from fastapi import Depends, Request

from catalog_bff.api.v1.dependencies.repository_deps import get_catalog_store, get_user_repository
from catalog_bff.application.use_cases.auth_use_cases import AuthUseCases
from catalog_bff.application.use_cases.catalog_sync_use_cases import CatalogSyncCoordinator
from catalog_bff.application.use_cases.catalog_use_cases import CatalogUseCases
from catalog_bff.domain.repositories.catalog_repository import ICatalogStore
from catalog_bff.domain.repositories.user_repository import IUserRepository
from catalog_bff.infrastructure.external.assets.cloudinary_store import AssetStore
from catalog_bff.shared.exceptions.base import AppException


class SyncNotConfiguredException(AppException):
    def __init__(self) -> None:
        super().__init__(
            message="Sincronizacion no configurada (faltan credenciales upstream)",
            status_code=503,
            error_code="SYNC_NOT_CONFIGURED",
        )


def get_asset_store(request: Request) -> Optional[AssetStore]:
    return getattr(request.app.state, "asset_store", None)


async def get_catalog_use_cases(
    store: ICatalogStore = Depends(get_catalog_store),
    asset_store: Optional[AssetStore] = Depends(get_asset_store),
) -> CatalogUseCases:
    """
    Dependencia para obtener los casos de uso del catalogo.

    Args:
        store: Almacen del catalogo
        asset_store: Almacen de imagenes (puede ser None)

    Returns:
        CatalogUseCases: Instancia de casos de uso del catalogo
    """
    return CatalogUseCases(store, asset_store)


async def get_auth_use_cases(
    user_repository: IUserRepository = Depends(get_user_repository)
) -> AuthUseCases:
    return AuthUseCases(user_repository)


def get_sync_coordinator(request: Request) -> CatalogSyncCoordinator:
    """
    Coordinador construido en el startup (app.state).

    Raises:
        SyncNotConfiguredException: si el pipeline no se pudo construir
    """
    coordinator = getattr(request.app.state, "sync_coordinator", None)
    if coordinator is None:
        raise SyncNotConfiguredException()
    return coordinator
