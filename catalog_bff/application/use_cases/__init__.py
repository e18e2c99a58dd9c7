"""
Casos de uso de la aplicacion.
"""
from .auth_use_cases import AuthUseCases
from .catalog_use_cases import CatalogUseCases
from .catalog_sync_use_cases import CatalogSyncCoordinator, SyncReport

__all__ = ["AuthUseCases", "CatalogUseCases", "CatalogSyncCoordinator", "SyncReport"]
