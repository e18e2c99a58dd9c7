"""
Dependencias para inyección de repositorios.
"""
from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from catalog_bff.infrastructure.database.session import AsyncSessionLocal, get_db
from catalog_bff.infrastructure.repositories.catalog_repository_impl import SqlAlchemyCatalogStore
from catalog_bff.infrastructure.repositories.user_repository_impl import UserRepositoryImpl


async def get_user_repository(
    session: AsyncSession = Depends(get_db)
) -> UserRepositoryImpl:
    """
    Dependencia para obtener el repositorio de usuarios.

    Args:
        session: Sesión de base de datos

    Returns:
        UserRepositoryImpl: Instancia del repositorio de usuarios
    """
    return UserRepositoryImpl(session)


def get_catalog_store() -> SqlAlchemyCatalogStore:
    """El almacen del catalogo abre su propia sesion por operacion."""
    return SqlAlchemyCatalogStore(AsyncSessionLocal)
