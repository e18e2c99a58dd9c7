"""
Dependencias de autenticacion y autorizacion (JWT Bearer).
"""
from typing import Callable, Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from catalog_bff.api.v1.dependencies.repository_deps import get_user_repository
from catalog_bff.core.security import security_service
from catalog_bff.domain.entities.user import User
from catalog_bff.domain.repositories.user_repository import IUserRepository
from catalog_bff.shared.constants.catalog_constants import UserRole
from catalog_bff.shared.exceptions.auth import (
    ForbiddenException,
    InvalidCredentialsException,
    UnauthorizedException,
)


bearer_scheme = HTTPBearer(auto_error=False)


async def get_optional_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    user_repository: IUserRepository = Depends(get_user_repository),
) -> Optional[User]:
    """
    Usuario autenticado, o None si la peticion no trae token.

    Un token presente pero invalido es un error (401), no un anonimo.
    """
    if credentials is None:
        return None

    payload = security_service.decode_access_token(credentials.credentials)
    try:
        user_id = int(payload.get("sub"))
    except (TypeError, ValueError):
        raise InvalidCredentialsException()

    user = await user_repository.get_by_id(user_id)
    if user is None:
        raise UnauthorizedException("Usuario no encontrado")
    return user


async def get_current_user(user: Optional[User] = Depends(get_optional_user)) -> User:
    if user is None:
        raise UnauthorizedException("Se requiere autenticacion")
    return user


def require_roles(*roles: UserRole) -> Callable:
    """
    Dependencia que exige uno de los roles indicados.

    Ejemplo:
        user: User = Depends(require_roles(UserRole.COMERCIAL))
    """
    async def _require(user: User = Depends(get_current_user)) -> User:
        if user.role not in roles:
            raise ForbiddenException(
                required_roles=[r.value for r in roles],
                role=user.role.value,
            )
        return user

    return _require
