"""
Endpoints de autenticación.

Los tokens JWT emitidos aqui se envian como `Authorization: Bearer <token>`.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, status

from catalog_bff.api.v1.dependencies.auth_deps import get_current_user, require_roles
from catalog_bff.api.v1.dependencies.use_case_deps import get_auth_use_cases
from catalog_bff.application.dto.auth_dto import (
    LoginRequestDTO,
    RegisterUserDTO,
    TokenResponseDTO,
    UserResponseDTO,
)
from catalog_bff.application.use_cases.auth_use_cases import AuthUseCases
from catalog_bff.domain.entities.user import User
from catalog_bff.shared.constants.catalog_constants import UserRole


router = APIRouter(prefix="/auth", tags=["Auth"])


@router.post(
    "/login",
    response_model=TokenResponseDTO,
    status_code=status.HTTP_200_OK,
    summary="Login con email y contraseña",
)
async def login(
    dto: LoginRequestDTO,
    use_cases: AuthUseCases = Depends(get_auth_use_cases),
) -> TokenResponseDTO:
    return await use_cases.login(dto)


@router.post(
    "/register",
    response_model=UserResponseDTO,
    status_code=status.HTTP_201_CREATED,
    summary="Alta de usuario (solo comerciales)",
)
async def register(
    dto: RegisterUserDTO,
    _: User = Depends(require_roles(UserRole.COMERCIAL)),
    use_cases: AuthUseCases = Depends(get_auth_use_cases),
) -> UserResponseDTO:
    return await use_cases.register(dto)


@router.get("/me", response_model=UserResponseDTO, summary="Usuario autenticado")
async def me(user: User = Depends(get_current_user)) -> UserResponseDTO:
    return UserResponseDTO.model_validate(user)
