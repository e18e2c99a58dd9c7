"""
DTOs de autenticacion y usuarios.
"""
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from catalog_bff.shared.constants.catalog_constants import PriceType, UserRole


class LoginRequestDTO(BaseModel):
    email: str = Field(..., min_length=3, max_length=255)
    password: str = Field(..., min_length=1)


class RegisterUserDTO(BaseModel):
    """Alta de usuario (solo la puede hacer un comercial)."""

    email: str = Field(..., min_length=3, max_length=255)
    password: str = Field(..., min_length=6)
    name: str = Field(..., min_length=1, max_length=255)
    role: UserRole = UserRole.CLIENTE
    price_type: PriceType = PriceType.BASE
    customer_id: Optional[str] = Field(None, max_length=64)


class UserResponseDTO(BaseModel):
    id: int
    email: str
    name: str
    role: UserRole
    price_type: PriceType
    customer_id: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        """Configuración de Pydantic."""
        from_attributes = True


class TokenResponseDTO(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user: UserResponseDTO
