"""
Data Transfer Objects (DTOs) para la capa de aplicacion.
"""
from .catalog_dto import CatalogItemResponseDTO, CatalogPageDTO
from .auth_dto import LoginRequestDTO, RegisterUserDTO, UserResponseDTO, TokenResponseDTO
from .sync_dto import SyncReportDTO, SyncStatusDTO, SyncTriggerResponseDTO

__all__ = [
    "CatalogItemResponseDTO",
    "CatalogPageDTO",
    "LoginRequestDTO",
    "RegisterUserDTO",
    "UserResponseDTO",
    "TokenResponseDTO",
    "SyncReportDTO",
    "SyncStatusDTO",
    "SyncTriggerResponseDTO",
]
