"""
Interfaz del repositorio de usuarios.
"""
from abc import ABC, abstractmethod
from typing import Optional

from catalog_bff.domain.entities.user import User


class IUserRepository(ABC):
    """
    Interfaz del repositorio de usuarios.
    """

    @abstractmethod
    async def create(self, user: User) -> User:
        """
        Crea un nuevo usuario.

        Args:
            user: Entidad del usuario a crear (con la contraseña ya hasheada)

        Returns:
            User: Usuario creado con ID asignado
        """
        pass

    @abstractmethod
    async def get_by_id(self, user_id: int) -> Optional[User]:
        pass

    @abstractmethod
    async def get_by_email(self, email: str) -> Optional[User]:
        """Obtiene un usuario por email (sin distinguir mayusculas)."""
        pass
