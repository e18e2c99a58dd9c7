"""
Implementación del repositorio de usuarios usando SQLAlchemy.
"""
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from catalog_bff.domain.entities.user import User
from catalog_bff.domain.repositories.user_repository import IUserRepository
from catalog_bff.infrastructure.database.models import UserModel


class UserRepositoryImpl(IUserRepository):
    """Implementación del repositorio de usuarios con SQLAlchemy."""

    def __init__(self, session: AsyncSession):
        """
        Inicializa el repositorio con una sesión de base de datos.

        Args:
            session: Sesión de SQLAlchemy
        """
        self.session = session

    async def create(self, user: User) -> User:
        db_user = UserModel(
            email=user.email,
            hashed_password=user.hashed_password,
            name=user.name,
            role=user.role,
            price_type=user.price_type,
            customer_id=user.customer_id,
        )

        self.session.add(db_user)
        await self.session.flush()
        await self.session.refresh(db_user)

        return self._to_entity(db_user)

    async def get_by_id(self, user_id: int) -> Optional[User]:
        result = await self.session.execute(
            select(UserModel).where(UserModel.id == user_id)
        )
        db_user = result.scalar_one_or_none()
        return self._to_entity(db_user) if db_user else None

    async def get_by_email(self, email: str) -> Optional[User]:
        result = await self.session.execute(
            select(UserModel).where(UserModel.email == email.strip().lower())
        )
        db_user = result.scalar_one_or_none()
        return self._to_entity(db_user) if db_user else None

    @staticmethod
    def _to_entity(db_user: UserModel) -> User:
        """Convierte un modelo de base de datos a entidad de dominio."""
        return User(
            id=db_user.id,
            email=db_user.email,
            hashed_password=db_user.hashed_password,
            name=db_user.name,
            role=db_user.role,
            price_type=db_user.price_type,
            customer_id=db_user.customer_id,
            created_at=db_user.created_at,
        )
