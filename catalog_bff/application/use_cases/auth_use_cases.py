"""
Casos de uso de autenticacion y alta de usuarios.
"""
from loguru import logger

from catalog_bff.application.dto.auth_dto import (
    LoginRequestDTO,
    RegisterUserDTO,
    TokenResponseDTO,
    UserResponseDTO,
)
from catalog_bff.core.security import SecurityService, security_service
from catalog_bff.domain.entities.user import User
from catalog_bff.domain.repositories.user_repository import IUserRepository
from catalog_bff.shared.constants.catalog_constants import PriceType, UserRole
from catalog_bff.shared.exceptions.auth import InvalidCredentialsException
from catalog_bff.shared.exceptions.domain import EntityAlreadyExistsException


class AuthUseCases:
    def __init__(self, user_repository: IUserRepository, security: SecurityService = security_service) -> None:
        self.user_repository = user_repository
        self.security = security

    async def login(self, dto: LoginRequestDTO) -> TokenResponseDTO:
        """
        Valida credenciales y emite un JWT.

        Raises:
            InvalidCredentialsException: email desconocido o contraseña incorrecta
        """
        user = await self.user_repository.get_by_email(dto.email)
        if user is None or not self.security.verify_password(dto.password, user.hashed_password):
            logger.warning(f"Login fallido para {dto.email}")
            raise InvalidCredentialsException()

        token = self.security.create_access_token(
            {"sub": str(user.id), "role": user.role.value, "price_type": user.price_type.value}
        )
        return TokenResponseDTO(access_token=token, user=UserResponseDTO.model_validate(user))

    async def register(self, dto: RegisterUserDTO) -> UserResponseDTO:
        """
        Raises:
            EntityAlreadyExistsException: si el email ya esta registrado
        """
        existing = await self.user_repository.get_by_email(dto.email)
        if existing:
            raise EntityAlreadyExistsException("User", "email", dto.email.strip().lower())

        user = User(
            email=dto.email,
            hashed_password=self.security.hash_password(dto.password),
            name=dto.name,
            role=dto.role,
            price_type=dto.price_type,
            customer_id=dto.customer_id,
        )
        created = await self.user_repository.create(user)
        logger.info(f"Usuario creado: {created.email} ({created.role.value})")
        return UserResponseDTO.model_validate(created)

    async def ensure_initial_admin(self, email: str, password: str, name: str) -> bool:
        """
        Crea el usuario comercial inicial si no existe.

        Returns:
            bool: True si se creo
        """
        if await self.user_repository.get_by_email(email):
            return False

        await self.user_repository.create(
            User(
                email=email,
                hashed_password=self.security.hash_password(password),
                name=name,
                role=UserRole.COMERCIAL,
                price_type=PriceType.BASE,
            )
        )
        logger.success(f"Usuario administrador inicial creado: {email}")
        return True
