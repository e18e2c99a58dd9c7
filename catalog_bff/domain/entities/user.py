"""
Entidad de dominio: User (usuario del lado lectura).
"""
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from catalog_bff.shared.constants.catalog_constants import PriceType, UserRole


@dataclass
class User:
    """
    Usuario de la API de lectura.

    El rol decide la visibilidad de precios y `price_type` la tarifa que ve
    un cliente o trabajador.
    """

    id: Optional[int] = None
    email: str = ""
    hashed_password: str = ""
    name: str = ""
    role: UserRole = UserRole.CLIENTE
    price_type: PriceType = PriceType.BASE
    customer_id: Optional[str] = None
    created_at: Optional[datetime] = None

    def __post_init__(self):
        """Validaciones después de la inicialización."""
        if not self.email:
            raise ValueError("El email del usuario no puede estar vacío")
        self.email = self.email.strip().lower()

    def has_role(self, *roles: UserRole) -> bool:
        return self.role in roles
