"""
Modelos de base de datos (ORM).
"""
from sqlalchemy import Boolean, Column, DateTime, Enum as SQLEnum, Float, Integer, String
from sqlalchemy.sql import func

from catalog_bff.infrastructure.database.session import Base
from catalog_bff.shared.constants.catalog_constants import PriceType, UserRole


class CatalogItemModel(Base):
    """
    Modelo de base de datos para articulos del catalogo.

    La tabla completa se reemplaza en cada sincronizacion; `id` es el codigo
    upstream (unico). Los canales de oferta son columnas para poder filtrar.
    """

    __tablename__ = "catalog_items"

    id = Column(String(64), primary_key=True)
    alt_ean = Column(String(64), nullable=False, default="", index=True)
    scientific_name = Column(String(255), nullable=False, default="")
    family = Column(String(255), nullable=False, default="", index=True)
    common_name = Column(String(255), nullable=False, default="")

    base_price = Column(Float, nullable=False, default=0.0)
    price2 = Column(Float, nullable=False, default=0.0)
    price3 = Column(Float, nullable=False, default=0.0)

    pot_size = Column(String(64), nullable=False, default="", index=True)
    caliber = Column(String(64), nullable=False, default="", index=True)
    height = Column(String(64), nullable=False, default="", index=True)
    presentation = Column(String(128), nullable=False, default="")
    finish = Column(String(128), nullable=False, default="")
    size_class = Column(String(64), nullable=False, default="")

    units_per_cart = Column(Integer, nullable=False, default=0)
    units_per_pallet = Column(Integer, nullable=False, default=0)
    units_per_box = Column(Integer, nullable=False, default=0)

    image_url = Column(String(1024), nullable=False, default="")

    promo_nuevo_espacio = Column(Boolean, nullable=False, default=False)
    promo_euro_planta = Column(Boolean, nullable=False, default=False)
    promo_cortijo = Column(Boolean, nullable=False, default=False)
    promo_finca = Column(Boolean, nullable=False, default=False)
    promo_arroyo = Column(Boolean, nullable=False, default=False)
    promo_gamera = Column(Boolean, nullable=False, default=False)
    promo_garden = Column(Boolean, nullable=False, default=False)
    promo_marbella = Column(Boolean, nullable=False, default=False)
    promo_estacion = Column(Boolean, nullable=False, default=False)

    synced_at = Column(DateTime(timezone=True), server_default=func.now())

    def __repr__(self):
        return f"<CatalogItem(id={self.id}, scientific_name={self.scientific_name})>"


class UserModel(Base):
    """Modelo de base de datos para usuarios del lado lectura."""

    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String(255), nullable=False, unique=True, index=True)
    hashed_password = Column(String(255), nullable=False)
    name = Column(String(255), nullable=False)
    role = Column(SQLEnum(UserRole), nullable=False, default=UserRole.CLIENTE)
    price_type = Column(SQLEnum(PriceType), nullable=False, default=PriceType.BASE)
    customer_id = Column(String(64), nullable=True, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    def __repr__(self):
        return f"<User(id={self.id}, email={self.email}, role={self.role})>"
