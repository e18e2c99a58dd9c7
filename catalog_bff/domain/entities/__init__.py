"""
Entidades de dominio.
"""
from .catalog_item import CatalogItem, PromotionFlags
from .user import User

__all__ = [
    "CatalogItem",
    "PromotionFlags",
    "User",
]
