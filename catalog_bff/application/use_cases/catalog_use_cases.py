"""
Casos de uso del catalogo (lado lectura).
"""
import math
from typing import Optional

from loguru import logger

from catalog_bff.application.dto.catalog_dto import CatalogItemResponseDTO, CatalogPageDTO
from catalog_bff.domain.entities.catalog_item import CatalogItem
from catalog_bff.domain.entities.user import User
from catalog_bff.domain.repositories.catalog_repository import CatalogFilter, ICatalogStore
from catalog_bff.infrastructure.external.assets.cloudinary_store import AssetStore, AssetStoreError
from catalog_bff.shared.constants.catalog_constants import UserRole
from catalog_bff.shared.exceptions.base import AppException
from catalog_bff.shared.exceptions.domain import EntityNotFoundException, ValidationException


MAX_PAGE_SIZE = 100


class AssetStoreUnavailableException(AppException):
    def __init__(self, message: str = "Almacen de imagenes no disponible") -> None:
        super().__init__(
            message=message,
            status_code=503,
            error_code="ASSET_STORE_UNAVAILABLE",
        )


def present_item(item: CatalogItem, viewer: Optional[User]) -> CatalogItemResponseDTO:
    """
    Convierte un articulo a DTO aplicando la visibilidad de precios.

    Args:
        item: Articulo almacenado
        viewer: Usuario autenticado o None (anonimo)
    """
    data = item.to_dict()
    for price_field in ("base_price", "price2", "price3"):
        data.pop(price_field)

    dto = CatalogItemResponseDTO(**data)
    if viewer is None:
        return dto

    if viewer.role == UserRole.COMERCIAL:
        dto.base_price = item.base_price
        dto.price2 = item.price2
        dto.price3 = item.price3
    else:
        dto.price = item.price_for(viewer.price_type)
    return dto


class CatalogUseCases:
    """
    Consultas del catalogo y actualizacion manual de imagenes.
    """

    def __init__(self, store: ICatalogStore, asset_store: Optional[AssetStore] = None):
        """
        Args:
            store: Almacen del catalogo
            asset_store: Almacen de imagenes (None si no esta configurado)
        """
        self.store = store
        self.asset_store = asset_store

    async def list_items(
        self,
        filters: CatalogFilter,
        page: int,
        page_size: int,
        viewer: Optional[User] = None,
    ) -> CatalogPageDTO:
        """
        Obtiene una pagina del catalogo.

        Raises:
            ValidationException: pagina o tamano fuera de rango
        """
        if page < 1:
            raise ValidationException("La pagina debe ser >= 1", field="page")
        if page_size < 1 or page_size > MAX_PAGE_SIZE:
            raise ValidationException(f"page_size debe estar entre 1 y {MAX_PAGE_SIZE}", field="page_size")

        try:
            items, total = await self.store.find(filters, page, page_size)
        except ValueError as e:
            raise ValidationException(str(e), field="promotion")

        return CatalogPageDTO(
            current_page=page,
            total_pages=math.ceil(total / page_size) if total else 0,
            total_items=total,
            items=[present_item(i, viewer) for i in items],
        )

    async def get_item(self, item_id: str, viewer: Optional[User] = None) -> CatalogItemResponseDTO:
        """
        Raises:
            EntityNotFoundException: si el articulo no existe
        """
        item = await self.store.get_by_id(item_id)
        if item is None:
            raise EntityNotFoundException("Articulo", item_id)
        return present_item(item, viewer)

    async def update_item_image(
        self,
        item_id: str,
        content: bytes,
        viewer: Optional[User] = None,
    ) -> CatalogItemResponseDTO:
        """
        Sube una imagen para el articulo (public id = codigo) y guarda la URL.

        Raises:
            EntityNotFoundException: si el articulo no existe
            ValidationException: si el fichero esta vacio
            AssetStoreUnavailableException: sin almacen o si la subida falla
        """
        if self.asset_store is None:
            raise AssetStoreUnavailableException("Cloudinary no configurado")
        if not content:
            raise ValidationException("El fichero de imagen esta vacio", field="image")

        item = await self.store.get_by_id(item_id)
        if item is None:
            raise EntityNotFoundException("Articulo", item_id)

        try:
            url = await self.asset_store.upload_bytes(item_id, content)
        except AssetStoreError as e:
            logger.error(f"[Catalog] Error subiendo imagen de {item_id}: {e}")
            raise AssetStoreUnavailableException(str(e))

        updated = await self.store.update_image_url(item_id, url)
        if updated is None:
            raise EntityNotFoundException("Articulo", item_id)

        logger.info(f"[Catalog] Imagen actualizada para {item_id}: {url}")
        return present_item(updated, viewer)
