"""
Endpoints del catalogo (lado lectura).
La autenticacion es opcional: decide que precios se muestran.
"""
from typing import List, Optional

from fastapi import APIRouter, Depends, File, Query, UploadFile, status

from catalog_bff.api.v1.dependencies.auth_deps import get_optional_user, require_roles
from catalog_bff.api.v1.dependencies.use_case_deps import get_catalog_use_cases
from catalog_bff.application.dto.catalog_dto import CatalogItemResponseDTO, CatalogPageDTO
from catalog_bff.application.use_cases.catalog_use_cases import CatalogUseCases
from catalog_bff.domain.entities.user import User
from catalog_bff.domain.repositories.catalog_repository import CatalogFilter
from catalog_bff.shared.constants.catalog_constants import UserRole
from catalog_bff.shared.exceptions.domain import ValidationException


router = APIRouter(prefix="/catalog", tags=["Catalog"])


@router.get(
    "/items",
    response_model=CatalogPageDTO,
    response_model_exclude_none=True,
    summary="Listar articulos del catalogo"
)
async def list_items(
    page: int = Query(1, ge=1, description="Numero de pagina"),
    page_size: int = Query(20, ge=1, le=100, description="Articulos por pagina"),
    search: Optional[str] = Query(None, description="Busqueda por codigo, EAN, nombre o familia"),
    pot_size: Optional[str] = Query(None, description="Maceta"),
    height: Optional[str] = Query(None, description="Altura"),
    caliber: Optional[str] = Query(None, description="Calibre"),
    family: Optional[str] = Query(None, description="Familia"),
    promotion: List[str] = Query([], description="Canales de oferta activos"),
    viewer: Optional[User] = Depends(get_optional_user),
    use_cases: CatalogUseCases = Depends(get_catalog_use_cases),
) -> CatalogPageDTO:
    filters = CatalogFilter(
        search=search,
        pot_size=pot_size,
        height=height,
        caliber=caliber,
        family=family,
        promotions=tuple(promotion),
    )
    return await use_cases.list_items(filters, page, page_size, viewer)


@router.get(
    "/items/{item_id}",
    response_model=CatalogItemResponseDTO,
    response_model_exclude_none=True,
    summary="Obtener un articulo"
)
async def get_item(
    item_id: str,
    viewer: Optional[User] = Depends(get_optional_user),
    use_cases: CatalogUseCases = Depends(get_catalog_use_cases),
) -> CatalogItemResponseDTO:
    return await use_cases.get_item(item_id, viewer)


@router.put(
    "/items/{item_id}/image",
    response_model=CatalogItemResponseDTO,
    response_model_exclude_none=True,
    status_code=status.HTTP_200_OK,
    summary="Subir imagen de un articulo"
)
async def upload_item_image(
    item_id: str,
    image: UploadFile = File(..., description="Fichero de imagen"),
    user: User = Depends(require_roles(UserRole.COMERCIAL, UserRole.TRABAJADOR)),
    use_cases: CatalogUseCases = Depends(get_catalog_use_cases),
) -> CatalogItemResponseDTO:
    """
    Sube la imagen al almacen de assets (public id = codigo de articulo) y
    guarda la URL devuelta en el articulo.
    """
    if image.content_type and not image.content_type.startswith("image/"):
        raise ValidationException(f"Tipo de fichero no soportado: {image.content_type}", field="image")

    content = await image.read()
    return await use_cases.update_item_image(item_id, content, user)
