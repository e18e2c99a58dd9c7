"""
DTOs del catalogo (lado lectura).
Los precios se exponen segun el rol del usuario que consulta.
"""
from typing import Dict, List, Optional

from pydantic import BaseModel, Field


class CatalogItemResponseDTO(BaseModel):
    """
    Articulo tal y como lo ve el cliente de la API.

    - anonimo: sin precios
    - cliente / trabajador: solo `price` (su tarifa)
    - comercial: `base_price`, `price2` y `price3`
    """

    id: str = Field(..., description="Codigo de articulo upstream")
    alt_ean: str = ""
    scientific_name: str = ""
    family: str = ""
    common_name: str = ""
    pot_size: str = ""
    caliber: str = ""
    height: str = ""
    presentation: str = ""
    finish: str = ""
    size_class: str = ""
    units_per_cart: int = 0
    units_per_pallet: int = 0
    units_per_box: int = 0
    image_url: str = ""
    promotion_flags: Dict[str, bool] = Field(default_factory=dict)

    price: Optional[float] = Field(None, description="Precio de la tarifa del usuario")
    base_price: Optional[float] = None
    price2: Optional[float] = None
    price3: Optional[float] = None


class CatalogPageDTO(BaseModel):
    """Pagina de resultados del catalogo."""

    current_page: int
    total_pages: int
    total_items: int
    items: List[CatalogItemResponseDTO]
