"""
Entidad de dominio: CatalogItem (articulo del catalogo).

Es la representacion limpia (DTO interno) que produce el transformador y que
persiste el almacen. Se reemplaza completa en cada sincronizacion.
"""
from dataclasses import asdict, dataclass, field
from typing import Any, Dict

from catalog_bff.shared.constants.catalog_constants import PROMOTION_FLAG_NAMES, PriceType


@dataclass(frozen=True)
class PromotionFlags:
    """Un booleano por canal de oferta."""

    nuevo_espacio: bool = False
    euro_planta: bool = False
    cortijo: bool = False
    finca: bool = False
    arroyo: bool = False
    gamera: bool = False
    garden: bool = False
    marbella: bool = False
    estacion: bool = False

    def active_channels(self) -> list[str]:
        return [name for name in PROMOTION_FLAG_NAMES if getattr(self, name)]

    def to_dict(self) -> Dict[str, bool]:
        return asdict(self)


@dataclass(frozen=True)
class CatalogItem:
    """
    Articulo del catalogo.

    `id` es el codigo upstream: unico, obligatorio e inmutable.
    """

    id: str
    alt_ean: str = ""
    scientific_name: str = ""
    family: str = ""
    common_name: str = ""
    base_price: float = 0.0
    price2: float = 0.0
    price3: float = 0.0
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
    promotion_flags: PromotionFlags = field(default_factory=PromotionFlags)

    def __post_init__(self):
        """Validaciones después de la inicialización."""
        if not self.id or not self.id.strip():
            raise ValueError("El id del articulo no puede estar vacio")

    def price_for(self, price_type: PriceType) -> float:
        """Precio de la tarifa indicada."""
        if price_type == PriceType.PRICE2:
            return self.price2
        if price_type == PriceType.PRICE3:
            return self.price3
        return self.base_price

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)
