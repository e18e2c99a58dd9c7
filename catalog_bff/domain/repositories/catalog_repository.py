"""
Interfaz del almacen del catalogo.
Define el contrato que consume el pipeline de sincronizacion y la API de lectura.
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple

from catalog_bff.domain.entities.catalog_item import CatalogItem


@dataclass(frozen=True)
class CatalogFilter:
    """
    Filtros de consulta del lado lectura.

    - search: subcadena (sin distinguir mayusculas) sobre id, EAN alternativo,
      nombre cientifico, nombre comun y familia
    - pot_size/height/caliber/family: coincidencia exacta
    - promotions: canales de oferta que deben estar activos
    """

    search: Optional[str] = None
    pot_size: Optional[str] = None
    height: Optional[str] = None
    caliber: Optional[str] = None
    family: Optional[str] = None
    promotions: Tuple[str, ...] = ()


@dataclass(frozen=True)
class ReplaceResult:
    """Resultado de un reemplazo completo."""

    inserted: int
    rejected_ids: List[str] = field(default_factory=list)

    @property
    def rejected(self) -> int:
        return len(self.rejected_ids)


class ICatalogStore(ABC):
    """
    Almacen del catalogo.
    """

    @abstractmethod
    async def replace_all(self, items: Sequence[CatalogItem]) -> ReplaceResult:
        """
        Vacia la coleccion y la repuebla con `items`.

        Los documentos rechazados (id duplicado, validacion individual) no
        abortan el lote: se reportan en `rejected_ids`.
        """
        pass

    @abstractmethod
    async def find(
        self,
        filters: CatalogFilter,
        page: int,
        page_size: int,
    ) -> Tuple[List[CatalogItem], int]:
        """
        Obtiene una pagina de articulos y el total que cumple los filtros.

        Args:
            filters: Filtros de consulta
            page: Numero de pagina (desde 1)
            page_size: Tamano de pagina

        Returns:
            Tuple[List[CatalogItem], int]: Articulos de la pagina y total
        """
        pass

    @abstractmethod
    async def get_by_id(self, item_id: str) -> Optional[CatalogItem]:
        """Obtiene un articulo por su codigo upstream."""
        pass

    @abstractmethod
    async def update_image_url(self, item_id: str, image_url: str) -> Optional[CatalogItem]:
        """Actualiza la URL de imagen de un articulo. None si no existe."""
        pass

    @abstractmethod
    async def count(self) -> int:
        """Numero de articulos almacenados."""
        pass
