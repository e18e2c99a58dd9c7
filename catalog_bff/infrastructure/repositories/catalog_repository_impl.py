"""
Implementacion SQLAlchemy del almacen del catalogo.

El reemplazo completo se hace en UNA transaccion (DELETE + INSERT): los
lectores concurrentes ven el snapshot anterior hasta el commit y, si el
INSERT falla por completo, el rollback deja el snapshot anterior intacto.
"""
from __future__ import annotations

from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

from loguru import logger
from sqlalchemy import String, delete, func, insert, or_, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from catalog_bff.domain.entities.catalog_item import CatalogItem, PromotionFlags
from catalog_bff.domain.repositories.catalog_repository import (
    CatalogFilter,
    ICatalogStore,
    ReplaceResult,
)
from catalog_bff.infrastructure.database.models import CatalogItemModel
from catalog_bff.shared.constants.catalog_constants import PROMOTION_FLAG_NAMES
from catalog_bff.shared.exceptions.sync import CatalogPersistenceError


_SEARCH_COLUMNS = (
    CatalogItemModel.id,
    CatalogItemModel.alt_ean,
    CatalogItemModel.scientific_name,
    CatalogItemModel.common_name,
    CatalogItemModel.family,
)

_NUMERIC_FIELDS = (
    "base_price",
    "price2",
    "price3",
    "units_per_cart",
    "units_per_pallet",
    "units_per_box",
)

# Columna de texto -> longitud maxima
_STRING_LIMITS = {
    column.name: column.type.length
    for column in CatalogItemModel.__table__.columns
    if isinstance(column.type, String) and column.type.length
}


def _promo_column(flag_name: str) -> str:
    return f"promo_{flag_name}"


def item_to_row(item: CatalogItem) -> Dict[str, Any]:
    """Aplana un CatalogItem a columnas de `catalog_items`."""
    row = item.to_dict()
    flags = row.pop("promotion_flags")
    for name in PROMOTION_FLAG_NAMES:
        row[_promo_column(name)] = bool(flags.get(name, False))
    return row


def model_to_item(model: CatalogItemModel) -> CatalogItem:
    """Reconstruye la entidad desde una fila ORM."""
    flags = PromotionFlags(**{name: bool(getattr(model, _promo_column(name))) for name in PROMOTION_FLAG_NAMES})
    return CatalogItem(
        id=model.id,
        alt_ean=model.alt_ean,
        scientific_name=model.scientific_name,
        family=model.family,
        common_name=model.common_name,
        base_price=model.base_price,
        price2=model.price2,
        price3=model.price3,
        pot_size=model.pot_size,
        caliber=model.caliber,
        height=model.height,
        presentation=model.presentation,
        finish=model.finish,
        size_class=model.size_class,
        units_per_cart=model.units_per_cart,
        units_per_pallet=model.units_per_pallet,
        units_per_box=model.units_per_box,
        image_url=model.image_url,
        promotion_flags=flags,
    )


def partition_for_insert(items: Iterable[CatalogItem]) -> Tuple[List[CatalogItem], List[str]]:
    """
    Separa los articulos insertables de los rechazados.

    Rechaza (sin abortar el lote):
    - ids duplicados: se conserva la primera aparicion
    - valores numericos negativos
    - textos mas largos que su columna
    """
    accepted: List[CatalogItem] = []
    rejected: List[str] = []
    seen: set[str] = set()

    for item in items:
        if item.id in seen:
            logger.warning(f"[CatalogStore] Id duplicado {item.id}: se descarta la repeticion")
            rejected.append(item.id)
            continue

        negative = [name for name in _NUMERIC_FIELDS if getattr(item, name) < 0]
        if negative:
            logger.warning(f"[CatalogStore] Articulo {item.id} rechazado: valores negativos en {negative}")
            rejected.append(item.id)
            continue

        overlong = [
            name for name, limit in _STRING_LIMITS.items()
            if len(getattr(item, name, "") or "") > limit
        ]
        if overlong:
            logger.warning(f"[CatalogStore] Articulo {item.id} rechazado: textos demasiado largos en {overlong}")
            rejected.append(item.id)
            continue

        seen.add(item.id)
        accepted.append(item)

    return accepted, rejected


def _escape_like(value: str) -> str:
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def _build_conditions(filters: CatalogFilter) -> list:
    conditions = []

    if filters.search and filters.search.strip():
        pattern = f"%{_escape_like(filters.search.strip())}%"
        conditions.append(or_(*(col.ilike(pattern, escape="\\") for col in _SEARCH_COLUMNS)))

    if filters.pot_size:
        conditions.append(CatalogItemModel.pot_size == filters.pot_size)
    if filters.height:
        conditions.append(CatalogItemModel.height == filters.height)
    if filters.caliber:
        conditions.append(CatalogItemModel.caliber == filters.caliber)
    if filters.family:
        conditions.append(CatalogItemModel.family == filters.family)

    for flag_name in filters.promotions:
        if flag_name not in PROMOTION_FLAG_NAMES:
            raise ValueError(f"Canal de oferta desconocido: {flag_name}")
        conditions.append(getattr(CatalogItemModel, _promo_column(flag_name)).is_(True))

    return conditions


class SqlAlchemyCatalogStore(ICatalogStore):
    """
    Almacen del catalogo sobre SQLAlchemy async.

    Abre su propia sesion por operacion: lo usan tanto el job de sync
    (fuera de request) como la API de lectura.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        *,
        insert_batch_size: int = 500,
    ) -> None:
        self._session_factory = session_factory
        self._insert_batch_size = insert_batch_size

    async def replace_all(self, items: Sequence[CatalogItem]) -> ReplaceResult:
        accepted, rejected_ids = partition_for_insert(items)

        async with self._session_factory() as session:
            try:
                async with session.begin():
                    deleted = await session.execute(delete(CatalogItemModel))
                    logger.info(f"[CatalogStore] {deleted.rowcount} articulos anteriores eliminados (pendiente de commit)")

                    for start in range(0, len(accepted), self._insert_batch_size):
                        chunk = accepted[start:start + self._insert_batch_size]
                        await session.execute(insert(CatalogItemModel), [item_to_row(i) for i in chunk])
            except SQLAlchemyError as e:
                logger.error(f"[CatalogStore] Reemplazo revertido, se conserva el snapshot anterior: {e}")
                raise CatalogPersistenceError(f"No se pudo reemplazar el catalogo: {e}") from e

        if rejected_ids:
            logger.warning(f"[CatalogStore] {len(rejected_ids)} articulos rechazados: {rejected_ids[:20]}")
        logger.info(f"[CatalogStore] {len(accepted)} articulos insertados")
        return ReplaceResult(inserted=len(accepted), rejected_ids=rejected_ids)

    async def find(
        self,
        filters: CatalogFilter,
        page: int,
        page_size: int,
    ) -> Tuple[List[CatalogItem], int]:
        page = max(page, 1)
        conditions = _build_conditions(filters)

        async with self._session_factory() as session:
            total = await session.scalar(
                select(func.count()).select_from(CatalogItemModel).where(*conditions)
            )
            result = await session.execute(
                select(CatalogItemModel)
                .where(*conditions)
                .order_by(CatalogItemModel.scientific_name, CatalogItemModel.id)
                .offset((page - 1) * page_size)
                .limit(page_size)
            )
            items = [model_to_item(m) for m in result.scalars().all()]

        return items, int(total or 0)

    async def get_by_id(self, item_id: str) -> Optional[CatalogItem]:
        async with self._session_factory() as session:
            model = await session.get(CatalogItemModel, item_id)
            return model_to_item(model) if model else None

    async def update_image_url(self, item_id: str, image_url: str) -> Optional[CatalogItem]:
        async with self._session_factory() as session:
            async with session.begin():
                result = await session.execute(
                    update(CatalogItemModel)
                    .where(CatalogItemModel.id == item_id)
                    .values(image_url=image_url)
                )
                if not result.rowcount:
                    return None
        return await self.get_by_id(item_id)

    async def count(self) -> int:
        async with self._session_factory() as session:
            total = await session.scalar(select(func.count()).select_from(CatalogItemModel))
            return int(total or 0)
