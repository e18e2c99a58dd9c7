"""
Descarga completa del catalogo upstream, pagina a pagina.

Reglas:
- paginas desde 1, parametros `count`, `page`, `where`
- una pagina con menos de `page_size` registros es la ultima
- techo de seguridad: nunca se pide la pagina `max_pages + 1`
- cualquier fallo de pagina aborta y descarta lo acumulado
- 401/403: se invalida la sesion y se reintenta la pagina UNA vez
"""

from __future__ import annotations

import asyncio
from typing import Any, Iterable, List, Optional, Tuple

from loguru import logger

from catalog_bff.domain.entities.catalog_item import CatalogItem
from catalog_bff.shared.constants.catalog_constants import (
    DEFAULT_MAX_PAGES,
    DEFAULT_PAGE_SIZE,
    PROMOTION_CHANNELS,
)
from catalog_bff.shared.exceptions.sync import (
    FilterExpressionError,
    RecordValidationError,
    SyncCancelledError,
    UpstreamAuthError,
    UpstreamFetchError,
    UpstreamRejectedError,
)

from .filter_expression import build_promotion_filter
from .record_transformer import RecordTransformer
from .types import FetchResult
from .upstream_client import AuthenticatedUpstreamClient


class PaginatedCatalogFetcher:
    def __init__(
        self,
        client: AuthenticatedUpstreamClient,
        transformer: RecordTransformer,
        *,
        resource: str = "adArticulosCatalogo",
        company_code: int = 1,
        channel_fields: Optional[Iterable[str]] = None,
        page_size: int = DEFAULT_PAGE_SIZE,
        max_pages: int = DEFAULT_MAX_PAGES,
        reauth_on_rejection: bool = True,
    ) -> None:
        self._client = client
        self._transformer = transformer
        self._path = f"/{resource.strip('/')}/query"
        self._company_code = company_code
        self._channel_fields = tuple(
            channel_fields if channel_fields is not None else (f for _, f in PROMOTION_CHANNELS)
        )
        self._page_size = page_size
        self._max_pages = max_pages
        self._reauth_on_rejection = reauth_on_rejection

    def build_filter(self) -> str:
        return build_promotion_filter(self._company_code, self._channel_fields)

    async def fetch_all(
        self,
        filter_expr: Optional[str] = None,
        *,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> FetchResult:
        """
        Descarga todas las paginas y transforma sus registros.

        Args:
            filter_expr: expresion `where`; si es None se construye con los
                canales de oferta configurados
            cancel_event: si se activa, la descarga se aborta entre paginas

        Returns:
            FetchResult: con `error` != None si la descarga se aborto
        """
        if filter_expr is None:
            try:
                filter_expr = self.build_filter()
            except FilterExpressionError as e:
                logger.error(f"[CatalogFetcher] {e.message}. Abortando.")
                return FetchResult(error=e)

        logger.info(f"[CatalogFetcher] Iniciando descarga completa. where: {filter_expr}")

        items: List[CatalogItem] = []
        pages = 0
        raw_total = 0
        dropped = 0
        truncated = False
        page = 1

        try:
            while True:
                if cancel_event is not None and cancel_event.is_set():
                    raise SyncCancelledError(page=page)

                raw_records = await self._fetch_page(page, filter_expr)
                pages += 1
                raw_total += len(raw_records)

                kept, page_dropped = await self._transform_page(raw_records, page)
                items.extend(kept)
                dropped += page_dropped
                logger.info(
                    f"[CatalogFetcher] Pagina {page}: {len(raw_records)} registros, "
                    f"{len(kept)} validos. Total bruto: {raw_total}"
                )

                if len(raw_records) < self._page_size:
                    logger.info(f"[CatalogFetcher] Ultima pagina recibida ({len(raw_records)} registros)")
                    break

                if page >= self._max_pages:
                    truncated = True
                    logger.warning(
                        f"[CatalogFetcher] Se alcanzo el limite de seguridad ({self._max_pages} paginas). "
                        f"Los datos podrian estar incompletos."
                    )
                    break

                page += 1
        except (UpstreamAuthError, UpstreamFetchError) as e:
            logger.error(f"[CatalogFetcher] Error en pagina {page}. Abortando sincronizacion: {e.message}")
            return FetchResult(
                error=e,
                pages_fetched=pages,
                raw_fetched=raw_total,
                dropped=dropped,
            )

        logger.info(
            f"[CatalogFetcher] Descarga finalizada: {len(items)} articulos validos, "
            f"{dropped} descartados, {pages} paginas"
        )
        return FetchResult(
            items=items,
            pages_fetched=pages,
            raw_fetched=raw_total,
            dropped=dropped,
            truncated=truncated,
        )

    async def _fetch_page(self, page: int, filter_expr: str) -> List[Any]:
        params = {"count": self._page_size, "page": page, "where": filter_expr}
        try:
            payload = await self._client.get_json(self._path, params=params, page=page)
        except UpstreamRejectedError:
            if not self._reauth_on_rejection:
                raise
            logger.warning(f"[CatalogFetcher] Token rechazado en pagina {page}. Re-login y reintento unico.")
            self._client.session_manager.invalidate()
            payload = await self._client.get_json(self._path, params=params, page=page)

        if not isinstance(payload, dict):
            raise UpstreamFetchError(f"Respuesta inesperada en pagina {page}", page=page)

        records = payload.get("$resources") or []
        if not isinstance(records, list):
            raise UpstreamFetchError(f"'$resources' no es una lista en pagina {page}", page=page)
        return records

    async def _transform_page(self, raw_records: List[Any], page: int) -> Tuple[List[CatalogItem], int]:
        kept: List[CatalogItem] = []
        dropped = 0
        for raw in raw_records:
            try:
                kept.append(await self._transformer.transform(raw))
            except RecordValidationError as e:
                dropped += 1
                logger.warning(
                    f"[CatalogFetcher] Articulo mal formado omitido (ID: {e.record_id}) en pag {page}: "
                    f"{e.violations}"
                )
        return kept, dropped
