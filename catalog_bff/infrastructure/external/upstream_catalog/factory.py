"""
Construccion del pipeline upstream desde la configuracion.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import httpx
from loguru import logger

from catalog_bff.infrastructure.external.assets.cloudinary_store import AssetStore

from .image_resolvers import (
    AssetStoreImageResolver,
    ImageTierUrls,
    ImageUrlResolver,
    RangeBucketImageResolver,
    TransformationUrlResolver,
)
from .paginated_fetcher import PaginatedCatalogFetcher
from .record_transformer import RecordTransformer
from .session_manager import UpstreamSessionManager
from .types import UpstreamCredentials
from .upstream_client import AuthenticatedUpstreamClient

IMAGE_STRATEGIES = ("range", "asset_store", "transformation")


class SyncConfigError(RuntimeError):
    """Error de configuracion del pipeline."""


@dataclass
class UpstreamCatalogPipeline:
    """Componentes del pipeline que comparten un unico cliente HTTP."""

    http_client: httpx.AsyncClient
    session_manager: UpstreamSessionManager
    client: AuthenticatedUpstreamClient
    fetcher: PaginatedCatalogFetcher

    async def aclose(self) -> None:
        await self.http_client.aclose()


def build_image_resolver(settings, asset_store: Optional[AssetStore] = None) -> ImageUrlResolver:
    """
    Selecciona la estrategia de imagen segun IMAGE_STRATEGY.

    Raises:
        SyncConfigError: estrategia desconocida o sin almacen de assets
    """
    strategy = settings.IMAGE_STRATEGY.strip().lower()
    range_resolver = RangeBucketImageResolver(
        ImageTierUrls(
            low=settings.IMAGE_BASE_URL_LOW,
            mid=settings.IMAGE_BASE_URL_MID,
            high=settings.IMAGE_BASE_URL_HIGH,
        )
    )

    if strategy == "range":
        return range_resolver

    if strategy == "asset_store":
        if asset_store is None:
            raise SyncConfigError("IMAGE_STRATEGY=asset_store requiere credenciales de Cloudinary")
        return AssetStoreImageResolver(asset_store, range_resolver)

    if strategy == "transformation":
        if not settings.CLOUDINARY_CLOUD_NAME:
            raise SyncConfigError("IMAGE_STRATEGY=transformation requiere CLOUDINARY_CLOUD_NAME")
        return TransformationUrlResolver(
            base_url=f"https://res.cloudinary.com/{settings.CLOUDINARY_CLOUD_NAME}/image/upload",
            transformation=settings.CLOUDINARY_TRANSFORMATION,
            folder=settings.CLOUDINARY_FOLDER,
        )

    raise SyncConfigError(f"IMAGE_STRATEGY desconocida: {settings.IMAGE_STRATEGY!r} (opciones: {IMAGE_STRATEGIES})")


def build_from_settings(
    settings,
    *,
    asset_store: Optional[AssetStore] = None,
    http_client: Optional[httpx.AsyncClient] = None,
) -> UpstreamCatalogPipeline:
    """
    Construye session manager, cliente autenticado y fetcher.

    Login y consultas comparten el mismo httpx.AsyncClient (y sus cookies).

    Raises:
        SyncConfigError: si falta configuracion obligatoria
    """
    if not settings.upstream_configured:
        raise SyncConfigError("Faltan UPSTREAM_BASE_URL, UPSTREAM_USERNAME o UPSTREAM_PASSWORD")

    image_resolver = build_image_resolver(settings, asset_store)

    http = http_client or httpx.AsyncClient(
        base_url=settings.UPSTREAM_BASE_URL.rstrip("/"),
        timeout=settings.UPSTREAM_TIMEOUT_S,
    )

    session_manager = UpstreamSessionManager(
        UpstreamCredentials(username=settings.UPSTREAM_USERNAME, password=settings.UPSTREAM_PASSWORD),
        login_path=settings.UPSTREAM_LOGIN_PATH,
        safety_margin_s=settings.TOKEN_SAFETY_MARGIN_S,
        default_ttl_s=settings.TOKEN_DEFAULT_TTL_S,
        client=http,
    )
    client = AuthenticatedUpstreamClient(
        session_manager,
        token_header=settings.UPSTREAM_TOKEN_HEADER,
        client=http,
    )
    fetcher = PaginatedCatalogFetcher(
        client,
        RecordTransformer(image_resolver),
        resource=settings.UPSTREAM_CATALOG_RESOURCE,
        company_code=settings.UPSTREAM_COMPANY_CODE,
        page_size=settings.SYNC_PAGE_SIZE,
        max_pages=settings.SYNC_MAX_PAGES,
        reauth_on_rejection=settings.SYNC_REAUTH_ON_REJECTION,
    )

    logger.info(
        f"[UpstreamCatalog] Pipeline listo: {settings.UPSTREAM_BASE_URL} "
        f"(imagenes: {settings.IMAGE_STRATEGY}, paginas max: {settings.SYNC_MAX_PAGES})"
    )
    return UpstreamCatalogPipeline(
        http_client=http,
        session_manager=session_manager,
        client=client,
        fetcher=fetcher,
    )
