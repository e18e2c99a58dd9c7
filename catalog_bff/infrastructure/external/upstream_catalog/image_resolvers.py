"""
Estrategias de URL de imagen, todas basadas en el codigo numerico del articulo.

- range: bucket estatico segun rango de codigo, `{base}/{id}-0.jpg`
- asset_store: busca en el almacen de assets; si no existe, sube desde la URL
  del bucket y usa la URL canonica devuelta
- transformation: URL precalculada `{base}/{transformation}/{folder}/{id}`,
  sin llamadas de red

Un codigo no numerico produce siempre URL vacia.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Optional, Protocol

from loguru import logger

from catalog_bff.infrastructure.external.assets.cloudinary_store import AssetStore, AssetStoreError
from catalog_bff.shared.constants.catalog_constants import (
    IMAGE_TIER_HIGH_MAX,
    IMAGE_TIER_LOW_MAX,
    IMAGE_TIER_MID_MAX,
)

_NUMERIC_ID = re.compile(r"^-?\d+$")


def parse_numeric_id(record_id: str) -> Optional[int]:
    """Codigo como entero, o None si no es numerico."""
    value = (record_id or "").strip()
    if not _NUMERIC_ID.match(value):
        return None
    return int(value)


class ImageUrlResolver(Protocol):
    async def resolve(self, record_id: str) -> str:
        ...


@dataclass(frozen=True)
class ImageTierUrls:
    low: str
    mid: str
    high: str


class RangeBucketImageResolver:
    """
    Tramos (inclusivos):
    - [0, 130000] -> low
    - [130001, 170000] -> mid
    - [170001, 300000] -> high
    - fuera de rango -> ''
    """

    def __init__(self, tiers: ImageTierUrls) -> None:
        self._tiers = tiers

    def base_for(self, code: int) -> str:
        if 0 <= code <= IMAGE_TIER_LOW_MAX:
            return self._tiers.low
        if IMAGE_TIER_LOW_MAX < code <= IMAGE_TIER_MID_MAX:
            return self._tiers.mid
        if IMAGE_TIER_MID_MAX < code <= IMAGE_TIER_HIGH_MAX:
            return self._tiers.high
        return ""

    def build_url(self, record_id: str) -> str:
        code = parse_numeric_id(record_id)
        if code is None:
            logger.warning(f"[ImageResolver] Codigo '{record_id}' no es numerico, no se puede generar URL de imagen")
            return ""

        base = self.base_for(code)
        if not base:
            return ""
        return f"{base.rstrip('/')}/{record_id.strip()}-0.jpg"

    async def resolve(self, record_id: str) -> str:
        return self.build_url(record_id)


class AssetStoreImageResolver:
    """
    Reutiliza la imagen del almacen si existe; si no, la sube desde la URL
    del bucket. Ante un fallo del almacen se usa la URL del bucket.
    """

    def __init__(self, store: AssetStore, source: RangeBucketImageResolver) -> None:
        self._store = store
        self._source = source

    async def resolve(self, record_id: str) -> str:
        if parse_numeric_id(record_id) is None:
            return ""

        source_url = self._source.build_url(record_id)
        try:
            existing = await self._store.find_url(record_id)
            if existing:
                return existing
            if not source_url:
                return ""
            return await self._store.upload_from_url(record_id, source_url)
        except AssetStoreError as e:
            logger.warning(f"[ImageResolver] Almacen de assets no disponible para {record_id}, usando bucket: {e}")
            return source_url


class TransformationUrlResolver:
    def __init__(self, base_url: str, transformation: str, folder: str) -> None:
        self._base_url = base_url.rstrip("/")
        self._transformation = transformation.strip("/")
        self._folder = folder.strip("/")

    async def resolve(self, record_id: str) -> str:
        if parse_numeric_id(record_id) is None:
            return ""
        parts = [self._base_url, self._transformation, self._folder, record_id.strip()]
        return "/".join(p for p in parts if p)
