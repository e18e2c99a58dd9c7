"""
Almacen de imagenes (Cloudinary).

El SDK de Cloudinary es sincrono: cada llamada se ejecuta en un hilo con
asyncio.to_thread para no bloquear el event loop.
"""

from __future__ import annotations

import asyncio
import io
from typing import Optional, Protocol

import cloudinary
import cloudinary.api
import cloudinary.uploader
from cloudinary.exceptions import Error as CloudinaryError
from cloudinary.exceptions import NotFound
from loguru import logger


class AssetStoreError(RuntimeError):
    """Error de integracion con el almacen de imagenes."""


class AssetStore(Protocol):
    """Almacen direccionado por contenido: una imagen por codigo de articulo."""

    async def find_url(self, item_id: str) -> Optional[str]:
        ...

    async def upload_from_url(self, item_id: str, source_url: str) -> str:
        ...

    async def upload_bytes(self, item_id: str, content: bytes) -> str:
        ...


class CloudinaryAssetStore:
    """
    AssetStore sobre Cloudinary.

    Public id = `<folder>/<codigo articulo>`; se devuelve siempre `secure_url`.
    """

    def __init__(self, *, cloud_name: str, api_key: str, api_secret: str, folder: str = "") -> None:
        cloudinary.config(
            cloud_name=cloud_name,
            api_key=api_key,
            api_secret=api_secret,
            secure=True,
        )
        self._folder = folder.strip("/")

    def public_id(self, item_id: str) -> str:
        return f"{self._folder}/{item_id}" if self._folder else item_id

    async def find_url(self, item_id: str) -> Optional[str]:
        public_id = self.public_id(item_id)
        try:
            resource = await asyncio.to_thread(cloudinary.api.resource, public_id)
        except NotFound:
            return None
        except CloudinaryError as e:
            raise AssetStoreError(f"Error consultando {public_id} en Cloudinary: {e}") from e
        return resource.get("secure_url")

    async def upload_from_url(self, item_id: str, source_url: str) -> str:
        logger.info(f"[Cloudinary] Subiendo {item_id} desde {source_url}")
        return await self._upload(item_id, source_url)

    async def upload_bytes(self, item_id: str, content: bytes) -> str:
        logger.info(f"[Cloudinary] Subiendo {item_id} ({len(content)} bytes)")
        return await self._upload(item_id, io.BytesIO(content))

    async def _upload(self, item_id: str, source) -> str:
        public_id = self.public_id(item_id)
        try:
            result = await asyncio.to_thread(
                cloudinary.uploader.upload,
                source,
                public_id=public_id,
                overwrite=True,
                resource_type="image",
                fetch_format="auto",
                quality="auto:good",
            )
        except CloudinaryError as e:
            raise AssetStoreError(f"Error subiendo {public_id} a Cloudinary: {e}") from e

        url = result.get("secure_url")
        if not url:
            raise AssetStoreError(f"Cloudinary no devolvio secure_url para {public_id}")
        return url


def build_asset_store(settings) -> Optional[CloudinaryAssetStore]:
    """Construye el almacen desde settings, o None si faltan credenciales."""
    if not settings.cloudinary_configured:
        logger.warning("[Cloudinary] Faltan credenciales de Cloudinary. La subida de imagenes no estara disponible.")
        return None
    return CloudinaryAssetStore(
        cloud_name=settings.CLOUDINARY_CLOUD_NAME,
        api_key=settings.CLOUDINARY_API_KEY,
        api_secret=settings.CLOUDINARY_API_SECRET,
        folder=settings.CLOUDINARY_FOLDER,
    )
