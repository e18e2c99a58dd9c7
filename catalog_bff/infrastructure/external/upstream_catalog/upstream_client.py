"""
Cliente HTTP autenticado del catalogo upstream.

Antes de cada llamada pide un token valido al UpstreamSessionManager y lo
adjunta en la cabecera configurada. No reintenta: la politica de reintentos
la decide el fetcher.
"""

from __future__ import annotations

from typing import Any, Optional

import httpx

from catalog_bff.shared.exceptions.sync import UpstreamFetchError, UpstreamRejectedError

from .session_manager import UpstreamSessionManager


class AuthenticatedUpstreamClient:
    def __init__(
        self,
        session_manager: UpstreamSessionManager,
        *,
        base_url: str = "",
        token_header: str = "x-access-token",
        timeout_s: float = 30.0,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self._sessions = session_manager
        self._token_header = token_header
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(base_url=base_url.rstrip("/"), timeout=timeout_s)

    @property
    def session_manager(self) -> UpstreamSessionManager:
        return self._sessions

    async def get_json(
        self,
        path: str,
        *,
        params: Optional[dict[str, Any]] = None,
        page: Optional[int] = None,
    ) -> Any:
        """
        GET autenticado que devuelve el cuerpo JSON.

        Raises:
            UpstreamAuthError: si no se pudo obtener token
            UpstreamRejectedError: 401/403 (token rechazado)
            UpstreamFetchError: red, otros no-2xx o cuerpo no JSON
        """
        token = await self._sessions.get_valid_token()
        headers = {self._token_header: token}

        try:
            resp = await self._client.get(path, params=params, headers=headers)
        except httpx.HTTPError as e:
            raise UpstreamFetchError(f"Error de red consultando {path}: {e}", page=page) from e

        if resp.status_code in (401, 403):
            raise UpstreamRejectedError(
                f"Token rechazado por upstream ({resp.status_code})",
                page=page,
                status_code=resp.status_code,
            )

        if not resp.is_success:
            raise UpstreamFetchError(
                f"Upstream respondio {resp.status_code} en {path}",
                page=page,
                status_code=resp.status_code,
            )

        try:
            return resp.json()
        except ValueError as e:
            raise UpstreamFetchError(f"Respuesta no JSON en {path}", page=page, status_code=resp.status_code) from e

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()
