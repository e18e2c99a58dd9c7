"""
Gestion de la sesion contra el catalogo upstream.

- Cachea {token, expires_at} y lo reutiliza mientras `now < expires_at`.
- expires_at = hora de login + TTL - margen de seguridad.
- Refresco single-flight: si varias corrutinas ven el token caducado a la
  vez, comparten UNA sola peticion de login (tarea compartida).
"""

from __future__ import annotations

import asyncio
from datetime import datetime, timedelta
from typing import Any, Callable, Optional

import httpx
from loguru import logger

from catalog_bff.shared.constants.catalog_constants import (
    DEFAULT_TOKEN_SAFETY_MARGIN_S,
    DEFAULT_TOKEN_TTL_S,
)
from catalog_bff.shared.exceptions.sync import UpstreamAuthError

from .types import UpstreamCredentials, UpstreamSession, utc_now


def coerce_ttl_seconds(raw: Any) -> Optional[float]:
    """
    Normaliza `expiresIn`.

    Returns:
        Segundos (> 0) o None si el valor falta, no es numerico o es <= 0.
    """
    if raw is None or isinstance(raw, bool):
        return None
    try:
        ttl = float(raw)
    except (TypeError, ValueError):
        return None
    if ttl <= 0:
        return None
    return ttl


class UpstreamSessionManager:
    """
    Dueno unico del token upstream.

    Se construye una vez por proceso y se inyecta en el cliente autenticado.
    """

    def __init__(
        self,
        credentials: UpstreamCredentials,
        *,
        base_url: str = "",
        login_path: str = "/autentificar",
        safety_margin_s: int = DEFAULT_TOKEN_SAFETY_MARGIN_S,
        default_ttl_s: int = DEFAULT_TOKEN_TTL_S,
        timeout_s: float = 30.0,
        client: Optional[httpx.AsyncClient] = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._creds = credentials
        self._login_path = login_path
        self._safety_margin_s = safety_margin_s
        self._default_ttl_s = default_ttl_s
        self._clock = clock
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(base_url=base_url.rstrip("/"), timeout=timeout_s)

        self._session = UpstreamSession()
        self._inflight: Optional[asyncio.Future] = None

    @property
    def session(self) -> UpstreamSession:
        return self._session

    def is_valid(self) -> bool:
        return self._session.is_valid_at(self._clock())

    async def get_valid_token(self) -> str:
        """
        Retorna un token valido, haciendo login si hace falta.

        Raises:
            UpstreamAuthError: si el login falla (la cache queda invalidada)
        """
        if self.is_valid():
            return self._session.token

        # Una tarea terminada aun no limpiada por el callback no se reutiliza
        if self._inflight is None or self._inflight.done():
            logger.info("[UpstreamSession] Token ausente o caducado. Iniciando login...")
            task = asyncio.ensure_future(self._login())
            task.add_done_callback(self._clear_inflight)
            self._inflight = task
        else:
            logger.debug("[UpstreamSession] Login en curso, esperando su resultado")

        # shield: si un llamador se cancela, el login sigue para los demas
        return await asyncio.shield(self._inflight)

    def invalidate(self) -> None:
        """Fuerza un login en la proxima llamada."""
        logger.info("[UpstreamSession] Sesion invalidada")
        self._session = UpstreamSession()

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    def _clear_inflight(self, task: asyncio.Future) -> None:
        if self._inflight is task:
            self._inflight = None
        # Marca la excepcion como recuperada aunque ningun llamador siga esperando
        if not task.cancelled():
            task.exception()

    def _fail(self, message: str, status_code: Optional[int] = None) -> UpstreamAuthError:
        self._session = UpstreamSession()
        logger.error(f"[UpstreamSession] {message}")
        return UpstreamAuthError(message, status_code=status_code)

    async def _login(self) -> str:
        login_time = self._clock()
        params = {"name": self._creds.username, "password": self._creds.password}

        try:
            resp = await self._client.get(self._login_path, params=params)
        except httpx.HTTPError as e:
            raise self._fail(f"Error de red en login upstream: {e}") from e

        if not resp.is_success:
            raise self._fail(f"Login upstream rechazado ({resp.status_code})", status_code=resp.status_code)

        try:
            payload = resp.json()
        except ValueError as e:
            raise self._fail("Respuesta de login no es JSON", status_code=resp.status_code) from e

        token = payload.get("token") if isinstance(payload, dict) else None
        if not token:
            raise self._fail("Respuesta de login invalida (token faltante)", status_code=resp.status_code)

        ttl = coerce_ttl_seconds(payload.get("expiresIn"))
        if ttl is None:
            logger.warning(
                f"[UpstreamSession] 'expiresIn' invalido ({payload.get('expiresIn')!r}). "
                f"Usando {self._default_ttl_s}s por defecto."
            )
            ttl = float(self._default_ttl_s)

        expires_at = login_time + timedelta(seconds=ttl - self._safety_margin_s)
        self._session = UpstreamSession(token=str(token), expires_at=expires_at)
        logger.info(f"[UpstreamSession] Login exitoso. Token valido hasta {expires_at.isoformat()}")
        return self._session.token
