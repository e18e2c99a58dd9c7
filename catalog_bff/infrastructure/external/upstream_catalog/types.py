"""
Tipos y utilidades puras del pipeline upstream.

Se mantienen libres de I/O para poder testearlos facilmente.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import List, Optional

from catalog_bff.domain.entities.catalog_item import CatalogItem

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def utc_now() -> datetime:
    """Retorna la hora actual en UTC, como datetime aware."""
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class UpstreamCredentials:
    username: str
    password: str


@dataclass(frozen=True)
class UpstreamSession:
    """
    Token upstream cacheado.

    Invalido: token None y expires_at en epoch.
    """

    token: Optional[str] = None
    expires_at: datetime = EPOCH

    def is_valid_at(self, now: datetime) -> bool:
        return self.token is not None and now < self.expires_at


@dataclass(frozen=True)
class FetchResult:
    """
    Resultado de una descarga completa.

    Si `error` no es None la descarga se aborto y `items` esta vacio.
    """

    items: List[CatalogItem] = field(default_factory=list)
    error: Optional[Exception] = None
    pages_fetched: int = 0
    raw_fetched: int = 0
    dropped: int = 0
    truncated: bool = False

    @property
    def ok(self) -> bool:
        return self.error is None
