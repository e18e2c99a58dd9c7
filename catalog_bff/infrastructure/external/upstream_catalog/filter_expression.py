"""
Construccion de la expresion `where` del catalogo upstream.

Formato: `CodigoEmpresa=<empresa> and (<campo1>=-1 or <campo2>=-1 ...)`.
"""

from __future__ import annotations

from typing import Iterable

from catalog_bff.shared.constants.catalog_constants import (
    PROMOTION_CHANNELS,
    UPSTREAM_ACTIVE_SENTINEL,
)
from catalog_bff.shared.exceptions.sync import FilterExpressionError


def build_promotion_filter(company_code: int, channel_fields: Iterable[str]) -> str:
    """
    Construye el filtro de articulos en oferta de una empresa.

    Raises:
        FilterExpressionError: si no queda ningun canal (clausula OR vacia)
    """
    fields = [f.strip() for f in channel_fields if f and f.strip()]
    if not fields:
        raise FilterExpressionError("La clausula OR de canales de oferta esta vacia")

    or_clause = " or ".join(f"{f}={UPSTREAM_ACTIVE_SENTINEL}" for f in fields)
    return f"CodigoEmpresa={company_code} and ({or_clause})"


def build_catalog_filter(company_code: int = 1) -> str:
    """Filtro por defecto: cualquiera de los canales de oferta conocidos."""
    return build_promotion_filter(company_code, (field for _, field in PROMOTION_CHANNELS))
