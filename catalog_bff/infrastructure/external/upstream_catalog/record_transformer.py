"""
Registro upstream -> CatalogItem.

El parseo es tolerante: `parse_upstream_record` nunca lanza por desviaciones
de forma, devuelve el registro validado o la lista de violaciones.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

from catalog_bff.domain.entities.catalog_item import CatalogItem, PromotionFlags
from catalog_bff.shared.constants.catalog_constants import (
    PROMOTION_FLAG_NAMES,
    UPSTREAM_ACTIVE_SENTINEL,
)
from catalog_bff.shared.exceptions.sync import RecordValidationError

from .image_resolvers import ImageUrlResolver

_WORD = re.compile(r"\S+")


def to_title_case(value: Optional[str]) -> str:
    """Primera letra de cada palabra en mayuscula, el resto en minuscula."""
    if not value:
        return ""
    return _WORD.sub(lambda m: m.group(0)[:1].upper() + m.group(0)[1:].lower(), value)


class PromotionValue(BaseModel):
    model_config = ConfigDict(extra="ignore")

    value: Optional[float] = None


class UpstreamArticle(BaseModel):
    """Forma del registro del catalogo upstream (campos desconocidos se ignoran)."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    code: str = Field(alias="CodigoArticulo", min_length=1)
    alt_code: str = Field(default="", alias="CodigoAlternativo2")
    description: str = Field(default="", alias="DescripcionArticulo")
    family: str = Field(default="", alias="Descripcion")
    description2: str = Field(default="", alias="Descripcion2Articulo")

    price1: float = Field(default=0.0, ge=0, alias="Precio1")
    price2: float = Field(default=0.0, ge=0, alias="PrecioVentasinIVA2")
    price3: float = Field(default=0.0, ge=0, alias="PrecioVentasinIVA3")

    pot: str = Field(default="", alias="_Maceta")
    caliber: str = Field(default="", alias="_Calibre")
    height: str = Field(default="", alias="_Altura")
    presentation: str = Field(default="", alias="_Presentacion")
    finish: str = Field(default="", alias="_Acabado")
    size: str = Field(default="", alias="_Tamano")

    units_cart: int = Field(default=0, ge=0, alias="_UndsCarro")
    units_pallet: int = Field(default=0, ge=0, alias="_UndsTabla")
    units_box: int = Field(default=0, ge=0, alias="_UndsCaja")

    nuevo_espacio: Optional[PromotionValue] = Field(default=None, alias="_OfertaNuevoEspacio")
    euro_planta: Optional[PromotionValue] = Field(default=None, alias="_OfertaEuroPlanta")
    cortijo: Optional[PromotionValue] = Field(default=None, alias="_OfertaCortijo")
    finca: Optional[PromotionValue] = Field(default=None, alias="_OfertaFinca")
    arroyo: Optional[PromotionValue] = Field(default=None, alias="_OfertaArroyo")
    gamera: Optional[PromotionValue] = Field(default=None, alias="_OfertaGamera")
    garden: Optional[PromotionValue] = Field(default=None, alias="_OfertaGarden")
    marbella: Optional[PromotionValue] = Field(default=None, alias="_OfertaMarbella")
    estacion: Optional[PromotionValue] = Field(default=None, alias="_OfertaEstacion")

    @model_validator(mode="before")
    @classmethod
    def _normalize(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        # null -> default del campo
        cleaned = {k: v for k, v in data.items() if v is not None}
        code = cleaned.get("CodigoArticulo")
        if isinstance(code, int) and not isinstance(code, bool):
            code = str(code)
        if isinstance(code, str):
            cleaned["CodigoArticulo"] = code.strip()
        return cleaned


@dataclass(frozen=True)
class ParseResult:
    record: Optional[UpstreamArticle] = None
    record_id: Optional[str] = None
    violations: List[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.record is not None


def _raw_record_id(raw: Any) -> Optional[str]:
    if not isinstance(raw, dict):
        return None
    code = raw.get("CodigoArticulo")
    if code is None:
        return None
    return str(code).strip() or None


def parse_upstream_record(raw: Any) -> ParseResult:
    try:
        article = UpstreamArticle.model_validate(raw)
    except ValidationError as e:
        violations = [
            f"{'.'.join(str(p) for p in err['loc']) or '<registro>'}: {err['msg']}"
            for err in e.errors()
        ]
        return ParseResult(record_id=_raw_record_id(raw), violations=violations)
    return ParseResult(record=article, record_id=article.code)


def _is_active(promotion: Optional[PromotionValue]) -> bool:
    return promotion is not None and promotion.value == UPSTREAM_ACTIVE_SENTINEL


def to_catalog_item(article: UpstreamArticle, image_url: str = "") -> CatalogItem:
    flags = PromotionFlags(**{name: _is_active(getattr(article, name)) for name in PROMOTION_FLAG_NAMES})
    return CatalogItem(
        id=article.code,
        alt_ean=article.alt_code,
        scientific_name=to_title_case(article.description),
        family=to_title_case(article.family),
        common_name=to_title_case(article.description2),
        base_price=article.price1,
        price2=article.price2,
        price3=article.price3,
        pot_size=article.pot,
        caliber=article.caliber,
        height=article.height,
        presentation=article.presentation,
        finish=article.finish,
        size_class=article.size,
        units_per_cart=article.units_cart,
        units_per_pallet=article.units_pallet,
        units_per_box=article.units_box,
        image_url=image_url,
        promotion_flags=flags,
    )


class RecordTransformer:
    """Valida, normaliza y resuelve la imagen de cada registro."""

    def __init__(self, image_resolver: Optional[ImageUrlResolver] = None) -> None:
        self._image_resolver = image_resolver

    async def transform(self, raw: Any) -> CatalogItem:
        """
        Raises:
            RecordValidationError: si el registro no cumple el esquema
        """
        parsed = parse_upstream_record(raw)
        if not parsed.ok:
            raise RecordValidationError(parsed.record_id, parsed.violations)

        article = parsed.record
        image_url = ""
        if self._image_resolver is not None:
            image_url = await self._image_resolver.resolve(article.code)
        return to_catalog_item(article, image_url)
