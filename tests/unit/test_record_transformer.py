"""
Tests unitarios para el transformador de registros upstream.
"""
from __future__ import annotations

from unittest.mock import AsyncMock

import pytest

from catalog_bff.infrastructure.external.upstream_catalog.record_transformer import (
    RecordTransformer,
    parse_upstream_record,
    to_title_case,
)
from catalog_bff.shared.exceptions.sync import RecordValidationError


def _raw(**overrides):
    raw = {
        "CodigoArticulo": "120500",
        "CodigoAlternativo2": "8400000000001",
        "DescripcionArticulo": "FICUS BENJAMINA danielle",
        "Descripcion": "plantas de INTERIOR",
        "Descripcion2Articulo": "ficus",
        "Precio1": 12.5,
        "PrecioVentasinIVA2": 10.0,
        "PrecioVentasinIVA3": 8.75,
        "_Maceta": "M-17",
        "_Calibre": "",
        "_Altura": "80",
        "_Presentacion": "Tutor",
        "_UndsCarro": 48,
        "_UndsTabla": 8,
        "_UndsCaja": 1,
        "_Acabado": "Premium",
        "_Tamano": "M",
        "_OfertaFinca": {"value": -1},
        "_OfertaGarden": {"value": 0},
        "CampoDesconocido": "ignorar",
    }
    raw.update(overrides)
    return raw


class TestTitleCase:
    def test_capitalizes_each_word(self) -> None:
        assert to_title_case("FICUS benjamina DANIELLE") == "Ficus Benjamina Danielle"

    def test_keeps_whitespace(self) -> None:
        assert to_title_case("  olea  europaea ") == "  Olea  Europaea "

    def test_empty_values(self) -> None:
        assert to_title_case("") == ""
        assert to_title_case(None) == ""


class TestParseUpstreamRecord:
    def test_valid_record(self) -> None:
        result = parse_upstream_record(_raw())
        assert result.ok
        assert result.record_id == "120500"
        assert result.violations == []

    @pytest.mark.parametrize("code", ["", "   ", None])
    def test_blank_or_missing_code_is_violation(self, code) -> None:
        result = parse_upstream_record(_raw(CodigoArticulo=code))
        assert not result.ok
        assert result.violations

    def test_missing_code_key(self) -> None:
        raw = _raw()
        del raw["CodigoArticulo"]
        result = parse_upstream_record(raw)
        assert not result.ok
        assert result.record_id is None

    def test_numeric_code_is_converted_to_string(self) -> None:
        result = parse_upstream_record(_raw(CodigoArticulo=175000))
        assert result.ok
        assert result.record.code == "175000"

    def test_negative_price_is_violation(self) -> None:
        result = parse_upstream_record(_raw(Precio1=-3))
        assert not result.ok
        assert result.record_id == "120500"

    def test_non_dict_record_never_raises(self) -> None:
        result = parse_upstream_record(["not", "a", "record"])
        assert not result.ok
        assert result.record_id is None

    def test_malformed_promotion_is_violation(self) -> None:
        result = parse_upstream_record(_raw(_OfertaCortijo={"value": "si"}))
        assert not result.ok


class TestRecordTransformer:
    @pytest.mark.asyncio
    async def test_maps_fields(self) -> None:
        item = await RecordTransformer().transform(_raw())

        assert item.id == "120500"
        assert item.alt_ean == "8400000000001"
        assert item.scientific_name == "Ficus Benjamina Danielle"
        assert item.family == "Plantas De Interior"
        assert item.common_name == "Ficus"
        assert item.base_price == 12.5
        assert item.price2 == 10.0
        assert item.price3 == 8.75
        assert item.pot_size == "M-17"
        assert item.height == "80"
        assert item.units_per_cart == 48
        assert item.units_per_pallet == 8
        assert item.units_per_box == 1
        assert item.finish == "Premium"
        assert item.size_class == "M"
        assert item.image_url == ""

    @pytest.mark.asyncio
    async def test_promotion_flags_only_true_for_minus_one(self) -> None:
        item = await RecordTransformer().transform(_raw())

        assert item.promotion_flags.finca is True
        assert item.promotion_flags.garden is False
        assert item.promotion_flags.cortijo is False
        assert item.promotion_flags.active_channels() == ["finca"]

    @pytest.mark.asyncio
    async def test_nulls_and_missing_optionals_take_defaults(self) -> None:
        raw = {"CodigoArticulo": " 42 ", "Precio1": None, "_Maceta": None, "_OfertaFinca": None}

        item = await RecordTransformer().transform(raw)

        assert item.id == "42"
        assert item.base_price == 0
        assert item.pot_size == ""
        assert item.units_per_box == 0
        assert item.promotion_flags.finca is False

    @pytest.mark.asyncio
    async def test_invalid_record_raises_with_id_and_violations(self) -> None:
        with pytest.raises(RecordValidationError) as exc_info:
            await RecordTransformer().transform(_raw(_UndsCaja=-1))

        assert exc_info.value.record_id == "120500"
        assert any("_UndsCaja" in v for v in exc_info.value.violations)

    @pytest.mark.asyncio
    async def test_blank_code_never_produces_item(self) -> None:
        with pytest.raises(RecordValidationError):
            await RecordTransformer().transform(_raw(CodigoArticulo="  "))

    @pytest.mark.asyncio
    async def test_uses_image_resolver(self) -> None:
        resolver = AsyncMock()
        resolver.resolve = AsyncMock(return_value="https://img.test/120500-0.jpg")

        item = await RecordTransformer(resolver).transform(_raw())

        resolver.resolve.assert_awaited_once_with("120500")
        assert item.image_url == "https://img.test/120500-0.jpg"
