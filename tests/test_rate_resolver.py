"""Tests for the rate resolution rule chain."""

import logging
from decimal import Decimal

import pytest

from gst_engine.domain.errors import ValidationError
from gst_engine.domain.models import GstType, LineItemInput, RateCatalog, RateSource, TaxCategory
from gst_engine.domain.services.rate_resolver import (
    BatchOverrideRule,
    ExemptRule,
    FallbackRule,
    HsnMasterRule,
    ProductRateRule,
    RateResolver,
    resolve_tax_rate,
)


def _line(**kwargs) -> LineItemInput:
    return LineItemInput(unit_price_paise=1000, quantity=1, **kwargs)


class TestIndividualRules:
    def test_exempt_rule_zero_rate(self, catalog):
        res = ExemptRule().apply(_line(product_id="paracetamol", is_tax_exempt=True), catalog)
        assert res.tax_rate.rate_percent == 0
        assert res.tax_rate.gst_type == GstType.EXCLUSIVE
        assert res.tax_rate.hsn_code == "3004"
        assert res.source == RateSource.EXEMPT

    def test_exempt_rule_tax_category(self, catalog):
        for category in (TaxCategory.EXEMPT, TaxCategory.ZERO_RATED):
            assert ExemptRule().apply(_line(tax_category=category), catalog) is not None
        assert ExemptRule().apply(_line(), catalog) is None

    def test_batch_override(self, catalog):
        res = BatchOverrideRule().apply(_line(batch_id="B-PCM-01"), catalog)
        assert res.tax_rate.rate_percent == Decimal("5")
        assert res.tax_rate.hsn_code == "3004"
        assert res.source == RateSource.BATCH_OVERRIDE

    def test_batch_without_override_does_not_match(self, catalog):
        assert BatchOverrideRule().apply(_line(batch_id="B-PCM-02"), catalog) is None

    def test_product_rate(self, catalog):
        res = ProductRateRule().apply(_line(product_id="vaccine"), catalog)
        assert res.tax_rate.rate_percent == Decimal("5")
        assert res.tax_rate.gst_type == GstType.INCLUSIVE

    def test_product_without_rate_does_not_match(self, catalog):
        assert ProductRateRule().apply(_line(product_id="toothpaste"), catalog) is None

    def test_hsn_master(self, catalog):
        res = HsnMasterRule().apply(_line(product_id="toothpaste"), catalog)
        assert res.tax_rate.rate_percent == Decimal("18")
        assert res.source == RateSource.HSN_MASTER

    def test_hsn_master_uses_line_override_code(self, catalog):
        res = HsnMasterRule().apply(_line(hsn_code_override="3306"), catalog)
        assert res.tax_rate.hsn_code == "3306"

    def test_fallback_default_rate(self):
        res = FallbackRule().apply(_line(), RateCatalog())
        assert res.tax_rate.rate_percent == Decimal("12")
        assert res.tax_rate.gst_type == GstType.EXCLUSIVE
        assert res.source == RateSource.SYSTEM_DEFAULT
        assert len(res.warnings) == 1
        assert res.warnings[0].reason == "HSN_MISSING"
        assert res.warnings[0].message == "HSN missing, defaulted to 12% GST"

    def test_fallback_uses_positive_caller_override(self):
        res = FallbackRule().apply(_line(gst_rate_override=Decimal("18")), RateCatalog())
        assert res.tax_rate.rate_percent == Decimal("18")
        assert res.source == RateSource.CALLER_OVERRIDE
        assert res.warnings

    @pytest.mark.parametrize("override", [Decimal("0"), Decimal("-5"), Decimal("-0.01")])
    def test_fallback_ignores_non_positive_override(self, override):
        res = FallbackRule().apply(_line(gst_rate_override=override), RateCatalog())
        assert res.tax_rate.rate_percent == Decimal("12")
        assert res.source == RateSource.SYSTEM_DEFAULT
        assert res.warnings

    def test_fallback_keeps_caller_gst_type(self):
        res = FallbackRule().apply(_line(gst_type=GstType.INCLUSIVE), RateCatalog())
        assert res.tax_rate.gst_type == GstType.INCLUSIVE

    def test_fallback_logs_warning(self, caplog):
        with caplog.at_level(logging.WARNING, logger="rate_resolver"):
            FallbackRule().apply(_line(product_id="x"), RateCatalog())
        assert any("defaulted to 12% GST" in r.getMessage() for r in caplog.records)


class TestResolverChain:
    def test_batch_beats_product(self, catalog):
        res = resolve_tax_rate(_line(product_id="paracetamol", batch_id="B-PCM-01"), catalog)
        assert res.source == RateSource.BATCH_OVERRIDE
        assert res.tax_rate.rate_percent == Decimal("5")

    def test_product_beats_hsn_master(self, catalog):
        res = resolve_tax_rate(_line(product_id="paracetamol", batch_id="B-PCM-02"), catalog)
        assert res.source == RateSource.PRODUCT
        assert res.tax_rate.rate_percent == Decimal("12")

    def test_exempt_beats_everything(self, catalog):
        res = resolve_tax_rate(_line(batch_id="B-PCM-01", is_tax_exempt=True), catalog)
        assert res.source == RateSource.EXEMPT
        assert res.tax_rate.rate_percent == 0

    def test_unknown_hsn_falls_back_with_suggestion(self, catalog):
        res = resolve_tax_rate(_line(hsn_code_override="30021000"), catalog)
        assert res.source == RateSource.SYSTEM_DEFAULT
        warning = res.warnings[0]
        assert warning.reason == "HSN_NOT_IN_MASTER"
        assert warning.suggested_rate_percent == Decimal("5")
        assert warning.applied_rate_percent == Decimal("12")

    def test_never_fails_without_catalog(self):
        res = RateResolver().resolve(_line())
        assert res.tax_rate.rate_percent == Decimal("12")

    def test_custom_chain_without_fallback_still_resolves(self, catalog):
        resolver = RateResolver(rules=[ProductRateRule()])
        res = resolver.resolve(_line(product_id="toothpaste"), catalog)
        assert res.source == RateSource.SYSTEM_DEFAULT

    def test_empty_chain_rejected(self):
        with pytest.raises(ValueError):
            RateResolver(rules=[])

    def test_negative_override_resolves_to_default(self):
        res = resolve_tax_rate(LineItemInput(100, 1, gst_rate_override=Decimal("-5")))
        assert res.tax_rate.rate_percent == Decimal("12")
        assert res.source == RateSource.SYSTEM_DEFAULT

    def test_out_of_range_override_is_rejected(self):
        with pytest.raises(ValidationError):
            resolve_tax_rate(_line(gst_rate_override=Decimal("120")))
