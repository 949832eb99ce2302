"""Tests for per-line GST computation."""

from decimal import Decimal

import pytest

from gst_engine.domain.errors import ValidationError
from gst_engine.domain.models import GstType, LineItemInput, Paise, RateSource, SupplyType, TaxRate
from gst_engine.domain.models.money import round_half_up
from gst_engine.domain.services.line_tax_calculator import (
    calculate_line_tax,
    compute_discount,
    compute_line_item,
    split_gst,
)

RATE_12_EXCL = TaxRate("3004", Decimal("12"), GstType.EXCLUSIVE)
RATE_12_INCL = TaxRate("3004", Decimal("12"), GstType.INCLUSIVE)


class TestScenarios:
    def test_exclusive_intra_state(self):
        r = calculate_line_tax(3000, 2, RATE_12_EXCL, SupplyType.INTRA_STATE)
        assert r.taxable_value_paise == 6000
        assert r.total_gst_paise == 720
        assert (r.cgst_paise, r.sgst_paise, r.igst_paise) == (360, 360, 0)
        assert r.line_total_paise == 6720

    def test_inclusive_intra_state(self):
        r = calculate_line_tax(3000, 2, RATE_12_INCL, SupplyType.INTRA_STATE)
        assert r.taxable_value_paise == 5357
        assert r.total_gst_paise == 643
        assert (r.cgst_paise, r.sgst_paise) == (322, 321)
        assert r.line_total_paise == 6000

    def test_exclusive_inter_state(self):
        r = calculate_line_tax(3000, 2, RATE_12_EXCL, SupplyType.INTER_STATE)
        assert r.igst_paise == 720
        assert r.cgst_paise == 0 and r.sgst_paise == 0
        assert r.line_total_paise == 6720


class TestProperties:
    @pytest.mark.parametrize("price", [1, 99, 101, 333, 2999, 12345])
    @pytest.mark.parametrize("rate", ["0", "5", "12", "18", "28"])
    def test_split_invariants(self, price, rate):
        for gst_type in GstType:
            for supply_type in SupplyType:
                r = calculate_line_tax(price, 3, TaxRate(None, Decimal(rate), gst_type), supply_type)
                assert r.cgst_paise + r.sgst_paise + r.igst_paise == r.total_gst_paise
                if supply_type == SupplyType.INTRA_STATE:
                    assert r.igst_paise == 0
                    assert 0 <= r.cgst_paise - r.sgst_paise <= 1
                else:
                    assert r.cgst_paise == 0 and r.sgst_paise == 0
                if gst_type == GstType.EXCLUSIVE:
                    assert r.line_total_paise == r.taxable_value_paise + r.total_gst_paise
                else:
                    assert r.line_total_paise == price * 3
                    rebuilt = round_half_up(Decimal(int(r.taxable_value_paise)) * (100 + Decimal(rate)) / 100)
                    assert abs(rebuilt - price * 3) <= 1

    def test_results_are_paise(self):
        r = calculate_line_tax(3000, 2, RATE_12_EXCL, SupplyType.INTRA_STATE)
        assert isinstance(r.total_gst_paise, Paise)
        assert isinstance(r.line_total_paise, Paise)

    def test_deterministic(self):
        a = calculate_line_tax(1999, 7, RATE_12_INCL, SupplyType.INTRA_STATE)
        b = calculate_line_tax(1999, 7, RATE_12_INCL, SupplyType.INTRA_STATE)
        assert a == b

    def test_odd_gst_goes_half_up_to_cgst(self):
        assert split_gst(Paise(643), SupplyType.INTRA_STATE) == (322, 321, 0)
        assert split_gst(Paise(1), SupplyType.INTRA_STATE) == (1, 0, 0)


class TestDiscounts:
    def test_flat_discount(self):
        r = calculate_line_tax(3000, 2, RATE_12_EXCL, SupplyType.INTRA_STATE, discount_paise=1000)
        assert r.taxable_value_paise == 5000
        assert r.total_gst_paise == 600
        assert r.discount_paise == 1000

    def test_percent_discount_takes_precedence(self):
        r = calculate_line_tax(
            3000, 2, RATE_12_EXCL, SupplyType.INTRA_STATE,
            discount_paise=1000, discount_percent=Decimal("10"),
        )
        assert r.discount_paise == 600
        assert r.taxable_value_paise == 5400

    def test_zero_percent_falls_back_to_flat(self):
        assert compute_discount(Paise(6000), discount_paise=500, discount_percent=Decimal("0")) == 500

    def test_discount_larger_than_gross_rejected(self):
        with pytest.raises(ValidationError):
            calculate_line_tax(3000, 1, RATE_12_EXCL, SupplyType.INTRA_STATE, discount_paise=3001)

    def test_percent_out_of_range_rejected(self):
        with pytest.raises(ValidationError):
            compute_discount(Paise(6000), discount_percent=Decimal("101"))


class TestValidation:
    @pytest.mark.parametrize("qty", [0, -1])
    def test_non_positive_quantity(self, qty):
        with pytest.raises(ValidationError):
            calculate_line_tax(3000, qty, RATE_12_EXCL, SupplyType.INTRA_STATE)

    def test_negative_price(self):
        with pytest.raises(ValidationError):
            calculate_line_tax(-1, 1, RATE_12_EXCL, SupplyType.INTRA_STATE)

    def test_float_price_rejected(self):
        with pytest.raises(ValidationError):
            calculate_line_tax(30.5, 1, RATE_12_EXCL, SupplyType.INTRA_STATE)

    def test_bad_quantity_emits_no_fallback(self, caplog):
        with pytest.raises(ValidationError):
            compute_line_item(LineItemInput(unit_price_paise=100, quantity=0), SupplyType.INTRA_STATE)
        assert not caplog.records


def test_compute_line_item_resolves_then_computes(catalog):
    line = LineItemInput(unit_price_paise=3000, quantity=2, product_id="paracetamol")
    result, resolution = compute_line_item(line, SupplyType.INTRA_STATE, catalog)
    assert resolution.source == RateSource.PRODUCT
    assert result.line_total_paise == 6720
    assert result.hsn_code == "3004"
