"""Tests for intra/inter-state classification and GSTIN state codes."""

import pytest

from gst_engine.domain.errors import ValidationError
from gst_engine.domain.models import PlaceOfSupplyPolicy, SupplyType
from gst_engine.domain.services.supply_classifier import (
    classify_supply,
    determine_place_of_supply,
    is_valid_gstin,
    normalize_state_code,
    state_code_from_gstin,
    state_name,
)


class TestClassifySupply:
    def test_same_state_is_intra(self):
        assert classify_supply("36", "36") == SupplyType.INTRA_STATE

    def test_different_state_is_inter(self):
        assert classify_supply("36", "27") == SupplyType.INTER_STATE

    def test_missing_buyer_state_is_intra(self):
        assert classify_supply("36", None) == SupplyType.INTRA_STATE
        assert classify_supply("36", "  ") == SupplyType.INTRA_STATE

    def test_state_codes_are_normalised(self):
        assert classify_supply("07", "7") == SupplyType.INTRA_STATE
        assert classify_supply(" 36", "36 ") == SupplyType.INTRA_STATE

    def test_policy_does_not_change_outcome(self):
        for policy in PlaceOfSupplyPolicy:
            assert classify_supply("36", "27", policy) == SupplyType.INTER_STATE
            assert classify_supply("36", None, policy) == SupplyType.INTRA_STATE

    def test_unknown_policy_rejected(self):
        with pytest.raises(ValidationError):
            classify_supply("36", "27", "SHIP_TO")

    def test_seller_state_required(self):
        with pytest.raises(ValidationError):
            classify_supply(None, "27")


class TestPlaceOfSupply:
    def test_buyer_state_used_when_known(self):
        place = determine_place_of_supply("36", "27")
        assert place.supply_type == SupplyType.INTER_STATE
        assert place.state_code == "27"

    def test_store_state_for_walk_in(self):
        place = determine_place_of_supply("36")
        assert place.supply_type == SupplyType.INTRA_STATE
        assert place.state_code == "36"


class TestGstinHelpers:
    def test_valid_gstin(self):
        assert is_valid_gstin("36AABCU9603R1ZM")
        assert not is_valid_gstin("36AABCU9603R1Z")
        assert not is_valid_gstin(None)

    def test_state_code_from_gstin(self):
        assert state_code_from_gstin("27AADCB2230M1ZP") == "27"
        assert state_code_from_gstin("bogus") is None

    def test_state_name(self):
        assert state_name("36") == "Telangana"
        assert state_name("7") == "Delhi"
        assert state_name("99") == "State Code 99"

    def test_normalize_state_code(self):
        assert normalize_state_code(7) == "07"
        assert normalize_state_code("") is None
