# gst_engine/domain/services/supply_classifier.py
"""
Intra-state vs inter-state classification.

Decided once per invoice from the seller and buyer state codes and applied
to every line, so an invoice never mixes CGST/SGST with IGST.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from gst_engine.domain.errors import ValidationError
from gst_engine.domain.models.tax import PlaceOfSupplyPolicy, SupplyType

GSTIN_REGEX = re.compile(r"^[0-9]{2}[A-Z]{5}[0-9]{4}[A-Z][1-9A-Z]Z[0-9A-Z]$")

STATE_CODES: dict[str, str] = {
    "01": "Jammu & Kashmir", "02": "Himachal Pradesh", "03": "Punjab",
    "04": "Chandigarh", "05": "Uttarakhand", "06": "Haryana",
    "07": "Delhi", "08": "Rajasthan", "09": "Uttar Pradesh",
    "10": "Bihar", "11": "Sikkim", "12": "Arunachal Pradesh",
    "13": "Nagaland", "14": "Manipur", "15": "Mizoram",
    "16": "Tripura", "17": "Meghalaya", "18": "Assam",
    "19": "West Bengal", "20": "Jharkhand", "21": "Odisha",
    "22": "Chhattisgarh", "23": "Madhya Pradesh", "24": "Gujarat",
    "26": "Dadra & Nagar Haveli and Daman & Diu", "27": "Maharashtra",
    "29": "Karnataka", "30": "Goa", "31": "Lakshadweep",
    "32": "Kerala", "33": "Tamil Nadu", "34": "Puducherry",
    "35": "Andaman & Nicobar", "36": "Telangana", "37": "Andhra Pradesh",
    "38": "Ladakh", "97": "Other Territory",
}


def normalize_state_code(code: str | int | None) -> str | None:
    """``" 7"`` → ``"07"``; blank → None. Non-numeric codes are upper-cased as-is."""
    if code is None:
        return None
    code = str(code).strip()
    if not code:
        return None
    if code.isdigit() and len(code) == 1:
        return code.zfill(2)
    return code.upper()


def is_valid_gstin(gstin: str | None) -> bool:
    if not gstin:
        return False
    return bool(GSTIN_REGEX.match(gstin.strip().upper()))


def state_code_from_gstin(gstin: str | None) -> str | None:
    """First two digits of a well-formed GSTIN, else None."""
    if not is_valid_gstin(gstin):
        return None
    return gstin.strip()[:2]


def state_name(code: str | None) -> str:
    code = normalize_state_code(code) or ""
    return STATE_CODES.get(code, f"State Code {code}")


def classify_supply(
    seller_state_code: str | None,
    buyer_state_code: str | None = None,
    policy: PlaceOfSupplyPolicy | str = PlaceOfSupplyPolicy.CUSTOMER_STATE,
) -> SupplyType:
    """
    INTRA_STATE when there is no buyer state (walk-in B2C) or the states match,
    INTER_STATE otherwise. The policy is accepted for the record; it does not
    change the outcome when the buyer state is known.
    """
    try:
        PlaceOfSupplyPolicy(policy)
    except ValueError:
        raise ValidationError(f"Unknown place-of-supply policy: {policy!r}", field="place_of_supply_policy")

    seller = normalize_state_code(seller_state_code)
    if seller is None:
        raise ValidationError("Seller state code is required", field="seller_state_code")

    buyer = normalize_state_code(buyer_state_code)
    if buyer is None or buyer == seller:
        return SupplyType.INTRA_STATE
    return SupplyType.INTER_STATE


@dataclass(frozen=True)
class PlaceOfSupply:
    supply_type: SupplyType
    state_code: str


def determine_place_of_supply(
    seller_state_code: str | None,
    buyer_state_code: str | None = None,
    policy: PlaceOfSupplyPolicy | str = PlaceOfSupplyPolicy.CUSTOMER_STATE,
) -> PlaceOfSupply:
    """Regime plus the place-of-supply state code (buyer state, else store state)."""
    supply_type = classify_supply(seller_state_code, buyer_state_code, policy)
    state_code = normalize_state_code(buyer_state_code) or normalize_state_code(seller_state_code)
    return PlaceOfSupply(supply_type=supply_type, state_code=state_code)
