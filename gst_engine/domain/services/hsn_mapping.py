# gst_engine/domain/services/hsn_mapping.py
"""
HSN → GST starter mapping for pharmacy goods.

Longest-prefix match (8 > 6 > 4 > 2 digits). These are suggestions for the
compliance review queue only; they never replace a rate from the batch,
product or HSN master.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from decimal import Decimal

from gst_engine.domain.models.tax import GstType

_NON_DIGITS = re.compile(r"\D")


@dataclass(frozen=True)
class HsnGstMapping:
    hsn_prefix: str
    default_gst_rate: Decimal
    default_gst_type: GstType = GstType.EXCLUSIVE
    category_suggestion: str | None = None
    notes: str = ""


HSN_GST_MAPPINGS: tuple[HsnGstMapping, ...] = (
    # 8-digit
    HsnGstMapping("30049099", Decimal("12"), category_suggestion="General",
                  notes="Medicaments in measured doses - retail packs."),
    HsnGstMapping("30049090", Decimal("12"), category_suggestion="General",
                  notes="Medicaments in measured doses."),
    # 6-digit
    HsnGstMapping("300490", Decimal("12"), category_suggestion="General",
                  notes="Medicaments in measured doses."),
    # 4-digit (most common for pharmacies)
    HsnGstMapping("3004", Decimal("12"), category_suggestion="General",
                  notes="Medicaments in measured doses / retail packs."),
    HsnGstMapping("3003", Decimal("12"), category_suggestion="General",
                  notes="Medicaments not in measured doses."),
    HsnGstMapping("3002", Decimal("5"), category_suggestion="General",
                  notes="Blood, antisera, vaccines. Rate varies."),
    HsnGstMapping("9018", Decimal("12"), category_suggestion="Medical Equipment",
                  notes="Medical instruments/appliances. Rate varies."),
    HsnGstMapping("3306", Decimal("18"), category_suggestion="Oral Care",
                  notes="Oral/dental hygiene products."),
    HsnGstMapping("3401", Decimal("18"), category_suggestion="Personal Care",
                  notes="Soaps/cleansers."),
    HsnGstMapping("2202", Decimal("12"), category_suggestion="Beverages",
                  notes="Non-alcoholic beverages/health drinks."),
    HsnGstMapping("2106", Decimal("18"), category_suggestion="Nutritional Supplements",
                  notes="Nutritional supplements/food preparations."),
    # 2-digit (broad chapter)
    HsnGstMapping("30", Decimal("12"), category_suggestion="General",
                  notes="Pharmaceutical products."),
)

_BY_PREFIX_LENGTH = sorted(HSN_GST_MAPPINGS, key=lambda m: len(m.hsn_prefix), reverse=True)


def sanitize_hsn_code(hsn_code: str | None) -> str:
    """Keep digits only: ``"3004.90 99"`` → ``"30049099"``."""
    if not hsn_code:
        return ""
    return _NON_DIGITS.sub("", hsn_code)


def find_hsn_gst_mapping(hsn_code: str | None) -> HsnGstMapping | None:
    sanitized = sanitize_hsn_code(hsn_code)
    if len(sanitized) < 2:
        return None
    for mapping in _BY_PREFIX_LENGTH:
        if sanitized.startswith(mapping.hsn_prefix):
            return mapping
    return None


def suggest_gst_rate(hsn_code: str | None) -> Decimal | None:
    mapping = find_hsn_gst_mapping(hsn_code)
    return mapping.default_gst_rate if mapping else None


@dataclass(frozen=True)
class HsnValidation:
    valid: bool
    warning: str | None = None
    suggestion: str | None = None


def validate_hsn_code(hsn_code: str | None) -> HsnValidation:
    """Format check for HSN codes on GST invoices (2–8 digits)."""
    sanitized = sanitize_hsn_code(hsn_code)

    if not sanitized:
        return HsnValidation(valid=True)  # optional field
    if len(sanitized) < 2:
        return HsnValidation(valid=False, warning="HSN code too short (minimum 2 digits)")
    if len(sanitized) > 8:
        return HsnValidation(valid=False, warning="HSN code too long (maximum 8 digits)")
    if len(sanitized) == 2:
        return HsnValidation(
            valid=True,
            warning="Use 4-8 digits for GST invoices. 2-digit codes are for internal use only.",
            suggestion="Consider using 4-digit HSN for better GST classification.",
        )
    if 4 <= len(sanitized) < 8:
        return HsnValidation(
            valid=True,
            suggestion="4-8 digits recommended for GST invoices (e.g., 3004 / 30049099).",
        )
    return HsnValidation(valid=True)
