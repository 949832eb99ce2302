# gst_engine/domain/services/line_tax_calculator.py
"""
Per-line GST computation on integer paise.

    gross    = unit_price × quantity
    discount = round(gross × pct / 100)  if a positive percent is given
               else discount_paise (or 0)
    net      = gross − discount                       (must be ≥ 0)
    taxable  = INCLUSIVE: round(net / (1 + rate/100))
               EXCLUSIVE: net
    gst      = round(taxable × rate / 100)
    INTRA    : cgst = round(gst / 2), sgst = gst − cgst, igst = 0
    INTER    : igst = gst, cgst = sgst = 0
    total    = INCLUSIVE: net, EXCLUSIVE: taxable + gst

Every rounding step is half-up to whole paise using Decimal; floats are
never involved, so identical inputs always give identical outputs.
"""

from __future__ import annotations

from decimal import Decimal, InvalidOperation, localcontext

from gst_engine.domain.errors import ValidationError
from gst_engine.domain.models.money import Paise, round_half_up
from gst_engine.domain.models.tax import (
    GstType,
    LineItemInput,
    LineTaxResult,
    RateCatalog,
    RateResolution,
    SupplyType,
    TaxRate,
)
from gst_engine.domain.services.rate_resolver import RateResolver

_HUNDRED = Decimal("100")
_TWO = Decimal("2")
_PRECISION = 50


def _whole_number(value, field: str) -> int:
    if isinstance(value, (bool, float)) or value is None:
        raise ValidationError(f"{field} must be a whole number, got {value!r}", field=field)
    if isinstance(value, Decimal):
        if not value.is_finite() or value != value.to_integral_value():
            raise ValidationError(f"{field} must be a whole number, got {value}", field=field)
        return int(value)
    if isinstance(value, int):
        return int(value)
    raise ValidationError(f"{field} must be a whole number, got {value!r}", field=field)


def _percent(value, field: str) -> Decimal:
    if isinstance(value, float):
        value = str(value)
    try:
        pct = value if isinstance(value, Decimal) else Decimal(str(value))
    except (InvalidOperation, ValueError):
        raise ValidationError(f"{field} is not a number: {value!r}", field=field)
    if not pct.is_finite() or pct < 0 or pct > 100:
        raise ValidationError(f"{field} must be between 0 and 100, got {pct}", field=field)
    return pct


def validate_line_amounts(unit_price_paise, quantity) -> tuple[Paise, int]:
    """Reject non-positive quantity and negative price before any arithmetic."""
    qty = _whole_number(quantity, "quantity")
    if qty <= 0:
        raise ValidationError(f"Quantity must be positive, got {qty}", field="quantity")
    price = _whole_number(unit_price_paise, "unit_price_paise")
    if price < 0:
        raise ValidationError(f"Unit price cannot be negative, got {price}", field="unit_price_paise")
    return Paise(price), qty


def compute_discount(gross: Paise, discount_paise=None, discount_percent=None) -> Paise:
    if discount_percent is not None:
        pct = _percent(discount_percent, "discount_percent")
        if pct > 0:
            with localcontext() as ctx:
                ctx.prec = _PRECISION
                return round_half_up(Decimal(int(gross)) * pct / _HUNDRED)
    if discount_paise is None:
        return Paise(0)
    discount = _whole_number(discount_paise, "discount_paise")
    if discount < 0:
        raise ValidationError(f"Discount cannot be negative, got {discount}", field="discount_paise")
    return Paise(discount)


def split_gst(total_gst: Paise, supply_type: SupplyType) -> tuple[Paise, Paise, Paise]:
    """(cgst, sgst, igst). Intra-state: half to CGST, remainder to SGST."""
    if SupplyType(supply_type) == SupplyType.INTER_STATE:
        return Paise(0), Paise(0), Paise(total_gst)
    cgst = round_half_up(Decimal(int(total_gst)) / _TWO)
    sgst = Paise(total_gst) - cgst
    return cgst, sgst, Paise(0)


def calculate_line_tax(
    unit_price_paise,
    quantity,
    tax_rate: TaxRate,
    supply_type: SupplyType,
    discount_paise=None,
    discount_percent=None,
) -> LineTaxResult:
    """Compute the tax breakdown for one line. Raises ValidationError on bad input."""
    price, qty = validate_line_amounts(unit_price_paise, quantity)

    gross = price * qty
    discount = compute_discount(gross, discount_paise, discount_percent)
    net = gross - discount
    if net < 0:
        raise ValidationError(
            f"Discount {int(discount)} exceeds line amount {int(gross)}",
            field="discount_paise",
        )

    rate = tax_rate.rate_percent
    with localcontext() as ctx:
        ctx.prec = _PRECISION
        if tax_rate.gst_type == GstType.INCLUSIVE:
            taxable = round_half_up(Decimal(int(net)) * _HUNDRED / (_HUNDRED + rate))
        else:
            taxable = net
        total_gst = round_half_up(Decimal(int(taxable)) * rate / _HUNDRED)

    cgst, sgst, igst = split_gst(total_gst, supply_type)
    line_total = net if tax_rate.gst_type == GstType.INCLUSIVE else taxable + total_gst

    return LineTaxResult(
        taxable_value_paise=taxable,
        cgst_paise=cgst,
        sgst_paise=sgst,
        igst_paise=igst,
        total_gst_paise=total_gst,
        line_total_paise=line_total,
        hsn_code=tax_rate.hsn_code,
        gst_rate_percent=rate,
        gst_type=tax_rate.gst_type,
        quantity=qty,
        unit_price_paise=price,
        discount_paise=discount,
    )


def compute_line_item(
    line: LineItemInput,
    supply_type: SupplyType,
    catalog: RateCatalog | None = None,
    resolver: RateResolver | None = None,
) -> tuple[LineTaxResult, RateResolution]:
    """Resolve the rate for ``line`` and compute its tax in one step."""
    # quantity is checked before resolution so bad lines never emit fallback warnings
    validate_line_amounts(line.unit_price_paise, line.quantity)
    resolution = (resolver or RateResolver()).resolve(line, catalog)
    result = calculate_line_tax(
        line.unit_price_paise,
        line.quantity,
        resolution.tax_rate,
        supply_type,
        discount_paise=line.discount_paise,
        discount_percent=line.discount_percent,
    )
    return result, resolution
