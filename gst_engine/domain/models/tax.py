# gst_engine/domain/models/tax.py
"""
Domain value objects for GST computation.

TaxRate:         rate snapshot resolved for one line (frozen, stored with the line).
LineItemInput:   what the POS sends for one cart line.
LineTaxResult:   computed per-line tax breakdown (immutable once issued).
InvoiceTotals:   summed invoice figures with rupee round-off.
RateCatalog:     caller-supplied product / batch / HSN master snapshots.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, Mapping

from gst_engine.domain.errors import ValidationError
from gst_engine.domain.models.money import Paise


class GstType(str, Enum):
    INCLUSIVE = "INCLUSIVE"
    EXCLUSIVE = "EXCLUSIVE"


class SupplyType(str, Enum):
    INTRA_STATE = "INTRA_STATE"
    INTER_STATE = "INTER_STATE"


class PlaceOfSupplyPolicy(str, Enum):
    CUSTOMER_STATE = "CUSTOMER_STATE"
    STORE_STATE = "STORE_STATE"


class TaxCategory(str, Enum):
    TAXABLE = "TAXABLE"
    EXEMPT = "EXEMPT"
    ZERO_RATED = "ZERO_RATED"


class RateSource(str, Enum):
    EXEMPT = "EXEMPT"
    BATCH_OVERRIDE = "BATCH_OVERRIDE"
    PRODUCT = "PRODUCT"
    HSN_MASTER = "HSN_MASTER"
    CALLER_OVERRIDE = "CALLER_OVERRIDE"
    SYSTEM_DEFAULT = "SYSTEM_DEFAULT"


def to_rate(value: Any, field_name: str = "gst_rate") -> Decimal:
    """Coerce a percentage (Decimal/int/str) to Decimal and range-check it."""
    try:
        rate = value if isinstance(value, Decimal) else Decimal(str(value))
    except (InvalidOperation, TypeError, ValueError):
        raise ValidationError(f"Invalid GST rate: {value!r}", field=field_name)
    if not rate.is_finite() or rate < 0 or rate > 100:
        raise ValidationError(f"GST rate must be between 0 and 100, got {rate}", field=field_name)
    return rate


@dataclass(frozen=True)
class TaxRate:
    """Effective rate for one line, snapshotted at calculation time."""

    hsn_code: str | None
    rate_percent: Decimal
    gst_type: GstType = GstType.EXCLUSIVE

    def __post_init__(self) -> None:
        object.__setattr__(self, "rate_percent", to_rate(self.rate_percent))
        object.__setattr__(self, "gst_type", GstType(self.gst_type))


# ---------------------------------------------------------------------------
# Master-data snapshots (read by the caller, never fetched here)
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ProductSnapshot:
    id: int | str
    hsn_code: str | None = None
    gst_rate: Decimal | None = None
    gst_type: GstType | None = None


@dataclass(frozen=True)
class BatchSnapshot:
    id: int | str
    product_id: int | str | None = None
    sale_gst_rate_override: Decimal | None = None


@dataclass(frozen=True)
class HsnMasterEntry:
    hsn_code: str
    default_gst_rate: Decimal
    gst_type: GstType = GstType.EXCLUSIVE


@dataclass(frozen=True)
class SellerGstin:
    gstin: str
    state_code: str


@dataclass(frozen=True)
class RateCatalog:
    """Snapshots of the master data relevant to one checkout."""

    products: Mapping[Any, ProductSnapshot] = field(default_factory=dict)
    batches: Mapping[Any, BatchSnapshot] = field(default_factory=dict)
    hsn_master: Mapping[str, HsnMasterEntry] = field(default_factory=dict)

    @classmethod
    def from_snapshots(
        cls,
        products: list[ProductSnapshot] | None = None,
        batches: list[BatchSnapshot] | None = None,
        hsn_entries: list[HsnMasterEntry] | None = None,
    ) -> RateCatalog:
        return cls(
            products={p.id: p for p in products or []},
            batches={b.id: b for b in batches or []},
            hsn_master={h.hsn_code: h for h in hsn_entries or []},
        )

    def batch_for(self, line: LineItemInput) -> BatchSnapshot | None:
        if line.batch_id is None:
            return None
        return self.batches.get(line.batch_id)

    def product_for(self, line: LineItemInput) -> ProductSnapshot | None:
        if line.product_id is not None:
            return self.products.get(line.product_id)
        batch = self.batch_for(line)
        if batch is not None and batch.product_id is not None:
            return self.products.get(batch.product_id)
        return None


# ---------------------------------------------------------------------------
# Line input / output
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class LineItemInput:
    unit_price_paise: int
    quantity: int
    product_id: int | str | None = None
    batch_id: int | str | None = None
    hsn_code_override: str | None = None
    gst_rate_override: Decimal | None = None
    gst_type: GstType | None = None
    is_tax_exempt: bool = False
    tax_category: TaxCategory = TaxCategory.TAXABLE
    discount_paise: int | None = None
    discount_percent: Decimal | None = None


@dataclass(frozen=True)
class LineTaxResult:
    taxable_value_paise: Paise
    cgst_paise: Paise
    sgst_paise: Paise
    igst_paise: Paise
    total_gst_paise: Paise
    line_total_paise: Paise
    hsn_code: str | None
    gst_rate_percent: Decimal
    gst_type: GstType = GstType.EXCLUSIVE
    quantity: int = 1
    unit_price_paise: Paise = Paise(0)
    discount_paise: Paise = Paise(0)

    def to_dict(self) -> dict[str, Any]:
        return {
            "taxable_value_paise": int(self.taxable_value_paise),
            "cgst_paise": int(self.cgst_paise),
            "sgst_paise": int(self.sgst_paise),
            "igst_paise": int(self.igst_paise),
            "total_gst_paise": int(self.total_gst_paise),
            "line_total_paise": int(self.line_total_paise),
            "hsn_code": self.hsn_code,
            "gst_rate_percent": str(self.gst_rate_percent),
            "gst_type": self.gst_type.value,
            "quantity": self.quantity,
            "unit_price_paise": int(self.unit_price_paise),
            "discount_paise": int(self.discount_paise),
        }


@dataclass(frozen=True)
class InvoiceTotals:
    total_taxable_paise: Paise
    total_cgst_paise: Paise
    total_sgst_paise: Paise
    total_igst_paise: Paise
    total_gst_paise: Paise
    round_off_paise: Paise
    grand_total_paise: Paise

    @property
    def preliminary_total_paise(self) -> Paise:
        return self.total_taxable_paise + self.total_gst_paise

    def to_dict(self) -> dict[str, int]:
        return {
            "total_taxable_paise": int(self.total_taxable_paise),
            "total_cgst_paise": int(self.total_cgst_paise),
            "total_sgst_paise": int(self.total_sgst_paise),
            "total_igst_paise": int(self.total_igst_paise),
            "total_gst_paise": int(self.total_gst_paise),
            "round_off_paise": int(self.round_off_paise),
            "grand_total_paise": int(self.grand_total_paise),
        }


# ---------------------------------------------------------------------------
# Rate resolution output
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class RateResolutionFallback:
    """Non-fatal notice: no batch/product/HSN rate was found for a line."""

    hsn_code: str | None
    applied_rate_percent: Decimal
    reason: str  # "HSN_MISSING" | "HSN_NOT_IN_MASTER"
    suggested_rate_percent: Decimal | None = None
    line_index: int | None = None

    @property
    def message(self) -> str:
        rate = f"{self.applied_rate_percent.normalize():f}"
        if self.reason == "HSN_MISSING":
            return f"HSN missing, defaulted to {rate}% GST"
        return f"HSN {self.hsn_code} not in HSN master, defaulted to {rate}% GST"

    def to_dict(self) -> dict[str, Any]:
        return {
            "hsn_code": self.hsn_code,
            "applied_rate_percent": str(self.applied_rate_percent),
            "reason": self.reason,
            "suggested_rate_percent": (
                str(self.suggested_rate_percent) if self.suggested_rate_percent is not None else None
            ),
            "line_index": self.line_index,
            "message": self.message,
        }


@dataclass(frozen=True)
class RateResolution:
    tax_rate: TaxRate
    source: RateSource
    warnings: tuple[RateResolutionFallback, ...] = ()
