# gst_engine/api/v1/schemas/gst.py
"""Request schemas for GST computation and credit-note endpoints."""

from __future__ import annotations

import uuid
from datetime import date
from decimal import Decimal

from pydantic import BaseModel, Field

from gst_engine.domain.models import (
    BatchSnapshot,
    GstType,
    HsnMasterEntry,
    LineItemInput,
    PlaceOfSupplyPolicy,
    ProductSnapshot,
    RateCatalog,
    ReturnReason,
    ReturnRequestLine,
    TaxCategory,
)
from gst_engine.domain.services.supply_classifier import state_code_from_gstin


class _PartyStates(BaseModel):
    """Seller/buyer state, given directly or derived from a GSTIN."""

    seller_state_code: str | None = Field(default=None, description="2-digit store state code")
    seller_gstin: str | None = Field(default=None, description="Store GSTIN (state code is taken from it if not given)")
    buyer_state_code: str | None = Field(default=None, description="2-digit buyer state code; omit for walk-in B2C")
    buyer_gstin: str | None = None
    place_of_supply_policy: PlaceOfSupplyPolicy | None = None

    def seller_state(self) -> str | None:
        return self.seller_state_code or state_code_from_gstin(self.seller_gstin)

    def buyer_state(self) -> str | None:
        return self.buyer_state_code or state_code_from_gstin(self.buyer_gstin)


# ---------------------------------------------------------------------------
# Supply type
# ---------------------------------------------------------------------------

class SupplyTypeRequest(_PartyStates):
    pass


# ---------------------------------------------------------------------------
# Invoice computation
# ---------------------------------------------------------------------------

class LineItemSchema(BaseModel):
    unit_price_paise: int = Field(description="Unit price in paise")
    quantity: int
    product_id: str | None = None
    batch_id: str | None = None
    hsn_code_override: str | None = None
    gst_rate_override: Decimal | None = None
    gst_type: GstType | None = None
    is_tax_exempt: bool = False
    tax_category: TaxCategory = TaxCategory.TAXABLE
    discount_paise: int | None = None
    discount_percent: Decimal | None = None

    def to_domain(self) -> LineItemInput:
        return LineItemInput(**self.model_dump())


class ProductSnapshotSchema(BaseModel):
    id: str
    hsn_code: str | None = None
    gst_rate: Decimal | None = None
    gst_type: GstType | None = None


class BatchSnapshotSchema(BaseModel):
    id: str
    product_id: str | None = None
    sale_gst_rate_override: Decimal | None = None


class HsnMasterEntrySchema(BaseModel):
    hsn_code: str
    default_gst_rate: Decimal
    gst_type: GstType = GstType.EXCLUSIVE


class InvoiceComputeRequest(_PartyStates):
    """
    Cart lines plus the master-data snapshots needed to resolve their rates.

    Product, batch and HSN master rows are read by the caller; nothing is
    looked up server-side.
    """

    line_items: list[LineItemSchema] = Field(default_factory=list)
    products: list[ProductSnapshotSchema] = Field(default_factory=list)
    batches: list[BatchSnapshotSchema] = Field(default_factory=list)
    hsn_master: list[HsnMasterEntrySchema] = Field(default_factory=list)

    def to_items(self) -> list[LineItemInput]:
        return [item.to_domain() for item in self.line_items]

    def to_catalog(self) -> RateCatalog:
        return RateCatalog.from_snapshots(
            products=[ProductSnapshot(**p.model_dump()) for p in self.products],
            batches=[BatchSnapshot(**b.model_dump()) for b in self.batches],
            hsn_entries=[HsnMasterEntry(**h.model_dump()) for h in self.hsn_master],
        )


# ---------------------------------------------------------------------------
# Credit notes
# ---------------------------------------------------------------------------

class ReturnLineSchema(BaseModel):
    original_line_item_id: uuid.UUID
    return_quantity: int
    reason_code: ReturnReason = ReturnReason.CUSTOMER_REQUEST
    remarks: str | None = None

    def to_domain(self) -> ReturnRequestLine:
        return ReturnRequestLine(**self.model_dump())


class CreditNoteRequest(BaseModel):
    invoice_id: uuid.UUID
    returns: list[ReturnLineSchema] = Field(default_factory=list)
    reason: str | None = None
    remarks: str | None = None
    credit_note_date: date | None = Field(default=None, description="Defaults to today")
