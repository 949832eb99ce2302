# gst_engine/domain/models/documents.py
"""
Issued invoice snapshots and credit notes.

An ``IssuedInvoice`` carries the frozen per-line tax figures exactly as they
were charged. Credit notes are derived from those figures only.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Any

from gst_engine.domain.models.money import Paise
from gst_engine.domain.models.tax import GstType, InvoiceTotals, LineTaxResult, SupplyType


class InvoiceStatus(str, Enum):
    DRAFT = "DRAFT"
    ISSUED = "ISSUED"
    CANCELLED = "CANCELLED"


class CreditNoteStatus(str, Enum):
    ISSUED = "ISSUED"


class ReturnReason(str, Enum):
    DAMAGED = "DAMAGED"
    EXPIRED = "EXPIRED"
    WRONG_ITEM = "WRONG_ITEM"
    CUSTOMER_REQUEST = "CUSTOMER_REQUEST"
    OTHER = "OTHER"


@dataclass(frozen=True)
class IssuedLineItem:
    id: int | str
    result: LineTaxResult
    returned_quantity: int = 0  # already credited by earlier credit notes
    product_name: str | None = None

    @property
    def quantity(self) -> int:
        return self.result.quantity

    @property
    def returnable_quantity(self) -> int:
        return self.quantity - self.returned_quantity


@dataclass(frozen=True)
class IssuedInvoice:
    id: int | str
    status: InvoiceStatus
    seller_gstin: str
    supply_type: SupplyType
    place_of_supply_state_code: str | None
    line_items: tuple[IssuedLineItem, ...] = ()
    invoice_number: str | None = None
    invoice_date: date | None = None

    def line_item(self, line_item_id) -> IssuedLineItem | None:
        for item in self.line_items:
            if item.id == line_item_id:
                return item
        return None


@dataclass(frozen=True)
class ReturnRequestLine:
    original_line_item_id: int | str
    return_quantity: int
    reason_code: ReturnReason = ReturnReason.CUSTOMER_REQUEST
    remarks: str | None = None


@dataclass(frozen=True)
class CreditNoteLine:
    original_line_item_id: int | str
    returned_quantity: int
    original_quantity: int
    reason_code: ReturnReason
    taxable_value_paise: Paise
    cgst_paise: Paise
    sgst_paise: Paise
    igst_paise: Paise
    total_gst_paise: Paise
    line_total_paise: Paise
    hsn_code: str | None
    gst_rate_percent: Decimal
    gst_type: GstType = GstType.EXCLUSIVE
    unit_price_paise: Paise = Paise(0)
    remarks: str | None = None
    product_name: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "original_line_item_id": self.original_line_item_id,
            "returned_quantity": self.returned_quantity,
            "original_quantity": self.original_quantity,
            "reason_code": self.reason_code.value,
            "remarks": self.remarks,
            "product_name": self.product_name,
            "hsn_code": self.hsn_code,
            "gst_rate_percent": str(self.gst_rate_percent),
            "gst_type": self.gst_type.value,
            "unit_price_paise": int(self.unit_price_paise),
            "taxable_value_paise": int(self.taxable_value_paise),
            "cgst_paise": int(self.cgst_paise),
            "sgst_paise": int(self.sgst_paise),
            "igst_paise": int(self.igst_paise),
            "total_gst_paise": int(self.total_gst_paise),
            "line_total_paise": int(self.line_total_paise),
        }


@dataclass(frozen=True)
class CreditNote:
    invoice_id: int | str
    seller_gstin: str
    supply_type: SupplyType
    place_of_supply_state_code: str | None
    lines: tuple[CreditNoteLine, ...]
    totals: InvoiceTotals
    reason: str | None = None
    remarks: str | None = None
    status: CreditNoteStatus = CreditNoteStatus.ISSUED
    credit_note_number: str | None = None
    credit_note_date: date | None = None
    metadata: dict[str, Any] = field(default_factory=dict, compare=False)

    @property
    def total_credit_paise(self) -> Paise:
        """
        Amount refunded to the buyer. Always the credit note's grand total
        (reversed taxable value plus reversed GST, after any round-off), so
        there is a single credit figure even when INCLUSIVE line totals
        differ from taxable + GST by a paisa.
        """
        return self.totals.grand_total_paise

    def with_number(self, number: str, issued_on: date) -> CreditNote:
        return replace(self, credit_note_number=number, credit_note_date=issued_on)

    def to_dict(self) -> dict[str, Any]:
        return {
            "invoice_id": self.invoice_id,
            "credit_note_number": self.credit_note_number,
            "credit_note_date": self.credit_note_date.isoformat() if self.credit_note_date else None,
            "status": self.status.value,
            "seller_gstin": self.seller_gstin,
            "supply_type": self.supply_type.value,
            "place_of_supply_state_code": self.place_of_supply_state_code,
            "reason": self.reason,
            "remarks": self.remarks,
            "lines": [line.to_dict() for line in self.lines],
            "totals": self.totals.to_dict(),
            "total_credit_paise": int(self.total_credit_paise),
        }
