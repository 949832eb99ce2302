from gst_engine.domain.models.documents import (
    CreditNote,
    CreditNoteLine,
    CreditNoteStatus,
    InvoiceStatus,
    IssuedInvoice,
    IssuedLineItem,
    ReturnReason,
    ReturnRequestLine,
)
from gst_engine.domain.models.money import Paise, nearest_rupee, round_half_up, round_off
from gst_engine.domain.models.tax import (
    BatchSnapshot,
    GstType,
    HsnMasterEntry,
    InvoiceTotals,
    LineItemInput,
    LineTaxResult,
    PlaceOfSupplyPolicy,
    ProductSnapshot,
    RateCatalog,
    RateResolution,
    RateResolutionFallback,
    RateSource,
    SellerGstin,
    SupplyType,
    TaxCategory,
    TaxRate,
)

__all__ = [
    "BatchSnapshot",
    "CreditNote",
    "CreditNoteLine",
    "CreditNoteStatus",
    "GstType",
    "HsnMasterEntry",
    "InvoiceStatus",
    "InvoiceTotals",
    "IssuedInvoice",
    "IssuedLineItem",
    "LineItemInput",
    "LineTaxResult",
    "Paise",
    "PlaceOfSupplyPolicy",
    "ProductSnapshot",
    "RateCatalog",
    "RateResolution",
    "RateResolutionFallback",
    "RateSource",
    "ReturnReason",
    "ReturnRequestLine",
    "SellerGstin",
    "SupplyType",
    "TaxCategory",
    "TaxRate",
    "nearest_rupee",
    "round_half_up",
    "round_off",
]
