# gst_engine/api/v1/routes/gst.py
"""
GST computation endpoints: supply classification and invoice tax preview.

Both are pure computations over the request body; nothing is persisted.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter

from gst_engine.api.v1.envelope import ok
from gst_engine.api.v1.schemas.gst import InvoiceComputeRequest, SupplyTypeRequest
from gst_engine.config.settings import settings
from gst_engine.domain.services.invoice_aggregator import compute_invoice
from gst_engine.domain.services.supply_classifier import determine_place_of_supply, state_name

logger = logging.getLogger("api.v1.gst")

router = APIRouter(prefix="/gst", tags=["GST"])


@router.post("/supply-type", response_model=dict)
async def classify_supply_type(body: SupplyTypeRequest):
    """Intra-state (CGST+SGST) or inter-state (IGST) for a seller/buyer pair."""
    place = determine_place_of_supply(
        body.seller_state(),
        body.buyer_state(),
        body.place_of_supply_policy or settings.DEFAULT_PLACE_OF_SUPPLY_POLICY,
    )
    return ok({
        "supply_type": place.supply_type.value,
        "place_of_supply_state_code": place.state_code,
        "place_of_supply_state_name": state_name(place.state_code),
    })


@router.post("/invoices/compute", response_model=dict)
async def compute_invoice_tax(body: InvoiceComputeRequest):
    """
    Compute per-line GST and invoice totals for a cart.

    Lines whose rate could not be resolved from batch, product or HSN master
    are computed at the fallback rate and listed under ``warnings``.
    """
    computation = compute_invoice(
        body.to_items(),
        body.seller_state(),
        body.buyer_state(),
        catalog=body.to_catalog(),
        policy=body.place_of_supply_policy,
    )
    message = None
    if computation.needs_compliance_review:
        message = f"{len(computation.warnings)} line(s) used a fallback GST rate; review HSN mapping"
    return ok(computation.to_dict(), message=message)
