# gst_engine/domain/services/credit_note_engine.py
"""
Credit notes for returns against an issued invoice.

Tax is reversed from the per-line figures frozen on the original invoice,
never re-resolved from current master data. For each returned line:

    credited(F) = round(F × (R + q) / Q) − round(F × R / Q)

where F is the frozen field (taxable, CGST, SGST, IGST, line total), Q the
original quantity, R the quantity already credited by earlier notes and q
the quantity returned now. On a first return this is round(F × q / Q); over
any sequence of partial returns the credited amounts add up to F exactly.
"""

from __future__ import annotations

import logging
from datetime import date
from decimal import Decimal, localcontext
from typing import Sequence

from gst_engine.config.settings import settings
from gst_engine.domain.errors import ValidationError
from gst_engine.domain.models.documents import (
    CreditNote,
    CreditNoteLine,
    IssuedInvoice,
    IssuedLineItem,
    ReturnRequestLine,
)
from gst_engine.domain.models.money import Paise, round_half_up
from gst_engine.domain.services.document_numbering import NumberSequence, allocate_credit_note_number
from gst_engine.domain.services.invoice_aggregator import aggregate_totals
from gst_engine.domain.services.invoice_workflow import ensure_creditable

logger = logging.getLogger("credit_note_engine")

_PRECISION = 50


def _share(frozen: Paise, numerator: int, denominator: int) -> Paise:
    with localcontext() as ctx:
        ctx.prec = _PRECISION
        return round_half_up(Decimal(int(frozen)) * numerator / denominator)


def prorate(frozen: Paise, already_returned: int, returning: int, original_quantity: int) -> Paise:
    """Portion of ``frozen`` attributable to ``returning`` units out of ``original_quantity``."""
    upto = _share(frozen, already_returned + returning, original_quantity)
    before = _share(frozen, already_returned, original_quantity)
    return upto - before


def _validate_returns(
    invoice: IssuedInvoice,
    returns: Sequence[ReturnRequestLine],
) -> list[tuple[IssuedLineItem, ReturnRequestLine]]:
    """
    Check every return line before anything is computed.

    Each invoice line may appear at most once per request, so every credit
    line keeps its own reason code and remarks.
    """
    ensure_creditable(invoice.status)
    if not returns:
        raise ValidationError("No items to return", field="returns")

    checked: list[tuple[IssuedLineItem, ReturnRequestLine]] = []
    seen: set = set()
    for ret in returns:
        item = invoice.line_item(ret.original_line_item_id)
        if item is None:
            raise ValidationError(
                f"Line item {ret.original_line_item_id} not found in invoice {invoice.id}",
                field="original_line_item_id",
            )
        if item.id in seen:
            raise ValidationError(
                f"Line item {item.id} appears more than once in the return; "
                f"send one entry with the combined quantity",
                field="original_line_item_id",
            )
        seen.add(item.id)

        qty = ret.return_quantity
        if isinstance(qty, (bool, float)) or not isinstance(qty, int) or qty <= 0:
            raise ValidationError(
                f"Return quantity must be a positive whole number, got {qty!r}",
                field="return_quantity",
            )
        if item.returned_quantity + qty > item.quantity:
            raise ValidationError(
                f"Return quantity ({qty}) exceeds available quantity "
                f"({item.returnable_quantity}) for line item {item.id}",
                field="return_quantity",
            )
        checked.append((item, ret))
    return checked


def build_credit_line(item: IssuedLineItem, request: ReturnRequestLine) -> CreditNoteLine:
    """
    Reverse ``request.return_quantity`` units of ``item``.

    The first return of a line credits round(F × q / Q) per field. Later
    partial returns credit the cumulative difference instead, so they can
    differ by a paisa from a plain ratio (F=3, Q=2 credits 2 then 1, not
    2 then 2) while the credits for a line never exceed or fall short of F.
    """
    frozen = item.result
    quantity = request.return_quantity
    already, original = item.returned_quantity, item.quantity

    cgst = prorate(frozen.cgst_paise, already, quantity, original)
    sgst = prorate(frozen.sgst_paise, already, quantity, original)
    igst = prorate(frozen.igst_paise, already, quantity, original)

    return CreditNoteLine(
        original_line_item_id=item.id,
        returned_quantity=quantity,
        original_quantity=original,
        reason_code=request.reason_code,
        taxable_value_paise=prorate(frozen.taxable_value_paise, already, quantity, original),
        cgst_paise=cgst,
        sgst_paise=sgst,
        igst_paise=igst,
        total_gst_paise=cgst + sgst + igst,
        line_total_paise=prorate(frozen.line_total_paise, already, quantity, original),
        hsn_code=frozen.hsn_code,
        gst_rate_percent=frozen.gst_rate_percent,
        gst_type=frozen.gst_type,
        unit_price_paise=frozen.unit_price_paise,
        remarks=request.remarks,
        product_name=item.product_name,
    )


def compute_credit_note(
    invoice: IssuedInvoice,
    returns: Sequence[ReturnRequestLine],
    reason: str | None = None,
    remarks: str | None = None,
) -> CreditNote:
    """Validate the return and build an unnumbered credit note."""
    checked = _validate_returns(invoice, returns)

    lines = tuple(build_credit_line(item, request) for item, request in checked)
    totals = aggregate_totals(
        lines,
        invoice.supply_type,
        apply_round_off=settings.CREDIT_NOTE_APPLY_ROUND_OFF,
    )

    return CreditNote(
        invoice_id=invoice.id,
        seller_gstin=invoice.seller_gstin,
        supply_type=invoice.supply_type,
        place_of_supply_state_code=invoice.place_of_supply_state_code,
        lines=lines,
        totals=totals,
        reason=reason,
        remarks=remarks,
        metadata={"original_invoice_number": invoice.invoice_number},
    )


def issue_credit_note(
    invoice: IssuedInvoice,
    returns: Sequence[ReturnRequestLine],
    sequence: NumberSequence,
    issued_on: date | None = None,
    reason: str | None = None,
    remarks: str | None = None,
) -> CreditNote:
    """Compute the credit note, then take the next number for its seller and month."""
    note = compute_credit_note(invoice, returns, reason=reason, remarks=remarks)
    issued_on = issued_on or date.today()
    number = allocate_credit_note_number(sequence, invoice.seller_gstin, issued_on)

    logger.info(
        "Credit note %s issued against invoice %s: %d line(s), credit %s paise",
        number, invoice.id, len(note.lines), int(note.total_credit_paise),
    )
    return note.with_number(number, issued_on)
