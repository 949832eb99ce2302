# gst_engine/domain/services/billing_service.py
"""
Transactional issuance of invoices and credit notes.

Each operation runs validate → compute → persist → assign number inside a
single database transaction, so a failure at any step leaves no partial
document and consumes no number.

Credit notes take their number before the note row is written, because the
number column is non-null: validate → compute → allocate number → insert
note with lines and totals → record returned quantities. The allocation is
rolled back with everything else if a later step fails.
"""

from __future__ import annotations

import logging
import uuid
from datetime import date
from typing import Sequence

from sqlalchemy.ext.asyncio import AsyncSession

from gst_engine.domain.errors import NotFoundError
from gst_engine.domain.models.documents import CreditNote, InvoiceStatus, ReturnRequestLine
from gst_engine.domain.models.tax import LineItemInput, PlaceOfSupplyPolicy, RateCatalog
from gst_engine.domain.services.credit_note_engine import compute_credit_note
from gst_engine.domain.services.document_numbering import (
    SequenceScope,
    format_credit_note_number,
    format_invoice_number,
)
from gst_engine.domain.services.invoice_aggregator import InvoiceComputation, compute_invoice
from gst_engine.domain.services.invoice_workflow import validate_invoice_transition
from gst_engine.infrastructure.db.models import Invoice
from gst_engine.infrastructure.db.repositories import (
    CreditNoteRepository,
    DocumentSequenceRepository,
    InvoiceRepository,
)

logger = logging.getLogger("billing_service")


async def issue_invoice(
    db: AsyncSession,
    items: Sequence[LineItemInput],
    *,
    seller_gstin: str,
    seller_state_code: str,
    buyer_state_code: str | None = None,
    buyer_gstin: str | None = None,
    catalog: RateCatalog | None = None,
    policy: PlaceOfSupplyPolicy | str | None = None,
    product_names: Sequence[str | None] | None = None,
    issued_on: date | None = None,
) -> tuple[Invoice, InvoiceComputation]:
    """Compute, store and number a new invoice. Returns the row and the computation."""
    computation = compute_invoice(
        items,
        seller_state_code,
        buyer_state_code,
        catalog=catalog,
        policy=policy,
    )
    issued_on = issued_on or date.today()

    async with db.begin():
        invoice = await InvoiceRepository(db).add_draft(
            computation,
            items,
            seller_gstin=seller_gstin,
            seller_state_code=seller_state_code,
            buyer_state_code=buyer_state_code,
            buyer_gstin=buyer_gstin,
            product_names=product_names,
        )

        scope = SequenceScope.for_invoice(seller_gstin, issued_on)
        value = await DocumentSequenceRepository(db).next_value(scope)

        validate_invoice_transition(invoice.status, InvoiceStatus.ISSUED)
        invoice.invoice_number = format_invoice_number(scope.period, value)
        invoice.invoice_date = issued_on
        invoice.status = InvoiceStatus.ISSUED.value

    logger.info(
        "Invoice %s issued: %d line(s), grand total %s paise, %d rate warning(s)",
        invoice.invoice_number, len(computation.lines),
        int(computation.totals.grand_total_paise), len(computation.warnings),
    )
    return invoice, computation


async def issue_credit_note(
    db: AsyncSession,
    invoice_id: uuid.UUID,
    returns: Sequence[ReturnRequestLine],
    *,
    reason: str | None = None,
    remarks: str | None = None,
    issued_on: date | None = None,
) -> CreditNote:
    """
    Raise a numbered credit note against a stored invoice.

    The invoice and its lines are locked for the duration of the transaction,
    so concurrent returns see each other's returned quantities.
    """
    issued_on = issued_on or date.today()

    async with db.begin():
        invoices = InvoiceRepository(db)
        invoice = await invoices.load_issued(invoice_id, for_update=True)
        if invoice is None:
            raise NotFoundError(f"Invoice {invoice_id} not found", field="invoice_id")

        note = compute_credit_note(invoice, returns, reason=reason, remarks=remarks)

        scope = SequenceScope.for_credit_note(invoice.seller_gstin, issued_on)
        value = await DocumentSequenceRepository(db).next_value(scope)
        note = note.with_number(format_credit_note_number(scope.period, value), issued_on)

        await CreditNoteRepository(db).add(note)
        await invoices.add_returned_quantities(note.lines)

    logger.info(
        "Credit note %s issued against invoice %s: credit %s paise",
        note.credit_note_number, invoice_id, int(note.total_credit_paise),
    )
    return note
