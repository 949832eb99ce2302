# gst_engine/api/v1/routes/credit_notes.py
"""
Credit notes for returns against issued invoices.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from gst_engine.api.v1.envelope import ok
from gst_engine.api.v1.schemas.gst import CreditNoteRequest
from gst_engine.core.db import get_db
from gst_engine.domain.services import billing_service

logger = logging.getLogger("api.v1.credit_notes")

router = APIRouter(prefix="/credit-notes", tags=["Credit Notes"])


@router.post("", response_model=dict, status_code=201)
async def create_credit_note(
    body: CreditNoteRequest,
    db: AsyncSession = Depends(get_db),
):
    """
    Issue a numbered credit note for returned quantities of an invoice.

    Tax is reversed from the invoice's stored per-line figures. The invoice
    must be ISSUED and each line can be returned at most up to its original
    quantity across all credit notes.
    """
    note = await billing_service.issue_credit_note(
        db,
        body.invoice_id,
        [line.to_domain() for line in body.returns],
        reason=body.reason,
        remarks=body.remarks,
        issued_on=body.credit_note_date,
    )
    return ok(note.to_dict(), message=f"Credit note {note.credit_note_number} issued")
