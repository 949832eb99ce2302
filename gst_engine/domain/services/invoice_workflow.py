# gst_engine/domain/services/invoice_workflow.py
"""
Invoice status lifecycle:
  DRAFT → ISSUED → CANCELLED

Totals and line items may be recomputed freely while DRAFT. Once ISSUED the
per-line tax figures are frozen; corrections go through credit notes.
"""

from __future__ import annotations

from gst_engine.domain.errors import InvalidStateError
from gst_engine.domain.models.documents import InvoiceStatus


# ---------------------------------------------------------------------------
# Valid state transitions
# ---------------------------------------------------------------------------

VALID_TRANSITIONS: dict[InvoiceStatus, list[InvoiceStatus]] = {
    InvoiceStatus.DRAFT: [InvoiceStatus.ISSUED, InvoiceStatus.CANCELLED],
    InvoiceStatus.ISSUED: [InvoiceStatus.CANCELLED],
    InvoiceStatus.CANCELLED: [],  # terminal
}


def validate_invoice_transition(current_status: InvoiceStatus | str, new_status: InvoiceStatus | str) -> None:
    """Raise InvalidStateError if the transition is not allowed."""
    current, new = InvoiceStatus(current_status), InvoiceStatus(new_status)
    allowed = VALID_TRANSITIONS.get(current, [])
    if new not in allowed:
        raise InvalidStateError(
            f"Cannot transition invoice from '{current.value}' to '{new.value}'. "
            f"Allowed: {[s.value for s in allowed]}"
        )


def ensure_line_items_mutable(status: InvoiceStatus | str) -> None:
    """Line items (and therefore totals) can only change on a DRAFT invoice."""
    status = InvoiceStatus(status)
    if status != InvoiceStatus.DRAFT:
        raise InvalidStateError(
            f"Line items of a {status.value} invoice are frozen; raise a credit note instead"
        )


def ensure_creditable(status: InvoiceStatus | str) -> None:
    """Credit notes can only be raised against an ISSUED invoice."""
    status = InvoiceStatus(status)
    if status == InvoiceStatus.CANCELLED:
        raise InvalidStateError("Cannot create credit note for cancelled invoice")
    if status != InvoiceStatus.ISSUED:
        raise InvalidStateError(f"Cannot create credit note for a {status.value} invoice")
