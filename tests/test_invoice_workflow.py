"""Tests for invoice status transitions."""

import pytest

from gst_engine.domain.errors import InvalidStateError
from gst_engine.domain.models import InvoiceStatus
from gst_engine.domain.services.invoice_workflow import (
    ensure_creditable,
    ensure_line_items_mutable,
    validate_invoice_transition,
)


class TestTransitions:
    def test_draft_to_issued(self):
        validate_invoice_transition("DRAFT", "ISSUED")

    def test_issued_to_cancelled(self):
        validate_invoice_transition(InvoiceStatus.ISSUED, InvoiceStatus.CANCELLED)

    def test_cancelled_is_terminal(self):
        with pytest.raises(InvalidStateError):
            validate_invoice_transition("CANCELLED", "ISSUED")

    def test_issued_cannot_go_back_to_draft(self):
        with pytest.raises(InvalidStateError):
            validate_invoice_transition("ISSUED", "DRAFT")


def test_issued_lines_are_frozen():
    ensure_line_items_mutable("DRAFT")
    with pytest.raises(InvalidStateError):
        ensure_line_items_mutable("ISSUED")


def test_only_issued_invoices_are_creditable():
    ensure_creditable("ISSUED")
    with pytest.raises(InvalidStateError, match="cancelled"):
        ensure_creditable("CANCELLED")
    with pytest.raises(InvalidStateError):
        ensure_creditable("DRAFT")
