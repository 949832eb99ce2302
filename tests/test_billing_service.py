"""Tests for transactional invoice and credit-note issuance."""

import uuid
from datetime import date
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from gst_engine.domain.errors import InvalidStateError, NotFoundError, ValidationError
from gst_engine.domain.models import InvoiceStatus, LineItemInput, ReturnRequestLine
from gst_engine.domain.services import billing_service

MODULE = "gst_engine.domain.services.billing_service"


def _repos(invoice_snapshot=None, next_value=1, draft=None):
    invoices = MagicMock()
    invoices.load_issued = AsyncMock(return_value=invoice_snapshot)
    invoices.add_draft = AsyncMock(return_value=draft)
    invoices.add_returned_quantities = AsyncMock()
    sequences = MagicMock()
    sequences.next_value = AsyncMock(return_value=next_value)
    credit_notes = MagicMock()
    credit_notes.add = AsyncMock()
    return invoices, sequences, credit_notes


def _patched(invoices, sequences, credit_notes):
    return (
        patch(f"{MODULE}.InvoiceRepository", return_value=invoices),
        patch(f"{MODULE}.DocumentSequenceRepository", return_value=sequences),
        patch(f"{MODULE}.CreditNoteRepository", return_value=credit_notes),
    )


class TestIssueInvoice:
    def test_numbers_and_issues_draft(self, event_loop, mock_db, catalog):
        draft = SimpleNamespace(status="DRAFT", invoice_number=None, invoice_date=None)
        invoices, sequences, credit_notes = _repos(next_value=12, draft=draft)
        p1, p2, p3 = _patched(invoices, sequences, credit_notes)
        items = [LineItemInput(unit_price_paise=3000, quantity=2, product_id="paracetamol")]

        with p1, p2, p3:
            invoice, computation = event_loop.run_until_complete(
                billing_service.issue_invoice(
                    mock_db, items, seller_gstin="36AABCU9603R1ZM", seller_state_code="36",
                    catalog=catalog, issued_on=date(2025, 1, 15),
                )
            )

        assert invoice.invoice_number == "PP/24-25/0012"
        assert invoice.status == "ISSUED"
        assert invoice.invoice_date == date(2025, 1, 15)
        assert computation.totals.grand_total_paise == 6700
        scope = sequences.next_value.call_args[0][0]
        assert scope.period == "24-25"
        mock_db.begin.assert_called_once()

    def test_invalid_cart_never_opens_transaction(self, event_loop, mock_db):
        invoices, sequences, credit_notes = _repos()
        p1, p2, p3 = _patched(invoices, sequences, credit_notes)
        with p1, p2, p3, pytest.raises(ValidationError):
            event_loop.run_until_complete(
                billing_service.issue_invoice(
                    mock_db, [LineItemInput(unit_price_paise=100, quantity=0)],
                    seller_gstin="36AABCU9603R1ZM", seller_state_code="36",
                )
            )
        mock_db.begin.assert_not_called()
        sequences.next_value.assert_not_called()


class TestIssueCreditNote:
    def test_issues_numbered_note_and_tracks_returns(self, event_loop, mock_db, issued_invoice):
        invoices, sequences, credit_notes = _repos(invoice_snapshot=issued_invoice, next_value=3)
        p1, p2, p3 = _patched(invoices, sequences, credit_notes)

        with p1, p2, p3:
            note = event_loop.run_until_complete(
                billing_service.issue_credit_note(
                    mock_db, uuid.uuid4(), [ReturnRequestLine("L1", 1)],
                    reason="Customer return", issued_on=date(2025, 1, 20),
                )
            )

        assert note.credit_note_number == "CN/2025-01/0003"
        assert note.total_credit_paise == 3360
        credit_notes.add.assert_awaited_once_with(note)
        invoices.add_returned_quantities.assert_awaited_once_with(note.lines)
        invoices.load_issued.assert_awaited_once()
        assert invoices.load_issued.call_args.kwargs["for_update"] is True

    def test_missing_invoice(self, event_loop, mock_db):
        invoices, sequences, credit_notes = _repos(invoice_snapshot=None)
        p1, p2, p3 = _patched(invoices, sequences, credit_notes)
        with p1, p2, p3, pytest.raises(NotFoundError):
            event_loop.run_until_complete(
                billing_service.issue_credit_note(mock_db, uuid.uuid4(), [ReturnRequestLine("L1", 1)])
            )

    def test_cancelled_invoice_consumes_no_number(self, event_loop, mock_db, invoice_factory):
        cancelled = invoice_factory(status=InvoiceStatus.CANCELLED)
        invoices, sequences, credit_notes = _repos(invoice_snapshot=cancelled)
        p1, p2, p3 = _patched(invoices, sequences, credit_notes)
        with p1, p2, p3, pytest.raises(InvalidStateError):
            event_loop.run_until_complete(
                billing_service.issue_credit_note(mock_db, uuid.uuid4(), [ReturnRequestLine("L1", 1)])
            )
        sequences.next_value.assert_not_called()
        credit_notes.add.assert_not_called()

    def test_credit_note_steps_run_in_documented_order(self, event_loop, mock_db, issued_invoice):
        invoices, sequences, credit_notes = _repos(invoice_snapshot=issued_invoice, next_value=1)
        calls = []
        sequences.next_value.side_effect = lambda scope: calls.append("allocate") or 1
        credit_notes.add.side_effect = lambda note: calls.append("insert note")
        invoices.add_returned_quantities.side_effect = lambda lines: calls.append("record returns")
        p1, p2, p3 = _patched(invoices, sequences, credit_notes)

        with p1, p2, p3:
            event_loop.run_until_complete(
                billing_service.issue_credit_note(
                    mock_db, uuid.uuid4(), [ReturnRequestLine("L1", 1)], issued_on=date(2025, 1, 20),
                )
            )

        assert calls == ["allocate", "insert note", "record returns"]
        mock_db.begin.assert_called_once()
