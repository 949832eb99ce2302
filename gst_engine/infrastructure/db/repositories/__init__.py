from .credit_note_repository import CreditNoteRepository
from .document_sequence_repository import DocumentSequenceRepository
from .invoice_repository import InvoiceRepository

__all__ = [
    "CreditNoteRepository",
    "DocumentSequenceRepository",
    "InvoiceRepository",
]
