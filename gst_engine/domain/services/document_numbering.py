# gst_engine/domain/services/document_numbering.py
"""
Invoice and credit-note numbering.

Credit notes:  CN/{YYYY}-{MM}/{0001}   sequence per (seller GSTIN, month)
Invoices:      PP/{FY}/{0001}          sequence per (seller GSTIN, financial year)

Numbers come from a ``NumberSequence`` that must hand out each value exactly
once, even under concurrent issuance. ``InMemoryNumberSequence`` does this
with a lock for single-process use. Database-backed issuance does not go
through this protocol: ``billing_service`` awaits the async
``DocumentSequenceRepository.next_value`` (atomic increment, no "find
last + 1") and formats the number with the helpers below.
"""

from __future__ import annotations

import re
import threading
from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Protocol

from gst_engine.config.settings import settings

CREDIT_NOTE_NUMBER_REGEX = re.compile(r"^([A-Z]+)/(\d{4}-\d{2})/(\d+)$")
INVOICE_NUMBER_REGEX = re.compile(r"^([A-Z]+)/(\d{2}-\d{2})/(\d+)$")


class DocumentType(str, Enum):
    INVOICE = "INVOICE"
    CREDIT_NOTE = "CREDIT_NOTE"


def month_period(on: date) -> str:
    """``date(2025, 1, 15)`` → ``"2025-01"``."""
    return f"{on.year:04d}-{on.month:02d}"


def financial_year(on: date) -> str:
    """Indian FY (April–March): Jan 2025 → ``"24-25"``, Apr 2025 → ``"25-26"``."""
    fy_start = on.year if on.month >= 4 else on.year - 1
    return f"{fy_start % 100:02d}-{(fy_start + 1) % 100:02d}"


@dataclass(frozen=True)
class SequenceScope:
    seller_gstin: str
    document_type: DocumentType
    period: str

    @classmethod
    def for_credit_note(cls, seller_gstin: str, on: date) -> SequenceScope:
        return cls(seller_gstin.strip().upper(), DocumentType.CREDIT_NOTE, month_period(on))

    @classmethod
    def for_invoice(cls, seller_gstin: str, on: date) -> SequenceScope:
        return cls(seller_gstin.strip().upper(), DocumentType.INVOICE, financial_year(on))


def _pad(sequence: int, width: int | None) -> str:
    if sequence < 1:
        raise ValueError(f"Document sequence must start at 1, got {sequence}")
    return str(sequence).zfill(width or settings.DOCUMENT_NUMBER_WIDTH)


def format_credit_note_number(period: str, sequence: int, prefix: str | None = None, width: int | None = None) -> str:
    return f"{prefix or settings.CREDIT_NOTE_PREFIX}/{period}/{_pad(sequence, width)}"


def format_invoice_number(fy: str, sequence: int, prefix: str | None = None, width: int | None = None) -> str:
    return f"{prefix or settings.INVOICE_PREFIX}/{fy}/{_pad(sequence, width)}"


@dataclass(frozen=True)
class ParsedDocumentNumber:
    prefix: str
    period: str
    sequence: int


def _parse(regex: re.Pattern, number: str | None) -> ParsedDocumentNumber | None:
    if not number:
        return None
    m = regex.match(number.strip())
    if not m:
        return None
    return ParsedDocumentNumber(prefix=m.group(1), period=m.group(2), sequence=int(m.group(3)))


def parse_credit_note_number(number: str | None) -> ParsedDocumentNumber | None:
    return _parse(CREDIT_NOTE_NUMBER_REGEX, number)


def parse_invoice_number(number: str | None) -> ParsedDocumentNumber | None:
    return _parse(INVOICE_NUMBER_REGEX, number)


# ---------------------------------------------------------------------------
# Sequences
# ---------------------------------------------------------------------------

class NumberSequence(Protocol):
    def next_value(self, scope: SequenceScope) -> int:
        ...


class InMemoryNumberSequence:
    """Thread-safe counter per scope. Read-and-increment happens under one lock."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._last: dict[SequenceScope, int] = {}

    def seed(self, scope: SequenceScope, last_value: int) -> None:
        """Start after ``last_value`` (e.g. when migrating existing numbers)."""
        with self._lock:
            self._last[scope] = max(self._last.get(scope, 0), last_value)

    def next_value(self, scope: SequenceScope) -> int:
        with self._lock:
            value = self._last.get(scope, 0) + 1
            self._last[scope] = value
            return value

    def current(self, scope: SequenceScope) -> int:
        with self._lock:
            return self._last.get(scope, 0)


def allocate_credit_note_number(sequence: NumberSequence, seller_gstin: str, on: date) -> str:
    scope = SequenceScope.for_credit_note(seller_gstin, on)
    return format_credit_note_number(scope.period, sequence.next_value(scope))


def allocate_invoice_number(sequence: NumberSequence, seller_gstin: str, on: date) -> str:
    scope = SequenceScope.for_invoice(seller_gstin, on)
    return format_invoice_number(scope.period, sequence.next_value(scope))
