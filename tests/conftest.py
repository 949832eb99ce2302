"""Shared test fixtures for the GST engine test suite."""

import asyncio
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock

import pytest

from gst_engine.domain.models import (
    BatchSnapshot,
    GstType,
    HsnMasterEntry,
    InvoiceStatus,
    IssuedInvoice,
    IssuedLineItem,
    Paise,
    ProductSnapshot,
    RateCatalog,
    SupplyType,
    TaxRate,
)
from gst_engine.domain.services.line_tax_calculator import calculate_line_tax

SELLER_GSTIN = "36AABCU9603R1ZM"


@pytest.fixture(scope="session")
def event_loop():
    """Use a single event loop for the entire test session."""
    loop = asyncio.new_event_loop()
    yield loop
    loop.close()


@pytest.fixture
def catalog() -> RateCatalog:
    """A small pharmacy master: one product per resolution path."""
    return RateCatalog.from_snapshots(
        products=[
            ProductSnapshot(id="paracetamol", hsn_code="3004", gst_rate=Decimal("12")),
            ProductSnapshot(id="toothpaste", hsn_code="3306", gst_rate=None),
            ProductSnapshot(id="vaccine", hsn_code="3002", gst_rate=Decimal("5"),
                            gst_type=GstType.INCLUSIVE),
            ProductSnapshot(id="unmapped", hsn_code="99999999", gst_rate=None),
            ProductSnapshot(id="no-hsn", hsn_code=None, gst_rate=None),
        ],
        batches=[
            BatchSnapshot(id="B-PCM-01", product_id="paracetamol", sale_gst_rate_override=Decimal("5")),
            BatchSnapshot(id="B-PCM-02", product_id="paracetamol", sale_gst_rate_override=None),
        ],
        hsn_entries=[
            HsnMasterEntry(hsn_code="3306", default_gst_rate=Decimal("18")),
        ],
    )


def make_issued_invoice(
    quantities=(2,),
    unit_price=3000,
    rate="12",
    supply_type=SupplyType.INTRA_STATE,
    status=InvoiceStatus.ISSUED,
    returned=None,
    gst_type=GstType.EXCLUSIVE,
) -> IssuedInvoice:
    """Issued invoice whose lines are Scenario-A style (3000 paise @ 12% exclusive)."""
    returned = returned or {}
    items = []
    for index, qty in enumerate(quantities, start=1):
        result = calculate_line_tax(
            Paise(unit_price), qty, TaxRate("3004", Decimal(rate), gst_type), supply_type
        )
        items.append(IssuedLineItem(id=f"L{index}", result=result, returned_quantity=returned.get(f"L{index}", 0)))
    return IssuedInvoice(
        id="INV-1",
        status=status,
        seller_gstin=SELLER_GSTIN,
        supply_type=supply_type,
        place_of_supply_state_code="36",
        line_items=tuple(items),
        invoice_number="PP/24-25/0001",
    )


@pytest.fixture
def issued_invoice() -> IssuedInvoice:
    return make_issued_invoice()


@pytest.fixture
def invoice_factory():
    return make_issued_invoice


def _async_context():
    ctx = MagicMock()
    ctx.__aenter__ = AsyncMock(return_value=ctx)
    ctx.__aexit__ = AsyncMock(return_value=False)
    return ctx


@pytest.fixture
def mock_db():
    """AsyncSession stand-in: awaitable execute/flush, sync add, async-context begin()."""
    db = AsyncMock()
    db.add = MagicMock()
    db.flush = AsyncMock()
    db.execute = AsyncMock(return_value=MagicMock())
    db.begin = MagicMock(side_effect=lambda: _async_context())
    db.begin_nested = MagicMock(side_effect=lambda: _async_context())
    return db
