import uuid
from decimal import Decimal
from typing import Sequence

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from gst_engine.domain.models.documents import (
    CreditNoteLine,
    InvoiceStatus,
    IssuedInvoice,
    IssuedLineItem,
)
from gst_engine.domain.models.money import Paise
from gst_engine.domain.models.tax import GstType, LineItemInput, LineTaxResult, SupplyType
from gst_engine.domain.services.invoice_aggregator import InvoiceComputation
from gst_engine.infrastructure.db.models import Invoice, InvoiceLineItem


class InvoiceRepository:
    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    # ---------- small helpers ----------

    @staticmethod
    def _to_result(row: InvoiceLineItem) -> LineTaxResult:
        """Frozen tax figures of a stored line, exactly as charged."""
        return LineTaxResult(
            taxable_value_paise=Paise(row.taxable_value_paise),
            cgst_paise=Paise(row.cgst_paise),
            sgst_paise=Paise(row.sgst_paise),
            igst_paise=Paise(row.igst_paise),
            total_gst_paise=Paise(row.total_gst_paise),
            line_total_paise=Paise(row.line_total_paise),
            hsn_code=row.hsn_code,
            gst_rate_percent=Decimal(str(row.gst_rate_percent)),
            gst_type=GstType(row.gst_type),
            quantity=row.quantity,
            unit_price_paise=Paise(row.unit_price_paise),
            discount_paise=Paise(row.discount_paise or 0),
        )

    @classmethod
    def to_snapshot(cls, invoice: Invoice, lines: Sequence[InvoiceLineItem]) -> IssuedInvoice:
        return IssuedInvoice(
            id=invoice.id,
            status=InvoiceStatus(invoice.status),
            seller_gstin=invoice.seller_gstin,
            supply_type=SupplyType(invoice.supply_type),
            place_of_supply_state_code=invoice.place_of_supply_state_code,
            line_items=tuple(
                IssuedLineItem(
                    id=row.id,
                    result=cls._to_result(row),
                    returned_quantity=row.returned_quantity or 0,
                    product_name=row.product_name,
                )
                for row in lines
            ),
            invoice_number=invoice.invoice_number,
            invoice_date=invoice.invoice_date,
        )

    # ---------- main methods ----------

    async def get_by_id(self, invoice_id: uuid.UUID, *, for_update: bool = False) -> Invoice | None:
        stmt = select(Invoice).where(Invoice.id == invoice_id)
        if for_update:
            stmt = stmt.with_for_update()
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def list_line_items(self, invoice_id: uuid.UUID, *, for_update: bool = False) -> list[InvoiceLineItem]:
        stmt = (
            select(InvoiceLineItem)
            .where(InvoiceLineItem.invoice_id == invoice_id)
            .order_by(InvoiceLineItem.line_no.asc())
        )
        if for_update:
            stmt = stmt.with_for_update()
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def load_issued(self, invoice_id: uuid.UUID, *, for_update: bool = True) -> IssuedInvoice | None:
        """
        Load an invoice with its frozen line figures and already-returned
        quantities. Rows are locked by default so concurrent returns against
        the same invoice are serialised.
        """
        invoice = await self.get_by_id(invoice_id, for_update=for_update)
        if invoice is None:
            return None
        lines = await self.list_line_items(invoice_id, for_update=for_update)
        return self.to_snapshot(invoice, lines)

    async def add_draft(
        self,
        computation: InvoiceComputation,
        items: Sequence[LineItemInput],
        *,
        seller_gstin: str,
        seller_state_code: str,
        buyer_state_code: str | None = None,
        buyer_gstin: str | None = None,
        product_names: Sequence[str | None] | None = None,
    ) -> Invoice:
        """Persist a computed cart as a DRAFT invoice: lines first, then totals."""
        invoice = Invoice(
            id=uuid.uuid4(),
            status=InvoiceStatus.DRAFT.value,
            seller_gstin=seller_gstin,
            seller_state_code=seller_state_code,
            buyer_gstin=buyer_gstin,
            buyer_state_code=buyer_state_code,
            supply_type=computation.supply_type.value,
            place_of_supply_state_code=computation.place_of_supply_state_code,
        )
        self.db.add(invoice)

        names = list(product_names or [])
        for index, (item, result, source) in enumerate(
            zip(items, computation.lines, computation.rate_sources), start=1
        ):
            self.db.add(
                InvoiceLineItem(
                    id=uuid.uuid4(),
                    invoice_id=invoice.id,
                    line_no=index,
                    product_id=str(item.product_id) if item.product_id is not None else None,
                    batch_id=str(item.batch_id) if item.batch_id is not None else None,
                    product_name=names[index - 1] if index <= len(names) else None,
                    quantity=result.quantity,
                    returned_quantity=0,
                    unit_price_paise=int(result.unit_price_paise),
                    discount_paise=int(result.discount_paise),
                    hsn_code=result.hsn_code,
                    gst_rate_percent=result.gst_rate_percent,
                    gst_type=result.gst_type.value,
                    rate_source=source.value,
                    taxable_value_paise=int(result.taxable_value_paise),
                    cgst_paise=int(result.cgst_paise),
                    sgst_paise=int(result.sgst_paise),
                    igst_paise=int(result.igst_paise),
                    total_gst_paise=int(result.total_gst_paise),
                    line_total_paise=int(result.line_total_paise),
                )
            )

        for key, value in computation.totals.to_dict().items():
            setattr(invoice, key, value)
        invoice.rate_warnings = [w.to_dict() for w in computation.warnings] or None

        await self.db.flush()
        return invoice

    async def add_returned_quantities(self, lines: Sequence[CreditNoteLine]) -> None:
        """Bump ``returned_quantity`` on each original line by the credited amount."""
        for line in lines:
            await self.db.execute(
                update(InvoiceLineItem)
                .where(InvoiceLineItem.id == line.original_line_item_id)
                .values(returned_quantity=InvoiceLineItem.returned_quantity + line.returned_quantity)
            )
