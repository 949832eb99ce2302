import uuid

from sqlalchemy.ext.asyncio import AsyncSession

from gst_engine.domain.models.documents import CreditNote as CreditNoteDoc
from gst_engine.infrastructure.db.models import CreditNote, CreditNoteLineItem


class CreditNoteRepository:
    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def add(self, note: CreditNoteDoc) -> CreditNote:
        """Persist a numbered credit note with its lines."""
        if not note.credit_note_number or note.credit_note_date is None:
            raise ValueError("Credit note must be numbered before it is stored")

        row = CreditNote(
            id=uuid.uuid4(),
            credit_note_number=note.credit_note_number,
            credit_note_date=note.credit_note_date,
            invoice_id=note.invoice_id,
            seller_gstin=note.seller_gstin,
            supply_type=note.supply_type.value,
            place_of_supply_state_code=note.place_of_supply_state_code,
            status=note.status.value,
            reason=note.reason,
            remarks=note.remarks,
            total_credit_paise=int(note.total_credit_paise),
            **note.totals.to_dict(),
        )
        self.db.add(row)

        for line in note.lines:
            self.db.add(
                CreditNoteLineItem(
                    id=uuid.uuid4(),
                    credit_note_id=row.id,
                    original_line_item_id=line.original_line_item_id,
                    returned_quantity=line.returned_quantity,
                    original_quantity=line.original_quantity,
                    reason_code=line.reason_code.value,
                    remarks=line.remarks,
                    hsn_code=line.hsn_code,
                    gst_rate_percent=line.gst_rate_percent,
                    gst_type=line.gst_type.value,
                    unit_price_paise=int(line.unit_price_paise),
                    taxable_value_paise=int(line.taxable_value_paise),
                    cgst_paise=int(line.cgst_paise),
                    sgst_paise=int(line.sgst_paise),
                    igst_paise=int(line.igst_paise),
                    total_gst_paise=int(line.total_gst_paise),
                    line_total_paise=int(line.line_total_paise),
                )
            )

        await self.db.flush()
        return row

