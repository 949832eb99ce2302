import uuid
from sqlalchemy import (
    BigInteger,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
    text,
)
from sqlalchemy.dialects.postgresql import JSONB, UUID
from sqlalchemy.orm import relationship
from gst_engine.infrastructure.db.base import Base

# All money columns hold integer paise.


class Invoice(Base):
    __tablename__ = "invoices"
    __table_args__ = (
        UniqueConstraint("seller_gstin", "invoice_number", name="uq_invoices_gstin_number"),
    )
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    invoice_number = Column(String(32), index=True)
    invoice_date = Column(Date)
    status = Column(String(16), nullable=False, default="DRAFT")
    seller_gstin = Column(String(15), nullable=False, index=True)
    seller_state_code = Column(String(2), nullable=False)
    buyer_gstin = Column(String(15))
    buyer_state_code = Column(String(2))
    supply_type = Column(String(16), nullable=False)
    place_of_supply_state_code = Column(String(2))

    total_taxable_paise = Column(BigInteger, nullable=False, default=0)
    total_cgst_paise = Column(BigInteger, nullable=False, default=0)
    total_sgst_paise = Column(BigInteger, nullable=False, default=0)
    total_igst_paise = Column(BigInteger, nullable=False, default=0)
    total_gst_paise = Column(BigInteger, nullable=False, default=0)
    round_off_paise = Column(BigInteger, nullable=False, default=0)
    grand_total_paise = Column(BigInteger, nullable=False, default=0)

    rate_warnings = Column(JSONB, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=text("CURRENT_TIMESTAMP"))

    line_items = relationship(
        "InvoiceLineItem", back_populates="invoice", order_by="InvoiceLineItem.line_no"
    )
    credit_notes = relationship("CreditNote", back_populates="invoice")


class InvoiceLineItem(Base):
    __tablename__ = "invoice_line_items"
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    invoice_id = Column(UUID(as_uuid=True), ForeignKey("invoices.id", ondelete="CASCADE"), nullable=False, index=True)
    line_no = Column(Integer, nullable=False)
    product_id = Column(String(64))
    batch_id = Column(String(64))
    product_name = Column(String(255))

    quantity = Column(Integer, nullable=False)
    returned_quantity = Column(Integer, nullable=False, default=0)
    unit_price_paise = Column(BigInteger, nullable=False)
    discount_paise = Column(BigInteger, nullable=False, default=0)

    # rate snapshot
    hsn_code = Column(String(8))
    gst_rate_percent = Column(Numeric(5, 2), nullable=False)
    gst_type = Column(String(16), nullable=False)
    rate_source = Column(String(32))

    taxable_value_paise = Column(BigInteger, nullable=False)
    cgst_paise = Column(BigInteger, nullable=False, default=0)
    sgst_paise = Column(BigInteger, nullable=False, default=0)
    igst_paise = Column(BigInteger, nullable=False, default=0)
    total_gst_paise = Column(BigInteger, nullable=False, default=0)
    line_total_paise = Column(BigInteger, nullable=False)

    invoice = relationship("Invoice", back_populates="line_items")


class CreditNote(Base):
    __tablename__ = "credit_notes"
    __table_args__ = (
        UniqueConstraint("seller_gstin", "credit_note_number", name="uq_credit_notes_gstin_number"),
    )
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    credit_note_number = Column(String(32), nullable=False, index=True)
    credit_note_date = Column(Date, nullable=False)
    invoice_id = Column(UUID(as_uuid=True), ForeignKey("invoices.id"), nullable=False, index=True)
    seller_gstin = Column(String(15), nullable=False)
    supply_type = Column(String(16), nullable=False)
    place_of_supply_state_code = Column(String(2))
    status = Column(String(16), nullable=False, default="ISSUED")
    reason = Column(String(255))
    remarks = Column(Text)

    total_taxable_paise = Column(BigInteger, nullable=False, default=0)
    total_cgst_paise = Column(BigInteger, nullable=False, default=0)
    total_sgst_paise = Column(BigInteger, nullable=False, default=0)
    total_igst_paise = Column(BigInteger, nullable=False, default=0)
    total_gst_paise = Column(BigInteger, nullable=False, default=0)
    round_off_paise = Column(BigInteger, nullable=False, default=0)
    grand_total_paise = Column(BigInteger, nullable=False, default=0)
    total_credit_paise = Column(BigInteger, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), server_default=text("CURRENT_TIMESTAMP"))

    invoice = relationship("Invoice", back_populates="credit_notes")
    line_items = relationship("CreditNoteLineItem", back_populates="credit_note")


class CreditNoteLineItem(Base):
    __tablename__ = "credit_note_line_items"
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    credit_note_id = Column(UUID(as_uuid=True), ForeignKey("credit_notes.id", ondelete="CASCADE"), nullable=False, index=True)
    original_line_item_id = Column(UUID(as_uuid=True), ForeignKey("invoice_line_items.id"), nullable=False)
    returned_quantity = Column(Integer, nullable=False)
    original_quantity = Column(Integer, nullable=False)
    reason_code = Column(String(32), nullable=False)
    remarks = Column(Text)

    hsn_code = Column(String(8))
    gst_rate_percent = Column(Numeric(5, 2), nullable=False)
    gst_type = Column(String(16), nullable=False)
    unit_price_paise = Column(BigInteger, nullable=False)

    taxable_value_paise = Column(BigInteger, nullable=False)
    cgst_paise = Column(BigInteger, nullable=False, default=0)
    sgst_paise = Column(BigInteger, nullable=False, default=0)
    igst_paise = Column(BigInteger, nullable=False, default=0)
    total_gst_paise = Column(BigInteger, nullable=False, default=0)
    line_total_paise = Column(BigInteger, nullable=False)

    credit_note = relationship("CreditNote", back_populates="line_items")


class DocumentSequence(Base):
    """Last number handed out per (seller GSTIN, document type, period)."""
    __tablename__ = "document_sequences"
    __table_args__ = (
        UniqueConstraint("seller_gstin", "document_type", "period", name="uq_document_sequences_scope"),
    )
    id = Column(Integer, primary_key=True, autoincrement=True)
    seller_gstin = Column(String(15), nullable=False)
    document_type = Column(String(16), nullable=False)
    period = Column(String(7), nullable=False)
    last_value = Column(Integer, nullable=False, default=0)
    updated_at = Column(DateTime(timezone=True), server_default=text("CURRENT_TIMESTAMP"))
