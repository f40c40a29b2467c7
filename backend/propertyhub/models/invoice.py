"""
Invoice model - amounts billed to customers
"""

from datetime import datetime
from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey, DECIMAL
from sqlalchemy.dialects.sqlite import JSON
from sqlalchemy.orm import relationship

from propertyhub.db.base import Base

INVOICE_STATUS_DISPLAY = {
    "DRAFT": "Draft",
    "PENDING_REVIEW": "Pending review",
    "PENDING_APPROVAL": "Pending approval",
    "SENT": "Sent",
    "PAID": "Paid",
    "OVERDUE": "Overdue",
    "CANCELLED": "Cancelled",
    "REJECTED": "Rejected",
}


class Invoice(Base):
    __tablename__ = "invoices"

    id = Column(Integer, primary_key=True, index=True)

    # INV-00001 unless entered manually
    invoice_number = Column(String(50), unique=True, nullable=False, index=True)

    customer_name = Column(String(200), nullable=False)
    customer_email = Column(String(255), nullable=False, index=True)
    customer_phone = Column(String(50))
    address = Column(String(500))

    # [{description, quantity, unit_price, total, unit_of_measure}]
    items = Column(JSON, nullable=False, default=list)

    subtotal = Column(DECIMAL(12, 2), nullable=False, default=0)
    tax = Column(DECIMAL(12, 2), nullable=False, default=0, comment="VAT charged")
    total = Column(DECIMAL(12, 2), nullable=False, default=0)

    # Internal costing, never shown to the customer
    company_material_cost = Column(DECIMAL(12, 2), default=0)
    company_labour_cost = Column(DECIMAL(12, 2), default=0)
    estimated_profit = Column(DECIMAL(12, 2), default=0)

    status = Column(String(30), nullable=False, default="PENDING_REVIEW", index=True)
    due_date = Column(DateTime)
    paid_date = Column(DateTime, index=True)
    rejection_reason = Column(Text)
    notes = Column(Text)

    order_id = Column(Integer, ForeignKey("orders.id"), index=True)

    created_by = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    created_at = Column(DateTime, default=datetime.utcnow, index=True)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    order = relationship("Order", foreign_keys=[order_id])
    creator = relationship("User", foreign_keys=[created_by])

    def __repr__(self):
        return f"<Invoice {self.invoice_number}: {self.status} R{self.total}>"

    @property
    def status_display(self) -> str:
        return INVOICE_STATUS_DISPLAY.get(self.status, self.status)

    @property
    def is_overdue(self) -> bool:
        if self.status in ("PAID", "CANCELLED", "REJECTED", "DRAFT"):
            return False
        return bool(self.due_date and self.due_date < datetime.utcnow())
