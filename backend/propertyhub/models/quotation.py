from datetime import datetime
from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey, DECIMAL
from sqlalchemy.dialects.sqlite import JSON
from sqlalchemy.orm import relationship

from propertyhub.db.base import Base

QUOTATION_STATUS_DISPLAY = {
    "DRAFT": "Draft",
    "PENDING_ARTISAN": "Waiting for artisan",
    "IN_PROGRESS": "In progress",
    "READY_FOR_REVIEW": "Ready for review",
    "APPROVED": "Approved",
    "REJECTED": "Rejected",
    "SENT": "Sent",
}


class Quotation(Base):
    __tablename__ = "quotations"

    id = Column(Integer, primary_key=True, index=True)
    quote_number = Column(String(50), unique=True, nullable=False, index=True)

    customer_name = Column(String(200), nullable=False)
    customer_email = Column(String(255), nullable=False)
    customer_phone = Column(String(50))
    address = Column(String(500))

    items = Column(JSON, nullable=False, default=list)
    subtotal = Column(DECIMAL(12, 2), nullable=False, default=0)
    tax = Column(DECIMAL(12, 2), nullable=False, default=0)
    total = Column(DECIMAL(12, 2), nullable=False, default=0)

    company_material_cost = Column(DECIMAL(12, 2), default=0)
    company_labour_cost = Column(DECIMAL(12, 2), default=0)
    estimated_profit = Column(DECIMAL(12, 2), default=0)

    status = Column(String(30), nullable=False, default="DRAFT", index=True)
    valid_until = Column(DateTime)
    rejection_reason = Column(Text)
    notes = Column(Text)

    lead_id = Column(Integer, ForeignKey("leads.id"))

    created_by = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    created_at = Column(DateTime, default=datetime.utcnow, index=True)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    creator = relationship("User", foreign_keys=[created_by])

    def __repr__(self):
        return f"<Quotation {self.quote_number}: {self.status}>"

    @property
    def status_display(self) -> str:
        return QUOTATION_STATUS_DISPLAY.get(self.status, self.status)
