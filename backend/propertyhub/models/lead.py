from datetime import datetime
from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey, DECIMAL
from sqlalchemy.orm import relationship

from propertyhub.db.base import Base

LEAD_STATUS_DISPLAY = {
    "NEW": "New",
    "CONTACTED": "Contacted",
    "QUALIFIED": "Qualified",
    "PROPOSAL_SENT": "Proposal sent",
    "NEGOTIATION": "Negotiation",
    "WON": "Won",
    "LOST": "Lost",
}


class Lead(Base):
    """CRM lead"""
    __tablename__ = "leads"

    id = Column(Integer, primary_key=True, index=True)
    customer_name = Column(String(200), nullable=False)
    customer_email = Column(String(255), nullable=False, index=True)
    customer_phone = Column(String(50))
    address = Column(String(500))
    service_type = Column(String(100), nullable=False, index=True)
    description = Column(Text)
    estimated_value = Column(DECIMAL(12, 2))
    status = Column(String(20), nullable=False, default="NEW", index=True)
    notes = Column(Text)

    created_by = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    created_at = Column(DateTime, default=datetime.utcnow, index=True)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    creator = relationship("User", foreign_keys=[created_by])

    def __repr__(self):
        return f"<Lead {self.customer_email}: {self.status}>"

    @property
    def status_display(self) -> str:
        return LEAD_STATUS_DISPLAY.get(self.status, self.status)
