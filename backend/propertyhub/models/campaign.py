from datetime import datetime
from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey
from sqlalchemy.dialects.sqlite import JSON
from sqlalchemy.orm import relationship

from propertyhub.db.base import Base

CAMPAIGN_STATUS_DISPLAY = {
    "DRAFT": "Draft",
    "SCHEDULED": "Scheduled",
    "SENDING": "Sending",
    "SENT": "Sent",
    "FAILED": "Failed",
}


class Campaign(Base):
    """Bulk e-mail campaign sent to CRM leads"""
    __tablename__ = "campaigns"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(200), nullable=False)
    description = Column(Text)
    subject = Column(String(300), nullable=False)
    html_body = Column(Text, nullable=False)

    # {statuses, service_types, estimated_value_min, estimated_value_max,
    #  target_customer_ids, excluded_customer_ids}
    target_criteria = Column(JSON, default=dict)

    status = Column(String(20), nullable=False, default="DRAFT", index=True)
    scheduled_for = Column(DateTime, index=True)
    sent_at = Column(DateTime)

    total_recipients = Column(Integer, nullable=False, default=0)
    total_sent = Column(Integer, nullable=False, default=0)
    total_failed = Column(Integer, nullable=False, default=0)
    last_error = Column(Text)

    created_by = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    creator = relationship("User", foreign_keys=[created_by])

    def __repr__(self):
        return f"<Campaign {self.name}: {self.status}>"

    @property
    def status_display(self) -> str:
        return CAMPAIGN_STATUS_DISPLAY.get(self.status, self.status)
