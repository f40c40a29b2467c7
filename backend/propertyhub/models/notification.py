from datetime import datetime
from sqlalchemy import Column, Integer, String, Text, Boolean, DateTime, ForeignKey
from sqlalchemy.orm import relationship

from propertyhub.db.base import Base


class Notification(Base):
    """In-app notification"""
    __tablename__ = "notifications"

    id = Column(Integer, primary_key=True, index=True)
    recipient_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    recipient_role = Column(String(50))
    message = Column(Text, nullable=False)

    # e.g. MAINTENANCE_REQUEST, EXPENSE_CREATED, CAMPAIGN_SENT, INVOICE_STATUS
    type = Column(String(50), nullable=False, index=True)
    related_entity_type = Column(String(50))
    related_entity_id = Column(Integer)

    is_read = Column(Boolean, nullable=False, default=False, index=True)
    created_at = Column(DateTime, default=datetime.utcnow, index=True)

    recipient = relationship("User", foreign_keys=[recipient_id])

    def __repr__(self):
        return f"<Notification {self.type} -> {self.recipient_id}>"
