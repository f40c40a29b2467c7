from datetime import datetime
from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey
from sqlalchemy.dialects.sqlite import JSON
from sqlalchemy.orm import relationship

from propertyhub.db.base import Base

MAINTENANCE_STATUS_DISPLAY = {
    "SUBMITTED": "Submitted",
    "REVIEWED": "Reviewed",
    "APPROVED": "Approved",
    "IN_PROGRESS": "In progress",
    "COMPLETED": "Completed",
    "REJECTED": "Rejected",
}

URGENCY_DISPLAY = {
    "LOW": "Low",
    "NORMAL": "Normal",
    "HIGH": "High",
    "URGENT": "Urgent",
}


class MaintenanceRequest(Base):
    """Maintenance request logged by a customer for their property manager"""
    __tablename__ = "maintenance_requests"

    id = Column(Integer, primary_key=True, index=True)

    # MR-YYYYMM-0001
    request_number = Column(String(30), unique=True, nullable=False, index=True)

    customer_id = Column(Integer, ForeignKey("customers.id"), nullable=False, index=True)
    property_manager_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)

    title = Column(String(200), nullable=False)
    description = Column(Text, nullable=False)
    category = Column(String(100), nullable=False)
    urgency = Column(String(10), nullable=False, default="NORMAL")
    photos = Column(JSON, default=list)

    building_name = Column(String(200))
    unit_number = Column(String(50))
    address = Column(String(500))

    status = Column(String(20), nullable=False, default="SUBMITTED", index=True)
    submitted_date = Column(DateTime, default=datetime.utcnow)
    reviewed_date = Column(DateTime)
    approved_date = Column(DateTime)
    completed_date = Column(DateTime)
    response_notes = Column(Text)
    rejection_reason = Column(Text)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    customer = relationship("Customer", foreign_keys=[customer_id])
    property_manager = relationship("User", foreign_keys=[property_manager_id])

    def __repr__(self):
        return f"<MaintenanceRequest {self.request_number}: {self.status}>"

    @property
    def status_display(self) -> str:
        return MAINTENANCE_STATUS_DISPLAY.get(self.status, self.status)

    @property
    def urgency_display(self) -> str:
        return URGENCY_DISPLAY.get(self.urgency, self.urgency)
