from datetime import datetime
from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey, DECIMAL
from sqlalchemy.orm import relationship

from propertyhub.db.base import Base

ORDER_STATUS_DISPLAY = {
    "PENDING": "Pending",
    "ASSIGNED": "Assigned",
    "IN_PROGRESS": "In progress",
    "COMPLETED": "Completed",
    "CANCELLED": "Cancelled",
}


class Order(Base):
    """Work order (job card) executed by artisans"""
    __tablename__ = "orders"

    id = Column(Integer, primary_key=True, index=True)
    order_number = Column(String(50), unique=True, nullable=False, index=True)

    customer_name = Column(String(200), nullable=False)
    customer_email = Column(String(255), nullable=False)
    customer_phone = Column(String(50))
    address = Column(String(500))
    service_type = Column(String(100), nullable=False)
    description = Column(Text)

    status = Column(String(20), nullable=False, default="PENDING", index=True)

    material_cost = Column(DECIMAL(12, 2), nullable=False, default=0)
    labour_cost = Column(DECIMAL(12, 2), nullable=False, default=0)
    total_cost = Column(DECIMAL(12, 2), nullable=False, default=0)

    assigned_to_id = Column(Integer, ForeignKey("users.id"), index=True)
    started_at = Column(DateTime)
    completed_at = Column(DateTime)

    created_by = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    created_at = Column(DateTime, default=datetime.utcnow, index=True)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    assigned_to = relationship("User", foreign_keys=[assigned_to_id])
    creator = relationship("User", foreign_keys=[created_by])

    def __repr__(self):
        return f"<Order {self.order_number}: {self.status}>"

    @property
    def status_display(self) -> str:
        return ORDER_STATUS_DISPLAY.get(self.status, self.status)

    def recalculate_total(self):
        self.total_cost = (self.material_cost or 0) + (self.labour_cost or 0)
