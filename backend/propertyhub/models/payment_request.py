"""
Artisan payment requests

An artisan claims payment for hours/days worked on an order. Once an
admin marks the request PAID a payslip is generated automatically.
"""

from datetime import datetime
from decimal import Decimal
from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey, DECIMAL
from sqlalchemy.orm import relationship

from propertyhub.db.base import Base

PAYMENT_REQUEST_STATUS_DISPLAY = {
    "PENDING": "Pending",
    "APPROVED": "Approved",
    "REJECTED": "Rejected",
    "PAID": "Paid",
}


class PaymentRequest(Base):
    __tablename__ = "payment_requests"

    id = Column(Integer, primary_key=True, index=True)
    request_number = Column(String(50), unique=True, nullable=False, index=True)

    artisan_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    order_id = Column(Integer, ForeignKey("orders.id"), index=True)

    hours_worked = Column(DECIMAL(8, 2), default=0)
    days_worked = Column(DECIMAL(8, 2), default=0)
    hourly_rate = Column(DECIMAL(12, 2), default=0)
    daily_rate = Column(DECIMAL(12, 2), default=0)
    calculated_amount = Column(DECIMAL(12, 2), nullable=False, default=0)

    status = Column(String(20), nullable=False, default="PENDING", index=True)
    approved_date = Column(DateTime)
    paid_date = Column(DateTime, index=True)
    rejection_reason = Column(Text)
    notes = Column(Text)

    created_by = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    created_at = Column(DateTime, default=datetime.utcnow, index=True)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    artisan = relationship("User", foreign_keys=[artisan_id])
    order = relationship("Order", foreign_keys=[order_id])
    creator = relationship("User", foreign_keys=[created_by])

    def __repr__(self):
        return f"<PaymentRequest {self.request_number}: {self.status} R{self.calculated_amount}>"

    @property
    def status_display(self) -> str:
        return PAYMENT_REQUEST_STATUS_DISPLAY.get(self.status, self.status)

    def recalculate(self):
        """hours x hourly rate + days x daily rate"""
        self.calculated_amount = (
            Decimal(str(self.hours_worked or 0)) * Decimal(str(self.hourly_rate or 0))
            + Decimal(str(self.days_worked or 0)) * Decimal(str(self.daily_rate or 0))
        )
