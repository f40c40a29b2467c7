from datetime import datetime
from sqlalchemy import Column, Integer, String, Text, Boolean, DateTime, ForeignKey
from sqlalchemy.orm import relationship

from propertyhub.db.base import Base


class PendingRegistration(Base):
    """Public sign-up waiting for payment and admin approval"""
    __tablename__ = "pending_registrations"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String(255), nullable=False, index=True)
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    phone = Column(String(50), nullable=False)
    company_name = Column(String(200))

    # CONTRACTOR or PROPERTY_MANAGER
    account_type = Column(String(30), nullable=False)
    package_id = Column(Integer, ForeignKey("packages.id"), nullable=False)

    additional_users = Column(Integer, nullable=False, default=0)
    additional_tenants = Column(Integer, nullable=False, default=0)
    additional_contractors = Column(Integer, nullable=False, default=0)

    has_paid = Column(Boolean, nullable=False, default=False)
    payment_id = Column(String(100))

    is_approved = Column(Boolean, nullable=False, default=False, index=True)
    approved_by = Column(Integer, ForeignKey("users.id"))
    approved_at = Column(DateTime)
    user_id = Column(Integer, ForeignKey("users.id"), comment="User created on approval")

    rejected_at = Column(DateTime)
    rejection_reason = Column(Text)

    created_at = Column(DateTime, default=datetime.utcnow, index=True)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    package = relationship("Package", foreign_keys=[package_id])
    approver = relationship("User", foreign_keys=[approved_by])

    def __repr__(self):
        return f"<PendingRegistration {self.email}>"

    @property
    def status_display(self) -> str:
        if self.is_approved:
            return "Approved"
        if self.rejected_at:
            return "Rejected"
        if self.has_paid:
            return "Paid - awaiting approval"
        return "Awaiting payment"
