"""
Subscription packages and tenant subscriptions
"""

from datetime import datetime
from sqlalchemy import Column, Integer, String, Text, Boolean, DateTime, ForeignKey, DECIMAL
from sqlalchemy.orm import relationship

from propertyhub.db.base import Base


class Package(Base):
    """Subscription package offered on the public sign-up page"""
    __tablename__ = "packages"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(50), unique=True, nullable=False, index=True)
    display_name = Column(String(100), nullable=False)
    description = Column(Text)

    # CONTRACTOR or PROPERTY_MANAGER
    type = Column(String(30), nullable=False, index=True)

    base_price = Column(DECIMAL(12, 2), nullable=False, default=0, comment="Monthly price")
    additional_user_price = Column(DECIMAL(12, 2), default=0)
    additional_tenant_price = Column(DECIMAL(12, 2), default=0)
    additional_contractor_price = Column(DECIMAL(12, 2), default=0)
    trial_days = Column(Integer, nullable=False, default=0)

    # Feature flags
    has_crm = Column(Boolean, default=False)
    has_quotations = Column(Boolean, default=False)
    has_invoices = Column(Boolean, default=False)
    has_statements = Column(Boolean, default=False)
    has_operations = Column(Boolean, default=False)
    has_payments = Column(Boolean, default=False)
    has_projects = Column(Boolean, default=False)
    has_hr = Column(Boolean, default=False)
    has_messages = Column(Boolean, default=False)
    has_ai_agent = Column(Boolean, default=False)
    has_ai_insights = Column(Boolean, default=False)
    has_customer_portal = Column(Boolean, default=False)
    has_tenant_portal = Column(Boolean, default=False)

    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    FEATURE_FLAGS = (
        "has_crm", "has_quotations", "has_invoices", "has_statements",
        "has_operations", "has_payments", "has_projects", "has_hr",
        "has_messages", "has_ai_agent", "has_ai_insights",
        "has_customer_portal", "has_tenant_portal",
    )

    def __repr__(self):
        return f"<Package {self.name}>"

    @property
    def features(self) -> dict:
        return {flag: bool(getattr(self, flag)) for flag in self.FEATURE_FLAGS}


class Subscription(Base):
    __tablename__ = "subscriptions"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, unique=True)
    package_id = Column(Integer, ForeignKey("packages.id"), nullable=False)

    # TRIAL, ACTIVE, SUSPENDED, CANCELLED
    status = Column(String(20), nullable=False, default="ACTIVE", index=True)
    start_date = Column(DateTime, default=datetime.utcnow)
    trial_ends_at = Column(DateTime)
    next_billing_date = Column(DateTime)

    max_users = Column(Integer, nullable=False, default=1)
    max_tenants = Column(Integer, nullable=False, default=0)
    max_contractors = Column(Integer, nullable=False, default=0)
    current_users = Column(Integer, nullable=False, default=1)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    user = relationship("User", foreign_keys=[user_id])
    package = relationship("Package", foreign_keys=[package_id])

    def __repr__(self):
        return f"<Subscription user={self.user_id} {self.status}>"
