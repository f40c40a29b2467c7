"""
Audit log - who changed what, for traceability
"""

from datetime import datetime
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey
from sqlalchemy.dialects.sqlite import JSON
from sqlalchemy.orm import relationship

from propertyhub.db.base import Base

ACTION_DISPLAY = {
    "create": "Created",
    "update": "Updated",
    "delete": "Deleted",
    "status": "Status changed",
    "approve": "Approved",
    "reject": "Rejected",
    "send": "Sent",
    "login": "Logged in",
    "mark_paid": "Marked paid",
    "update_status": "Status changed",
    "upgrade": "Upgraded",
    "reset": "Reset",
}

RESOURCE_TYPE_DISPLAY = {
    "invoice": "Invoice",
    "order": "Order",
    "quotation": "Quotation",
    "payment_request": "Payment request",
    "payslip": "Payslip",
    "asset": "Asset",
    "liability": "Liability",
    "expense": "Operational expense",
    "revenue": "Alternative revenue",
    "registration": "Registration",
    "campaign": "Campaign",
    "maintenance_request": "Maintenance request",
    "report": "Financial report",
    "user": "User",
    "customer": "Customer",
    "lead": "Lead",
    "system": "System",
}


class AuditLog(Base):
    __tablename__ = "audit_logs"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    action = Column(String(20), nullable=False, index=True)
    resource_type = Column(String(50), nullable=False, index=True)
    resource_id = Column(Integer, index=True)
    resource_name = Column(String(100), comment="Number or name for display")
    description = Column(String(500))
    old_value = Column(JSON)
    new_value = Column(JSON)
    ip_address = Column(String(50))
    created_at = Column(DateTime, default=datetime.utcnow, index=True)

    user = relationship("User", foreign_keys=[user_id])

    def __repr__(self):
        return f"<AuditLog {self.action} {self.resource_type}:{self.resource_id}>"

    @property
    def action_display(self) -> str:
        return ACTION_DISPLAY.get(self.action, self.action)

    @property
    def resource_type_display(self) -> str:
        return RESOURCE_TYPE_DISPLAY.get(self.resource_type, self.resource_type)
