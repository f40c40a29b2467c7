"""
Operational expenses and alternative revenue

Both carry the VAT supply type and rate so the VAT201 can be prepared
without re-entering figures.
"""

from datetime import datetime
from sqlalchemy import Column, Integer, String, Text, Boolean, DateTime, ForeignKey, DECIMAL
from sqlalchemy.orm import relationship

from propertyhub.db.base import Base

EXPENSE_CATEGORY_DISPLAY = {
    "PETROL": "Petrol",
    "OFFICE_SUPPLIES": "Office supplies",
    "RENT": "Rent",
    "UTILITIES": "Utilities",
    "INSURANCE": "Insurance",
    "SALARIES": "Salaries",
    "MARKETING": "Marketing",
    "MAINTENANCE": "Maintenance",
    "TRAVEL": "Travel",
    "PROFESSIONAL_FEES": "Professional fees",
    "TELECOMMUNICATIONS": "Telecommunications",
    "SOFTWARE_SUBSCRIPTIONS": "Software subscriptions",
    "OTHER": "Other",
}

REVENUE_CATEGORY_DISPLAY = {
    "CONSULTING": "Consulting",
    "RENTAL_INCOME": "Rental income",
    "INTEREST": "Interest",
    "INVESTMENTS": "Investments",
    "GRANTS": "Grants",
    "DONATIONS": "Donations",
    "OTHER": "Other",
}


class OperationalExpense(Base):
    __tablename__ = "operational_expenses"

    id = Column(Integer, primary_key=True, index=True)
    date = Column(DateTime, nullable=False, default=datetime.utcnow, index=True)
    category = Column(String(30), nullable=False, index=True)
    description = Column(String(500), nullable=False)
    amount = Column(DECIMAL(12, 2), nullable=False)
    vendor = Column(String(200))
    reference_number = Column(String(100))
    notes = Column(Text)
    document_url = Column(String(500))

    is_recurring = Column(Boolean, nullable=False, default=False)
    recurring_period = Column(String(20), comment="WEEKLY, MONTHLY, QUARTERLY, ANNUALLY")

    # PENDING, APPROVED, REJECTED
    status = Column(String(20), nullable=False, default="PENDING", index=True)
    approved_by = Column(Integer, ForeignKey("users.id"))
    approved_at = Column(DateTime)
    rejection_reason = Column(Text)

    # SARS
    supply_type = Column(String(20), nullable=False, default="STANDARD", comment="STANDARD, ZERO_RATED, EXEMPT")
    vat_rate = Column(DECIMAL(5, 2))
    input_vat_amount = Column(DECIMAL(12, 2))
    sars_deduction_section = Column(String(30))

    created_by = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    creator = relationship("User", foreign_keys=[created_by])
    approver = relationship("User", foreign_keys=[approved_by])

    def __repr__(self):
        return f"<OperationalExpense {self.category}: R{self.amount}>"

    @property
    def category_display(self) -> str:
        return EXPENSE_CATEGORY_DISPLAY.get(self.category, self.category)


class AlternativeRevenue(Base):
    """Income that does not come from invoices (rent, interest, grants...)"""
    __tablename__ = "alternative_revenues"

    id = Column(Integer, primary_key=True, index=True)
    date = Column(DateTime, nullable=False, default=datetime.utcnow, index=True)
    category = Column(String(30), nullable=False, index=True)
    description = Column(String(500), nullable=False)
    amount = Column(DECIMAL(12, 2), nullable=False)
    source = Column(String(200))
    reference_number = Column(String(100))
    notes = Column(Text)
    document_url = Column(String(500))

    is_recurring = Column(Boolean, nullable=False, default=False)
    recurring_period = Column(String(20))

    status = Column(String(20), nullable=False, default="PENDING", index=True)
    approved_by = Column(Integer, ForeignKey("users.id"))
    approved_at = Column(DateTime)
    rejection_reason = Column(Text)

    supply_type = Column(String(20), nullable=False, default="STANDARD")
    vat_rate = Column(DECIMAL(5, 2))
    output_vat_amount = Column(DECIMAL(12, 2))

    created_by = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    creator = relationship("User", foreign_keys=[created_by])
    approver = relationship("User", foreign_keys=[approved_by])

    def __repr__(self):
        return f"<AlternativeRevenue {self.category}: R{self.amount}>"

    @property
    def category_display(self) -> str:
        return REVENUE_CATEGORY_DISPLAY.get(self.category, self.category)
