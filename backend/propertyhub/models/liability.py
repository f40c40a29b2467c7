from datetime import datetime
from sqlalchemy import Column, Integer, String, Text, Boolean, DateTime, ForeignKey, DECIMAL
from sqlalchemy.orm import relationship

from propertyhub.db.base import Base

LIABILITY_CATEGORY_DISPLAY = {
    "LOAN": "Loan",
    "ACCOUNTS_PAYABLE": "Accounts payable",
    "CREDIT_LINE": "Credit line",
    "OTHER": "Other",
}


class Liability(Base):
    __tablename__ = "liabilities"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(200), nullable=False)
    description = Column(Text)
    category = Column(String(30), nullable=False, default="OTHER", index=True)
    amount = Column(DECIMAL(12, 2), nullable=False)
    due_date = Column(DateTime)

    is_paid = Column(Boolean, nullable=False, default=False, index=True)
    paid_date = Column(DateTime)

    creditor = Column(String(200))
    reference_number = Column(String(100))
    notes = Column(Text)

    created_by = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    created_at = Column(DateTime, default=datetime.utcnow, index=True)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    creator = relationship("User", foreign_keys=[created_by])

    def __repr__(self):
        return f"<Liability {self.name}: R{self.amount}>"

    @property
    def category_display(self) -> str:
        return LIABILITY_CATEGORY_DISPLAY.get(self.category, self.category)

    @property
    def is_overdue(self) -> bool:
        return bool(not self.is_paid and self.due_date and self.due_date < datetime.utcnow())
