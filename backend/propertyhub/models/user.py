from datetime import datetime
from sqlalchemy import Column, Integer, String, Boolean, DateTime, DECIMAL

from propertyhub.db.base import Base
from propertyhub.core.permissions import ROLE_DISPLAY, is_admin, is_contractor


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String(255), unique=True, index=True, nullable=False)
    password = Column(String(255), nullable=False)
    first_name = Column(String(100), nullable=False, default="")
    last_name = Column(String(100), nullable=False, default="")
    phone = Column(String(50))
    role = Column(String(50), nullable=False, default="STAFF", index=True)
    company_name = Column(String(200))

    # Payroll details (artisans and staff)
    monthly_salary = Column(DECIMAL(12, 2), comment="Fixed monthly salary")
    hourly_rate = Column(DECIMAL(12, 2))
    daily_rate = Column(DECIMAL(12, 2))
    date_of_birth = Column(DateTime, comment="Used for SARS age rebates")
    tax_number = Column(String(50))
    uif_number = Column(String(50))

    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    def __repr__(self):
        return f"<User {self.email} ({self.role})>"

    @property
    def full_name(self) -> str:
        name = f"{self.first_name or ''} {self.last_name or ''}".strip()
        return name or self.email

    @property
    def role_display(self) -> str:
        return ROLE_DISPLAY.get(self.role, self.role)

    @property
    def is_admin(self) -> bool:
        return is_admin(self.role)

    @property
    def is_contractor(self) -> bool:
        return is_contractor(self.role)

    def age_on(self, when: datetime) -> int:
        """Age in whole years, 0 when the date of birth is unknown"""
        if not self.date_of_birth:
            return 0
        dob = self.date_of_birth
        years = when.year - dob.year
        if (when.month, when.day) < (dob.month, dob.day):
            years -= 1
        return max(years, 0)
