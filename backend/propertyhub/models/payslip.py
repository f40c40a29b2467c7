from datetime import datetime
from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey, DECIMAL
from sqlalchemy.orm import relationship

from propertyhub.db.base import Base


class Payslip(Base):
    """Monthly payslip with SARS PAYE and UIF deductions"""
    __tablename__ = "payslips"

    id = Column(Integer, primary_key=True, index=True)
    payslip_number = Column(String(50), unique=True, nullable=False, index=True)

    employee_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    payment_request_id = Column(Integer, ForeignKey("payment_requests.id"), index=True)

    pay_period_start = Column(DateTime, nullable=False, index=True)
    pay_period_end = Column(DateTime, nullable=False)
    payment_date = Column(DateTime, nullable=False, default=datetime.utcnow)

    # Earnings
    basic_salary = Column(DECIMAL(12, 2), nullable=False, default=0)
    overtime_pay = Column(DECIMAL(12, 2), default=0)
    bonus = Column(DECIMAL(12, 2), default=0)
    allowances = Column(DECIMAL(12, 2), default=0)
    commission = Column(DECIMAL(12, 2), default=0)
    other_earnings = Column(DECIMAL(12, 2), default=0)
    gross_pay = Column(DECIMAL(12, 2), nullable=False, default=0)

    # Deductions
    income_tax = Column(DECIMAL(12, 2), default=0, comment="PAYE")
    uif = Column(DECIMAL(12, 2), default=0, comment="Employee UIF")
    employer_uif = Column(DECIMAL(12, 2), default=0)
    pension_fund = Column(DECIMAL(12, 2), default=0)
    medical_aid = Column(DECIMAL(12, 2), default=0)
    other_deductions = Column(DECIMAL(12, 2), default=0)
    total_deductions = Column(DECIMAL(12, 2), nullable=False, default=0)

    net_pay = Column(DECIMAL(12, 2), nullable=False, default=0)

    hours_worked = Column(DECIMAL(8, 2))
    days_worked = Column(DECIMAL(8, 2))
    hourly_rate = Column(DECIMAL(12, 2))
    daily_rate = Column(DECIMAL(12, 2))

    tax_number = Column(String(50))
    uif_number = Column(String(50))
    notes = Column(Text)

    # GENERATED, SENT, ACKNOWLEDGED
    status = Column(String(20), nullable=False, default="GENERATED", index=True)

    created_by = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    employee = relationship("User", foreign_keys=[employee_id])
    payment_request = relationship("PaymentRequest", foreign_keys=[payment_request_id])
    creator = relationship("User", foreign_keys=[created_by])

    def __repr__(self):
        return f"<Payslip {self.payslip_number}: R{self.net_pay}>"
