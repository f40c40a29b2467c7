from datetime import datetime
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey
from sqlalchemy.dialects.sqlite import JSON
from sqlalchemy.orm import relationship

from propertyhub.db.base import Base

REPORT_TYPE_DISPLAY = {
    "MONTHLY_PL": "Monthly profit & loss",
    "QUARTERLY_PL": "Quarterly profit & loss",
    "ANNUAL_PL": "Annual profit & loss",
    "VAT201": "VAT201 return",
    "EMP201": "EMP201 return",
}


class FinancialReport(Base):
    """Generated report snapshot"""
    __tablename__ = "financial_reports"

    id = Column(Integer, primary_key=True, index=True)
    report_type = Column(String(20), nullable=False, index=True)
    report_name = Column(String(200), nullable=False)
    period_start = Column(DateTime, nullable=False)
    period_end = Column(DateTime, nullable=False)

    # GENERATING, COMPLETED, FAILED
    status = Column(String(20), nullable=False, default="COMPLETED")
    data = Column(JSON, nullable=False, default=dict)

    generated_by = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    created_at = Column(DateTime, default=datetime.utcnow, index=True)

    generator = relationship("User", foreign_keys=[generated_by])

    def __repr__(self):
        return f"<FinancialReport {self.report_type} {self.period_start:%Y-%m-%d}>"

    @property
    def type_display(self) -> str:
        return REPORT_TYPE_DISPLAY.get(self.report_type, self.report_type)
