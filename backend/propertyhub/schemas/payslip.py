from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field, model_validator


class PayslipCreate(BaseModel):
    employee_id: int
    pay_period_start: datetime
    pay_period_end: datetime
    payment_date: Optional[datetime] = None

    basic_salary: Optional[float] = Field(None, ge=0)
    overtime_pay: float = Field(0, ge=0)
    bonus: float = Field(0, ge=0)
    allowances: float = Field(0, ge=0)
    commission: float = Field(0, ge=0)
    other_earnings: float = Field(0, ge=0)

    hours_worked: Optional[float] = Field(None, ge=0)
    hourly_rate: Optional[float] = Field(None, ge=0)
    days_worked: Optional[float] = Field(None, ge=0)
    daily_rate: Optional[float] = Field(None, ge=0)

    # Overrides; calculated from the SARS tables when omitted
    income_tax: Optional[float] = Field(None, ge=0)
    uif: Optional[float] = Field(None, ge=0)
    pension_fund: float = Field(0, ge=0)
    medical_aid: float = Field(0, ge=0)
    other_deductions: float = Field(0, ge=0)

    notes: Optional[str] = None

    @model_validator(mode="after")
    def check_period(self):
        if self.pay_period_end < self.pay_period_start:
            raise ValueError("pay_period_end must not be before pay_period_start")
        return self


class PayslipResponse(BaseModel):
    id: int
    payslip_number: str
    employee_id: int
    employee_name: str = ""
    payment_request_id: Optional[int]
    pay_period_start: datetime
    pay_period_end: datetime
    payment_date: datetime
    basic_salary: float
    overtime_pay: float
    bonus: float
    allowances: float
    commission: float
    other_earnings: float
    gross_pay: float
    income_tax: float
    uif: float
    employer_uif: float
    pension_fund: float
    medical_aid: float
    other_deductions: float
    total_deductions: float
    net_pay: float
    tax_number: Optional[str]
    uif_number: Optional[str]
    notes: Optional[str]
    status: str
    created_at: datetime


class PayslipListResponse(BaseModel):
    data: List[PayslipResponse]
    total: int
    page: int
    limit: int
