from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field, model_validator


class PaymentRequestCreate(BaseModel):
    artisan_id: Optional[int] = None  # defaults to the current user
    order_id: Optional[int] = None
    hours_worked: float = Field(0, ge=0)
    days_worked: float = Field(0, ge=0)
    hourly_rate: float = Field(0, ge=0)
    daily_rate: float = Field(0, ge=0)
    amount: Optional[float] = Field(None, gt=0)
    notes: Optional[str] = None

    @model_validator(mode="after")
    def check_amount(self):
        if self.amount is None and self.hours_worked * self.hourly_rate + self.days_worked * self.daily_rate <= 0:
            raise ValueError("Enter hours or days worked with a rate, or an amount")
        return self


class PaymentRequestStatusUpdate(BaseModel):
    status: str = Field(..., pattern="^(PENDING|APPROVED|REJECTED|PAID)$")
    rejection_reason: Optional[str] = None


class PaymentRequestResponse(BaseModel):
    id: int
    request_number: str
    artisan_id: int
    artisan_name: str = ""
    order_id: Optional[int]
    order_number: str = ""
    hours_worked: float
    days_worked: float
    hourly_rate: float
    daily_rate: float
    calculated_amount: float
    status: str
    status_display: str
    approved_date: Optional[datetime]
    paid_date: Optional[datetime]
    rejection_reason: Optional[str]
    notes: Optional[str]
    payslip_number: Optional[str] = None
    created_at: datetime


class PaymentRequestListResponse(BaseModel):
    data: List[PaymentRequestResponse]
    total: int
    page: int
    limit: int
