"""Invoice schemas"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, EmailStr, Field

INVOICE_STATUS_PATTERN = (
    "^(DRAFT|PENDING_REVIEW|PENDING_APPROVAL|SENT|PAID|OVERDUE|CANCELLED|REJECTED)$"
)


class LineItem(BaseModel):
    description: str = Field(..., min_length=1)
    quantity: float = Field(..., gt=0)
    unit_price: float = Field(..., ge=0)
    total: float = Field(..., ge=0)
    unit_of_measure: Optional[str] = None


class InvoiceCreate(BaseModel):
    invoice_number: Optional[str] = Field(None, max_length=50)
    customer_name: str = Field(..., min_length=1)
    customer_email: EmailStr
    customer_phone: Optional[str] = None
    address: Optional[str] = None
    items: List[LineItem] = Field(..., min_length=1)
    subtotal: float = Field(..., ge=0)
    tax: float = Field(0, ge=0)
    total: float = Field(..., ge=0)
    company_material_cost: float = Field(0, ge=0)
    company_labour_cost: float = Field(0, ge=0)
    estimated_profit: float = 0
    due_date: Optional[datetime] = None
    notes: Optional[str] = None
    order_id: Optional[int] = None


class InvoiceStatusUpdate(BaseModel):
    status: str = Field(..., pattern=INVOICE_STATUS_PATTERN)
    rejection_reason: Optional[str] = None


class InvoiceResponse(BaseModel):
    id: int
    invoice_number: str
    customer_name: str
    customer_email: str
    customer_phone: Optional[str]
    address: Optional[str]
    items: List[dict]
    subtotal: float
    tax: float
    total: float
    company_material_cost: float
    company_labour_cost: float
    estimated_profit: float
    status: str
    status_display: str
    due_date: Optional[datetime]
    paid_date: Optional[datetime]
    rejection_reason: Optional[str]
    notes: Optional[str]
    order_id: Optional[int]
    order_number: str = ""
    created_by: int
    creator_name: str = ""
    created_at: datetime
    updated_at: Optional[datetime]


class InvoiceListResponse(BaseModel):
    data: List[InvoiceResponse]
    total: int
    page: int
    limit: int
