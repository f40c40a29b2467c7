from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, EmailStr, Field

from propertyhub.schemas.invoice import LineItem

QUOTATION_STATUS_PATTERN = (
    "^(DRAFT|PENDING_ARTISAN|IN_PROGRESS|READY_FOR_REVIEW|APPROVED|REJECTED|SENT)$"
)


class QuotationCreate(BaseModel):
    customer_name: str = Field(..., min_length=1)
    customer_email: EmailStr
    customer_phone: Optional[str] = None
    address: Optional[str] = None
    items: List[LineItem] = []
    subtotal: float = Field(0, ge=0)
    tax: float = Field(0, ge=0)
    total: float = Field(0, ge=0)
    company_material_cost: float = Field(0, ge=0)
    company_labour_cost: float = Field(0, ge=0)
    estimated_profit: float = 0
    valid_until: Optional[datetime] = None
    notes: Optional[str] = None
    lead_id: Optional[int] = None


class QuotationStatusUpdate(BaseModel):
    status: str = Field(..., pattern=QUOTATION_STATUS_PATTERN)
    rejection_reason: Optional[str] = None


class QuotationResponse(BaseModel):
    id: int
    quote_number: str
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
    valid_until: Optional[datetime]
    rejection_reason: Optional[str]
    notes: Optional[str]
    created_by: int
    created_at: datetime


class QuotationListResponse(BaseModel):
    data: List[QuotationResponse]
    total: int
    page: int
    limit: int
