from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

CATEGORY_PATTERN = "^(LOAN|ACCOUNTS_PAYABLE|CREDIT_LINE|OTHER)$"


class LiabilityCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = None
    category: str = Field(..., pattern=CATEGORY_PATTERN)
    amount: float = Field(..., gt=0)
    due_date: Optional[datetime] = None
    creditor: Optional[str] = None
    reference_number: Optional[str] = None
    notes: Optional[str] = None


class LiabilityUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = None
    category: Optional[str] = Field(None, pattern=CATEGORY_PATTERN)
    amount: Optional[float] = Field(None, gt=0)
    due_date: Optional[datetime] = None
    is_paid: Optional[bool] = None
    paid_date: Optional[datetime] = None
    creditor: Optional[str] = None
    reference_number: Optional[str] = None
    notes: Optional[str] = None


class LiabilityResponse(BaseModel):
    id: int
    name: str
    description: Optional[str]
    category: str
    category_display: str
    amount: float
    due_date: Optional[datetime]
    is_paid: bool
    is_overdue: bool
    paid_date: Optional[datetime]
    creditor: Optional[str]
    reference_number: Optional[str]
    notes: Optional[str]
    created_by: int
    created_at: datetime


class LiabilityListResponse(BaseModel):
    data: List[LiabilityResponse]
    total: int
    page: int
    limit: int
