"""Operational expense and alternative revenue schemas"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

EXPENSE_CATEGORY_PATTERN = (
    "^(PETROL|OFFICE_SUPPLIES|RENT|UTILITIES|INSURANCE|SALARIES|MARKETING|MAINTENANCE|"
    "TRAVEL|PROFESSIONAL_FEES|TELECOMMUNICATIONS|SOFTWARE_SUBSCRIPTIONS|OTHER)$"
)
REVENUE_CATEGORY_PATTERN = (
    "^(CONSULTING|RENTAL_INCOME|INTEREST|INVESTMENTS|GRANTS|DONATIONS|OTHER)$"
)
SUPPLY_TYPE_PATTERN = "^(STANDARD|ZERO_RATED|EXEMPT)$"
RECURRING_PATTERN = "^(WEEKLY|MONTHLY|QUARTERLY|ANNUALLY)$"
DEDUCTION_SECTION_PATTERN = (
    "^(S11a_GENERAL|S11b_BAD_DEBTS|S11c_LEGAL|S11d_REPAIRS|S11e_DEPRECIATION|S11f_RENT|"
    "S11gA_RESEARCH|S11j_DOUBTFUL_DEBTS|S13_BUILDINGS|S18A_DONATIONS|S23H_PREPAID)$"
)


class ExpenseCreate(BaseModel):
    date: datetime
    category: str = Field(..., pattern=EXPENSE_CATEGORY_PATTERN)
    description: str = Field(..., min_length=1, max_length=500)
    amount: float = Field(..., gt=0)
    vendor: Optional[str] = None
    reference_number: Optional[str] = None
    notes: Optional[str] = None
    document_url: Optional[str] = None
    is_recurring: bool = False
    recurring_period: Optional[str] = Field(None, pattern=RECURRING_PATTERN)
    supply_type: str = Field("STANDARD", pattern=SUPPLY_TYPE_PATTERN)
    vat_rate: Optional[float] = Field(None, ge=0, le=100)
    input_vat_amount: Optional[float] = Field(None, ge=0)
    sars_deduction_section: Optional[str] = Field(None, pattern=DEDUCTION_SECTION_PATTERN)


class ExpenseUpdate(BaseModel):
    date: Optional[datetime] = None
    category: Optional[str] = Field(None, pattern=EXPENSE_CATEGORY_PATTERN)
    description: Optional[str] = Field(None, min_length=1, max_length=500)
    amount: Optional[float] = Field(None, gt=0)
    vendor: Optional[str] = None
    reference_number: Optional[str] = None
    notes: Optional[str] = None
    document_url: Optional[str] = None
    is_recurring: Optional[bool] = None
    recurring_period: Optional[str] = Field(None, pattern=RECURRING_PATTERN)
    supply_type: Optional[str] = Field(None, pattern=SUPPLY_TYPE_PATTERN)
    vat_rate: Optional[float] = Field(None, ge=0, le=100)
    input_vat_amount: Optional[float] = Field(None, ge=0)
    sars_deduction_section: Optional[str] = Field(None, pattern=DEDUCTION_SECTION_PATTERN)


class ExpenseResponse(BaseModel):
    id: int
    date: datetime
    category: str
    category_display: str
    description: str
    amount: float
    vendor: Optional[str]
    reference_number: Optional[str]
    notes: Optional[str]
    document_url: Optional[str]
    is_recurring: bool
    recurring_period: Optional[str]
    status: str
    rejection_reason: Optional[str]
    supply_type: str
    vat_rate: Optional[float]
    input_vat_amount: Optional[float]
    sars_deduction_section: Optional[str]
    created_by: int
    creator_name: str = ""
    approved_by: Optional[int]
    approved_at: Optional[datetime]
    created_at: datetime


class ExpenseListResponse(BaseModel):
    data: List[ExpenseResponse]
    total: int
    page: int
    limit: int
    total_amount: float = 0


class RevenueCreate(BaseModel):
    date: datetime
    category: str = Field(..., pattern=REVENUE_CATEGORY_PATTERN)
    description: str = Field(..., min_length=1, max_length=500)
    amount: float = Field(..., gt=0)
    source: Optional[str] = None
    reference_number: Optional[str] = None
    notes: Optional[str] = None
    document_url: Optional[str] = None
    is_recurring: bool = False
    recurring_period: Optional[str] = Field(None, pattern=RECURRING_PATTERN)
    supply_type: str = Field("STANDARD", pattern=SUPPLY_TYPE_PATTERN)
    vat_rate: Optional[float] = Field(None, ge=0, le=100)
    output_vat_amount: Optional[float] = Field(None, ge=0)


class RevenueUpdate(BaseModel):
    date: Optional[datetime] = None
    category: Optional[str] = Field(None, pattern=REVENUE_CATEGORY_PATTERN)
    description: Optional[str] = Field(None, min_length=1, max_length=500)
    amount: Optional[float] = Field(None, gt=0)
    source: Optional[str] = None
    reference_number: Optional[str] = None
    notes: Optional[str] = None
    document_url: Optional[str] = None
    is_recurring: Optional[bool] = None
    recurring_period: Optional[str] = Field(None, pattern=RECURRING_PATTERN)
    supply_type: Optional[str] = Field(None, pattern=SUPPLY_TYPE_PATTERN)
    vat_rate: Optional[float] = Field(None, ge=0, le=100)
    output_vat_amount: Optional[float] = Field(None, ge=0)


class RevenueResponse(BaseModel):
    id: int
    date: datetime
    category: str
    category_display: str
    description: str
    amount: float
    source: Optional[str]
    reference_number: Optional[str]
    notes: Optional[str]
    document_url: Optional[str]
    is_recurring: bool
    recurring_period: Optional[str]
    status: str
    rejection_reason: Optional[str]
    supply_type: str
    vat_rate: Optional[float]
    output_vat_amount: Optional[float]
    created_by: int
    creator_name: str = ""
    approved_by: Optional[int]
    approved_at: Optional[datetime]
    created_at: datetime


class RevenueListResponse(BaseModel):
    data: List[RevenueResponse]
    total: int
    page: int
    limit: int
    total_amount: float = 0


class RejectRequest(BaseModel):
    reason: str = Field(..., min_length=1)
