"""Sign-up, package and subscription schemas"""

from datetime import datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, EmailStr, Field


class PackageResponse(BaseModel):
    id: int
    name: str
    display_name: str
    description: Optional[str]
    type: str
    base_price: float
    additional_user_price: float
    additional_tenant_price: float
    additional_contractor_price: float
    trial_days: int
    features: Dict[str, bool]
    is_active: bool


class PendingRegistrationCreate(BaseModel):
    email: EmailStr
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    phone: str = Field(..., min_length=1, max_length=50)
    company_name: Optional[str] = None
    account_type: str = Field(..., pattern="^(CONTRACTOR|PROPERTY_MANAGER)$")
    package_id: int
    additional_users: int = Field(0, ge=0)
    additional_tenants: int = Field(0, ge=0)
    additional_contractors: int = Field(0, ge=0)


class RegistrationApprove(BaseModel):
    password: str = Field(..., min_length=6)
    skip_payment_check: bool = False


class RegistrationReject(BaseModel):
    reason: str = Field(..., min_length=1)


class RegistrationMarkPaid(BaseModel):
    payment_id: Optional[str] = None


class PendingRegistrationResponse(BaseModel):
    id: int
    email: str
    first_name: str
    last_name: str
    phone: str
    company_name: Optional[str]
    account_type: str
    package_id: int
    package_name: str = ""
    package_display_name: str = ""
    base_price: float = 0
    additional_users: int
    additional_tenants: int
    additional_contractors: int
    has_paid: bool
    payment_id: Optional[str]
    is_approved: bool
    approved_at: Optional[datetime]
    user_id: Optional[int]
    rejected_at: Optional[datetime]
    rejection_reason: Optional[str]
    status_display: str
    created_at: datetime


class PendingRegistrationListResponse(BaseModel):
    data: List[PendingRegistrationResponse]
    total: int
    page: int
    limit: int


class SubscriptionResponse(BaseModel):
    id: int
    user_id: int
    package_id: int
    status: str
    start_date: Optional[datetime]
    trial_ends_at: Optional[datetime]
    next_billing_date: Optional[datetime]
    max_users: int
    max_tenants: int
    max_contractors: int
    current_users: int

    class Config:
        from_attributes = True


class ApprovalResponse(BaseModel):
    registration: PendingRegistrationResponse
    user_id: int
    subscription: SubscriptionResponse
