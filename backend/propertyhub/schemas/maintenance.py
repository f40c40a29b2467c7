"""Tenant (customer) and maintenance request schemas"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, EmailStr, Field

MAINTENANCE_STATUS_PATTERN = "^(REVIEWED|APPROVED|IN_PROGRESS|COMPLETED|REJECTED)$"


class CustomerCreate(BaseModel):
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    email: EmailStr
    phone: Optional[str] = None
    building_name: Optional[str] = None
    unit_number: Optional[str] = None
    address: Optional[str] = None
    user_id: Optional[int] = None


class CustomerResponse(BaseModel):
    id: int
    property_manager_id: int
    user_id: Optional[int]
    first_name: str
    last_name: str
    full_name: str
    email: str
    phone: Optional[str]
    building_name: Optional[str]
    unit_number: Optional[str]
    address: Optional[str]
    status: str
    created_at: datetime

    class Config:
        from_attributes = True


class CustomerListResponse(BaseModel):
    data: List[CustomerResponse]
    total: int
    page: int
    limit: int


class MaintenanceRequestCreate(BaseModel):
    customer_id: int
    title: str = Field(..., min_length=3, max_length=200)
    description: str = Field(..., min_length=10)
    category: str = Field(..., min_length=2, max_length=100)
    urgency: str = Field("NORMAL", pattern="^(LOW|NORMAL|HIGH|URGENT)$")
    photos: List[str] = []


class MaintenanceStatusUpdate(BaseModel):
    status: str = Field(..., pattern=MAINTENANCE_STATUS_PATTERN)
    response_notes: Optional[str] = None
    rejection_reason: Optional[str] = None


class MaintenanceRequestResponse(BaseModel):
    id: int
    request_number: str
    customer_id: int
    customer_name: str = ""
    property_manager_id: int
    title: str
    description: str
    category: str
    urgency: str
    urgency_display: str
    photos: List[str]
    building_name: Optional[str]
    unit_number: Optional[str]
    address: Optional[str]
    status: str
    status_display: str
    submitted_date: Optional[datetime]
    reviewed_date: Optional[datetime]
    approved_date: Optional[datetime]
    completed_date: Optional[datetime]
    response_notes: Optional[str]
    rejection_reason: Optional[str]
    created_at: datetime


class MaintenanceRequestListResponse(BaseModel):
    data: List[MaintenanceRequestResponse]
    total: int
    page: int
    limit: int
