from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, EmailStr, Field

ORDER_STATUS_PATTERN = "^(PENDING|ASSIGNED|IN_PROGRESS|COMPLETED|CANCELLED)$"


class OrderCreate(BaseModel):
    customer_name: str = Field(..., min_length=1)
    customer_email: EmailStr
    customer_phone: Optional[str] = None
    address: Optional[str] = None
    service_type: str = Field(..., min_length=1)
    description: Optional[str] = None
    assigned_to_id: Optional[int] = None
    material_cost: float = Field(0, ge=0)
    labour_cost: float = Field(0, ge=0)


class OrderStatusUpdate(BaseModel):
    status: str = Field(..., pattern=ORDER_STATUS_PATTERN)
    assigned_to_id: Optional[int] = None


class OrderCostsUpdate(BaseModel):
    material_cost: float = Field(..., ge=0)
    labour_cost: float = Field(..., ge=0)


class OrderResponse(BaseModel):
    id: int
    order_number: str
    customer_name: str
    customer_email: str
    customer_phone: Optional[str]
    address: Optional[str]
    service_type: str
    description: Optional[str]
    status: str
    status_display: str
    material_cost: float
    labour_cost: float
    total_cost: float
    assigned_to_id: Optional[int]
    assigned_to_name: str = ""
    started_at: Optional[datetime]
    completed_at: Optional[datetime]
    created_by: int
    created_at: datetime


class OrderListResponse(BaseModel):
    data: List[OrderResponse]
    total: int
    page: int
    limit: int
