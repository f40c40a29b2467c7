from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, EmailStr, Field

from propertyhub.core.permissions import ALL_ROLES

ROLE_PATTERN = "^(" + "|".join(ALL_ROLES) + ")$"


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1)


class UserCreate(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=6)
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    phone: Optional[str] = None
    role: str = Field(..., pattern=ROLE_PATTERN)
    company_name: Optional[str] = None
    monthly_salary: Optional[float] = Field(None, ge=0)
    hourly_rate: Optional[float] = Field(None, ge=0)
    daily_rate: Optional[float] = Field(None, ge=0)
    date_of_birth: Optional[datetime] = None
    tax_number: Optional[str] = None
    uif_number: Optional[str] = None


class UserResponse(BaseModel):
    id: int
    email: str
    first_name: str
    last_name: str
    full_name: str
    phone: Optional[str] = None
    role: str
    role_display: str
    company_name: Optional[str] = None
    is_active: bool
    created_at: datetime

    class Config:
        from_attributes = True


class UserListResponse(BaseModel):
    data: List[UserResponse]
    total: int
    page: int
    limit: int


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user: UserResponse
    permissions: List[str] = []
