from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

from propertyhub.services.sars_tax import WEAR_AND_TEAR_RATES


def check_wear_and_tear_category(v: Optional[str]) -> Optional[str]:
    if v is not None and v not in WEAR_AND_TEAR_RATES:
        raise ValueError(f"Unknown wear-and-tear category: {v}")
    return v


class AssetBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = None
    category: str = Field(..., min_length=1, max_length=100)
    serial_number: Optional[str] = None
    purchase_date: datetime
    purchase_price: float = Field(..., ge=0)
    current_value: float = Field(..., ge=0)
    condition: str = Field("GOOD", pattern="^(NEW|GOOD|FAIR|POOR)$")
    location: Optional[str] = None
    notes: Optional[str] = None
    images: List[str] = []
    useful_life_years: Optional[int] = Field(None, ge=1, le=50)
    residual_value: float = Field(0, ge=0)
    sars_wear_and_tear_category: Optional[str] = None
    accumulated_depreciation: float = Field(0, ge=0)

    @field_validator("sars_wear_and_tear_category")
    @classmethod
    def validate_category(cls, v: Optional[str]) -> Optional[str]:
        return check_wear_and_tear_category(v)


class AssetCreate(AssetBase):
    pass


class AssetUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = None
    category: Optional[str] = Field(None, min_length=1, max_length=100)
    serial_number: Optional[str] = None
    purchase_date: Optional[datetime] = None
    purchase_price: Optional[float] = Field(None, ge=0)
    current_value: Optional[float] = Field(None, ge=0)
    condition: Optional[str] = Field(None, pattern="^(NEW|GOOD|FAIR|POOR)$")
    location: Optional[str] = None
    notes: Optional[str] = None
    images: Optional[List[str]] = None
    useful_life_years: Optional[int] = Field(None, ge=1, le=50)
    residual_value: Optional[float] = Field(None, ge=0)
    sars_wear_and_tear_category: Optional[str] = None
    accumulated_depreciation: Optional[float] = Field(None, ge=0)

    @field_validator("sars_wear_and_tear_category")
    @classmethod
    def validate_category(cls, v: Optional[str]) -> Optional[str]:
        return check_wear_and_tear_category(v)


class AssetResponse(BaseModel):
    id: int
    name: str
    description: Optional[str]
    category: str
    serial_number: Optional[str]
    purchase_date: datetime
    purchase_price: float
    current_value: float
    condition: str
    condition_display: str
    location: Optional[str]
    notes: Optional[str]
    images: List[str] = []
    useful_life_years: Optional[int]
    residual_value: float
    sars_wear_and_tear_category: Optional[str]
    accumulated_depreciation: float
    annual_depreciation: float = 0
    created_by: int
    created_at: datetime


class AssetListResponse(BaseModel):
    data: List[AssetResponse]
    total: int
    page: int
    limit: int
