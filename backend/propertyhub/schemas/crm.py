"""Lead and campaign schemas"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, EmailStr, Field

LEAD_STATUS_PATTERN = "^(NEW|CONTACTED|QUALIFIED|PROPOSAL_SENT|NEGOTIATION|WON|LOST)$"


class LeadCreate(BaseModel):
    customer_name: str = Field(..., min_length=1, max_length=200)
    customer_email: EmailStr
    customer_phone: Optional[str] = None
    address: Optional[str] = None
    service_type: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = None
    estimated_value: Optional[float] = Field(None, ge=0)
    notes: Optional[str] = None


class LeadStatusUpdate(BaseModel):
    status: str = Field(..., pattern=LEAD_STATUS_PATTERN)
    notes: Optional[str] = None


class LeadResponse(BaseModel):
    id: int
    customer_name: str
    customer_email: str
    customer_phone: Optional[str]
    address: Optional[str]
    service_type: str
    description: Optional[str]
    estimated_value: Optional[float]
    status: str
    status_display: str
    notes: Optional[str]
    created_by: int
    created_at: datetime


class LeadListResponse(BaseModel):
    data: List[LeadResponse]
    total: int
    page: int
    limit: int


class TargetCriteria(BaseModel):
    statuses: List[str] = []
    service_types: List[str] = []
    estimated_value_min: Optional[float] = Field(None, ge=0)
    estimated_value_max: Optional[float] = Field(None, ge=0)
    target_customer_ids: List[int] = []
    excluded_customer_ids: List[int] = []


class CampaignCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = None
    subject: str = Field(..., min_length=1, max_length=300)
    html_body: str = Field(..., min_length=1)
    target_criteria: TargetCriteria = TargetCriteria()
    scheduled_for: Optional[datetime] = None


class CampaignUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = None
    subject: Optional[str] = Field(None, min_length=1, max_length=300)
    html_body: Optional[str] = Field(None, min_length=1)
    target_criteria: Optional[TargetCriteria] = None
    scheduled_for: Optional[datetime] = None


class CampaignResponse(BaseModel):
    id: int
    name: str
    description: Optional[str]
    subject: str
    html_body: str
    target_criteria: Dict[str, Any]
    status: str
    status_display: str
    scheduled_for: Optional[datetime]
    sent_at: Optional[datetime]
    total_recipients: int
    total_sent: int
    total_failed: int
    last_error: Optional[str]
    created_by: int
    created_at: datetime


class CampaignListResponse(BaseModel):
    data: List[CampaignResponse]
    total: int
    page: int
    limit: int


class RecipientPreview(BaseModel):
    total: int
    recipients: List[Dict[str, Any]]


class CampaignSendResult(BaseModel):
    campaign_id: int
    status: str
    total_recipients: int
    total_sent: int
    total_failed: int
    successful: List[Dict[str, Any]]
    failed: List[Dict[str, Any]]
