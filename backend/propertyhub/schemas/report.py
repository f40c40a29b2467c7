from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class ProfitAndLoss(BaseModel):
    period_start: datetime
    period_end: datetime
    invoice_revenue: float
    paid_invoice_count: int
    alternative_revenue: float
    alternative_revenue_breakdown: Dict[str, float]
    total_revenue: float
    material_costs: float
    labour_costs: float
    artisan_payments: float
    operational_expenses: float
    operational_expense_breakdown: Dict[str, float]
    total_expenses: float
    net_profit: float
    profit_margin: float


class BalanceSheet(BaseModel):
    as_of: datetime
    total_assets: float
    asset_count: int
    top_assets: List[Dict[str, Any]]
    accounts_payable: float
    loans: float
    credit_lines: float
    other_liabilities: float
    pending_payments: float
    total_liabilities: float
    equity: float


class CashFlowStatement(BaseModel):
    period_start: datetime
    period_end: datetime
    operating: Dict[str, float]
    investing: Dict[str, float]
    financing: Dict[str, float]
    net_change: float
    beginning_cash: float
    ending_cash: float


class SARSRates(BaseModel):
    company_tax_rate: float = Field(27.0, ge=0, le=100)
    vat_rate: float = Field(15.0, ge=0, le=100)
    uif_employee_rate: float = Field(1.0, ge=0, le=100)
    uif_employer_rate: float = Field(1.0, ge=0, le=100)
    uif_max_monthly: float = Field(17712.0, ge=0)
    sdl_rate: float = Field(1.0, ge=0, le=100)
    sdl_threshold: float = Field(500000.0, ge=0)
    primary_rebate: float = Field(17235.0, ge=0)
    secondary_rebate: float = Field(9444.0, ge=0)
    tertiary_rebate: float = Field(3145.0, ge=0)


class SARSRatesUpdate(BaseModel):
    company_tax_rate: Optional[float] = Field(None, ge=0, le=100)
    vat_rate: Optional[float] = Field(None, ge=0, le=100)
    uif_employee_rate: Optional[float] = Field(None, ge=0, le=100)
    uif_employer_rate: Optional[float] = Field(None, ge=0, le=100)
    uif_max_monthly: Optional[float] = Field(None, ge=0)
    sdl_rate: Optional[float] = Field(None, ge=0, le=100)
    sdl_threshold: Optional[float] = Field(None, ge=0)
    primary_rebate: Optional[float] = Field(None, ge=0)
    secondary_rebate: Optional[float] = Field(None, ge=0)
    tertiary_rebate: Optional[float] = Field(None, ge=0)


class Insight(BaseModel):
    type: str
    title: str
    detail: str
    action: Optional[str] = None


class SARSReport(BaseModel):
    period_start: datetime
    period_end: datetime
    rates: SARSRates
    vat201: Dict[str, Any]
    emp201: Dict[str, Any]
    it14: Dict[str, Any]
    provisional_tax: Dict[str, Any]
    depreciation: Dict[str, Any]
    insights: List[Insight]


class InsightsResponse(BaseModel):
    period_start: datetime
    period_end: datetime
    insights: List[Insight]
    total: int
    urgent: int
    warning: int


class FinancialReportCreate(BaseModel):
    report_type: str = Field(..., pattern="^(MONTHLY_PL|QUARTERLY_PL|ANNUAL_PL|VAT201|EMP201)$")
    year: int = Field(..., ge=2000, le=2100)
    month: Optional[int] = Field(None, ge=1, le=12)
    quarter: Optional[int] = Field(None, ge=1, le=4)


class FinancialReportResponse(BaseModel):
    id: int
    report_type: str
    type_display: str
    report_name: str
    period_start: datetime
    period_end: datetime
    status: str
    data: Dict[str, Any]
    generated_by: int
    created_at: datetime


class FinancialReportListResponse(BaseModel):
    data: List[FinancialReportResponse]
    total: int
    page: int
    limit: int


class TaxCalculationResponse(BaseModel):
    annual_paye: Dict[str, Any]
    monthly_paye: float
    uif: Dict[str, float]
    tax_threshold: int


class PayslipAmounts(BaseModel):
    gross_pay: float = Field(0, ge=0)
    income_tax: float = Field(0, ge=0)
    uif: float = Field(0, ge=0)


class EMP201SummaryRequest(BaseModel):
    payslips: List[PayslipAmounts]
    monthly_payroll: float = Field(..., ge=0)
