from datetime import datetime

from pydantic import BaseModel


class AdminDashboard(BaseModel):
    generated_at: datetime
    month_revenue: float
    outstanding_invoice_balance: float
    overdue_invoice_count: int
    pending_payment_requests_total: float
    pending_payment_request_count: int
    open_maintenance_requests: int
    pending_registrations: int
    unpaid_liabilities: float
    unpaid_liability_count: int
