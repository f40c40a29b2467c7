"""API v1 router aggregation"""
from fastapi import APIRouter

from propertyhub.api.api_v1.endpoints import (
    auth, invoices, orders, quotations, payment_requests, payslips,
    assets, liabilities, operational_expenses, alternative_revenues,
    reports, insights, registrations, packages, leads, campaigns,
    customers, maintenance_requests, notifications, files, dashboard,
    audit_logs, system
)

api_router = APIRouter()

api_router.include_router(auth.router, prefix="/auth", tags=["Authentication"])

# Billing and operations
api_router.include_router(invoices.router, prefix="/invoices", tags=["Invoices"])
api_router.include_router(orders.router, prefix="/orders", tags=["Orders"])
api_router.include_router(quotations.router, prefix="/quotations", tags=["Quotations"])
api_router.include_router(payment_requests.router, prefix="/payment-requests", tags=["Payment requests"])
api_router.include_router(payslips.router, prefix="/payslips", tags=["Payslips"])

# Accounting
api_router.include_router(assets.router, prefix="/assets", tags=["Assets"])
api_router.include_router(liabilities.router, prefix="/liabilities", tags=["Liabilities"])
api_router.include_router(operational_expenses.router, prefix="/operational-expenses", tags=["Operational expenses"])
api_router.include_router(alternative_revenues.router, prefix="/alternative-revenues", tags=["Alternative revenue"])
api_router.include_router(reports.router, prefix="/reports", tags=["Financial reports"])
api_router.include_router(insights.router, prefix="/insights", tags=["Insights"])

# Sign-up and CRM
api_router.include_router(registrations.router, prefix="/registrations", tags=["Registrations"])
api_router.include_router(packages.router, prefix="/packages", tags=["Packages"])
api_router.include_router(leads.router, prefix="/leads", tags=["Leads"])
api_router.include_router(campaigns.router, prefix="/campaigns", tags=["Campaigns"])

# Property management
api_router.include_router(customers.router, prefix="/customers", tags=["Customers"])
api_router.include_router(maintenance_requests.router, prefix="/maintenance-requests", tags=["Maintenance requests"])

# Platform
api_router.include_router(notifications.router, prefix="/notifications", tags=["Notifications"])
api_router.include_router(files.router, prefix="/files", tags=["Files"])
api_router.include_router(dashboard.router, prefix="/dashboard", tags=["Dashboard"])
api_router.include_router(audit_logs.router, prefix="/audit-logs", tags=["Audit log"])
api_router.include_router(system.router, prefix="/system", tags=["System"])
