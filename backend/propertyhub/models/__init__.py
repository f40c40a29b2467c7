# Importing every model registers its table on Base.metadata

from propertyhub.models.user import User
from propertyhub.models.package import Package, Subscription
from propertyhub.models.registration import PendingRegistration
from propertyhub.models.order import Order
from propertyhub.models.invoice import Invoice
from propertyhub.models.quotation import Quotation
from propertyhub.models.payment_request import PaymentRequest
from propertyhub.models.payslip import Payslip
from propertyhub.models.asset import Asset
from propertyhub.models.liability import Liability
from propertyhub.models.operational_expense import OperationalExpense, AlternativeRevenue
from propertyhub.models.financial_report import FinancialReport
from propertyhub.models.lead import Lead
from propertyhub.models.campaign import Campaign
from propertyhub.models.customer import Customer
from propertyhub.models.maintenance_request import MaintenanceRequest
from propertyhub.models.notification import Notification
from propertyhub.models.audit_log import AuditLog

__all__ = [
    "User",
    "Package",
    "Subscription",
    "PendingRegistration",
    "Order",
    "Invoice",
    "Quotation",
    "PaymentRequest",
    "Payslip",
    "Asset",
    "Liability",
    "OperationalExpense",
    "AlternativeRevenue",
    "FinancialReport",
    "Lead",
    "Campaign",
    "Customer",
    "MaintenanceRequest",
    "Notification",
    "AuditLog",
]
