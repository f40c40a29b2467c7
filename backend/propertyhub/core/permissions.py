"""
Roles and permissions

Static role -> permission map. Admin roles see every tenant's data;
contractor roles and property managers are scoped to rows they created.
"""

from typing import Dict, Iterable, Set

from propertyhub.core.errors import ForbiddenError

SENIOR_ADMIN = "SENIOR_ADMIN"
JUNIOR_ADMIN = "JUNIOR_ADMIN"
MANAGER = "MANAGER"
ACCOUNTANT = "ACCOUNTANT"
SALES_AGENT = "SALES_AGENT"
ARTISAN = "ARTISAN"
STAFF = "STAFF"
CUSTOMER = "CUSTOMER"
PROPERTY_MANAGER = "PROPERTY_MANAGER"
CONTRACTOR = "CONTRACTOR"
CONTRACTOR_SENIOR_MANAGER = "CONTRACTOR_SENIOR_MANAGER"
CONTRACTOR_JUNIOR_MANAGER = "CONTRACTOR_JUNIOR_MANAGER"

ALL_ROLES = [
    SENIOR_ADMIN, JUNIOR_ADMIN, MANAGER, ACCOUNTANT, SALES_AGENT, ARTISAN,
    STAFF, CUSTOMER, PROPERTY_MANAGER, CONTRACTOR, CONTRACTOR_SENIOR_MANAGER,
    CONTRACTOR_JUNIOR_MANAGER,
]

ADMIN_ROLES = {SENIOR_ADMIN, JUNIOR_ADMIN}
CONTRACTOR_ROLES = {CONTRACTOR, CONTRACTOR_SENIOR_MANAGER, CONTRACTOR_JUNIOR_MANAGER}

ROLE_DISPLAY = {
    SENIOR_ADMIN: "Senior Admin",
    JUNIOR_ADMIN: "Junior Admin",
    MANAGER: "Manager",
    ACCOUNTANT: "Accountant",
    SALES_AGENT: "Sales Agent",
    ARTISAN: "Artisan",
    STAFF: "Staff",
    CUSTOMER: "Customer",
    PROPERTY_MANAGER: "Property Manager",
    CONTRACTOR: "Contractor",
    CONTRACTOR_SENIOR_MANAGER: "Contractor Senior Manager",
    CONTRACTOR_JUNIOR_MANAGER: "Contractor Junior Manager",
}

VIEW_DASHBOARD = "VIEW_DASHBOARD"
MANAGE_INVOICES = "MANAGE_INVOICES"
MANAGE_ORDERS = "MANAGE_ORDERS"
MANAGE_QUOTATIONS = "MANAGE_QUOTATIONS"
MANAGE_PAYMENT_REQUESTS = "MANAGE_PAYMENT_REQUESTS"
CREATE_PAYMENT_REQUESTS = "CREATE_PAYMENT_REQUESTS"
MANAGE_PAYSLIPS = "MANAGE_PAYSLIPS"
MANAGE_ASSETS = "MANAGE_ASSETS"
MANAGE_LIABILITIES = "MANAGE_LIABILITIES"
MANAGE_EXPENSES = "MANAGE_EXPENSES"
APPROVE_EXPENSES = "APPROVE_EXPENSES"
MANAGE_REVENUES = "MANAGE_REVENUES"
VIEW_FINANCIAL_REPORTS = "VIEW_FINANCIAL_REPORTS"
MANAGE_LEADS = "MANAGE_LEADS"
MANAGE_CAMPAIGNS = "MANAGE_CAMPAIGNS"
MANAGE_REGISTRATIONS = "MANAGE_REGISTRATIONS"
MANAGE_CUSTOMERS = "MANAGE_CUSTOMERS"
MANAGE_MAINTENANCE = "MANAGE_MAINTENANCE"
SUBMIT_MAINTENANCE = "SUBMIT_MAINTENANCE"
VIEW_AUDIT_LOGS = "VIEW_AUDIT_LOGS"

_FINANCE = {
    MANAGE_INVOICES, MANAGE_ORDERS, MANAGE_QUOTATIONS, MANAGE_PAYMENT_REQUESTS,
    MANAGE_PAYSLIPS, MANAGE_ASSETS, MANAGE_LIABILITIES, MANAGE_EXPENSES,
    MANAGE_REVENUES, VIEW_FINANCIAL_REPORTS,
}

ROLE_PERMISSIONS: Dict[str, Set[str]] = {
    SENIOR_ADMIN: _FINANCE | {
        VIEW_DASHBOARD, APPROVE_EXPENSES, MANAGE_LEADS, MANAGE_CAMPAIGNS,
        MANAGE_REGISTRATIONS, MANAGE_CUSTOMERS, MANAGE_MAINTENANCE,
        VIEW_AUDIT_LOGS, CREATE_PAYMENT_REQUESTS,
    },
    JUNIOR_ADMIN: _FINANCE | {
        VIEW_DASHBOARD, MANAGE_LEADS, MANAGE_CAMPAIGNS, MANAGE_REGISTRATIONS,
        MANAGE_CUSTOMERS, CREATE_PAYMENT_REQUESTS,
    },
    MANAGER: {VIEW_DASHBOARD, MANAGE_ORDERS, MANAGE_QUOTATIONS, MANAGE_LEADS,
              MANAGE_PAYMENT_REQUESTS},
    ACCOUNTANT: _FINANCE | {VIEW_DASHBOARD, APPROVE_EXPENSES},
    SALES_AGENT: {MANAGE_LEADS, MANAGE_QUOTATIONS},
    ARTISAN: {CREATE_PAYMENT_REQUESTS},
    STAFF: set(),
    CUSTOMER: {SUBMIT_MAINTENANCE},
    PROPERTY_MANAGER: {
        VIEW_DASHBOARD, MANAGE_CUSTOMERS, MANAGE_MAINTENANCE, MANAGE_INVOICES,
        MANAGE_EXPENSES, MANAGE_REVENUES, MANAGE_ASSETS, MANAGE_LIABILITIES,
        VIEW_FINANCIAL_REPORTS,
    },
    CONTRACTOR: _FINANCE | {VIEW_DASHBOARD, APPROVE_EXPENSES, MANAGE_LEADS,
                            CREATE_PAYMENT_REQUESTS, VIEW_AUDIT_LOGS},
    CONTRACTOR_SENIOR_MANAGER: _FINANCE | {VIEW_DASHBOARD, APPROVE_EXPENSES, MANAGE_LEADS,
                                           CREATE_PAYMENT_REQUESTS, VIEW_AUDIT_LOGS},
    CONTRACTOR_JUNIOR_MANAGER: {VIEW_DASHBOARD, MANAGE_INVOICES, MANAGE_ORDERS,
                                MANAGE_QUOTATIONS, MANAGE_EXPENSES},
}


def get_permissions(role: str) -> Set[str]:
    return ROLE_PERMISSIONS.get(role, set())


def has_permission(role: str, permission: str) -> bool:
    return permission in get_permissions(role)


def is_admin(role: str) -> bool:
    return role in ADMIN_ROLES


def is_contractor(role: str) -> bool:
    return role in CONTRACTOR_ROLES


def is_tenant_scoped(role: str) -> bool:
    """Roles that only see rows they created themselves"""
    return role in CONTRACTOR_ROLES or role == PROPERTY_MANAGER


def require_permission(user, permission: str) -> None:
    if not has_permission(user.role, permission):
        raise ForbiddenError(f"You do not have permission to perform this action ({permission})")


def require_role(user, roles: Iterable[str]) -> None:
    if user.role not in set(roles):
        raise ForbiddenError("You do not have access to this resource")


def require_admin(user) -> None:
    require_role(user, ADMIN_ROLES)
