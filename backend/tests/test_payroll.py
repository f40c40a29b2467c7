from datetime import datetime

import pytest

from conftest import auth_headers
from propertyhub.services.payroll import calculate_payslip_amounts, month_bounds
from propertyhub.services.sars_tax import calculate_monthly_paye


def test_payslip_amounts_use_sars_tables():
    amounts = calculate_payslip_amounts(20000, earnings={"bonus": 1000}, pension_fund=500)
    assert amounts["gross_pay"] == 21000.0
    assert amounts["income_tax"] == calculate_monthly_paye(21000, 30)["monthly_paye"]
    assert amounts["uif"] == 177.12
    assert amounts["employer_uif"] == 177.12
    assert amounts["total_deductions"] == pytest.approx(amounts["income_tax"] + 177.12 + 500, abs=0.01)
    assert amounts["net_pay"] == pytest.approx(21000 - amounts["total_deductions"], abs=0.01)


def test_payslip_amounts_accept_overrides():
    amounts = calculate_payslip_amounts(8000, income_tax=0, uif=50)
    assert amounts["income_tax"] == 0.0
    assert amounts["uif"] == 50.0
    assert amounts["net_pay"] == 7950.0


def test_payslip_amounts_follow_configured_rates():
    rates = {"uif_employee_rate": 0.5, "uif_employer_rate": 1.0, "uif_max_monthly": 17712,
             "primary_rebate": 20235}
    amounts = calculate_payslip_amounts(20000, rates=rates)
    assert amounts["uif"] == 88.56
    assert amounts["employer_uif"] == 177.12
    assert amounts["income_tax"] == calculate_monthly_paye(
        20000, 30, {"primary": 20235, "secondary": 9444, "tertiary": 3145}
    )["monthly_paye"]
    assert amounts["income_tax"] < calculate_monthly_paye(20000, 30)["monthly_paye"]


def test_month_bounds():
    start, end = month_bounds(datetime(2024, 2, 14, 9, 30))
    assert start == datetime(2024, 2, 1)
    assert end.day == 29


async def test_paying_a_request_issues_a_payslip(client, make_user):
    manager = await make_user("MANAGER")
    artisan = await make_user("ARTISAN")
    other_artisan = await make_user("ARTISAN")

    created = await client.post("/api/v1/payment-requests/", headers=auth_headers(artisan), json={
        "hours_worked": 10, "hourly_rate": 250, "notes": "Geyser replacement, unit 12B",
    })
    assert created.status_code == 200
    request = created.json()
    assert request["calculated_amount"] == 2500.0
    assert request["status"] == "PENDING"
    assert request["request_number"] == "PR-00001"

    for_someone_else = await client.post("/api/v1/payment-requests/", headers=auth_headers(artisan), json={
        "artisan_id": other_artisan.id, "amount": 100,
    })
    assert for_someone_else.status_code == 403

    url = f"/api/v1/payment-requests/{request['id']}/status"
    self_approval = await client.put(url, headers=auth_headers(artisan), json={"status": "PAID"})
    assert self_approval.status_code == 403

    approved = await client.put(url, headers=auth_headers(manager), json={"status": "APPROVED"})
    assert approved.json()["approved_date"] is not None

    paid = await client.put(url, headers=auth_headers(manager), json={"status": "PAID"})
    assert paid.json()["status"] == "PAID"
    assert paid.json()["payslip_number"] == f"PS-{datetime.utcnow():%Y-%m}-00001"

    reopened = await client.put(url, headers=auth_headers(manager), json={"status": "PENDING"})
    assert reopened.status_code == 400

    payslips = (await client.get("/api/v1/payslips/", headers=auth_headers(artisan))).json()
    assert payslips["total"] == 1
    payslip = payslips["data"][0]
    assert payslip["payment_request_id"] == request["id"]
    assert payslip["gross_pay"] == 2500.0
    assert payslip["uif"] == 25.0
    # Below the annual tax threshold
    assert payslip["income_tax"] == 0.0

    hidden = await client.get(f"/api/v1/payment-requests/{request['id']}", headers=auth_headers(other_artisan))
    assert hidden.status_code == 404


async def test_payment_request_needs_an_amount(client, make_user):
    artisan = await make_user("ARTISAN")
    response = await client.post("/api/v1/payment-requests/", headers=auth_headers(artisan), json={
        "hours_worked": 10,
    })
    assert response.status_code == 422


async def test_manual_payslip_uses_monthly_salary(client, make_user):
    accountant = await make_user("ACCOUNTANT")
    employee = await make_user("STAFF", monthly_salary=20000, tax_number="0123456789")

    response = await client.post("/api/v1/payslips/", headers=auth_headers(accountant), json={
        "employee_id": employee.id,
        "pay_period_start": "2025-03-01T00:00:00",
        "pay_period_end": "2025-03-31T23:59:59",
        "payment_date": "2025-03-25T00:00:00",
        "overtime_pay": 1500,
    })
    assert response.status_code == 200
    payslip = response.json()
    assert payslip["payslip_number"] == "PS-000001"
    assert payslip["basic_salary"] == 20000.0
    assert payslip["gross_pay"] == 21500.0
    assert payslip["tax_number"] == "0123456789"
    assert "Monthly salary from employee profile" in payslip["notes"]

    own = await client.get(f"/api/v1/payslips/{payslip['id']}", headers=auth_headers(employee))
    assert own.status_code == 200

    stranger = await make_user("STAFF")
    hidden = await client.get(f"/api/v1/payslips/{payslip['id']}", headers=auth_headers(stranger))
    assert hidden.status_code == 404

    backwards = await client.post("/api/v1/payslips/", headers=auth_headers(accountant), json={
        "employee_id": employee.id,
        "pay_period_start": "2025-03-31T00:00:00",
        "pay_period_end": "2025-03-01T00:00:00",
    })
    assert backwards.status_code == 422
