from datetime import datetime, timedelta

import pytest

from conftest import auth_headers


def invoice_payload(total: float = 1150, tax: float = 150) -> dict:
    return {
        "customer_name": "Harbour View Estate",
        "customer_email": "finance@harbourview.co.za",
        "items": [{"description": "Roof repairs", "quantity": 1, "unit_price": total - tax, "total": total - tax}],
        "subtotal": total - tax,
        "tax": tax,
        "total": total,
    }


async def paid_invoice(client, user, **kwargs) -> dict:
    created = (await client.post("/api/v1/invoices/", headers=auth_headers(user), json=invoice_payload(**kwargs))).json()
    paid = await client.put(f"/api/v1/invoices/{created['id']}/status", headers=auth_headers(user),
                            json={"status": "PAID"})
    assert paid.json()["status"] == "PAID"
    return created


async def test_profit_and_loss_is_tenant_scoped(client, make_user):
    admin = await make_user("SENIOR_ADMIN")
    contractor = await make_user("CONTRACTOR")
    await paid_invoice(client, admin)
    await paid_invoice(client, contractor, total=575, tax=75)

    everything = (await client.get("/api/v1/reports/profit-loss", headers=auth_headers(admin))).json()
    assert everything["invoice_revenue"] == 1725.0
    assert everything["paid_invoice_count"] == 2

    own = (await client.get("/api/v1/reports/profit-loss", headers=auth_headers(contractor))).json()
    assert own["invoice_revenue"] == 575.0
    assert own["net_profit"] == 575.0
    assert own["profit_margin"] == 100.0


async def test_period_validation(client, make_user):
    admin = await make_user("SENIOR_ADMIN")
    bad_period = await client.get("/api/v1/reports/profit-loss", headers=auth_headers(admin),
                                  params={"period": "fortnight"})
    assert bad_period.status_code == 400

    half_range = await client.get("/api/v1/reports/cash-flow", headers=auth_headers(admin),
                                  params={"start_date": "2025-03-01"})
    assert half_range.status_code == 400

    backwards = await client.get("/api/v1/reports/profit-loss", headers=auth_headers(admin),
                                 params={"start_date": "2025-03-31", "end_date": "2025-03-01"})
    assert backwards.status_code == 400


async def test_csv_export(client, make_user):
    admin = await make_user("SENIOR_ADMIN")
    await paid_invoice(client, admin)

    response = await client.get("/api/v1/reports/export.csv", headers=auth_headers(admin),
                                params={"period": "current_month"})
    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/csv")
    assert "attachment; filename=profit_loss_" in response.headers["content-disposition"]
    assert "Net profit" in response.text


async def test_reports_need_permission(client, make_user):
    artisan = await make_user("ARTISAN")
    for path in ("/api/v1/reports/profit-loss", "/api/v1/reports/balance-sheet", "/api/v1/reports/sars"):
        response = await client.get(path, headers=auth_headers(artisan))
        assert response.status_code == 403


async def test_sars_rate_overrides(client, make_user):
    admin = await make_user("SENIOR_ADMIN")
    accountant = await make_user("ACCOUNTANT")

    defaults = (await client.get("/api/v1/reports/sars/rates", headers=auth_headers(accountant))).json()
    assert defaults["vat_rate"] == 15.0
    assert defaults["company_tax_rate"] == 27.0

    forbidden = await client.put("/api/v1/reports/sars/rates", headers=auth_headers(accountant),
                                 json={"vat_rate": 16})
    assert forbidden.status_code == 403

    updated = await client.put("/api/v1/reports/sars/rates", headers=auth_headers(admin),
                               json={"vat_rate": 16})
    assert updated.json()["vat_rate"] == 16.0
    assert updated.json()["company_tax_rate"] == 27.0

    report = (await client.get("/api/v1/reports/sars", headers=auth_headers(admin))).json()
    assert report["rates"]["vat_rate"] == 16.0

    reset = await client.delete("/api/v1/reports/sars/rates", headers=auth_headers(admin))
    assert reset.json()["vat_rate"] == 15.0

    out_of_range = await client.put("/api/v1/reports/sars/rates", headers=auth_headers(admin),
                                    json={"vat_rate": 150})
    assert out_of_range.status_code == 422


async def test_saved_financial_reports(client, make_user):
    accountant = await make_user("ACCOUNTANT")
    contractor = await make_user("CONTRACTOR")

    created = await client.post("/api/v1/reports/financial", headers=auth_headers(accountant),
                                json={"report_type": "MONTHLY_PL", "year": 2025, "month": 3})
    assert created.status_code == 200
    report = created.json()
    assert report["status"] == "COMPLETED"
    assert report["period_start"].startswith("2025-03-01")
    assert report["period_end"].startswith("2025-03-31")
    assert "net_profit" in report["data"]

    missing_month = await client.post("/api/v1/reports/financial", headers=auth_headers(accountant),
                                      json={"report_type": "MONTHLY_PL", "year": 2025})
    assert missing_month.status_code == 400

    listing = (await client.get("/api/v1/reports/financial", headers=auth_headers(accountant))).json()
    assert listing["total"] == 1

    hidden = await client.get(f"/api/v1/reports/financial/{report['id']}", headers=auth_headers(contractor))
    assert hidden.status_code == 404


async def test_tax_calculators(client, make_user):
    accountant = await make_user("ACCOUNTANT")
    headers = auth_headers(accountant)

    vat = (await client.get("/api/v1/reports/sars/vat", headers=headers, params={"amount": 115})).json()
    assert vat["vat_amount"] == 15.0

    paye = (await client.get("/api/v1/reports/sars/paye", headers=headers, params={"monthly_gross": 25000})).json()
    assert paye["uif"]["employee_contribution"] == 177.12
    assert paye["tax_threshold"] == 95750

    depreciation = await client.get("/api/v1/reports/sars/depreciation", headers=headers, params={
        "purchase_price": 10000, "residual_value": 1000, "useful_life_years": 3,
    })
    assert depreciation.json()["annual_depreciation"] == 3000.0

    too_much_residual = await client.get("/api/v1/reports/sars/depreciation", headers=headers, params={
        "purchase_price": 1000, "residual_value": 2000,
    })
    assert too_much_residual.status_code == 400

    provisional = (await client.get("/api/v1/reports/sars/provisional", headers=headers,
                                    params={"estimated_annual_profit": 100000})).json()
    assert provisional["required_payment"] == 13500.0

    fourth = await client.get("/api/v1/reports/sars/provisional", headers=headers,
                              params={"estimated_annual_profit": 100000, "payment_number": 4})
    assert fourth.status_code == 422

    emp201 = await client.post("/api/v1/reports/sars/emp201", headers=headers, json={
        "payslips": [{"gross_pay": 20000, "income_tax": 2500, "uif": 177.12}],
        "monthly_payroll": 20000,
    })
    assert emp201.json()["total_liability"] == 2854.24

    codes = (await client.get("/api/v1/reports/sars/codes", headers=headers)).json()
    assert {"tax_year", "deduction_sections", "income_source_codes", "irp5_codes"} <= set(codes)


async def test_rate_overrides_drive_emp201_and_it14(client, make_user):
    admin = await make_user("SENIOR_ADMIN")
    accountant = await make_user("ACCOUNTANT")
    employee = await make_user("STAFF", monthly_salary=20000)
    await paid_invoice(client, admin)

    month_start = datetime.utcnow().replace(day=1, hour=0, minute=0, second=0, microsecond=0)
    payslip = await client.post("/api/v1/payslips/", headers=auth_headers(accountant), json={
        "employee_id": employee.id,
        "pay_period_start": month_start.isoformat(),
        "pay_period_end": (month_start + timedelta(days=27)).isoformat(),
    })
    assert payslip.json()["gross_pay"] == 20000.0

    before = (await client.get("/api/v1/reports/sars", headers=auth_headers(admin))).json()
    assert before["emp201"]["monthly_payroll"] == 20000.0
    assert before["emp201"]["sdl_applicable"] is False
    assert before["emp201"]["total_sdl"] == 0.0
    assert before["it14"]["company_tax"] == 310.5

    await client.put("/api/v1/reports/sars/rates", headers=auth_headers(admin), json={
        "sdl_rate": 2, "sdl_threshold": 200000, "company_tax_rate": 20,
    })
    after = (await client.get("/api/v1/reports/sars", headers=auth_headers(admin))).json()
    assert after["emp201"]["sdl_applicable"] is True
    assert after["emp201"]["total_sdl"] == 400.0
    assert after["it14"]["taxable_income"] == 1150.0
    assert after["it14"]["company_tax"] == 230.0


async def test_resetting_rates_is_audited(client, make_user):
    admin = await make_user("SENIOR_ADMIN")
    await client.put("/api/v1/reports/sars/rates", headers=auth_headers(admin), json={"vat_rate": 16})

    reset = await client.delete("/api/v1/reports/sars/rates", headers=auth_headers(admin))
    assert reset.status_code == 200

    logs = (await client.get("/api/v1/audit-logs/", headers=auth_headers(admin),
                             params={"resource_type": "report"})).json()
    assert [log["action"] for log in logs["data"]] == ["reset", "update"]
    assert logs["data"][0]["resource_name"] == "SARS rates"
    assert logs["data"][0]["action_display"] == "Reset"


async def test_paye_calculator_uses_configured_rebates_and_uif(client, make_user):
    admin = await make_user("SENIOR_ADMIN")
    params = {"monthly_gross": 25000}

    before = (await client.get("/api/v1/reports/sars/paye", headers=auth_headers(admin), params=params)).json()
    await client.put("/api/v1/reports/sars/rates", headers=auth_headers(admin), json={
        "primary_rebate": 20235, "uif_employee_rate": 2, "uif_max_monthly": 20000,
    })
    after = (await client.get("/api/v1/reports/sars/paye", headers=auth_headers(admin), params=params)).json()

    # R3,000 more rebate a year is R250 less PAYE a month
    assert after["monthly_paye"] == pytest.approx(before["monthly_paye"] - 250, abs=0.01)
    assert after["uif"]["employee_contribution"] == 400.0
    assert after["uif"]["employer_contribution"] == 200.0
