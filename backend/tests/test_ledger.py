from datetime import datetime, timedelta

from conftest import auth_headers


def expense_payload(**overrides) -> dict:
    payload = {
        "date": datetime.utcnow().isoformat(),
        "category": "UTILITIES",
        "description": "Municipal water, Sunset Towers",
        "amount": 1150,
        "vendor": "eThekwini Municipality",
        "input_vat_amount": 150,
        "sars_deduction_section": "S11a_GENERAL",
    }
    payload.update(overrides)
    return payload


async def test_expense_approval_cycle(client, make_user):
    junior = await make_user("CONTRACTOR_JUNIOR_MANAGER")
    senior = await make_user("CONTRACTOR_SENIOR_MANAGER")
    accountant = await make_user("ACCOUNTANT")

    created = await client.post("/api/v1/operational-expenses/", headers=auth_headers(junior),
                                json=expense_payload())
    assert created.status_code == 200
    expense = created.json()
    assert expense["status"] == "PENDING"

    inbox = (await client.get("/api/v1/notifications/", headers=auth_headers(senior))).json()
    assert inbox["data"][0]["type"] == "OPERATIONAL_EXPENSE_ADDED"

    url = f"/api/v1/operational-expenses/{expense['id']}"
    cannot_approve = await client.post(f"{url}/approve", headers=auth_headers(junior))
    assert cannot_approve.status_code == 403

    rejected = await client.post(f"{url}/reject", headers=auth_headers(accountant),
                                 json={"reason": "Missing receipt"})
    assert rejected.json()["status"] == "REJECTED"

    resubmitted = await client.put(url, headers=auth_headers(junior),
                                   json={"document_url": "http://localhost:9000/property-management/private/attachments/1-receipt.pdf"})
    assert resubmitted.json()["status"] == "PENDING"
    assert resubmitted.json()["rejection_reason"] is None

    approved = await client.post(f"{url}/approve", headers=auth_headers(accountant))
    assert approved.json()["status"] == "APPROVED"

    locked = await client.put(url, headers=auth_headers(junior), json={"amount": 10})
    assert locked.status_code == 400

    corrected = await client.put(url, headers=auth_headers(accountant), json={"vendor": "eThekwini Metro"})
    assert corrected.status_code == 200
    assert corrected.json()["status"] == "APPROVED"
    assert corrected.json()["amount"] == 1150.0

    pnl = (await client.get("/api/v1/reports/profit-loss", headers=auth_headers(accountant))).json()
    assert pnl["operational_expenses"] == 1150.0
    assert pnl["operational_expense_breakdown"] == {"UTILITIES": 1150.0}


async def test_expense_listing_totals(client, make_user):
    accountant = await make_user("ACCOUNTANT")
    for amount in (100, 250.5):
        await client.post("/api/v1/operational-expenses/", headers=auth_headers(accountant),
                          json=expense_payload(amount=amount))

    listing = (await client.get("/api/v1/operational-expenses/", headers=auth_headers(accountant))).json()
    assert listing["total"] == 2
    assert listing["total_amount"] == 350.5

    bad_category = await client.post("/api/v1/operational-expenses/", headers=auth_headers(accountant),
                                      json=expense_payload(category="YACHTS"))
    assert bad_category.status_code == 422


async def test_revenue_counts_once_approved(client, make_user):
    accountant = await make_user("ACCOUNTANT")
    created = (await client.post("/api/v1/alternative-revenues/", headers=auth_headers(accountant), json={
        "date": datetime.utcnow().isoformat(),
        "category": "RENTAL_INCOME",
        "description": "Rooftop signage lease",
        "amount": 2300,
    })).json()
    assert created["status"] == "PENDING"

    before = (await client.get("/api/v1/reports/profit-loss", headers=auth_headers(accountant))).json()
    assert before["alternative_revenue"] == 0.0

    await client.post(f"/api/v1/alternative-revenues/{created['id']}/approve", headers=auth_headers(accountant))
    after = (await client.get("/api/v1/reports/profit-loss", headers=auth_headers(accountant))).json()
    assert after["alternative_revenue"] == 2300.0
    assert after["alternative_revenue_breakdown"] == {"RENTAL_INCOME": 2300.0}


async def test_assets_take_sars_useful_life(client, make_user):
    contractor = await make_user("CONTRACTOR")
    other = await make_user("CONTRACTOR")

    created = await client.post("/api/v1/assets/", headers=auth_headers(contractor), json={
        "name": "Site laptop",
        "category": "EQUIPMENT",
        "purchase_date": "2025-01-15T00:00:00",
        "purchase_price": 15000,
        "current_value": 12000,
        "sars_wear_and_tear_category": "COMPUTER_EQUIPMENT",
    })
    assert created.status_code == 200
    asset = created.json()
    assert asset["useful_life_years"] == 3
    assert asset["annual_depreciation"] == 5000.0

    hidden = await client.get(f"/api/v1/assets/{asset['id']}", headers=auth_headers(other))
    assert hidden.status_code == 404

    sheet = (await client.get("/api/v1/reports/balance-sheet", headers=auth_headers(contractor))).json()
    assert sheet["total_assets"] == 12000.0

    unknown = await client.post("/api/v1/assets/", headers=auth_headers(contractor), json={
        "name": "Boat", "category": "VEHICLE", "purchase_date": "2025-01-15T00:00:00",
        "purchase_price": 1, "current_value": 1, "sars_wear_and_tear_category": "YACHTS",
    })
    assert unknown.status_code == 422

    categories = (await client.get("/api/v1/assets/wear-and-tear-categories")).json()
    assert any(c["category"] == "COMPUTER_EQUIPMENT" for c in categories)


async def test_liabilities_track_payment(client, make_user):
    accountant = await make_user("ACCOUNTANT")
    created = (await client.post("/api/v1/liabilities/", headers=auth_headers(accountant), json={
        "name": "Bakkie finance", "category": "LOAN", "amount": 3000,
        "due_date": (datetime.utcnow() - timedelta(days=3)).isoformat(),
    })).json()
    assert created["is_paid"] is False
    assert created["is_overdue"] is True

    sheet = (await client.get("/api/v1/reports/balance-sheet", headers=auth_headers(accountant))).json()
    assert sheet["loans"] == 3000.0

    paid = (await client.put(f"/api/v1/liabilities/{created['id']}", headers=auth_headers(accountant),
                             json={"is_paid": True})).json()
    assert paid["paid_date"] is not None
    assert paid["is_overdue"] is False

    sheet = (await client.get("/api/v1/reports/balance-sheet", headers=auth_headers(accountant))).json()
    assert sheet["loans"] == 0.0


async def test_leads(client, make_user):
    agent = await make_user("SALES_AGENT")
    other_agent = await make_user("SALES_AGENT")
    artisan = await make_user("ARTISAN")

    created = await client.post("/api/v1/leads/", headers=auth_headers(agent), json={
        "customer_name": "Harbour View Estate", "customer_email": "manager@harbourview.co.za",
        "service_type": "Painting", "estimated_value": 48000,
    })
    assert created.json()["status"] == "NEW"
    lead_id = created.json()["id"]

    found = (await client.get("/api/v1/leads/", headers=auth_headers(agent), params={"search": "harbour"})).json()
    assert found["total"] == 1

    moved = await client.put(f"/api/v1/leads/{lead_id}/status", headers=auth_headers(agent),
                             json={"status": "QUALIFIED", "notes": "Site visit booked"})
    assert moved.json()["status"] == "QUALIFIED"
    assert moved.json()["notes"] == "Site visit booked"

    denied = await client.get("/api/v1/leads/", headers=auth_headers(artisan))
    assert denied.status_code == 403

    # Sales agents are not tenant scoped
    shared = (await client.get("/api/v1/leads/", headers=auth_headers(other_agent))).json()
    assert shared["total"] == 1
