from conftest import auth_headers


async def test_order_lifecycle(client, make_user):
    manager = await make_user("MANAGER")
    artisan = await make_user("ARTISAN", first_name="Bongani", last_name="Khumalo")

    created = await client.post("/api/v1/orders/", headers=auth_headers(manager), json={
        "customer_name": "Sunset Towers Body Corporate",
        "customer_email": "accounts@sunsettowers.co.za",
        "service_type": "Plumbing",
        "description": "Replace burst geyser on level 4",
        "material_cost": 3200,
        "labour_cost": 800,
    })
    assert created.status_code == 200
    order = created.json()
    assert order["order_number"] == "ORD-00001"
    assert order["status"] == "PENDING"
    assert order["total_cost"] == 4000.0

    url = f"/api/v1/orders/{order['id']}"
    started = (await client.put(f"{url}/status", headers=auth_headers(manager),
                                json={"status": "IN_PROGRESS", "assigned_to_id": artisan.id})).json()
    assert started["started_at"] is not None
    assert started["assigned_to_name"] == "Bongani Khumalo"

    unknown_artisan = await client.put(f"{url}/status", headers=auth_headers(manager),
                                       json={"status": "ASSIGNED", "assigned_to_id": 9999})
    assert unknown_artisan.status_code == 400

    completed = (await client.put(f"{url}/status", headers=auth_headers(manager),
                                  json={"status": "COMPLETED"})).json()
    assert completed["completed_at"] is not None

    costed = (await client.put(f"{url}/costs", headers=auth_headers(manager),
                               json={"material_cost": 3500, "labour_cost": 900})).json()
    assert costed["total_cost"] == 4400.0

    accountant = await make_user("ACCOUNTANT")
    pnl = (await client.get("/api/v1/reports/profit-loss", headers=auth_headers(accountant))).json()
    assert pnl["material_costs"] == 3500.0
    assert pnl["labour_costs"] == 900.0


async def test_orders_are_scoped_to_their_creator(client, make_user):
    contractor = await make_user("CONTRACTOR")
    other = await make_user("CONTRACTOR")
    created = (await client.post("/api/v1/orders/", headers=auth_headers(contractor), json={
        "customer_name": "Harbour View", "customer_email": "hv@example.co.za", "service_type": "Electrical",
    })).json()

    hidden = await client.get(f"/api/v1/orders/{created['id']}", headers=auth_headers(other))
    assert hidden.status_code == 404
    assert (await client.get("/api/v1/orders/", headers=auth_headers(other))).json()["total"] == 0


async def test_quotation_costs_count_once_approved(client, make_user):
    agent = await make_user("SALES_AGENT")
    accountant = await make_user("ACCOUNTANT")

    created = await client.post("/api/v1/quotations/", headers=auth_headers(agent), json={
        "customer_name": "Harbour View Estate",
        "customer_email": "manager@harbourview.co.za",
        "items": [{"description": "Exterior painting", "quantity": 1, "unit_price": 40000, "total": 40000}],
        "subtotal": 40000, "tax": 6000, "total": 46000,
        "company_material_cost": 12000, "company_labour_cost": 9000,
    })
    quotation = created.json()
    assert quotation["status"] == "DRAFT"
    assert quotation["quote_number"] == "QUO-00001"

    draft_pnl = (await client.get("/api/v1/reports/profit-loss", headers=auth_headers(accountant))).json()
    assert draft_pnl["material_costs"] == 0.0

    url = f"/api/v1/quotations/{quotation['id']}"
    approved = await client.put(f"{url}/status", headers=auth_headers(agent), json={"status": "APPROVED"})
    assert approved.json()["status"] == "APPROVED"

    pnl = (await client.get("/api/v1/reports/profit-loss", headers=auth_headers(accountant))).json()
    assert pnl["material_costs"] == 12000.0
    assert pnl["labour_costs"] == 9000.0
    assert pnl["net_profit"] == -21000.0

    locked = await client.delete(url, headers=auth_headers(agent))
    assert locked.status_code == 400

    missing_lead = await client.post("/api/v1/quotations/", headers=auth_headers(agent), json={
        "customer_name": "X", "customer_email": "x@example.co.za", "lead_id": 9999,
    })
    assert missing_lead.status_code == 400


async def test_account_insights(client, make_user):
    accountant = await make_user("ACCOUNTANT")
    response = await client.get("/api/v1/insights/accounts", headers=auth_headers(accountant))
    assert response.status_code == 200
    body = response.json()
    assert body["total"] == len(body["insights"])
    assert body["insights"][-1]["title"] == "Record Keeping Reminder"


async def test_order_history_in_audit_trail(client, make_user):
    contractor = await make_user("CONTRACTOR")
    other = await make_user("CONTRACTOR")
    admin = await make_user("SENIOR_ADMIN")

    order = (await client.post("/api/v1/orders/", headers=auth_headers(contractor), json={
        "customer_name": "Harbour View", "customer_email": "hv@example.co.za", "service_type": "Roofing",
    })).json()
    url = f"/api/v1/orders/{order['id']}"
    await client.put(f"{url}/status", headers=auth_headers(contractor), json={"status": "IN_PROGRESS"})
    await client.put(f"{url}/costs", headers=auth_headers(contractor),
                     json={"material_cost": 100, "labour_cost": 50})

    history_url = f"/api/v1/audit-logs/history/order/{order['id']}"
    history = (await client.get(history_url, headers=auth_headers(admin))).json()
    assert [entry["action"] for entry in history] == ["create", "status", "update"]
    assert history[1]["new_value"] == {"status": "IN_PROGRESS"}

    own = (await client.get("/api/v1/audit-logs/", headers=auth_headers(contractor))).json()
    assert own["total"] == 3
    assert (await client.get("/api/v1/audit-logs/", headers=auth_headers(other))).json()["total"] == 0
    assert (await client.get(history_url, headers=auth_headers(other))).json() == []

    found = (await client.get("/api/v1/audit-logs/", headers=auth_headers(admin),
                              params={"search": order["order_number"]})).json()
    assert found["total"] == 3

    unknown = await client.get("/api/v1/audit-logs/history/spaceship/1", headers=auth_headers(admin))
    assert unknown.status_code == 400
    bad_date = await client.get("/api/v1/audit-logs/", headers=auth_headers(admin),
                                params={"start_date": "18-10-2026"})
    assert bad_date.status_code == 400
