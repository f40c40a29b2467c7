from datetime import datetime, timedelta

from conftest import auth_headers


async def test_login_with_seeded_admin(client, db):
    response = await client.post("/api/v1/auth/login", json={
        "email": "ADMIN@propertyhub.co.za", "password": "admin123",
    })
    assert response.status_code == 200
    body = response.json()
    assert body["user"]["role"] == "SENIOR_ADMIN"
    assert "VIEW_AUDIT_LOGS" in body["permissions"]

    me = await client.get("/api/v1/auth/me", headers={"Authorization": f"Bearer {body['access_token']}"})
    assert me.json()["user"]["email"] == "admin@propertyhub.co.za"

    logs = await client.get("/api/v1/audit-logs/", headers={"Authorization": f"Bearer {body['access_token']}"},
                            params={"action": "login"})
    assert logs.json()["total"] == 1


async def test_login_failures(client, make_user):
    await make_user("STAFF", email="inactive@propertyhub.co.za", is_active=False)

    wrong = await client.post("/api/v1/auth/login", json={"email": "admin@propertyhub.co.za", "password": "nope"})
    assert wrong.status_code == 401
    assert wrong.json()["code"] == "UNAUTHORIZED"

    inactive = await client.post("/api/v1/auth/login", json={
        "email": "inactive@propertyhub.co.za", "password": "secret123",
    })
    assert inactive.status_code == 401

    garbage = await client.get("/api/v1/auth/me", headers={"Authorization": "Bearer not-a-token"})
    assert garbage.status_code == 401


async def test_user_administration(client, make_user):
    admin = await make_user("SENIOR_ADMIN")
    accountant = await make_user("ACCOUNTANT")
    new_user = {
        "email": "naledi@propertyhub.co.za", "password": "welcome1",
        "first_name": "Naledi", "last_name": "Zulu", "role": "ARTISAN",
    }

    forbidden = await client.post("/api/v1/auth/users", headers=auth_headers(accountant), json=new_user)
    assert forbidden.status_code == 403

    created = await client.post("/api/v1/auth/users", headers=auth_headers(admin), json=new_user)
    assert created.status_code == 200
    assert created.json()["role_display"] == "Artisan"

    duplicate = await client.post("/api/v1/auth/users", headers=auth_headers(admin), json=new_user)
    assert duplicate.status_code == 409

    bad_role = await client.post("/api/v1/auth/users", headers=auth_headers(admin),
                                 json={**new_user, "email": "x@propertyhub.co.za", "role": "OVERLORD"})
    assert bad_role.status_code == 422

    artisans = await client.get("/api/v1/auth/users", headers=auth_headers(admin), params={"role": "ARTISAN"})
    assert [u["email"] for u in artisans.json()["data"]] == ["naledi@propertyhub.co.za"]


async def test_dashboard_figures(client, make_user):
    admin = await make_user("SENIOR_ADMIN")
    contractor = await make_user("CONTRACTOR")
    payload = {
        "customer_name": "Harbour View Estate", "customer_email": "finance@harbourview.co.za",
        "items": [{"description": "Gutter cleaning", "quantity": 1, "unit_price": 1000, "total": 1000}],
        "subtotal": 1000, "tax": 150, "total": 1150,
    }

    paid = (await client.post("/api/v1/invoices/", headers=auth_headers(admin), json=payload)).json()
    await client.put(f"/api/v1/invoices/{paid['id']}/status", headers=auth_headers(admin), json={"status": "PAID"})

    late = (await client.post("/api/v1/invoices/", headers=auth_headers(admin), json={
        **payload, "total": 575, "subtotal": 500, "tax": 75,
        "due_date": (datetime.utcnow() - timedelta(days=1)).isoformat(),
    })).json()
    url = f"/api/v1/invoices/{late['id']}/status"
    await client.put(url, headers=auth_headers(admin), json={"status": "PENDING_APPROVAL"})
    overdue = await client.put(url, headers=auth_headers(admin), json={"status": "SENT"})
    assert overdue.json()["status"] == "OVERDUE"

    dashboard = (await client.get("/api/v1/dashboard/admin", headers=auth_headers(admin))).json()
    assert dashboard["month_revenue"] == 1150.0
    assert dashboard["outstanding_invoice_balance"] == 575.0
    assert dashboard["overdue_invoice_count"] == 1
    assert dashboard["open_maintenance_requests"] == 0

    own = (await client.get("/api/v1/dashboard/admin", headers=auth_headers(contractor))).json()
    assert own["month_revenue"] == 0.0
    assert own["overdue_invoice_count"] == 0
    assert own["pending_registrations"] == 0

    customer = await make_user("CUSTOMER")
    denied = await client.get("/api/v1/dashboard/admin", headers=auth_headers(customer))
    assert denied.status_code == 403


async def test_system_status_and_upgrade(client, make_user):
    admin = await make_user("SENIOR_ADMIN")
    manager = await make_user("MANAGER")

    status = (await client.get("/api/v1/system/status", headers=auth_headers(admin))).json()
    assert status["db_version"] == status["code_version"]
    assert status["scheduler"]["running"] is False

    preview = (await client.post("/api/v1/system/upgrade-database", headers=auth_headers(admin))).json()
    assert preview["preview"] is True

    upgraded = (await client.post("/api/v1/system/upgrade-database", headers=auth_headers(admin),
                                  params={"confirm": True})).json()
    assert upgraded["success"] is True
    assert upgraded["columns_added"] == 0
    assert upgraded["packages_created"] == 0

    denied = await client.get("/api/v1/system/status", headers=auth_headers(manager))
    assert denied.status_code == 403


async def test_health(client):
    response = await client.get("/health")
    assert response.status_code == 200
