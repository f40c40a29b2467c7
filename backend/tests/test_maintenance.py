from datetime import datetime

from conftest import auth_headers
from propertyhub.services import email as email_service


async def setup_tenant(client, make_user):
    manager = await make_user("PROPERTY_MANAGER")
    tenant = await make_user("CUSTOMER", email="lerato@example.co.za")
    response = await client.post("/api/v1/customers/", headers=auth_headers(manager), json={
        "first_name": "Lerato", "last_name": "Mokoena", "email": "lerato@example.co.za",
        "building_name": "Sunset Towers", "unit_number": "12B", "address": "4 Beach Road, Durban",
        "user_id": tenant.id,
    })
    assert response.status_code == 200
    return manager, tenant, response.json()


def request_payload(customer_id: int, **overrides) -> dict:
    payload = {
        "customer_id": customer_id,
        "title": "Leaking kitchen tap",
        "description": "The kitchen tap drips constantly, even when closed tightly.",
        "category": "Plumbing",
        "urgency": "HIGH",
    }
    payload.update(overrides)
    return payload


async def test_customer_logs_request(client, make_user):
    manager, tenant, customer = await setup_tenant(client, make_user)

    response = await client.post("/api/v1/maintenance-requests/", headers=auth_headers(tenant),
                                 json=request_payload(customer["id"]))
    assert response.status_code == 200
    body = response.json()
    assert body["request_number"] == f"MR-{datetime.utcnow():%Y%m}-0001"
    assert body["status"] == "SUBMITTED"
    assert body["property_manager_id"] == manager.id
    assert body["building_name"] == "Sunset Towers"
    assert body["unit_number"] == "12B"
    assert body["urgency_display"] == "High"

    second = await client.post("/api/v1/maintenance-requests/", headers=auth_headers(tenant),
                               json=request_payload(customer["id"], title="Broken geyser"))
    assert second.json()["request_number"].endswith("-0002")

    inbox = await client.get("/api/v1/notifications/", headers=auth_headers(manager))
    assert inbox.json()["unread"] == 2
    assert {n["type"] for n in inbox.json()["data"]} == {"MAINTENANCE_REQUEST_SUBMITTED"}


async def test_request_visibility(client, make_user):
    manager, tenant, customer = await setup_tenant(client, make_user)
    other_manager = await make_user("PROPERTY_MANAGER")
    stranger = await make_user("CUSTOMER")

    created = await client.post("/api/v1/maintenance-requests/", headers=auth_headers(manager),
                                json=request_payload(customer["id"]))
    request_id = created.json()["id"]

    assert (await client.get("/api/v1/maintenance-requests/", headers=auth_headers(tenant))).json()["total"] == 1
    assert (await client.get("/api/v1/maintenance-requests/", headers=auth_headers(stranger))).json()["total"] == 0
    assert (await client.get("/api/v1/maintenance-requests/", headers=auth_headers(other_manager))).json()["total"] == 0

    hidden = await client.get(f"/api/v1/maintenance-requests/{request_id}", headers=auth_headers(stranger))
    assert hidden.status_code == 404

    foreign = await client.post("/api/v1/maintenance-requests/", headers=auth_headers(stranger),
                                json=request_payload(customer["id"]))
    assert foreign.status_code == 403

    missing = await client.post("/api/v1/maintenance-requests/", headers=auth_headers(tenant),
                                json=request_payload(9999))
    assert missing.status_code == 404


async def test_status_updates_notify_customer(client, make_user):
    manager, tenant, customer = await setup_tenant(client, make_user)
    other_manager = await make_user("PROPERTY_MANAGER")
    created = await client.post("/api/v1/maintenance-requests/", headers=auth_headers(tenant),
                                json=request_payload(customer["id"]))
    url = f"/api/v1/maintenance-requests/{created.json()['id']}/status"

    by_tenant = await client.put(url, headers=auth_headers(tenant), json={"status": "APPROVED"})
    assert by_tenant.status_code == 403
    by_other = await client.put(url, headers=auth_headers(other_manager), json={"status": "APPROVED"})
    assert by_other.status_code == 403

    approved = await client.put(url, headers=auth_headers(manager),
                                json={"status": "APPROVED", "response_notes": "Plumber booked for Friday"})
    assert approved.status_code == 200
    assert approved.json()["approved_date"] is not None
    assert approved.json()["status_display"] == "Approved"

    assert email_service.outbox[-1]["to"] == "lerato@example.co.za"
    assert "Plumber booked for Friday" in email_service.outbox[-1]["html"]

    rejected = await client.put(url, headers=auth_headers(manager),
                                json={"status": "REJECTED", "rejection_reason": "Tenant responsibility"})
    assert rejected.json()["rejection_reason"] == "Tenant responsibility"

    inbox = (await client.get("/api/v1/notifications/", headers=auth_headers(tenant))).json()
    types = [n["type"] for n in inbox["data"]]
    assert types == ["MAINTENANCE_REQUEST_REJECTED", "MAINTENANCE_REQUEST_APPROVED"]
    assert inbox["data"][0]["message"].endswith(": Tenant responsibility")


async def test_invalid_status_is_rejected(client, make_user):
    manager, tenant, customer = await setup_tenant(client, make_user)
    created = await client.post("/api/v1/maintenance-requests/", headers=auth_headers(tenant),
                                json=request_payload(customer["id"]))
    response = await client.put(f"/api/v1/maintenance-requests/{created.json()['id']}/status",
                                headers=auth_headers(manager), json={"status": "SUBMITTED"})
    assert response.status_code == 422


async def test_notification_read_flags(client, make_user):
    manager, tenant, customer = await setup_tenant(client, make_user)
    for title in ("Leaking kitchen tap", "Broken window latch"):
        await client.post("/api/v1/maintenance-requests/", headers=auth_headers(tenant),
                          json=request_payload(customer["id"], title=title))

    inbox = (await client.get("/api/v1/notifications/", headers=auth_headers(manager))).json()
    first_id = inbox["data"][0]["id"]

    read = await client.put(f"/api/v1/notifications/{first_id}/read", headers=auth_headers(manager))
    assert read.json()["is_read"] is True

    unread = (await client.get("/api/v1/notifications/", headers=auth_headers(manager),
                               params={"unread_only": True})).json()
    assert unread["total"] == 1

    not_mine = await client.put(f"/api/v1/notifications/{first_id}/read", headers=auth_headers(tenant))
    assert not_mine.status_code == 404

    cleared = await client.put("/api/v1/notifications/read-all", headers=auth_headers(manager))
    assert cleared.json() == {"updated": 1}
