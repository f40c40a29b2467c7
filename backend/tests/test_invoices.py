from datetime import datetime, timedelta
from types import SimpleNamespace

import pytest

from conftest import auth_headers
from propertyhub.api.api_v1.endpoints.invoices import resolve_status_change
from propertyhub.core.errors import ForbiddenError
from propertyhub.services import email as email_service
from propertyhub.services.numbering import sequence_pattern


def invoice_payload(**overrides) -> dict:
    payload = {
        "customer_name": "Sunset Towers Body Corporate",
        "customer_email": "accounts@sunsettowers.co.za",
        "items": [
            {"description": "Replace geyser element", "quantity": 1, "unit_price": 1000, "total": 1000},
        ],
        "subtotal": 1000,
        "tax": 150,
        "total": 1150,
        "company_material_cost": 400,
        "company_labour_cost": 200,
        "estimated_profit": 550,
    }
    payload.update(overrides)
    return payload


def test_pending_approval_goes_overdue_when_past_due():
    user = SimpleNamespace(id=1, role="SENIOR_ADMIN", email="admin@propertyhub.co.za")
    now = datetime(2025, 3, 20)
    invoice = SimpleNamespace(status="PENDING_APPROVAL", due_date=datetime(2025, 3, 1),
                              created_by=1, customer_email="x@example.co.za", creator=None)
    assert resolve_status_change(invoice, user, "SENT", now=now) == "OVERDUE"

    invoice.due_date = datetime(2025, 4, 1)
    assert resolve_status_change(invoice, user, "SENT", now=now) == "SENT"


def test_junior_manager_limited_to_submitting_drafts():
    contractor = SimpleNamespace(role="CONTRACTOR")
    junior = SimpleNamespace(id=5, role="CONTRACTOR_JUNIOR_MANAGER", email="junior@example.co.za")
    draft = SimpleNamespace(status="DRAFT", due_date=None, created_by=5,
                            customer_email="x@example.co.za", creator=contractor)

    assert resolve_status_change(draft, junior, "PENDING_APPROVAL") == "PENDING_APPROVAL"
    with pytest.raises(ForbiddenError):
        resolve_status_change(draft, junior, "SENT")


def test_property_manager_can_only_pay_or_reject():
    manager = SimpleNamespace(id=7, role="PROPERTY_MANAGER", email="pm@example.co.za")
    addressed = SimpleNamespace(status="SENT", due_date=None, created_by=2,
                                customer_email="pm@example.co.za", creator=None)
    assert resolve_status_change(addressed, manager, "PAID") == "PAID"
    with pytest.raises(ForbiddenError):
        resolve_status_change(addressed, manager, "CANCELLED")

    addressed.customer_email = "someone-else@example.co.za"
    with pytest.raises(ForbiddenError):
        resolve_status_change(addressed, manager, "PAID")


async def test_create_assigns_numbers_and_status(client, make_user):
    admin = await make_user("SENIOR_ADMIN")
    contractor = await make_user("CONTRACTOR")

    first = await client.post("/api/v1/invoices/", headers=auth_headers(admin), json=invoice_payload())
    assert first.status_code == 200
    assert first.json()["invoice_number"] == "INV-00001"
    assert first.json()["status"] == "PENDING_REVIEW"
    assert first.json()["total"] == 1150.0

    second = await client.post("/api/v1/invoices/", headers=auth_headers(contractor), json=invoice_payload())
    assert second.json()["invoice_number"] == "INV-00002"
    assert second.json()["status"] == "DRAFT"

    duplicate = await client.post("/api/v1/invoices/", headers=auth_headers(admin),
                                  json=invoice_payload(invoice_number="INV-00001"))
    assert duplicate.status_code == 400

    no_items = await client.post("/api/v1/invoices/", headers=auth_headers(admin), json=invoice_payload(items=[]))
    assert no_items.status_code == 422


async def test_manual_numbers_do_not_break_the_sequence(client, make_user):
    admin = await make_user("SENIOR_ADMIN")
    headers = auth_headers(admin)

    first = await client.post("/api/v1/invoices/", headers=headers, json=invoice_payload())
    assert first.json()["invoice_number"] == "INV-00001"
    for manual in ("INV-A1234", "INV-2024-A", "INV-9"):
        response = await client.post("/api/v1/invoices/", headers=headers,
                                     json=invoice_payload(invoice_number=manual))
        assert response.status_code == 200
        assert response.json()["invoice_number"] == manual

    following = await client.post("/api/v1/invoices/", headers=headers, json=invoice_payload())
    assert following.status_code == 200
    assert following.json()["invoice_number"] == "INV-00002"


def test_sequence_pattern_matches_digit_suffixes_only():
    assert sequence_pattern("INV-", 5) == "INV-[0-9][0-9][0-9][0-9][0-9]"


async def test_contractors_only_see_their_own(client, make_user):
    admin = await make_user("SENIOR_ADMIN")
    contractor = await make_user("CONTRACTOR")
    other = await make_user("CONTRACTOR")

    await client.post("/api/v1/invoices/", headers=auth_headers(admin), json=invoice_payload())
    own = await client.post("/api/v1/invoices/", headers=auth_headers(contractor), json=invoice_payload())

    assert (await client.get("/api/v1/invoices/", headers=auth_headers(admin))).json()["total"] == 2
    assert (await client.get("/api/v1/invoices/", headers=auth_headers(contractor))).json()["total"] == 1
    assert (await client.get("/api/v1/invoices/", headers=auth_headers(other))).json()["total"] == 0

    hidden = await client.get(f"/api/v1/invoices/{own.json()['id']}", headers=auth_headers(other))
    assert hidden.status_code == 404


async def test_sending_an_invoice_emails_the_customer(client, make_user):
    admin = await make_user("SENIOR_ADMIN")
    customer = await make_user("CUSTOMER", email="accounts@sunsettowers.co.za")
    created = await client.post("/api/v1/invoices/", headers=auth_headers(admin), json=invoice_payload(
        due_date=(datetime.utcnow() + timedelta(days=30)).isoformat()
    ))
    url = f"/api/v1/invoices/{created.json()['id']}/status"

    await client.put(url, headers=auth_headers(admin), json={"status": "PENDING_APPROVAL"})
    sent = await client.put(url, headers=auth_headers(admin), json={"status": "SENT"})
    assert sent.json()["status"] == "SENT"

    assert email_service.outbox[-1]["to"] == "accounts@sunsettowers.co.za"
    assert "Replace geyser element" in email_service.outbox[-1]["html"]

    inbox = (await client.get("/api/v1/notifications/", headers=auth_headers(customer))).json()
    assert inbox["data"][0]["type"] == "INVOICE_STATUS"

    paid = await client.put(url, headers=auth_headers(admin), json={"status": "PAID"})
    assert paid.json()["paid_date"] is not None

    locked = await client.delete(f"/api/v1/invoices/{created.json()['id']}", headers=auth_headers(admin))
    assert locked.status_code == 400


async def test_property_manager_pays_invoice_addressed_to_them(client, make_user):
    admin = await make_user("SENIOR_ADMIN")
    manager = await make_user("PROPERTY_MANAGER", email="pm@sunsettowers.co.za")
    created = await client.post("/api/v1/invoices/", headers=auth_headers(admin),
                                json=invoice_payload(customer_email="pm@sunsettowers.co.za"))
    url = f"/api/v1/invoices/{created.json()['id']}/status"

    visible = await client.get("/api/v1/invoices/", headers=auth_headers(manager))
    assert visible.json()["total"] == 1

    cancel = await client.put(url, headers=auth_headers(manager), json={"status": "CANCELLED"})
    assert cancel.status_code == 403

    paid = await client.put(url, headers=auth_headers(manager), json={"status": "PAID"})
    assert paid.json()["status"] == "PAID"

    inbox = (await client.get("/api/v1/notifications/", headers=auth_headers(admin))).json()
    assert inbox["data"][0]["type"] == "INVOICE_PAID"


async def test_delete_draft(client, make_user):
    contractor = await make_user("CONTRACTOR")
    created = await client.post("/api/v1/invoices/", headers=auth_headers(contractor), json=invoice_payload())

    deleted = await client.delete(f"/api/v1/invoices/{created.json()['id']}", headers=auth_headers(contractor))
    assert deleted.json() == {"message": "Invoice deleted"}

    gone = await client.get(f"/api/v1/invoices/{created.json()['id']}", headers=auth_headers(contractor))
    assert gone.status_code == 404
