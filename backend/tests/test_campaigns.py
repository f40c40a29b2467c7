from datetime import datetime, timedelta
from types import SimpleNamespace

from conftest import auth_headers
from propertyhub.models.campaign import Campaign
from propertyhub.models.lead import Lead
from propertyhub.models.notification import Notification
from propertyhub.services import email as email_service
from propertyhub.services.campaigns import (
    dispatch_due_campaigns, format_estimated_value, personalize, select_recipients,
)
from sqlalchemy import select


def lead_row(**fields):
    defaults = dict(
        customer_name="Thandi Nkosi", customer_email="thandi@example.co.za",
        customer_phone="082 555 0101", address=None, service_type="Plumbing",
        description="Leaking geyser", estimated_value=2500,
    )
    defaults.update(fields)
    return SimpleNamespace(**defaults)


def test_personalize_replaces_known_tokens():
    text = "Hi {{customerName}}, your {{serviceType}} quote is {{estimatedValue}} at {{address}}."
    assert personalize(text, lead_row()) == (
        "Hi Thandi Nkosi, your Plumbing quote is R2,500 at N/A."
    )


def test_personalize_leaves_unknown_tokens():
    assert personalize("{{unknownToken}} {{customerEmail}}", lead_row()) == (
        "{{unknownToken}} thandi@example.co.za"
    )


def test_personalize_escapes_lead_values_in_html():
    lead = lead_row(customer_name="<b>Thandi</b> & Co")
    assert personalize("<p>Hi {{customerName}}</p>", lead, html=True) == (
        "<p>Hi &lt;b&gt;Thandi&lt;/b&gt; &amp; Co</p>"
    )
    assert personalize("Hi {{customerName}}", lead) == "Hi <b>Thandi</b> & Co"


def test_format_estimated_value():
    assert format_estimated_value(None) == "N/A"
    assert format_estimated_value(1234.5) == "R1,234.50"


async def add_leads(db, owner):
    leads = [
        Lead(customer_name="Thandi", customer_email="thandi@example.co.za", service_type="Plumbing",
             status="NEW", estimated_value=2500, created_by=owner.id),
        Lead(customer_name="Pieter", customer_email="pieter@example.co.za", service_type="Electrical",
             status="QUALIFIED", estimated_value=12000, created_by=owner.id),
        Lead(customer_name="Aisha", customer_email="aisha@example.co.za", service_type="Plumbing",
             status="LOST", estimated_value=800, created_by=owner.id),
    ]
    db.add_all(leads)
    await db.commit()
    return leads


async def test_select_recipients_filters(db, make_user):
    admin = await make_user("SENIOR_ADMIN")
    await add_leads(db, admin)

    plumbing = await select_recipients(db, {"service_types": ["Plumbing"]})
    assert [l.customer_name for l in plumbing] == ["Thandi", "Aisha"]

    valuable = await select_recipients(db, {"estimated_value_min": 1000, "statuses": ["NEW", "QUALIFIED"]})
    assert {l.customer_name for l in valuable} == {"Thandi", "Pieter"}


async def test_select_recipients_by_customer(db, make_user):
    admin = await make_user("SENIOR_ADMIN")
    await add_leads(db, admin)
    thandi = await make_user("CUSTOMER", email="thandi@example.co.za")
    pieter = await make_user("CUSTOMER", email="pieter@example.co.za")

    targeted = await select_recipients(db, {
        "target_customer_ids": [thandi.id, pieter.id],
        "excluded_customer_ids": [pieter.id],
    })
    assert [l.customer_name for l in targeted] == ["Thandi"]


async def test_campaign_send_flow(client, db, make_user):
    admin = await make_user("SENIOR_ADMIN")
    await add_leads(db, admin)

    response = await client.post("/api/v1/campaigns/", headers=auth_headers(admin), json={
        "name": "Winter geyser check",
        "subject": "{{customerName}}, is your geyser ready?",
        "html_body": "<p>Hi {{customerName}}, book a {{serviceType}} check.</p>",
        "target_criteria": {"service_types": ["Plumbing"]},
    })
    assert response.status_code == 200
    campaign = response.json()
    assert campaign["status"] == "DRAFT"

    preview = await client.get(f"/api/v1/campaigns/{campaign['id']}/recipients", headers=auth_headers(admin))
    assert preview.json()["total"] == 2

    sent = await client.post(f"/api/v1/campaigns/{campaign['id']}/send", headers=auth_headers(admin))
    assert sent.status_code == 200
    result = sent.json()
    assert result["status"] == "SENT"
    assert result["total_sent"] == 2
    assert {m["to"] for m in email_service.outbox} == {"thandi@example.co.za", "aisha@example.co.za"}
    assert any(m["subject"] == "Thandi, is your geyser ready?" for m in email_service.outbox)

    again = await client.post(f"/api/v1/campaigns/{campaign['id']}/send", headers=auth_headers(admin))
    assert again.status_code == 400

    edit = await client.put(f"/api/v1/campaigns/{campaign['id']}", headers=auth_headers(admin),
                            json={"subject": "Changed"})
    assert edit.status_code == 400

    notifications = (await db.execute(
        select(Notification).where(Notification.recipient_id == admin.id)
    )).scalars().all()
    assert any(n.type == "CAMPAIGN_SENT" for n in notifications)


async def test_campaign_without_recipients_fails(client, db, make_user):
    admin = await make_user("SENIOR_ADMIN")
    response = await client.post("/api/v1/campaigns/", headers=auth_headers(admin), json={
        "name": "Nobody", "subject": "Hello", "html_body": "<p>Hello</p>",
        "target_criteria": {"statuses": ["WON"]},
    })
    campaign_id = response.json()["id"]

    sent = await client.post(f"/api/v1/campaigns/{campaign_id}/send", headers=auth_headers(admin))
    assert sent.status_code == 400
    assert sent.json()["code"] == "BAD_REQUEST"

    detail = await client.get(f"/api/v1/campaigns/{campaign_id}", headers=auth_headers(admin))
    assert detail.json()["status"] == "FAILED"


async def test_campaigns_need_permission(client, make_user):
    artisan = await make_user("ARTISAN")
    response = await client.get("/api/v1/campaigns/", headers=auth_headers(artisan))
    assert response.status_code == 403
    assert response.json()["code"] == "FORBIDDEN"


async def test_dispatch_due_campaigns(db, make_user):
    admin = await make_user("SENIOR_ADMIN")
    await add_leads(db, admin)
    now = datetime.utcnow()
    db.add_all([
        Campaign(name="Due", subject="Hi", html_body="<p>Hi</p>", target_criteria={"statuses": ["NEW"]},
                 status="SCHEDULED", scheduled_for=now - timedelta(minutes=1), created_by=admin.id),
        Campaign(name="Later", subject="Hi", html_body="<p>Hi</p>", target_criteria={},
                 status="SCHEDULED", scheduled_for=now + timedelta(days=1), created_by=admin.id),
    ])
    await db.commit()

    assert await dispatch_due_campaigns(db, now=now) == 1
    statuses = dict((await db.execute(select(Campaign.name, Campaign.status))).all())
    assert statuses == {"Due": "SENT", "Later": "SCHEDULED"}


async def test_console_outbox_keeps_only_recent_messages():
    for n in range(email_service.OUTBOX_SIZE + 5):
        await email_service.send_email(f"lead{n}@example.co.za", "Hello", "<p>Hello</p>")
    assert len(email_service.outbox) == email_service.OUTBOX_SIZE
    assert email_service.outbox[0]["to"] == "lead5@example.co.za"
    assert email_service.outbox[-1]["to"] == f"lead{email_service.OUTBOX_SIZE + 4}@example.co.za"
