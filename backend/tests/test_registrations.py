from datetime import timedelta

from sqlalchemy import select

from conftest import auth_headers
from propertyhub.core.config import settings
from propertyhub.models.package import Package, Subscription
from propertyhub.models.user import User
from propertyhub.services import email as email_service


async def package_id(db, name: str) -> int:
    return (await db.execute(select(Package.id).where(Package.name == name))).scalar_one()


def registration_payload(pkg_id: int, **overrides) -> dict:
    payload = {
        "email": "Sipho@Example.co.za",
        "first_name": "Sipho",
        "last_name": "Dlamini",
        "phone": "083 555 0199",
        "company_name": "Dlamini Plumbing",
        "account_type": "CONTRACTOR",
        "package_id": pkg_id,
        "additional_users": 2,
    }
    payload.update(overrides)
    return payload


async def test_packages_are_public(client):
    response = await client.get("/api/v1/packages/")
    assert response.status_code == 200
    names = {p["name"] for p in response.json()}
    assert {"CONTRACTOR_STARTER", "CONTRACTOR_PRO", "PM_STANDARD"} <= names

    pm_only = await client.get("/api/v1/packages/", params={"type": "PROPERTY_MANAGER"})
    assert [p["name"] for p in pm_only.json()] == ["PM_STANDARD"]


async def test_registration_rejects_duplicates(client, db, make_user):
    pkg = await package_id(db, "CONTRACTOR_STARTER")
    await make_user("CONTRACTOR", email="taken@propertyhub.co.za")

    taken = await client.post("/api/v1/registrations/",
                              json=registration_payload(pkg, email="taken@propertyhub.co.za"))
    assert taken.status_code == 409
    assert taken.json()["code"] == "CONFLICT"

    first = await client.post("/api/v1/registrations/", json=registration_payload(pkg))
    assert first.status_code == 200
    assert first.json()["email"] == "sipho@example.co.za"
    assert first.json()["status_display"] == "Awaiting payment"

    second = await client.post("/api/v1/registrations/", json=registration_payload(pkg))
    assert second.status_code == 409


async def test_registration_needs_matching_package(client, db):
    pm_pkg = await package_id(db, "PM_STANDARD")
    response = await client.post("/api/v1/registrations/", json=registration_payload(pm_pkg))
    assert response.status_code == 400

    missing = await client.post("/api/v1/registrations/", json=registration_payload(9999))
    assert missing.status_code == 400


async def test_approval_flow_creates_trial_subscription(client, db, make_user):
    admin = await make_user("SENIOR_ADMIN")
    pkg = await package_id(db, "CONTRACTOR_STARTER")
    registration = (await client.post("/api/v1/registrations/", json=registration_payload(pkg))).json()
    url = f"/api/v1/registrations/{registration['id']}"

    unpaid = await client.post(f"{url}/approve", headers=auth_headers(admin), json={"password": "welcome1"})
    assert unpaid.status_code == 400

    paid = await client.post(f"{url}/mark-paid", headers=auth_headers(admin), json={"payment_id": "PF-1001"})
    assert paid.json()["has_paid"] is True

    approved = await client.post(f"{url}/approve", headers=auth_headers(admin), json={"password": "welcome1"})
    assert approved.status_code == 200
    body = approved.json()
    subscription = body["subscription"]
    assert subscription["status"] == "TRIAL"
    assert subscription["max_users"] == 3
    assert subscription["current_users"] == 1
    assert body["registration"]["is_approved"] is True

    sub = (await db.execute(select(Subscription).where(Subscription.user_id == body["user_id"]))).scalar_one()
    assert sub.trial_ends_at - sub.start_date == timedelta(days=14)
    assert sub.next_billing_date == sub.trial_ends_at

    user = await db.get(User, body["user_id"])
    assert user.role == "CONTRACTOR"
    assert user.phone == "083 555 0199"

    login = await client.post("/api/v1/auth/login", json={"email": "sipho@example.co.za", "password": "welcome1"})
    assert login.status_code == 200

    assert email_service.outbox[-1]["to"] == "sipho@example.co.za"

    again = await client.post(f"{url}/approve", headers=auth_headers(admin), json={"password": "welcome1"})
    assert again.status_code == 400


async def test_skip_payment_check_gives_active_subscription(client, db, make_user):
    admin = await make_user("JUNIOR_ADMIN")
    pkg = await package_id(db, "PM_STANDARD")
    registration = (await client.post("/api/v1/registrations/", json=registration_payload(
        pkg, account_type="PROPERTY_MANAGER", additional_users=0
    ))).json()

    approved = await client.post(
        f"/api/v1/registrations/{registration['id']}/approve", headers=auth_headers(admin),
        json={"password": "welcome1", "skip_payment_check": True}
    )
    assert approved.status_code == 200
    subscription = approved.json()["subscription"]
    assert subscription["status"] == "ACTIVE"
    assert subscription["trial_ends_at"] is None
    assert subscription["max_users"] == 1

    user = await db.get(User, approved.json()["user_id"])
    assert user.role == "PROPERTY_MANAGER"


async def test_reject_and_filters(client, db, make_user):
    admin = await make_user("SENIOR_ADMIN")
    pkg = await package_id(db, "CONTRACTOR_STARTER")
    registration = (await client.post("/api/v1/registrations/", json=registration_payload(pkg))).json()

    rejected = await client.post(f"/api/v1/registrations/{registration['id']}/reject",
                                 headers=auth_headers(admin), json={"reason": "Incomplete details"})
    assert rejected.json()["status_display"] == "Rejected"
    assert rejected.json()["rejection_reason"] == "Incomplete details"

    listing = await client.get("/api/v1/registrations/", headers=auth_headers(admin),
                               params={"is_approved": False, "has_paid": False})
    assert listing.json()["total"] == 1
    assert listing.json()["data"][0]["package_name"] == "CONTRACTOR_STARTER"

    missing = await client.post("/api/v1/registrations/9999/reject",
                                headers=auth_headers(admin), json={"reason": "x"})
    assert missing.status_code == 404


async def test_only_admins_manage_registrations(client, make_user):
    contractor = await make_user("CONTRACTOR")
    demo = await make_user("JUNIOR_ADMIN", email="demo@propertyhub.co.za")

    for user in (contractor, demo):
        response = await client.get("/api/v1/registrations/", headers=auth_headers(user))
        assert response.status_code == 403


async def test_demo_admin_cannot_approve_registrations(client, db, make_user):
    demo = await make_user("SENIOR_ADMIN", email=settings.DEMO_ADMIN_EMAIL.upper())
    pkg = await package_id(db, "PM_STANDARD")
    registration = (await client.post("/api/v1/registrations/", json=registration_payload(
        pkg, account_type="PROPERTY_MANAGER", additional_users=0
    ))).json()
    url = f"/api/v1/registrations/{registration['id']}"

    approve = await client.post(f"{url}/approve", headers=auth_headers(demo),
                                json={"password": "welcome1", "skip_payment_check": True})
    assert approve.status_code == 403
    reject = await client.post(f"{url}/reject", headers=auth_headers(demo), json={"reason": "x"})
    assert reject.status_code == 403

    users = await db.execute(select(User).where(User.email == "sipho@example.co.za"))
    assert users.scalar_one_or_none() is None
