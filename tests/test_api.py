import uuid
from datetime import datetime, timedelta

from httpx import ASGITransport, AsyncClient
from sqlalchemy.exc import OperationalError
from sqlmodel import select

from conftest import TEST_PASSWORD, auth_headers
from institute_crm.database import get_session
from institute_crm.models.activity import EnquiryActivity
from institute_crm.models.enquiry import Enquiry, EnquiryStatus
from institute_crm.models.notification import Notification
from institute_crm.repositories.notification_repo import NotificationRepository
from institute_crm.services.enquiry_service import EnquiryService


async def test_health(client):
    response = await client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


async def test_login(client, telecaller):
    response = await client.post(
        "/api/auth/login", data={"username": "tc1@test.com", "password": TEST_PASSWORD}
    )
    assert response.status_code == 200
    body = response.json()
    assert body["token_type"] == "bearer"

    me = await client.get(
        "/api/users/me", headers={"Authorization": f"Bearer {body['access_token']}"}
    )
    assert me.status_code == 200
    assert me.json()["role"] == "telecaller"


async def test_login_wrong_password(client, telecaller):
    response = await client.post(
        "/api/auth/login", data={"username": "tc1@test.com", "password": "nope"}
    )
    assert response.status_code == 401
    assert response.json() == {"success": False, "message": "Incorrect email or password"}


async def test_requires_token(client):
    response = await client.get("/api/enquiries/")
    assert response.status_code == 401
    assert response.json()["success"] is False


async def test_status_endpoint_envelope(client, session, telecaller, make_enquiry):
    enquiry = await make_enquiry(assigned_to=telecaller)

    response = await client.post(
        f"/api/enquiries/{enquiry.id}/status",
        json={"new_status": "INTERESTED", "status_remarks": "Wants the evening batch"},
        headers=auth_headers(telecaller),
    )

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["data"]["status"] == "INTERESTED"
    assert body["message"] == "Status updated successfully"

    activities = (await session.exec(select(EnquiryActivity))).all()
    assert len(activities) == 1


async def test_status_endpoint_rejects_unknown_status(client, admin, make_enquiry):
    enquiry = await make_enquiry()

    response = await client.post(
        f"/api/enquiries/{enquiry.id}/status",
        json={"new_status": "MAYBE"},
        headers=auth_headers(admin),
    )
    assert response.status_code == 422
    assert response.json()["success"] is False


async def test_status_endpoint_access_denied(client, telecaller, other_telecaller, make_enquiry):
    enquiry = await make_enquiry(assigned_to=other_telecaller)

    response = await client.post(
        f"/api/enquiries/{enquiry.id}/status",
        json={"new_status": "CONTACTED"},
        headers=auth_headers(telecaller),
    )
    assert response.status_code == 403
    assert response.json() == {"success": False, "message": "Access denied"}


async def test_missing_enquiry_is_404(client, admin):
    response = await client.get(f"/api/enquiries/{uuid.uuid4()}", headers=auth_headers(admin))
    assert response.status_code == 404
    assert response.json()["success"] is False


async def test_enroll_direct_endpoint(client, admin, make_enquiry):
    enquiry = await make_enquiry(status=EnquiryStatus.INTERESTED)

    response = await client.post(
        f"/api/enquiries/{enquiry.id}/enroll-direct",
        json={"status_remarks": "paid cash on visit"},
        headers=auth_headers(admin),
    )
    assert response.status_code == 200
    assert response.json()["data"]["status"] == "ENROLLED"


async def test_create_and_list_enquiries(client, telecaller):
    headers = auth_headers(telecaller)
    created = await client.post(
        "/api/enquiries/",
        json={"candidate_name": "Anjali Menon", "phone": "+91 9876543210"},
        headers=headers,
    )
    assert created.status_code == 201

    response = await client.get("/api/enquiries/", params={"search": "anjali"}, headers=headers)
    body = response.json()
    assert body["pagination"] == {"page": 1, "limit": 10, "total": 1, "pages": 1}
    assert body["data"][0]["assigned_to_user_id"] == str(telecaller.id)


async def test_timeline_endpoint(client, telecaller, make_enquiry):
    enquiry = await make_enquiry(assigned_to=telecaller)
    headers = auth_headers(telecaller)

    await client.post(
        "/api/follow-ups/",
        json={
            "enquiry_id": str(enquiry.id),
            "scheduled_at": (datetime.utcnow() + timedelta(days=1)).isoformat(),
        },
        headers=headers,
    )
    await client.post(f"/api/enquiries/{enquiry.id}/status", json={"new_status": "FOLLOW_UP"}, headers=headers)

    response = await client.get(f"/api/enquiries/{enquiry.id}/timeline", headers=headers)
    assert response.status_code == 200
    items = response.json()["data"]
    assert len(items) == 2
    assert all(item["id"].startswith("activity-") for item in items)
    assert items[0]["data"]["type"] == "STATUS_CHANGE"


async def test_bulk_assign_in_past_is_422(client, executive, telecaller, branch, make_enquiry):
    enquiry = await make_enquiry()
    yesterday = datetime.utcnow().date() - timedelta(days=1)

    response = await client.post(
        "/api/enquiries/bulk-assign",
        json={
            "enquiry_ids": [str(enquiry.id)],
            "assigned_to_user_id": str(telecaller.id),
            "branch_id": str(branch.id),
            "name": "Weekend drive",
            "start_date": yesterday.isoformat(),
            "end_date": (yesterday + timedelta(days=5)).isoformat(),
        },
        headers=auth_headers(executive),
    )
    assert response.status_code == 422
    assert "Start date cannot be in the past" in response.json()["message"]


async def test_reference_routes(client, admin, telecaller):
    created = await client.post(
        "/api/reference/enquiry_source", json={"name": "Instagram"}, headers=auth_headers(admin)
    )
    assert created.status_code == 201

    forbidden = await client.post(
        "/api/reference/enquiry_source", json={"name": "Facebook"}, headers=auth_headers(telecaller)
    )
    assert forbidden.status_code == 403

    listed = await client.get("/api/reference/enquiry_source", headers=auth_headers(telecaller))
    assert [row["name"] for row in listed.json()["data"]] == ["Instagram"]


async def test_notifications_after_assignment(client, executive, telecaller, branch, make_enquiry):
    enquiry = await make_enquiry()
    tomorrow = datetime.utcnow().date() + timedelta(days=1)

    response = await client.post(
        f"/api/enquiries/{enquiry.id}/assign",
        json={
            "assigned_to_user_id": str(telecaller.id),
            "branch_id": str(branch.id),
            "name": "Follow-up drive",
            "start_date": tomorrow.isoformat(),
            "end_date": tomorrow.isoformat(),
        },
        headers=auth_headers(executive),
    )
    assert response.status_code == 200

    feed = await client.get("/api/notifications/", headers=auth_headers(telecaller))
    data = feed.json()["data"]
    assert data["unread_count"] == 1
    assert data["items"][0]["type"] == "ENQUIRY_ASSIGNED"

    await client.post("/api/notifications/read-all", headers=auth_headers(telecaller))
    feed = await client.get("/api/notifications/", headers=auth_headers(telecaller))
    assert feed.json()["data"]["unread_count"] == 0


async def test_assign_endpoint_succeeds_when_notification_fails(
    client, session, executive, telecaller, branch, make_enquiry, monkeypatch
):
    enquiry = await make_enquiry()
    enquiry_id = enquiry.id
    tomorrow = datetime.utcnow().date() + timedelta(days=1)

    async def failing_add(self, *args, **kwargs):
        raise OperationalError("INSERT INTO notification", {}, Exception("database is locked"))

    monkeypatch.setattr(NotificationRepository, "add", failing_add)

    response = await client.post(
        f"/api/enquiries/{enquiry_id}/assign",
        json={
            "assigned_to_user_id": str(telecaller.id),
            "branch_id": str(branch.id),
            "name": "Evening drive",
            "start_date": tomorrow.isoformat(),
            "end_date": tomorrow.isoformat(),
        },
        headers=auth_headers(executive),
    )

    assert response.status_code == 200
    assert response.json()["data"]["assigned_to_user_id"] == str(telecaller.id)

    stored = await session.get(Enquiry, enquiry_id)
    assert stored.assigned_to_user_id == telecaller.id
    assert (await session.exec(select(Notification))).all() == []


async def test_unexpected_error_returns_failure_envelope(session, admin, monkeypatch):
    from institute_crm.main import app

    async def broken_list(self, *args, **kwargs):
        raise RuntimeError("boom")

    async def _override_session():
        yield session

    monkeypatch.setattr(EnquiryService, "list", broken_list)
    app.dependency_overrides[get_session] = _override_session
    transport = ASGITransport(app=app, raise_app_exceptions=False)
    try:
        async with AsyncClient(transport=transport, base_url="http://test") as ac:
            response = await ac.get("/api/enquiries/", headers=auth_headers(admin))
    finally:
        app.dependency_overrides.clear()

    assert response.status_code == 500
    assert response.json() == {"success": False, "message": "Something went wrong, please try again"}
