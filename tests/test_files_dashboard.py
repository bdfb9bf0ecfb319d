from datetime import datetime

import pytest

from meetboard.domain.meetings import lifecycle
from meetboard.models import Review
from meetboard.models_meeting import File as StoredFile
from meetboard.models_project import Payment
from meetboard.routes.dashboard import _month_start
from meetboard.services import storage


@pytest.fixture
def fake_storage(monkeypatch):
    uploaded = {}

    def upload_file(key, content, mime_type):
        uploaded[key] = (content, mime_type)

    monkeypatch.setattr(storage, "upload_file", upload_file)
    monkeypatch.setattr(storage, "generate_presigned_url", lambda key, expiration=3600: f"https://files.test/{key}")
    return uploaded


# ============================================================================
# FILES
# ============================================================================


def test_upload_to_project(client, db, login, client_user, make_project, fake_storage):
    project = make_project()
    login(client_user)

    response = client.post(
        "/files",
        data={"projectId": str(project.id), "description": "Wireframes"},
        files={"file": ("wire frames.pdf", b"%PDF-1.4 test", "application/pdf")},
    )

    assert response.status_code == 201
    body = response.json()
    assert body["originalName"] == "wire frames.pdf"
    assert body["size"] == len(b"%PDF-1.4 test")
    assert body["url"].startswith(f"https://files.test/meetboard/project-{project.id}/")
    assert list(fake_storage.values()) == [(b"%PDF-1.4 test", "application/pdf")]


def test_disallowed_type_is_rejected(client, db, login, client_user, fake_storage):
    login(client_user)
    response = client.post("/files", files={"file": ("run.exe", b"MZ", "application/x-msdownload")})

    assert response.status_code == 400
    assert fake_storage == {}
    assert db.query(StoredFile).count() == 0


def test_storage_failure_is_502(client, login, client_user, monkeypatch):
    def broken_upload(key, content, mime_type):
        raise storage.StorageError("bucket unavailable")

    monkeypatch.setattr(storage, "upload_file", broken_upload)
    login(client_user)
    response = client.post("/files", files={"file": ("notes.txt", b"hello", "text/plain")})
    assert response.status_code == 502


def test_file_access_follows_participation(client, login, outsider, client_user, make_meeting, fake_storage):
    meeting = make_meeting()
    login(client_user)
    client.post(
        "/files", data={"meetingId": str(meeting.id)}, files={"file": ("agenda.txt", b"1. intro", "text/plain")}
    )

    assert len(client.get("/files", params={"meetingId": meeting.id}).json()) == 1

    login(outsider)
    assert client.get("/files", params={"meetingId": meeting.id}).status_code == 403
    assert client.get("/files", params={"meetingId": 999}).status_code == 404
    assert client.get("/files").json() == []


# ============================================================================
# DASHBOARD
# ============================================================================


def test_month_start_crosses_year_boundaries():
    now = datetime(2026, 2, 14, 9, 30)
    assert _month_start(now, 0) == datetime(2026, 2, 1)
    assert _month_start(now, 3) == datetime(2025, 11, 1)
    assert _month_start(now, -11) == datetime(2027, 1, 1)


def add_payment(db, project, amount, status):
    db.add(
        Payment(
            project_id=project.id,
            client_id=project.client_id,
            freelancer_id=project.freelancer_id,
            amount=amount,
            status=status,
            payment_method="STRIPE",
        )
    )
    db.commit()


def test_freelancer_dashboard_stats(client, db, login, client_user, freelancer_user, make_meeting, make_project):
    make_meeting()
    make_meeting(status=lifecycle.COMPLETED)
    make_meeting(status=lifecycle.CANCELLED)
    project = make_project(status="ACTIVE")
    add_payment(db, project, 500.0, "RELEASED")
    add_payment(db, project, 250.0, "COMPLETED")
    add_payment(db, project, 999.0, "ESCROWED")
    db.add(Review(reviewer_id=client_user.id, reviewee_id=freelancer_user.id, rating=4))
    db.commit()

    login(freelancer_user)
    stats = client.get("/dashboard/stats").json()["stats"]

    assert stats["totalMeetings"] == 3
    assert stats["upcomingMeetings"] == 1
    assert stats["completedMeetings"] == 1
    assert stats["totalEarnings"] == 750.0
    assert stats["averageRating"] == 4.0
    assert stats["totalReviews"] == 1


def test_client_dashboard_stats(client, db, login, client_user, freelancer_user, make_project):
    add_payment(db, make_project(status="ACTIVE"), 300.0, "COMPLETED")
    login(client_user)

    stats = client.get("/dashboard/stats").json()["stats"]
    assert stats["totalSpent"] == 300.0
    assert stats["activeFreelancers"] == 1
    assert "totalEarnings" not in stats


def test_analytics_is_freelancer_only(client, login, client_user):
    login(client_user)
    assert client.get("/analytics").status_code == 403


def test_analytics_summary(client, db, login, client_user, freelancer_user, make_meeting, make_project):
    make_meeting(status=lifecycle.COMPLETED, duration=30)
    make_meeting(status=lifecycle.CLIENT_APPROVED, duration=60)
    add_payment(db, make_project(status="ACTIVE"), 400.0, "RELEASED")

    login(freelancer_user)
    analytics = client.get("/analytics", params={"range": "3months"}).json()["analytics"]

    assert analytics["totalEarnings"] == 400.0
    assert analytics["totalMeetings"] == 2
    assert analytics["averageSessionDuration"] == 45
    assert len(analytics["monthlyStats"]) == 3
    assert analytics["topClients"] == [{"name": "Casey Client", "meetingsCount": 2, "totalSpent": 400.0}]
