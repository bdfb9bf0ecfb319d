from datetime import datetime, timedelta

from meetboard.domain.meetings import lifecycle
from meetboard.models import Notification
from meetboard.models_meeting import Meeting
from meetboard.models_project import Project


def meeting_payload(freelancer_id, starts_in=timedelta(hours=3), **overrides):
    payload = {
        "freelancerId": freelancer_id,
        "title": "Kickoff call",
        "description": "Scope the MVP",
        "scheduledAt": (datetime.utcnow() + starts_in).isoformat(),
        "duration": 45,
    }
    payload.update(overrides)
    return payload


# ============================================================================
# BOOKING
# ============================================================================


def test_create_meeting_with_unknown_freelancer_returns_404(client, login, client_user):
    login(client_user)
    response = client.post("/meetings", json=meeting_payload(9999))
    assert response.status_code == 404
    assert response.json()["detail"] == "Freelancer not found"


def test_create_meeting_with_client_id_as_freelancer_returns_404(client, login, client_user, outsider):
    login(client_user)
    response = client.post("/meetings", json=meeting_payload(outsider.id))
    assert response.status_code == 404


def test_freelancer_cannot_book_meetings(client, login, freelancer_user):
    login(freelancer_user)
    response = client.post("/meetings", json=meeting_payload(freelancer_user.id))
    assert response.status_code == 403


def test_create_meeting_is_pending_and_notifies_freelancer(client, db, login, client_user, freelancer_user):
    login(client_user)
    response = client.post("/meetings", json=meeting_payload(freelancer_user.id))

    assert response.status_code == 201
    body = response.json()
    assert body["status"] == lifecycle.PENDING
    assert body["type"] == lifecycle.TYPE_REGULAR
    assert body["duration"] == 45
    assert body["meetingUrl"] is None
    assert body["linkAvailable"] is False

    stored = db.query(Meeting).filter(Meeting.id == body["id"]).one()
    assert stored.meeting_url.endswith(f"/meeting-room/{stored.id}")

    notification = db.query(Notification).filter(Notification.user_id == freelancer_user.id).one()
    assert notification.type == "meeting_request"


def test_create_meeting_rejects_out_of_range_duration(client, login, client_user, freelancer_user):
    login(client_user)
    response = client.post("/meetings", json=meeting_payload(freelancer_user.id, duration=600))
    assert response.status_code == 422


def test_list_meetings_is_scoped_to_role(client, login, make_meeting, client_user, freelancer_user, outsider):
    make_meeting()
    make_meeting(client_id=outsider.id)

    login(client_user)
    assert len(client.get("/meetings").json()) == 1

    login(freelancer_user)
    assert len(client.get("/meetings").json()) == 2


def test_get_meeting_access_control(client, login, make_meeting, outsider, client_user):
    meeting = make_meeting()

    login(outsider)
    assert client.get(f"/meetings/{meeting.id}").status_code == 403

    login(client_user)
    assert client.get("/meetings/9999").status_code == 404
    assert client.get(f"/meetings/{meeting.id}").status_code == 200


# ============================================================================
# STATUS CHANGES
# ============================================================================


def test_only_freelancer_can_confirm(client, login, make_meeting, client_user, freelancer_user):
    meeting = make_meeting(status=lifecycle.PENDING)

    login(client_user)
    response = client.patch(f"/meetings/{meeting.id}", json={"status": "CONFIRMED"})
    assert response.status_code == 403

    login(freelancer_user)
    response = client.patch(f"/meetings/{meeting.id}", json={"status": "CONFIRMED"})
    assert response.status_code == 200
    assert response.json()["status"] == lifecycle.CONFIRMED


def test_status_outside_manual_set_is_rejected(client, login, make_meeting, freelancer_user):
    meeting = make_meeting()
    login(freelancer_user)
    response = client.patch(f"/meetings/{meeting.id}", json={"status": "CLIENT_APPROVED"})
    assert response.status_code == 400


def test_cancelled_meeting_cannot_be_confirmed(client, login, make_meeting, client_user, freelancer_user):
    meeting = make_meeting(status=lifecycle.PENDING)

    login(client_user)
    assert client.patch(f"/meetings/{meeting.id}", json={"status": "CANCELLED"}).status_code == 200

    login(freelancer_user)
    response = client.patch(f"/meetings/{meeting.id}", json={"status": "CONFIRMED"})
    assert response.status_code == 400
    assert "Cannot change meeting status" in response.json()["detail"]


def test_meeting_url_revealed_within_an_hour_of_start(client, login, make_meeting, client_user):
    soon = make_meeting(starts_in=timedelta(minutes=30))
    later = make_meeting(starts_in=timedelta(hours=5))
    login(client_user)

    soon_body = client.get(f"/meetings/{soon.id}").json()
    assert soon_body["meetingUrl"] == "https://meet.example.com/room"
    assert soon_body["linkAvailable"] is True
    assert soon_body["minutesUntilLink"] == 0

    later_body = client.get(f"/meetings/{later.id}").json()
    assert later_body["meetingUrl"] is None
    assert later_body["minutesUntilLink"] > 0


# ============================================================================
# COMPLETION & CLIENT DECISION
# ============================================================================


def test_complete_requires_confirmed_meeting(client, login, make_meeting, freelancer_user):
    meeting = make_meeting(status=lifecycle.PENDING)
    login(freelancer_user)
    assert client.post(f"/meetings/{meeting.id}/complete").status_code == 400


def test_complete_then_approve_creates_project(client, db, login, make_meeting, client_user, freelancer_user):
    meeting = make_meeting(starts_in=timedelta(minutes=-60))

    login(freelancer_user)
    response = client.post(f"/meetings/{meeting.id}/complete")
    assert response.status_code == 200
    assert response.json()["status"] == lifecycle.AWAITING_CLIENT_DECISION

    login(client_user)
    response = client.post(f"/meetings/{meeting.id}/client-decision", json={"decision": "approve"})
    assert response.status_code == 200
    body = response.json()
    assert body["decision"] == lifecycle.DECISION_APPROVED
    assert body["redirectUrl"] == f"/dashboard/projects/{body['projectId']}"

    project = db.query(Project).filter(Project.id == body["projectId"]).one()
    assert project.status == "CLIENT_APPROVED"
    assert project.client_id == client_user.id

    db.refresh(meeting)
    assert meeting.status == lifecycle.CLIENT_APPROVED
    assert meeting.project_id == project.id


def test_reject_records_feedback_without_project(client, db, login, make_meeting, client_user):
    meeting = make_meeting(status=lifecycle.AWAITING_CLIENT_DECISION)
    login(client_user)

    response = client.post(
        f"/meetings/{meeting.id}/client-decision", json={"decision": "reject", "feedback": "Not a fit"}
    )
    assert response.status_code == 200
    assert response.json()["projectId"] is None

    db.refresh(meeting)
    assert meeting.status == lifecycle.CLIENT_REJECTED
    assert "Client Feedback: Not a fit" in meeting.notes
    assert db.query(Project).count() == 0


def test_client_decision_requires_the_meetings_client(client, login, make_meeting, freelancer_user):
    meeting = make_meeting(status=lifecycle.AWAITING_CLIENT_DECISION)
    login(freelancer_user)
    response = client.post(f"/meetings/{meeting.id}/client-decision", json={"decision": "approve"})
    assert response.status_code == 403


def test_client_decision_rejects_unknown_decision(client, login, make_meeting, client_user):
    meeting = make_meeting(status=lifecycle.AWAITING_CLIENT_DECISION)
    login(client_user)
    response = client.post(f"/meetings/{meeting.id}/client-decision", json={"decision": "maybe"})
    assert response.status_code == 400


def test_client_decision_before_meeting_held_returns_400(client, login, make_meeting, client_user):
    meeting = make_meeting()
    login(client_user)
    response = client.post(f"/meetings/{meeting.id}/client-decision", json={"decision": "approve"})
    assert response.status_code == 400


def test_completion_check_auto_completes_overdue_meeting(client, login, make_meeting, client_user):
    overdue = make_meeting(starts_in=timedelta(hours=-2))
    running = make_meeting(starts_in=timedelta(minutes=-10))
    login(client_user)

    body = client.get(f"/meetings/{overdue.id}/completion").json()
    assert body["autoCompleted"] is True
    assert body["status"] == lifecycle.AWAITING_CLIENT_DECISION

    body = client.get(f"/meetings/{running.id}/completion").json()
    assert body["autoCompleted"] is False
    assert body["timeRemaining"] > 0


def test_complete_discovery(client, login, make_meeting, client_user):
    early = make_meeting(starts_in=timedelta(minutes=-5), duration=30, meeting_type=lifecycle.TYPE_DISCOVERY)
    ready = make_meeting(starts_in=timedelta(minutes=-27), duration=30, meeting_type=lifecycle.TYPE_DISCOVERY)
    regular = make_meeting(starts_in=timedelta(minutes=-60), duration=30)
    login(client_user)

    assert client.post(f"/meetings/{early.id}/complete-discovery").status_code == 400
    assert client.post(f"/meetings/{regular.id}/complete-discovery").status_code == 400

    response = client.post(f"/meetings/{ready.id}/complete-discovery")
    assert response.status_code == 200
    assert response.json()["redirectUrl"] == f"/client-decision/{ready.id}"


# ============================================================================
# NOTES & CHAT
# ============================================================================


def test_update_notes(client, login, make_meeting, freelancer_user):
    meeting = make_meeting()
    login(freelancer_user)
    response = client.patch(f"/meetings/{meeting.id}/notes", json={"notes": "Agenda: scope"})
    assert response.status_code == 200
    assert response.json()["notes"] == "Agenda: scope"


def test_chat_messages(client, db, login, make_meeting, client_user, freelancer_user):
    meeting = make_meeting()
    login(client_user)

    response = client.post(f"/meetings/{meeting.id}/messages", json={"content": "  <b>Hi</b> there  "})
    assert response.status_code == 201
    assert response.json()["content"] == "&lt;b&gt;Hi&lt;/b&gt; there"

    assert client.post(f"/meetings/{meeting.id}/messages", json={"content": "   "}).status_code == 400

    login(freelancer_user)
    messages = client.get(f"/meetings/{meeting.id}/messages").json()
    assert [m["senderId"] for m in messages] == [client_user.id]

    notification = db.query(Notification).filter(Notification.user_id == freelancer_user.id).one()
    assert notification.type == "meeting_message"


def test_chat_requires_participant(client, login, make_meeting, outsider):
    meeting = make_meeting()
    login(outsider)
    assert client.get(f"/meetings/{meeting.id}/messages").status_code == 403
    assert client.post(f"/meetings/{meeting.id}/messages", json={"content": "hi"}).status_code == 403
