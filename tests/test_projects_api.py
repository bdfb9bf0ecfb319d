from meetboard.models import Notification
from meetboard.models_project import Milestone, Project


def project_payload(freelancer_id, total=1000.0, amounts=(400.0, 600.0)):
    return {
        "freelancerId": freelancer_id,
        "title": "Marketing site",
        "description": "Landing page and blog",
        "totalAmount": total,
        "milestones": [{"title": f"Phase {i + 1}", "amount": a} for i, a in enumerate(amounts)],
    }


# ============================================================================
# PROPOSALS
# ============================================================================


def test_create_project_with_milestones(client, db, login, client_user, freelancer_user):
    login(client_user)
    response = client.post("/projects", json=project_payload(freelancer_user.id))

    assert response.status_code == 201
    body = response.json()
    assert body["status"] == "DRAFT"
    assert body["totalMilestones"] == 2
    assert [m["status"] for m in body["milestones"]] == ["PENDING", "PENDING"]
    assert body["progress"] == 0
    assert body["totalEscrowed"] == 0

    notification = db.query(Notification).filter(Notification.user_id == freelancer_user.id).one()
    assert notification.type == "project_proposal"


def test_milestone_total_mismatch_returns_400(client, db, login, client_user, freelancer_user):
    login(client_user)
    response = client.post("/projects", json=project_payload(freelancer_user.id, total=1200.0))

    assert response.status_code == 400
    assert response.json()["detail"] == "Milestone amounts must equal total project amount"
    assert db.query(Project).count() == 0
    assert db.query(Milestone).count() == 0


def test_milestone_total_within_a_cent_is_accepted(client, login, client_user, freelancer_user):
    login(client_user)
    response = client.post(
        "/projects", json=project_payload(freelancer_user.id, total=100.0, amounts=(33.33, 33.33, 33.34))
    )
    assert response.status_code == 201


def test_project_requires_milestones(client, login, client_user, freelancer_user):
    login(client_user)
    response = client.post("/projects", json=project_payload(freelancer_user.id, amounts=()))
    assert response.status_code == 400


def test_project_with_unknown_freelancer_returns_404(client, login, client_user):
    login(client_user)
    assert client.post("/projects", json=project_payload(4242)).status_code == 404


def test_freelancer_cannot_propose_projects(client, login, freelancer_user):
    login(freelancer_user)
    assert client.post("/projects", json=project_payload(freelancer_user.id)).status_code == 403


def test_project_hidden_from_non_participants(client, login, make_project, outsider):
    project = make_project()
    login(outsider)
    response = client.get(f"/projects/{project.id}")
    assert response.status_code == 404
    assert client.get("/projects").json() == []


# ============================================================================
# STATUS & MILESTONES
# ============================================================================


def test_status_updates_are_role_scoped(client, login, make_project, client_user, freelancer_user):
    project = make_project(status="DRAFT")

    login(freelancer_user)
    response = client.patch(f"/projects/{project.id}", json={"status": "CLIENT_APPROVED"})
    assert response.status_code == 400
    assert response.json()["detail"] == "No valid updates provided"

    login(client_user)
    response = client.patch(f"/projects/{project.id}", json={"status": "CLIENT_APPROVED"})
    assert response.status_code == 200
    assert response.json()["status"] == "CLIENT_APPROVED"

    login(freelancer_user)
    response = client.patch(f"/projects/{project.id}", json={"status": "ACTIVE"})
    assert response.status_code == 200
    assert response.json()["startDate"] is not None


def test_only_freelancer_completes_milestones(client, login, make_project, client_user, freelancer_user):
    project = make_project()
    milestone_id = project.milestones[0].id

    login(client_user)
    url = f"/projects/{project.id}/milestones/{milestone_id}"
    assert client.patch(url, json={"status": "COMPLETED"}).status_code == 403

    login(freelancer_user)
    assert client.patch(url, json={"status": "APPROVED"}).status_code == 400
    response = client.patch(url, json={"status": "COMPLETED"})
    assert response.status_code == 200
    assert response.json()["status"] == "COMPLETED"

    # already delivered
    assert client.patch(url, json={"status": "COMPLETED"}).status_code == 400
    assert client.patch(f"/projects/{project.id}/milestones/9999", json={"status": "COMPLETED"}).status_code == 404


# ============================================================================
# MEETBOARD CHAT
# ============================================================================


def test_meetboard_requires_client_approval(client, login, make_project, client_user):
    project = make_project(status="DRAFT")
    login(client_user)
    response = client.get(f"/projects/{project.id}/messages")
    assert response.status_code == 403
    assert response.json()["detail"] == "Meetboard access requires client approval"


def test_meetboard_chat_notifies_other_party(client, db, login, make_project, client_user, freelancer_user):
    project = make_project(status="ACTIVE")

    login(freelancer_user)
    response = client.post(f"/projects/{project.id}/messages", json={"content": "Draft is up"})
    assert response.status_code == 201

    login(client_user)
    messages = client.get(f"/projects/{project.id}/messages").json()
    assert [m["content"] for m in messages] == ["Draft is up"]

    notification = db.query(Notification).filter(Notification.user_id == client_user.id).one()
    assert notification.type == "project_message"
