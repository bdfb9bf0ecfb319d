from meetboard.domain.meetings import lifecycle
from meetboard.models import FreelancerDecision, Notification, Review
from meetboard.models_meeting import Meeting


# ============================================================================
# USERS
# ============================================================================


def test_get_me_reports_profile(client, login, freelancer_user):
    login(freelancer_user)
    body = client.get("/users/me").json()

    assert body["email"] == "fran@example.com"
    assert body["role"] == "FREELANCER"
    assert body["hasFreelancerProfile"] is True


def test_role_can_change_during_onboarding(client, login, client_user):
    login(client_user)
    response = client.patch("/users/me", json={"role": "freelancer", "name": "Casey C."})

    assert response.status_code == 200
    assert response.json()["role"] == "FREELANCER"
    assert response.json()["name"] == "Casey C."


def test_role_is_locked_after_onboarding(client, db, login, client_user):
    client_user.onboarding_completed = True
    db.commit()
    login(client_user)

    response = client.patch("/users/me", json={"role": "FREELANCER"})
    assert response.status_code == 400


def test_unknown_role_is_rejected(client, login, client_user):
    login(client_user)
    assert client.patch("/users/me", json={"role": "ADMIN"}).status_code == 422


def test_inline_image_data_is_rejected(client, login, client_user):
    login(client_user)
    response = client.patch("/users/me", json={"image": "data:image/png;base64,AAAA"})
    assert response.status_code == 400


# ============================================================================
# FREELANCERS
# ============================================================================


def test_directory_lists_active_freelancers(client, login, client_user, freelancer_user):
    login(client_user)
    profiles = client.get("/freelancers").json()

    assert [p["userId"] for p in profiles] == [freelancer_user.id]
    assert profiles[0]["hourlyRate"] == 85.0


def test_freelancer_upserts_own_profile(client, login, make_user):
    newcomer = login(make_user("FREELANCER"))
    payload = {"title": "Designer", "description": "Brand identity", "hourlyRate": 60, "skills": ["figma"]}

    assert client.get("/freelancers/me/profile").status_code == 404
    created = client.post("/freelancers/me/profile", json=payload)
    assert created.status_code == 200
    assert created.json()["userId"] == newcomer.id

    payload["hourlyRate"] = 75
    updated = client.post("/freelancers/me/profile", json=payload).json()
    assert updated["id"] == created.json()["id"]
    assert updated["hourlyRate"] == 75.0


def test_clients_cannot_edit_profiles(client, login, client_user):
    login(client_user)
    payload = {"title": "x", "description": "y", "hourlyRate": 10}
    assert client.post("/freelancers/me/profile", json=payload).status_code == 403


def test_public_profile_needs_no_login(client, freelancer_user):
    body = client.get(f"/freelancers/{freelancer_user.id}/public").json()

    assert body["title"] == "Full-stack developer"
    assert body["reviews"] == []
    assert body["totalReviews"] == 0


def test_unknown_freelancer_is_404(client, login, client_user):
    login(client_user)
    assert client.get("/freelancers/9999").status_code == 404


def test_review_requires_a_held_meeting(client, login, client_user, freelancer_user):
    login(client_user)
    response = client.post(f"/freelancers/{freelancer_user.id}/reviews", json={"rating": 5})
    assert response.status_code == 403


def test_review_after_meeting(client, db, login, client_user, freelancer_user, make_meeting):
    make_meeting(status=lifecycle.COMPLETED)
    login(client_user)

    response = client.post(
        f"/freelancers/{freelancer_user.id}/reviews", json={"rating": 4, "comment": "Great call"}
    )
    assert response.status_code == 201
    assert response.json()["reviewerName"] == "Casey Client"

    public = client.get(f"/freelancers/{freelancer_user.id}/public").json()
    assert public["averageRating"] == 4.0
    assert public["totalReviews"] == 1
    assert db.query(Notification).filter(Notification.type == "new_review").count() == 1


def test_review_rating_is_bounded(client, login, client_user, freelancer_user):
    login(client_user)
    response = client.post(f"/freelancers/{freelancer_user.id}/reviews", json={"rating": 6})
    assert response.status_code == 422


def test_approving_freelancer_opens_meeting_board(client, db, login, client_user, freelancer_user):
    login(client_user)
    response = client.post(
        "/freelancer-decisions",
        json={
            "freelancerId": freelancer_user.id,
            "decision": "approve",
            "projectDetails": {"budget": "$5k", "timeline": "6 weeks"},
        },
    )

    assert response.status_code == 200
    body = response.json()
    board = db.query(Meeting).filter(Meeting.id == body["meetingId"]).one()
    assert board.type == lifecycle.TYPE_COLLABORATION
    assert board.status == lifecycle.CONFIRMED
    assert "Budget: $5k" in board.notes
    assert body["redirectUrl"] == f"/dashboard/meetings/{board.id}"


def test_rejecting_freelancer_requires_feedback(client, login, client_user, freelancer_user):
    login(client_user)
    response = client.post(
        "/freelancer-decisions", json={"freelancerId": freelancer_user.id, "decision": "reject"}
    )
    assert response.status_code == 400


def test_decision_is_recorded_once_per_pair(client, db, login, client_user, freelancer_user):
    login(client_user)
    for decision in ("reject", "approve"):
        client.post(
            "/freelancer-decisions",
            json={"freelancerId": freelancer_user.id, "decision": decision, "feedback": "changed my mind"},
        )

    record = db.query(FreelancerDecision).one()
    assert record.decision == "approve"
    assert record.meeting_id is not None


def test_freelancers_cannot_submit_decisions(client, login, freelancer_user):
    login(freelancer_user)
    response = client.post(
        "/freelancer-decisions", json={"freelancerId": freelancer_user.id, "decision": "approve"}
    )
    assert response.status_code == 403


# ============================================================================
# NOTIFICATIONS
# ============================================================================


def test_notification_feed_is_private(client, login, client_user, outsider):
    login(client_user)
    created = client.post("/notifications", json={"title": "Hi", "message": "Hello", "type": "info"})
    assert created.status_code == 201
    notification_id = created.json()["id"]

    feed = client.get("/notifications").json()
    assert feed["unreadCount"] == 1
    assert feed["notifications"][0]["isRead"] is False

    login(outsider)
    assert client.get("/notifications").json()["notifications"] == []
    assert client.patch(f"/notifications/{notification_id}", json={"isRead": True}).status_code == 404
    assert client.delete(f"/notifications/{notification_id}").status_code == 404


def test_mark_read_and_delete(client, db, login, client_user):
    login(client_user)
    ids = [
        client.post("/notifications", json={"title": f"N{i}", "message": "m", "type": "info"}).json()["id"]
        for i in range(3)
    ]

    assert client.patch(f"/notifications/{ids[0]}", json={"isRead": True}).json()["isRead"] is True
    assert client.post("/notifications/mark-all-read").json() == {"success": True, "updated": 2}
    assert client.get("/notifications").json()["unreadCount"] == 0

    assert client.delete(f"/notifications/{ids[1]}").json() == {"success": True}
    assert db.query(Notification).count() == 2


# ============================================================================
# VERIFICATION
# ============================================================================


def test_verification_starts_unverified(client, login, freelancer_user):
    login(freelancer_user)
    status = client.get("/verification/status").json()

    assert status["score"] == 0
    assert status["totalChecks"] == 5
    assert status["trustLevel"] == "UNVERIFIED"
    assert status["isFullyVerified"] is False


def test_verification_progress_and_completion(client, db, login, freelancer_user):
    login(freelancer_user)
    for kind in ("email_verification", "phone_verification", "portfolio_verification"):
        assert client.post("/verification/submit", json={"verificationType": kind}).status_code == 200

    status = client.get("/verification/status").json()
    assert status["score"] == 3
    assert status["trustLevel"] == "VERIFIED"
    assert status["progressPercentage"] == 60.0

    response = client.post("/verification/submit", json={"verificationType": "id_verification"})
    assert response.json()["verification"]["idVerification"] == "PENDING"
    assert response.json()["verification"]["isFullyVerified"] is False
    assert db.query(Notification).filter(Notification.type == "verification_complete").count() == 0


def test_unknown_verification_type(client, login, freelancer_user):
    login(freelancer_user)
    response = client.post("/verification/submit", json={"verificationType": "dna_test"})
    assert response.status_code == 400


def test_review_listing_order(db, client, login, client_user, freelancer_user, make_meeting):
    make_meeting(status=lifecycle.CLIENT_APPROVED)
    login(client_user)
    for rating in (3, 5):
        client.post(f"/freelancers/{freelancer_user.id}/reviews", json={"rating": rating})

    assert db.query(Review).count() == 2
    public = client.get(f"/freelancers/{freelancer_user.id}/public").json()
    assert public["averageRating"] == 4.0
    assert [r["rating"] for r in public["reviews"]] == [5, 3]
