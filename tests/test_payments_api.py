import asyncio
from types import SimpleNamespace

import httpx
import pytest

from meetboard.models import Notification
from meetboard.models_project import Payment
from meetboard.services import paypal_service, stripe_service


@pytest.fixture
def fake_stripe(monkeypatch):
    calls = {"escrow": [], "capture": [], "intent": []}

    def create_escrow_intent(amount, payment_method_id, metadata, description, currency="usd"):
        calls["escrow"].append({"amount": amount, "payment_method_id": payment_method_id, "metadata": metadata})
        return SimpleNamespace(id=f"pi_escrow_{len(calls['escrow'])}", status="requires_capture")

    def capture_payment_intent(payment_intent_id):
        calls["capture"].append(payment_intent_id)
        return SimpleNamespace(id=payment_intent_id, status="succeeded")

    def create_payment_intent(amount, metadata, description, currency="usd", receipt_email=None):
        calls["intent"].append({"amount": amount, "metadata": metadata})
        return SimpleNamespace(id="pi_checkout_1", client_secret="pi_checkout_1_secret")

    monkeypatch.setattr(stripe_service, "is_configured", lambda: True)
    monkeypatch.setattr(stripe_service, "create_escrow_intent", create_escrow_intent)
    monkeypatch.setattr(stripe_service, "capture_payment_intent", capture_payment_intent)
    monkeypatch.setattr(stripe_service, "create_payment_intent", create_payment_intent)
    return calls


def escrow_payload(project, milestone_index=0, amount=500.0):
    return {
        "projectId": project.id,
        "milestoneId": project.milestones[milestone_index].id,
        "amount": amount,
        "paymentMethodId": "pm_card_visa",
    }


# ============================================================================
# ESCROW
# ============================================================================


def test_create_escrow_holds_funds(client, db, login, make_project, client_user, freelancer_user, fake_stripe):
    project = make_project()
    login(client_user)

    response = client.post("/escrow/create", json=escrow_payload(project))

    assert response.status_code == 201
    body = response.json()
    assert body["escrowStatus"] == "HELD"
    assert body["payment"]["status"] == "ESCROWED"
    assert fake_stripe["escrow"][0]["metadata"]["type"] == "escrow_payment"

    db.refresh(project.milestones[0])
    assert project.milestones[0].status == "IN_PROGRESS"
    notification = db.query(Notification).filter(Notification.user_id == freelancer_user.id).one()
    assert notification.type == "escrow_funded"


def test_escrow_needing_card_action_stays_pending(
    client, db, login, make_project, client_user, freelancer_user, fake_stripe, monkeypatch
):
    monkeypatch.setattr(
        stripe_service,
        "create_escrow_intent",
        lambda **kwargs: SimpleNamespace(id="pi_3ds", status="requires_action", client_secret="pi_3ds_secret"),
    )
    project = make_project()
    login(client_user)

    response = client.post("/escrow/create", json=escrow_payload(project))

    assert response.status_code == 201
    body = response.json()
    assert body["escrowStatus"] == "REQUIRES_ACTION"
    assert body["clientSecret"] == "pi_3ds_secret"
    assert body["payment"]["status"] == "PENDING"

    db.refresh(project.milestones[0])
    assert project.milestones[0].status == "PENDING"
    assert db.query(Notification).filter(Notification.user_id == freelancer_user.id).count() == 0

    payment = db.query(Payment).filter(Payment.stripe_payment_intent_id == "pi_3ds").one()
    assert payment.escrowed_at is None


def test_milestone_cannot_be_funded_twice(client, login, make_project, client_user, fake_stripe):
    project = make_project()
    login(client_user)

    assert client.post("/escrow/create", json=escrow_payload(project)).status_code == 201
    response = client.post("/escrow/create", json=escrow_payload(project))
    assert response.status_code == 400
    assert len(fake_stripe["escrow"]) == 1


def test_escrow_for_someone_elses_project_returns_404(client, login, make_project, outsider, fake_stripe):
    project = make_project()
    login(outsider)
    assert client.post("/escrow/create", json=escrow_payload(project)).status_code == 404
    assert fake_stripe["escrow"] == []


def test_release_requires_completed_milestone(client, login, make_project, client_user, fake_stripe):
    project = make_project()
    login(client_user)
    payment_id = client.post("/escrow/create", json=escrow_payload(project)).json()["payment"]["id"]

    response = client.post("/escrow/release", json={"paymentId": payment_id})
    assert response.status_code == 400
    assert fake_stripe["capture"] == []


def test_release_captures_and_approves_milestone(
    client, db, login, make_project, client_user, freelancer_user, fake_stripe
):
    project = make_project()
    milestone = project.milestones[0]
    login(client_user)
    payment_id = client.post("/escrow/create", json=escrow_payload(project)).json()["payment"]["id"]

    login(freelancer_user)
    client.patch(f"/projects/{project.id}/milestones/{milestone.id}", json={"status": "COMPLETED"})

    login(client_user)
    response = client.post(
        "/escrow/release",
        json={"paymentId": payment_id, "milestoneId": milestone.id, "feedback": "Great work"},
    )

    assert response.status_code == 200
    assert response.json()["payment"]["status"] == "RELEASED"
    assert fake_stripe["capture"] == ["pi_escrow_1"]

    db.refresh(milestone)
    assert milestone.status == "APPROVED"
    payment = db.query(Payment).filter(Payment.id == payment_id).one()
    assert payment.released_at is not None
    assert "Client feedback: Great work" in payment.description

    types = {n.type for n in db.query(Notification).filter(Notification.user_id == freelancer_user.id)}
    assert "payment_released" in types

    project_body = client.get(f"/projects/{project.id}").json()
    assert project_body["completedMilestones"] == 1
    assert project_body["progress"] == 50
    assert project_body["totalReleased"] == 500


def test_release_with_mismatched_milestone_returns_400(client, login, make_project, client_user, fake_stripe):
    project = make_project()
    login(client_user)
    payment_id = client.post("/escrow/create", json=escrow_payload(project)).json()["payment"]["id"]

    response = client.post(
        "/escrow/release", json={"paymentId": payment_id, "milestoneId": project.milestones[1].id}
    )
    assert response.status_code == 400


def test_release_unknown_payment_returns_404(client, login, client_user, fake_stripe):
    login(client_user)
    assert client.post("/escrow/release", json={"paymentId": 999}).status_code == 404


def test_escrow_is_client_only(client, login, make_project, freelancer_user, fake_stripe):
    project = make_project()
    login(freelancer_user)
    assert client.post("/escrow/create", json=escrow_payload(project)).status_code == 403


# ============================================================================
# CHECKOUT
# ============================================================================


def test_stripe_checkout_records_pending_payment(client, db, login, make_project, client_user, fake_stripe):
    project = make_project()
    login(client_user)

    response = client.post(
        "/payments/stripe/create-payment-intent", json={"projectId": project.id, "amount": 250.0}
    )

    assert response.status_code == 200
    body = response.json()
    assert body["clientSecret"] == "pi_checkout_1_secret"
    payment = db.query(Payment).filter(Payment.id == body["paymentId"]).one()
    assert payment.status == "PENDING"
    assert payment.stripe_payment_intent_id == "pi_checkout_1"


def test_stripe_checkout_unconfigured_returns_500(client, login, make_project, client_user, monkeypatch):
    monkeypatch.setattr(stripe_service, "is_configured", lambda: False)
    project = make_project()
    login(client_user)
    response = client.post(
        "/payments/stripe/create-payment-intent", json={"projectId": project.id, "amount": 250.0}
    )
    assert response.status_code == 500


def test_checkout_for_someone_elses_project_returns_403(client, login, make_project, outsider, fake_stripe):
    project = make_project()
    login(outsider)
    response = client.post(
        "/payments/stripe/create-payment-intent", json={"projectId": project.id, "amount": 250.0}
    )
    assert response.status_code == 403


def test_paypal_order_and_capture(client, db, login, make_project, client_user, freelancer_user, monkeypatch):
    async def create_order(amount, description, custom_id, return_url, cancel_url, currency="USD"):
        return {"id": "ORDER-1", "status": "CREATED", "approvalUrl": "https://paypal.example/approve"}

    async def capture_order(order_id):
        return {"id": order_id, "status": "COMPLETED"}

    monkeypatch.setattr(paypal_service, "is_configured", lambda: True)
    monkeypatch.setattr(paypal_service, "create_order", create_order)
    monkeypatch.setattr(paypal_service, "capture_order", capture_order)

    project = make_project()
    login(client_user)
    order = client.post("/payments/paypal/create-order", json={"projectId": project.id, "amount": 300.0}).json()
    assert order["approvalUrl"] == "https://paypal.example/approve"

    response = client.post("/payments/paypal/capture-order", json={"orderId": "ORDER-1"})
    assert response.status_code == 200
    assert response.json()["status"] == "COMPLETED"
    assert response.json()["paidAt"] is not None


@pytest.fixture
def paypal_responds(monkeypatch):
    """Route PayPal order calls to a canned httpx response"""
    real_client = httpx.AsyncClient

    async def get_access_token():
        return "tok"

    def respond_with(response: httpx.Response):
        def client_factory(**kwargs):
            return real_client(transport=httpx.MockTransport(lambda request: response), **kwargs)

        monkeypatch.setattr(paypal_service.httpx, "AsyncClient", client_factory)

    monkeypatch.setattr(paypal_service, "is_configured", lambda: True)
    monkeypatch.setattr(paypal_service, "get_access_token", get_access_token)
    return respond_with


def test_paypal_html_error_page_raises_service_error(paypal_responds):
    paypal_responds(httpx.Response(502, text="<html>Bad gateway</html>"))

    with pytest.raises(paypal_service.PayPalServiceError):
        asyncio.run(
            paypal_service.create_order(300.0, "Milestone", "custom-1", "https://x/ok", "https://x/cancel")
        )


def test_paypal_capture_with_unreadable_body_raises_service_error(paypal_responds):
    paypal_responds(httpx.Response(200, text="OK"))

    with pytest.raises(paypal_service.PayPalServiceError):
        asyncio.run(paypal_service.capture_order("ORDER-1"))


def test_paypal_outage_returns_502(client, login, make_project, client_user, paypal_responds):
    paypal_responds(httpx.Response(503, text="Service Unavailable"))
    project = make_project()
    login(client_user)

    response = client.post("/payments/paypal/create-order", json={"projectId": project.id, "amount": 300.0})

    assert response.status_code == 502


# ============================================================================
# MANUAL PAYMENTS
# ============================================================================


def test_manual_payment_for_meeting(client, login, make_meeting, client_user, outsider):
    meeting = make_meeting()

    login(outsider)
    assert client.post("/payments", json={"meetingId": meeting.id, "amount": 80}).status_code == 403

    login(client_user)
    response = client.post("/payments", json={"meetingId": meeting.id, "amount": 80})
    assert response.status_code == 201
    assert response.json()["paymentMethod"] == "MANUAL"

    assert len(client.get("/payments").json()) == 1
