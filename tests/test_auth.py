import asyncio

import pytest
from fastapi import HTTPException
from fastapi.security import HTTPAuthorizationCredentials

from meetboard import auth
from meetboard.models import User


@pytest.fixture
def token_claims(monkeypatch):
    claims = {}

    async def fake_verify(token):
        return dict(claims)

    monkeypatch.setattr(auth, "verify_firebase_token", fake_verify)
    return claims


@pytest.fixture
def booked_client(db):
    """Client created by a booking webhook, before they ever signed in"""
    user = User(firebase_uid=None, email="booked@example.com", name="", role="CLIENT")
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def current_user(db):
    credentials = HTTPAuthorizationCredentials(scheme="Bearer", credentials="token")
    return asyncio.run(auth.get_current_user(credentials, db))


def test_verified_email_links_booked_client(db, token_claims, booked_client):
    token_claims.update(sub="fb-booked", email="booked@example.com", email_verified=True, name="Bea")

    user = current_user(db)

    assert user.id == booked_client.id
    assert user.firebase_uid == "fb-booked"
    assert user.name == "Bea"


def test_unverified_email_cannot_claim_booked_client(db, token_claims, booked_client):
    token_claims.update(sub="fb-attacker", email="booked@example.com", email_verified=False)

    with pytest.raises(HTTPException) as exc:
        current_user(db)

    assert exc.value.status_code == 409
    db.refresh(booked_client)
    assert booked_client.firebase_uid is None
    assert db.query(User).count() == 1


def test_missing_verification_claim_is_refused(db, token_claims, booked_client):
    token_claims.update(sub="fb-other", email="booked@example.com")

    with pytest.raises(HTTPException) as exc:
        current_user(db)

    assert exc.value.status_code == 409


def test_email_of_linked_account_is_not_relinked(db, token_claims, client_user):
    original_uid = client_user.firebase_uid
    token_claims.update(sub="fb-second", email=client_user.email, email_verified=True)

    with pytest.raises(HTTPException) as exc:
        current_user(db)

    assert exc.value.status_code == 409
    db.refresh(client_user)
    assert client_user.firebase_uid == original_uid


def test_known_uid_returns_existing_user(db, token_claims, client_user):
    token_claims.update(sub=client_user.firebase_uid, email=client_user.email)
    assert current_user(db).id == client_user.id


def test_new_uid_provisions_user(db, token_claims):
    token_claims.update(sub="fb-new", email="new@example.com", name="Nova", role="FREELANCER")

    user = current_user(db)

    assert user.firebase_uid == "fb-new"
    assert user.role == "FREELANCER"
