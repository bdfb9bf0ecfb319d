import os

# Settings are read at import time, so they must be in place before meetboard loads
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["RESEND_API_KEY"] = ""
os.environ["STRIPE_SECRET_KEY"] = "sk_test_dummy"
os.environ["STRIPE_WEBHOOK_SECRET"] = "whsec_test_secret"
os.environ["CAL_WEBHOOK_SECRET"] = "cal_test_secret"
os.environ["PAYPAL_CLIENT_ID"] = ""
os.environ["PAYPAL_CLIENT_SECRET"] = ""
os.environ.pop("REDIS_URL", None)
os.environ.pop("REDIS_HOST", None)

from datetime import datetime, timedelta  # noqa: E402

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from meetboard.auth import get_current_user  # noqa: E402
from meetboard.database import Base, get_db  # noqa: E402
from meetboard.domain.meetings import lifecycle  # noqa: E402
from meetboard.main import app  # noqa: E402
from meetboard.models import ROLE_CLIENT, ROLE_FREELANCER, FreelancerProfile, User  # noqa: E402
from meetboard.models_meeting import Meeting  # noqa: E402
from meetboard.models_project import Milestone, Project  # noqa: E402

engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db():
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def other_session(db):
    """A second session on the same database, like a concurrent worker"""
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client(db):
    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def login():
    """Authenticate subsequent requests as the given user"""

    def _login(user: User) -> User:
        app.dependency_overrides[get_current_user] = lambda: user
        return user

    return _login


@pytest.fixture
def make_user(db):
    counter = {"n": 0}

    def _make_user(role: str = ROLE_CLIENT, name: str = None, email: str = None) -> User:
        counter["n"] += 1
        n = counter["n"]
        user = User(
            firebase_uid=f"uid-{role.lower()}-{n}",
            email=email or f"{role.lower()}{n}@example.com",
            name=name or f"{role.title()} {n}",
            role=role,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    return _make_user


@pytest.fixture
def client_user(make_user):
    return make_user(ROLE_CLIENT, name="Casey Client")


@pytest.fixture
def freelancer_user(db, make_user):
    user = make_user(ROLE_FREELANCER, name="Fran Freelancer", email="fran@example.com")
    db.add(
        FreelancerProfile(
            user_id=user.id,
            title="Full-stack developer",
            description="React and FastAPI",
            hourly_rate=85.0,
            skills=["react", "python"],
            cal_username="fran",
            cal_link="https://cal.com/fran",
        )
    )
    db.commit()
    return user


@pytest.fixture
def outsider(make_user):
    return make_user(ROLE_CLIENT, name="Olly Outsider")


@pytest.fixture
def make_meeting(db, client_user, freelancer_user):
    def _make_meeting(
        status: str = lifecycle.CONFIRMED,
        starts_in: timedelta = timedelta(hours=3),
        duration: int = 60,
        meeting_type: str = lifecycle.TYPE_REGULAR,
        **fields,
    ) -> Meeting:
        meeting = Meeting(
            client_id=fields.pop("client_id", client_user.id),
            freelancer_id=fields.pop("freelancer_id", freelancer_user.id),
            title=fields.pop("title", "Kickoff call"),
            scheduled_at=datetime.utcnow() + starts_in,
            duration=duration,
            status=status,
            type=meeting_type,
            meeting_url=fields.pop("meeting_url", "https://meet.example.com/room"),
            **fields,
        )
        db.add(meeting)
        db.commit()
        db.refresh(meeting)
        return meeting

    return _make_meeting


@pytest.fixture
def make_project(db, client_user, freelancer_user):
    def _make_project(status: str = "CLIENT_APPROVED", milestone_amounts=(500.0, 500.0)) -> Project:
        project = Project(
            client_id=client_user.id,
            freelancer_id=freelancer_user.id,
            title="Marketing site",
            description="Landing page and blog",
            total_amount=sum(milestone_amounts),
            status=status,
        )
        project.milestones = [
            Milestone(title=f"Milestone {i + 1}", amount=amount, status="PENDING")
            for i, amount in enumerate(milestone_amounts)
        ]
        db.add(project)
        db.commit()
        db.refresh(project)
        return project

    return _make_project
