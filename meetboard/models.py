from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from .database import Base

ROLE_CLIENT = "CLIENT"
ROLE_FREELANCER = "FREELANCER"
ROLES = (ROLE_CLIENT, ROLE_FREELANCER)


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    # Null for clients created from a booking webhook until their first login
    firebase_uid = Column(String(255), unique=True, index=True, nullable=True)
    email = Column(String(255), unique=True, index=True, nullable=False)
    name = Column(String(255), nullable=True)
    role = Column(String(20), nullable=False, default=ROLE_CLIENT)  # CLIENT, FREELANCER
    image_url = Column(String(500), nullable=True)
    onboarding_completed = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    freelancer_profile = relationship("FreelancerProfile", back_populates="user", uselist=False)
    verification = relationship("UserVerification", back_populates="user", uselist=False)
    notifications = relationship("Notification", back_populates="user", cascade="all, delete-orphan")

    @property
    def is_client(self) -> bool:
        return self.role == ROLE_CLIENT

    @property
    def is_freelancer(self) -> bool:
        return self.role == ROLE_FREELANCER


class FreelancerProfile(Base):
    __tablename__ = "freelancer_profiles"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), unique=True, nullable=False)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=False)
    hourly_rate = Column(Float, nullable=False)
    skills = Column(JSON, default=list)
    experience = Column(String(100), nullable=True)
    portfolio = Column(JSON, default=list)
    integrations = Column(JSON, default=list)
    availability = Column(String(255), nullable=True)
    # Cal.com organizer username and booking page, used to route booking webhooks
    cal_username = Column(String(255), nullable=True, index=True)
    cal_link = Column(String(500), nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    user = relationship("User", back_populates="freelancer_profile")


class UserVerification(Base):
    __tablename__ = "user_verifications"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), unique=True, nullable=False)
    # UNVERIFIED, PENDING, VERIFIED, REJECTED
    id_verification = Column(String(20), default="UNVERIFIED", nullable=False)
    email_verified = Column(Boolean, default=False, nullable=False)
    phone_verified = Column(Boolean, default=False, nullable=False)
    portfolio_verified = Column(Boolean, default=False, nullable=False)
    background_check = Column(String(20), default="UNVERIFIED", nullable=False)
    verified_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    user = relationship("User", back_populates="verification")


class Notification(Base):
    __tablename__ = "notifications"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    title = Column(String(255), nullable=False)
    message = Column(Text, nullable=False)
    type = Column(String(50), nullable=False)  # meeting_request, payment_released, ...
    is_read = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, server_default=func.now())

    user = relationship("User", back_populates="notifications")


class Review(Base):
    __tablename__ = "reviews"

    id = Column(Integer, primary_key=True, index=True)
    reviewer_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    reviewee_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    meeting_id = Column(Integer, ForeignKey("meetings.id"), nullable=True)
    project_id = Column(Integer, ForeignKey("projects.id"), nullable=True)
    rating = Column(Integer, nullable=False)  # 1-5
    comment = Column(Text, nullable=True)
    created_at = Column(DateTime, server_default=func.now())

    reviewer = relationship("User", foreign_keys=[reviewer_id])
    reviewee = relationship("User", foreign_keys=[reviewee_id])


class FreelancerDecision(Base):
    """A client's post-discovery verdict on a freelancer"""

    __tablename__ = "freelancer_decisions"
    __table_args__ = (UniqueConstraint("client_id", "freelancer_id", name="uq_decision_client_freelancer"),)

    id = Column(Integer, primary_key=True, index=True)
    client_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    freelancer_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    decision = Column(String(20), nullable=False)  # approve, reject
    feedback = Column(Text, nullable=True)
    project_details = Column(JSON, nullable=True)
    meeting_id = Column(Integer, ForeignKey("meetings.id"), nullable=True)  # collaboration board
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())


# Register the remaining mappers so string relationships resolve on first use
from . import models_meeting, models_project  # noqa: E402, F401
