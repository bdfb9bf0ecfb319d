"""
Project, milestone, payment and dispute models
"""

from sqlalchemy import JSON, Column, DateTime, Float, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from .database import Base


class Project(Base):
    __tablename__ = "projects"

    id = Column(Integer, primary_key=True, index=True)
    client_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    freelancer_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    total_amount = Column(Float, default=0, nullable=False)
    currency = Column(String(3), default="USD", nullable=False)
    # DRAFT, ACTIVE, CLIENT_APPROVED, CLIENT_REJECTED, COMPLETED, CANCELLED, DISPUTED
    status = Column(String(30), default="DRAFT", nullable=False)
    start_date = Column(DateTime, nullable=True)
    end_date = Column(DateTime, nullable=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    client = relationship("User", foreign_keys=[client_id])
    freelancer = relationship("User", foreign_keys=[freelancer_id])
    milestones = relationship(
        "Milestone", back_populates="project", cascade="all, delete-orphan", order_by="Milestone.id"
    )
    payments = relationship("Payment", back_populates="project")
    messages = relationship("Message", back_populates="project", order_by="Message.id")
    files = relationship("File", back_populates="project")
    disputes = relationship("Dispute", back_populates="project")

    def is_participant(self, user_id: int) -> bool:
        return user_id in (self.client_id, self.freelancer_id)

    def other_party_id(self, user_id: int) -> int:
        return self.freelancer_id if user_id == self.client_id else self.client_id


class Milestone(Base):
    __tablename__ = "milestones"

    id = Column(Integer, primary_key=True, index=True)
    project_id = Column(Integer, ForeignKey("projects.id"), nullable=False, index=True)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    amount = Column(Float, nullable=False)
    due_date = Column(DateTime, nullable=True)
    status = Column(String(20), default="PENDING", nullable=False)  # PENDING, IN_PROGRESS, COMPLETED, APPROVED
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    project = relationship("Project", back_populates="milestones")
    payments = relationship("Payment", back_populates="milestone")


class Payment(Base):
    __tablename__ = "payments"

    id = Column(Integer, primary_key=True, index=True)
    project_id = Column(Integer, ForeignKey("projects.id"), nullable=True, index=True)
    milestone_id = Column(Integer, ForeignKey("milestones.id"), nullable=True, index=True)
    meeting_id = Column(Integer, ForeignKey("meetings.id"), nullable=True)
    client_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    freelancer_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)

    amount = Column(Float, nullable=False)
    currency = Column(String(3), default="USD", nullable=False)
    # PENDING, ESCROWED, COMPLETED, RELEASED, FAILED, CANCELLED, REFUNDED
    status = Column(String(20), default="PENDING", nullable=False, index=True)
    payment_method = Column(String(20), nullable=True)  # STRIPE, PAYPAL, MANUAL
    description = Column(Text, nullable=True)

    # Provider references
    stripe_payment_intent_id = Column(String(255), unique=True, nullable=True, index=True)
    stripe_charge_id = Column(String(255), nullable=True, index=True)
    paypal_order_id = Column(String(255), unique=True, nullable=True, index=True)

    escrowed_at = Column(DateTime, nullable=True)
    released_at = Column(DateTime, nullable=True)
    paid_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    project = relationship("Project", back_populates="payments")
    milestone = relationship("Milestone", back_populates="payments")
    meeting = relationship("Meeting")
    client = relationship("User", foreign_keys=[client_id])
    freelancer = relationship("User", foreign_keys=[freelancer_id])


class Dispute(Base):
    __tablename__ = "disputes"

    id = Column(Integer, primary_key=True, index=True)
    project_id = Column(Integer, ForeignKey("projects.id"), nullable=False, index=True)
    payment_id = Column(Integer, ForeignKey("payments.id"), nullable=True)
    raised_by_id = Column(Integer, ForeignKey("users.id"), nullable=True)  # null when opened by Stripe
    stripe_dispute_id = Column(String(255), unique=True, nullable=True)
    reason = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    evidence = Column(JSON, nullable=True)
    amount = Column(Float, nullable=True)
    status = Column(String(20), default="OPEN", nullable=False)  # OPEN, IN_REVIEW, RESOLVED, CLOSED
    created_at = Column(DateTime, server_default=func.now())
    resolved_at = Column(DateTime, nullable=True)

    project = relationship("Project", back_populates="disputes")
    payment = relationship("Payment")
    raised_by = relationship("User")
