"""
Meeting, chat message and shared file models
"""

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from .database import Base


class Meeting(Base):
    __tablename__ = "meetings"

    id = Column(Integer, primary_key=True, index=True)
    client_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    freelancer_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    project_id = Column(Integer, ForeignKey("projects.id"), nullable=True)

    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    scheduled_at = Column(DateTime, nullable=False, index=True)
    duration = Column(Integer, default=60, nullable=False)  # minutes, 0 for collaboration boards

    # See domain/meetings/lifecycle.py for the allowed transitions
    status = Column(String(30), default="PENDING", nullable=False, index=True)
    type = Column(String(20), default="REGULAR", nullable=False)  # DISCOVERY, REGULAR, COLLABORATION
    client_decision = Column(String(20), nullable=True)  # PENDING, APPROVED, REJECTED

    meeting_url = Column(String(500), nullable=True)
    notes = Column(Text, nullable=True)

    cal_booking_uid = Column(String(255), unique=True, nullable=True, index=True)
    reminder_sent_at = Column(DateTime, nullable=True)

    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    client = relationship("User", foreign_keys=[client_id])
    freelancer = relationship("User", foreign_keys=[freelancer_id])
    project = relationship("Project", foreign_keys=[project_id])
    messages = relationship(
        "Message", back_populates="meeting", cascade="all, delete-orphan", order_by="Message.id"
    )
    files = relationship("File", back_populates="meeting")

    def is_participant(self, user_id: int) -> bool:
        return user_id in (self.client_id, self.freelancer_id)

    def other_party_id(self, user_id: int) -> int:
        return self.freelancer_id if user_id == self.client_id else self.client_id


class Message(Base):
    __tablename__ = "messages"

    id = Column(Integer, primary_key=True, index=True)
    sender_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    meeting_id = Column(Integer, ForeignKey("meetings.id"), nullable=True, index=True)
    project_id = Column(Integer, ForeignKey("projects.id"), nullable=True, index=True)
    content = Column(Text, nullable=False)
    created_at = Column(DateTime, server_default=func.now())

    sender = relationship("User")
    meeting = relationship("Meeting", back_populates="messages")
    project = relationship("Project", back_populates="messages")


class File(Base):
    __tablename__ = "files"

    id = Column(Integer, primary_key=True, index=True)
    uploaded_by_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    project_id = Column(Integer, ForeignKey("projects.id"), nullable=True, index=True)
    meeting_id = Column(Integer, ForeignKey("meetings.id"), nullable=True, index=True)
    filename = Column(String(255), nullable=False)
    original_name = Column(String(255), nullable=False)
    mime_type = Column(String(100), nullable=False)
    size = Column(Integer, nullable=False)  # bytes
    storage_key = Column(String(500), nullable=False)  # R2 object key
    description = Column(Text, nullable=True)
    created_at = Column(DateTime, server_default=func.now())

    uploaded_by = relationship("User")
    project = relationship("Project", back_populates="files")
    meeting = relationship("Meeting", back_populates="files")
