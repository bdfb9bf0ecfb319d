"""Dispute repository - Database operations for disputes"""

from typing import Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session

from ...models_project import Dispute, Project

OPEN_STATUSES = ("OPEN", "IN_REVIEW")


class DisputeRepository:
    """Repository for dispute database operations"""

    @staticmethod
    def get_open_dispute(db: Session, project_id: int) -> Optional[Dispute]:
        return (
            db.query(Dispute)
            .filter(Dispute.project_id == project_id, Dispute.status.in_(OPEN_STATUSES))
            .first()
        )

    @staticmethod
    def get_disputes_for_user(db: Session, user_id: int) -> list[Dispute]:
        """Disputes on any project the user is part of"""
        return (
            db.query(Dispute)
            .join(Project, Dispute.project_id == Project.id)
            .filter(or_(Project.client_id == user_id, Project.freelancer_id == user_id))
            .order_by(Dispute.created_at.desc(), Dispute.id.desc())
            .all()
        )
