"""Dispute service - one open dispute per project, raised by either participant"""

import logging

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...models import User
from ...models_project import Dispute, Project
from ...services.notification_service import send_notification
from ...utils.sanitization import sanitize_string
from .repository import DisputeRepository
from .schemas import DisputeCreate, DisputeResponse

logger = logging.getLogger(__name__)


def to_dispute_response(dispute: Dispute) -> DisputeResponse:
    return DisputeResponse(
        id=dispute.id,
        projectId=dispute.project_id,
        projectTitle=dispute.project.title if dispute.project else None,
        paymentId=dispute.payment_id,
        raisedById=dispute.raised_by_id,
        reason=dispute.reason,
        description=dispute.description,
        evidence=dispute.evidence,
        amount=dispute.amount,
        status=dispute.status,
        createdAt=dispute.created_at,
        resolvedAt=dispute.resolved_at,
    )


class DisputeService:
    def __init__(self, db: Session):
        self.db = db
        self.repo = DisputeRepository()

    def get_disputes(self, user: User) -> list[Dispute]:
        return self.repo.get_disputes_for_user(self.db, user.id)

    async def create_dispute(self, data: DisputeCreate, user: User) -> Dispute:
        project = self.db.query(Project).filter(Project.id == data.projectId).first()
        if not project or not project.is_participant(user.id):
            raise HTTPException(status_code=404, detail="Project not found or access denied")
        if self.repo.get_open_dispute(self.db, project.id):
            raise HTTPException(status_code=400, detail="There is already an open dispute for this project")

        dispute = Dispute(
            project_id=project.id,
            raised_by_id=user.id,
            reason=sanitize_string(data.reason.strip()),
            description=sanitize_string(data.description.strip()),
            evidence=data.evidence,
            status="OPEN",
        )
        self.db.add(dispute)
        project.status = "DISPUTED"
        self.db.commit()
        self.db.refresh(dispute)
        logger.warning(f"⚠️ Dispute {dispute.id} raised on project {project.id} by user {user.id}")

        other = project.freelancer if user.id == project.client_id else project.client
        await send_notification(
            self.db,
            other,
            title="Dispute Raised",
            message=f'A dispute was raised on "{project.title}": {dispute.reason}',
            notification_type="dispute_created",
        )
        return dispute
