"""Project service - Project proposals, milestone tracking and the meetboard chat"""

import logging
from datetime import datetime

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...models import User, UserVerification
from ...models_meeting import Message
from ...models_project import Milestone, Project
from ...services.notification_service import send_notification
from ...utils.sanitization import clean_message_content
from ..freelancers.repository import FreelancerRepository
from .repository import ProjectRepository
from .schemas import MilestoneResponse, ProjectCreate, ProjectResponse

logger = logging.getLogger(__name__)

AMOUNT_TOLERANCE = 0.01

CLIENT_SETTABLE_STATUSES = ("CLIENT_APPROVED", "CLIENT_REJECTED", "CANCELLED")
FREELANCER_SETTABLE_STATUSES = ("ACTIVE", "COMPLETED")

# The meetboard opens once the client has approved and stays open while work continues
MEETBOARD_STATUSES = ("CLIENT_APPROVED", "ACTIVE", "COMPLETED", "DISPUTED")

STATUS_NOTIFICATION_TITLES = {
    "CLIENT_APPROVED": "Project Approved!",
    "CLIENT_REJECTED": "Project Declined",
    "CANCELLED": "Project Cancelled",
    "ACTIVE": "Project Started",
    "COMPLETED": "Project Completed",
}


def _sum_payments(project: Project, status: str) -> float:
    return sum(p.amount for p in project.payments if p.status == status)


def to_project_response(project: Project, detailed: bool = False) -> ProjectResponse:
    milestones = project.milestones
    approved = [m for m in milestones if m.status == "APPROVED"]
    total = len(milestones)

    response = ProjectResponse(
        id=project.id,
        title=project.title,
        description=project.description,
        totalAmount=project.total_amount,
        currency=project.currency,
        status=project.status,
        clientId=project.client_id,
        clientName=project.client.name if project.client else None,
        freelancerId=project.freelancer_id,
        freelancerName=project.freelancer.name if project.freelancer else None,
        startDate=project.start_date,
        endDate=project.end_date,
        createdAt=project.created_at,
        milestones=[
            MilestoneResponse(
                id=m.id,
                title=m.title,
                description=m.description,
                amount=m.amount,
                dueDate=m.due_date,
                status=m.status,
            )
            for m in milestones
        ],
        progress=round(len(approved) / total * 100, 2) if total else 0,
        completedMilestones=len(approved),
        totalMilestones=total,
        totalEarned=sum(m.amount for m in approved),
        totalPaid=_sum_payments(project, "RELEASED"),
    )
    if detailed:
        response.totalEscrowed = _sum_payments(project, "ESCROWED")
        response.totalReleased = _sum_payments(project, "RELEASED")
    return response


class ProjectService:
    """Service layer for project business logic"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = ProjectRepository()

    def get_projects(self, user: User) -> list[Project]:
        return self.repo.get_projects_for_user(self.db, user)

    def get_project(self, project_id: int, user: User) -> Project:
        project = self.repo.get_project_for_participant(self.db, project_id, user.id)
        if not project:
            raise HTTPException(status_code=404, detail="Project not found or access denied")
        return project

    async def create_project(self, data: ProjectCreate, client: User) -> Project:
        if not data.milestones:
            raise HTTPException(status_code=400, detail="At least one milestone is required")

        freelancer = FreelancerRepository.get_freelancer_user(self.db, data.freelancerId)
        if not freelancer:
            raise HTTPException(status_code=404, detail="Freelancer not found")

        verification = (
            self.db.query(UserVerification).filter(UserVerification.user_id == freelancer.id).first()
        )
        if not verification or verification.id_verification != "VERIFIED":
            logger.warning(f"⚠️ Project proposed to freelancer {freelancer.id} without verified ID")

        milestone_total = sum(m.amount for m in data.milestones)
        if abs(milestone_total - data.totalAmount) > AMOUNT_TOLERANCE:
            raise HTTPException(status_code=400, detail="Milestone amounts must equal total project amount")

        project = Project(
            client_id=client.id,
            freelancer_id=freelancer.id,
            title=data.title.strip(),
            description=data.description.strip(),
            total_amount=data.totalAmount,
            currency="USD",
            status="DRAFT",
        )
        milestones = [
            Milestone(
                title=m.title.strip(),
                description=m.description,
                amount=m.amount,
                due_date=m.dueDate,
                status="PENDING",
            )
            for m in data.milestones
        ]
        project = self.repo.create_project_with_milestones(self.db, project, milestones)
        logger.info(f"📁 Project {project.id} proposed by client {client.id} ({len(milestones)} milestones)")

        await send_notification(
            self.db,
            freelancer,
            title="New Project Proposal!",
            message=f'{client.name or "A client"} proposed "{project.title}" (${project.total_amount:,.2f})',
            notification_type="project_proposal",
        )
        return project

    async def update_status(self, project_id: int, status: str, user: User) -> Project:
        project = self.get_project(project_id, user)

        allowed = CLIENT_SETTABLE_STATUSES if user.id == project.client_id else FREELANCER_SETTABLE_STATUSES
        if status not in allowed:
            raise HTTPException(status_code=400, detail="No valid updates provided")

        project.status = status
        if status == "ACTIVE" and not project.start_date:
            project.start_date = datetime.utcnow()
        elif status == "COMPLETED":
            project.end_date = datetime.utcnow()
        self.db.commit()
        self.db.refresh(project)
        logger.info(f"🔄 Project {project.id} -> {status} by user {user.id}")

        other = project.freelancer if user.id == project.client_id else project.client
        await send_notification(
            self.db,
            other,
            title=STATUS_NOTIFICATION_TITLES[status],
            message=f'"{project.title}" is now {status.replace("_", " ").lower()}',
            notification_type="project_status",
        )
        return project

    async def complete_milestone(self, project_id: int, milestone_id: int, status: str, user: User) -> Milestone:
        """Freelancer marks work delivered so the client can release escrow"""
        project = self.get_project(project_id, user)
        if user.id != project.freelancer_id:
            raise HTTPException(status_code=403, detail="Only the freelancer can update milestone progress")
        if status != "COMPLETED":
            raise HTTPException(status_code=400, detail="Milestones can only be marked COMPLETED")

        milestone = self.repo.get_milestone(self.db, project.id, milestone_id)
        if not milestone:
            raise HTTPException(status_code=404, detail="Milestone not found")
        if milestone.status not in ("PENDING", "IN_PROGRESS"):
            raise HTTPException(status_code=400, detail=f"Milestone is already {milestone.status}")

        milestone.status = "COMPLETED"
        self.db.commit()
        self.db.refresh(milestone)

        await send_notification(
            self.db,
            project.client,
            title="Milestone Completed",
            message=f'"{milestone.title}" on "{project.title}" is ready for your review',
            notification_type="milestone_completed",
        )
        return milestone

    def get_meetboard_project(self, project_id: int, user: User) -> Project:
        project = self.get_project(project_id, user)
        if project.status not in MEETBOARD_STATUSES:
            raise HTTPException(status_code=403, detail="Meetboard access requires client approval")
        return project

    def get_messages(self, project_id: int, user: User) -> list[Message]:
        project = self.get_meetboard_project(project_id, user)
        return self.repo.get_messages(self.db, project.id)

    async def post_message(self, project_id: int, content: str, user: User) -> Message:
        project = self.get_meetboard_project(project_id, user)
        try:
            cleaned = clean_message_content(content)
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e)) from e
        if not cleaned:
            raise HTTPException(status_code=400, detail="Message content is required")

        message = self.repo.create_message(self.db, project.id, user.id, cleaned)

        other = project.freelancer if user.id == project.client_id else project.client
        await send_notification(
            self.db,
            other,
            title="New Project Message",
            message=f'{user.name or "Someone"} sent a message in "{project.title}"',
            notification_type="project_message",
        )
        return message
