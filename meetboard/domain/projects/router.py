"""Project router - projects, milestones and meetboard chat"""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ...auth import get_current_user, require_client
from ...database import get_db
from ...models import User
from ..meetings.schemas import MessageResponse
from ..meetings.service import to_message_response
from .schemas import (
    MilestoneResponse,
    MilestoneStatusUpdate,
    ProjectCreate,
    ProjectMessageCreate,
    ProjectResponse,
    ProjectStatusUpdate,
)
from .service import ProjectService, to_project_response

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/projects", tags=["Projects"])


def get_project_service(db: Session = Depends(get_db)) -> ProjectService:
    """Dependency injection for ProjectService"""
    return ProjectService(db)


@router.get("", response_model=list[ProjectResponse])
async def get_projects(
    current_user: User = Depends(get_current_user),
    service: ProjectService = Depends(get_project_service),
):
    return [to_project_response(p) for p in service.get_projects(current_user)]


@router.post("", response_model=ProjectResponse, status_code=201)
async def create_project(
    data: ProjectCreate,
    current_user: User = Depends(require_client),
    service: ProjectService = Depends(get_project_service),
):
    """Propose a project; milestone amounts must add up to the total"""
    project = await service.create_project(data, current_user)
    return to_project_response(project, detailed=True)


@router.get("/{project_id}", response_model=ProjectResponse)
async def get_project(
    project_id: int,
    current_user: User = Depends(get_current_user),
    service: ProjectService = Depends(get_project_service),
):
    return to_project_response(service.get_project(project_id, current_user), detailed=True)


@router.patch("/{project_id}", response_model=ProjectResponse)
async def update_project_status(
    project_id: int,
    data: ProjectStatusUpdate,
    current_user: User = Depends(get_current_user),
    service: ProjectService = Depends(get_project_service),
):
    project = await service.update_status(project_id, data.status, current_user)
    return to_project_response(project, detailed=True)


@router.patch("/{project_id}/milestones/{milestone_id}", response_model=MilestoneResponse)
async def update_milestone_status(
    project_id: int,
    milestone_id: int,
    data: MilestoneStatusUpdate,
    current_user: User = Depends(get_current_user),
    service: ProjectService = Depends(get_project_service),
):
    m = await service.complete_milestone(project_id, milestone_id, data.status, current_user)
    return MilestoneResponse(
        id=m.id, title=m.title, description=m.description, amount=m.amount, dueDate=m.due_date, status=m.status
    )


# ============================================================================
# MEETBOARD CHAT
# ============================================================================


@router.get("/{project_id}/messages", response_model=list[MessageResponse])
async def get_project_messages(
    project_id: int,
    current_user: User = Depends(get_current_user),
    service: ProjectService = Depends(get_project_service),
):
    return [to_message_response(m) for m in service.get_messages(project_id, current_user)]


@router.post("/{project_id}/messages", response_model=MessageResponse, status_code=201)
async def post_project_message(
    project_id: int,
    data: ProjectMessageCreate,
    current_user: User = Depends(get_current_user),
    service: ProjectService = Depends(get_project_service),
):
    message = await service.post_message(project_id, data.content, current_user)
    return to_message_response(message)
