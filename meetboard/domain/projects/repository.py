"""Project repository - Database operations for projects, milestones and meetboard chat"""

from typing import Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session, selectinload

from ...models import User
from ...models_meeting import Message
from ...models_project import Milestone, Project


class ProjectRepository:
    """Repository for project database operations"""

    @staticmethod
    def get_projects_for_user(db: Session, user: User) -> list[Project]:
        column = Project.client_id if user.is_client else Project.freelancer_id
        return (
            db.query(Project)
            .options(selectinload(Project.milestones), selectinload(Project.payments))
            .filter(column == user.id)
            .order_by(Project.created_at.desc(), Project.id.desc())
            .all()
        )

    @staticmethod
    def get_project_for_participant(db: Session, project_id: int, user_id: int) -> Optional[Project]:
        return (
            db.query(Project)
            .filter(
                Project.id == project_id,
                or_(Project.client_id == user_id, Project.freelancer_id == user_id),
            )
            .first()
        )

    @staticmethod
    def get_project_by_id(db: Session, project_id: int) -> Optional[Project]:
        return db.query(Project).filter(Project.id == project_id).first()

    @staticmethod
    def get_milestone(db: Session, project_id: int, milestone_id: int) -> Optional[Milestone]:
        return (
            db.query(Milestone)
            .filter(Milestone.id == milestone_id, Milestone.project_id == project_id)
            .first()
        )

    @staticmethod
    def create_project_with_milestones(db: Session, project: Project, milestones: list[Milestone]) -> Project:
        """Project and milestones are written in one transaction"""
        try:
            db.add(project)
            db.flush()
            for milestone in milestones:
                milestone.project_id = project.id
                db.add(milestone)
            db.commit()
        except Exception:
            db.rollback()
            raise
        db.refresh(project)
        return project

    @staticmethod
    def get_messages(db: Session, project_id: int) -> list[Message]:
        return (
            db.query(Message)
            .filter(Message.project_id == project_id)
            .order_by(Message.created_at.asc(), Message.id.asc())
            .all()
        )

    @staticmethod
    def create_message(db: Session, project_id: int, sender_id: int, content: str) -> Message:
        message = Message(project_id=project_id, sender_id=sender_id, content=content)
        db.add(message)
        db.commit()
        db.refresh(message)
        return message
