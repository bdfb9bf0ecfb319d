"""
File Routes
Attachments shared on a project or meeting, stored in Cloudflare R2
"""

import logging
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile
from pydantic import BaseModel
from sqlalchemy.orm import Session

from ..auth import get_current_user
from ..database import get_db
from ..models import User
from ..models_meeting import File as StoredFile
from ..models_meeting import Meeting
from ..models_project import Project
from ..services import storage
from ..utils.sanitization import sanitize_string

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/files", tags=["Files"])


class FileResponse(BaseModel):
    id: int
    filename: str
    originalName: str
    mimeType: str
    size: int
    description: Optional[str] = None
    projectId: Optional[int] = None
    meetingId: Optional[int] = None
    uploadedById: int
    url: Optional[str] = None
    createdAt: Optional[datetime] = None


def to_file_response(stored: StoredFile) -> FileResponse:
    return FileResponse(
        id=stored.id,
        filename=stored.filename,
        originalName=stored.original_name,
        mimeType=stored.mime_type,
        size=stored.size,
        description=stored.description,
        projectId=stored.project_id,
        meetingId=stored.meeting_id,
        uploadedById=stored.uploaded_by_id,
        url=storage.generate_presigned_url(stored.storage_key),
        createdAt=stored.created_at,
    )


def _check_access(db: Session, user: User, project_id: Optional[int], meeting_id: Optional[int]) -> None:
    """404 for an unknown project or meeting, 403 when the caller is not a participant"""
    if project_id is not None:
        project = db.query(Project).filter(Project.id == project_id).first()
        if not project:
            raise HTTPException(status_code=404, detail="Project not found")
        if not project.is_participant(user.id):
            raise HTTPException(status_code=403, detail="Access denied")
    if meeting_id is not None:
        meeting = db.query(Meeting).filter(Meeting.id == meeting_id).first()
        if not meeting:
            raise HTTPException(status_code=404, detail="Meeting not found")
        if not meeting.is_participant(user.id):
            raise HTTPException(status_code=403, detail="Access denied")


@router.post("", response_model=FileResponse, status_code=201)
async def upload_file(
    file: UploadFile = File(...),
    projectId: Optional[int] = Form(None),
    meetingId: Optional[int] = Form(None),
    description: Optional[str] = Form(None),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Upload an attachment (max 10MB) to a project or meeting"""
    _check_access(db, current_user, projectId, meetingId)

    content = await file.read()
    mime_type = file.content_type or "application/octet-stream"
    error = storage.validate_upload(mime_type, len(content))
    if error:
        raise HTTPException(status_code=400, detail=error)

    original_name = file.filename or "upload"
    if projectId is not None:
        scope = f"project-{projectId}"
    elif meetingId is not None:
        scope = f"meeting-{meetingId}"
    else:
        scope = f"user-{current_user.id}"
    key = storage.build_storage_key(original_name, scope)

    try:
        storage.upload_file(key, content, mime_type)
    except storage.StorageError as e:
        raise HTTPException(status_code=502, detail="Failed to store file") from e

    stored = StoredFile(
        uploaded_by_id=current_user.id,
        project_id=projectId,
        meeting_id=meetingId,
        filename=key.rsplit("/", 1)[-1],
        original_name=original_name,
        mime_type=mime_type,
        size=len(content),
        storage_key=key,
        description=sanitize_string(description) if description else None,
    )
    db.add(stored)
    db.commit()
    db.refresh(stored)
    logger.info(f"📎 User {current_user.id} uploaded file {stored.id} ({stored.size} bytes)")
    return to_file_response(stored)


@router.get("", response_model=list[FileResponse])
async def list_files(
    projectId: Optional[int] = None,
    meetingId: Optional[int] = None,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """List files for a project or meeting, or the caller's own uploads"""
    _check_access(db, current_user, projectId, meetingId)

    query = db.query(StoredFile)
    if projectId is not None:
        query = query.filter(StoredFile.project_id == projectId)
    if meetingId is not None:
        query = query.filter(StoredFile.meeting_id == meetingId)
    if projectId is None and meetingId is None:
        query = query.filter(StoredFile.uploaded_by_id == current_user.id)

    return [to_file_response(f) for f in query.order_by(StoredFile.created_at.desc(), StoredFile.id.desc()).all()]
