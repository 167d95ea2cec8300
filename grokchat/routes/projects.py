"""
Project endpoints.
"""

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import select, delete
from sqlalchemy.ext.asyncio import AsyncSession
from grokchat.models.database import get_db
from grokchat.models.entities import Project, User
from grokchat.models.schemas import ProjectCreate, ProjectResponse, SuccessResponse
from grokchat.services.auth_service import get_current_user

router = APIRouter(prefix="/api/projects", tags=["projects"])


@router.get("", response_model=list[ProjectResponse])
async def list_projects(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    result = await db.execute(
        select(Project).where(Project.user_id == user.id).order_by(Project.created_at.desc())
    )
    return result.scalars().all()


@router.post("", response_model=ProjectResponse)
async def create_project(
    req: ProjectCreate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    if not req.name or not req.name.strip():
        raise HTTPException(status_code=400, detail="Project name is required")

    project = Project(
        user_id=user.id,
        name=req.name.strip(),
        description=req.description,
        content=req.content,
    )
    db.add(project)
    await db.flush()
    return project


@router.delete("/{project_id}", response_model=SuccessResponse)
async def delete_project(
    project_id: str,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    result = await db.execute(
        delete(Project).where(Project.id == project_id, Project.user_id == user.id)
    )
    if result.rowcount == 0:
        raise HTTPException(status_code=404, detail="Project not found")
    return SuccessResponse()
