"""
Task list endpoints.
"""

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import select, delete
from sqlalchemy.ext.asyncio import AsyncSession
from grokchat.models.database import get_db
from grokchat.models.entities import Task, User
from grokchat.models.schemas import TaskCreate, TaskUpdate, TaskResponse, SuccessResponse
from grokchat.services.auth_service import get_current_user

router = APIRouter(prefix="/api/tasks", tags=["tasks"])


async def _get_owned_task(db: AsyncSession, task_id: str, user_id: str) -> Task:
    result = await db.execute(select(Task).where(Task.id == task_id, Task.user_id == user_id))
    task = result.scalar_one_or_none()
    if not task:
        raise HTTPException(status_code=404, detail="Task not found")
    return task


@router.get("", response_model=list[TaskResponse])
async def list_tasks(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    result = await db.execute(
        select(Task).where(Task.user_id == user.id).order_by(Task.created_at.desc())
    )
    return result.scalars().all()


@router.post("", response_model=TaskResponse)
async def create_task(
    req: TaskCreate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    if not req.title or not req.title.strip():
        raise HTTPException(status_code=400, detail="Task title is required")

    task = Task(user_id=user.id, title=req.title.strip(), completed=False)
    db.add(task)
    await db.flush()
    return task


@router.patch("/{task_id}", response_model=SuccessResponse)
async def update_task(
    task_id: str,
    req: TaskUpdate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    task = await _get_owned_task(db, task_id, user.id)
    task.completed = req.completed
    return SuccessResponse()


@router.delete("/{task_id}", response_model=SuccessResponse)
async def delete_task(
    task_id: str,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    task = await _get_owned_task(db, task_id, user.id)
    await db.delete(task)
    return SuccessResponse()
