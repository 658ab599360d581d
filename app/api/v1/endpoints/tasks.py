"""
Task endpoints.

Every route requires authentication. Users see and change only their own
tasks; admins see and change all of them. Statistics are admin only.
"""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Path, Query, status
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.dependencies import enforce_ownership, get_current_principal, require_role
from app.auth.outcomes import Principal
from app.core.database import get_db
from app.models.task import Task, TaskPriority, TaskStatus
from app.models.user import UserRole
from app.schemas.common import PaginatedResponse
from app.schemas.task import TaskCreate, TaskResponse, TaskStatsResponse, TaskUpdate

router = APIRouter()

# Largest value a SQLite INTEGER column can hold
MAX_TASK_ID = 2**63 - 1


async def get_task_or_404(db: AsyncSession, task_id: int) -> Task:
    task = await db.get(Task, task_id)
    if task is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Task not found",
        )
    return task


@router.post("", response_model=TaskResponse, status_code=status.HTTP_201_CREATED)
async def create_task(
    data: TaskCreate,
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db),
):
    """Create a task owned by the caller."""
    task = Task(**data.model_dump(), owner_id=principal.id)
    db.add(task)
    await db.commit()
    await db.refresh(task)
    return TaskResponse.model_validate(task)


@router.get("", response_model=PaginatedResponse[TaskResponse])
async def list_tasks(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    status_filter: Optional[TaskStatus] = Query(None, alias="status"),
    priority: Optional[TaskPriority] = None,
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db),
):
    """
    List tasks, newest first.

    Admins see every task; other users see only their own.
    """
    query = select(Task)
    count_query = select(func.count(Task.id))

    # Scope by ownership
    if not principal.is_admin:
        query = query.where(Task.owner_id == principal.id)
        count_query = count_query.where(Task.owner_id == principal.id)

    if status_filter:
        query = query.where(Task.status == status_filter)
        count_query = count_query.where(Task.status == status_filter)

    if priority:
        query = query.where(Task.priority == priority)
        count_query = count_query.where(Task.priority == priority)

    result = await db.execute(count_query)
    total = result.scalar()

    query = (
        query
        .order_by(Task.created_at.desc(), Task.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
    )
    result = await db.execute(query)
    tasks = result.scalars().all()

    return PaginatedResponse.create(
        items=[TaskResponse.model_validate(task) for task in tasks],
        total=total,
        page=page,
        limit=limit,
    )


@router.get("/stats", response_model=TaskStatsResponse)
async def task_stats(
    principal: Principal = Depends(require_role(UserRole.ADMIN)),
    db: AsyncSession = Depends(get_db),
):
    """Task counts by status and priority. Requires: admin role."""
    result = await db.execute(select(func.count(Task.id)))
    total = result.scalar()

    result = await db.execute(select(Task.status, func.count(Task.id)).group_by(Task.status))
    by_status = {row[0].value: row[1] for row in result.all()}

    result = await db.execute(select(Task.priority, func.count(Task.id)).group_by(Task.priority))
    by_priority = {row[0].value: row[1] for row in result.all()}

    return TaskStatsResponse(total_tasks=total, by_status=by_status, by_priority=by_priority)


@router.get("/{task_id}", response_model=TaskResponse)
async def get_task(
    task_id: int = Path(..., ge=1, le=MAX_TASK_ID),
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db),
):
    task = await get_task_or_404(db, task_id)
    enforce_ownership(principal, task.owner_id)
    return TaskResponse.model_validate(task)


@router.put("/{task_id}", response_model=TaskResponse)
async def update_task(
    data: TaskUpdate,
    task_id: int = Path(..., ge=1, le=MAX_TASK_ID),
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db),
):
    """Update a task. Only the fields present in the body change."""
    task = await get_task_or_404(db, task_id)
    enforce_ownership(principal, task.owner_id)

    update_data = data.model_dump(exclude_unset=True)
    for field in ("title", "status", "priority"):
        if field in update_data and update_data[field] is None:
            raise HTTPException(
                status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
                detail=f"'{field}' cannot be null",
            )

    for field, value in update_data.items():
        setattr(task, field, value)

    await db.commit()
    await db.refresh(task)
    return TaskResponse.model_validate(task)


@router.delete("/{task_id}")
async def delete_task(
    task_id: int = Path(..., ge=1, le=MAX_TASK_ID),
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db),
):
    task = await get_task_or_404(db, task_id)
    enforce_ownership(principal, task.owner_id)

    await db.delete(task)
    await db.commit()
    return {"message": "Task deleted successfully"}
