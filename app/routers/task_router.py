# app/routers/task_router.py

from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.security import Actor, get_current_actor
from app.services.task_service import TaskService
from app.schemas.task_schema import TaskCreate, TaskOut, TaskUpdate

router = APIRouter(
    prefix="/tasks",
    tags=["Tasks"],
    dependencies=[Depends(get_current_actor)]
)

# 新增 / 列出 / 編輯掛在案件底下
project_task_router = APIRouter(
    prefix="/projects",
    tags=["Tasks"],
    dependencies=[Depends(get_current_actor)]
)

@project_task_router.post("/{project_id}/tasks", response_model=TaskOut, status_code=status.HTTP_201_CREATED)
async def create_task(
    project_id: str,
    data: TaskCreate,
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(get_current_actor)
):
    """
    (案件擁有者 / 管理者) 新增工作項目，未指定狀態時為 open
    """
    return await TaskService(db).create_task(project_id, data, actor)

@project_task_router.get("/{project_id}/tasks", response_model=List[TaskOut])
async def list_project_tasks(
    project_id: str,
    db: AsyncSession = Depends(get_db)
):
    return await TaskService(db).list_tasks_by_project(project_id)

@project_task_router.put("/{project_id}/tasks/{task_id}", response_model=TaskOut)
async def edit_project_task(
    project_id: str,
    task_id: str,
    changes: TaskUpdate,
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(get_current_actor)
):
    """
    - 400：工作項目不屬於此案件
    """
    return await TaskService(db).update_task(task_id, changes, actor, project_id=project_id)

@router.get("/{task_id}", response_model=TaskOut)
async def get_task(
    task_id: str,
    db: AsyncSession = Depends(get_db)
):
    return await TaskService(db).get_task(task_id)

@router.put("/{task_id}", response_model=TaskOut)
async def update_task(
    task_id: str,
    changes: TaskUpdate,
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(get_current_actor)
):
    return await TaskService(db).update_task(task_id, changes, actor)

@router.delete("/{task_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_task(
    task_id: str,
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(get_current_actor)
):
    await TaskService(db).delete_task(task_id, actor)
