# app/services/task_service.py

import logging
from typing import List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import ForbiddenError, NotFoundError, ValidationFailedError
from app.core.security import Actor
from app.models.project import Project
from app.models.task import Task
from app.repositories.base_repo import Repository
from app.schemas.task_schema import TaskCreate, TaskUpdate

logger = logging.getLogger(__name__)

class TaskService:
    def __init__(self, db: AsyncSession):
        self.db = db
        self.task_repo = Repository(db, Task)
        self.project_repo = Repository(db, Project)

    async def _get_project(self, project_id: str) -> Project:
        project = await self.project_repo.get(project_id)
        if not project:
            raise NotFoundError("案件不存在")
        return project

    @staticmethod
    def _ensure_owner(project: Project, actor: Actor) -> None:
        if project.client_id != actor.user_id and not actor.is_admin:
            raise ForbiddenError("你不是此案件的擁有者")

    async def create_task(self, project_id: str, data: TaskCreate, actor: Actor) -> Task:
        """
        (案件擁有者 / 管理者) 在案件底下新增工作項目
        """
        project = await self._get_project(project_id)
        self._ensure_owner(project, actor)

        task = Task(**data.model_dump(), project_id=project_id)
        created = await self.task_repo.create(task)
        logger.info(f"案件 {project_id} 新增工作項目 {created.task_id}")
        return created

    async def get_task(self, task_id: str) -> Task:
        task = await self.task_repo.get(task_id)
        if not task:
            raise NotFoundError("工作項目不存在")
        return task

    async def list_tasks_by_project(self, project_id: str) -> List[Task]:
        return await self.task_repo.list_by(project_id=project_id)

    async def update_task(
        self,
        task_id: str,
        changes: TaskUpdate,
        actor: Actor,
        project_id: Optional[str] = None,
    ) -> Task:
        """
        更新工作項目；擁有者、管理者與得標的工作者都可以修改 (例如回報進度)。
        透過 /projects/{project_id}/tasks/{task_id} 呼叫時，工作項目必須屬於該案件。
        """
        task = await self.get_task(task_id)
        if project_id is not None and task.project_id != project_id:
            raise ValidationFailedError("此工作項目不屬於指定的案件")

        project = await self._get_project(task.project_id)
        if actor.user_id not in (project.client_id, project.freelancer_id) and not actor.is_admin:
            raise ForbiddenError("你無權修改此工作項目")

        for key, value in changes.model_dump(exclude_unset=True, exclude_none=True).items():
            setattr(task, key, value)
        return await self.task_repo.save(task)

    async def delete_task(self, task_id: str, actor: Actor) -> None:
        task = await self.get_task(task_id)
        project = await self._get_project(task.project_id)
        self._ensure_owner(project, actor)
        await self.task_repo.delete(task)
