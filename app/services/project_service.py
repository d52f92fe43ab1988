# app/services/project_service.py
import logging
from typing import List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import ForbiddenError, NotFoundError
from app.core.security import Actor
from app.models.user import UserRoleEnum
from app.models.project import Project, ProjectStatusEnum
from app.repositories.base_repo import Repository
from app.schemas.project_schema import ProjectCreate

logger = logging.getLogger(__name__)

class ProjectService:
    def __init__(self, db: AsyncSession):
        self.db = db
        self.project_repo = Repository(db, Project)

    async def create_project(self, data: ProjectCreate, actor: Actor) -> Project:
        """
        刊登新案件 (僅限雇主或管理者)
        """
        if actor.role not in (UserRoleEnum.client, UserRoleEnum.admin):
            raise ForbiddenError("只有雇主可以刊登案件")

        project = Project(
            **data.model_dump(),
            client_id=actor.user_id,
            status=ProjectStatusEnum.open,
        )
        return await self.project_repo.create(project)

    async def get_project(self, project_id: str) -> Project:
        project = await self.project_repo.get(project_id)
        if not project:
            raise NotFoundError("案件不存在")
        return project

    async def list_projects(self, status: Optional[ProjectStatusEnum] = None) -> List[Project]:
        if status is None:
            return await self.project_repo.list_by()
        return await self.project_repo.list_by(status=status)

    async def get_my_projects(self, actor: Actor) -> List[Project]:
        return await self.project_repo.list_by(client_id=actor.user_id)

    async def set_project_freelancer(self, project_id: str, freelancer_id: str, actor: Actor) -> Project:
        """
        案件擁有者或管理者直接指派工作者，不經過提案流程，也不會動到任何 Proposal。
        欄位變更與接受提案相同：freelancer_id + 狀態改為 in_progress。
        """
        try:
            project = await self.project_repo.get(project_id, for_update=True)
            if not project:
                raise NotFoundError("案件不存在")

            if project.client_id != actor.user_id and not actor.is_admin:
                raise ForbiddenError("你不是此案件的擁有者")

            project.freelancer_id = freelancer_id
            project.status = ProjectStatusEnum.in_progress
            await self.project_repo.save(project, commit=False)
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

        await self.db.refresh(project)
        logger.info(f"案件 {project_id} 由 {actor.user_id} ({actor.role.value}) 直接指派給 {freelancer_id}")
        return project
