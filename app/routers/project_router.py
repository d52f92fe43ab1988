# app/routers/project_router.py
from typing import List, Optional

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.security import Actor, get_current_actor
from app.models.project import ProjectStatusEnum
from app.services.project_service import ProjectService
from app.schemas.project_schema import ProjectCreate, ProjectFreelancerAssign, ProjectOut

router = APIRouter(
    prefix="/projects",
    tags=["Projects"],
    # 該模組下的所有 API 都至少需要登入
    dependencies=[Depends(get_current_actor)]
)

@router.post("/", response_model=ProjectOut, status_code=status.HTTP_201_CREATED)
async def create_new_project(
    project_data: ProjectCreate,
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(get_current_actor)
):
    """
    刊登新案件 (僅限 client / admin)
    """
    service = ProjectService(db)
    return await service.create_project(project_data, actor)

@router.get("/", response_model=List[ProjectOut])
async def list_projects(
    status: Optional[ProjectStatusEnum] = None,
    db: AsyncSession = Depends(get_db)
):
    """
    瀏覽案件，可依狀態篩選 (例如 ?status=open)
    """
    service = ProjectService(db)
    return await service.list_projects(status)

@router.get("/my", response_model=List[ProjectOut])
async def read_my_projects(
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(get_current_actor)
):
    service = ProjectService(db)
    return await service.get_my_projects(actor)

@router.get("/{project_id}", response_model=ProjectOut)
async def get_project_by_id(
    project_id: str,
    db: AsyncSession = Depends(get_db)
):
    service = ProjectService(db)
    return await service.get_project(project_id)

@router.post("/{project_id}/set-freelancer", response_model=ProjectOut)
async def set_project_freelancer(
    project_id: str,
    payload: ProjectFreelancerAssign,
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(get_current_actor)
):
    """
    (擁有者 / 管理者) 不經過提案，直接指派工作者。

    - 403：不是案件擁有者也不是管理者
    - 404：案件不存在
    - 400：Body 缺少 freelancer_id
    """
    service = ProjectService(db)
    return await service.set_project_freelancer(project_id, payload.freelancer_id, actor)
