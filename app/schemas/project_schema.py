# app/schemas/project_schema.py
from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from app.models.project import ProjectStatusEnum

# 基礎欄位 (對應 Model)
class ProjectBase(BaseModel):
    title: str = Field(..., max_length=255)
    description: str
    budget: Decimal = Field(..., gt=0, max_digits=12, decimal_places=2)

# 雇主刊登案件時的 Request Body
class ProjectCreate(ProjectBase):
    pass

# 指派工作者 (POST /projects/{id}/set-freelancer)
class ProjectFreelancerAssign(BaseModel):
    freelancer_id: str = Field(..., min_length=1)

# 回傳給前端的案件資料
class ProjectOut(ProjectBase):
    model_config = ConfigDict(from_attributes=True)

    project_id: str
    client_id: str
    freelancer_id: Optional[str] = None
    status: ProjectStatusEnum
    created_at: datetime
    updated_at: datetime
