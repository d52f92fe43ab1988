# app/schemas/task_schema.py
from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from app.models.task import TaskStatusEnum

class TaskBase(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    description: str
    deadline: datetime
    budget: Optional[Decimal] = Field(None, gt=0, max_digits=10, decimal_places=2)

# project_id 來自 URL
class TaskCreate(TaskBase):
    status: TaskStatusEnum = TaskStatusEnum.open

# 沒傳的欄位保留原值
class TaskUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    deadline: Optional[datetime] = None
    budget: Optional[Decimal] = Field(None, gt=0, max_digits=10, decimal_places=2)
    status: Optional[TaskStatusEnum] = None

class TaskOut(TaskBase):
    model_config = ConfigDict(from_attributes=True)

    task_id: str
    project_id: str
    status: TaskStatusEnum
    created_at: datetime
    updated_at: datetime
