# app/models/task.py
import enum
import uuid
from sqlalchemy import Column, String, TEXT, NUMERIC, TIMESTAMP, ForeignKey, Enum, CHAR, func
from app.core.database import Base

class TaskStatusEnum(str, enum.Enum):
    open = "open"
    in_progress = "in_progress"
    completed = "completed"
    cancelled = "cancelled"

# 案件底下的工作項目 (里程碑)
class Task(Base):
    __tablename__ = "tasks"

    task_id = Column(CHAR(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    project_id = Column(CHAR(36), ForeignKey("projects.project_id", ondelete="CASCADE"), nullable=False, index=True)

    title = Column(String(255), nullable=False)
    description = Column(TEXT, nullable=False)
    deadline = Column(TIMESTAMP, nullable=False)
    budget = Column(NUMERIC(10, 2), nullable=True)
    status = Column(
        Enum(TaskStatusEnum, values_callable=lambda obj: [e.value for e in obj]),
        nullable=False,
        default=TaskStatusEnum.open,
    )

    created_at = Column(TIMESTAMP, server_default=func.now())
    updated_at = Column(TIMESTAMP, server_default=func.now(), onupdate=func.now())
