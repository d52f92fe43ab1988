# models/project.py
import enum
import uuid
from sqlalchemy import Column, String, TEXT, NUMERIC, TIMESTAMP, ForeignKey, Enum, CHAR, func
from sqlalchemy.orm import relationship
from app.core.database import Base

class ProjectStatusEnum(str, enum.Enum):
    open = "open"
    in_progress = "in_progress"
    completed = "completed"
    cancelled = "cancelled"

class Project(Base):
    __tablename__ = "projects"

    project_id = Column(CHAR(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    client_id = Column(CHAR(36), ForeignKey("users.user_id", ondelete="CASCADE"), nullable=False, index=True)
    # 接受提案 (或管理者直接指派) 之前為 NULL
    freelancer_id = Column(CHAR(36), ForeignKey("users.user_id", ondelete="SET NULL"), nullable=True, index=True)

    title = Column(String(255), nullable=False)
    description = Column(TEXT, nullable=False)
    budget = Column(NUMERIC(12, 2), nullable=False)
    status = Column(
        Enum(ProjectStatusEnum, values_callable=lambda obj: [e.value for e in obj]),
        nullable=False,
        default=ProjectStatusEnum.open,
    )
    created_at = Column(TIMESTAMP, server_default=func.now())
    updated_at = Column(TIMESTAMP, server_default=func.now(), onupdate=func.now())

    client = relationship(
        "User",
        foreign_keys=[client_id],
        back_populates="projects_owned",
    )

    proposals = relationship(
        "Proposal",
        back_populates="project",
        cascade="all, delete-orphan", # 刪除案件時，一併刪除關聯提案
    )
