# models/user.py
import enum
import uuid
from sqlalchemy import Column, String, Boolean, Enum, NUMERIC, TIMESTAMP, CHAR, func
from sqlalchemy.orm import relationship
from app.core.database import Base

# 對應 SQL 中的 ENUM 型別
class UserRoleEnum(str, enum.Enum):
    admin = "admin"
    client = "client"
    freelancer = "freelancer"

class User(Base):
    __tablename__ = "users"

    # 基本欄位
    user_id = Column(CHAR(36), primary_key=True, index=True, default=lambda: str(uuid.uuid4()))
    name = Column(String(255), nullable=False)
    email = Column(String(255), unique=True, index=True, nullable=False)
    password_hash = Column(String(255), nullable=False)
    role = Column(Enum(UserRoleEnum, values_callable=lambda obj: [e.value for e in obj]), nullable=False)
    is_active = Column(Boolean, default=True)

    # 累加金額欄位，只有交易結算 (TransactionService) 會修改
    earnings = Column(NUMERIC(12, 2), nullable=False, default=0)
    total_spent = Column(NUMERIC(12, 2), nullable=False, default=0)

    created_at = Column(TIMESTAMP, server_default=func.now())
    updated_at = Column(TIMESTAMP, server_default=func.now(), onupdate=func.now())

    # 作為雇主刊登的案件
    projects_owned = relationship(
        "Project",
        foreign_keys="[Project.client_id]",
        back_populates="client",
    )

    proposals = relationship(
        "Proposal",
        back_populates="freelancer",
    )
