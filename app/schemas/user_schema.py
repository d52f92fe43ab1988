# app/schemas/user_schema.py
from datetime import datetime
from decimal import Decimal
import re

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator
from app.models.user import UserRoleEnum

# Token 回應的格式
class Token(BaseModel):
    access_token: str
    token_type: str

# Token 內的資料
class TokenData(BaseModel):
    user_id: str
    role: str


# 註冊請求 Body
class UserCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    email: EmailStr
    password: str = Field(..., min_length=8)
    role: UserRoleEnum

    @field_validator('password')
    @classmethod
    def validate_password(cls, v: str) -> str:
        """
        驗證密碼是否包含英文和數字
        """
        if not re.search(r'(?=.*[a-zA-Z])(?=.*[0-9])', v):
            raise ValueError('密碼必須包含英文和數字')
        return v

    @field_validator('role')
    @classmethod
    def no_self_service_admin(cls, v: UserRoleEnum) -> UserRoleEnum:
        # 管理者帳號不能透過公開註冊建立
        if v == UserRoleEnum.admin:
            raise ValueError('無法註冊管理者帳號')
        return v

# 註冊/查詢使用者的安全回應 (不含密碼)
class UserOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    user_id: str
    name: str
    email: EmailStr
    role: UserRoleEnum
    is_active: bool
    earnings: Decimal
    total_spent: Decimal
    created_at: datetime
