# app/routers/user_router.py
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.exceptions import NotFoundError
from app.core.security import get_current_user, require_roles
from app.models.user import User, UserRoleEnum
from app.repositories.base_repo import Repository
from app.schemas.user_schema import UserOut

router = APIRouter(prefix="/users", tags=["Users"])

@router.get("/me", response_model=UserOut)
async def read_users_me(current_user: User = Depends(get_current_user)):
    """
    登入者自己的資料，earnings / total_spent 由交易結算累加
    """
    return current_user

@router.get(
    "/{user_id}",
    response_model=UserOut,
    dependencies=[Depends(require_roles(UserRoleEnum.admin))],
)
async def read_user(user_id: str, db: AsyncSession = Depends(get_db)):
    # 僅限管理者查帳
    user = await Repository(db, User).get(user_id)
    if user is None:
        raise NotFoundError("使用者不存在")
    return user
