from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from app.core.exceptions import ConflictError
from app.core.security import verify_password, create_access_token, get_password_hash
from app.models.user import User
from app.repositories.base_repo import Repository
from app.schemas.user_schema import UserCreate

class AuthService:
    def __init__(self, db: AsyncSession):
        self.db = db
        self.user_repo = Repository(db, User)

    async def get_user_by_email(self, email: str) -> User | None:
        stmt = select(User).where(User.email == email)
        result = await self.db.execute(stmt)
        return result.scalars().first()

    async def authenticate_user(self, email: str, password: str) -> User | None:
        """
        驗證使用者帳號密碼。
        成功回傳 User 物件，失敗回傳 None。
        """
        user = await self.get_user_by_email(email)

        # 1. 檢查使用者是否存在
        if not user:
            return None

        # 2. 檢查是否被停權
        if not user.is_active:
            return None

        # 3. 檢查密碼是否正確
        if not verify_password(plain_password=password, hashed_password=user.password_hash):
            return None

        return user

    async def register_user(self, user_create: UserCreate) -> User:
        """
        處理使用者註冊
        """
        # 1. 檢查 Email 是否已被註冊
        if await self.get_user_by_email(user_create.email):
            raise ConflictError("此 Email 已經被註冊")

        # 2. 建立 User ORM 模型 (密碼先雜湊)
        new_user = User(
            name=user_create.name,
            email=user_create.email,
            password_hash=get_password_hash(user_create.password),
            role=user_create.role,
            earnings=0,
            total_spent=0,
        )

        # 3. 呼叫 Repository 儲存到資料庫
        return await self.user_repo.create(new_user)

    def create_login_token(self, user: User) -> str:
        """
        為指定使用者建立 access token
        """
        return create_access_token(
            data={
                "sub": user.email,
                "user_id": str(user.user_id),
                "role": user.role.value # 確保存入的是字串
            }
        )
