# app/repositories/base_repo.py
# 通用 Repository：所有 Model 共用同一套 CRUD，不再每個實體各寫一份

from typing import Any, Generic, List, Optional, Type, TypeVar

from sqlalchemy import inspect
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from app.core.database import Base

ModelT = TypeVar("ModelT", bound=Base)


class Repository(Generic[ModelT]):
    """
    以 Model 類別參數化的非同步 Repository。

    寫入方法預設會 commit (一般 CRUD 使用)；
    需要多筆寫入同進同退的 workflow 傳入 commit=False，
    只做 flush，最後由 workflow 自行呼叫 commit() / rollback()。
    """

    def __init__(self, db: AsyncSession, model: Type[ModelT]):
        self.db = db
        self.model = model
        self._pk = inspect(model).primary_key[0]

    async def get(self, obj_id: Any, for_update: bool = False) -> Optional[ModelT]:
        """
        透過主鍵查詢單筆資料；for_update=True 會鎖定該列 (SELECT ... FOR UPDATE)
        """
        stmt = select(self.model).where(self._pk == obj_id)
        if for_update:
            # populate_existing: 同一個 session 裡若已有舊的物件，用資料庫最新值覆蓋
            stmt = stmt.with_for_update().execution_options(populate_existing=True)
        result = await self.db.execute(stmt)
        return result.scalars().first()

    async def list_by(self, **filters: Any) -> List[ModelT]:
        """
        依欄位等值條件查詢 (主要用於外鍵，例如 project_id=...)，新的在前
        """
        stmt = select(self.model).filter_by(**filters)
        created_at = getattr(self.model, "created_at", None)
        if created_at is not None:
            stmt = stmt.order_by(created_at.desc())
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def create(self, obj: ModelT, commit: bool = True) -> ModelT:
        self.db.add(obj)
        await self.db.flush()
        if commit:
            await self.db.commit()
            await self.db.refresh(obj)
        return obj

    async def save(self, obj: ModelT, commit: bool = True) -> ModelT:
        """
        儲存已載入物件的變更 (物件已在 session 中，只需 flush / commit)
        """
        self.db.add(obj)
        await self.db.flush()
        if commit:
            await self.db.commit()
            await self.db.refresh(obj)
        return obj

    async def delete(self, obj: ModelT, commit: bool = True) -> None:
        await self.db.delete(obj)
        await self.db.flush()
        if commit:
            await self.db.commit()

    async def commit(self) -> None:
        await self.db.commit()

    async def rollback(self) -> None:
        await self.db.rollback()
