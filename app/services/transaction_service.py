# app/services/transaction_service.py

import logging
from decimal import Decimal
from typing import List

from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import ConflictError, NotFoundError, ValidationFailedError
from app.models.user import User
from app.models.project import Project
from app.models.transaction import Transaction, TransactionStatusEnum
from app.repositories.base_repo import Repository
from app.schemas.transaction_schema import TransactionCreate, TransactionUpdate

logger = logging.getLogger(__name__)

class TransactionService:
    def __init__(self, db: AsyncSession):
        self.db = db
        self.transaction_repo = Repository(db, Transaction)
        self.user_repo = Repository(db, User)
        self.project_repo = Repository(db, Project)

    async def create_transaction(self, data: TransactionCreate) -> Transaction:
        """
        建立交易，狀態一律為 pending (結算只會發生在之後的 pending -> completed)
        """
        if data.client_id == data.freelancer_id:
            raise ValidationFailedError("付款方與收款方不能是同一人")
        if not await self.project_repo.get(data.project_id):
            raise NotFoundError("案件不存在")
        for user_id in (data.client_id, data.freelancer_id):
            if not await self.user_repo.get(user_id):
                raise NotFoundError(f"使用者 {user_id} 不存在")

        transaction = Transaction(
            **data.model_dump(),
            status=TransactionStatusEnum.pending,
        )
        return await self.transaction_repo.create(transaction)

    async def get_transaction(self, transaction_id: str) -> Transaction:
        transaction = await self.transaction_repo.get(transaction_id)
        if not transaction:
            raise NotFoundError("交易不存在")
        return transaction

    async def list_transactions_by_project(self, project_id: str) -> List[Transaction]:
        return await self.transaction_repo.list_by(project_id=project_id)

    async def delete_transaction(self, transaction_id: str) -> None:
        transaction = await self.get_transaction(transaction_id)
        await self.transaction_repo.delete(transaction)

    async def update_transaction(self, transaction_id: str, changes: TransactionUpdate) -> Transaction:
        """
        更新交易；狀態由「非 completed」變成 completed 時，結算雙方金額：

        - freelancer.earnings += amount
        - client.total_spent += amount

        舊狀態一律讀資料庫裡的值 (呼叫端無法偽造)。
        結算前先以 compare-and-swap 把狀態改成 completed
        (WHERE status != 'completed')，改不到任何一列代表別人已經完成結算，
        因此每筆交易最多只會結算一次。
        狀態、金額、雙方帳戶在同一個資料庫交易內提交，失敗就整筆 rollback。
        """
        try:
            transaction = await self.transaction_repo.get(transaction_id, for_update=True)
            if not transaction:
                raise NotFoundError("交易不存在")

            old_status = transaction.status
            update_data = changes.model_dump(exclude_unset=True, exclude_none=True)
            new_status = update_data.get("status", old_status)
            amount = update_data.get("amount", transaction.amount)

            # completed 是終點：已結算的交易不能再改狀態或金額，否則會被重複結算
            if old_status == TransactionStatusEnum.completed:
                self._ensure_settled_fields_unchanged(transaction, new_status, amount)

            settled = False
            if (
                old_status != TransactionStatusEnum.completed
                and new_status == TransactionStatusEnum.completed
            ):
                settled = await self._complete_and_settle(transaction, amount)
                if not settled:
                    # 讀取後才被別人完成結算，同樣適用終點規則
                    self._ensure_settled_fields_unchanged(transaction, new_status, amount)

            # 其餘欄位直接覆蓋
            for key, value in update_data.items():
                setattr(transaction, key, value)
            await self.transaction_repo.save(transaction, commit=False)

            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

        await self.db.refresh(transaction)
        if settled:
            logger.info(
                f"交易 {transaction_id} 已完成結算：{transaction.freelancer_id} 入帳 {amount}，"
                f"{transaction.client_id} 支出 {amount}"
            )
        return transaction

    @staticmethod
    def _ensure_settled_fields_unchanged(
        transaction: Transaction, new_status: TransactionStatusEnum, amount: Decimal
    ) -> None:
        if new_status != TransactionStatusEnum.completed:
            raise ConflictError("已完成的交易不能變更狀態")
        if amount != transaction.amount:
            raise ConflictError("已完成的交易不能變更金額")

    async def _complete_and_settle(self, transaction: Transaction, amount: Decimal) -> bool:
        """
        在目前的資料庫交易內把狀態改為 completed 並更新雙方金額，不 commit。
        回傳 False 表示這筆交易已被其他請求完成，本次不結算。
        """
        # 步驟 1: compare-and-swap 狀態
        result = await self.db.execute(
            update(Transaction)
            .where(
                Transaction.transaction_id == transaction.transaction_id,
                Transaction.status != TransactionStatusEnum.completed,
            )
            .values(status=TransactionStatusEnum.completed)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            logger.info(f"交易 {transaction.transaction_id} 已由其他請求完成，略過結算")
            return False

        # 步驟 2: 確認雙方使用者存在
        client = await self.user_repo.get(transaction.client_id)
        if not client:
            raise NotFoundError("交易的雇主不存在")
        freelancer = await self.user_repo.get(transaction.freelancer_id)
        if not freelancer:
            raise NotFoundError("交易的工作者不存在")

        # 步驟 3: 在資料庫端累加，避免同一使用者的並行結算互相覆蓋
        await self.db.execute(
            update(User)
            .where(User.user_id == freelancer.user_id)
            .values(earnings=User.earnings + amount)
            .execution_options(synchronize_session=False)
        )
        await self.db.execute(
            update(User)
            .where(User.user_id == client.user_id)
            .values(total_spent=User.total_spent + amount)
            .execution_options(synchronize_session=False)
        )
        # session 中的 User 物件已過時，下次讀取時重新載入
        self.db.expire(freelancer)
        self.db.expire(client)
        return True
