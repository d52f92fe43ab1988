# app/routers/transaction_router.py

from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.security import get_current_actor
from app.services.transaction_service import TransactionService
from app.schemas.transaction_schema import TransactionCreate, TransactionOut, TransactionUpdate

router = APIRouter(
    prefix="/transactions",
    tags=["Transactions"],
    dependencies=[Depends(get_current_actor)]
)

project_transaction_router = APIRouter(
    prefix="/projects",
    tags=["Transactions"],
    dependencies=[Depends(get_current_actor)]
)

@router.post("/", response_model=TransactionOut, status_code=status.HTTP_201_CREATED)
async def create_transaction(
    data: TransactionCreate,
    db: AsyncSession = Depends(get_db)
):
    """
    建立交易 (一律為 pending)
    """
    service = TransactionService(db)
    return await service.create_transaction(data)

@router.get("/{transaction_id}", response_model=TransactionOut)
async def get_transaction(
    transaction_id: str,
    db: AsyncSession = Depends(get_db)
):
    service = TransactionService(db)
    return await service.get_transaction(transaction_id)

@router.put("/{transaction_id}", response_model=TransactionOut)
async def update_transaction(
    transaction_id: str,
    changes: TransactionUpdate,
    db: AsyncSession = Depends(get_db)
):
    """
    更新交易；狀態改為 completed 時自動結算雙方金額 (每筆交易只結算一次)
    """
    service = TransactionService(db)
    return await service.update_transaction(transaction_id, changes)

@router.delete("/{transaction_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_transaction(
    transaction_id: str,
    db: AsyncSession = Depends(get_db)
):
    service = TransactionService(db)
    await service.delete_transaction(transaction_id)

@project_transaction_router.get("/{project_id}/transactions", response_model=List[TransactionOut])
async def list_project_transactions(
    project_id: str,
    db: AsyncSession = Depends(get_db)
):
    service = TransactionService(db)
    return await service.list_transactions_by_project(project_id)
