# app/schemas/transaction_schema.py
from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from app.models.transaction import PaymentMethodEnum, TransactionStatusEnum

# 建立交易：狀態一律由 pending 開始
class TransactionCreate(BaseModel):
    amount: Decimal = Field(..., gt=0, max_digits=12, decimal_places=2)
    payment_method: PaymentMethodEnum
    client_id: str
    freelancer_id: str
    project_id: str

# 更新交易 (PUT /transactions/{id})：沒傳的欄位保留原值
# 注意：舊狀態一律以資料庫為準，這裡不接受 "old status"
class TransactionUpdate(BaseModel):
    amount: Optional[Decimal] = Field(None, gt=0, max_digits=12, decimal_places=2)
    payment_method: Optional[PaymentMethodEnum] = None
    status: Optional[TransactionStatusEnum] = None

class TransactionOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    transaction_id: str
    amount: Decimal
    payment_method: Optional[PaymentMethodEnum] = None
    status: TransactionStatusEnum
    client_id: str
    freelancer_id: str
    project_id: str
    created_at: datetime
    updated_at: datetime
