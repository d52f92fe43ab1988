# app/schemas/proposal_schema.py
from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from app.models.proposal import ProposalStatusEnum

# --- 基礎模型 ---
class ProposalBase(BaseModel):
    proposal_text: str = Field(..., min_length=1)
    bid_amount: Decimal = Field(..., gt=0, max_digits=12, decimal_places=2)
    estimated_duration: Optional[int] = Field(None, gt=0) # 天數

# --- 建立 (Create) ---
# project_id 來自 URL，freelancer_id 來自 Token
class ProposalCreate(ProposalBase):
    pass

# --- 讀取 (Read / Out) ---
class ProposalOut(ProposalBase):
    model_config = ConfigDict(from_attributes=True)

    proposal_id: str
    project_id: str
    freelancer_id: str
    status: ProposalStatusEnum
    created_at: datetime
    updated_at: datetime

# 接受提案的回應
class ProposalAcceptOut(BaseModel):
    message: str
    proposal: ProposalOut
