# app/schemas/review_schema.py
from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

# 評價者一律取自 Token，不接受 Body 指定
class ReviewCreate(BaseModel):
    project_id: str
    reviewee_id: str
    rating: Decimal = Field(..., ge=0, le=5, max_digits=3, decimal_places=2)
    comment: Optional[str] = None

class ReviewUpdate(BaseModel):
    rating: Optional[Decimal] = Field(None, ge=0, le=5, max_digits=3, decimal_places=2)
    comment: Optional[str] = None

class ReviewOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    review_id: str
    project_id: str
    reviewer_id: str
    reviewee_id: str
    rating: Decimal
    comment: Optional[str] = None
    created_at: datetime
    updated_at: datetime
