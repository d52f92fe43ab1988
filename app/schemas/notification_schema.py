# app/schemas/notification_schema.py

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field
from app.models.notification import NotificationTypeEnum

class NotificationOut(BaseModel):
    """
    用於 API 回傳的通知格式
    """
    model_config = ConfigDict(from_attributes=True)

    notification_id: str
    user_id: str
    message: str
    type: NotificationTypeEnum
    is_read: bool
    created_at: datetime

# POST /broadcast 的請求 Body
class BroadcastIn(BaseModel):
    message: str = Field(..., min_length=1)

class BroadcastAck(BaseModel):
    status: str = "broadcasted"
    delivered: int
