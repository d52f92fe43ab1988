# app/models/notification.py

import enum
import uuid
from sqlalchemy import Column, TEXT, BOOLEAN, CHAR, Enum, ForeignKey, TIMESTAMP, func
from sqlalchemy.orm import relationship
from app.core.database import Base

class NotificationTypeEnum(str, enum.Enum):
    proposal_update = "proposal_update"
    payment_received = "payment_received"
    project_status = "project_status"
    admin_message = "admin_message"

class Notification(Base):
    __tablename__ = "notifications"

    notification_id = Column(CHAR(36), primary_key=True, default=lambda: str(uuid.uuid4()))

    # 接收通知的 user
    user_id = Column(CHAR(36), ForeignKey("users.user_id", ondelete="CASCADE"), nullable=False, index=True)

    message = Column(TEXT, nullable=False)
    type = Column(
        Enum(NotificationTypeEnum, values_callable=lambda obj: [e.value for e in obj]),
        nullable=False,
    )

    is_read = Column(BOOLEAN, default=False, nullable=False)
    created_at = Column(TIMESTAMP, server_default=func.now())

    user = relationship("User")
