# app/services/notification_service.py

import json
import logging
from typing import List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.broadcast import BroadcastHub
from app.core.exceptions import ForbiddenError, NotFoundError
from app.core.security import Actor
from app.models.notification import Notification, NotificationTypeEnum
from app.models.project import Project
from app.models.proposal import Proposal
from app.repositories.base_repo import Repository

logger = logging.getLogger(__name__)

class NotificationService:
    def __init__(self, db: AsyncSession, hub: Optional[BroadcastHub] = None):
        self.db = db
        self.repo = Repository(db, Notification)
        self.hub = hub

    async def create_notification(
        self,
        user_id: str,
        message: str,
        type: NotificationTypeEnum,
    ) -> Notification:
        """
        (內部使用) 供其他 Service 呼叫的介面；若有注入 BroadcastHub 也會即時推播
        """
        notification = Notification(
            user_id=user_id,
            message=message,
            type=type,
            is_read=False,
        )
        try:
            created = await self.repo.create(notification)
        except Exception as e:
            await self.repo.rollback()
            logger.error(f"建立通知失敗: {e}", exc_info=True)
            raise
        logger.info(f"建立通知 for User ID: {user_id}, Type: {type.value}")

        if self.hub is not None:
            # /updates 是公開的串流，只推送「有新通知」的事件，內容要登入後透過 /notifications/my 讀取
            self.hub.broadcast(json.dumps({
                "type": type.value,
                "notification_id": created.notification_id,
            }))
        return created

    async def notify_proposal_accepted(self, proposal: Proposal, project: Project) -> None:
        """
        接受提案後的 hook：通知得標的工作者 (由 ProposalService 在 commit 後呼叫)
        """
        await self.create_notification(
            user_id=proposal.freelancer_id,
            message=f"您對案件「{project.title}」的提案已被接受！",
            type=NotificationTypeEnum.proposal_update,
        )

    async def get_my_notifications(self, actor: Actor) -> List[Notification]:
        return await self.repo.list_by(user_id=actor.user_id)

    async def mark_notification_as_read(self, notification_id: str, actor: Actor) -> Notification:
        notification = await self.repo.get(notification_id)
        if not notification:
            raise NotFoundError("通知不存在")

        # 只能標記自己的通知
        if notification.user_id != actor.user_id:
            raise ForbiddenError("無權操作此通知")

        if notification.is_read:
            return notification # 已讀，直接回傳

        notification.is_read = True
        return await self.repo.save(notification)
