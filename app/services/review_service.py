# app/services/review_service.py

import logging
from typing import List

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import ConflictError, ForbiddenError, NotFoundError, ValidationFailedError
from app.core.security import Actor
from app.models.user import User
from app.models.project import Project
from app.models.review import Review
from app.repositories.base_repo import Repository
from app.schemas.review_schema import ReviewCreate, ReviewUpdate

logger = logging.getLogger(__name__)

class ReviewService:
    def __init__(self, db: AsyncSession):
        self.db = db
        self.review_repo = Repository(db, Review)
        self.project_repo = Repository(db, Project)
        self.user_repo = Repository(db, User)

    async def create_review(self, data: ReviewCreate, actor: Actor) -> Review:
        """
        案件的雇主與得標工作者互相評價：

        - 評價者、被評價者都必須是該案件的參與者
        - 不能評價自己
        - 同一案件裡 A 對 B 只能評價一次 (409)
        """
        project = await self.project_repo.get(data.project_id)
        if not project:
            raise NotFoundError("案件不存在")
        if not await self.user_repo.get(data.reviewee_id):
            raise NotFoundError("被評價的使用者不存在")

        if data.reviewee_id == actor.user_id:
            raise ValidationFailedError("不能評價自己")

        participants = {project.client_id, project.freelancer_id} - {None}
        if actor.user_id not in participants:
            raise ForbiddenError("只有案件參與者可以留下評價")
        if data.reviewee_id not in participants:
            raise ValidationFailedError("被評價者不是此案件的參與者")

        existing = await self.review_repo.list_by(
            project_id=data.project_id,
            reviewer_id=actor.user_id,
            reviewee_id=data.reviewee_id,
        )
        if existing:
            raise ConflictError("你已經評價過此使用者")

        review = Review(**data.model_dump(), reviewer_id=actor.user_id)
        try:
            created = await self.review_repo.create(review)
        except IntegrityError:
            # 兩個請求同時通過上面的檢查時，由唯一鍵擋下第二筆
            await self.review_repo.rollback()
            raise ConflictError("你已經評價過此使用者")

        logger.info(f"使用者 {actor.user_id} 在案件 {data.project_id} 評價了 {data.reviewee_id}")
        return created

    async def get_review(self, review_id: str) -> Review:
        review = await self.review_repo.get(review_id)
        if not review:
            raise NotFoundError("評價不存在")
        return review

    async def list_reviews_by_project(self, project_id: str) -> List[Review]:
        return await self.review_repo.list_by(project_id=project_id)

    async def update_review(self, review_id: str, changes: ReviewUpdate, actor: Actor) -> Review:
        review = await self.get_review(review_id)
        # 只有評價者本人可以修改
        if review.reviewer_id != actor.user_id:
            raise ForbiddenError("只能修改自己留下的評價")

        for key, value in changes.model_dump(exclude_unset=True, exclude_none=True).items():
            setattr(review, key, value)
        return await self.review_repo.save(review)

    async def delete_review(self, review_id: str, actor: Actor) -> None:
        review = await self.get_review(review_id)
        if review.reviewer_id != actor.user_id and not actor.is_admin:
            raise ForbiddenError("只能刪除自己留下的評價")
        await self.review_repo.delete(review)
