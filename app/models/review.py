# app/models/review.py
import uuid
from sqlalchemy import Column, TEXT, NUMERIC, TIMESTAMP, ForeignKey, CHAR, CheckConstraint, UniqueConstraint, func
from app.core.database import Base

class Review(Base):
    __tablename__ = "reviews"
    __table_args__ = (
        CheckConstraint("rating >= 0 AND rating <= 5", name="ck_reviews_rating_range"),
        # 同一個案件裡，A 對 B 只能評價一次
        UniqueConstraint("project_id", "reviewer_id", "reviewee_id", name="uq_reviews_once_per_pair"),
    )

    review_id = Column(CHAR(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    project_id = Column(CHAR(36), ForeignKey("projects.project_id", ondelete="CASCADE"), nullable=False, index=True)
    reviewer_id = Column(CHAR(36), ForeignKey("users.user_id", ondelete="CASCADE"), nullable=False, index=True)
    reviewee_id = Column(CHAR(36), ForeignKey("users.user_id", ondelete="CASCADE"), nullable=False, index=True)

    rating = Column(NUMERIC(3, 2), nullable=False)
    comment = Column(TEXT, nullable=True)

    created_at = Column(TIMESTAMP, server_default=func.now())
    updated_at = Column(TIMESTAMP, server_default=func.now(), onupdate=func.now())
