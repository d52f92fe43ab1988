# app/routers/review_router.py

from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.security import Actor, get_current_actor
from app.services.review_service import ReviewService
from app.schemas.review_schema import ReviewCreate, ReviewOut, ReviewUpdate

router = APIRouter(
    prefix="/reviews",
    tags=["Reviews"],
    dependencies=[Depends(get_current_actor)]
)

project_review_router = APIRouter(
    prefix="/projects",
    tags=["Reviews"],
    dependencies=[Depends(get_current_actor)]
)

@router.post("/", response_model=ReviewOut, status_code=status.HTTP_201_CREATED)
async def create_review(
    data: ReviewCreate,
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(get_current_actor)
):
    """
    評價案件中的另一方

    - 403：不是案件參與者
    - 409：已經評價過
    """
    return await ReviewService(db).create_review(data, actor)

@router.get("/{review_id}", response_model=ReviewOut)
async def get_review(
    review_id: str,
    db: AsyncSession = Depends(get_db)
):
    return await ReviewService(db).get_review(review_id)

@router.put("/{review_id}", response_model=ReviewOut)
async def update_review(
    review_id: str,
    changes: ReviewUpdate,
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(get_current_actor)
):
    return await ReviewService(db).update_review(review_id, changes, actor)

@router.delete("/{review_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_review(
    review_id: str,
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(get_current_actor)
):
    await ReviewService(db).delete_review(review_id, actor)

@project_review_router.get("/{project_id}/reviews", response_model=List[ReviewOut])
async def list_project_reviews(
    project_id: str,
    db: AsyncSession = Depends(get_db)
):
    return await ReviewService(db).list_reviews_by_project(project_id)
