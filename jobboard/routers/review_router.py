# jobboard/routers/review_router.py

from fastapi import APIRouter, BackgroundTasks, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List

from jobboard.core.database import get_db
from jobboard.core.security import get_current_user
from jobboard.models.user import User
from jobboard.schemas.review_schema import PendingReview, ReviewCreate, ReviewOut, ReviewSummary
from jobboard.services.notification_dispatcher import (
    NotificationDispatcher, get_dispatcher, schedule_dispatch
)
from jobboard.services.review_service import ReviewService

router = APIRouter(
    prefix="/api/Reviews",
    tags=["Reviews"],
    dependencies=[Depends(get_current_user)]
)


def get_review_service(db: AsyncSession = Depends(get_db)) -> ReviewService:
    return ReviewService(db)


@router.post("", response_model=ReviewOut, status_code=status.HTTP_201_CREATED)
async def api_create_review(
    review_data: ReviewCreate,
    background_tasks: BackgroundTasks,
    service: ReviewService = Depends(get_review_service),
    dispatcher: NotificationDispatcher = Depends(get_dispatcher),
    current_user: User = Depends(get_current_user)
):
    """
    Review the other party of a completed job (one review per job and reviewer)
    """
    review = await service.create_review(review_data, current_user)
    schedule_dispatch(background_tasks, service.notifications, dispatcher)
    return review


@router.get("/pending", response_model=List[PendingReview])
async def api_get_pending_reviews(
    service: ReviewService = Depends(get_review_service),
    current_user: User = Depends(get_current_user)
):
    return await service.get_pending_reviews(current_user)


@router.get("/job/{job_id}", response_model=List[ReviewOut])
async def api_get_job_reviews(
    job_id: int,
    service: ReviewService = Depends(get_review_service)
):
    return await service.get_reviews_by_job(job_id)


@router.get("/user/{user_id}", response_model=List[ReviewOut])
async def api_get_user_reviews(
    user_id: str,
    service: ReviewService = Depends(get_review_service)
):
    return await service.get_reviews_for_user(user_id)


@router.get("/user/{user_id}/summary", response_model=ReviewSummary)
async def api_get_review_summary(
    user_id: str,
    service: ReviewService = Depends(get_review_service)
):
    return await service.get_review_summary(user_id)
