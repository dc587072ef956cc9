# jobboard/schemas/review_schema.py
from pydantic import BaseModel, ConfigDict, Field
from datetime import datetime
from typing import List, Optional

from jobboard.models.review import ReviewType


class ReviewCreate(BaseModel):
    job_id: int
    reviewee_id: str
    rating: int
    comment: Optional[str] = Field(None, max_length=2000)
    review_type: ReviewType
    communication_rating: Optional[int] = None
    quality_rating: Optional[int] = None
    timeliness_rating: Optional[int] = None
    would_recommend: Optional[bool] = None
    tags: Optional[str] = Field(None, max_length=500)


class ReviewOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    review_id: int
    job_id: int
    reviewer_id: str
    reviewee_id: str
    rating: int
    comment: Optional[str] = None
    review_type: ReviewType
    is_visible: bool
    communication_rating: Optional[int] = None
    quality_rating: Optional[int] = None
    timeliness_rating: Optional[int] = None
    would_recommend: Optional[bool] = None
    tags: Optional[str] = None
    created_at: datetime


class ReviewSummary(BaseModel):
    user_id: str
    average_rating: float
    total_reviews: int
    recent_reviews: List[ReviewOut]


class PendingReview(BaseModel):
    job_id: int
    job_title: str
    reviewee_id: str
    review_type: ReviewType
