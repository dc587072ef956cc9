# jobboard/repositories/review_repo.py

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from sqlalchemy import func
from typing import List, Optional

from jobboard.models.review import Review


class ReviewRepository:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def create_review(self, review: Review) -> Review:
        self.db.add(review)
        await self.db.flush()
        return review

    async def get_review_by_id(self, review_id: int) -> Optional[Review]:
        result = await self.db.execute(select(Review).where(Review.review_id == review_id))
        return result.scalars().first()

    async def exists_for_job_and_reviewer(self, job_id: int, reviewer_id: str) -> bool:
        stmt = select(func.count(Review.review_id)).where(
            Review.job_id == job_id,
            Review.reviewer_id == reviewer_id
        )
        result = await self.db.execute(stmt)
        return result.scalar_one() > 0

    async def list_by_job(self, job_id: int) -> List[Review]:
        stmt = (
            select(Review)
            .where(Review.job_id == job_id, Review.is_visible.is_(True))
            .order_by(Review.created_at.desc(), Review.review_id.desc())
        )
        result = await self.db.execute(stmt)
        return result.scalars().all()

    async def list_for_reviewee(self, user_id: str, limit: Optional[int] = None) -> List[Review]:
        stmt = (
            select(Review)
            .where(Review.reviewee_id == user_id, Review.is_visible.is_(True))
            .order_by(Review.created_at.desc(), Review.review_id.desc())
        )
        if limit is not None:
            stmt = stmt.limit(limit)
        result = await self.db.execute(stmt)
        return result.scalars().all()

    async def rating_stats(self, user_id: str) -> tuple[float, int]:
        """(average rating, review count) over visible reviews of the user"""
        stmt = select(func.avg(Review.rating), func.count(Review.review_id)).where(
            Review.reviewee_id == user_id,
            Review.is_visible.is_(True)
        )
        avg, count = (await self.db.execute(stmt)).one()
        return (float(avg) if avg is not None else 0.0), count

    async def list_job_ids_reviewed_by(self, reviewer_id: str) -> set[int]:
        stmt = select(Review.job_id).where(Review.reviewer_id == reviewer_id)
        result = await self.db.execute(stmt)
        return set(result.scalars().all())
