# jobboard/services/review_service.py

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.exc import IntegrityError
from typing import Dict, List
import logging

from jobboard.core.exceptions import (
    ArgumentError, InvalidOperationError, NotFoundError, UnauthorizedAccessError
)
from jobboard.models.job import JobStatus
from jobboard.models.review import Review, ReviewType
from jobboard.models.user import User
from jobboard.repositories.contract_repo import ContractRepository
from jobboard.repositories.job_repo import JobRepository
from jobboard.repositories.proposal_repo import ProposalRepository
from jobboard.repositories.review_repo import ReviewRepository
from jobboard.repositories.user_repo import UserRepository
from jobboard.schemas.review_schema import ReviewCreate
from jobboard.services.notification_service import NotificationService
from jobboard.utils.notification_templates import NotificationType, ReviewReceivedPayload

logger = logging.getLogger(__name__)


def _check_rating(name: str, value) -> None:
    if value is not None and not 1 <= value <= 5:
        raise ArgumentError(f"{name} must be between 1 and 5")


class ReviewService:
    def __init__(self, db: AsyncSession):
        self.db = db
        self.review_repo = ReviewRepository(db)
        self.job_repo = JobRepository(db)
        self.proposal_repo = ProposalRepository(db)
        self.contract_repo = ContractRepository(db)
        self.user_repo = UserRepository(db)
        self.notifications = NotificationService(db)

    async def _accepted_freelancer_id(self, job_id: int) -> str | None:
        contract = await self.contract_repo.get_contract_by_job(job_id)
        if contract is not None:
            return contract.freelancer_id
        proposal = await self.proposal_repo.get_accepted_proposal_for_job(job_id)
        return proposal.freelancer_id if proposal else None

    async def create_review(self, data: ReviewCreate, reviewer: User) -> Review:
        _check_rating("rating", data.rating)
        if data.rating is None:
            raise ArgumentError("rating is required")
        _check_rating("communication_rating", data.communication_rating)
        _check_rating("quality_rating", data.quality_rating)
        _check_rating("timeliness_rating", data.timeliness_rating)

        job = await self.job_repo.get_job_by_id(data.job_id)
        if not job:
            raise NotFoundError("Job", data.job_id)
        if job.status != JobStatus.completed:
            raise InvalidOperationError("Reviews can only be left on completed jobs")

        freelancer_id = await self._accepted_freelancer_id(job.job_id)
        if reviewer.user_id == job.client_id:
            expected_type, expected_reviewee = ReviewType.client_to_freelancer, freelancer_id
        elif freelancer_id is not None and reviewer.user_id == freelancer_id:
            expected_type, expected_reviewee = ReviewType.freelancer_to_client, job.client_id
        else:
            raise UnauthorizedAccessError("Only the job's client or its hired freelancer can review it")

        if data.review_type != expected_type:
            raise ArgumentError(f"Review type must be {expected_type.value} for this reviewer")
        if data.reviewee_id != expected_reviewee:
            raise ArgumentError("The reviewee must be the other party of the job")

        if await self.review_repo.exists_for_job_and_reviewer(job.job_id, reviewer.user_id):
            raise InvalidOperationError("You have already reviewed this job")

        review = Review(
            job_id=job.job_id,
            reviewer_id=reviewer.user_id,
            reviewee_id=data.reviewee_id,
            rating=data.rating,
            comment=data.comment,
            review_type=data.review_type,
            is_visible=True,
            communication_rating=data.communication_rating,
            quality_rating=data.quality_rating,
            timeliness_rating=data.timeliness_rating,
            would_recommend=data.would_recommend,
            tags=data.tags,
        )
        try:
            await self.review_repo.create_review(review)
        except IntegrityError:
            # Concurrent duplicate caught by uq_reviews_job_reviewer
            await self.db.rollback()
            raise InvalidOperationError("You have already reviewed this job")

        await self.notifications.create_interaction_notification(
            recipient_user_id=data.reviewee_id,
            sender_user_id=reviewer.user_id,
            notification_type=NotificationType.REVIEW_RECEIVED,
            payload=ReviewReceivedPayload(
                job_title=job.title, reviewer_name=reviewer.full_name, rating=data.rating
            ),
            job_id=job.job_id,
            review_id=review.review_id,
            action_url=f"/users/{data.reviewee_id}/reviews",
        )

        await self.db.commit()
        logger.info(f"Review {review.review_id} on job {job.job_id} by user {reviewer.user_id}")
        return review

    async def get_reviews_by_job(self, job_id: int) -> List[Review]:
        return await self.review_repo.list_by_job(job_id)

    async def get_reviews_for_user(self, user_id: str) -> List[Review]:
        return await self.review_repo.list_for_reviewee(user_id)

    async def get_review_summary(self, user_id: str) -> Dict:
        if not await self.user_repo.get_user_by_id(user_id):
            raise NotFoundError("User", user_id)
        average, count = await self.review_repo.rating_stats(user_id)
        return {
            "user_id": user_id,
            "average_rating": round(average, 2),
            "total_reviews": count,
            "recent_reviews": await self.review_repo.list_for_reviewee(user_id, limit=5),
        }

    async def get_pending_reviews(self, user: User) -> List[Dict]:
        """
        Completed jobs the user took part in and has not reviewed yet
        """
        reviewed = await self.review_repo.list_job_ids_reviewed_by(user.user_id)
        pending = []
        for contract in await self.contract_repo.get_contracts_by_user(user.user_id):
            if contract.job_id in reviewed:
                continue
            job = await self.job_repo.get_job_by_id(contract.job_id)
            if job is None or job.status != JobStatus.completed:
                continue
            if user.user_id == contract.client_id:
                reviewee_id, review_type = contract.freelancer_id, ReviewType.client_to_freelancer
            else:
                reviewee_id, review_type = contract.client_id, ReviewType.freelancer_to_client
            pending.append({
                "job_id": job.job_id,
                "job_title": job.title,
                "reviewee_id": reviewee_id,
                "review_type": review_type,
            })
        return pending
