import pytest

from conftest import make_contract, make_job, make_user
from jobboard.core.exceptions import ArgumentError, InvalidOperationError, UnauthorizedAccessError
from jobboard.models.contract import ContractStatus
from jobboard.models.job import JobStatus
from jobboard.models.review import ReviewType
from jobboard.models.user import UserRoleEnum
from jobboard.repositories.job_repo import JobRepository
from jobboard.schemas.review_schema import ReviewCreate
from jobboard.services.review_service import ReviewService
from jobboard.utils.notification_templates import NotificationType


async def completed_contract(db):
    contract, client, freelancer = await make_contract(db, status=ContractStatus.completed)
    job = await JobRepository(db).get_job_by_id(contract.job_id)
    job.status = JobStatus.completed
    await db.commit()
    return contract, client, freelancer


def client_review(contract, rating=5):
    return ReviewCreate(
        job_id=contract.job_id,
        reviewee_id=contract.freelancer_id,
        rating=rating,
        comment="Great work, on time.",
        review_type=ReviewType.client_to_freelancer,
    )


async def test_client_reviews_freelancer(db):
    contract, client, freelancer = await completed_contract(db)
    service = ReviewService(db)

    review = await service.create_review(client_review(contract), client)

    assert review.review_id is not None
    assert review.reviewee_id == freelancer.user_id
    [notification] = service.notifications.created
    assert notification.recipient_user_id == freelancer.user_id
    assert notification.type == NotificationType.REVIEW_RECEIVED.value


async def test_duplicate_review_fails(db):
    contract, client, _ = await completed_contract(db)
    await ReviewService(db).create_review(client_review(contract), client)

    with pytest.raises(InvalidOperationError):
        await ReviewService(db).create_review(client_review(contract, rating=3), client)

    assert len(await ReviewService(db).get_reviews_by_job(contract.job_id)) == 1


async def test_both_sides_can_review(db):
    contract, client, freelancer = await completed_contract(db)
    await ReviewService(db).create_review(client_review(contract, rating=4), client)
    await ReviewService(db).create_review(
        ReviewCreate(
            job_id=contract.job_id,
            reviewee_id=client.user_id,
            rating=5,
            review_type=ReviewType.freelancer_to_client,
        ),
        freelancer,
    )

    summary = await ReviewService(db).get_review_summary(freelancer.user_id)
    assert summary["total_reviews"] == 1
    assert summary["average_rating"] == 4.0
    assert await ReviewService(db).get_pending_reviews(client) == []


async def test_review_requires_completed_job(db):
    contract, client, _ = await make_contract(db)

    with pytest.raises(InvalidOperationError):
        await ReviewService(db).create_review(client_review(contract), client)


async def test_rating_out_of_range(db):
    contract, client, _ = await completed_contract(db)

    with pytest.raises(ArgumentError):
        await ReviewService(db).create_review(client_review(contract, rating=6), client)


async def test_wrong_review_type_or_reviewee(db):
    contract, client, _ = await completed_contract(db)
    wrong_type = client_review(contract)
    wrong_type.review_type = ReviewType.freelancer_to_client

    with pytest.raises(ArgumentError):
        await ReviewService(db).create_review(wrong_type, client)

    wrong_reviewee = client_review(contract)
    wrong_reviewee.reviewee_id = client.user_id
    with pytest.raises(ArgumentError):
        await ReviewService(db).create_review(wrong_reviewee, client)


async def test_outsider_cannot_review(db):
    contract, _, _ = await completed_contract(db)
    stranger = await make_user(db, UserRoleEnum.freelancer)

    with pytest.raises(UnauthorizedAccessError):
        await ReviewService(db).create_review(client_review(contract), stranger)


async def test_pending_reviews_lists_completed_jobs(db):
    contract, client, freelancer = await completed_contract(db)
    other_client = await make_user(db)
    await make_job(db, other_client)

    [pending] = await ReviewService(db).get_pending_reviews(freelancer)
    assert pending["job_id"] == contract.job_id
    assert pending["reviewee_id"] == client.user_id
    assert pending["review_type"] == ReviewType.freelancer_to_client
