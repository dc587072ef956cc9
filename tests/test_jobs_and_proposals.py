from decimal import Decimal

import pytest

from conftest import make_category, make_contract, make_job, make_proposal, make_skill, make_user
from jobboard.core.database import AsyncSessionLocal
from jobboard.core.exceptions import (
    ArgumentError, InvalidOperationError, NotFoundError, UnauthorizedAccessError
)
from jobboard.models.contract import ContractStatus
from jobboard.models.job import JobStatus
from jobboard.models.proposal import ProposalStatus
from jobboard.models.user import UserRoleEnum
from jobboard.repositories.contract_version_repo import ContractVersionRepository
from jobboard.repositories.job_repo import JobRepository
from jobboard.repositories.proposal_repo import ProposalRepository
from jobboard.schemas.job_schema import JobCreate, JobUpdate
from jobboard.services.job_service import JobService
from jobboard.services.proposal_service import ProposalService
from jobboard.utils.notification_templates import NotificationType


async def test_new_job_waits_for_approval_and_admins_are_told(db):
    admin = await make_user(db, UserRoleEnum.admin)
    client = await make_user(db)
    service = JobService(db)

    job = await service.create_job(JobCreate(title="Logo design", description="Vector logo"), client)

    assert job.status == JobStatus.pending
    [notification] = service.notifications.created
    assert notification.recipient_user_id == admin.user_id
    assert notification.type == NotificationType.JOB_SUBMITTED_FOR_APPROVAL.value
    assert job.job_id not in [j.job_id for j in await service.get_open_jobs()]


async def test_freelancer_cannot_post_job(db):
    freelancer = await make_user(db, UserRoleEnum.freelancer)

    with pytest.raises(UnauthorizedAccessError):
        await JobService(db).create_job(JobCreate(title="x", description="y"), freelancer)


async def test_pending_job_hidden_from_other_users(db):
    client = await make_user(db)
    freelancer = await make_user(db, UserRoleEnum.freelancer)
    job = await make_job(db, client, status=JobStatus.pending)
    await db.commit()

    assert (await JobService(db).get_job(job.job_id, client)).job_id == job.job_id
    with pytest.raises(NotFoundError):
        await JobService(db).get_job(job.job_id, freelancer)


async def test_submit_proposal(db):
    client = await make_user(db)
    freelancer = await make_user(db, UserRoleEnum.freelancer, name="Frank")
    job = await make_job(db, client)
    await db.commit()

    service = ProposalService(db)
    proposal = await service.submit_proposal(job.job_id, freelancer, "I can do it", Decimal("450"), 10)

    assert proposal.status == ProposalStatus.submitted
    [notification] = service.notifications.created
    assert notification.recipient_user_id == client.user_id
    assert notification.type == NotificationType.PROPOSAL_RECEIVED.value

    with pytest.raises(InvalidOperationError):
        await ProposalService(db).submit_proposal(job.job_id, freelancer, "Again", Decimal("400"))
    with pytest.raises(ArgumentError):
        await ProposalService(db).submit_proposal(job.job_id, freelancer, "Free", Decimal("0"))


async def test_cannot_bid_on_unapproved_job(db):
    client = await make_user(db)
    freelancer = await make_user(db, UserRoleEnum.freelancer)
    job = await make_job(db, client, status=JobStatus.pending)
    await db.commit()

    with pytest.raises(InvalidOperationError):
        await ProposalService(db).submit_proposal(job.job_id, freelancer, "Hi", Decimal("100"))


async def test_accepting_proposal_creates_contract_with_first_version(db):
    client = await make_user(db)
    winner = await make_user(db, UserRoleEnum.freelancer)
    loser = await make_user(db, UserRoleEnum.freelancer)
    job = await make_job(db, client)
    accepted = await make_proposal(db, job, winner, Decimal("500"))
    other = await make_proposal(db, job, loser, Decimal("450"))
    await db.commit()

    service = ProposalService(db)
    proposal, contract = await service.update_proposal_status(
        accepted.proposal_id, ProposalStatus.accepted, "Welcome aboard", client
    )

    assert proposal.status == ProposalStatus.accepted
    assert contract.status == ContractStatus.pending
    assert contract.payment_amount == Decimal("500")
    assert job.status == JobStatus.in_progress

    current = await ContractVersionRepository(db).get_current_version(contract.contract_id)
    assert current.version_number == 1
    assert current.payment_amount == Decimal("500")

    refreshed = await ProposalRepository(db).get_proposal_by_id(other.proposal_id)
    await db.refresh(refreshed)
    assert refreshed.status == ProposalStatus.rejected

    by_type = {}
    for n in service.notifications.created:
        by_type.setdefault(n.type, []).append(n.recipient_user_id)
    assert by_type[NotificationType.PROPOSAL_ACCEPTED.value] == [winner.user_id]
    assert by_type[NotificationType.PROPOSAL_REJECTED.value] == [loser.user_id]
    assert set(by_type[NotificationType.CONTRACT_CREATED.value]) == {client.user_id, winner.user_id}


async def test_only_job_owner_reviews_proposals(db):
    client = await make_user(db)
    freelancer = await make_user(db, UserRoleEnum.freelancer)
    job = await make_job(db, client)
    proposal = await make_proposal(db, job, freelancer)
    await db.commit()

    with pytest.raises(UnauthorizedAccessError):
        await ProposalService(db).update_proposal_status(
            proposal.proposal_id, ProposalStatus.accepted, None, freelancer
        )
    with pytest.raises(ArgumentError):
        await ProposalService(db).update_proposal_status(
            proposal.proposal_id, ProposalStatus.under_review, None, client
        )


async def test_withdraw_only_unreviewed_proposal(db):
    client = await make_user(db)
    freelancer = await make_user(db, UserRoleEnum.freelancer)
    job = await make_job(db, client)
    proposal = await make_proposal(db, job, freelancer)
    reviewed = await make_proposal(db, await make_job(db, client), freelancer, status=ProposalStatus.rejected)
    await db.commit()

    with pytest.raises(InvalidOperationError):
        await ProposalService(db).withdraw_proposal(reviewed.proposal_id, freelancer)

    await ProposalService(db).withdraw_proposal(proposal.proposal_id, freelancer)
    assert [p.proposal_id for p in await ProposalService(db).get_my_proposals(freelancer)] == [reviewed.proposal_id]


async def test_job_is_tagged_with_categories_and_skills(db):
    client = await make_user(db)
    web = await make_category(db, "Web Development")
    python = await make_skill(db, "Python")
    react = await make_skill(db, "React")
    await db.commit()

    job = await JobService(db).create_job(JobCreate(
        title="Dashboard",
        description="Admin dashboard",
        category_ids=[web.category_id],
        skill_ids=[python.skill_id, react.skill_id, python.skill_id],
    ), client)

    assert [c.name for c in job.categories] == ["Web Development"]
    assert [s.name for s in job.skills] == ["Python", "React"]

    async with AsyncSessionLocal() as fresh:
        reloaded = await JobRepository(fresh).get_job_by_id(job.job_id)
        assert {s.name for s in reloaded.skills} == {"Python", "React"}


async def test_unknown_or_inactive_tags_are_rejected(db):
    client = await make_user(db)
    retired = await make_category(db, "Flash", is_active=False)
    await db.commit()

    with pytest.raises(ArgumentError):
        await JobService(db).create_job(
            JobCreate(title="x", description="y", category_ids=[retired.category_id]), client
        )
    with pytest.raises(ArgumentError):
        await JobService(db).create_job(JobCreate(title="x", description="y", skill_ids=[999]), client)


async def test_update_job_replaces_tags_and_tells_bidders(db):
    client = await make_user(db, name="Carol Client")
    bidder = await make_user(db, UserRoleEnum.freelancer)
    rejected = await make_user(db, UserRoleEnum.freelancer)
    web = await make_category(db, "Web Development")
    design = await make_category(db, "Design")
    data = await make_category(db, "Data")
    python = await make_skill(db, "Python")
    await db.commit()

    service = JobService(db)
    job = await service.create_job(JobCreate(
        title="Landing page",
        description="One page",
        category_ids=[web.category_id, design.category_id],
        skill_ids=[python.skill_id],
    ), client)
    job.status = JobStatus.open
    await make_proposal(db, job, bidder)
    await make_proposal(db, job, rejected, status=ProposalStatus.rejected)
    await db.commit()

    service = JobService(db)
    updated = await service.update_job(job.job_id, JobUpdate(
        title="Landing page and blog",
        budget_max=Decimal("900"),
        category_ids=[design.category_id, data.category_id],
    ), client)

    assert updated.title == "Landing page and blog"
    assert updated.budget_max == Decimal("900")
    assert updated.description == "One page"
    assert {c.name for c in updated.categories} == {"Design", "Data"}
    # Skills were not sent, so they stay
    assert [s.name for s in updated.skills] == ["Python"]

    [notification] = service.notifications.created
    assert notification.recipient_user_id == bidder.user_id
    assert notification.type == NotificationType.JOB_UPDATED.value
    assert "Carol Client" in notification.message

    async with AsyncSessionLocal() as fresh:
        reloaded = await JobRepository(fresh).get_job_by_id(job.job_id)
        assert {c.name for c in reloaded.categories} == {"Design", "Data"}


async def test_only_owner_updates_editable_job(db):
    client = await make_user(db)
    other = await make_user(db)
    pending = await make_job(db, client, status=JobStatus.pending)
    started = await make_job(db, client, status=JobStatus.in_progress)
    await db.commit()

    with pytest.raises(UnauthorizedAccessError):
        await JobService(db).update_job(pending.job_id, JobUpdate(title="Mine now"), other)
    with pytest.raises(InvalidOperationError):
        await JobService(db).update_job(started.job_id, JobUpdate(title="Too late"), client)
    with pytest.raises(ArgumentError):
        # 300 to 800 on file, so a 200 ceiling is below the floor
        await JobService(db).update_job(pending.job_id, JobUpdate(budget_max=Decimal("200")), client)

    job = await JobService(db).update_job(pending.job_id, JobUpdate(title="Renamed"), client)
    assert job.title == "Renamed"
    assert job.status == JobStatus.pending


async def test_freelancer_sees_jobs_they_were_hired_for(db):
    contract, client, freelancer = await make_contract(db)
    elsewhere = await make_job(db, client, title="Another page")
    await make_proposal(db, elsewhere, freelancer)
    await db.commit()

    service = JobService(db)
    assert [j.job_id for j in await service.get_freelancer_jobs(freelancer)] == [contract.job_id]
    assert [j.job_id for j in await service.get_freelancer_jobs(freelancer, "In Progress")] == [contract.job_id]
    assert await service.get_freelancer_jobs(freelancer, "completed") == []

    with pytest.raises(ArgumentError):
        await service.get_freelancer_jobs(freelancer, "sleeping")
    with pytest.raises(UnauthorizedAccessError):
        await service.get_freelancer_jobs(client)
