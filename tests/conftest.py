import os
import tempfile
import uuid
from decimal import Decimal

# Settings are read at import time, so the environment comes first
_TMP_DIR = tempfile.mkdtemp(prefix="jobboard-tests-")
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{os.path.join(_TMP_DIR, 'test.db')}"
os.environ["JWT_SECRET_KEY"] = "test-secret-key"
os.environ["EMAIL_ENABLED"] = "false"
os.environ["UPLOAD_DIR"] = os.path.join(_TMP_DIR, "uploads")
os.environ["CREATE_TABLES_ON_STARTUP"] = "false"
os.environ["NOTIFICATION_DISPATCH_INTERVAL_SECONDS"] = "0"

import pytest

from jobboard.core.database import AsyncSessionLocal, Base, engine
from jobboard.models import (  # noqa: F401
    category, contract_change_request, notification, review, skill
)
from jobboard.models.category import Category
from jobboard.models.contract import Contract, ContractStatus
from jobboard.models.job import Job, JobStatus
from jobboard.models.proposal import Proposal, ProposalStatus
from jobboard.models.skill import Skill
from jobboard.models.user import User, UserRoleEnum
from jobboard.repositories.contract_version_repo import ContractVersionRepository
from jobboard.services.contract_service import build_initial_version


@pytest.fixture
async def db():
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)
    async with AsyncSessionLocal() as session:
        yield session
    await engine.dispose()


# --- Factories ---

async def make_user(db, role=UserRoleEnum.client, name=None, email=None):
    user_id = str(uuid.uuid4())
    user = User(
        user_id=user_id,
        email=email or f"{user_id[:8]}@example.com",
        password_hash="not-a-real-hash",
        full_name=name or f"{role.value} {user_id[:4]}",
        role=role,
        is_active=True,
    )
    db.add(user)
    await db.flush()
    return user


async def make_job(db, client, status=JobStatus.open, title="Build a landing page"):
    job = Job(
        client_id=client.user_id,
        title=title,
        description="Responsive landing page with a contact form",
        budget_min=Decimal("300"),
        budget_max=Decimal("800"),
        status=status,
        is_active=True,
        category_links=[],
        skill_links=[],
    )
    db.add(job)
    await db.flush()
    return job


async def make_category(db, name="Web Development", is_active=True):
    category = Category(name=name, description=f"{name} work", is_active=is_active)
    db.add(category)
    await db.flush()
    return category


async def make_skill(db, name="Python", is_active=True):
    skill = Skill(name=name, is_active=is_active)
    db.add(skill)
    await db.flush()
    return skill


async def make_proposal(db, job, freelancer, bid_amount=Decimal("500"), status=ProposalStatus.submitted):
    proposal = Proposal(
        job_id=job.job_id,
        freelancer_id=freelancer.user_id,
        cover_letter="I have built many of these.",
        bid_amount=bid_amount,
        status=status,
    )
    db.add(proposal)
    await db.flush()
    return proposal


async def make_contract(db, status=ContractStatus.active, bid_amount=Decimal("500")):
    """
    Client, freelancer, In Progress job, accepted proposal and a contract
    with version 1 as its current version. Returns (contract, client, freelancer).
    """
    client = await make_user(db, UserRoleEnum.client, name="Carol Client")
    freelancer = await make_user(db, UserRoleEnum.freelancer, name="Frank Freelancer")
    job = await make_job(db, client, status=JobStatus.in_progress)
    proposal = await make_proposal(db, job, freelancer, bid_amount, status=ProposalStatus.accepted)

    contract = Contract(
        proposal_id=proposal.proposal_id,
        job_id=job.job_id,
        client_id=client.user_id,
        freelancer_id=freelancer.user_id,
        payment_amount=bid_amount,
        agreed_payment_type="Fixed",
        status=status,
        is_active=True,
    )
    db.add(contract)
    await db.flush()
    await ContractVersionRepository(db).create_new_version(build_initial_version(contract, proposal, job))
    await db.commit()
    return contract, client, freelancer


class FakeHub:
    """Stands in for the WebSocket ConnectionManager"""

    def __init__(self, online=()):
        self.online = set(online)
        self.sent = []

    async def send_to_user(self, user_id, payload):
        if user_id not in self.online:
            return 0
        self.sent.append((user_id, payload))
        return 1
