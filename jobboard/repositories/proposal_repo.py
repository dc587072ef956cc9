# jobboard/repositories/proposal_repo.py

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from sqlalchemy.orm import joinedload, selectinload
from sqlalchemy import update
from typing import List, Optional

from jobboard.models.proposal import Proposal, ProposalStatus


class ProposalRepository:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_proposal_by_id(self, proposal_id: int) -> Optional[Proposal]:
        stmt = select(Proposal).where(Proposal.proposal_id == proposal_id)
        result = await self.db.execute(stmt)
        return result.scalars().first()

    async def get_proposal_by_id_with_job(self, proposal_id: int) -> Optional[Proposal]:
        """
        Proposal with its Job loaded (job owner checks need job.client_id)
        """
        stmt = select(Proposal).where(Proposal.proposal_id == proposal_id).options(
            joinedload(Proposal.job)
        )
        result = await self.db.execute(stmt)
        return result.scalars().first()

    async def check_existing_proposal(self, job_id: int, freelancer_id: str) -> Optional[Proposal]:
        """
        One proposal per freelancer per job
        """
        stmt = select(Proposal).where(
            Proposal.job_id == job_id,
            Proposal.freelancer_id == freelancer_id
        )
        result = await self.db.execute(stmt)
        return result.scalars().first()

    async def get_proposals_by_job_id(self, job_id: int) -> List[Proposal]:
        stmt = select(Proposal).where(Proposal.job_id == job_id).options(
            selectinload(Proposal.freelancer)
        ).order_by(Proposal.created_at.desc(), Proposal.proposal_id.desc())

        result = await self.db.execute(stmt)
        return result.scalars().all()

    async def get_proposals_by_freelancer_id(self, freelancer_id: str) -> List[Proposal]:
        stmt = (
            select(Proposal)
            .where(Proposal.freelancer_id == freelancer_id)
            .order_by(Proposal.created_at.desc(), Proposal.proposal_id.desc())
        )
        result = await self.db.execute(stmt)
        return result.scalars().all()

    async def get_accepted_proposal_for_job(self, job_id: int) -> Optional[Proposal]:
        stmt = select(Proposal).where(
            Proposal.job_id == job_id,
            Proposal.status == ProposalStatus.accepted
        )
        result = await self.db.execute(stmt)
        return result.scalars().first()

    async def create_proposal(self, proposal: Proposal) -> Proposal:
        self.db.add(proposal)
        await self.db.flush()
        return proposal

    async def update_proposal(self, proposal: Proposal) -> Proposal:
        await self.db.flush()
        return proposal

    async def reject_other_open_proposals(self, job_id: int, accepted_proposal_id: int) -> List[tuple[int, str]]:
        """
        Reject every still-open proposal on the job except the accepted one.
        Returns (proposal_id, freelancer_id) of the proposals that were rejected.
        """
        open_statuses = (ProposalStatus.submitted, ProposalStatus.under_review)
        rows_stmt = select(Proposal.proposal_id, Proposal.freelancer_id).where(
            Proposal.job_id == job_id,
            Proposal.proposal_id != accepted_proposal_id,
            Proposal.status.in_(open_statuses)
        )
        rows = [tuple(r) for r in (await self.db.execute(rows_stmt)).all()]
        if rows:
            await self.db.execute(
                update(Proposal)
                .where(Proposal.proposal_id.in_([r[0] for r in rows]))
                .values(status=ProposalStatus.rejected)
                .execution_options(synchronize_session="fetch")
            )
        return rows

    async def delete_proposal(self, proposal: Proposal) -> None:
        await self.db.delete(proposal)
        await self.db.flush()
