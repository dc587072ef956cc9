# jobboard/services/proposal_service.py

from fastapi import UploadFile
from sqlalchemy.ext.asyncio import AsyncSession
from decimal import Decimal
from typing import List, Optional, Tuple
import logging

from jobboard.core.config import settings
from jobboard.core.exceptions import (
    ArgumentError, InvalidOperationError, NotFoundError, UnauthorizedAccessError
)
from jobboard.models.contract import Contract, ContractStatus
from jobboard.models.job import JobStatus
from jobboard.models.proposal import Proposal, ProposalStatus
from jobboard.models.user import User, UserRoleEnum
from jobboard.repositories.contract_repo import ContractRepository
from jobboard.repositories.contract_version_repo import ContractVersionRepository
from jobboard.repositories.job_repo import JobRepository
from jobboard.repositories.proposal_repo import ProposalRepository
from jobboard.services.contract_service import build_initial_version
from jobboard.services.notification_service import NotificationService
from jobboard.utils.notification_templates import (
    ContractCreatedPayload, NotificationType, ProposalPayload
)
from jobboard.utils.timeutils import utcnow
from jobboard.utils.uploads import delete_upload, save_upload

logger = logging.getLogger(__name__)

OPEN_PROPOSAL_STATUSES = (ProposalStatus.submitted, ProposalStatus.under_review)


class ProposalService:
    def __init__(self, db: AsyncSession):
        self.db = db
        self.proposal_repo = ProposalRepository(db)
        self.job_repo = JobRepository(db)
        self.contract_repo = ContractRepository(db)
        self.version_repo = ContractVersionRepository(db)
        self.notifications = NotificationService(db)

    async def _save_upload_file(self, file: UploadFile) -> str:
        # Proposals accept a single PDF
        if file.content_type != "application/pdf":
            raise ArgumentError("Proposal attachments must be PDF files")
        content = await file.read()
        if len(content) > settings.MAX_ATTACHMENT_BYTES:
            raise ArgumentError(f"Attachment is larger than {settings.MAX_ATTACHMENT_BYTES} bytes")
        return await save_upload("proposals", ".pdf", content)

    async def submit_proposal(
        self,
        job_id: int,
        freelancer: User,
        cover_letter: str,
        bid_amount: Decimal,
        estimated_timeline_days: Optional[int] = None,
        attachment: Optional[UploadFile] = None,
    ) -> Proposal:
        if freelancer.role != UserRoleEnum.freelancer:
            raise UnauthorizedAccessError("Only freelancers can submit proposals")
        if bid_amount is None or bid_amount <= 0:
            raise ArgumentError("Bid amount must be greater than zero")
        if not cover_letter or not cover_letter.strip():
            raise ArgumentError("Cover letter is required")

        job = await self.job_repo.get_job_by_id(job_id)
        if not job:
            raise NotFoundError("Job", job_id)
        if job.status != JobStatus.open:
            raise InvalidOperationError("This job is not accepting proposals")
        if await self.proposal_repo.check_existing_proposal(job_id, freelancer.user_id):
            raise InvalidOperationError("You have already submitted a proposal for this job")

        attachment_url = None
        if attachment is not None:
            attachment_url = await self._save_upload_file(attachment)

        proposal = Proposal(
            job_id=job_id,
            freelancer_id=freelancer.user_id,
            cover_letter=cover_letter.strip(),
            bid_amount=bid_amount,
            estimated_timeline_days=estimated_timeline_days,
            attachment_url=attachment_url,
            status=ProposalStatus.submitted,
        )
        await self.proposal_repo.create_proposal(proposal)

        await self.notifications.create_interaction_notification(
            recipient_user_id=job.client_id,
            sender_user_id=freelancer.user_id,
            notification_type=NotificationType.PROPOSAL_RECEIVED,
            payload=ProposalPayload(
                job_title=job.title, freelancer_name=freelancer.full_name, bid_amount=bid_amount
            ),
            job_id=job_id,
            proposal_id=proposal.proposal_id,
            action_url=f"/jobs/{job_id}/proposals",
        )

        await self.db.commit()
        logger.info(f"Proposal {proposal.proposal_id} submitted on job {job_id} by {freelancer.user_id}")
        return proposal

    async def get_my_proposals(self, freelancer: User) -> List[Proposal]:
        return await self.proposal_repo.get_proposals_by_freelancer_id(freelancer.user_id)

    async def get_job_proposals(self, job_id: int, client: User) -> List[Proposal]:
        job = await self.job_repo.get_job_by_id(job_id)
        if not job:
            raise NotFoundError("Job", job_id)
        if job.client_id != client.user_id:
            raise UnauthorizedAccessError("Only the job owner can view its proposals")
        return await self.proposal_repo.get_proposals_by_job_id(job_id)

    async def withdraw_proposal(self, proposal_id: int, freelancer: User) -> None:
        proposal = await self.proposal_repo.get_proposal_by_id(proposal_id)
        if not proposal:
            raise NotFoundError("Proposal", proposal_id)
        if proposal.freelancer_id != freelancer.user_id:
            raise UnauthorizedAccessError("You can only withdraw your own proposals")
        if proposal.status != ProposalStatus.submitted:
            raise InvalidOperationError("This proposal has already been reviewed and cannot be withdrawn")

        if proposal.attachment_url:
            delete_upload(proposal.attachment_url)
        await self.proposal_repo.delete_proposal(proposal)
        await self.db.commit()

    async def update_proposal_status(
        self,
        proposal_id: int,
        new_status: ProposalStatus,
        client_feedback: Optional[str],
        client: User,
    ) -> Tuple[Proposal, Optional[Contract]]:
        """
        Job owner accepts or rejects a proposal. Acceptance closes the other
        proposals, puts the job In Progress and creates the contract with its
        first version.
        """
        if new_status not in (ProposalStatus.accepted, ProposalStatus.rejected):
            raise ArgumentError("A proposal can only be Accepted or Rejected")

        proposal = await self.proposal_repo.get_proposal_by_id_with_job(proposal_id)
        if not proposal:
            raise NotFoundError("Proposal", proposal_id)
        job = proposal.job
        if job.client_id != client.user_id:
            raise UnauthorizedAccessError("Only the job owner can review its proposals")
        if proposal.status not in OPEN_PROPOSAL_STATUSES:
            raise InvalidOperationError(f"This proposal is already {proposal.status.value}")

        if new_status == ProposalStatus.accepted:
            if job.status != JobStatus.open:
                raise InvalidOperationError("Proposals can only be accepted while the job is Open")
            if await self.contract_repo.check_contract_exists_by_proposal(proposal_id):
                raise InvalidOperationError("A contract already exists for this proposal")

        proposal.status = new_status
        proposal.client_feedback = client_feedback
        proposal.reviewed_at = utcnow()

        payload = ProposalPayload(job_title=job.title, client_feedback=client_feedback)
        if new_status == ProposalStatus.rejected:
            await self.proposal_repo.update_proposal(proposal)
            await self.notifications.create_interaction_notification(
                recipient_user_id=proposal.freelancer_id,
                sender_user_id=client.user_id,
                notification_type=NotificationType.PROPOSAL_REJECTED,
                payload=payload,
                job_id=job.job_id,
                proposal_id=proposal.proposal_id,
                action_url="/proposals/my",
            )
            await self.db.commit()
            logger.info(f"Proposal {proposal_id} rejected by client {client.user_id}")
            return proposal, None

        await self.proposal_repo.update_proposal(proposal)
        rejected = await self.proposal_repo.reject_other_open_proposals(job.job_id, proposal.proposal_id)
        job.status = JobStatus.in_progress
        await self.job_repo.update_job(job)

        contract = Contract(
            proposal_id=proposal.proposal_id,
            job_id=job.job_id,
            client_id=job.client_id,
            freelancer_id=proposal.freelancer_id,
            payment_amount=proposal.bid_amount,
            agreed_payment_type="Fixed",
            status=ContractStatus.pending,
            is_active=True,
        )
        await self.contract_repo.create_contract(contract)
        await self.version_repo.create_new_version(build_initial_version(contract, proposal, job))

        await self.notifications.create_interaction_notification(
            recipient_user_id=proposal.freelancer_id,
            sender_user_id=client.user_id,
            notification_type=NotificationType.PROPOSAL_ACCEPTED,
            payload=payload,
            job_id=job.job_id,
            proposal_id=proposal.proposal_id,
            contract_id=contract.contract_id,
            action_url=f"/contracts/{contract.contract_id}",
        )
        for other_proposal_id, other_freelancer_id in rejected:
            await self.notifications.create_interaction_notification(
                recipient_user_id=other_freelancer_id,
                sender_user_id=client.user_id,
                notification_type=NotificationType.PROPOSAL_REJECTED,
                payload=ProposalPayload(job_title=job.title),
                job_id=job.job_id,
                proposal_id=other_proposal_id,
                action_url="/proposals/my",
            )
        created_payload = ContractCreatedPayload(
            contract_id=contract.contract_id, job_title=job.title, payment_amount=contract.payment_amount
        )
        for recipient_id in (contract.client_id, contract.freelancer_id):
            await self.notifications.create_interaction_notification(
                recipient_user_id=recipient_id,
                sender_user_id=client.user_id,
                notification_type=NotificationType.CONTRACT_CREATED,
                payload=created_payload,
                job_id=job.job_id,
                proposal_id=proposal.proposal_id,
                contract_id=contract.contract_id,
                action_url=f"/contracts/{contract.contract_id}",
            )

        await self.db.commit()
        logger.info(
            f"Proposal {proposal_id} accepted; contract {contract.contract_id} created, "
            f"{len(rejected)} other proposals rejected"
        )
        return proposal, contract
