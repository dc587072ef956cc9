# jobboard/services/contract_service.py

from sqlalchemy.ext.asyncio import AsyncSession
from typing import Dict, FrozenSet, List, Optional, Tuple
import logging

from jobboard.core.exceptions import (
    ArgumentError, InvalidOperationError, NotFoundError, UnauthorizedAccessError
)
from jobboard.models.contract import Contract, ContractStatus
from jobboard.models.contract_version import ContractVersion
from jobboard.models.job import Job, JobStatus
from jobboard.models.proposal import Proposal
from jobboard.models.user import User
from jobboard.repositories.contract_repo import ContractRepository
from jobboard.repositories.contract_version_repo import ContractVersionRepository
from jobboard.repositories.job_repo import JobRepository
from jobboard.services.notification_service import NotificationService
from jobboard.utils.notification_templates import (
    CompletionPayload, ContractStatusPayload, NotificationType, ReviewRequestPayload
)
from jobboard.utils.timeutils import utcnow

logger = logging.getLogger(__name__)


# Pending -> Active -> Completed, with Cancelled reachable from Pending and Active
ALLOWED_TRANSITIONS: Dict[ContractStatus, FrozenSet[ContractStatus]] = {
    ContractStatus.pending: frozenset({ContractStatus.active, ContractStatus.cancelled}),
    ContractStatus.active: frozenset({ContractStatus.completed, ContractStatus.cancelled}),
    ContractStatus.completed: frozenset(),
    ContractStatus.cancelled: frozenset(),
}

# Job status that follows each contract status
JOB_STATUS_FOR_CONTRACT = {
    ContractStatus.active: JobStatus.in_progress,
    ContractStatus.completed: JobStatus.completed,
    ContractStatus.cancelled: JobStatus.cancelled,
}


def parse_contract_status(value) -> ContractStatus:
    if isinstance(value, ContractStatus):
        return value
    for candidate in ContractStatus:
        if str(value).strip().lower() in (candidate.value.lower(), candidate.name):
            return candidate
    raise ArgumentError(f'"{value}" is not a valid contract status')


def check_transition(current: ContractStatus, target: ContractStatus) -> None:
    """Raise InvalidOperationError unless current -> target is an allowed edge."""
    if current == target:
        raise InvalidOperationError(f"Contract is already {current.value}")
    if not ALLOWED_TRANSITIONS[current]:
        raise InvalidOperationError(
            f"A {current.value} contract is closed and cannot move to {target.value}"
        )
    if target not in ALLOWED_TRANSITIONS[current]:
        allowed = ", ".join(sorted(s.value for s in ALLOWED_TRANSITIONS[current]))
        raise InvalidOperationError(
            f"Cannot move a contract from {current.value} to {target.value}; allowed: {allowed}"
        )


def build_initial_version(
    contract: Contract, proposal: Proposal, job: Job, version_number: int = 1
) -> ContractVersion:
    """
    Version 1 of a contract, taken from the accepted proposal and its job
    """
    return ContractVersion(
        contract_id=contract.contract_id,
        version_number=version_number,
        title=job.title[:200],
        description=job.description[:2000],
        payment_amount=proposal.bid_amount,
        payment_type=contract.agreed_payment_type or "Fixed",
        project_deadline=job.deadline,
        deliverables=None,
        terms_and_conditions=None,
        additional_notes=None,
        created_by_user_id="system",
        created_by_role="System",
        change_reason="Initial contract version",
        is_current_version=False,
        is_active=True,
        attachments=[],
    )


class ContractService:
    def __init__(self, db: AsyncSession):
        self.db = db
        self.contract_repo = ContractRepository(db)
        self.version_repo = ContractVersionRepository(db)
        self.job_repo = JobRepository(db)
        self.notifications = NotificationService(db)

    async def _get_contract_for_party(self, contract_id: int, user: User) -> Contract:
        contract = await self.contract_repo.get_contract_by_id(contract_id, with_details=True)
        if not contract:
            raise NotFoundError("Contract", contract_id)
        if contract.party_role(user.user_id) is None:
            raise UnauthorizedAccessError("You are not a party to this contract")
        return contract

    # --- Queries ---

    async def get_user_contracts(self, user: User, status: Optional[str] = None) -> List[Contract]:
        status_filter = parse_contract_status(status) if status else None
        return await self.contract_repo.get_contracts_by_user(user.user_id, status_filter)

    async def get_contract_details(
        self, contract_id: int, user: User
    ) -> Tuple[Contract, Optional[ContractVersion]]:
        contract = await self._get_contract_for_party(contract_id, user)
        current = await self.version_repo.get_current_version(contract_id)
        return contract, current

    # --- Status machine ---

    async def update_contract_status(
        self, contract_id: int, status: str, notes: Optional[str], user: User
    ) -> Contract:
        target = parse_contract_status(status)
        contract = await self._get_contract_for_party(contract_id, user)
        check_transition(contract.status, target)

        await self._apply_transition(contract, target, notes, user)
        await self.db.commit()
        return contract

    async def start_contract(self, contract_id: int, notes: Optional[str], user: User) -> Contract:
        return await self.update_contract_status(contract_id, ContractStatus.active, notes, user)

    async def complete_contract(self, contract_id: int, notes: Optional[str], user: User) -> Contract:
        return await self.update_contract_status(contract_id, ContractStatus.completed, notes, user)

    async def cancel_contract(self, contract_id: int, notes: Optional[str], user: User) -> Contract:
        return await self.update_contract_status(contract_id, ContractStatus.cancelled, notes, user)

    async def _apply_transition(
        self, contract: Contract, target: ContractStatus, notes: Optional[str], actor: User
    ) -> None:
        old_status = contract.status
        now = utcnow()

        contract.status = target
        if target == ContractStatus.active:
            contract.start_time = now
        else:
            # Completed / Cancelled
            contract.end_time = now
            contract.completion_requested_by_user_id = None
            contract.completion_requested_at = None

        job = contract.job
        if job is not None:
            job.status = JOB_STATUS_FOR_CONTRACT[target]
        await self.contract_repo.update_contract(contract)

        logger.info(
            f"Contract {contract.contract_id}: {old_status.value} -> {target.value} by user {actor.user_id}"
        )

        job_title = job.title if job is not None else ""
        payload = ContractStatusPayload(
            contract_id=contract.contract_id,
            job_title=job_title,
            old_status=old_status.value,
            new_status=target.value,
            notes=notes,
        )
        for recipient_id in (contract.client_id, contract.freelancer_id):
            await self.notifications.create_interaction_notification(
                recipient_user_id=recipient_id,
                sender_user_id=actor.user_id,
                notification_type=NotificationType.CONTRACT_STATUS_CHANGED,
                payload=payload,
                job_id=contract.job_id,
                contract_id=contract.contract_id,
                action_url=f"/contracts/{contract.contract_id}",
            )

        if target == ContractStatus.completed:
            # Completed jobs can be reviewed by both sides
            parties = (
                (contract.client_id, contract.freelancer),
                (contract.freelancer_id, contract.client),
            )
            for recipient_id, reviewee in parties:
                await self.notifications.create_interaction_notification(
                    recipient_user_id=recipient_id,
                    sender_user_id=None,
                    notification_type=NotificationType.REVIEW_REQUESTED,
                    payload=ReviewRequestPayload(
                        job_id=contract.job_id,
                        job_title=job_title,
                        reviewee_name=reviewee.full_name if reviewee else "",
                    ),
                    job_id=contract.job_id,
                    contract_id=contract.contract_id,
                    action_url=f"/jobs/{contract.job_id}/review",
                )

    # --- Completion handshake ---

    def _party_name(self, contract: Contract, user_id: str) -> str:
        party = contract.client if user_id == contract.client_id else contract.freelancer
        return party.full_name if party else ""

    async def request_completion(self, contract_id: int, notes: Optional[str], user: User) -> Contract:
        contract = await self._get_contract_for_party(contract_id, user)
        if contract.status != ContractStatus.active:
            raise InvalidOperationError("Only an Active contract can be submitted for completion")
        if contract.completion_requested_by_user_id:
            raise InvalidOperationError("A completion request is already waiting for a response")

        contract.completion_requested_by_user_id = user.user_id
        contract.completion_requested_at = utcnow()
        await self.contract_repo.update_contract(contract)

        counterparty_id = contract.counterparty_id(user.user_id)
        job_title = contract.job.title if contract.job else ""
        await self.notifications.create_interaction_notification(
            recipient_user_id=counterparty_id,
            sender_user_id=user.user_id,
            notification_type=NotificationType.CONTRACT_COMPLETION_REQUESTED,
            payload=CompletionPayload(contract.contract_id, job_title, user.full_name, notes),
            job_id=contract.job_id,
            contract_id=contract.contract_id,
            action_url=f"/contracts/{contract.contract_id}",
        )
        # In-app receipt for the requester
        await self.notifications.create_interaction_notification(
            recipient_user_id=user.user_id,
            sender_user_id=None,
            notification_type=NotificationType.COMPLETION_REQUEST_SENT,
            payload=CompletionPayload(
                contract.contract_id, job_title, self._party_name(contract, counterparty_id), notes
            ),
            contract_id=contract.contract_id,
            action_url=f"/contracts/{contract.contract_id}",
        )
        await self.db.commit()
        logger.info(f"Contract {contract_id}: completion requested by user {user.user_id}")
        return contract

    async def respond_to_completion(
        self, contract_id: int, is_approved: bool, notes: Optional[str], user: User
    ) -> Contract:
        contract = await self._get_contract_for_party(contract_id, user)
        requester_id = contract.completion_requested_by_user_id
        if not requester_id:
            raise InvalidOperationError("There is no completion request to respond to")
        if requester_id == user.user_id:
            raise UnauthorizedAccessError("You cannot respond to your own completion request")

        if is_approved:
            check_transition(contract.status, ContractStatus.completed)
            await self._apply_transition(contract, ContractStatus.completed, notes, user)
        else:
            contract.completion_requested_by_user_id = None
            contract.completion_requested_at = None
            await self.contract_repo.update_contract(contract)
            await self.notifications.create_interaction_notification(
                recipient_user_id=requester_id,
                sender_user_id=user.user_id,
                notification_type=NotificationType.CONTRACT_COMPLETION_REJECTED,
                payload=CompletionPayload(
                    contract.contract_id, contract.job.title if contract.job else "", user.full_name, notes
                ),
                job_id=contract.job_id,
                contract_id=contract.contract_id,
                action_url=f"/contracts/{contract.contract_id}",
            )
        await self.db.commit()
        logger.info(
            f"Contract {contract_id}: completion {'approved' if is_approved else 'declined'} by user {user.user_id}"
        )
        return contract

    async def cancel_completion_request(self, contract_id: int, notes: Optional[str], user: User) -> Contract:
        contract = await self._get_contract_for_party(contract_id, user)
        if not contract.completion_requested_by_user_id:
            raise InvalidOperationError("There is no completion request to cancel")
        if contract.completion_requested_by_user_id != user.user_id:
            raise UnauthorizedAccessError("Only the requester can withdraw a completion request")

        contract.completion_requested_by_user_id = None
        contract.completion_requested_at = None
        await self.contract_repo.update_contract(contract)

        await self.notifications.create_interaction_notification(
            recipient_user_id=contract.counterparty_id(user.user_id),
            sender_user_id=user.user_id,
            notification_type=NotificationType.CONTRACT_COMPLETION_CANCELLED,
            payload=CompletionPayload(
                contract.contract_id, contract.job.title if contract.job else "", user.full_name, notes
            ),
            contract_id=contract.contract_id,
            action_url=f"/contracts/{contract.contract_id}",
        )
        await self.db.commit()
        return contract
