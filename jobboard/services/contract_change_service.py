# jobboard/services/contract_change_service.py
"""
Change requests on contract terms.

A party proposes new terms; they are stored as a new, non-current
ContractVersion plus a Pending ContractChangeRequest pointing from the current
version to the proposed one. The other party approves (the proposed version
becomes current) or rejects (the proposed version is retired). Resolved
requests are final.
"""
from dataclasses import dataclass
from decimal import Decimal
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Dict, List, Optional, Sequence
import logging

from jobboard.core.config import settings
from jobboard.core.exceptions import (
    ArgumentError, InvalidOperationError, NotFoundError, UnauthorizedAccessError
)
from jobboard.models.contract import Contract, ContractStatus
from jobboard.models.contract_change_request import ContractChangeRequest, ChangeRequestStatus
from jobboard.models.contract_version import ContractAttachment, ContractVersion, PAYMENT_TYPES
from jobboard.models.user import User
from jobboard.repositories.contract_change_request_repo import ContractChangeRequestRepository
from jobboard.repositories.contract_repo import ContractRepository
from jobboard.repositories.contract_version_repo import ContractVersionRepository
from jobboard.repositories.proposal_repo import ProposalRepository
from jobboard.schemas.contract_schema import ContractChangeProposal
from jobboard.services.contract_service import build_initial_version
from jobboard.services.notification_service import NotificationService
from jobboard.utils.notification_templates import (
    ChangeRequestPayload, ChangeResponsePayload, NotificationType
)
from jobboard.utils.timeutils import utcnow
from jobboard.utils.uploads import delete_upload, save_upload

logger = logging.getLogger(__name__)

CLOSED_CONTRACT_STATUSES = (ContractStatus.completed, ContractStatus.cancelled)

FIELD_MAX_LENGTHS = {
    "title": 200,
    "description": 2000,
    "change_reason": 500,
    "deliverables": 2000,
    "terms_and_conditions": 5000,
    "additional_notes": 1000,
}

ALLOWED_ATTACHMENT_TYPES = {
    "application/pdf": ".pdf",
    "application/msword": ".doc",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document": ".docx",
    "image/jpeg": ".jpg",
    "image/png": ".png",
    "image/gif": ".gif",
}


@dataclass
class AttachmentUpload:
    """An uploaded file already read into memory"""
    file_name: str
    content_type: str
    content: bytes


def validate_change_proposal(data: ContractChangeProposal, attachments: Sequence[AttachmentUpload]) -> None:
    """Raise ArgumentError for the first invalid field."""
    if data.payment_amount is None or Decimal(data.payment_amount) <= 0:
        raise ArgumentError("Payment amount must be greater than zero")

    for field in ("title", "description", "change_reason"):
        value = getattr(data, field)
        if value is None or not value.strip():
            raise ArgumentError(f"{field} is required")

    for field, limit in FIELD_MAX_LENGTHS.items():
        value = getattr(data, field)
        if value is not None and len(value) > limit:
            raise ArgumentError(f"{field} cannot exceed {limit} characters")

    if data.payment_type not in PAYMENT_TYPES:
        raise ArgumentError(f"Payment type must be one of: {', '.join(PAYMENT_TYPES)}")

    if len(attachments) > settings.MAX_ATTACHMENTS_PER_REQUEST:
        raise ArgumentError(f"At most {settings.MAX_ATTACHMENTS_PER_REQUEST} attachments are allowed")

    for upload in attachments:
        if upload.content_type not in ALLOWED_ATTACHMENT_TYPES:
            raise ArgumentError(f'File type "{upload.content_type}" is not allowed ({upload.file_name})')
        if len(upload.content) > settings.MAX_ATTACHMENT_BYTES:
            raise ArgumentError(f"{upload.file_name} is larger than {settings.MAX_ATTACHMENT_BYTES} bytes")


class ContractChangeService:
    def __init__(self, db: AsyncSession):
        self.db = db
        self.contract_repo = ContractRepository(db)
        self.version_repo = ContractVersionRepository(db)
        self.change_repo = ContractChangeRequestRepository(db)
        self.proposal_repo = ProposalRepository(db)
        self.notifications = NotificationService(db)

    async def _get_contract_for_party(self, contract_id: int, user: User) -> Contract:
        contract = await self.contract_repo.get_contract_by_id(contract_id, with_details=True)
        if not contract:
            raise NotFoundError("Contract", contract_id)
        if contract.party_role(user.user_id) is None:
            raise UnauthorizedAccessError("You are not a party to this contract")
        return contract

    async def _ensure_current_version(self, contract: Contract) -> ContractVersion:
        """
        Current version of the contract. Older contracts may have none: the
        latest established version is promoted, or version 1 is built from
        the accepted proposal.
        """
        current = await self.version_repo.get_current_version(contract.contract_id)
        if current is not None:
            return current

        history = await self.version_repo.get_version_history(contract.contract_id)
        if history:
            return await self.version_repo.set_current_version(contract.contract_id, history[0].version_id)

        proposal = await self.proposal_repo.get_proposal_by_id(contract.proposal_id)
        if proposal is None:
            raise NotFoundError("Proposal", contract.proposal_id)
        number = await self.version_repo.get_next_version_number(contract.contract_id)
        initial = build_initial_version(contract, proposal, contract.job, version_number=number)
        logger.warning(f"Contract {contract.contract_id} had no versions, created version {number}")
        return await self.version_repo.create_new_version(initial)

    # --- Commands ---

    async def propose_changes(
        self,
        contract_id: int,
        data: ContractChangeProposal,
        attachments: Sequence[AttachmentUpload],
        user: User,
    ) -> int:
        contract = await self._get_contract_for_party(contract_id, user)
        role = contract.party_role(user.user_id)

        if contract.status in CLOSED_CONTRACT_STATUSES:
            raise InvalidOperationError(f"A {contract.status.value} contract cannot be changed")
        if await self.change_repo.has_pending_request(contract_id):
            raise InvalidOperationError("This contract already has a change request waiting for a response")

        validate_change_proposal(data, attachments)

        current = await self._ensure_current_version(contract)
        next_number = await self.version_repo.get_next_version_number(contract_id)

        stored_attachments = []
        try:
            for upload in attachments:
                url = await save_upload(
                    f"contracts/{contract_id}", ALLOWED_ATTACHMENT_TYPES[upload.content_type], upload.content
                )
                stored_attachments.append(ContractAttachment(
                    file_name=upload.file_name,
                    file_url=url,
                    content_type=upload.content_type,
                    file_size=len(upload.content),
                    uploaded_by_user_id=user.user_id,
                ))

            proposed = ContractVersion(
                contract_id=contract_id,
                version_number=next_number,
                title=data.title.strip(),
                description=data.description.strip(),
                payment_amount=data.payment_amount,
                payment_type=data.payment_type,
                project_deadline=data.project_deadline,
                deliverables=data.deliverables,
                terms_and_conditions=data.terms_and_conditions,
                additional_notes=data.additional_notes,
                created_by_user_id=user.user_id,
                created_by_role=role,
                change_reason=data.change_reason.strip(),
                is_current_version=False,
                is_active=True,
                attachments=stored_attachments,
            )
            await self.version_repo.create_version(proposed)

            request = ContractChangeRequest(
                contract_id=contract_id,
                from_version_id=current.version_id,
                proposed_version_id=proposed.version_id,
                requested_by_user_id=user.user_id,
                requested_by_role=role,
                change_description=data.change_reason.strip(),
                request_date=utcnow(),
                status=ChangeRequestStatus.pending,
            )
            await self.change_repo.create_request(request)

            await self.notifications.create_interaction_notification(
                recipient_user_id=contract.counterparty_id(user.user_id),
                sender_user_id=user.user_id,
                notification_type=NotificationType.CONTRACT_CHANGE_REQUESTED,
                payload=ChangeRequestPayload(
                    contract_id=contract_id,
                    request_id=request.request_id,
                    job_title=contract.job.title if contract.job else "",
                    requester_name=user.full_name,
                    change_reason=request.change_description,
                    proposed_version_number=proposed.version_number,
                    proposed_payment_amount=proposed.payment_amount,
                ),
                job_id=contract.job_id,
                contract_id=contract_id,
                action_url=f"/contracts/{contract_id}/change-requests/{request.request_id}",
            )

            await self.db.commit()
        except Exception:
            # Files are written before the commit; drop them if nothing refers to them
            for attachment in stored_attachments:
                delete_upload(attachment.file_url)
            raise

        logger.info(
            f"Contract {contract_id}: change request {request.request_id} proposes version "
            f"{proposed.version_number} (from version {current.version_number}) by user {user.user_id}"
        )
        return request.request_id

    async def respond_to_change(
        self, request_id: int, is_approved: bool, response_notes: Optional[str], user: User
    ) -> ContractChangeRequest:
        request = await self.change_repo.get_request_by_id(request_id)
        if not request:
            raise NotFoundError("ContractChangeRequest", request_id)

        contract = await self.contract_repo.get_contract_by_id(request.contract_id, with_details=True)
        if not contract:
            raise NotFoundError("Contract", request.contract_id)

        role = contract.party_role(user.user_id)
        if role is None:
            raise UnauthorizedAccessError("You are not a party to this contract")
        if request.requested_by_user_id == user.user_id:
            raise UnauthorizedAccessError("You cannot respond to your own change request")
        if request.status != ChangeRequestStatus.pending:
            raise InvalidOperationError(f"This change request was already {request.status.value.lower()}")

        if is_approved:
            if contract.status in CLOSED_CONTRACT_STATUSES:
                raise InvalidOperationError(f"A {contract.status.value} contract cannot be changed")
            promoted = await self.version_repo.set_current_version(contract.contract_id, request.proposed_version_id)
            contract.payment_amount = promoted.payment_amount
            contract.agreed_payment_type = promoted.payment_type
            await self.contract_repo.update_contract(contract)
            request.status = ChangeRequestStatus.approved
        else:
            request.status = ChangeRequestStatus.rejected
            await self.version_repo.deactivate_version(request.proposed_version)

        request.response_by_user_id = user.user_id
        request.response_by_role = role
        request.response_date = utcnow()
        request.response_notes = response_notes
        await self.change_repo.update_request(request)

        notification_type = (
            NotificationType.CONTRACT_CHANGE_APPROVED if is_approved
            else NotificationType.CONTRACT_CHANGE_REJECTED
        )
        await self.notifications.create_interaction_notification(
            recipient_user_id=request.requested_by_user_id,
            sender_user_id=user.user_id,
            notification_type=notification_type,
            payload=ChangeResponsePayload(
                contract_id=contract.contract_id,
                request_id=request.request_id,
                job_title=contract.job.title if contract.job else "",
                responder_name=user.full_name,
                proposed_version_number=request.proposed_version.version_number,
                response_notes=response_notes,
            ),
            job_id=contract.job_id,
            contract_id=contract.contract_id,
            action_url=f"/contracts/{contract.contract_id}",
        )

        await self.db.commit()
        logger.info(
            f"Contract {contract.contract_id}: change request {request_id} "
            f"{request.status.value.lower()} by user {user.user_id}"
        )
        return request

    # --- Queries ---

    async def get_pending_requests(self, contract_id: int, user: User) -> List[ContractChangeRequest]:
        await self._get_contract_for_party(contract_id, user)
        return await self.change_repo.get_pending_requests(contract_id)

    async def get_request_history(self, contract_id: int, user: User) -> List[ContractChangeRequest]:
        await self._get_contract_for_party(contract_id, user)
        return await self.change_repo.get_request_history(contract_id)

    async def get_my_pending_requests(self, user: User) -> List[ContractChangeRequest]:
        return await self.change_repo.get_pending_requests_for_user(user.user_id)

    async def get_contract_history(self, contract_id: int, user: User) -> Dict:
        contract = await self._get_contract_for_party(contract_id, user)
        return {
            "contract": contract,
            "current_version": await self.version_repo.get_current_version(contract_id),
            "versions": await self.version_repo.get_version_history(contract_id),
            "change_requests": await self.change_repo.get_request_history(contract_id),
        }
