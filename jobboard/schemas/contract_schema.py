# jobboard/schemas/contract_schema.py

from pydantic import BaseModel, ConfigDict, Field
from typing import List, Optional
from datetime import datetime
from decimal import Decimal

from jobboard.models.contract import ContractStatus
from jobboard.models.contract_change_request import ChangeRequestStatus
from jobboard.schemas.job_schema import JobOut
from jobboard.schemas.user_schema import UserBrief


# --- Change proposal (input) ---
# Built by the router from multipart form fields; the service validates values
class ContractChangeProposal(BaseModel):
    title: str
    description: str
    payment_amount: Decimal
    payment_type: str = "Fixed"
    project_deadline: Optional[datetime] = None
    deliverables: Optional[str] = None
    terms_and_conditions: Optional[str] = None
    additional_notes: Optional[str] = None
    change_reason: str


class ProposeChangesResult(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    change_request_id: int = Field(..., serialization_alias="changeRequestId")


class ChangeRequestResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    is_approved: bool = Field(..., alias="isApproved")
    response_notes: Optional[str] = Field(None, alias="responseNotes", max_length=1000)


class ContractStatusUpdate(BaseModel):
    status: str  # validated by the service against ContractStatus
    notes: Optional[str] = Field(None, max_length=1000)


class ContractActionNotes(BaseModel):
    notes: Optional[str] = Field(None, max_length=1000)


class CompletionResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    is_approved: bool = Field(..., alias="isApproved")
    notes: Optional[str] = Field(None, max_length=1000)


# --- Output ---
class ContractAttachmentOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    attachment_id: int
    file_name: str
    file_url: str
    content_type: str
    file_size: int


class ContractVersionOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    version_id: int
    contract_id: int
    version_number: int
    title: str
    description: str
    payment_amount: Decimal
    payment_type: str
    project_deadline: Optional[datetime] = None
    deliverables: Optional[str] = None
    terms_and_conditions: Optional[str] = None
    additional_notes: Optional[str] = None
    created_by_user_id: str
    created_by_role: str
    is_current_version: bool
    change_reason: Optional[str] = None
    created_at: datetime
    attachments: List[ContractAttachmentOut] = []


class ChangeRequestOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    request_id: int
    contract_id: int
    from_version_id: int
    proposed_version_id: int
    requested_by_user_id: str
    requested_by_role: str
    change_description: str
    request_date: datetime
    status: ChangeRequestStatus
    response_by_user_id: Optional[str] = None
    response_by_role: Optional[str] = None
    response_date: Optional[datetime] = None
    response_notes: Optional[str] = None


class ChangeRequestWithVersions(ChangeRequestOut):
    from_version: Optional[ContractVersionOut] = None
    proposed_version: Optional[ContractVersionOut] = None


class ContractOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    contract_id: int
    proposal_id: int
    job_id: int
    client_id: str
    freelancer_id: str
    status: ContractStatus
    payment_amount: Decimal
    agreed_payment_type: Optional[str] = None
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    completion_requested_by_user_id: Optional[str] = None
    completion_requested_at: Optional[datetime] = None
    created_at: datetime
    updated_at: Optional[datetime] = None


class ContractDetails(ContractOut):
    job: Optional[JobOut] = None
    client: Optional[UserBrief] = None
    freelancer: Optional[UserBrief] = None
    current_version: Optional[ContractVersionOut] = None


class ContractHistory(BaseModel):
    contract: ContractOut
    current_version: Optional[ContractVersionOut] = None
    versions: List[ContractVersionOut]
    change_requests: List[ChangeRequestOut]


class RepairResult(BaseModel):
    repaired_contract_ids: List[int]
