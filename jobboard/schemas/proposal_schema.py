# jobboard/schemas/proposal_schema.py
from pydantic import BaseModel, ConfigDict, Field
from datetime import datetime
from decimal import Decimal
from typing import Optional

from jobboard.models.proposal import ProposalStatus
from jobboard.schemas.user_schema import UserBrief


# --- Read ---
class ProposalOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    proposal_id: int
    job_id: int
    freelancer_id: str
    cover_letter: str
    bid_amount: Decimal
    estimated_timeline_days: Optional[int] = None
    attachment_url: Optional[str] = None
    status: ProposalStatus
    client_feedback: Optional[str] = None
    reviewed_at: Optional[datetime] = None
    created_at: datetime
    updated_at: Optional[datetime] = None


# Shown to the job owner when listing proposals
class ProposalOutWithFreelancer(ProposalOut):
    freelancer: Optional[UserBrief] = None


class ProposalStatusUpdate(BaseModel):
    # Only Accepted / Rejected are accepted by the service
    status: ProposalStatus
    client_feedback: Optional[str] = Field(None, max_length=1000)


class ProposalStatusResult(BaseModel):
    proposal: ProposalOut
    contract_id: Optional[int] = None
