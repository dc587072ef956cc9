# jobboard/schemas/job_schema.py
from pydantic import BaseModel, ConfigDict, Field, model_validator
from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from jobboard.models.job import JobStatus
from jobboard.schemas.category_schema import CategoryOut, SkillOut
from jobboard.schemas.user_schema import UserBrief


def _check_budget(budget_min: Optional[Decimal], budget_max: Optional[Decimal]) -> None:
    if budget_min is not None and budget_max is not None and budget_min > budget_max:
        raise ValueError('budget_min cannot be greater than budget_max')


class JobCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    description: str = Field(..., min_length=1)
    budget_min: Optional[Decimal] = Field(None, gt=0)
    budget_max: Optional[Decimal] = Field(None, gt=0)
    deadline: Optional[datetime] = None
    category_ids: List[int] = []
    skill_ids: List[int] = []

    @model_validator(mode='after')
    def check_budget_range(self):
        _check_budget(self.budget_min, self.budget_max)
        return self


# Every field is optional; tag lists replace the current tags when given
class JobUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = Field(None, min_length=1)
    budget_min: Optional[Decimal] = Field(None, gt=0)
    budget_max: Optional[Decimal] = Field(None, gt=0)
    deadline: Optional[datetime] = None
    category_ids: Optional[List[int]] = None
    skill_ids: Optional[List[int]] = None

    @model_validator(mode='after')
    def check_budget_range(self):
        _check_budget(self.budget_min, self.budget_max)
        return self


class JobOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    job_id: int
    client_id: str
    title: str
    description: str
    budget_min: Optional[Decimal] = None
    budget_max: Optional[Decimal] = None
    deadline: Optional[datetime] = None
    status: JobStatus
    admin_message: Optional[str] = None
    created_at: datetime
    updated_at: Optional[datetime] = None


class JobOutWithClient(JobOut):
    client: Optional[UserBrief] = None


class JobWithTags(JobOut):
    categories: List[CategoryOut] = []
    skills: List[SkillOut] = []


class JobDetails(JobWithTags):
    client: Optional[UserBrief] = None


# Admin approve / reject body
class JobReviewAction(BaseModel):
    message: Optional[str] = Field(None, max_length=1000)


class AdminJobDetails(JobOutWithClient):
    approved_by: Optional[str] = None
    rejected_by: Optional[str] = None
    proposal_count: int = 0
