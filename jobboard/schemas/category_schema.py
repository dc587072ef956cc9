# jobboard/schemas/category_schema.py
# Categories and skills used to tag jobs
from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import Optional


class CategoryCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    description: str = Field(..., min_length=1, max_length=1000)

    @field_validator('name', 'description')
    @classmethod
    def not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError('must not be blank')
        return v.strip()


class CategoryUpdate(CategoryCreate):
    pass


class CategoryOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    category_id: int
    name: str
    description: str
    is_active: bool


class CategoryWithJobCount(CategoryOut):
    job_count: int = 0


class SkillCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)

    @field_validator('name')
    @classmethod
    def not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError('Skill name cannot be empty or whitespace')
        return v.strip()


class SkillUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    is_active: Optional[bool] = None

    @field_validator('name')
    @classmethod
    def not_blank(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and not v.strip():
            raise ValueError('Skill name cannot be empty or whitespace')
        return v.strip() if v is not None else v


class SkillOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    skill_id: int
    name: str
    is_active: bool
