# jobboard/models/job.py
from sqlalchemy import (
    Column, String, TEXT, INT, DECIMAL, TIMESTAMP, BOOLEAN, ForeignKey, Enum, CHAR, func
)
from sqlalchemy.orm import relationship
from jobboard.core.database import Base
# Registers the tag tables that Job links to
from jobboard.models import category, skill  # noqa: F401
from jobboard.utils.timeutils import utcnow
import enum


class JobStatus(str, enum.Enum):
    pending = "Pending"          # waiting for admin approval
    open = "Open"                # approved, accepting proposals
    in_progress = "In Progress"  # a proposal was accepted
    completed = "Completed"
    cancelled = "Cancelled"      # rejected by admin or contract cancelled
    closed = "Closed"


JobStatusEnum = Enum(
    JobStatus,
    values_callable=lambda obj: [e.value for e in obj],
    name="job_status_enum",
)


class Job(Base):
    __tablename__ = "jobs"

    job_id = Column(INT, primary_key=True, autoincrement=True)
    client_id = Column(CHAR(36), ForeignKey("users.user_id", ondelete="CASCADE"), nullable=False, index=True)
    title = Column(String(255), nullable=False)
    description = Column(TEXT, nullable=False)
    budget_min = Column(DECIMAL(10, 2))
    budget_max = Column(DECIMAL(10, 2))
    deadline = Column(TIMESTAMP, nullable=True)
    status = Column(JobStatusEnum, default=JobStatus.pending, nullable=False, index=True)

    # Admin review
    approved_by = Column(CHAR(36), nullable=True)
    rejected_by = Column(CHAR(36), nullable=True)
    admin_message = Column(TEXT, nullable=True)

    is_active = Column(BOOLEAN, default=True, nullable=False)
    created_at = Column(TIMESTAMP, default=utcnow, server_default=func.now())
    updated_at = Column(TIMESTAMP, default=utcnow, onupdate=utcnow, server_default=func.now())

    client = relationship(
        "User",
        back_populates="jobs_posted",
        foreign_keys=[client_id],
    )

    proposals = relationship(
        "Proposal",
        back_populates="job",
        cascade="all, delete-orphan"
    )

    # In practice one contract per job, the schema allows more
    contracts = relationship(
        "Contract",
        back_populates="job"
    )

    reviews = relationship(
        "Review",
        back_populates="job",
        cascade="all, delete-orphan"
    )

    # Tags, loaded together with the job
    category_links = relationship(
        "JobCategory",
        back_populates="job",
        cascade="all, delete-orphan",
        lazy="selectin"
    )

    skill_links = relationship(
        "JobSkill",
        back_populates="job",
        cascade="all, delete-orphan",
        lazy="selectin"
    )

    @property
    def categories(self):
        return [link.category for link in self.category_links]

    @property
    def skills(self):
        return [link.skill for link in self.skill_links]


class JobCategory(Base):
    __tablename__ = "job_categories"

    job_id = Column(INT, ForeignKey("jobs.job_id", ondelete="CASCADE"), primary_key=True)
    category_id = Column(INT, ForeignKey("categories.category_id", ondelete="RESTRICT"), primary_key=True, index=True)

    job = relationship("Job", back_populates="category_links")
    category = relationship("Category", lazy="selectin")


class JobSkill(Base):
    __tablename__ = "job_skills"

    job_id = Column(INT, ForeignKey("jobs.job_id", ondelete="CASCADE"), primary_key=True)
    skill_id = Column(INT, ForeignKey("skills.skill_id", ondelete="RESTRICT"), primary_key=True, index=True)

    job = relationship("Job", back_populates="skill_links")
    skill = relationship("Skill", lazy="selectin")
