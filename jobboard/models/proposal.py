# jobboard/models/proposal.py
from sqlalchemy import (
    Column, String, Text, INT, DECIMAL, TIMESTAMP, ForeignKey, Enum, CHAR, UniqueConstraint, func
)
from sqlalchemy.orm import relationship
from jobboard.core.database import Base
from jobboard.utils.timeutils import utcnow
import enum


class ProposalStatus(str, enum.Enum):
    submitted = "Submitted"
    under_review = "Under Review"
    accepted = "Accepted"
    rejected = "Rejected"


ProposalStatusEnum = Enum(
    ProposalStatus,
    values_callable=lambda obj: [e.value for e in obj],
    name="proposal_status_enum",
)


class Proposal(Base):
    __tablename__ = "proposals"
    __table_args__ = (
        # one proposal per freelancer per job
        UniqueConstraint("job_id", "freelancer_id", name="uq_proposals_job_freelancer"),
    )

    proposal_id = Column(INT, primary_key=True, autoincrement=True)
    job_id = Column(INT, ForeignKey("jobs.job_id", ondelete="CASCADE"), nullable=False, index=True)
    freelancer_id = Column(CHAR(36), ForeignKey("users.user_id"), nullable=False, index=True)

    cover_letter = Column(Text, nullable=False)
    bid_amount = Column(DECIMAL(10, 2), nullable=False)
    estimated_timeline_days = Column(INT, nullable=True)
    attachment_url = Column(String(500))

    status = Column(ProposalStatusEnum, default=ProposalStatus.submitted, nullable=False)
    client_feedback = Column(Text, nullable=True)
    reviewed_at = Column(TIMESTAMP, nullable=True)

    created_at = Column(TIMESTAMP, default=utcnow, server_default=func.now())
    updated_at = Column(TIMESTAMP, default=utcnow, onupdate=utcnow, server_default=func.now())

    job = relationship("Job", back_populates="proposals")
    freelancer = relationship("User", back_populates="proposals")

    # 1-to-1, the contract created on acceptance
    contract = relationship(
        "Contract",
        back_populates="proposal",
        uselist=False
    )
