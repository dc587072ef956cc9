# jobboard/models/review.py
from sqlalchemy import (
    Column, String, TEXT, INT, BOOLEAN, TIMESTAMP, ForeignKey, Enum, CHAR, UniqueConstraint, func
)
from sqlalchemy.orm import relationship
from jobboard.core.database import Base
from jobboard.utils.timeutils import utcnow
import enum


class ReviewType(str, enum.Enum):
    client_to_freelancer = "ClientToFreelancer"
    freelancer_to_client = "FreelancerToClient"


class Review(Base):
    __tablename__ = "reviews"
    __table_args__ = (
        UniqueConstraint("job_id", "reviewer_id", name="uq_reviews_job_reviewer"),
    )

    review_id = Column(INT, primary_key=True, autoincrement=True)
    job_id = Column(INT, ForeignKey("jobs.job_id", ondelete="CASCADE"), nullable=False, index=True)
    reviewer_id = Column(CHAR(36), ForeignKey("users.user_id"), nullable=False, index=True)
    reviewee_id = Column(CHAR(36), ForeignKey("users.user_id"), nullable=False, index=True)

    rating = Column(INT, nullable=False)
    comment = Column(TEXT, nullable=True)
    review_type = Column(
        Enum(ReviewType, values_callable=lambda obj: [e.value for e in obj], name="review_type_enum"),
        nullable=False,
    )
    is_visible = Column(BOOLEAN, default=True, nullable=False)

    # Optional detailed ratings
    communication_rating = Column(INT, nullable=True)
    quality_rating = Column(INT, nullable=True)
    timeliness_rating = Column(INT, nullable=True)
    would_recommend = Column(BOOLEAN, nullable=True)
    tags = Column(String(500), nullable=True)  # comma separated

    created_at = Column(TIMESTAMP, default=utcnow, server_default=func.now())
    updated_at = Column(TIMESTAMP, default=utcnow, onupdate=utcnow, server_default=func.now())

    job = relationship("Job", back_populates="reviews")
    reviewer = relationship("User", foreign_keys=[reviewer_id])
    reviewee = relationship("User", foreign_keys=[reviewee_id])
