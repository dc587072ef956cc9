# jobboard/models/notification.py

from sqlalchemy import (
    Column, String, TEXT, BOOLEAN, CHAR, INT, JSON, ForeignKey, TIMESTAMP, func
)
from sqlalchemy.orm import relationship
from jobboard.core.database import Base
from jobboard.utils.timeutils import utcnow


class Notification(Base):
    """
    One row per notification. The row is written inside the transaction of the
    action that caused it; push/email delivery state is tracked on the row so
    failed emails can be retried later.
    """
    __tablename__ = "notifications"

    notification_id = Column(INT, primary_key=True, autoincrement=True)

    recipient_user_id = Column(CHAR(36), ForeignKey("users.user_id", ondelete="CASCADE"), nullable=False, index=True)
    sender_user_id = Column(CHAR(36), ForeignKey("users.user_id", ondelete="SET NULL"), nullable=True)

    type = Column(String(50), nullable=False, index=True)  # NotificationType value
    title = Column(String(255), nullable=False)
    message = Column(TEXT, nullable=False)

    # Related entities
    job_id = Column(INT, ForeignKey("jobs.job_id", ondelete="CASCADE"), nullable=True)
    proposal_id = Column(INT, ForeignKey("proposals.proposal_id", ondelete="CASCADE"), nullable=True)
    contract_id = Column(INT, ForeignKey("contracts.contract_id", ondelete="CASCADE"), nullable=True)
    review_id = Column(INT, ForeignKey("reviews.review_id", ondelete="CASCADE"), nullable=True)

    # Front-end URL to open when the notification is clicked
    action_url = Column(String(500), nullable=True)
    data = Column(JSON, nullable=True)

    is_read = Column(BOOLEAN, default=False, nullable=False)
    read_at = Column(TIMESTAMP, nullable=True)
    is_urgent = Column(BOOLEAN, default=False, nullable=False)

    # --- Delivery ---
    is_pushed = Column(BOOLEAN, default=False, nullable=False)
    is_email_sent = Column(BOOLEAN, default=False, nullable=False)
    email_attempts = Column(INT, default=0, nullable=False)
    last_email_error = Column(String(500), nullable=True)

    is_active = Column(BOOLEAN, default=True, nullable=False)
    created_at = Column(TIMESTAMP, default=utcnow, server_default=func.now(), index=True)

    recipient = relationship("User", foreign_keys=[recipient_user_id])
    sender = relationship("User", foreign_keys=[sender_user_id])
