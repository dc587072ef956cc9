# jobboard/schemas/notification_schema.py

from pydantic import BaseModel, ConfigDict, Field
from datetime import datetime
from typing import Any, Dict, Optional


class NotificationOut(BaseModel):
    """
    Notification as returned by the API
    """
    model_config = ConfigDict(from_attributes=True)

    notification_id: int
    recipient_user_id: str
    sender_user_id: Optional[str] = None
    type: str
    title: str
    message: str
    job_id: Optional[int] = None
    proposal_id: Optional[int] = None
    contract_id: Optional[int] = None
    review_id: Optional[int] = None
    action_url: Optional[str] = None
    data: Optional[Dict[str, Any]] = None
    is_read: bool
    read_at: Optional[datetime] = None
    is_urgent: bool
    is_email_sent: bool
    created_at: datetime


class UnreadCount(BaseModel):
    unread_count: int


class MarkAllReadResult(BaseModel):
    updated: int


class CleanupResult(BaseModel):
    deleted: int


class DispatchResult(BaseModel):
    processed: int


class NotificationAnalytics(BaseModel):
    total: int
    unread: int
    urgent: int
    last_7_days: int
    by_type: Dict[str, int]


# Admin: send a system notification to one user
class SystemNotificationCreate(BaseModel):
    recipient_user_id: str
    title: str = Field(..., min_length=1, max_length=255)
    message: str = Field(..., min_length=1)
    is_urgent: bool = False
