# jobboard/utils/notification_templates.py
"""
Notification kinds and their templates.

Every NotificationType has one NotificationTemplate in TEMPLATES. A template
knows the payload dataclass it expects, how to build the in-app title and
message from it, whether the notification is urgent, and which Jinja2 email
template renders it. Types missing from a registry fall back to
GENERIC_TEMPLATE.
"""
import dataclasses
import enum
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Dict, Mapping, Optional


class NotificationType(str, enum.Enum):
    JOB_SUBMITTED_FOR_APPROVAL = "job_pending_admin_approval"
    JOB_APPROVED = "job_approved"
    JOB_REJECTED = "job_rejected"
    JOB_UPDATED = "job_updated"
    PROPOSAL_RECEIVED = "proposal_received"
    PROPOSAL_ACCEPTED = "proposal_accepted"
    PROPOSAL_REJECTED = "proposal_rejected"
    CONTRACT_CREATED = "contract_created"
    CONTRACT_STATUS_CHANGED = "contract_status_changed"
    CONTRACT_CHANGE_REQUESTED = "contract_change_requested"
    CONTRACT_CHANGE_APPROVED = "contract_change_approved"
    CONTRACT_CHANGE_REJECTED = "contract_change_rejected"
    CONTRACT_COMPLETION_REQUESTED = "contract_completion_requested"
    COMPLETION_REQUEST_SENT = "completion_request_sent"
    CONTRACT_COMPLETION_REJECTED = "contract_completion_rejected"
    CONTRACT_COMPLETION_CANCELLED = "contract_completion_cancelled"
    REVIEW_REQUESTED = "review_requested"
    REVIEW_RECEIVED = "review_received"
    SYSTEM = "system"


# Low-priority kinds: in-app and realtime only, no email
EMAIL_SKIP_TYPES = frozenset({
    NotificationType.SYSTEM,
    NotificationType.COMPLETION_REQUEST_SENT,
    NotificationType.JOB_UPDATED,
})


def _notes(text: Optional[str], label: str = "Notes") -> str:
    return f" {label}: {text}" if text else ""


# --- Payloads ---

@dataclass(frozen=True)
class JobSubmittedPayload:
    job_title: str
    client_name: str


@dataclass(frozen=True)
class JobUpdatedPayload:
    job_title: str
    client_name: str


@dataclass(frozen=True)
class JobReviewPayload:
    job_title: str
    admin_message: Optional[str] = None

    @property
    def message_suffix(self) -> str:
        return _notes(self.admin_message, "Message from the admin")


@dataclass(frozen=True)
class ProposalPayload:
    job_title: str
    freelancer_name: str = ""
    bid_amount: Optional[Decimal] = None
    client_feedback: Optional[str] = None

    @property
    def feedback_suffix(self) -> str:
        return _notes(self.client_feedback, "Feedback")


@dataclass(frozen=True)
class ContractCreatedPayload:
    contract_id: int
    job_title: str
    payment_amount: Decimal


@dataclass(frozen=True)
class ContractStatusPayload:
    contract_id: int
    job_title: str
    old_status: str
    new_status: str
    notes: Optional[str] = None

    @property
    def notes_suffix(self) -> str:
        return _notes(self.notes)


@dataclass(frozen=True)
class ChangeRequestPayload:
    contract_id: int
    request_id: int
    job_title: str
    requester_name: str
    change_reason: str
    proposed_version_number: int
    proposed_payment_amount: Decimal


@dataclass(frozen=True)
class ChangeResponsePayload:
    contract_id: int
    request_id: int
    job_title: str
    responder_name: str
    proposed_version_number: int
    response_notes: Optional[str] = None

    @property
    def notes_suffix(self) -> str:
        return _notes(self.response_notes)


@dataclass(frozen=True)
class CompletionPayload:
    contract_id: int
    job_title: str
    user_name: str
    notes: Optional[str] = None

    @property
    def notes_suffix(self) -> str:
        return _notes(self.notes)


@dataclass(frozen=True)
class ReviewRequestPayload:
    job_id: int
    job_title: str
    reviewee_name: str


@dataclass(frozen=True)
class ReviewReceivedPayload:
    job_title: str
    reviewer_name: str
    rating: int


@dataclass(frozen=True)
class SystemPayload:
    title: str
    message: str


# --- Templates ---

@dataclass(frozen=True)
class NotificationTemplate:
    payload_type: type
    title: str      # str.format() pattern, payload available as {p}
    message: str
    urgent: bool = False
    email_template: str = "generic.html"

    def render(self, payload) -> tuple[str, str]:
        if not isinstance(payload, self.payload_type):
            raise TypeError(
                f"{type(payload).__name__} is not a {self.payload_type.__name__} payload"
            )
        return self.title.format(p=payload), self.message.format(p=payload)


class _GenericTemplate(NotificationTemplate):
    """Accepts any payload; uses its title/message attributes when present."""

    def render(self, payload) -> tuple[str, str]:
        title = getattr(payload, "title", None) or "Notification"
        message = getattr(payload, "message", None) or "You have a new notification."
        return str(title), str(message)


GENERIC_TEMPLATE = _GenericTemplate(
    payload_type=object,
    title="{p.title}",
    message="{p.message}",
)


TEMPLATES: Dict[NotificationType, NotificationTemplate] = {
    NotificationType.JOB_SUBMITTED_FOR_APPROVAL: NotificationTemplate(
        JobSubmittedPayload,
        title="New job awaiting approval",
        message='"{p.job_title}" was submitted by {p.client_name} and needs review.',
    ),
    NotificationType.JOB_APPROVED: NotificationTemplate(
        JobReviewPayload,
        title="Job approved",
        message='Your job "{p.job_title}" was approved and is now open for proposals.{p.message_suffix}',
        email_template="job_review.html",
    ),
    NotificationType.JOB_REJECTED: NotificationTemplate(
        JobReviewPayload,
        title="Job rejected",
        message='Your job "{p.job_title}" was not approved.{p.message_suffix}',
        urgent=True,
        email_template="job_review.html",
    ),
    NotificationType.JOB_UPDATED: NotificationTemplate(
        JobUpdatedPayload,
        title="Job updated",
        message='{p.client_name} updated "{p.job_title}", which you submitted a proposal for.',
    ),
    NotificationType.PROPOSAL_RECEIVED: NotificationTemplate(
        ProposalPayload,
        title="New proposal received",
        message='{p.freelancer_name} submitted a proposal for "{p.job_title}" ({p.bid_amount}).',
    ),
    NotificationType.PROPOSAL_ACCEPTED: NotificationTemplate(
        ProposalPayload,
        title="Proposal accepted",
        message='Your proposal for "{p.job_title}" was accepted.{p.feedback_suffix}',
        urgent=True,
    ),
    NotificationType.PROPOSAL_REJECTED: NotificationTemplate(
        ProposalPayload,
        title="Proposal not selected",
        message='Your proposal for "{p.job_title}" was not selected.{p.feedback_suffix}',
    ),
    NotificationType.CONTRACT_CREATED: NotificationTemplate(
        ContractCreatedPayload,
        title="Contract created",
        message='Contract #{p.contract_id} for "{p.job_title}" was created ({p.payment_amount}).',
        email_template="contract.html",
    ),
    NotificationType.CONTRACT_STATUS_CHANGED: NotificationTemplate(
        ContractStatusPayload,
        title="Contract status changed",
        message='Contract #{p.contract_id} for "{p.job_title}" moved from {p.old_status} to {p.new_status}.{p.notes_suffix}',
        email_template="contract.html",
    ),
    NotificationType.CONTRACT_CHANGE_REQUESTED: NotificationTemplate(
        ChangeRequestPayload,
        title="Contract change requested",
        message='{p.requester_name} proposed version {p.proposed_version_number} of contract #{p.contract_id} '
                '("{p.job_title}", {p.proposed_payment_amount}). Reason: {p.change_reason}',
        urgent=True,
        email_template="change_request.html",
    ),
    NotificationType.CONTRACT_CHANGE_APPROVED: NotificationTemplate(
        ChangeResponsePayload,
        title="Contract change approved",
        message='{p.responder_name} approved version {p.proposed_version_number} of contract #{p.contract_id}.{p.notes_suffix}',
        email_template="change_request.html",
    ),
    NotificationType.CONTRACT_CHANGE_REJECTED: NotificationTemplate(
        ChangeResponsePayload,
        title="Contract change rejected",
        message='{p.responder_name} rejected version {p.proposed_version_number} of contract #{p.contract_id}.{p.notes_suffix}',
        email_template="change_request.html",
    ),
    NotificationType.CONTRACT_COMPLETION_REQUESTED: NotificationTemplate(
        CompletionPayload,
        title="Completion requested",
        message='{p.user_name} asked to mark contract #{p.contract_id} ("{p.job_title}") as completed.{p.notes_suffix}',
        urgent=True,
        email_template="contract.html",
    ),
    NotificationType.COMPLETION_REQUEST_SENT: NotificationTemplate(
        CompletionPayload,
        title="Completion request sent",
        message='Your completion request for contract #{p.contract_id} was sent to {p.user_name}.',
    ),
    NotificationType.CONTRACT_COMPLETION_REJECTED: NotificationTemplate(
        CompletionPayload,
        title="Completion request declined",
        message='{p.user_name} declined to complete contract #{p.contract_id} for now.{p.notes_suffix}',
        email_template="contract.html",
    ),
    NotificationType.CONTRACT_COMPLETION_CANCELLED: NotificationTemplate(
        CompletionPayload,
        title="Completion request withdrawn",
        message='{p.user_name} withdrew the completion request for contract #{p.contract_id}.{p.notes_suffix}',
    ),
    NotificationType.REVIEW_REQUESTED: NotificationTemplate(
        ReviewRequestPayload,
        title="Leave a review",
        message='"{p.job_title}" is completed. Tell others how it went working with {p.reviewee_name}.',
    ),
    NotificationType.REVIEW_RECEIVED: NotificationTemplate(
        ReviewReceivedPayload,
        title="New review",
        message='{p.reviewer_name} rated you {p.rating}/5 for "{p.job_title}".',
    ),
    NotificationType.SYSTEM: NotificationTemplate(
        SystemPayload,
        title="{p.title}",
        message="{p.message}",
    ),
}


def get_template(
    notification_type: NotificationType,
    registry: Mapping[NotificationType, NotificationTemplate] = TEMPLATES,
) -> NotificationTemplate:
    return registry.get(notification_type, GENERIC_TEMPLATE)


def _jsonable(value: Any) -> Any:
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, enum.Enum):
        return value.value
    return value


def payload_to_data(payload) -> Optional[Dict[str, Any]]:
    """JSON-safe dict of a payload dataclass (stored on Notification.data)"""
    if not dataclasses.is_dataclass(payload):
        return None
    return {k: _jsonable(v) for k, v in dataclasses.asdict(payload).items()}
