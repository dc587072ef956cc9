from dataclasses import FrozenInstanceError, dataclass
from datetime import timedelta
from decimal import Decimal

import pytest

from conftest import FakeHub, make_user
from jobboard.core.database import AsyncSessionLocal
from jobboard.core.exceptions import NotFoundError, UnauthorizedAccessError
from jobboard.models.user import UserRoleEnum
from jobboard.repositories.notification_repo import NotificationRepository
from jobboard.services.email_service import EmailDeliveryError, EmailService
from jobboard.services.notification_dispatcher import NotificationDispatcher
from jobboard.services.notification_service import NotificationService
from jobboard.utils.notification_templates import (
    EMAIL_SKIP_TYPES, GENERIC_TEMPLATE, TEMPLATES, ContractCreatedPayload, JobReviewPayload,
    NotificationType, ProposalPayload, SystemPayload, get_template, payload_to_data
)
from jobboard.utils.timeutils import utcnow


class RecordingEmailService(EmailService):
    def __init__(self):
        super().__init__()
        self.sent = []

    async def send_email(self, to, subject, html_body, text_body=None):
        self.sent.append({"to": to, "subject": subject, "html": html_body, "text": text_body})


class FailingEmailService(EmailService):
    async def send_email(self, to, subject, html_body, text_body=None):
        raise EmailDeliveryError("SMTP server unreachable")


# --- Templates ---

def test_every_type_has_a_template():
    assert set(TEMPLATES) == set(NotificationType)


def test_template_renders_payload():
    title, message = get_template(NotificationType.JOB_REJECTED).render(
        JobReviewPayload(job_title="Logo design", admin_message="Budget unclear")
    )
    assert title == "Job rejected"
    assert '"Logo design"' in message
    assert "Budget unclear" in message


def test_payloads_are_immutable():
    payload = JobReviewPayload(job_title="Logo design", admin_message="Budget unclear")
    with pytest.raises(FrozenInstanceError):
        payload.admin_message = "Looks good"


def test_template_rejects_wrong_payload():
    with pytest.raises(TypeError):
        get_template(NotificationType.CONTRACT_CREATED).render(ProposalPayload(job_title="x"))


def test_unregistered_type_falls_back_to_generic():
    template = get_template(NotificationType.REVIEW_RECEIVED, registry={})
    assert template is GENERIC_TEMPLATE
    assert template.render(SystemPayload(title="Heads up", message="Maintenance at 2am")) == (
        "Heads up", "Maintenance at 2am"
    )

    @dataclass
    class Bare:
        value: int

    assert GENERIC_TEMPLATE.render(Bare(1)) == ("Notification", "You have a new notification.")


def test_payload_to_data_is_json_safe():
    data = payload_to_data(ContractCreatedPayload(contract_id=5, job_title="Site", payment_amount=Decimal("750.00")))
    assert data == {"contract_id": 5, "job_title": "Site", "payment_amount": "750.00"}


# --- Service ---

async def test_interaction_notification_is_written_unread(db):
    client = await make_user(db)
    service = NotificationService(db)

    notification = await service.create_interaction_notification(
        recipient_user_id=client.user_id,
        sender_user_id=None,
        notification_type=NotificationType.JOB_APPROVED,
        payload=JobReviewPayload(job_title="Logo design"),
        action_url="/jobs/1",
    )
    await db.commit()

    assert notification.notification_id in service.created_ids
    assert notification.is_read is False
    assert notification.is_email_sent is False
    assert notification.data == {"job_title": "Logo design", "admin_message": None}
    assert await service.get_unread_count(client) == 1


async def test_read_state_and_ownership(db):
    owner = await make_user(db)
    other = await make_user(db)
    service = NotificationService(db)
    for i in range(3):
        await service.create_system_notification(owner.user_id, f"Notice {i}", "Body", False, other)

    first = service.created[0]
    with pytest.raises(UnauthorizedAccessError):
        await service.mark_as_read(first.notification_id, other)
    with pytest.raises(NotFoundError):
        await service.mark_as_read(987654, owner)

    read = await service.mark_as_read(first.notification_id, owner)
    assert read.is_read is True
    assert read.read_at is not None
    assert await service.get_unread_count(owner) == 2

    assert await service.mark_all_as_read(owner) == 2
    assert await service.get_unread_count(owner) == 0

    await service.delete_notification(first.notification_id, owner)
    remaining = await service.get_user_notifications(owner)
    assert first.notification_id not in [n.notification_id for n in remaining]


async def test_analytics(db):
    user = await make_user(db)
    service = NotificationService(db)
    await service.create_system_notification(user.user_id, "A", "a", True, user)
    await service.create_system_notification(user.user_id, "B", "b", False, user)

    analytics = await service.get_analytics(user)
    assert analytics["total"] == 2
    assert analytics["unread"] == 2
    assert analytics["urgent"] == 1
    assert analytics["last_7_days"] == 2
    assert analytics["by_type"] == {"system": 2}


async def test_cleanup_removes_old_read_notifications(db):
    user = await make_user(db)
    service = NotificationService(db)
    old = await service.create_system_notification(user.user_id, "Old", "old", False, user)
    await service.create_system_notification(user.user_id, "New", "new", False, user)
    old.is_read = True
    old.created_at = utcnow() - timedelta(days=120)
    await db.commit()

    assert await service.cleanup_old_notifications(90) == 1


# --- Dispatcher ---

async def queue(db, recipient, notification_type, payload):
    service = NotificationService(db)
    await service.create_interaction_notification(
        recipient_user_id=recipient.user_id,
        sender_user_id=None,
        notification_type=notification_type,
        payload=payload,
        action_url="/jobs/1",
    )
    await db.commit()
    return service.created_ids


async def test_dispatch_pushes_and_emails(db):
    client = await make_user(db, name="Carol Client", email="carol@example.com")
    ids = await queue(db, client, NotificationType.JOB_APPROVED, JobReviewPayload(job_title="Logo design"))
    hub = FakeHub(online={client.user_id})
    email = RecordingEmailService()

    await NotificationDispatcher(AsyncSessionLocal, email, hub).dispatch(ids)

    [(user_id, payload)] = hub.sent
    assert user_id == client.user_id
    assert payload["event"] == "notification"
    assert payload["notification"]["type"] == "job_approved"

    [sent] = email.sent
    assert sent["to"] == "carol@example.com"
    assert sent["subject"] == "Job approved"
    assert "Carol Client" in sent["html"]

    async with AsyncSessionLocal() as session:
        [stored] = await NotificationRepository(session).get_notifications_by_ids(ids)
        assert stored.is_pushed is True
        assert stored.is_email_sent is True
        assert stored.email_attempts == 1


async def test_email_failure_is_recorded_not_raised(db):
    client = await make_user(db)
    ids = await queue(db, client, NotificationType.JOB_APPROVED, JobReviewPayload(job_title="Logo design"))

    await NotificationDispatcher(AsyncSessionLocal, FailingEmailService(), FakeHub()).dispatch(ids)

    async with AsyncSessionLocal() as session:
        [stored] = await NotificationRepository(session).get_notifications_by_ids(ids)
        assert stored.is_email_sent is False
        assert stored.is_pushed is False
        assert stored.email_attempts == 1
        assert "unreachable" in stored.last_email_error


async def test_dispatch_pending_retries_until_max_attempts(db):
    client = await make_user(db)
    ids = await queue(db, client, NotificationType.JOB_APPROVED, JobReviewPayload(job_title="Logo design"))
    failing = NotificationDispatcher(AsyncSessionLocal, FailingEmailService(), FakeHub(), max_email_attempts=2)

    assert await failing.dispatch_pending() == 1
    assert await failing.dispatch_pending() == 1
    assert await failing.dispatch_pending() == 0

    email = RecordingEmailService()
    retry = NotificationDispatcher(AsyncSessionLocal, email, FakeHub(), max_email_attempts=5)
    assert await retry.dispatch_pending() == 1
    assert len(email.sent) == 1

    async with AsyncSessionLocal() as session:
        [stored] = await NotificationRepository(session).get_notifications_by_ids(ids)
        assert stored.is_email_sent is True
        assert stored.last_email_error is None


async def test_skipped_types_are_not_emailed(db):
    assert NotificationType.SYSTEM in EMAIL_SKIP_TYPES
    user = await make_user(db, UserRoleEnum.freelancer)
    ids = await queue(db, user, NotificationType.SYSTEM, SystemPayload(title="Hi", message="In-app only"))
    email = RecordingEmailService()
    dispatcher = NotificationDispatcher(AsyncSessionLocal, email, FakeHub(online={user.user_id}))

    await dispatcher.dispatch(ids)

    assert email.sent == []
    assert await dispatcher.dispatch_pending() == 0


async def test_disabled_email_marks_notification_sent(db):
    # EMAIL_ENABLED is false in the test environment
    user = await make_user(db)
    ids = await queue(db, user, NotificationType.JOB_APPROVED, JobReviewPayload(job_title="Logo design"))

    await NotificationDispatcher(AsyncSessionLocal, EmailService(), FakeHub()).dispatch(ids)

    async with AsyncSessionLocal() as session:
        [stored] = await NotificationRepository(session).get_notifications_by_ids(ids)
        assert stored.is_email_sent is True
