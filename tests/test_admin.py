import pytest

from conftest import FakeHub, make_job, make_user
from jobboard.core.database import AsyncSessionLocal
from jobboard.core.exceptions import ArgumentError, InvalidOperationError, NotFoundError
from jobboard.models.job import JobStatus
from jobboard.models.user import UserRoleEnum
from jobboard.services.admin_service import AdminService
from jobboard.services.job_service import parse_job_status
from jobboard.services.email_service import EmailService
from jobboard.services.notification_dispatcher import NotificationDispatcher
from jobboard.utils.notification_templates import NotificationType


class RecordingEmailService(EmailService):
    def __init__(self):
        super().__init__()
        self.sent = []

    async def send_email(self, to, subject, html_body, text_body=None):
        self.sent.append((to, subject, html_body, text_body))


def test_parse_job_status():
    assert parse_job_status("Pending") == JobStatus.pending
    assert parse_job_status("in progress") == JobStatus.in_progress
    assert parse_job_status("in_progress") == JobStatus.in_progress
    with pytest.raises(ArgumentError):
        parse_job_status("Archived")


async def test_reject_job_with_message(db):
    admin = await make_user(db, UserRoleEnum.admin)
    client = await make_user(db, name="Carol Client", email="carol@example.com")
    job = await make_job(db, client, status=JobStatus.pending, title="Logo design")
    await db.commit()

    service = AdminService(db)
    rejected = await service.reject_job(job.job_id, "Budget unclear", admin)

    assert rejected.status == JobStatus.cancelled
    assert rejected.admin_message == "Budget unclear"
    assert rejected.rejected_by == admin.user_id

    [notification] = service.notifications.created
    assert notification.recipient_user_id == client.user_id
    assert notification.type == NotificationType.JOB_REJECTED.value
    assert "Budget unclear" in notification.message

    email = RecordingEmailService()
    await NotificationDispatcher(AsyncSessionLocal, email, FakeHub()).dispatch(service.notifications.created_ids)

    [(to, subject, html, text)] = email.sent
    assert to == "carol@example.com"
    assert subject == "Job rejected"
    assert "Budget unclear" in html
    assert "Budget unclear" in text


async def test_approve_job_opens_it(db):
    admin = await make_user(db, UserRoleEnum.admin)
    client = await make_user(db)
    job = await make_job(db, client, status=JobStatus.pending)
    await db.commit()

    approved = await AdminService(db).approve_job(job.job_id, None, admin)

    assert approved.status == JobStatus.open
    assert approved.approved_by == admin.user_id


async def test_only_pending_jobs_can_be_reviewed(db):
    admin = await make_user(db, UserRoleEnum.admin)
    client = await make_user(db)
    job = await make_job(db, client, status=JobStatus.open)
    await db.commit()

    with pytest.raises(InvalidOperationError):
        await AdminService(db).reject_job(job.job_id, "Too late", admin)
    with pytest.raises(NotFoundError):
        await AdminService(db).approve_job(424242, None, admin)


async def test_list_and_details(db):
    client = await make_user(db)
    await make_job(db, client, status=JobStatus.pending, title="A")
    open_job = await make_job(db, client, status=JobStatus.open, title="B")
    await db.commit()

    service = AdminService(db)
    assert [j.title for j in await service.list_jobs("Pending")] == ["A"]
    assert len(await service.list_jobs()) == 2

    details = await service.get_job_details(open_job.job_id)
    assert details["job"].job_id == open_job.job_id
    assert details["proposal_count"] == 0
