# jobboard/services/email_service.py

import logging
import smtplib
from email.message import EmailMessage
from email.utils import formataddr
from pathlib import Path
from typing import Optional

from fastapi.concurrency import run_in_threadpool
from jinja2 import Environment, FileSystemLoader, TemplateNotFound
from tenacity import (
    Retrying,
    before_sleep_log,
    retry_if_exception_type,
    stop_after_attempt,
    wait_fixed,
)

from jobboard.core.config import Settings, settings
from jobboard.models.notification import Notification

logger = logging.getLogger(__name__)

TEMPLATE_DIR = Path(__file__).parent.parent / "templates" / "email"
GENERIC_EMAIL_TEMPLATE = "generic.html"


class EmailDeliveryError(Exception):
    """Raised once every SMTP attempt for a message has failed."""


class EmailService:
    """
    Renders notification emails with Jinja2 and sends them over SMTP.

    Sending is blocking (smtplib), so it runs in the threadpool. Transient SMTP
    and network errors are retried with tenacity: EMAIL_MAX_RETRY_ATTEMPTS
    tries, EMAIL_RETRY_DELAY_SECONDS apart.
    """

    def __init__(self, config: Settings = settings):
        self.config = config
        self._jinja = Environment(
            loader=FileSystemLoader(str(TEMPLATE_DIR)),
            autoescape=True,
        )

    # --- Rendering ---

    def render_html(self, template_name: str, **context) -> str:
        try:
            template = self._jinja.get_template(template_name)
        except TemplateNotFound:
            logger.warning(f"Email template {template_name} not found, using {GENERIC_EMAIL_TEMPLATE}")
            template = self._jinja.get_template(GENERIC_EMAIL_TEMPLATE)
        return template.render(app_name=self.config.EMAIL_FROM_NAME, **context)

    def render_notification(
        self, notification: Notification, recipient_name: str, template_name: str
    ) -> tuple[str, str, str]:
        """(subject, html body, text body) for a notification email"""
        action_url = None
        if notification.action_url:
            action_url = self.config.FRONTEND_BASE_URL.rstrip("/") + notification.action_url

        html = self.render_html(
            template_name,
            title=notification.title,
            message=notification.message,
            recipient_name=recipient_name,
            action_url=action_url,
            notification_type=notification.type,
            data=notification.data or {},
        )
        text = f"Hi {recipient_name},\n\n{notification.title}\n\n{notification.message}\n"
        if action_url:
            text += f"\n{action_url}\n"
        return notification.title, html, text

    # --- Sending ---

    def build_message(self, to: str, subject: str, html_body: str, text_body: Optional[str] = None) -> EmailMessage:
        msg = EmailMessage()
        msg["Subject"] = subject
        msg["From"] = formataddr((self.config.EMAIL_FROM_NAME, self.config.EMAIL_FROM_ADDRESS or ""))
        msg["To"] = to
        msg.set_content(text_body or subject)
        msg.add_alternative(html_body, subtype="html")
        return msg

    def _send_once(self, msg: EmailMessage) -> None:
        with smtplib.SMTP(
            self.config.SMTP_SERVER,
            self.config.SMTP_PORT,
            timeout=self.config.EMAIL_TIMEOUT_SECONDS,
        ) as smtp:
            if self.config.SMTP_USE_TLS:
                smtp.starttls()
            if self.config.SMTP_USE_CREDENTIALS:
                smtp.login(self.config.SMTP_USERNAME, self.config.SMTP_PASSWORD)
            smtp.send_message(msg)

    def _retrying(self) -> Retrying:
        return Retrying(
            stop=stop_after_attempt(max(1, self.config.EMAIL_MAX_RETRY_ATTEMPTS)),
            wait=wait_fixed(self.config.EMAIL_RETRY_DELAY_SECONDS),
            retry=retry_if_exception_type((smtplib.SMTPException, OSError)),
            before_sleep=before_sleep_log(logger, logging.WARNING),
            reraise=True,
        )

    def _send_with_retry(self, msg: EmailMessage) -> None:
        retrying = self._retrying()
        try:
            retrying(self._send_once, msg)
        except (smtplib.SMTPException, OSError) as e:
            attempts = retrying.statistics.get("attempt_number", 1)
            raise EmailDeliveryError(f"Email to {msg['To']} failed after {attempts} attempts: {e}") from e
        logger.info(f"Email sent to {msg['To']} (attempt {retrying.statistics.get('attempt_number', 1)})")

    async def send_email(self, to: str, subject: str, html_body: str, text_body: Optional[str] = None) -> None:
        """
        Send one email. Raises EmailDeliveryError when SMTP is not configured
        or every attempt fails. With EMAIL_ENABLED off the email is only logged.
        """
        if not self.config.EMAIL_ENABLED:
            if self.config.EMAIL_LOG_WHEN_DISABLED:
                logger.info(f"Email disabled, not sending to {to}: {subject}")
            return

        if not self.config.email_is_configured():
            raise EmailDeliveryError("SMTP settings are incomplete")

        msg = self.build_message(to, subject, html_body, text_body)
        await run_in_threadpool(self._send_with_retry, msg)
