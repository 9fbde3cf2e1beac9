"""
Notification Service - transactional email through Resend.

Emails:
1. application_confirmation - sent to the student after applying
2. status_update            - sent when an employer decides on an application
3. two_factor_code          - one-time login code

Bodies are Jinja2 templates under schoolconnect/templates/email.
Without an API key (or with notifications disabled) emails are logged and
skipped. Delivery failures are logged, never raised: an email must not
fail the request that triggered it.
"""

import logging
from datetime import date
from functools import lru_cache
from pathlib import Path
from typing import Optional

import resend
from jinja2 import Environment, FileSystemLoader, select_autoescape

from schoolconnect.core.config import Settings, get_settings
from schoolconnect.schemas.schemas import ApplicationStatus

logger = logging.getLogger(__name__)

TEMPLATE_DIR = Path(__file__).resolve().parent.parent / "templates" / "email"

ACCEPTED_COLOR = "#10b981"
DECLINED_COLOR = "#ef4444"


def should_notify_status_change(old_status: str, new_status: str) -> bool:
    """Only real changes away from pending are worth an email."""
    return old_status != new_status and new_status != ApplicationStatus.pending.value


def status_text(status: str) -> str:
    if status == ApplicationStatus.accepted.value:
        return "Accepted"
    if status == ApplicationStatus.rejected.value:
        return "Not Selected"
    return "Updated"


def status_subject(status: str, job_title: str) -> str:
    if status == ApplicationStatus.accepted.value:
        return f"Job Application Accepted - {job_title}"
    return f"Job Application Update - {job_title}"


class NotificationService:
    """Renders and sends the platform's emails."""

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or get_settings()
        self.templates = Environment(
            loader=FileSystemLoader(str(TEMPLATE_DIR)),
            autoescape=select_autoescape(["html"])
        )

    def is_configured(self) -> bool:
        return bool(self.settings.notifications_enabled and self.settings.resend_api_key)

    def render(self, template_name: str, **context) -> str:
        return self.templates.get_template(template_name).render(**context)

    def send_email(self, to_email: str, subject: str, html_content: str) -> bool:
        """Send one email. Returns True when the provider accepted it."""
        if not self.is_configured():
            logger.info("Email not sent (notifications not configured): %r to %s", subject, to_email)
            return False

        resend.api_key = self.settings.resend_api_key
        try:
            response = resend.Emails.send({
                "from": self.settings.email_from,
                "to": [to_email],
                "subject": subject,
                "html": html_content,
            })
        except Exception as e:
            logger.error("Failed to send %r to %s: %s", subject, to_email, e)
            return False

        logger.info("Email %r sent to %s (id=%s)", subject, to_email, _message_id(response))
        return True

    def send_application_confirmation(self, to_email: str, applicant_name: str, job_title: str,
                                      company: Optional[str] = None, has_resume: bool = False) -> bool:
        html = self.render(
            "application_confirmation.html",
            applicant_name=applicant_name,
            job_title=job_title,
            company=company,
            has_resume=has_resume,
            submitted_on=date.today().strftime("%B %d, %Y"),
        )
        return self.send_email(to_email, f"Application Received - {job_title}", html)

    def send_status_update(self, to_email: str, applicant_name: str, job_title: str, status: str,
                           company: Optional[str] = None, employer_message: Optional[str] = None) -> bool:
        html = self.render(
            "status_update.html",
            applicant_name=applicant_name,
            job_title=job_title,
            company=company,
            status_text=status_text(status),
            status_color=ACCEPTED_COLOR if status == ApplicationStatus.accepted.value else DECLINED_COLOR,
            employer_message=employer_message,
        )
        return self.send_email(to_email, status_subject(status, job_title), html)

    def send_two_factor_code(self, to_email: str, full_name: str, code: str) -> bool:
        html = self.render(
            "two_factor_code.html",
            full_name=full_name,
            code=code,
            ttl_minutes=self.settings.two_factor_code_ttl_minutes,
        )
        return self.send_email(to_email, "Your SchoolConnect login code", html)


def _message_id(response) -> Optional[str]:
    if isinstance(response, dict):
        return response.get("id")
    return getattr(response, "id", None)


@lru_cache()
def get_notification_service() -> NotificationService:
    """FastAPI dependency - shared notification service."""
    return NotificationService()
