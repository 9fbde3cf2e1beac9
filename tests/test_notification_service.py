import pytest

from schoolconnect.core.config import Settings
from schoolconnect.services import notification_service
from schoolconnect.services.notification_service import NotificationService, status_subject, status_text


def _service(**overrides):
    settings = Settings(resend_api_key="re_test", email_from="Jobs <jobs@school.test>", **overrides)
    return NotificationService(settings)


@pytest.fixture
def outbox(monkeypatch):
    sent = []

    def fake_send(params):
        sent.append(params)
        return {"id": f"msg-{len(sent)}"}

    monkeypatch.setattr(notification_service.resend.Emails, "send", fake_send)
    return sent


def test_subjects_and_status_text():
    assert status_subject("accepted", "Tutor") == "Job Application Accepted - Tutor"
    assert status_subject("rejected", "Tutor") == "Job Application Update - Tutor"
    assert status_subject("reviewed", "Tutor") == "Job Application Update - Tutor"
    assert status_text("accepted") == "Accepted"
    assert status_text("rejected") == "Not Selected"
    assert status_text("reviewed") == "Updated"


def test_skipped_without_api_key(outbox):
    svc = NotificationService(Settings(resend_api_key=""))
    assert svc.is_configured() is False
    assert svc.send_email("a@b.test", "Hi", "<p>Hi</p>") is False
    assert outbox == []


def test_skipped_when_disabled(outbox):
    svc = _service(notifications_enabled=False)
    assert svc.send_application_confirmation("a@b.test", "Sam", "Tutor") is False
    assert outbox == []


def test_application_confirmation(outbox):
    svc = _service()
    assert svc.send_application_confirmation("sam@student.edu", "Sam", "Tutor", "Acme", has_resume=True)

    msg = outbox[0]
    assert msg["to"] == ["sam@student.edu"]
    assert msg["from"] == "Jobs <jobs@school.test>"
    assert msg["subject"] == "Application Received - Tutor"
    assert "Sam" in msg["html"]
    assert "Acme" in msg["html"]


def test_status_update_includes_employer_message(outbox):
    svc = _service()
    svc.send_status_update("sam@student.edu", "Sam", "Tutor", "rejected", employer_message="Position filled")

    msg = outbox[0]
    assert msg["subject"] == "Job Application Update - Tutor"
    assert "Not Selected" in msg["html"]
    assert "Position filled" in msg["html"]


def test_template_escapes_user_text(outbox):
    svc = _service()
    svc.send_status_update("sam@student.edu", "<b>Sam</b>", "Tutor", "accepted")
    assert "&lt;b&gt;Sam&lt;/b&gt;" in outbox[0]["html"]


def test_two_factor_code_email(outbox):
    svc = _service(two_factor_code_ttl_minutes=7)
    svc.send_two_factor_code("sam@student.edu", "Sam", "123456")
    assert "123456" in outbox[0]["html"]
    assert "expires in 7 minutes" in outbox[0]["html"]


def test_provider_errors_are_swallowed(monkeypatch):
    def boom(params):
        raise RuntimeError("provider down")

    monkeypatch.setattr(notification_service.resend.Emails, "send", boom)
    assert _service().send_email("a@b.test", "Hi", "<p>Hi</p>") is False
