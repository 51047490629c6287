import asyncio
from dataclasses import replace
from unittest.mock import patch

import httpx
import pytest

from collegeplan.email_service import (
    EmailMessage,
    EmailRenderError,
    EmailSendError,
    ResendEmailSender,
    check_sending_domain,
    compile_mjml_to_html,
    get_email_status,
    render_todo_reminder,
)
from collegeplan.email_templates import ReminderMode, ReminderTask

from .conftest import FIXED_NOW, PROVIDER_REJECTION, days_from_now

MESSAGE = EmailMessage(
    from_address="DreamPlane <reminder@example.org>",
    to="mia@example.org",
    subject="Reminder",
    html="<p>hi</p>",
    text="hi",
)


def send_with(handler, message=MESSAGE):
    sender = ResendEmailSender("re_test_key", "https://resend.test", transport=httpx.MockTransport(handler))
    return asyncio.run(sender.send(message))


def test_render_is_deterministic():
    tasks = [ReminderTask("Essay", days_from_now(2)), ReminderTask("Forms", days_from_now(5))]
    first = render_todo_reminder("Mia", tasks, ReminderMode.WEEKLY, FIXED_NOW)
    second = render_todo_reminder("Mia", list(reversed(tasks)), ReminderMode.WEEKLY, FIXED_NOW)
    assert first == second


def test_render_html_contains_labels_and_no_images():
    tasks = [
        ReminderTask("Essay", days_from_now(0)),
        ReminderTask("Forms", days_from_now(1)),
        ReminderTask("Visit", days_from_now(10)),
    ]
    content = render_todo_reminder("Mia", tasks, ReminderMode.MONTHLY, FIXED_NOW)

    assert "overdue" in content.html
    assert "due tomorrow" in content.html
    assert "<img" not in content.html
    assert content.html.index("Essay") < content.html.index("Forms") < content.html.index("Visit")


def test_render_urgent_banner_only_in_urgent_mode():
    tasks = [ReminderTask("Essay", days_from_now(2))]
    urgent = render_todo_reminder("Mia", tasks, ReminderMode.URGENT, FIXED_NOW)
    weekly = render_todo_reminder("Mia", tasks, ReminderMode.WEEKLY, FIXED_NOW)

    assert "about to be due" in urgent.html
    assert "about to be due" not in weekly.html


def test_render_escapes_task_titles():
    tasks = [ReminderTask("Essay <script>alert(1)</script>", days_from_now(2))]
    content = render_todo_reminder("Mia", tasks, ReminderMode.WEEKLY, FIXED_NOW)
    assert "<script>alert(1)</script>" not in content.html


def test_send_posts_payload_and_returns_id():
    captured = {}

    def handler(request):
        captured["url"] = str(request.url)
        captured["auth"] = request.headers["Authorization"]
        captured["json"] = request.read()
        return httpx.Response(200, json={"id": "abc-123"})

    assert send_with(handler) == "abc-123"
    assert captured["url"] == "https://resend.test/emails"
    assert captured["auth"] == "Bearer re_test_key"
    assert b'"to":["mia@example.org"]' in captured["json"].replace(b" ", b"")


def test_send_keeps_provider_error_body_verbatim():
    def handler(request):
        return httpx.Response(422, text=PROVIDER_REJECTION)

    with pytest.raises(EmailSendError) as exc_info:
        send_with(handler)

    assert exc_info.value.detail == PROVIDER_REJECTION
    assert exc_info.value.status_code == 422


@pytest.mark.parametrize(
    "response",
    [
        httpx.Response(200, json={}),
        httpx.Response(200, text="not json"),
        httpx.Response(200, json=["unexpected"]),
    ],
)
def test_send_rejects_malformed_success(response):
    with pytest.raises(EmailSendError) as exc_info:
        send_with(lambda request: response)
    assert exc_info.value.detail.startswith("Malformed provider response")


def test_send_propagates_transport_errors():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(httpx.ConnectError):
        send_with(handler)


def test_email_status_wraps_sdk_errors(settings):
    with patch("collegeplan.email_service.resend.Emails.get", side_effect=RuntimeError("not found")):
        with pytest.raises(EmailSendError) as exc_info:
            get_email_status(settings, "missing-id")
    assert exc_info.value.detail == "not found"


def test_email_status_returns_sdk_payload(settings):
    payload = {"id": "abc", "last_event": "delivered"}
    with patch("collegeplan.email_service.resend.Emails.get", return_value=payload) as get:
        assert get_email_status(settings, "abc") == payload
    get.assert_called_once_with("abc")


def test_check_sending_domain_verified(settings):
    domains = {"data": [{"name": "example.org", "status": "verified"}]}
    with patch("collegeplan.email_service.resend.Domains.list", return_value=domains):
        report = check_sending_domain(settings)

    assert report["apiKeyConfigured"] is True
    assert report["apiKeyFormatValid"] is True
    assert report["domain"] == "example.org"
    assert report["domainStatus"] == "verified"
    assert report["error"] is None


def test_check_sending_domain_not_listed(settings):
    with patch("collegeplan.email_service.resend.Domains.list", return_value={"data": []}):
        report = check_sending_domain(settings, "other.org")
    assert report["domain"] == "other.org"
    assert report["domainStatus"] == "not_found"


def test_check_sending_domain_without_key(settings):
    report = check_sending_domain(replace(settings, resend_api_key=None))
    assert report["apiKeyConfigured"] is False
    assert report["error"] == "missing_api_key"


def test_compile_failure_raises_render_error():
    with patch("collegeplan.email_service.mjml_to_html", side_effect=ValueError("bad markup")):
        with pytest.raises(EmailRenderError) as exc_info:
            compile_mjml_to_html("<mjml></mjml>")
    assert "bad markup" in str(exc_info.value)
