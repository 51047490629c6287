"""
Reminder Email Service using Resend
Compiles MJML templates and delivers reminder emails through the Resend REST API
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Sequence

import httpx
import resend
from mjml import mjml_to_html

from .config import ReminderSettings
from .email_templates import (
    ReminderMode,
    ReminderTask,
    RenderedEmail,
    sort_tasks,
    todo_reminder_template,
    todo_reminder_text,
)

logger = logging.getLogger(__name__)


class EmailSendError(Exception):
    """Raised when the email provider rejects or cannot process a send request"""

    def __init__(self, detail: str, status_code: Optional[int] = None):
        self.detail = detail
        self.status_code = status_code
        super().__init__(detail)


class EmailRenderError(Exception):
    """Raised when a reminder email cannot be compiled to HTML"""


@dataclass(frozen=True)
class EmailMessage:
    from_address: str
    to: str
    subject: str
    html: str
    text: str

    def to_payload(self) -> dict:
        return {
            "from": self.from_address,
            "to": [self.to],
            "subject": self.subject,
            "html": self.html,
            "text": self.text,
        }


def compile_mjml_to_html(mjml_content: str) -> str:
    """Compile MJML template to production-ready HTML"""
    try:
        result = mjml_to_html(mjml_content)
        # mjml_to_html returns a dict with 'html' and 'errors' keys
        if isinstance(result, dict):
            if result.get("errors"):
                logger.warning(f"MJML compilation warnings: {result['errors']}")
            return result.get("html", "")
        return str(result)
    except Exception as e:
        logger.error(f"MJML compilation error: {e}")
        raise EmailRenderError(f"Failed to compile MJML template: {str(e)}") from e


def render_todo_reminder(
    owner_name: str,
    tasks: Sequence[ReminderTask],
    mode: Optional[ReminderMode],
    now: datetime,
) -> RenderedEmail:
    """Render the HTML and plain-text bodies of a todo reminder"""
    sorted_tasks = sort_tasks(tasks)
    html = compile_mjml_to_html(todo_reminder_template(owner_name, sorted_tasks, mode, now))
    text = todo_reminder_text(owner_name, sorted_tasks, mode, now)
    return RenderedEmail(html=html, text=text)


class ResendEmailSender:
    """Sends one email per call through the Resend REST API"""

    # Posts to the REST endpoint directly instead of resend.Emails.send so a
    # rejected send keeps the provider's raw error body verbatim

    def __init__(
        self,
        api_key: str,
        api_url: str = "https://api.resend.com",
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = api_key
        self.api_url = api_url.rstrip("/")
        self.timeout = timeout
        self.transport = transport

    @classmethod
    def from_settings(
        cls, settings: ReminderSettings, transport: Optional[httpx.AsyncBaseTransport] = None
    ) -> "ResendEmailSender":
        return cls(settings.resend_api_key or "", settings.resend_api_url, transport=transport)

    async def send(self, message: EmailMessage) -> str:
        """
        Send a message and return the provider message id.

        Raises:
            EmailSendError: non-2xx response (body kept verbatim) or a response without an id
            httpx.HTTPError: transport failures
        """
        async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
            response = await client.post(
                f"{self.api_url}/emails",
                headers={
                    "Authorization": f"Bearer {self.api_key}",
                    "Content-Type": "application/json",
                },
                json=message.to_payload(),
            )

        if not response.is_success:
            raise EmailSendError(response.text, status_code=response.status_code)

        try:
            message_id = response.json().get("id")
        except (ValueError, AttributeError) as e:
            raise EmailSendError(f"Malformed provider response: {response.text}") from e
        if not message_id:
            raise EmailSendError(f"Malformed provider response: {response.text}")

        return message_id


# ============================================
# Resend account checks (resend SDK)
# ============================================


def get_email_status(settings: ReminderSettings, email_id: str) -> dict:
    """Fetch delivery information for a sent email"""
    if not settings.resend_api_key:
        raise EmailSendError("RESEND_API_KEY is not configured")

    resend.api_key = settings.resend_api_key
    try:
        return dict(resend.Emails.get(email_id))
    except Exception as e:
        logger.error(f"❌ Resend status lookup failed for {email_id}: {e}")
        raise EmailSendError(str(e)) from e


def check_sending_domain(settings: ReminderSettings, domain: Optional[str] = None) -> dict:
    """Report whether the API key looks valid and whether the sending domain is verified"""
    domain = domain or settings.email_domain
    report = {
        "apiKeyConfigured": bool(settings.resend_api_key),
        "apiKeyFormatValid": settings.resend_key_format_valid,
        "domain": domain,
        "domainStatus": "unknown",
        "error": None,
    }
    if not settings.resend_api_key:
        report["error"] = "missing_api_key"
        return report

    resend.api_key = settings.resend_api_key
    try:
        result = resend.Domains.list()
    except Exception as e:
        logger.warning(f"⚠️ Could not list Resend domains: {e}")
        report["error"] = str(e)
        return report

    domains = result.get("data", []) if isinstance(result, dict) else result
    match = next((d for d in domains or [] if d.get("name") == domain), None)
    report["domainStatus"] = match.get("status", "unknown") if match else "not_found"
    if report["domainStatus"] != "verified":
        logger.warning(f"⚠️ Sending domain {domain} is not verified ({report['domainStatus']})")
    return report
