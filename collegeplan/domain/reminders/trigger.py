"""
Manual reminder trigger
Calls the single-student reminder endpoint and turns the outcome into
success / warning / error / info feedback for whoever triggered it.
"""

import logging
from dataclasses import dataclass
from typing import Optional, Protocol

import httpx

logger = logging.getLogger(__name__)

SUCCESS = "success"
WARNING = "warning"
ERROR = "error"
INFO = "info"

CONNECTIVITY_MESSAGE = (
    "Could not reach the reminder service. The hosting platform may be asleep "
    "or the network is down - please retry in a moment."
)
SERVER_ERROR_MESSAGE = (
    "Server error from the reminder service. Check the email provider API key "
    "and the service logs."
)
DOMAIN_HINT = "Verify the sending domain with the email provider."
API_KEY_HINT = "Check the email provider API key."


class FeedbackReporter(Protocol):
    def loading(self, message: str) -> None: ...

    def success(self, message: str) -> None: ...

    def warning(self, message: str) -> None: ...

    def error(self, message: str) -> None: ...

    def info(self, message: str) -> None: ...


class LoggingReporter:
    """Reports feedback to a logger, for scripts and scheduled callers"""

    def __init__(self, log: Optional[logging.Logger] = None):
        self.log = log or logger

    def loading(self, message: str) -> None:
        self.log.info(f"⏳ {message}")

    def success(self, message: str) -> None:
        self.log.info(f"✅ {message}")

    def warning(self, message: str) -> None:
        self.log.warning(f"⚠️ {message}")

    def error(self, message: str) -> None:
        self.log.error(f"❌ {message}")

    def info(self, message: str) -> None:
        self.log.info(f"ℹ️ {message}")


@dataclass
class TriggerOutcome:
    kind: str
    message: str
    response: Optional[dict] = None
    connectivity_error: bool = False


def provider_hint(error_text: str) -> Optional[str]:
    """Suggest a fix for known email provider errors"""
    lowered = (error_text or "").lower()
    if "from_address_not_allowed" in lowered or "domain" in lowered:
        return DOMAIN_HINT
    if "unauthorized" in lowered or "api key" in lowered or "api_key" in lowered:
        return API_KEY_HINT
    return None


def _with_hint(message: str, error_text: str) -> str:
    hint = provider_hint(error_text)
    return f"{message} {hint}" if hint else message


def classify_response(data: dict) -> TriggerOutcome:
    """Map a reminder endpoint response body to a feedback category"""
    if data.get("error"):
        error_text = f"{data.get('error')} {data.get('message') or ''}".strip()
        return TriggerOutcome(
            ERROR, _with_hint(f"Reminder failed: {error_text}", error_text), data
        )

    if not data.get("todosFound"):
        return TriggerOutcome(INFO, "This student has no pending todos - nothing to send.", data)

    sent = data.get("emailsSent", 0)
    failed = data.get("emailsFailed", 0)
    details = data.get("details") or []
    failures = [d for d in details if not d.get("success")]
    delivered = [d["email"] for d in details if d.get("success")]
    first_error = failures[0].get("error", "") if failures else ""

    if sent == 0 and failed > 0:
        return TriggerOutcome(
            ERROR,
            _with_hint(f"Reminder could not be sent to any recipient: {first_error}", first_error),
            data,
        )

    if sent == 0:
        return TriggerOutcome(
            WARNING, "No valid recipient email address was found for this student.", data
        )

    if failed > 0:
        recipients = f" (sent to: {', '.join(delivered)})" if delivered else ""
        return TriggerOutcome(
            WARNING,
            _with_hint(
                f"Reminder partially sent: {sent} sent, {failed} failed{recipients}. {first_error}",
                first_error,
            ),
            data,
        )

    recipients = f" (sent to: {', '.join(delivered)})" if delivered else ""
    return TriggerOutcome(SUCCESS, f"Reminder sent to {sent} recipient(s){recipients}", data)


class ReminderTrigger:
    """Client for the single-student reminder endpoint"""

    def __init__(
        self,
        base_url: str,
        access_token: str,
        reporter: FeedbackReporter,
        timeout: float = 15.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.access_token = access_token
        self.reporter = reporter
        self.timeout = timeout
        self.transport = transport

    def _report(self, outcome: TriggerOutcome) -> TriggerOutcome:
        getattr(self.reporter, outcome.kind)(outcome.message)
        return outcome

    async def send(
        self,
        student_id: str,
        pending_count: int,
        custom_email: Optional[str] = None,
        domain: Optional[str] = None,
        mode: Optional[str] = None,
    ) -> TriggerOutcome:
        if not student_id:
            raise ValueError("No student ID provided")

        if custom_email is not None and not custom_email.strip():
            return self._report(TriggerOutcome(ERROR, "Please enter an email address."))

        if pending_count <= 0:
            return self._report(
                TriggerOutcome(INFO, "This student has no pending todos - nothing to send.")
            )

        payload = {"studentId": student_id, "debug": True}
        if custom_email:
            payload["customEmail"] = custom_email.strip()
        if domain:
            payload["domain"] = domain
        if mode:
            payload["mode"] = mode

        self.reporter.loading("Sending reminder...")
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.post(
                    f"{self.base_url}/reminders/test",
                    headers={"Authorization": f"Bearer {self.access_token}"},
                    json=payload,
                )
        except httpx.TransportError as e:
            logger.error(f"❌ Reminder endpoint unreachable: {e}")
            return self._report(TriggerOutcome(ERROR, CONNECTIVITY_MESSAGE, connectivity_error=True))

        if not response.is_success:
            logger.error(f"❌ Reminder endpoint returned {response.status_code}: {response.text}")
            return self._report(TriggerOutcome(ERROR, SERVER_ERROR_MESSAGE))

        try:
            data = response.json()
        except ValueError:
            return self._report(
                TriggerOutcome(WARNING, f"Unexpected response from reminder service: {response.text}")
            )

        return self._report(classify_response(data))
