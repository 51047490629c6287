import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from fastapi import Request

# Load .env from project root
env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(dotenv_path=env_path)

DATABASE_URL = os.getenv("DATABASE_URL")

# Hosted data store (service role key is used by the scheduler to call the batch job)
SUPABASE_SERVICE_ROLE_KEY = os.getenv("SUPABASE_SERVICE_ROLE_KEY")
SUPABASE_JWT_SECRET = os.getenv("SUPABASE_JWT_SECRET")

# Resend Email Configuration
RESEND_API_KEY = os.getenv("RESEND_API_KEY")
RESEND_API_URL = os.getenv("RESEND_API_URL", "https://api.resend.com")
REMINDER_EMAIL_DOMAIN = os.getenv("REMINDER_EMAIL_DOMAIN", "dreamplaneredu.com")
REMINDER_FROM_NAME = os.getenv("REMINDER_FROM_NAME", "DreamPlane")

# Frontend origin allowed by CORS
FRONTEND_URL = os.getenv("FRONTEND_URL", "http://localhost:5173")


class ReminderConfigurationError(Exception):
    """Raised when the reminder job is missing required configuration"""

    def __init__(self, missing: list[str]):
        self.missing = missing
        super().__init__(f"Missing configuration: {', '.join(missing)}")


@dataclass(frozen=True)
class ReminderSettings:
    """Configuration handed to the reminder job. Built once at startup."""

    database_url: Optional[str]
    service_role_key: Optional[str]
    jwt_secret: Optional[str]
    resend_api_key: Optional[str]
    resend_api_url: str = "https://api.resend.com"
    email_domain: str = "dreamplaneredu.com"
    from_name: str = "DreamPlane"

    def require_batch_config(self) -> None:
        """Raise ReminderConfigurationError unless store and provider credentials are set"""
        missing = []
        if not self.database_url:
            missing.append("DATABASE_URL")
        if not self.resend_api_key:
            missing.append("RESEND_API_KEY")
        if missing:
            raise ReminderConfigurationError(missing)

    def sender_address(self, domain: Optional[str] = None) -> str:
        return f"{self.from_name} <reminder@{domain or self.email_domain}>"

    @property
    def resend_key_format_valid(self) -> bool:
        # Resend API keys always start with "re_"
        return bool(self.resend_api_key) and self.resend_api_key.startswith("re_")


def load_reminder_settings() -> ReminderSettings:
    """Build ReminderSettings from the environment"""
    return ReminderSettings(
        database_url=DATABASE_URL,
        service_role_key=SUPABASE_SERVICE_ROLE_KEY,
        jwt_secret=SUPABASE_JWT_SECRET,
        resend_api_key=RESEND_API_KEY,
        resend_api_url=RESEND_API_URL,
        email_domain=REMINDER_EMAIL_DOMAIN,
        from_name=REMINDER_FROM_NAME,
    )


def get_reminder_settings(request: Request) -> ReminderSettings:
    """FastAPI dependency returning the settings built at startup"""
    settings = getattr(request.app.state, "reminder_settings", None)
    if settings is None:
        settings = load_reminder_settings()
        request.app.state.reminder_settings = settings
    return settings
