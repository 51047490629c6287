import asyncio
from dataclasses import replace
from datetime import datetime, timedelta, timezone

import pytest

from collegeplan import worker
from collegeplan.config import ReminderConfigurationError
from collegeplan.email_templates import ReminderMode

from .conftest import make_profile, make_todo


@pytest.fixture
def scheduled(db_session, settings, resend_api, monkeypatch):
    class SenderFactory:
        @staticmethod
        def from_settings(s):
            return resend_api.sender(s)

    monkeypatch.setattr(worker, "SessionLocal", lambda: db_session)
    monkeypatch.setattr(worker, "ResendEmailSender", SenderFactory)
    return {"reminder_settings": settings}


def test_scheduled_run_returns_summary(db_session, scheduled, resend_api):
    student = make_profile(db_session, "Mia", "mia@example.org")
    tomorrow = (datetime.now(timezone.utc) + timedelta(days=1)).date()
    make_todo(db_session, student, "Essay", tomorrow)

    summary = asyncio.run(worker.urgent_reminders_task(scheduled))

    assert summary == {
        "mode": "urgent",
        "todos_found": 1,
        "students_processed": 1,
        "emails_sent": 1,
        "emails_failed": 0,
    }
    assert resend_api.recipients == ["mia@example.org"]


def test_scheduled_run_propagates_configuration_errors(scheduled, settings):
    scheduled["reminder_settings"] = replace(settings, resend_api_key=None)
    with pytest.raises(ReminderConfigurationError):
        asyncio.run(worker.run_scheduled_reminders(scheduled, ReminderMode.WEEKLY))


def test_cron_schedule_covers_every_mode():
    names = {job.name for job in worker.WorkerSettings.cron_jobs}
    assert names == {
        "cron:monthly_reminders_task",
        "cron:weekly_reminders_task",
        "cron:urgent_reminders_task",
    }
    assert worker.WorkerSettings.max_tries == 1
