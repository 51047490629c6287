"""Reminder service - Todo reminder batch job and reminder address management"""

import logging
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta, timezone
from typing import Optional, Protocol

from fastapi import HTTPException
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ...config import ReminderSettings
from ...email_service import EmailMessage, EmailRenderError, EmailSendError, render_todo_reminder
from ...email_templates import ReminderMode, ReminderTask, build_subject
from ...models import StudentReminderEmail, Todo
from ...utils.sanitization import normalize_optional_text
from .recipients import RecipientPlan, resolve_recipients
from .repository import ProfileRepository, ReminderEmailRepository, TodoRepository
from .schemas import (
    ManualReminderRequest,
    ReminderEmailCreate,
    ReminderEmailUpdate,
    ReminderRunRequest,
)

logger = logging.getLogger(__name__)


class EmailSender(Protocol):
    async def send(self, message: EmailMessage) -> str: ...


@dataclass(frozen=True)
class DateRange:
    start: date
    end: date


@dataclass
class RecipientResult:
    email: str
    owner_id: str
    success: bool
    message_id: Optional[str] = None
    error: Optional[str] = None


@dataclass
class ReminderRunResult:
    """Summary of one reminder run. Built per invocation, never stored."""

    mode: Optional[ReminderMode]
    date_range: Optional[DateRange]
    tasks_found: int = 0
    owners_processed: int = 0
    emails_sent: int = 0
    emails_failed: int = 0
    details: list[RecipientResult] = field(default_factory=list)


def compute_window(mode: ReminderMode, now: datetime) -> DateRange:
    """Due-date window [today, today + horizon] in UTC, both ends inclusive"""
    if now.tzinfo is not None:
        now = now.astimezone(timezone.utc)
    return DateRange(start=now.date(), end=(now + timedelta(days=mode.horizon_days)).date())


def group_by_owner(todos: list[Todo]) -> dict[str, list[Todo]]:
    grouped: dict[str, list[Todo]] = {}
    for todo in todos:
        grouped.setdefault(todo.author_id, []).append(todo)
    return grouped


async def dispatch_reminders(
    todos_by_owner: dict[str, list[Todo]],
    plan: RecipientPlan,
    result: ReminderRunResult,
    *,
    sender: EmailSender,
    from_address: str,
    now: datetime,
) -> None:
    """Send one email per (student, recipient) pair, recording each outcome in result"""
    for owner_id, owner_todos in todos_by_owner.items():
        result.owners_processed += 1
        recipients = plan.recipients_for(owner_id)
        if not recipients:
            logger.info(f"⏭️ No email addresses for student {owner_id}, skipping")
            continue

        owner_name = plan.name_for(owner_id)
        tasks = [ReminderTask(title=t.title, due_date=t.due_date) for t in owner_todos]
        try:
            content = render_todo_reminder(owner_name, tasks, result.mode, now)
        except EmailRenderError as e:
            logger.error(f"❌ Could not render reminder for student {owner_id}: {e}")
            result.emails_failed += len(recipients)
            result.details.extend(
                RecipientResult(email=email, owner_id=owner_id, success=False, error=str(e))
                for email in recipients
            )
            continue
        subject = build_subject(owner_name, len(tasks), result.mode)

        for email in recipients:
            message = EmailMessage(
                from_address=from_address,
                to=email,
                subject=subject,
                html=content.html,
                text=content.text,
            )
            try:
                message_id = await sender.send(message)
            except EmailSendError as e:
                logger.error(f"❌ Failed to send reminder to {email}: {e.detail}")
                result.emails_failed += 1
                result.details.append(
                    RecipientResult(email=email, owner_id=owner_id, success=False, error=e.detail)
                )
                continue
            except Exception as e:
                logger.error(f"❌ Exception sending reminder to {email}: {e}")
                result.emails_failed += 1
                result.details.append(
                    RecipientResult(
                        email=email, owner_id=owner_id, success=False, error=str(e) or repr(e)
                    )
                )
                continue

            logger.info(f"✅ Reminder sent to {email} for student {owner_id}: {message_id}")
            result.emails_sent += 1
            result.details.append(
                RecipientResult(email=email, owner_id=owner_id, success=True, message_id=message_id)
            )


async def run_reminder_job(
    request: ReminderRunRequest,
    *,
    settings: ReminderSettings,
    db: Session,
    sender: EmailSender,
    now: Optional[datetime] = None,
) -> ReminderRunResult:
    """
    Remind every student about pending todos due inside the mode's window.

    Raises:
        ReminderConfigurationError: store or provider credentials missing
        SQLAlchemyError: todos or profiles could not be loaded
    """
    settings.require_batch_config()
    now = now or datetime.now(timezone.utc)
    window = compute_window(request.mode, now)

    logger.info(f"📅 Reminder run in {request.mode.value} mode: {window.start} → {window.end}")

    todos = TodoRepository.get_pending_todos(db, window.start, window.end, request.testStudentId)
    result = ReminderRunResult(mode=request.mode, date_range=window, tasks_found=len(todos))

    if not todos:
        logger.info("✅ No todos found in the date range")
        return result

    todos_by_owner = group_by_owner(todos)
    logger.info(f"📋 Found {len(todos)} todos for {len(todos_by_owner)} students")

    plan = resolve_recipients(db, list(todos_by_owner))
    await dispatch_reminders(
        todos_by_owner,
        plan,
        result,
        sender=sender,
        from_address=settings.sender_address(),
        now=now,
    )

    logger.info(f"📧 Emails sent: {result.emails_sent}, failed: {result.emails_failed}")
    return result


async def send_owner_reminder(
    request: ManualReminderRequest,
    *,
    settings: ReminderSettings,
    db: Session,
    sender: EmailSender,
    now: Optional[datetime] = None,
) -> ReminderRunResult:
    """
    Send a one-off reminder for a single student.

    Without a mode every pending todo is included. A custom email replaces the
    student's usual recipients; otherwise the student's counselor is copied too.
    """
    settings.require_batch_config()
    now = now or datetime.now(timezone.utc)

    if request.mode:
        window = compute_window(request.mode, now)
        todos = TodoRepository.get_pending_todos(db, window.start, window.end, request.studentId)
    else:
        window = None
        todos = TodoRepository.get_all_pending_todos_for_owner(db, request.studentId)

    logger.info(f"📋 Manual reminder for student {request.studentId}: {len(todos)} pending todos")

    result = ReminderRunResult(mode=request.mode, date_range=window, tasks_found=len(todos))
    if not todos:
        return result

    todos_by_owner = {request.studentId: todos}
    if request.customEmail:
        profile = ProfileRepository.get_profile(db, request.studentId)
        plan = RecipientPlan(
            profiles={profile.id: profile} if profile else {},
            addresses={request.studentId: [request.customEmail]},
        )
    else:
        plan = resolve_recipients(db, [request.studentId], include_counselor=True)

    await dispatch_reminders(
        todos_by_owner,
        plan,
        result,
        sender=sender,
        from_address=settings.sender_address(request.domain),
        now=now,
    )
    return result


class ReminderEmailService:
    """Service layer for a student's extra reminder addresses"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = ReminderEmailRepository()

    def list_emails(self, student_id: str) -> list[StudentReminderEmail]:
        return self.repo.list_for_student(self.db, student_id)

    def get_email(self, reminder_email_id: str) -> StudentReminderEmail:
        reminder_email = self.repo.get_by_id(self.db, reminder_email_id)
        if not reminder_email:
            raise HTTPException(status_code=404, detail="Reminder email not found")
        return reminder_email

    def add_email(self, student_id: str, data: ReminderEmailCreate) -> StudentReminderEmail:
        if not ProfileRepository.get_profile(self.db, student_id):
            raise HTTPException(status_code=404, detail="Student not found")

        try:
            reminder_email = self.repo.create(
                self.db,
                student_id,
                email=data.email,
                name=normalize_optional_text(data.name),
                notes=normalize_optional_text(data.notes),
            )
        except IntegrityError as e:
            logger.warning(f"⚠️ Duplicate reminder email {data.email} for student {student_id}")
            raise HTTPException(
                status_code=409, detail="This email already exists for this student"
            ) from e

        logger.info(f"✅ Reminder email added for student {student_id}")
        return reminder_email

    def update_email(self, reminder_email_id: str, data: ReminderEmailUpdate) -> StudentReminderEmail:
        reminder_email = self.get_email(reminder_email_id)

        updates = {}
        fields = data.model_fields_set
        if "email" in fields and data.email is not None:
            updates["email"] = data.email
        if "name" in fields:
            updates["name"] = normalize_optional_text(data.name)
        if "notes" in fields:
            updates["notes"] = normalize_optional_text(data.notes)

        try:
            return self.repo.update(self.db, reminder_email, **updates)
        except IntegrityError as e:
            logger.warning(f"⚠️ Duplicate reminder email on update {reminder_email_id}")
            raise HTTPException(
                status_code=409, detail="This email already exists for this student"
            ) from e

    def delete_email(self, reminder_email_id: str) -> dict:
        reminder_email = self.get_email(reminder_email_id)
        self.repo.delete(self.db, reminder_email)
        return {"message": "Reminder email deleted"}
