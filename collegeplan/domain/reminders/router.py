"""Reminder router - FastAPI endpoints for todo reminders and reminder addresses"""

import logging
from typing import Optional

from fastapi import APIRouter, Body, Depends, HTTPException, Query
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ...auth import require_admin, require_operator, verify_service_key
from ...config import ReminderConfigurationError, ReminderSettings, get_reminder_settings
from ...database import get_db
from ...email_service import (
    EmailSendError,
    ResendEmailSender,
    check_sending_domain,
    get_email_status,
)
from ...models import Profile, StudentReminderEmail
from .schemas import (
    DateRangeResponse,
    ManualReminderRequest,
    RecipientResultResponse,
    ReminderEmailCreate,
    ReminderEmailResponse,
    ReminderEmailUpdate,
    ReminderRunRequest,
    ReminderRunResponse,
)
from .service import ReminderEmailService, ReminderRunResult, run_reminder_job, send_owner_reminder

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Reminders"])


def get_email_sender(
    settings: ReminderSettings = Depends(get_reminder_settings),
) -> ResendEmailSender:
    """Dependency injection for the email sender"""
    return ResendEmailSender.from_settings(settings)


def get_reminder_email_service(db: Session = Depends(get_db)) -> ReminderEmailService:
    """Dependency injection for ReminderEmailService"""
    return ReminderEmailService(db)


def to_run_response(result: ReminderRunResult, debug: bool) -> ReminderRunResponse:
    date_range = None
    if result.date_range:
        date_range = DateRangeResponse(
            start=result.date_range.start.isoformat(), end=result.date_range.end.isoformat()
        )

    details = None
    if debug:
        details = [
            RecipientResultResponse(
                email=d.email,
                studentId=d.owner_id,
                success=d.success,
                messageId=d.message_id,
                error=d.error,
            )
            for d in result.details
        ]

    return ReminderRunResponse(
        success=True,
        mode=result.mode.value if result.mode else None,
        dateRange=date_range,
        todosFound=result.tasks_found,
        studentsProcessed=result.owners_processed,
        emailsSent=result.emails_sent,
        emailsFailed=result.emails_failed,
        details=details,
    )


def to_reminder_email_response(reminder_email: StudentReminderEmail) -> ReminderEmailResponse:
    return ReminderEmailResponse(
        id=reminder_email.id,
        studentId=reminder_email.student_id,
        email=reminder_email.email,
        name=reminder_email.name,
        notes=reminder_email.notes,
    )


# ============================================================================
# REMINDER RUNS
# ============================================================================


@router.post("/reminders/run")
async def run_reminders(
    data: Optional[ReminderRunRequest] = Body(None),
    _: None = Depends(verify_service_key),
    settings: ReminderSettings = Depends(get_reminder_settings),
    db: Session = Depends(get_db),
    sender: ResendEmailSender = Depends(get_email_sender),
):
    """Scheduled batch run: remind every student with todos due in the mode's window"""
    request = data or ReminderRunRequest()
    try:
        result = await run_reminder_job(request, settings=settings, db=db, sender=sender)
    except ReminderConfigurationError as e:
        logger.error(f"❌ Reminder run aborted: {e}")
        return JSONResponse(
            status_code=500, content={"error": "configuration_error", "message": str(e)}
        )
    except SQLAlchemyError as e:
        logger.error(f"❌ Reminder run query failed: {e}")
        return JSONResponse(status_code=500, content={"error": "query_error", "message": str(e)})

    return JSONResponse(content=to_run_response(result, request.debug).model_dump(exclude_none=True))


@router.post("/reminders/test")
async def send_test_reminder(
    data: ManualReminderRequest,
    current_user: Profile = Depends(require_operator),
    settings: ReminderSettings = Depends(get_reminder_settings),
    db: Session = Depends(get_db),
    sender: ResendEmailSender = Depends(get_email_sender),
):
    """
    Send a one-off reminder for one student.
    Failures are reported in the body with HTTP 200 so the caller can tell them
    apart from the endpoint being unreachable.
    """
    logger.info(f"📨 Manual reminder for student {data.studentId} requested by {current_user.id}")
    try:
        result = await send_owner_reminder(data, settings=settings, db=db, sender=sender)
    except ReminderConfigurationError as e:
        logger.error(f"❌ Manual reminder aborted: {e}")
        return {"error": "Email service configuration is missing", "message": str(e)}
    except SQLAlchemyError as e:
        logger.error(f"❌ Manual reminder query failed: {e}")
        return {"error": "Failed to load todos", "message": str(e)}

    return to_run_response(result, data.debug).model_dump(exclude_none=True)


@router.get("/reminders/emails/{email_id}")
async def get_reminder_email_status(
    email_id: str,
    current_user: Profile = Depends(require_admin),
    settings: ReminderSettings = Depends(get_reminder_settings),
):
    """Delivery status of a sent reminder email"""
    try:
        return get_email_status(settings, email_id)
    except EmailSendError as e:
        raise HTTPException(status_code=502, detail=f"Resend retrieve failed: {e.detail}") from e


@router.get("/reminders/email-config")
async def get_reminder_email_config(
    domain: Optional[str] = Query(None),
    current_user: Profile = Depends(require_admin),
    settings: ReminderSettings = Depends(get_reminder_settings),
):
    """Check the Resend API key and sending domain used for reminders"""
    return check_sending_domain(settings, domain)


# ============================================================================
# STUDENT REMINDER EMAILS
# ============================================================================


@router.get("/students/{student_id}/reminder-emails", response_model=list[ReminderEmailResponse])
async def list_reminder_emails(
    student_id: str,
    current_user: Profile = Depends(require_operator),
    service: ReminderEmailService = Depends(get_reminder_email_service),
):
    """Extra addresses that receive this student's reminders"""
    return [to_reminder_email_response(e) for e in service.list_emails(student_id)]


@router.post(
    "/students/{student_id}/reminder-emails",
    response_model=ReminderEmailResponse,
    status_code=201,
)
async def add_reminder_email(
    student_id: str,
    data: ReminderEmailCreate,
    current_user: Profile = Depends(require_operator),
    service: ReminderEmailService = Depends(get_reminder_email_service),
):
    return to_reminder_email_response(service.add_email(student_id, data))


@router.patch("/reminder-emails/{reminder_email_id}", response_model=ReminderEmailResponse)
async def update_reminder_email(
    reminder_email_id: str,
    data: ReminderEmailUpdate,
    current_user: Profile = Depends(require_operator),
    service: ReminderEmailService = Depends(get_reminder_email_service),
):
    return to_reminder_email_response(service.update_email(reminder_email_id, data))


@router.delete("/reminder-emails/{reminder_email_id}")
async def delete_reminder_email(
    reminder_email_id: str,
    current_user: Profile = Depends(require_operator),
    service: ReminderEmailService = Depends(get_reminder_email_service),
):
    return service.delete_email(reminder_email_id)
