"""Reminder domain schemas - Pydantic models for validation"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, field_validator

from ...email_templates import ReminderMode


class ReminderRunRequest(BaseModel):
    """Body of the scheduled/batch reminder run"""

    model_config = ConfigDict(extra="forbid")

    mode: ReminderMode = ReminderMode.WEEKLY
    testStudentId: Optional[str] = None  # restricts the run to one student
    debug: bool = False


class ManualReminderRequest(BaseModel):
    """Body of the single-student "send test reminder" action"""

    model_config = ConfigDict(extra="forbid")

    studentId: str
    customEmail: Optional[str] = None
    debug: bool = False
    domain: Optional[str] = None
    mode: Optional[ReminderMode] = None  # None sends every pending todo

    @field_validator("studentId")
    @classmethod
    def validate_student_id(cls, v):
        if not v or not v.strip():
            raise ValueError("Student ID is required")
        return v.strip()

    @field_validator("customEmail")
    @classmethod
    def validate_custom_email(cls, v):
        if v is None:
            return v
        if not v.strip():
            raise ValueError("Recipient email must not be blank")
        return v.strip()


class DateRangeResponse(BaseModel):
    start: str
    end: str


class RecipientResultResponse(BaseModel):
    email: str
    studentId: str
    success: bool
    messageId: Optional[str] = None
    error: Optional[str] = None


class ReminderRunResponse(BaseModel):
    success: bool = True
    mode: Optional[str] = None
    dateRange: Optional[DateRangeResponse] = None
    todosFound: int
    studentsProcessed: int
    emailsSent: int
    emailsFailed: int
    details: Optional[list[RecipientResultResponse]] = None


class ReminderEmailCreate(BaseModel):
    """Schema for adding an extra reminder address to a student"""

    email: str
    name: Optional[str] = None
    notes: Optional[str] = None

    @field_validator("email")
    @classmethod
    def validate_email(cls, v):
        if not v or not v.strip():
            raise ValueError("Please enter an email address")
        return v.strip()


class ReminderEmailUpdate(BaseModel):
    email: Optional[str] = None
    name: Optional[str] = None
    notes: Optional[str] = None

    @field_validator("email")
    @classmethod
    def validate_email(cls, v):
        if v is not None and not v.strip():
            raise ValueError("Please enter an email address")
        return v.strip() if v else v


class ReminderEmailResponse(BaseModel):
    id: str
    studentId: str
    email: str
    name: Optional[str] = None
    notes: Optional[str] = None
