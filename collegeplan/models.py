import uuid

from sqlalchemy import (
    Boolean,
    Column,
    Date,
    DateTime,
    ForeignKey,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from .database import Base


def generate_uuid():
    """Generate a string UUID primary key"""
    return str(uuid.uuid4())


class Profile(Base):
    __tablename__ = "profiles"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    full_name = Column(String(255), nullable=True)
    email = Column(String(255), nullable=True, index=True)
    user_type = Column(String(50), nullable=True)  # student, counselor, admin
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    todos = relationship("Todo", back_populates="author", cascade="all, delete-orphan")
    reminder_emails = relationship(
        "StudentReminderEmail", back_populates="student", cascade="all, delete-orphan"
    )


class Todo(Base):
    __tablename__ = "todos"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    title = Column(String(500), nullable=False)
    due_date = Column(Date, nullable=True, index=True)  # Undated todos never enter a reminder window
    completed = Column(Boolean, default=False, nullable=False, index=True)
    starred = Column(Boolean, default=False, nullable=False)
    author_id = Column(String(36), ForeignKey("profiles.id"), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    author = relationship("Profile", back_populates="todos")


class StudentReminderEmail(Base):
    """Extra address (parent, guardian...) that receives a student's todo reminders"""

    __tablename__ = "student_reminder_emails"
    __table_args__ = (
        UniqueConstraint("student_id", "email", name="uq_student_reminder_emails_student_email"),
    )

    id = Column(String(36), primary_key=True, default=generate_uuid)
    student_id = Column(String(36), ForeignKey("profiles.id"), nullable=False, index=True)
    email = Column(String(255), nullable=False)
    name = Column(String(255), nullable=True)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    student = relationship("Profile", back_populates="reminder_emails")


class CounselorStudentRelationship(Base):
    __tablename__ = "counselor_student_relationships"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    counselor_id = Column(String(36), ForeignKey("profiles.id"), nullable=False, index=True)
    student_id = Column(String(36), ForeignKey("profiles.id"), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
