"""Reminder repository - Database operations for todos, profiles and reminder addresses"""

from datetime import date
from typing import Optional

from sqlalchemy.orm import Session

from ...models import CounselorStudentRelationship, Profile, StudentReminderEmail, Todo


class TodoRepository:
    """Read-only todo queries used by the reminder job"""

    @staticmethod
    def get_pending_todos(
        db: Session, start: date, end: date, owner_id: Optional[str] = None
    ) -> list[Todo]:
        """Uncompleted todos due between start and end (inclusive)"""
        query = db.query(Todo).filter(
            Todo.completed.is_(False),
            Todo.due_date.isnot(None),
            Todo.due_date >= start,
            Todo.due_date <= end,
        )

        if owner_id:
            query = query.filter(Todo.author_id == owner_id)

        return query.order_by(Todo.due_date.asc(), Todo.id.asc()).all()

    @staticmethod
    def get_all_pending_todos_for_owner(db: Session, owner_id: str) -> list[Todo]:
        """Every uncompleted todo of one student, dated or not"""
        return (
            db.query(Todo)
            .filter(Todo.author_id == owner_id, Todo.completed.is_(False))
            .order_by(Todo.due_date.asc(), Todo.id.asc())
            .all()
        )


class ProfileRepository:
    @staticmethod
    def get_profiles(db: Session, profile_ids: list[str]) -> list[Profile]:
        if not profile_ids:
            return []
        return db.query(Profile).filter(Profile.id.in_(profile_ids)).all()

    @staticmethod
    def get_profile(db: Session, profile_id: str) -> Optional[Profile]:
        return db.query(Profile).filter(Profile.id == profile_id).first()

    @staticmethod
    def get_counselor_for_student(db: Session, student_id: str) -> Optional[Profile]:
        return (
            db.query(Profile)
            .join(
                CounselorStudentRelationship,
                CounselorStudentRelationship.counselor_id == Profile.id,
            )
            .filter(CounselorStudentRelationship.student_id == student_id)
            .order_by(CounselorStudentRelationship.created_at.asc())
            .first()
        )


class ReminderEmailRepository:
    """Repository for a student's extra reminder addresses"""

    @staticmethod
    def get_for_students(db: Session, student_ids: list[str]) -> list[StudentReminderEmail]:
        if not student_ids:
            return []
        return (
            db.query(StudentReminderEmail)
            .filter(StudentReminderEmail.student_id.in_(student_ids))
            .order_by(StudentReminderEmail.created_at.asc(), StudentReminderEmail.email.asc())
            .all()
        )

    @staticmethod
    def list_for_student(db: Session, student_id: str) -> list[StudentReminderEmail]:
        return (
            db.query(StudentReminderEmail)
            .filter(StudentReminderEmail.student_id == student_id)
            .order_by(StudentReminderEmail.name.asc(), StudentReminderEmail.email.asc())
            .all()
        )

    @staticmethod
    def get_by_id(db: Session, reminder_email_id: str) -> Optional[StudentReminderEmail]:
        return (
            db.query(StudentReminderEmail)
            .filter(StudentReminderEmail.id == reminder_email_id)
            .first()
        )

    @staticmethod
    def create(db: Session, student_id: str, **data) -> StudentReminderEmail:
        """Insert an address. Raises IntegrityError on a duplicate (student_id, email)."""
        reminder_email = StudentReminderEmail(student_id=student_id, **data)
        db.add(reminder_email)
        try:
            db.commit()
        except Exception:
            db.rollback()
            raise
        db.refresh(reminder_email)
        return reminder_email

    @staticmethod
    def update(db: Session, reminder_email: StudentReminderEmail, **updates) -> StudentReminderEmail:
        for key, value in updates.items():
            if hasattr(reminder_email, key):
                setattr(reminder_email, key, value)
        try:
            db.commit()
        except Exception:
            db.rollback()
            raise
        db.refresh(reminder_email)
        return reminder_email

    @staticmethod
    def delete(db: Session, reminder_email: StudentReminderEmail) -> None:
        db.delete(reminder_email)
        db.commit()
