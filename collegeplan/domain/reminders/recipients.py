"""Resolve which addresses receive a student's todo reminder"""

import logging
from dataclasses import dataclass, field

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ...models import Profile
from .repository import ProfileRepository, ReminderEmailRepository

logger = logging.getLogger(__name__)


@dataclass
class RecipientPlan:
    profiles: dict[str, Profile] = field(default_factory=dict)
    addresses: dict[str, list[str]] = field(default_factory=dict)

    def recipients_for(self, owner_id: str) -> list[str]:
        return self.addresses.get(owner_id, [])

    def name_for(self, owner_id: str, default: str = "Student") -> str:
        profile = self.profiles.get(owner_id)
        return (profile.full_name if profile else None) or default


def _append_unique(addresses: list[str], email) -> None:
    # Exact string match only: "A@x.com" and "a@x.com" are two recipients
    if email and email not in addresses:
        addresses.append(email)


def resolve_recipients(
    db: Session, owner_ids: list[str], include_counselor: bool = False
) -> RecipientPlan:
    """
    Build owner -> addresses: the profile email first, then every extra
    reminder address, then (optionally) the student's counselor.

    Profile lookup failures propagate. Failures fetching extra addresses or
    counselors are logged and the run continues without them.
    """
    plan = RecipientPlan(addresses={owner_id: [] for owner_id in owner_ids})

    for profile in ProfileRepository.get_profiles(db, owner_ids):
        plan.profiles[profile.id] = profile
        _append_unique(plan.addresses[profile.id], profile.email)

    try:
        extra_emails = ReminderEmailRepository.get_for_students(db, owner_ids)
    except SQLAlchemyError as e:
        db.rollback()
        logger.warning(f"⚠️ Could not load extra reminder emails, using profile emails only: {e}")
        extra_emails = []

    for extra in extra_emails:
        _append_unique(plan.addresses.setdefault(extra.student_id, []), extra.email)

    if include_counselor:
        for owner_id in owner_ids:
            try:
                counselor = ProfileRepository.get_counselor_for_student(db, owner_id)
            except SQLAlchemyError as e:
                db.rollback()
                logger.warning(f"⚠️ Could not load counselor for student {owner_id}: {e}")
                continue
            if counselor:
                _append_unique(plan.addresses[owner_id], counselor.email)

    return plan
