import enum
from datetime import datetime

from sqlalchemy import or_
from sqlalchemy.orm import Session

from models.reminder import Reminder


class ReminderSlot(str, enum.Enum):
    morning = "morning"
    noon = "noon"
    night = "night"

    @property
    def label(self) -> str:
        return self.value.capitalize()

    @classmethod
    def parse(cls, value: "str | ReminderSlot") -> "ReminderSlot":
        try:
            return cls((value.value if isinstance(value, cls) else str(value)).strip().lower())
        except ValueError:
            raise ValueError(f"Unknown reminder slot '{value}'. Use morning, noon or night.") from None


def get_due_reminders(db: Session, slot: ReminderSlot, now: datetime | None = None) -> list[Reminder]:
    """Active reminders scheduled for `slot` whose course covers `now`."""
    now = now or datetime.now()
    slot_column = getattr(Reminder, ReminderSlot.parse(slot).value)
    return (
        db.query(Reminder)
        .filter(
            Reminder.is_active == True,  # noqa: E712
            slot_column == True,  # noqa: E712
            Reminder.start_date <= now,
            or_(Reminder.end_date.is_(None), Reminder.end_date >= now),
        )
        .order_by(Reminder.user_id.asc(), Reminder.id.asc())
        .all()
    )


def list_user_reminders(db: Session, user_id: int, active_only: bool = True) -> list[Reminder]:
    q = db.query(Reminder).filter(Reminder.user_id == user_id)
    if active_only:
        q = q.filter(Reminder.is_active == True)  # noqa: E712
    return q.order_by(Reminder.created_at.desc(), Reminder.id.desc()).all()


def list_prescription_reminders(db: Session, prescription_id: int) -> list[Reminder]:
    return (
        db.query(Reminder)
        .filter(Reminder.prescription_id == prescription_id)
        .order_by(Reminder.id.asc())
        .all()
    )


def mark_notified(db: Session, reminder_ids: list[int], now: datetime | None = None) -> int:
    if not reminder_ids:
        return 0
    return (
        db.query(Reminder)
        .filter(Reminder.id.in_(reminder_ids))
        .update({"last_notified_at": now or datetime.now()})
    )


def set_prescription_active(db: Session, prescription_id: int, active: bool, now: datetime | None = None) -> int:
    """Flip `is_active` on a prescription's reminders.

    Reactivation skips records whose course already ended.
    """
    q = db.query(Reminder).filter(Reminder.prescription_id == prescription_id)
    if active:
        now = now or datetime.now()
        q = q.filter(or_(Reminder.end_date.is_(None), Reminder.end_date >= now))
    return q.update({"is_active": active})


def delete_prescription_reminders(db: Session, prescription_id: int) -> int:
    return (
        db.query(Reminder)
        .filter(Reminder.prescription_id == prescription_id)
        .delete()
    )


def deactivate_expired(db: Session, now: datetime | None = None) -> int:
    now = now or datetime.now()
    return (
        db.query(Reminder)
        .filter(
            Reminder.is_active == True,  # noqa: E712
            Reminder.end_date.isnot(None),
            Reminder.end_date < now,
        )
        .update({"is_active": False})
    )
