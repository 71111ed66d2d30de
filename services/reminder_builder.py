import logging
from collections import defaultdict
from dataclasses import dataclass, asdict
from datetime import datetime

from sqlalchemy.orm import Session

from config import reminder_timings
from models.reminder import Reminder
from services.dosage_parser import ParsedDosage, calculate_end_date, parse_dosage_schedule
from services.reminder_store import list_prescription_reminders

logger = logging.getLogger("dosealert.reminders")


@dataclass
class PlannedReminder:
    """What one medicine line should look like as a reminder record."""
    medicine_name: str
    dosage: str
    duration: str | None
    schedule: ParsedDosage
    end_date: datetime | None

    @property
    def key(self) -> str:
        return _medicine_key(self.medicine_name)


@dataclass
class SyncResult:
    created: int = 0
    updated: int = 0
    unchanged: int = 0
    removed: int = 0

    def to_dict(self):
        return asdict(self)


def _field(medicine, name: str):
    if isinstance(medicine, dict):
        return medicine.get(name)
    return getattr(medicine, name, None)


def _text(value) -> str:
    return value.strip() if isinstance(value, str) else ""


def _medicine_key(name: str) -> str:
    return " ".join((name or "").lower().split())


def plan_reminder(medicine, now: datetime) -> PlannedReminder | None:
    """Parse one medicine line. None means no reminder should exist for it."""
    frequency = _text(_field(medicine, "frequency"))
    dosage = _text(_field(medicine, "dosage"))
    schedule_text = frequency or dosage
    if not schedule_text:
        return None
    schedule = parse_dosage_schedule(schedule_text)
    if schedule.total_doses <= 0:
        return None
    name = _text(_field(medicine, "name")) or "Medication"
    duration = _text(_field(medicine, "duration")) or None
    return PlannedReminder(
        medicine_name=name,
        dosage=dosage or frequency,
        duration=duration,
        schedule=schedule,
        end_date=calculate_end_date(duration, now) if duration else None,
    )


def plan_reminders(medicines, now: datetime) -> list[PlannedReminder]:
    planned = []
    for index, medicine in enumerate(medicines or []):
        try:
            item = plan_reminder(medicine, now)
        except Exception as exc:
            logger.exception("Skipping reminder for medicine #%d (%r): %s", index, _field(medicine, "name"), exc)
            continue
        if item:
            planned.append(item)
    return planned


def _new_record(plan: PlannedReminder, prescription_id: int, user_id: int, now: datetime) -> Reminder:
    timings = reminder_timings()
    return Reminder(
        user_id=user_id,
        prescription_id=prescription_id,
        medicine_name=plan.medicine_name,
        dosage=plan.dosage,
        duration=plan.duration,
        morning=plan.schedule.morning,
        noon=plan.schedule.noon,
        night=plan.schedule.night,
        morning_time=timings["morning"],
        noon_time=timings["noon"],
        night_time=timings["night"],
        is_active=True,
        start_date=now,
        end_date=plan.end_date,
    )


def build_reminders(
    db: Session,
    prescription_id: int,
    user_id: int,
    medicines,
    now: datetime | None = None,
) -> list[Reminder]:
    """Create one reminder per schedulable medicine. Caller commits."""
    now = now or datetime.now()
    created = []
    for plan in plan_reminders(medicines, now):
        try:
            record = _new_record(plan, prescription_id, user_id, now)
            db.add(record)
        except Exception as exc:
            logger.exception("Failed to create reminder for %s: %s", plan.medicine_name, exc)
            continue
        created.append(record)
    db.flush()
    logger.info("Built %d reminder(s) for prescription %s", len(created), prescription_id)
    return created


def _apply_plan(record: Reminder, plan: PlannedReminder, now: datetime) -> bool:
    changed = False
    updates = {
        "medicine_name": plan.medicine_name,
        "dosage": plan.dosage,
        "morning": plan.schedule.morning,
        "noon": plan.schedule.noon,
        "night": plan.schedule.night,
    }
    for attr, value in updates.items():
        if getattr(record, attr) != value:
            setattr(record, attr, value)
            changed = True
    # Keep the original course end unless the duration itself was edited.
    if (record.duration or None) != plan.duration:
        record.duration = plan.duration
        record.end_date = calculate_end_date(plan.duration, record.start_date) if plan.duration else None
        changed = True
    running = record.end_date is None or record.end_date >= now
    if record.is_active != running:
        record.is_active = running
        changed = True
    return changed


def sync_reminders(
    db: Session,
    prescription_id: int,
    user_id: int,
    medicines,
    now: datetime | None = None,
) -> SyncResult:
    """Bring a prescription's reminders in line with its edited medicine list.

    Records are matched to medicine lines by normalized name (in order, for
    repeated names). Untouched medicines keep their row, so a dispatch run
    reading concurrently never sees the prescription without reminders.
    Caller commits.
    """
    now = now or datetime.now()
    result = SyncResult()
    existing: dict[str, list[Reminder]] = defaultdict(list)
    for record in list_prescription_reminders(db, prescription_id):
        existing[_medicine_key(record.medicine_name)].append(record)

    for plan in plan_reminders(medicines, now):
        bucket = existing.get(plan.key)
        if bucket:
            record = bucket.pop(0)
            try:
                if _apply_plan(record, plan, now):
                    result.updated += 1
                else:
                    result.unchanged += 1
            except Exception as exc:
                logger.exception("Failed to update reminder %s: %s", record.id, exc)
            continue
        try:
            db.add(_new_record(plan, prescription_id, user_id, now))
            result.created += 1
        except Exception as exc:
            logger.exception("Failed to create reminder for %s: %s", plan.medicine_name, exc)

    for leftovers in existing.values():
        for record in leftovers:
            db.delete(record)
            result.removed += 1

    db.flush()
    logger.info("Synced reminders for prescription %s: %s", prescription_id, result.to_dict())
    return result
