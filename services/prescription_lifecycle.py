"""
Reminder bookkeeping for prescription CRUD events.

Every hook commits its own work and logs (rather than raises) on failure:
saving or editing a prescription must never fail because of reminders.
"""

import logging
from datetime import datetime

from sqlalchemy.orm import Session

from models.prescription import Prescription
from services.reminder_builder import build_reminders, sync_reminders
from services.reminder_store import (
    delete_prescription_reminders,
    list_prescription_reminders,
    set_prescription_active,
)

logger = logging.getLogger("dosealert.lifecycle")


def on_prescription_saved(db: Session, prescription: Prescription, now: datetime | None = None) -> int:
    if not prescription.is_current or not prescription.medicines:
        return 0
    try:
        created = build_reminders(db, prescription.id, prescription.user_id, prescription.medicines, now)
        db.commit()
        return len(created)
    except Exception as exc:
        db.rollback()
        logger.exception("Failed to create reminders for prescription %s: %s", prescription.id, exc)
        return 0


def on_prescription_updated(db: Session, prescription: Prescription, now: datetime | None = None) -> dict:
    try:
        if not prescription.is_current:
            count = set_prescription_active(db, prescription.id, False)
            db.commit()
            return {"deactivated": count}
        result = sync_reminders(db, prescription.id, prescription.user_id, prescription.medicines, now)
        db.commit()
        return result.to_dict()
    except Exception as exc:
        db.rollback()
        logger.exception("Failed to update reminders for prescription %s: %s", prescription.id, exc)
        return {}


def on_prescription_archived_or_completed(db: Session, prescription_id: int) -> int:
    try:
        count = set_prescription_active(db, prescription_id, False)
        db.commit()
        return count
    except Exception as exc:
        db.rollback()
        logger.exception("Failed to deactivate reminders for prescription %s: %s", prescription_id, exc)
        return 0


def on_prescription_reactivated(db: Session, prescription: Prescription, now: datetime | None = None) -> int:
    """Prescription marked current again: revive its reminders, or build them if it never had any."""
    try:
        if not list_prescription_reminders(db, prescription.id):
            created = build_reminders(db, prescription.id, prescription.user_id, prescription.medicines, now)
            db.commit()
            return len(created)
        count = set_prescription_active(db, prescription.id, True, now)
        db.commit()
        return count
    except Exception as exc:
        db.rollback()
        logger.exception("Failed to reactivate reminders for prescription %s: %s", prescription.id, exc)
        return 0


def on_prescription_deleted(db: Session, prescription_id: int) -> int:
    try:
        count = delete_prescription_reminders(db, prescription_id)
        db.commit()
        return count
    except Exception as exc:
        db.rollback()
        logger.exception("Failed to delete reminders for prescription %s: %s", prescription_id, exc)
        return 0
