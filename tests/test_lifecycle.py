from datetime import datetime, timedelta

import services.prescription_lifecycle as lifecycle
from models.prescription import PrescriptionStatus
from models.reminder import Reminder
from services.prescription_lifecycle import (
    on_prescription_archived_or_completed,
    on_prescription_deleted,
    on_prescription_reactivated,
    on_prescription_saved,
    on_prescription_updated,
)
from services.reminder_store import list_prescription_reminders

NOW = datetime(2026, 3, 10, 8, 0, 0)

MEDICINES = [
    {"name": "Paracetamol", "dosage": "1-1-1", "duration": "5 days"},
    {"name": "Omeprazole", "dosage": "before meals", "duration": "2 weeks"},
]


def _active(db, prescription_id):
    return [r for r in list_prescription_reminders(db, prescription_id) if r.is_active]


def test_saved_current_prescription_gets_reminders(db, make_prescription):
    rx = make_prescription(medicines=MEDICINES)
    assert on_prescription_saved(db, rx, NOW) == 2
    assert len(_active(db, rx.id)) == 2


def test_saved_archived_prescription_gets_none(db, make_prescription):
    rx = make_prescription(medicines=MEDICINES, status=PrescriptionStatus.archived)
    assert on_prescription_saved(db, rx, NOW) == 0
    assert db.query(Reminder).count() == 0


def test_updating_to_not_current_deactivates(db, make_prescription):
    rx = make_prescription(medicines=MEDICINES)
    on_prescription_saved(db, rx, NOW)

    rx.status = PrescriptionStatus.completed
    db.commit()
    assert on_prescription_updated(db, rx, NOW) == {"deactivated": 2}
    assert _active(db, rx.id) == []


def test_updating_current_prescription_syncs(db, make_prescription):
    rx = make_prescription(medicines=MEDICINES)
    on_prescription_saved(db, rx, NOW)

    rx.medicines = [MEDICINES[0]]
    db.commit()
    result = on_prescription_updated(db, rx, NOW)

    assert result == {"created": 0, "updated": 0, "unchanged": 1, "removed": 1}
    assert [r.medicine_name for r in list_prescription_reminders(db, rx.id)] == ["Paracetamol"]


def test_archive_then_reactivate(db, make_prescription):
    rx = make_prescription(medicines=MEDICINES)
    on_prescription_saved(db, rx, NOW)

    assert on_prescription_archived_or_completed(db, rx.id) == 2
    assert _active(db, rx.id) == []

    rx.status = PrescriptionStatus.current
    db.commit()
    assert on_prescription_reactivated(db, rx, NOW + timedelta(days=1)) == 2
    assert len(_active(db, rx.id)) == 2


def test_reactivation_leaves_finished_courses_inactive(db, make_prescription):
    rx = make_prescription(medicines=MEDICINES)
    on_prescription_saved(db, rx, NOW)
    on_prescription_archived_or_completed(db, rx.id)

    # Paracetamol's 5-day course is over by then, Omeprazole's 2 weeks is not.
    assert on_prescription_reactivated(db, rx, NOW + timedelta(days=7)) == 1
    assert [r.medicine_name for r in _active(db, rx.id)] == ["Omeprazole"]


def test_reactivation_builds_when_nothing_exists(db, make_prescription):
    rx = make_prescription(medicines=MEDICINES, status=PrescriptionStatus.archived)
    on_prescription_saved(db, rx, NOW)

    rx.status = PrescriptionStatus.current
    db.commit()
    assert on_prescription_reactivated(db, rx, NOW) == 2


def test_deleted_prescription_loses_its_reminders(db, make_prescription):
    keep = make_prescription(medicines=MEDICINES)
    drop = make_prescription(medicines=MEDICINES)
    on_prescription_saved(db, keep, NOW)
    on_prescription_saved(db, drop, NOW)

    assert on_prescription_deleted(db, drop.id) == 2
    assert list_prescription_reminders(db, drop.id) == []
    assert len(list_prescription_reminders(db, keep.id)) == 2


def test_hook_failures_are_logged_not_raised(db, make_prescription, monkeypatch, caplog):
    def broken(*args, **kwargs):
        raise RuntimeError("db went away")

    monkeypatch.setattr(lifecycle, "build_reminders", broken)
    rx = make_prescription(medicines=MEDICINES)

    assert on_prescription_saved(db, rx, NOW) == 0
    assert "Failed to create reminders" in caplog.text


def test_deleting_the_prescription_row_cascades(db, make_prescription):
    rx = make_prescription(medicines=MEDICINES)
    on_prescription_saved(db, rx, NOW)

    db.delete(rx)
    db.commit()
    assert db.query(Reminder).count() == 0
